from .unit_of_work import UnitOfWork
from .notification_service import NotificationService, ScalingEvent
from .resource_manager import ResourceUsageProvider, ProvisioningGateway
from .secondary_billing import SecondaryBillingSystem
from .account_lock import AccountLock
from .wallet_ledger import (
    WalletLedger,
    LedgerError,
    InvalidAmountError,
    InsufficientFundsError,
    WalletNotFoundError,
    ConcurrentBalanceUpdateError,
)

__all__ = [
    "UnitOfWork",
    "NotificationService",
    "ScalingEvent",
    "ResourceUsageProvider",
    "ProvisioningGateway",
    "SecondaryBillingSystem",
    "AccountLock",
    "WalletLedger",
    "LedgerError",
    "InvalidAmountError",
    "InsufficientFundsError",
    "WalletNotFoundError",
    "ConcurrentBalanceUpdateError",
]
