from .hosting_account_repository import HostingAccountRepository, HostingAccountContext
from .scaling_log_repository import ScalingLogRepository
from .wallet_repository import WalletRepository
from .wallet_log_repository import WalletLogRepository

__all__ = [
    "HostingAccountRepository",
    "HostingAccountContext",
    "ScalingLogRepository",
    "WalletRepository",
    "WalletLogRepository",
]
