"""Wallet use cases"""
from .credit_wallet import CreditWallet
from .get_wallet_balance import GetWalletBalance
from .list_wallet_logs import ListWalletLogs
from .reconcile_wallets import ReconcileWallets
from .dtos import (
    CreditWalletCommandDTO,
    WalletTransactionResponseDTO,
    WalletBalanceResponseDTO,
    WalletLogDTO,
    ListWalletLogsResponseDTO,
    WalletDiscrepancyDTO,
    WalletReconciliationResultDTO,
)

__all__ = [
    "CreditWallet",
    "GetWalletBalance",
    "ListWalletLogs",
    "ReconcileWallets",
    "CreditWalletCommandDTO",
    "WalletTransactionResponseDTO",
    "WalletBalanceResponseDTO",
    "WalletLogDTO",
    "ListWalletLogsResponseDTO",
    "WalletDiscrepancyDTO",
    "WalletReconciliationResultDTO",
]
