from .hosting_account_repository import SqlAlchemyHostingAccountRepository
from .scaling_log_repository import SqlAlchemyScalingLogRepository
from .wallet_repository import SqlAlchemyWalletRepository
from .wallet_log_repository import SqlAlchemyWalletLogRepository

__all__ = [
    "SqlAlchemyHostingAccountRepository",
    "SqlAlchemyScalingLogRepository",
    "SqlAlchemyWalletRepository",
    "SqlAlchemyWalletLogRepository",
]
