"""Wallet Log Repository Interface

Append-only persistence for wallet balance mutations.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional
from src.domain.wallet_log import WalletLog


class WalletLogRepository(ABC):
    """
    Repository interface for WalletLog persistence

    Entries are immutable. Idempotency is enforced via the unique
    idempotency_key.
    """

    @abstractmethod
    async def create(self, entry: WalletLog) -> WalletLog:
        """
        Create a new wallet log entry

        Raises:
            IntegrityError: If idempotency_key already exists
        """
        pass

    @abstractmethod
    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[WalletLog]:
        pass

    @abstractmethod
    async def get_by_wallet_id(
        self, wallet_id: int, limit: int = 20, offset: int = 0, source: Optional[str] = None
    ) -> tuple[list[WalletLog], int]:
        """
        Retrieve wallet history, newest first

        Returns:
            Tuple of (page of WalletLog, total count)
        """
        pass

    @abstractmethod
    async def get_sum_by_wallet(self, wallet_id: int) -> Decimal:
        """Sum of all signed amounts for a wallet (0 when empty)"""
        pass
