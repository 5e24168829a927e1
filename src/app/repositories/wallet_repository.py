"""Wallet Repository Interface

Defines the contract for wallet persistence with pessimistic locking and
conditional balance updates.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional
from src.domain.wallet import Wallet


class WalletRepository(ABC):
    """
    Repository interface for Wallet persistence

    Balance changes go through update_balance, which only applies when the
    stored balance still equals the balance the caller read.
    """

    @abstractmethod
    async def get_by_user_id(self, user_id: int, for_update: bool = False) -> Optional[Wallet]:
        """
        Retrieve wallet by owning user

        Args:
            user_id: User identifier
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Wallet if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_id(self, wallet_id: int, for_update: bool = False) -> Optional[Wallet]:
        pass

    @abstractmethod
    async def create(self, wallet: Wallet) -> Wallet:
        pass

    @abstractmethod
    async def update_balance(self, wallet_id: int, expected_balance: Decimal, new_balance: Decimal) -> bool:
        """
        Conditionally update wallet balance

        Args:
            wallet_id: Wallet ID
            expected_balance: Balance the caller based its decision on
            new_balance: Balance to store

        Returns:
            True if updated, False if the stored balance no longer matched
        """
        pass

    @abstractmethod
    async def get_all(self) -> list[Wallet]:
        pass
