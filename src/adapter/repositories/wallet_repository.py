"""SQLAlchemy implementation of WalletRepository

Provides persistence for Wallet entities with pessimistic locking and a
conditional balance update (compare-and-set on the previous balance).
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.wallet_repository import WalletRepository
from src.domain.wallet import Wallet


class SqlAlchemyWalletRepository(WalletRepository):
    """
    SQLAlchemy implementation of WalletRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE
    - Balance written only if it still equals the expected value
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_user_id(self, user_id: int, for_update: bool = False) -> Optional[Wallet]:
        """
        Retrieve wallet by user ID with optional row-level locking

        Args:
            user_id: User identifier
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            Wallet if found, None otherwise
        """
        stmt = select(Wallet).where(Wallet.user_id == user_id)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id(self, wallet_id: int, for_update: bool = False) -> Optional[Wallet]:
        stmt = select(Wallet).where(Wallet.id == wallet_id)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, wallet: Wallet) -> Wallet:
        self.session.add(wallet)
        await self.session.flush()
        await self.session.refresh(wallet)
        return wallet

    async def update_balance(self, wallet_id: int, expected_balance: Decimal, new_balance: Decimal) -> bool:
        """
        Compare-and-set the wallet balance

        Returns:
            True if exactly one row was updated
        """
        stmt = (
            update(Wallet)
            .where(Wallet.id == wallet_id)
            .where(Wallet.balance == expected_balance)
            .values(balance=new_balance, updated_at=datetime.utcnow())
            .execution_options(synchronize_session="evaluate")
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            return False

        await self.session.flush()
        return True

    async def get_all(self) -> list[Wallet]:
        result = await self.session.execute(select(Wallet).order_by(Wallet.id))
        return list(result.scalars().all())
