"""SQLAlchemy implementation of WalletLogRepository"""

from decimal import Decimal
from typing import Optional
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.wallet_log_repository import WalletLogRepository
from src.domain.wallet_log import WalletLog


class SqlAlchemyWalletLogRepository(WalletLogRepository):
    """
    SQLAlchemy implementation of WalletLogRepository

    Entries are only ever inserted.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entry: WalletLog) -> WalletLog:
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[WalletLog]:
        stmt = select(WalletLog).where(WalletLog.idempotency_key == idempotency_key)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_wallet_id(
        self, wallet_id: int, limit: int = 20, offset: int = 0, source: Optional[str] = None
    ) -> tuple[list[WalletLog], int]:
        statement = select(WalletLog).where(WalletLog.wallet_id == wallet_id)
        count_statement = select(func.count()).select_from(WalletLog).where(WalletLog.wallet_id == wallet_id)

        if source:
            statement = statement.where(WalletLog.source == source)
            count_statement = count_statement.where(WalletLog.source == source)

        statement = statement.order_by(WalletLog.created_at.desc(), WalletLog.id.desc())
        statement = statement.limit(limit).offset(offset)

        result = await self.session.execute(statement)
        entries = list(result.scalars().all())

        count_result = await self.session.execute(count_statement)
        total = count_result.scalar_one()

        return entries, total

    async def get_sum_by_wallet(self, wallet_id: int) -> Decimal:
        statement = select(func.coalesce(func.sum(WalletLog.amount), 0)).where(WalletLog.wallet_id == wallet_id)
        result = await self.session.execute(statement)
        total = result.scalar_one()
        return Decimal(str(total)).quantize(Decimal("0.01"))
