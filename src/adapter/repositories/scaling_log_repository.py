"""SQLAlchemy implementation of ScalingLogRepository"""

from datetime import datetime
from typing import Optional
from sqlalchemy import and_, func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.scaling_log_repository import ScalingLogRepository
from src.domain.scaling_log import ScalingLog, PaymentStatus, ScalingReason


class SqlAlchemyScalingLogRepository(ScalingLogRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, log: ScalingLog) -> ScalingLog:
        self.session.add(log)
        await self.session.flush()
        await self.session.refresh(log)
        return log

    async def get_by_id(self, log_id: int, for_update: bool = False) -> Optional[ScalingLog]:
        stmt = select(ScalingLog).where(ScalingLog.id == log_id)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def save(self, log: ScalingLog) -> ScalingLog:
        self.session.add(log)
        await self.session.flush()
        return log

    async def get_by_payment_status(self, status: PaymentStatus, limit: int = 100) -> list[ScalingLog]:
        stmt = (
            select(ScalingLog)
            .where(ScalingLog.payment_status == status)
            .order_by(ScalingLog.created_at.asc(), ScalingLog.id.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def search(
        self,
        account_id: Optional[int] = None,
        payment_status: Optional[PaymentStatus] = None,
        reason: Optional[ScalingReason] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[ScalingLog], int]:
        conditions = []
        if account_id is not None:
            conditions.append(ScalingLog.hosting_account_id == account_id)
        if payment_status is not None:
            conditions.append(ScalingLog.payment_status == payment_status)
        if reason is not None:
            conditions.append(ScalingLog.reason == reason)
        if start is not None:
            conditions.append(ScalingLog.created_at >= start)
        if end is not None:
            conditions.append(ScalingLog.created_at < end)

        statement = select(ScalingLog)
        count_statement = select(func.count()).select_from(ScalingLog)
        if conditions:
            statement = statement.where(and_(*conditions))
            count_statement = count_statement.where(and_(*conditions))

        statement = statement.order_by(ScalingLog.created_at.desc(), ScalingLog.id.desc())
        statement = statement.limit(limit).offset(offset)

        result = await self.session.execute(statement)
        logs = list(result.scalars().all())

        count_result = await self.session.execute(count_statement)
        total = count_result.scalar_one()

        return logs, total
