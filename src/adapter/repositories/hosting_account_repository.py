"""SQLAlchemy implementation of HostingAccountRepository

Loads accounts joined to their purchase and plan, with optional row locking
of the account for the duration of a scaling operation.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.hosting_account_repository import HostingAccountRepository, HostingAccountContext
from src.domain.hosting_account import HostingAccount, AccountStatus
from src.domain.hosting_plan import HostingPlan
from src.domain.purchased_hosting import PurchasedHosting


class SqlAlchemyHostingAccountRepository(HostingAccountRepository):
    """
    SQLAlchemy implementation of HostingAccountRepository

    Features:
    - Pessimistic locking of the account row via SELECT FOR UPDATE OF
    - Single joined query for account, purchase and plan
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _context_statement(self):
        return (
            select(HostingAccount, PurchasedHosting, HostingPlan)
            .join(PurchasedHosting, PurchasedHosting.id == HostingAccount.purchased_hosting_id)
            .join(HostingPlan, HostingPlan.id == PurchasedHosting.hosting_plan_id)
        )

    async def get_by_id(self, account_id: int, for_update: bool = False) -> Optional[HostingAccount]:
        stmt = select(HostingAccount).where(HostingAccount.id == account_id)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_context(self, account_id: int, for_update: bool = False) -> Optional[HostingAccountContext]:
        """
        Retrieve account, purchase and plan in one query

        Args:
            account_id: Account ID
            for_update: If True, locks the account row (not the plan) with SELECT FOR UPDATE

        Returns:
            HostingAccountContext if found, None otherwise
        """
        stmt = self._context_statement().where(HostingAccount.id == account_id)

        if for_update:
            stmt = stmt.with_for_update(of=HostingAccount)

        result = await self.session.execute(stmt)
        row = result.first()
        if row is None:
            return None
        return HostingAccountContext(*row)

    async def get_autoscaling_candidates(self) -> list[HostingAccountContext]:
        stmt = (
            self._context_statement()
            .where(HostingAccount.status == AccountStatus.ACTIVE)
            .where(HostingAccount.is_suspended == False)  # noqa: E712
            .where(HostingAccount.is_autoscaling_enabled == True)  # noqa: E712
            .where(PurchasedHosting.is_autoscaling_enabled == True)  # noqa: E712
            .order_by(HostingAccount.id)
        )

        result = await self.session.execute(stmt)
        return [HostingAccountContext(*row) for row in result.all()]

    async def update_resources(self, account_id: int, new_ram: int, new_cpu: int) -> None:
        """
        Update current allocation and updated_at timestamp

        Note:
            Should be called within a transaction with the account already locked
        """
        account = await self.get_by_id(account_id, for_update=False)
        if not account:
            raise ValueError(f"Hosting account {account_id} not found")

        account.current_ram = new_ram
        account.current_cpu = new_cpu
        account.updated_at = datetime.utcnow()
        self.session.add(account)
        await self.session.flush()

    async def set_autoscaling_enabled(self, account_id: int, enabled: bool) -> Optional[HostingAccountContext]:
        context = await self.get_context(account_id, for_update=True)
        if context is None:
            return None

        context.account.is_autoscaling_enabled = enabled
        context.account.updated_at = datetime.utcnow()
        context.purchase.is_autoscaling_enabled = enabled
        self.session.add(context.account)
        self.session.add(context.purchase)
        await self.session.flush()
        return context
