from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """
    Transaction boundary over one AsyncSession

    Repositories sharing the session flush into it; nothing is durable until
    commit(). Leaving the context without committing rolls back.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aexit__(self, exc_type, exc, tb):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
