"""In-process account lock

Per-account asyncio locks. Serialises ScaleAccount calls made from the same
process (API and worker tasks); the account row lock taken by the repository
covers separate processes on databases that support SELECT FOR UPDATE.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator
from src.app.services.account_lock import AccountLock


class InProcessAccountLock(AccountLock):
    def __init__(self):
        self._locks: dict[int, asyncio.Lock] = {}
        self._waiters: dict[int, int] = {}

    @asynccontextmanager
    async def hold(self, account_id: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(account_id, asyncio.Lock())
        self._waiters[account_id] = self._waiters.get(account_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[account_id] -= 1
            if self._waiters[account_id] == 0:
                del self._waiters[account_id]
                del self._locks[account_id]

    def is_held(self, account_id: int) -> bool:
        lock = self._locks.get(account_id)
        return lock is not None and lock.locked()


_shared_lock = InProcessAccountLock()


def get_account_lock() -> InProcessAccountLock:
    """Process-wide lock shared by every ScaleAccount built in this process"""
    return _shared_lock
