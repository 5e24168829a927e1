"""Account Lock Interface

Advisory mutual exclusion keyed by hosting account id. At most one scaling
operation may hold the lock for a given account.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager


class AccountLock(ABC):
    @abstractmethod
    def hold(self, account_id: int) -> AsyncContextManager[None]:
        """
        Acquire the lock for an account for the duration of an async with block

        Waits while another holder is active.
        """
        pass

    @abstractmethod
    def is_held(self, account_id: int) -> bool:
        pass
