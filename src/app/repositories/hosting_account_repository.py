"""Hosting Account Repository Interface

Defines the contract for reading hosting accounts together with their
purchase and plan, and for mutating their resource allocation.
"""

from abc import ABC, abstractmethod
from typing import NamedTuple, Optional
from src.domain.hosting_account import HostingAccount, AccountStatus
from src.domain.hosting_plan import HostingPlan
from src.domain.purchased_hosting import PurchasedHosting


class HostingAccountContext(NamedTuple):
    """Account with the purchase and plan it is scaled against"""

    account: HostingAccount
    purchase: PurchasedHosting
    plan: HostingPlan

    @property
    def autoscaling_eligible(self) -> bool:
        """Active, not suspended, and autoscaling switched on for both account and purchase"""
        return (
            self.account.status == AccountStatus.ACTIVE
            and not self.account.is_suspended
            and self.account.is_autoscaling_enabled
            and self.purchase.is_autoscaling_enabled
        )


class HostingAccountRepository(ABC):
    """
    Repository interface for HostingAccount persistence

    Resource fields are only written through update_resources, which callers
    must invoke while holding the account row lock.
    """

    @abstractmethod
    async def get_by_id(self, account_id: int, for_update: bool = False) -> Optional[HostingAccount]:
        """
        Retrieve account by ID

        Args:
            account_id: Account ID
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            HostingAccount if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_context(self, account_id: int, for_update: bool = False) -> Optional[HostingAccountContext]:
        """
        Retrieve account with its purchase and plan

        Args:
            account_id: Account ID
            for_update: If True, lock the account row with SELECT FOR UPDATE

        Returns:
            HostingAccountContext if the account, purchase and plan all exist
        """
        pass

    @abstractmethod
    async def get_autoscaling_candidates(self) -> list[HostingAccountContext]:
        """
        Retrieve accounts eligible for an autoscaling sweep

        Eligible: status active, not suspended, autoscaling enabled on both the
        account and the purchase, and a plan attached.
        """
        pass

    @abstractmethod
    async def update_resources(self, account_id: int, new_ram: int, new_cpu: int) -> None:
        """
        Set the account's current allocation

        Args:
            account_id: Account ID
            new_ram: New RAM allocation (MB)
            new_cpu: New CPU allocation (percentage points)
        """
        pass

    @abstractmethod
    async def set_autoscaling_enabled(self, account_id: int, enabled: bool) -> Optional[HostingAccountContext]:
        """
        Switch autoscaling on or off for the account and its purchase

        Returns:
            Updated HostingAccountContext, None if the account does not exist
        """
        pass
