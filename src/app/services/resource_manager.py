"""Resource Manager Interfaces

Contracts for the external system that enforces per-account RAM/CPU limits
and reports live usage. Every call is bounded by a timeout; a timeout is
reported as an error Result, the same as any other failure.
"""

from abc import ABC, abstractmethod
from libs.result import Result
from src.domain.scaling_policy import ResourceUsage


class ResourceUsageProvider(ABC):
    @abstractmethod
    async def get_usage(self, external_id: str) -> Result[ResourceUsage]:
        """
        Fetch the current usage snapshot for an account

        Args:
            external_id: Account identifier on the resource manager

        Returns:
            Result[ResourceUsage], error code USAGE_NOT_AVAILABLE when the
            snapshot cannot be fetched
        """
        pass


class ProvisioningGateway(ABC):
    """
    Applies resource ceilings on the resource manager

    A successful set_limits means the new ceiling is in force externally.
    """

    @abstractmethod
    async def set_limits(self, external_id: str, ram_mb: int, cpu_percent: int) -> Result[None]:
        pass

    @abstractmethod
    async def create_account(self, username: str, ram_mb: int, cpu_percent: int) -> Result[str]:
        """
        Create an account on the resource manager

        Returns:
            Result with the external identifier of the new account
        """
        pass

    @abstractmethod
    async def delete_account(self, external_id: str) -> Result[None]:
        pass
