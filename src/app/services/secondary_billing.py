"""Secondary Billing Interface

Fallback payment path used when a user's wallet cannot cover a charge.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from libs.result import Result


class SecondaryBillingSystem(ABC):
    @abstractmethod
    async def add_charge(self, client_id: str, amount: Decimal, description: str) -> Result[str]:
        """
        Bill a client on the external billing system

        Args:
            client_id: Customer identifier on the billing system
            amount: Amount to charge
            description: Invoice line description

        Returns:
            Result with the external invoice reference
        """
        pass

    @abstractmethod
    async def sync_resources(self, service_id: str, ram_mb: int, cpu_percent: int) -> Result[None]:
        """Best-effort update of the service record's RAM/CPU fields"""
        pass
