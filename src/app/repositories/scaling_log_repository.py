"""Scaling Log Repository Interface

Append-only persistence and audit queries for scaling logs.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from src.domain.scaling_log import ScalingLog, PaymentStatus, ScalingReason


class ScalingLogRepository(ABC):
    """
    Repository interface for ScalingLog persistence

    Logs are never deleted. After creation only the payment fields change,
    through save().
    """

    @abstractmethod
    async def create(self, log: ScalingLog) -> ScalingLog:
        """
        Create a new scaling log

        Returns:
            Created ScalingLog with generated ID
        """
        pass

    @abstractmethod
    async def get_by_id(self, log_id: int, for_update: bool = False) -> Optional[ScalingLog]:
        pass

    @abstractmethod
    async def save(self, log: ScalingLog) -> ScalingLog:
        """Persist payment status/reference changes made on the entity"""
        pass

    @abstractmethod
    async def get_by_payment_status(self, status: PaymentStatus, limit: int = 100) -> list[ScalingLog]:
        """
        Retrieve logs with the given payment status, oldest first

        Args:
            status: Payment status to filter by
            limit: Maximum number of logs to return
        """
        pass

    @abstractmethod
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
        """
        Query scaling history, newest first

        Every filter is optional and filters combine with AND.
        start is inclusive, end is exclusive.

        Returns:
            Tuple of (page of ScalingLog, total matching count)
        """
        pass
