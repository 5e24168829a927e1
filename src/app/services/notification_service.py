"""Notification Service Interface

Defines the contract for announcing scaling events and escalating
inconsistencies between the resource manager and local records.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from pydantic import BaseModel, Field
from src.domain.scaling_log import PaymentStatus, ScalingReason


class ScalingEvent(BaseModel):
    """Snapshot of a completed scaling operation"""

    account_id: int
    user_id: int
    log_id: int
    previous_ram: int
    new_ram: int
    previous_cpu: int
    new_cpu: int
    cost: Decimal
    payment_status: PaymentStatus
    reason: ScalingReason
    occurred_at: datetime = Field(default_factory=datetime.utcnow)


class NotificationService(ABC):
    """
    Abstract notification service for scaling events and alerts

    Implementations can send notifications via:
    - Logging
    - Webhook (HTTP POST)
    """

    @abstractmethod
    async def send_scaling_notification(self, event: ScalingEvent) -> bool:
        """
        Announce that an account was scaled

        Args:
            event: ScalingEvent describing the change

        Returns:
            True if notification sent successfully, False otherwise
        """
        pass

    @abstractmethod
    async def send_inconsistency_alert(
        self, account_id: int, message: str, details: Optional[dict[str, Any]] = None
    ) -> bool:
        """
        Escalate a divergence between external and internal state

        Raised when the resource manager accepted new limits but the local
        account/log could not be persisted.
        """
        pass
