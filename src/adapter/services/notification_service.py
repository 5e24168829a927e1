"""Notification Service Implementations

Provides concrete implementations for announcing scaling events and
escalating inconsistency alerts.
"""

import logging
from typing import Any, Optional
import httpx
from src.app.services.notification_service import NotificationService, ScalingEvent

logger = logging.getLogger(__name__)


class LoggingNotificationService(NotificationService):
    """
    Notification service that logs events

    Useful for development and testing, or as a fallback.
    """

    async def send_scaling_notification(self, event: ScalingEvent) -> bool:
        logger.info(
            f"[SCALING] Account: {event.account_id}, User: {event.user_id}, "
            f"RAM: {event.previous_ram} -> {event.new_ram} MB, "
            f"CPU: {event.previous_cpu} -> {event.new_cpu}%, "
            f"Cost: {event.cost}, Payment: {event.payment_status.value}, "
            f"Log: {event.log_id}"
        )
        return True

    async def send_inconsistency_alert(
        self, account_id: int, message: str, details: Optional[dict[str, Any]] = None
    ) -> bool:
        """
        Log inconsistency alert

        Returns:
            Always True (logging never fails)
        """
        logger.critical(f"[INCONSISTENCY ALERT] Account: {account_id}, {message}, Details: {details or {}}")
        return True


class WebhookNotificationService(NotificationService):
    """
    Notification service that sends events via HTTP webhook

    Sends JSON payload to configured webhook URL.
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize webhook notification service

        Args:
            webhook_url: URL to POST events to
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.transport = transport

    async def send_scaling_notification(self, event: ScalingEvent) -> bool:
        payload = {
            "type": "scaling_event",
            "account_id": event.account_id,
            "user_id": event.user_id,
            "scaling_log_id": event.log_id,
            "reason": event.reason.value,
            "previous_ram": event.previous_ram,
            "new_ram": event.new_ram,
            "previous_cpu": event.previous_cpu,
            "new_cpu": event.new_cpu,
            "cost": str(event.cost),
            "payment_status": event.payment_status.value,
            "occurred_at": event.occurred_at.isoformat(),
        }
        return await self._post(payload, f"scaling log {event.log_id}")

    async def send_inconsistency_alert(
        self, account_id: int, message: str, details: Optional[dict[str, Any]] = None
    ) -> bool:
        payload = {
            "type": "inconsistency_alert",
            "severity": "critical",
            "account_id": account_id,
            "message": message,
            "details": details or {},
        }
        return await self._post(payload, f"account {account_id} inconsistency")

    async def _post(self, payload: dict[str, Any], subject: str) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.info(f"Webhook notification sent for {subject} to {self.webhook_url}")
                return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send webhook notification for {subject}: {e}")
            return False


class CompositeNotificationService(NotificationService):
    """
    Notification service that delegates to multiple services

    Useful for sending to multiple channels (e.g., log + webhook).
    """

    def __init__(self, services: list[NotificationService]):
        self.services = services

    async def send_scaling_notification(self, event: ScalingEvent) -> bool:
        """
        Returns:
            True if at least one service succeeded, False otherwise
        """
        success = False
        for service in self.services:
            try:
                if await service.send_scaling_notification(event):
                    success = True
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return success

    async def send_inconsistency_alert(
        self, account_id: int, message: str, details: Optional[dict[str, Any]] = None
    ) -> bool:
        success = False
        for service in self.services:
            try:
                if await service.send_inconsistency_alert(account_id, message, details):
                    success = True
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return success


def create_notification_service(webhook_url: Optional[str] = None, timeout: float = 10.0) -> NotificationService:
    """
    Factory function to create appropriate notification service

    Args:
        webhook_url: Optional webhook URL. If provided, creates composite
                     service with logging + webhook. Otherwise, just logging.
        timeout: Webhook request timeout in seconds

    Returns:
        Configured NotificationService
    """
    services: list[NotificationService] = [LoggingNotificationService()]

    if webhook_url:
        services.append(WebhookNotificationService(webhook_url, timeout=timeout))

    if len(services) == 1:
        return services[0]

    return CompositeNotificationService(services)
