from .unit_of_work import SqlAlchemyUnitOfWork
from .notification_service import (
    LoggingNotificationService,
    WebhookNotificationService,
    CompositeNotificationService,
    create_notification_service,
)
from .resource_manager_client import ResourceManagerClient
from .billing_system_client import BillingSystemClient
from .account_lock import InProcessAccountLock, get_account_lock

__all__ = [
    "SqlAlchemyUnitOfWork",
    "LoggingNotificationService",
    "WebhookNotificationService",
    "CompositeNotificationService",
    "create_notification_service",
    "ResourceManagerClient",
    "BillingSystemClient",
    "InProcessAccountLock",
    "get_account_lock",
]
