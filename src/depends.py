from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig, load_config_data
from src.adapter.repositories import (
    SqlAlchemyHostingAccountRepository,
    SqlAlchemyScalingLogRepository,
    SqlAlchemyWalletRepository,
    SqlAlchemyWalletLogRepository,
)
from src.adapter.services.account_lock import get_account_lock
from src.adapter.services.billing_system_client import BillingSystemClient
from src.adapter.services.notification_service import create_notification_service
from src.adapter.services.resource_manager_client import ResourceManagerClient
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.notification_service import NotificationService
from src.app.services.wallet_ledger import WalletLedger
from src.app.use_cases.scaling import ChargeScaling, ScaleAccount
from src.domain.scaling_policy import ScalingPolicy

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_scaling_policy() -> ScalingPolicy:
    """Fresh policy snapshot from env.yaml"""
    return ScalingPolicy.from_mapping(load_config_data())


def get_resource_manager() -> ResourceManagerClient:
    return ResourceManagerClient(
        base_url=ApplicationConfig.RESOURCE_MANAGER_URL,
        api_key=ApplicationConfig.RESOURCE_MANAGER_API_KEY,
        server_id=str(ApplicationConfig.RESOURCE_MANAGER_SERVER_ID),
        timeout=ApplicationConfig.EXTERNAL_CALL_TIMEOUT_SECONDS,
    )


def get_billing_system() -> BillingSystemClient:
    return BillingSystemClient(
        api_url=ApplicationConfig.BILLING_SYSTEM_URL,
        identifier=ApplicationConfig.BILLING_SYSTEM_IDENTIFIER,
        secret=ApplicationConfig.BILLING_SYSTEM_SECRET,
        timeout=ApplicationConfig.EXTERNAL_CALL_TIMEOUT_SECONDS,
    )


def get_notification_service() -> NotificationService:
    return create_notification_service(
        ApplicationConfig.SCALING_NOTIFICATION_WEBHOOK,
        timeout=ApplicationConfig.EXTERNAL_CALL_TIMEOUT_SECONDS,
    )


def build_charge_scaling(session: AsyncSession, billing_system=None) -> ChargeScaling:
    return ChargeScaling(
        uow=SqlAlchemyUnitOfWork(session),
        scaling_log_repo=SqlAlchemyScalingLogRepository(session),
        account_repo=SqlAlchemyHostingAccountRepository(session),
        wallet_ledger=WalletLedger(
            SqlAlchemyWalletRepository(session),
            SqlAlchemyWalletLogRepository(session),
            default_currency=ApplicationConfig.WALLET_CURRENCY,
        ),
        secondary_billing=billing_system or get_billing_system(),
    )


def build_scale_account(
    session: AsyncSession,
    policy: ScalingPolicy,
    provisioning_gateway=None,
    billing_system=None,
    notification_service=None,
) -> ScaleAccount:
    """Wire a ScaleAccount whose repositories all share one session"""
    billing_system = billing_system or get_billing_system()
    return ScaleAccount(
        uow=SqlAlchemyUnitOfWork(session),
        account_repo=SqlAlchemyHostingAccountRepository(session),
        scaling_log_repo=SqlAlchemyScalingLogRepository(session),
        provisioning_gateway=provisioning_gateway or get_resource_manager(),
        charge_scaling=build_charge_scaling(session, billing_system),
        secondary_billing=billing_system,
        notification_service=notification_service or get_notification_service(),
        account_lock=get_account_lock(),
        policy=policy,
    )


def scale_account_scope(session_factory, provisioning_gateway=None, billing_system=None, notification_service=None):
    """
    Factory of ScaleAccount scopes, each on its own session

    Used by sweeps so that every account is processed in an isolated
    transaction.
    """

    @asynccontextmanager
    async def scope(policy: ScalingPolicy):
        async with session_factory() as session:
            yield build_scale_account(
                session,
                policy,
                provisioning_gateway=provisioning_gateway,
                billing_system=billing_system,
                notification_service=notification_service,
            )

    return scope


def charge_scaling_scope(session_factory, billing_system=None):
    @asynccontextmanager
    async def scope():
        async with session_factory() as session:
            yield build_charge_scaling(session, billing_system)

    return scope


def get_session_factory():
    """Session factory for use cases that open one session per item"""
    return AsyncSessionLocal
