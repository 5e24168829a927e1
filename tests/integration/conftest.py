import pytest
import pytest_asyncio
from decimal import Decimal
from typing import Any, Optional
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from libs.result import Return, Error
from src.app.services.notification_service import NotificationService, ScalingEvent
from src.app.services.resource_manager import ProvisioningGateway, ResourceUsageProvider
from src.app.services.secondary_billing import SecondaryBillingSystem
from src.depends import (
    get_billing_system,
    get_notification_service,
    get_resource_manager,
    get_scaling_policy,
    get_session,
    get_session_factory,
)
from src.domain import (
    AccountStatus,
    HostingAccount,
    HostingPlan,
    PurchasedHosting,
    ScalingPolicy,
    ResourceUsage,
    Wallet,
)


class FakeResourceManager(ResourceUsageProvider, ProvisioningGateway):
    """In-memory resource manager: usage per external id, records applied limits"""

    def __init__(self):
        self.usage: dict[str, ResourceUsage] = {}
        self.limits: dict[str, tuple[int, int]] = {}
        self.failing: set[str] = set()

    async def get_usage(self, external_id: str):
        if external_id not in self.usage:
            return Return.err(Error(code="USAGE_NOT_AVAILABLE", message=f"Usage for {external_id} not available"))
        return Return.ok(self.usage[external_id])

    async def set_limits(self, external_id: str, ram_mb: int, cpu_percent: int):
        if external_id in self.failing:
            return Return.err(Error(code="RESOURCE_MANAGER_ERROR", message="Resource manager returned HTTP 500"))
        self.limits[external_id] = (ram_mb, cpu_percent)
        return Return.ok()

    async def create_account(self, username: str, ram_mb: int, cpu_percent: int):
        return Return.ok(f"rm-{username}")

    async def delete_account(self, external_id: str):
        return Return.ok()


class FakeBillingSystem(SecondaryBillingSystem):
    def __init__(self):
        self.charges: list[tuple[str, Decimal, str]] = []
        self.synced: list[tuple[str, int, int]] = []
        self.available = True

    async def add_charge(self, client_id: str, amount: Decimal, description: str):
        if not self.available:
            return Return.err(Error(code="BILLING_SYSTEM_TIMEOUT", message="Billing system did not answer"))
        self.charges.append((client_id, amount, description))
        return Return.ok(str(1000 + len(self.charges)))

    async def sync_resources(self, service_id: str, ram_mb: int, cpu_percent: int):
        self.synced.append((service_id, ram_mb, cpu_percent))
        return Return.ok()


class RecordingNotifier(NotificationService):
    def __init__(self):
        self.events: list[ScalingEvent] = []
        self.alerts: list[tuple[int, str, Optional[dict[str, Any]]]] = []

    async def send_scaling_notification(self, event: ScalingEvent) -> bool:
        self.events.append(event)
        return True

    async def send_inconsistency_alert(self, account_id, message, details=None) -> bool:
        self.alerts.append((account_id, message, details))
        return True


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """File-backed SQLite so that separate sessions share one database"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db", echo=False, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def resource_manager():
    return FakeResourceManager()


@pytest.fixture
def billing_system():
    return FakeBillingSystem()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def policy():
    return ScalingPolicy()


@pytest.fixture
def seed_account(db_session):
    """Insert plan, purchase and account (and optionally a wallet), committed"""

    async def _seed(
        user_id=15,
        current_ram=1024,
        current_cpu=100,
        max_ram=2048,
        max_cpu=400,
        resource_manager_id="rm-1",
        wallet_balance: Optional[Decimal] = None,
        billing_client_id=None,
        billing_service_id=None,
        status=AccountStatus.ACTIVE,
        is_suspended=False,
        autoscaling=True,
    ) -> int:
        plan = HostingPlan(name="Business", ram=current_ram, cpu=current_cpu, max_ram=max_ram, max_cpu=max_cpu)
        db_session.add(plan)
        await db_session.flush()

        purchase = PurchasedHosting(
            user_id=user_id,
            hosting_plan_id=plan.id,
            billing_client_id=billing_client_id,
            billing_service_id=billing_service_id,
        )
        db_session.add(purchase)
        await db_session.flush()

        account = HostingAccount(
            user_id=user_id,
            purchased_hosting_id=purchase.id,
            username=f"user{purchase.id}",
            status=status,
            is_suspended=is_suspended,
            current_ram=current_ram,
            current_cpu=current_cpu,
            is_autoscaling_enabled=autoscaling,
            resource_manager_id=resource_manager_id,
        )
        db_session.add(account)

        if wallet_balance is not None:
            db_session.add(Wallet(user_id=user_id, balance=wallet_balance))

        await db_session.flush()
        account_id = account.id
        await db_session.commit()
        return account_id

    return _seed


@pytest_asyncio.fixture
async def client(db_session, session_factory, resource_manager, billing_system, notifier, policy):
    """Create test client with database session and external system overrides"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_resource_manager] = lambda: resource_manager
    app.dependency_overrides[get_billing_system] = lambda: billing_system
    app.dependency_overrides[get_notification_service] = lambda: notifier
    app.dependency_overrides[get_scaling_policy] = lambda: policy

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
