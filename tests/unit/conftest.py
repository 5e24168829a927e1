import pytest
from unittest.mock import AsyncMock, MagicMock


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def make_context():
    """Factory for account/purchase/plan triples"""
    from src.app.repositories.hosting_account_repository import HostingAccountContext
    from src.domain.hosting_account import HostingAccount, AccountStatus
    from src.domain.hosting_plan import HostingPlan
    from src.domain.purchased_hosting import PurchasedHosting

    def _make(
        account_id=1,
        user_id=15,
        current_ram=1024,
        current_cpu=100,
        max_ram=2048,
        max_cpu=400,
        resource_manager_id="rm-1",
        billing_client_id=None,
        billing_service_id=None,
        status=None,
        is_suspended=False,
        autoscaling=True,
        purchase_autoscaling=True,
    ):
        plan = HostingPlan(id=1, name="Business", ram=1024, cpu=100, max_ram=max_ram, max_cpu=max_cpu)
        purchase = PurchasedHosting(
            id=account_id,
            user_id=user_id,
            hosting_plan_id=plan.id,
            billing_client_id=billing_client_id,
            billing_service_id=billing_service_id,
            is_autoscaling_enabled=purchase_autoscaling,
        )
        account = HostingAccount(
            id=account_id,
            user_id=user_id,
            purchased_hosting_id=purchase.id,
            username=f"user{account_id}",
            status=status or AccountStatus.ACTIVE,
            is_suspended=is_suspended,
            is_autoscaling_enabled=autoscaling,
            current_ram=current_ram,
            current_cpu=current_cpu,
            resource_manager_id=resource_manager_id,
        )
        return HostingAccountContext(account, purchase, plan)

    return _make
