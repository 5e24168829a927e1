"""Integration tests for Autoscaling API endpoints"""

import pytest
from decimal import Decimal
from httpx import AsyncClient

from sqlmodel import select

from src.domain import ResourceUsage, Wallet


class TestAutoscalingAPIIntegration:
    """Integration test suite for Autoscaling API endpoints"""

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_recommendation(self, client: AsyncClient, seed_account, resource_manager):
        """GET /accounts/{id}/recommendation reports usage percentages and cost"""
        # Arrange
        account_id = await seed_account()
        resource_manager.usage["rm-1"] = ResourceUsage(ram_usage_mb=900, cpu_usage_percent=30)

        # Act
        response = await client.get(f"/api/autoscaling/accounts/{account_id}/recommendation")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["needs_scaling"] is True
        assert data["delta_ram"] == 256
        assert data["delta_cpu"] == 0
        assert data["ram_usage_percent"] == pytest.approx(87.89, abs=0.01)
        assert Decimal(data["estimated_cost"]) == Decimal("2.56")
        assert resource_manager.limits == {}

    @pytest.mark.asyncio
    async def test_recommendation_unknown_account(self, client: AsyncClient):
        response = await client.get("/api/autoscaling/accounts/999/recommendation")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ACCOUNT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_recommendation_usage_unavailable(self, client: AsyncClient, seed_account):
        # Arrange - resource manager has no usage for rm-1
        account_id = await seed_account()

        # Act
        response = await client.get(f"/api/autoscaling/accounts/{account_id}/recommendation")

        # Assert
        assert response.status_code == 503
        assert response.json()["error"]["code"] == "USAGE_NOT_AVAILABLE"

    @pytest.mark.asyncio
    async def test_manual_scale(self, client: AsyncClient, seed_account, resource_manager):
        """POST /accounts/{id}/scale applies, records as manual and charges"""
        # Arrange
        account_id = await seed_account(wallet_balance=Decimal("20.00"))

        # Act
        response = await client.post(
            f"/api/autoscaling/accounts/{account_id}/scale", json={"delta_ram": 512, "delta_cpu": 50}
        )

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["new_ram"] == 1536
        assert data["new_cpu"] == 150
        assert Decimal(data["cost"]) == Decimal("6.12")
        assert data["payment_status"] == "paid"
        assert data["payment_reference"].startswith("wallet_transaction_")
        assert resource_manager.limits["rm-1"] == (1536, 150)

        logs = await client.get("/api/autoscaling/logs", params={"account_id": account_id})
        assert logs.status_code == 200
        assert logs.json()["total"] == 1
        assert logs.json()["logs"][0]["reason"] == "manual"

    @pytest.mark.asyncio
    async def test_manual_scale_at_ceiling(self, client: AsyncClient, seed_account):
        # Arrange
        account_id = await seed_account(max_ram=1024, max_cpu=100)

        # Act
        response = await client.post(f"/api/autoscaling/accounts/{account_id}/scale", json={"delta_ram": 256})

        # Assert
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "NO_SCALING_NEEDED"

    @pytest.mark.asyncio
    async def test_manual_scale_requires_a_delta(self, client: AsyncClient, seed_account):
        account_id = await seed_account()

        response = await client.post(
            f"/api/autoscaling/accounts/{account_id}/scale", json={"delta_ram": 0, "delta_cpu": 0}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_manual_scale_provisioning_failure(self, client: AsyncClient, seed_account, resource_manager):
        # Arrange
        account_id = await seed_account()
        resource_manager.failing.add("rm-1")

        # Act
        response = await client.post(f"/api/autoscaling/accounts/{account_id}/scale", json={"delta_ram": 256})

        # Assert
        assert response.status_code == 502
        assert response.json()["error"]["code"] == "PROVISIONING_FAILED"

    @pytest.mark.asyncio
    async def test_sweep_dry_run_then_real(self, client: AsyncClient, seed_account, resource_manager):
        """POST /sweep?dry_run=true previews, POST /sweep applies"""
        # Arrange
        account_id = await seed_account(wallet_balance=Decimal("10.00"))
        resource_manager.usage["rm-1"] = ResourceUsage(ram_usage_mb=900, cpu_usage_percent=30)

        # Act
        preview = await client.post("/api/autoscaling/sweep", params={"dry_run": "true"})
        applied = await client.post("/api/autoscaling/sweep")

        # Assert
        assert preview.status_code == 200
        assert preview.json()["dry_run"] is True
        assert preview.json()["details"][0]["action"] == "recommended"

        assert applied.status_code == 200
        data = applied.json()
        assert data["accounts_scaled"] == 1
        assert data["details"][0]["account_id"] == account_id
        assert data["details"][0]["action"] == "scaled"
        assert resource_manager.limits["rm-1"] == (1280, 100)

    @pytest.mark.asyncio
    async def test_disable_autoscaling_removes_account_from_sweep(
        self, client: AsyncClient, seed_account, resource_manager
    ):
        """PUT /accounts/{id}/autoscaling with enabled=false keeps a busy account out of sweeps"""
        # Arrange
        account_id = await seed_account()
        resource_manager.usage["rm-1"] = ResourceUsage(ram_usage_mb=1000, cpu_usage_percent=90)

        # Act
        toggled = await client.put(f"/api/autoscaling/accounts/{account_id}/autoscaling", json={"enabled": False})
        swept = await client.post("/api/autoscaling/sweep")

        # Assert
        assert toggled.status_code == 200
        assert toggled.json()["enabled"] is False
        assert toggled.json()["account_id"] == account_id
        assert swept.json()["accounts_checked"] == 0
        assert resource_manager.limits == {}

    @pytest.mark.asyncio
    async def test_enable_autoscaling_unknown_account(self, client: AsyncClient):
        response = await client.put("/api/autoscaling/accounts/999/autoscaling", json={"enabled": True})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ACCOUNT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_toggle_requires_enabled(self, client: AsyncClient, seed_account):
        account_id = await seed_account()

        response = await client.put(f"/api/autoscaling/accounts/{account_id}/autoscaling", json={})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_logs_filtered_by_payment_status(self, client: AsyncClient, seed_account):
        # Arrange - one paid, one pending
        paid_account = await seed_account(user_id=15, wallet_balance=Decimal("50.00"))
        pending_account = await seed_account(user_id=16, resource_manager_id="rm-2")
        await client.post(f"/api/autoscaling/accounts/{paid_account}/scale", json={"delta_ram": 256})
        await client.post(f"/api/autoscaling/accounts/{pending_account}/scale", json={"delta_ram": 256})

        # Act
        response = await client.get("/api/autoscaling/logs", params={"payment_status": "pending"})

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["logs"][0]["hosting_account_id"] == pending_account

    @pytest.mark.asyncio
    async def test_settle_pending(self, client: AsyncClient, seed_account, session_factory):
        """A pending log is paid once the user tops up"""
        # Arrange
        account_id = await seed_account()
        scaled = await client.post(f"/api/autoscaling/accounts/{account_id}/scale", json={"delta_ram": 256})
        assert scaled.json()["payment_status"] == "pending"
        await client.post("/api/wallets/15/deposits", json={"amount": "5.00"})

        # Act
        response = await client.post("/api/autoscaling/settle-pending")

        # Assert
        assert response.status_code == 200
        assert response.json()["logs_paid"] == 1
        assert response.json()["logs_still_pending"] == 0

        # Settlement ran in its own session
        async with session_factory() as session:
            wallet = (await session.execute(select(Wallet).where(Wallet.user_id == 15))).scalar_one()
        assert wallet.balance == Decimal("2.44")
