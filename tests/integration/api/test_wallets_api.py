"""Integration tests for Wallet API endpoints"""

import pytest
from decimal import Decimal
from httpx import AsyncClient


class TestWalletsAPIIntegration:
    """Integration test suite for Wallet API endpoints"""

    @pytest.mark.asyncio
    async def test_deposit_and_balance(self, client: AsyncClient):
        """POST /deposits opens the wallet, GET returns the balance"""
        # Act
        deposit = await client.post(
            "/api/wallets/15/deposits",
            json={"amount": "100.00", "source": "top_up", "reference": "p24_1"},
        )
        balance = await client.get("/api/wallets/15")

        # Assert
        assert deposit.status_code == 200
        data = deposit.json()
        assert data["entry_type"] == "deposit"
        assert Decimal(data["amount"]) == Decimal("100.00")
        assert Decimal(data["balance_after"]) == Decimal("100.00")

        assert balance.status_code == 200
        assert balance.json()["user_id"] == 15
        assert Decimal(balance.json()["balance"]) == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_balance_without_wallet(self, client: AsyncClient):
        response = await client.get("/api/wallets/404")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "WALLET_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_deposit_rejects_non_positive_amount(self, client: AsyncClient):
        response = await client.post("/api/wallets/15/deposits", json={"amount": "0"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_deposit_idempotent(self, client: AsyncClient):
        # Arrange
        payload = {"amount": "25.00", "idempotency_key": "top_up:p24_42"}

        # Act
        first = await client.post("/api/wallets/15/deposits", json=payload)
        second = await client.post("/api/wallets/15/deposits", json=payload)
        balance = await client.get("/api/wallets/15")

        # Assert
        assert first.json()["transaction_id"] == second.json()["transaction_id"]
        assert Decimal(balance.json()["balance"]) == Decimal("25.00")

    @pytest.mark.asyncio
    async def test_transactions_newest_first_with_source_filter(self, client: AsyncClient, seed_account):
        """Scaling debits show up in history tagged autoscaling"""
        # Arrange
        account_id = await seed_account()
        await client.post("/api/wallets/15/deposits", json={"amount": "10.00"})
        await client.post(f"/api/autoscaling/accounts/{account_id}/scale", json={"delta_ram": 256})

        # Act
        history = await client.get("/api/wallets/15/transactions")
        scaling_only = await client.get("/api/wallets/15/transactions", params={"source": "autoscaling"})

        # Assert
        assert history.status_code == 200
        entries = history.json()["entries"]
        assert history.json()["total"] == 2
        assert entries[0]["source"] == "autoscaling"
        assert Decimal(entries[0]["amount"]) == Decimal("-2.56")
        assert entries[1]["source"] == "top_up"

        assert scaling_only.json()["total"] == 1
        assert scaling_only.json()["entries"][0]["reference"] == "scaling_log_1"
