"""Unit tests for ListScalingLogs use case"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

from src.app.use_cases.scaling.list_scaling_logs import ListScalingLogs
from src.app.use_cases.scaling.dtos import ListScalingLogsQueryDTO
from src.domain.scaling_log import ScalingLog, PaymentStatus, ScalingReason


@pytest.fixture
def scaling_log_repo():
    return AsyncMock()


@pytest.mark.asyncio
class TestListScalingLogs:
    async def test_passes_filters_and_maps_logs(self, scaling_log_repo):
        # Arrange
        log = ScalingLog(
            id=3,
            hosting_account_id=1,
            purchased_hosting_id=1,
            previous_ram=1024,
            previous_cpu=100,
            new_ram=1280,
            new_cpu=100,
            scaled_ram=256,
            scaled_cpu=0,
            reason=ScalingReason.AUTOSCALING,
            cost=Decimal("2.56"),
            payment_status=PaymentStatus.PENDING,
        )
        scaling_log_repo.search.return_value = ([log], 7)
        query = ListScalingLogsQueryDTO(account_id=1, payment_status=PaymentStatus.PENDING, limit=1, offset=2)

        # Act
        result = await ListScalingLogs(scaling_log_repo).execute(query)

        # Assert
        assert result.is_ok()
        assert result.value.total == 7
        assert result.value.limit == 1
        assert result.value.offset == 2
        assert result.value.logs[0].id == 3
        assert result.value.logs[0].cost == Decimal("2.56")
        kwargs = scaling_log_repo.search.call_args.kwargs
        assert kwargs["account_id"] == 1
        assert kwargs["payment_status"] == PaymentStatus.PENDING
        assert kwargs["reason"] is None

    async def test_invalid_period(self, scaling_log_repo):
        now = datetime.utcnow()
        query = ListScalingLogsQueryDTO(start=now, end=now - timedelta(days=1))

        result = await ListScalingLogs(scaling_log_repo).execute(query)

        assert result.error.code == "INVALID_PERIOD"
        scaling_log_repo.search.assert_not_called()

    async def test_repository_failure(self, scaling_log_repo):
        scaling_log_repo.search.side_effect = Exception("boom")

        result = await ListScalingLogs(scaling_log_repo).execute(ListScalingLogsQueryDTO())

        assert result.error.code == "LIST_SCALING_LOGS_FAILED"
