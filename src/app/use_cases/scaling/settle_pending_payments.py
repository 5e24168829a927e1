"""SettlePendingPayments Use Case

Out-of-band retry of payment for scaling logs left pending by a sweep.
Never invoked from inside a sweep.
"""

import logging
import time
from typing import AsyncContextManager, Callable
from libs.result import Result, Return, Error
from src.app.repositories.scaling_log_repository import ScalingLogRepository
from src.domain.scaling_log import PaymentStatus
from .charge_scaling import ChargeScaling
from .dtos import ChargeScalingCommandDTO, SettlementResultDTO

logger = logging.getLogger(__name__)

ChargeScalingFactory = Callable[[], AsyncContextManager[ChargeScaling]]


class SettlePendingPayments:
    """
    Use Case: Settle pending scaling logs

    Business Rules:
    1. Oldest pending logs first, up to limit
    2. Each log is charged in its own unit of work
    3. A failing log is reported and the run continues
    4. Logs that still cannot be paid stay pending (never marked failed here)
    """

    def __init__(self, scaling_log_repo: ScalingLogRepository, charge_scaling_factory: ChargeScalingFactory):
        self.scaling_log_repo = scaling_log_repo
        self.charge_scaling_factory = charge_scaling_factory

    async def execute(self, limit: int = 100) -> Result[SettlementResultDTO]:
        start_time = time.time()

        try:
            pending = await self.scaling_log_repo.get_by_payment_status(PaymentStatus.PENDING, limit=limit)
        except Exception as e:
            return Return.err(
                Error(
                    code="SETTLEMENT_FAILED",
                    message="Failed to load pending scaling logs",
                    reason=str(e),
                )
            )

        log_ids = [log.id for log in pending]
        logger.info(f"Settling {len(log_ids)} pending scaling logs")

        paid = 0
        still_pending = 0
        errors: list[str] = []

        for log_id in log_ids:
            try:
                async with self.charge_scaling_factory() as charge_scaling:
                    result = await charge_scaling.execute(ChargeScalingCommandDTO(log_id=log_id))
            except Exception as e:
                errors.append(f"log {log_id}: {e}")
                logger.error(f"Unexpected error settling scaling log {log_id}: {e}")
                continue

            if result.is_err():
                errors.append(f"log {log_id}: {result.error.code} {result.error.message}")
                continue

            if result.value.payment_status == PaymentStatus.PAID:
                paid += 1
            else:
                still_pending += 1

        execution_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Settlement complete: {paid} paid, {still_pending} still pending, "
            f"{len(errors)} errors in {execution_time_ms}ms"
        )

        return Return.ok(
            SettlementResultDTO(
                logs_checked=len(log_ids),
                logs_paid=paid,
                logs_still_pending=still_pending,
                errors=errors,
                execution_time_ms=execution_time_ms,
            )
        )
