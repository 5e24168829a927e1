"""ListScalingLogs Use Case

Read-only audit queries over scaling history.
"""

from libs.result import Result, Return, Error
from src.app.repositories.scaling_log_repository import ScalingLogRepository
from src.domain.scaling_log import ScalingLog
from .dtos import ListScalingLogsQueryDTO, ListScalingLogsResponseDTO, ScalingLogDTO


class ListScalingLogs:
    def __init__(self, scaling_log_repo: ScalingLogRepository):
        self.scaling_log_repo = scaling_log_repo

    async def execute(self, query: ListScalingLogsQueryDTO) -> Result[ListScalingLogsResponseDTO]:
        if query.start and query.end and query.start >= query.end:
            return Return.err(
                Error(
                    code="INVALID_PERIOD",
                    message="start must be before end",
                    reason=f"start={query.start.isoformat()}, end={query.end.isoformat()}",
                )
            )

        try:
            logs, total = await self.scaling_log_repo.search(
                account_id=query.account_id,
                payment_status=query.payment_status,
                reason=query.reason,
                start=query.start,
                end=query.end,
                limit=query.limit,
                offset=query.offset,
            )
        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_SCALING_LOGS_FAILED",
                    message="Failed to list scaling logs",
                    reason=str(e),
                )
            )

        return Return.ok(
            ListScalingLogsResponseDTO(
                logs=[self._to_dto(log) for log in logs],
                total=total,
                limit=query.limit,
                offset=query.offset,
            )
        )

    @staticmethod
    def _to_dto(log: ScalingLog) -> ScalingLogDTO:
        return ScalingLogDTO(
            id=log.id,
            hosting_account_id=log.hosting_account_id,
            purchased_hosting_id=log.purchased_hosting_id,
            previous_ram=log.previous_ram,
            previous_cpu=log.previous_cpu,
            new_ram=log.new_ram,
            new_cpu=log.new_cpu,
            scaled_ram=log.scaled_ram,
            scaled_cpu=log.scaled_cpu,
            reason=log.reason,
            cost=log.cost,
            payment_status=log.payment_status,
            payment_reference=log.payment_reference,
            created_at=log.created_at,
        )
