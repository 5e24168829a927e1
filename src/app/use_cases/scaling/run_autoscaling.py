"""RunAutoscaling Use Case

One autoscaling sweep over every eligible hosting account.
"""

import asyncio
import logging
import time
from typing import AsyncContextManager, Callable, Optional
from libs.result import Result, Return, Error
from src.app.repositories.hosting_account_repository import HostingAccountRepository, HostingAccountContext
from src.app.services.resource_manager import ResourceUsageProvider
from src.domain.scaling_log import ScalingReason
from src.domain.scaling_policy import ScalingPolicy
from .evaluate_scaling import build_recommendation
from .scale_account import ScaleAccount
from .dtos import (
    RunSweepCommandDTO,
    ScaleAccountCommandDTO,
    SweepAction,
    SweepDetailDTO,
    SweepResultDTO,
)

logger = logging.getLogger(__name__)

ScaleAccountFactory = Callable[[ScalingPolicy], AsyncContextManager[ScaleAccount]]

# ScaleAccount errors that are not sweep failures
SWEEP_ACTION_BY_ERROR = {
    "NO_SCALING_NEEDED": SweepAction.NO_ACTION,
    "ACCOUNT_NOT_ELIGIBLE": SweepAction.SKIPPED,
}


class RunAutoscaling:
    """
    Use Case: Autoscaling sweep

    Business Rules:
    1. Disabled policy -> nothing is checked
    2. Candidates: active, not suspended, autoscaling on for account and
       purchase, plan attached
    3. Usage unavailable -> account skipped, sweep continues
    4. Any failure for one account is recorded in its detail entry only
    5. Dry run evaluates and prices, never provisions, bills or persists
    6. Cancellation is honoured between accounts; a started ScaleAccount
       always runs to completion

    Each ScaleAccount runs in its own unit of work obtained from
    scale_account_factory, so one account's rollback never touches another.
    """

    def __init__(
        self,
        account_repo: HostingAccountRepository,
        usage_provider: ResourceUsageProvider,
        scale_account_factory: ScaleAccountFactory,
        stop_event: Optional[asyncio.Event] = None,
    ):
        self.account_repo = account_repo
        self.usage_provider = usage_provider
        self.scale_account_factory = scale_account_factory
        self.stop_event = stop_event

    async def execute(self, command: RunSweepCommandDTO) -> Result[SweepResultDTO]:
        start_time = time.time()
        policy = command.policy

        if not policy.enabled:
            logger.info("Autoscaling is disabled, skipping sweep")
            return Return.ok(
                SweepResultDTO(
                    enabled=False,
                    dry_run=command.dry_run,
                    accounts_checked=0,
                    accounts_scaled=0,
                )
            )

        try:
            candidates = await self.account_repo.get_autoscaling_candidates()
        except Exception as e:
            return Return.err(
                Error(
                    code="SWEEP_FAILED",
                    message="Failed to load autoscaling candidates",
                    reason=str(e),
                )
            )

        logger.info(
            f"Starting {'dry-run ' if command.dry_run else ''}autoscaling sweep "
            f"over {len(candidates)} accounts"
        )

        details: list[SweepDetailDTO] = []
        accounts_checked = 0
        accounts_scaled = 0
        cancelled = False

        for context in candidates:
            if self.stop_event is not None and self.stop_event.is_set():
                cancelled = True
                logger.info(f"Sweep cancelled after {accounts_checked} of {len(candidates)} accounts")
                break

            account_id = context.account.id
            accounts_checked += 1

            try:
                detail = await self._process(context, policy, command.dry_run)
            except Exception as e:
                logger.error(f"Unexpected error processing account {account_id}: {e}")
                detail = SweepDetailDTO(
                    account_id=account_id,
                    action=SweepAction.FAILED,
                    message=str(e),
                    error_code="UNEXPECTED_ERROR",
                )

            if detail.action == SweepAction.SCALED:
                accounts_scaled += 1
            details.append(detail)

        execution_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Autoscaling sweep complete: checked {accounts_checked}, "
            f"scaled {accounts_scaled} in {execution_time_ms}ms"
        )

        return Return.ok(
            SweepResultDTO(
                enabled=True,
                dry_run=command.dry_run,
                accounts_checked=accounts_checked,
                accounts_scaled=accounts_scaled,
                details=details,
                cancelled=cancelled,
                execution_time_ms=execution_time_ms,
            )
        )

    async def _process(self, context: HostingAccountContext, policy: ScalingPolicy, dry_run: bool) -> SweepDetailDTO:
        account = context.account
        account_id = account.id

        if not account.is_provisioned:
            return SweepDetailDTO(
                account_id=account_id,
                action=SweepAction.SKIPPED,
                message="Account has no resource manager id",
                error_code="ACCOUNT_NOT_PROVISIONED",
            )

        usage = await self.usage_provider.get_usage(account.resource_manager_id)
        if usage.is_err():
            logger.warning(f"Skipping account {account_id}: {usage.error.message}")
            return SweepDetailDTO(
                account_id=account_id,
                action=SweepAction.SKIPPED,
                message=usage.error.message,
                error_code=usage.error.code,
            )

        recommendation = build_recommendation(context, usage.value, policy)
        if not recommendation.needs_scaling:
            return SweepDetailDTO(
                account_id=account_id,
                action=SweepAction.NO_ACTION,
                message="Usage within thresholds or plan limits reached",
                recommendation=recommendation,
            )

        if dry_run:
            return SweepDetailDTO(
                account_id=account_id,
                action=SweepAction.RECOMMENDED,
                message=f"Would scale ram +{recommendation.delta_ram} MB, cpu +{recommendation.delta_cpu}%",
                recommendation=recommendation,
            )

        command = ScaleAccountCommandDTO(
            account_id=account_id,
            delta_ram=recommendation.delta_ram,
            delta_cpu=recommendation.delta_cpu,
            reason=ScalingReason.AUTOSCALING,
        )
        # Shielded so cancelling the sweep cannot interrupt provisioning/persisting
        outcome = await asyncio.shield(self._scale(command, policy))

        if outcome.is_err():
            action = SWEEP_ACTION_BY_ERROR.get(outcome.error.code, SweepAction.FAILED)
            if action == SweepAction.FAILED:
                logger.warning(f"Scaling account {account_id} failed: {outcome.error.message}")
            return SweepDetailDTO(
                account_id=account_id,
                action=action,
                message=outcome.error.message,
                error_code=outcome.error.code,
                recommendation=recommendation,
            )

        return SweepDetailDTO(
            account_id=account_id,
            action=SweepAction.SCALED,
            message=outcome.value.message,
            recommendation=recommendation,
            outcome=outcome.value,
        )

    async def _scale(self, command: ScaleAccountCommandDTO, policy: ScalingPolicy):
        async with self.scale_account_factory(policy) as scale_account:
            return await scale_account.execute(command)
