"""Autoscaling Background Worker

Runs autoscaling sweeps over all eligible hosting accounts. Each sweep takes
a fresh policy snapshot from env.yaml, so configuration changes apply from
the next sweep on.
Can be run as a standalone script (one sweep per invocation) or continuously.
"""

import asyncio
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig, load_config_data
from src.adapter.repositories import SqlAlchemyHostingAccountRepository, SqlAlchemyScalingLogRepository
from src.app.services.notification_service import NotificationService
from src.app.services.resource_manager import ProvisioningGateway, ResourceUsageProvider
from src.app.services.secondary_billing import SecondaryBillingSystem
from src.app.use_cases.scaling import (
    RunAutoscaling,
    RunSweepCommandDTO,
    SettlePendingPayments,
    SettlementResultDTO,
    SweepAction,
    SweepResultDTO,
)
from src.depends import (
    charge_scaling_scope,
    get_billing_system,
    get_notification_service,
    get_resource_manager,
    scale_account_scope,
)
from src.domain.scaling_policy import ScalingPolicy

logger = logging.getLogger(__name__)


class AutoscalingWorker:
    """
    Background worker for autoscaling sweeps

    Features:
    - One sweep per run_once() call, accounts isolated from each other
    - Policy re-read from configuration before every sweep
    - Dry-run mode reports recommendations only
    - Optional settlement of pending payments after a sweep
    - shutdown() stops between accounts, never inside one

    Usage:
        # Run once
        worker = AutoscalingWorker()
        result = await worker.run_once()

        # Run continuously
        worker = AutoscalingWorker()
        await worker.run_forever(interval_seconds=300)
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        resource_manager: Optional[ResourceUsageProvider] = None,
        provisioning_gateway: Optional[ProvisioningGateway] = None,
        billing_system: Optional[SecondaryBillingSystem] = None,
        notification_service: Optional[NotificationService] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            resource_manager: Usage provider (defaults to the configured HTTP client)
            provisioning_gateway: Defaults to resource_manager when it provisions too
            billing_system: Secondary billing client
            notification_service: Scaling notifications/alerts
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI

        # Create engine and session factory
        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        self.resource_manager = resource_manager or get_resource_manager()
        if provisioning_gateway is None and isinstance(self.resource_manager, ProvisioningGateway):
            provisioning_gateway = self.resource_manager
        self.provisioning_gateway = provisioning_gateway or get_resource_manager()
        self.billing_system = billing_system or get_billing_system()
        self.notification_service = notification_service or get_notification_service()
        self.stop_event = asyncio.Event()

        logger.info("AutoscalingWorker initialized")

    def load_policy(self) -> ScalingPolicy:
        """Snapshot the scaling policy from the current configuration file"""
        return ScalingPolicy.from_mapping(load_config_data())

    async def run_once(self, dry_run: bool = False, policy: Optional[ScalingPolicy] = None) -> SweepResultDTO:
        """
        Run a single sweep

        Args:
            dry_run: Evaluate only
            policy: Policy snapshot (defaults to a fresh one from configuration)

        Returns:
            SweepResultDTO with per-account details
        """
        policy = policy or self.load_policy()

        async with self.async_session_factory() as session:
            use_case = RunAutoscaling(
                account_repo=SqlAlchemyHostingAccountRepository(session),
                usage_provider=self.resource_manager,
                scale_account_factory=scale_account_scope(
                    self.async_session_factory,
                    provisioning_gateway=self.provisioning_gateway,
                    billing_system=self.billing_system,
                    notification_service=self.notification_service,
                ),
                stop_event=self.stop_event,
            )

            result = await use_case.execute(RunSweepCommandDTO(policy=policy, dry_run=dry_run))

        if result.is_err():
            logger.error(f"Autoscaling sweep failed: {result.error.message}")
            raise RuntimeError(f"Autoscaling sweep failed: {result.error.message}")

        response = result.value

        failed = [d for d in response.details if d.action == SweepAction.FAILED]
        for detail in failed:
            logger.warning(f"  - Account {detail.account_id}: {detail.error_code} {detail.message}")

        return response

    async def settle_pending(self, limit: Optional[int] = None) -> SettlementResultDTO:
        """Retry payment of pending scaling logs, one transaction per log"""
        async with self.async_session_factory() as session:
            use_case = SettlePendingPayments(
                scaling_log_repo=SqlAlchemyScalingLogRepository(session),
                charge_scaling_factory=charge_scaling_scope(self.async_session_factory, self.billing_system),
            )
            result = await use_case.execute(limit=limit or ApplicationConfig.AUTOSCALING_SETTLE_BATCH_SIZE)

        if result.is_err():
            logger.error(f"Settlement failed: {result.error.message}")
            raise RuntimeError(f"Settlement failed: {result.error.message}")

        return result.value

    async def run_forever(self, interval_seconds: int = 300, settle_pending: bool = False):
        """
        Run sweeps continuously at the specified interval

        Args:
            interval_seconds: Seconds between sweeps (default: 5 minutes)
            settle_pending: Settle pending payments after every sweep
        """
        logger.info(f"Starting continuous autoscaling with {interval_seconds}s interval")

        while not self.stop_event.is_set():
            try:
                result = await self.run_once()
                logger.info(
                    f"Sweep complete. Checked {result.accounts_checked} accounts, "
                    f"scaled {result.accounts_scaled} in {result.execution_time_ms}ms"
                )
                if settle_pending:
                    await self.settle_pending()
            except Exception as e:
                logger.error(f"Autoscaling cycle failed: {e}")

            try:
                await asyncio.wait_for(self.stop_event.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                pass

    def request_stop(self):
        """Stop after the account currently being processed"""
        self.stop_event.set()

    async def shutdown(self):
        """Cleanup resources"""
        self.request_stop()
        await self.engine.dispose()
        logger.info("AutoscalingWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # One sweep (typical cron/scheduler usage)
        python -m src.worker.autoscaler --once

        # Preview without applying anything
        python -m src.worker.autoscaler --once --dry-run

        # Run continuously with custom interval (in seconds)
        python -m src.worker.autoscaler --interval 600 --settle-pending
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Autoscaling Worker")
    parser.add_argument(
        "--once", action="store_true", help="Run one sweep and exit"
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Report recommendations without applying them"
    )
    parser.add_argument(
        "--settle-pending", action="store_true",
        help="Retry payment of pending scaling logs after the sweep"
    )
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.AUTOSCALING_INTERVAL_SECONDS,
        help="Interval between sweeps in seconds (default: AUTOSCALING_INTERVAL_SECONDS)"
    )
    args = parser.parse_args()

    worker = AutoscalingWorker()

    try:
        if args.once:
            result = await worker.run_once(dry_run=args.dry_run)
            print(f"Autoscaling {'dry run ' if result.dry_run else ''}complete:")
            print(f"  Enabled: {result.enabled}")
            print(f"  Accounts checked: {result.accounts_checked}")
            print(f"  Accounts scaled: {result.accounts_scaled}")
            print(f"  Execution time: {result.execution_time_ms}ms")
            for d in result.details:
                print(f"  - Account {d.account_id}: {d.action.value} ({d.message})")

            if args.settle_pending and not args.dry_run:
                settlement = await worker.settle_pending()
                print(
                    f"Settlement: {settlement.logs_paid} paid, "
                    f"{settlement.logs_still_pending} still pending of {settlement.logs_checked}"
                )
        else:
            settle = args.settle_pending or ApplicationConfig.AUTOSCALING_SETTLE_PENDING
            await worker.run_forever(interval_seconds=args.interval, settle_pending=settle)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
