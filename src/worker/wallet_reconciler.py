"""Wallet Reconciliation Background Worker

Periodically checks that every wallet balance equals the sum of its
WalletLog entries.
Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories import SqlAlchemyWalletRepository, SqlAlchemyWalletLogRepository
from src.app.use_cases.billing import ReconcileWallets, WalletReconciliationResultDTO

logger = logging.getLogger(__name__)


class WalletReconcilerWorker:
    """
    Background worker for wallet reconciliation

    Features:
    - Compares wallet balances against WalletLog sums
    - Logs discrepancies for investigation (nothing is corrected)
    - Can run once or continuously

    Usage:
        worker = WalletReconcilerWorker()
        result = await worker.run_once()
    """

    def __init__(self, db_uri: Optional[str] = None, enabled: Optional[bool] = None):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            enabled: Overrides ApplicationConfig.RECONCILIATION_ENABLED
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.enabled = ApplicationConfig.RECONCILIATION_ENABLED if enabled is None else enabled

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("WalletReconcilerWorker initialized")

    async def run_once(self) -> WalletReconciliationResultDTO:
        if not self.enabled:
            logger.info("Wallet reconciliation is disabled, skipping")
            return WalletReconciliationResultDTO(
                total_wallets_checked=0,
                discrepancies_found=0,
                discrepancies=[],
                reconciliation_time=datetime.utcnow(),
                execution_time_ms=0,
            )

        async with self.async_session_factory() as session:
            use_case = ReconcileWallets(
                wallet_repo=SqlAlchemyWalletRepository(session),
                wallet_log_repo=SqlAlchemyWalletLogRepository(session),
            )
            result = await use_case.execute()

        if result.is_err():
            logger.error(f"Reconciliation failed: {result.error.message}")
            raise RuntimeError(f"Reconciliation failed: {result.error.message}")

        response = result.value

        if response.discrepancies_found > 0:
            logger.error(f"ALERT: {response.discrepancies_found} wallet discrepancies found!")
            for d in response.discrepancies:
                logger.error(
                    f"  - User {d.user_id} (wallet_id={d.wallet_id}): "
                    f"expected={d.calculated_balance}, actual={d.wallet_balance}, "
                    f"diff={d.discrepancy}"
                )

        return response

    async def run_forever(self, interval_seconds: int = 86400):
        logger.info(f"Starting continuous wallet reconciliation with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Reconciliation cycle complete. "
                    f"Checked {result.total_wallets_checked} wallets, "
                    f"found {result.discrepancies_found} discrepancies "
                    f"in {result.execution_time_ms}ms"
                )
            except Exception as e:
                logger.error(f"Reconciliation cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("WalletReconcilerWorker shutdown complete")


async def main():
    """
    Usage:
        python -m src.worker.wallet_reconciler --once
        python -m src.worker.wallet_reconciler --interval 3600
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Wallet Reconciliation Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.RECONCILIATION_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 86400 = 24 hours)"
    )
    args = parser.parse_args()

    worker = WalletReconcilerWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print("Reconciliation complete:")
            print(f"  Total wallets checked: {result.total_wallets_checked}")
            print(f"  Discrepancies found: {result.discrepancies_found}")
            print(f"  Execution time: {result.execution_time_ms}ms")
            for d in result.discrepancies:
                print(
                    f"  - User {d.user_id}: expected={d.calculated_balance}, "
                    f"actual={d.wallet_balance}, diff={d.discrepancy}"
                )
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
