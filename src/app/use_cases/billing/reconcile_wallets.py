"""ReconcileWallets Use Case

Checks every wallet balance against the sum of its WalletLog amounts.
"""

import logging
import time
from datetime import datetime
from decimal import Decimal
from libs.result import Result, Return, Error
from src.app.repositories.wallet_repository import WalletRepository
from src.app.repositories.wallet_log_repository import WalletLogRepository
from .dtos import WalletDiscrepancyDTO, WalletReconciliationResultDTO

logger = logging.getLogger(__name__)


class ReconcileWallets:
    """
    Use Case: Reconcile wallet balances against their logs

    Business Rules:
    1. Expected balance = sum of signed WalletLog amounts
    2. Any wallet whose balance differs is reported
    3. Read-only: nothing is corrected automatically
    """

    def __init__(self, wallet_repo: WalletRepository, wallet_log_repo: WalletLogRepository):
        self.wallet_repo = wallet_repo
        self.wallet_log_repo = wallet_log_repo

    async def execute(self) -> Result[WalletReconciliationResultDTO]:
        start_time = time.time()
        reconciliation_time = datetime.utcnow()

        try:
            wallets = await self.wallet_repo.get_all()
            logger.info(f"Reconciling {len(wallets)} wallets")

            discrepancies: list[WalletDiscrepancyDTO] = []

            for wallet in wallets:
                log_sum = Decimal(await self.wallet_log_repo.get_sum_by_wallet(wallet.id))
                balance = Decimal(wallet.balance)

                if balance != log_sum:
                    discrepancy = WalletDiscrepancyDTO(
                        user_id=wallet.user_id,
                        wallet_id=wallet.id,
                        wallet_balance=balance,
                        calculated_balance=log_sum,
                        discrepancy=balance - log_sum,
                    )
                    discrepancies.append(discrepancy)

                    logger.warning(
                        f"Discrepancy found for user {wallet.user_id} "
                        f"(wallet_id={wallet.id}): balance={balance}, "
                        f"log_sum={log_sum}, discrepancy={discrepancy.discrepancy}"
                    )

            execution_time_ms = int((time.time() - start_time) * 1000)

            if discrepancies:
                logger.warning(
                    f"Reconciliation complete. Found {len(discrepancies)} discrepancies "
                    f"out of {len(wallets)} wallets in {execution_time_ms}ms"
                )
            else:
                logger.info(
                    f"Reconciliation complete. All {len(wallets)} wallets balanced "
                    f"in {execution_time_ms}ms"
                )

            return Return.ok(
                WalletReconciliationResultDTO(
                    total_wallets_checked=len(wallets),
                    discrepancies_found=len(discrepancies),
                    discrepancies=discrepancies,
                    reconciliation_time=reconciliation_time,
                    execution_time_ms=execution_time_ms,
                )
            )

        except Exception as e:
            logger.error(f"Wallet reconciliation failed: {e}")
            return Return.err(
                Error(
                    code="RECONCILIATION_FAILED",
                    message="Failed to reconcile wallets",
                    reason=str(e),
                )
            )
