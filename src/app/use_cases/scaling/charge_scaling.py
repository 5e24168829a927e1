"""ChargeScaling Use Case

Settles the cost of a scaling log: the user's wallet first, then the
secondary billing system. If both paths fail the log stays pending for
out-of-band settlement. Provisioned resources are never rolled back here.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.secondary_billing import SecondaryBillingSystem
from src.app.services.wallet_ledger import (
    WalletLedger,
    LedgerError,
    InsufficientFundsError,
    WalletNotFoundError,
)
from src.app.repositories.hosting_account_repository import HostingAccountRepository
from src.app.repositories.scaling_log_repository import ScalingLogRepository
from src.domain.scaling_log import ScalingLog, PaymentStatus
from .dtos import ChargeScalingCommandDTO, ChargeResultDTO

logger = logging.getLogger(__name__)

WALLET_SOURCE = "autoscaling"


class ChargeScaling:
    """
    Use Case: Pay for a scaling log

    Business Rules:
    1. Only pending logs are charged; settled logs are returned as they are
    2. Wallet debit and mark_paid commit together
    3. The wallet debit is idempotent on key scaling_log:<id>
    4. Secondary billing is attempted only when the purchase has a billing
       client id
    5. Payment failure is not an error: the log stays pending

    Flow:
    1. Load log with lock
    2. Try wallet debit (reference wallet_transaction_<entry id>)
    3. On insufficient/absent wallet, try secondary billing
       (reference billing_invoice_<invoice id>)
    4. Commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        scaling_log_repo: ScalingLogRepository,
        account_repo: HostingAccountRepository,
        wallet_ledger: WalletLedger,
        secondary_billing: SecondaryBillingSystem,
    ):
        self.uow = uow
        self.scaling_log_repo = scaling_log_repo
        self.account_repo = account_repo
        self.wallet_ledger = wallet_ledger
        self.secondary_billing = secondary_billing

    async def execute(self, command: ChargeScalingCommandDTO) -> Result[ChargeResultDTO]:
        log_id = command.log_id

        try:
            log = await self.scaling_log_repo.get_by_id(log_id, for_update=True)
            if not log:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="SCALING_LOG_NOT_FOUND",
                        message=f"Scaling log {log_id} not found",
                    )
                )

            if log.payment_status != PaymentStatus.PENDING:
                settled = self._to_result(log, method=None)
                await self.uow.rollback()
                return Return.ok(settled)

            context = await self.account_repo.get_context(log.hosting_account_id)
            if not context:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="ACCOUNT_NOT_FOUND",
                        message=f"Hosting account {log.hosting_account_id} not found",
                        reason=f"scaling_log_id={log_id}",
                    )
                )

            user_id = context.account.user_id
            client_id = context.purchase.billing_client_id
            cost = log.cost
            description = self._describe(log)

            if cost <= 0:
                log.mark_paid()
                await self.scaling_log_repo.save(log)
                await self.uow.commit()
                return Return.ok(self._to_result(log, method=None))

            paid = await self._pay_from_wallet(log, user_id, description)
            if paid:
                return Return.ok(paid)

            return Return.ok(await self._pay_from_billing_system(log_id, client_id, cost, description))

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Charging scaling log {log_id} failed: {e}")
            return Return.err(
                Error(
                    code="CHARGE_SCALING_FAILED",
                    message=f"Failed to charge scaling log {log_id}",
                    reason=str(e),
                )
            )

    async def _pay_from_wallet(self, log: ScalingLog, user_id: int, description: str):
        log_id = log.id
        try:
            entry = await self.wallet_ledger.debit(
                user_id,
                log.cost,
                source=WALLET_SOURCE,
                reference=f"scaling_log_{log_id}",
                description=description,
                idempotency_key=f"scaling_log:{log_id}",
            )
            log.mark_paid(f"wallet_transaction_{entry.id}")
            await self.scaling_log_repo.save(log)
            await self.uow.commit()
        except (InsufficientFundsError, WalletNotFoundError) as e:
            await self.uow.rollback()
            logger.info(f"Wallet cannot cover scaling log {log_id}: {e}")
            return None
        except LedgerError as e:
            await self.uow.rollback()
            logger.warning(f"Wallet debit for scaling log {log_id} failed: {e}")
            return None

        logger.info(f"Scaling log {log_id} paid from wallet of user {user_id}")
        return self._to_result(log, method="wallet")

    async def _pay_from_billing_system(self, log_id: int, client_id, cost, description: str) -> ChargeResultDTO:
        # Rollback in the wallet path expired the entity
        log = await self.scaling_log_repo.get_by_id(log_id, for_update=True)
        pending = self._to_result(log, method=None)

        if not client_id:
            await self.uow.rollback()
            logger.warning(f"Scaling log {log_id} left pending: no billing client for fallback charge")
            return pending

        charge = await self.secondary_billing.add_charge(client_id, cost, description)
        if charge.is_err():
            await self.uow.rollback()
            logger.warning(
                f"Scaling log {log_id} left pending: billing system charge failed "
                f"({charge.error.code}: {charge.error.message})"
            )
            return pending

        log.mark_paid(f"billing_invoice_{charge.value}")
        await self.scaling_log_repo.save(log)
        await self.uow.commit()

        logger.info(f"Scaling log {log_id} charged to billing client {client_id}, invoice {charge.value}")
        return self._to_result(log, method="billing_system")

    @staticmethod
    def _describe(log: ScalingLog) -> str:
        return (
            f"Autoscaling: +{log.scaled_ram} MB RAM, +{log.scaled_cpu}% CPU "
            f"(RAM {log.previous_ram}->{log.new_ram} MB, CPU {log.previous_cpu}->{log.new_cpu}%)"
        )

    @staticmethod
    def _to_result(log: ScalingLog, method) -> ChargeResultDTO:
        return ChargeResultDTO(
            log_id=log.id,
            payment_status=log.payment_status,
            payment_reference=log.payment_reference,
            method=method,
        )
