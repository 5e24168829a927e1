"""ScaleAccount Use Case

Applies a resource increase to one hosting account: provisions it on the
resource manager, records it, charges for it, syncs the billing system and
announces it.
"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.account_lock import AccountLock
from src.app.services.resource_manager import ProvisioningGateway
from src.app.services.secondary_billing import SecondaryBillingSystem
from src.app.services.notification_service import NotificationService, ScalingEvent
from src.app.repositories.hosting_account_repository import HostingAccountRepository
from src.app.repositories.scaling_log_repository import ScalingLogRepository
from src.domain.scaling_log import ScalingLog, PaymentStatus, ScalingReason
from src.domain.scaling_policy import ScalingPolicy, ScalingDecisionEngine
from .charge_scaling import ChargeScaling
from .dtos import ScaleAccountCommandDTO, ScalingOutcomeDTO, ChargeScalingCommandDTO

logger = logging.getLogger(__name__)


class ScaleAccount:
    """
    Use Case: Scale a single hosting account

    Business Rules:
    1. At most one ScaleAccount per account at a time (account lock + row lock)
    2. Automatic scaling re-checks eligibility on the locked row; manual
       scaling only needs a provisioned account
    3. Deltas are re-clamped to the plan ceilings; nothing left -> NO_SCALING_NEEDED
    4. Provisioning failure leaves no trace: no account change, no log
    5. Account update and log creation commit together
    6. Provisioned resources stand even when payment fails (log stays pending)
    7. Billing system sync and notification failures are logged only
    8. The notification is sent after the account lock is released

    Error codes:
    - ACCOUNT_NOT_FOUND, ACCOUNT_NOT_PROVISIONED, ACCOUNT_NOT_ELIGIBLE
    - NO_SCALING_NEEDED
    - PROVISIONING_FAILED
    - PERSIST_FAILED (provisioned externally but not recorded, alerted)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        account_repo: HostingAccountRepository,
        scaling_log_repo: ScalingLogRepository,
        provisioning_gateway: ProvisioningGateway,
        charge_scaling: ChargeScaling,
        secondary_billing: SecondaryBillingSystem,
        notification_service: NotificationService,
        account_lock: AccountLock,
        policy: ScalingPolicy,
    ):
        self.uow = uow
        self.account_repo = account_repo
        self.scaling_log_repo = scaling_log_repo
        self.provisioning_gateway = provisioning_gateway
        self.charge_scaling = charge_scaling
        self.secondary_billing = secondary_billing
        self.notification_service = notification_service
        self.account_lock = account_lock
        self.policy = policy

    async def execute(self, command: ScaleAccountCommandDTO) -> Result[ScalingOutcomeDTO]:
        async with self.account_lock.hold(command.account_id):
            result, event = await self._scale(command)

        if event is not None:
            await self._notify(event)
        return result

    async def _scale(
        self, command: ScaleAccountCommandDTO
    ) -> tuple[Result[ScalingOutcomeDTO], Optional[ScalingEvent]]:
        account_id = command.account_id

        # Step 1: Load account, purchase and plan with the account row locked
        try:
            context = await self.account_repo.get_context(account_id, for_update=True)
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="SCALE_ACCOUNT_FAILED",
                    message=f"Failed to load hosting account {account_id}",
                    reason=str(e),
                )
            ), None

        if not context:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="ACCOUNT_NOT_FOUND",
                    message=f"Hosting account {account_id} not found",
                    reason="Account, purchase or plan missing",
                )
            ), None

        account, purchase, plan = context
        if not account.is_provisioned:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="ACCOUNT_NOT_PROVISIONED",
                    message=f"Hosting account {account_id} has no resource manager id",
                )
            ), None

        # Suspended or switched off since the sweep listed it
        if command.reason == ScalingReason.AUTOSCALING and not context.autoscaling_eligible:
            error = Error(
                code="ACCOUNT_NOT_ELIGIBLE",
                message=f"Hosting account {account_id} is no longer eligible for autoscaling",
                reason=(
                    f"status={account.status.value}, suspended={account.is_suspended}, "
                    f"account_autoscaling={account.is_autoscaling_enabled}, "
                    f"purchase_autoscaling={purchase.is_autoscaling_enabled}"
                ),
            )
            await self.uow.rollback()
            return Return.err(error), None

        # Step 2: Re-clamp against current ceilings
        delta_ram, delta_cpu = ScalingDecisionEngine.clamp(account, plan, command.delta_ram, command.delta_cpu)
        if delta_ram <= 0 and delta_cpu <= 0:
            error = Error(
                code="NO_SCALING_NEEDED",
                message="No further scaling possible",
                reason=(
                    f"ram={account.current_ram}/{plan.max_ram}, "
                    f"cpu={account.current_cpu}/{plan.max_cpu}"
                ),
            )
            await self.uow.rollback()
            return Return.err(error), None

        user_id = account.user_id
        external_id = account.resource_manager_id
        purchase_id = purchase.id
        billing_service_id = purchase.billing_service_id
        previous_ram = account.current_ram
        previous_cpu = account.current_cpu
        new_ram = previous_ram + delta_ram
        new_cpu = previous_cpu + delta_cpu

        # Step 3: Price the change
        cost = ScalingLog.calculate_cost(
            delta_ram, delta_cpu, self.policy.cost_per_ram_mb, self.policy.cost_per_cpu_percent
        )

        # Step 4: Provision externally
        try:
            provisioned = await self.provisioning_gateway.set_limits(external_id, new_ram, new_cpu)
        except Exception as e:
            provisioned = Return.err(
                Error(code="PROVISIONING_FAILED", message="Provisioning call raised", reason=str(e))
            )

        if provisioned.is_err():
            await self.uow.rollback()
            logger.warning(
                f"Provisioning failed for account {account_id} "
                f"(ram {previous_ram}->{new_ram}, cpu {previous_cpu}->{new_cpu}): "
                f"{provisioned.error.message}"
            )
            return Return.err(
                Error(
                    code="PROVISIONING_FAILED",
                    message=f"Resource manager rejected new limits for account {account_id}",
                    reason=provisioned.error.reason or provisioned.error.message,
                )
            ), None

        # Step 5: Persist account change and audit log atomically
        try:
            await self.account_repo.update_resources(account_id, new_ram, new_cpu)
            log = await self.scaling_log_repo.create(
                ScalingLog(
                    hosting_account_id=account_id,
                    purchased_hosting_id=purchase_id,
                    previous_ram=previous_ram,
                    previous_cpu=previous_cpu,
                    new_ram=new_ram,
                    new_cpu=new_cpu,
                    scaled_ram=delta_ram,
                    scaled_cpu=delta_cpu,
                    reason=command.reason,
                    cost=cost,
                    payment_status=PaymentStatus.PENDING,
                )
            )
            log_id = log.id
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.critical(
                f"Account {account_id} provisioned on resource manager "
                f"(ram={new_ram}, cpu={new_cpu}) but local records were not saved: {e}"
            )
            await self._alert_inconsistency(account_id, external_id, new_ram, new_cpu, str(e))
            return Return.err(
                Error(
                    code="PERSIST_FAILED",
                    message=f"Account {account_id} provisioned but not recorded",
                    reason=str(e),
                )
            ), None

        logger.info(
            f"Scaled account {account_id}: ram {previous_ram}->{new_ram} MB, "
            f"cpu {previous_cpu}->{new_cpu}%, cost {cost} (log {log_id})"
        )

        # Step 6: Pay (wallet first, then billing system)
        payment_status = PaymentStatus.PENDING
        payment_reference = None
        charge = await self.charge_scaling.execute(ChargeScalingCommandDTO(log_id=log_id))
        if charge.is_ok():
            payment_status = charge.value.payment_status
            payment_reference = charge.value.payment_reference
        else:
            logger.error(f"Payment for scaling log {log_id} failed: {charge.error.message}")

        # Step 7: Best-effort sync of the billing system's service record
        if billing_service_id:
            await self._sync_billing_system(billing_service_id, new_ram, new_cpu)

        if payment_status == PaymentStatus.PAID:
            message = "Scaled and paid"
        else:
            message = "Scaled, payment pending"

        outcome = ScalingOutcomeDTO(
            success=True,
            account_id=account_id,
            log_id=log_id,
            previous_ram=previous_ram,
            previous_cpu=previous_cpu,
            new_ram=new_ram,
            new_cpu=new_cpu,
            scaled_ram=delta_ram,
            scaled_cpu=delta_cpu,
            cost=cost,
            payment_status=payment_status,
            payment_reference=payment_reference,
            message=message,
        )

        # Step 8: Announced by execute() once the lock is released
        event = ScalingEvent(
            account_id=account_id,
            user_id=user_id,
            log_id=log_id,
            previous_ram=previous_ram,
            new_ram=new_ram,
            previous_cpu=previous_cpu,
            new_cpu=new_cpu,
            cost=cost,
            payment_status=payment_status,
            reason=command.reason,
        )
        return Return.ok(outcome), event

    async def _sync_billing_system(self, service_id: str, ram: int, cpu: int) -> None:
        try:
            synced = await self.secondary_billing.sync_resources(service_id, ram, cpu)
        except Exception as e:
            logger.warning(f"Billing system sync for service {service_id} raised: {e}")
            return
        if synced.is_err():
            logger.warning(f"Billing system sync for service {service_id} failed: {synced.error.message}")

    async def _notify(self, event: ScalingEvent) -> None:
        try:
            await self.notification_service.send_scaling_notification(event)
        except Exception as e:
            logger.error(f"Scaling notification for account {event.account_id} failed: {e}")

    async def _alert_inconsistency(self, account_id: int, external_id: str, ram: int, cpu: int, reason: str) -> None:
        try:
            await self.notification_service.send_inconsistency_alert(
                account_id,
                "Resource manager limits applied but local records were not saved",
                {
                    "resource_manager_id": external_id,
                    "provisioned_ram": ram,
                    "provisioned_cpu": cpu,
                    "reason": reason,
                },
            )
        except Exception as e:
            logger.error(f"Inconsistency alert for account {account_id} failed: {e}")
