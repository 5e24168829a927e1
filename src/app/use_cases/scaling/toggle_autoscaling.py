"""ToggleAutoscaling Use Case

Switches autoscaling on or off for one hosting account.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.hosting_account_repository import HostingAccountRepository
from .dtos import ToggleAutoscalingCommandDTO, AutoscalingSettingDTO

logger = logging.getLogger(__name__)


class ToggleAutoscaling:
    """
    Use Case: Enable or disable autoscaling for an account

    Business Rules:
    1. The account flag and its purchase flag are written together in one
       transaction, so the sweep's eligibility check sees both or neither
    2. Toggling to the current value is accepted and changes nothing visible

    Error codes:
    - ACCOUNT_NOT_FOUND
    - TOGGLE_AUTOSCALING_FAILED
    """

    def __init__(self, uow: UnitOfWork, account_repo: HostingAccountRepository):
        self.uow = uow
        self.account_repo = account_repo

    async def execute(self, command: ToggleAutoscalingCommandDTO) -> Result[AutoscalingSettingDTO]:
        account_id = command.account_id

        try:
            context = await self.account_repo.set_autoscaling_enabled(account_id, command.enabled)
            if context is None:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="ACCOUNT_NOT_FOUND",
                        message=f"Hosting account {account_id} not found",
                    )
                )

            response = AutoscalingSettingDTO(
                account_id=account_id,
                purchased_hosting_id=context.purchase.id,
                enabled=command.enabled,
                message=f"Autoscaling {'enabled' if command.enabled else 'disabled'}",
            )
            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="TOGGLE_AUTOSCALING_FAILED",
                    message=f"Failed to update autoscaling for account {account_id}",
                    reason=str(e),
                )
            )

        logger.info(f"Autoscaling {'enabled' if command.enabled else 'disabled'} for account {account_id}")
        return Return.ok(response)
