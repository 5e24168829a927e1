"""Autoscaling API Routes

Administrative FastAPI routes for sweeps, recommendations, manual scaling,
autoscaling switches and scaling history.
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.error import ClientError
from src.api.schemas.autoscaling_request import AutoscalingToggleRequestSchema, ManualScaleRequestSchema
from src.adapter.repositories import SqlAlchemyHostingAccountRepository, SqlAlchemyScalingLogRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.scaling import (
    EvaluateScaling,
    ListScalingLogs,
    RunAutoscaling,
    SettlePendingPayments,
    ToggleAutoscaling,
    AutoscalingSettingDTO,
    ListScalingLogsQueryDTO,
    ListScalingLogsResponseDTO,
    RecommendationDTO,
    RunSweepCommandDTO,
    ScaleAccountCommandDTO,
    ScalingOutcomeDTO,
    SettlementResultDTO,
    SweepResultDTO,
    ToggleAutoscalingCommandDTO,
)
from src.depends import (
    build_scale_account,
    charge_scaling_scope,
    get_billing_system,
    get_notification_service,
    get_resource_manager,
    get_scaling_policy,
    get_session,
    get_session_factory,
    scale_account_scope,
)
from src.domain.scaling_log import PaymentStatus, ScalingReason

router = APIRouter(prefix="/autoscaling", tags=["Autoscaling"])

SCALE_ERROR_STATUS = {
    "ACCOUNT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "ACCOUNT_NOT_PROVISIONED": status.HTTP_409_CONFLICT,
    "ACCOUNT_NOT_ELIGIBLE": status.HTTP_409_CONFLICT,
    "NO_SCALING_NEEDED": status.HTTP_409_CONFLICT,
    "USAGE_NOT_AVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
    "PROVISIONING_FAILED": status.HTTP_502_BAD_GATEWAY,
    "PERSIST_FAILED": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@router.post(
    "/sweep",
    response_model=SweepResultDTO,
    status_code=status.HTTP_200_OK,
)
async def run_sweep(
    dry_run: bool = Query(default=False, description="Only report recommendations"),
    session: AsyncSession = Depends(get_session),
    session_factory=Depends(get_session_factory),
    resource_manager=Depends(get_resource_manager),
    billing_system=Depends(get_billing_system),
    notification_service=Depends(get_notification_service),
    policy=Depends(get_scaling_policy),
):
    """
    Run one autoscaling sweep.

    With `dry_run=true` every eligible account is evaluated and priced, but
    nothing is provisioned, billed or persisted.

    **Returns:**
    - 200: Sweep report (per-account details included)
    """
    use_case = RunAutoscaling(
        account_repo=SqlAlchemyHostingAccountRepository(session),
        usage_provider=resource_manager,
        scale_account_factory=scale_account_scope(
            session_factory,
            provisioning_gateway=resource_manager,
            billing_system=billing_system,
            notification_service=notification_service,
        ),
    )
    result = await use_case.execute(RunSweepCommandDTO(policy=policy, dry_run=dry_run))

    if result.is_err():
        raise ClientError(result.error, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return result.value


@router.get(
    "/accounts/{account_id}/recommendation",
    response_model=RecommendationDTO,
    status_code=status.HTTP_200_OK,
)
async def get_recommendation(
    account_id: int,
    session: AsyncSession = Depends(get_session),
    resource_manager=Depends(get_resource_manager),
    policy=Depends(get_scaling_policy),
):
    """
    Evaluate one account against the current policy without scaling it.

    **Returns:**
    - 200: Recommendation with usage percentages and estimated cost
    - 404: Account not found
    - 503: Usage not available from the resource manager
    """
    use_case = EvaluateScaling(SqlAlchemyHostingAccountRepository(session), resource_manager)
    result = await use_case.execute(account_id, policy)

    if result.is_err():
        raise ClientError(result.error, status_code=SCALE_ERROR_STATUS.get(result.error.code, 400))

    return result.value


@router.post(
    "/accounts/{account_id}/scale",
    response_model=ScalingOutcomeDTO,
    status_code=status.HTTP_200_OK,
    responses={
        409: {
            "description": "Plan ceiling reached",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "NO_SCALING_NEEDED",
                            "message": "No further scaling possible"
                        }
                    }
                }
            }
        }
    }
)
async def scale_account(
    account_id: int,
    request: ManualScaleRequestSchema,
    session: AsyncSession = Depends(get_session),
    resource_manager=Depends(get_resource_manager),
    billing_system=Depends(get_billing_system),
    notification_service=Depends(get_notification_service),
    policy=Depends(get_scaling_policy),
):
    """
    Manually scale an account up.

    Deltas are clamped to the plan ceilings. The change is recorded with
    reason `manual` and charged like an automatic one.

    **Example request:**
    ```json
    {"delta_ram": 512, "delta_cpu": 0}
    ```
    """
    use_case = build_scale_account(
        session,
        policy,
        provisioning_gateway=resource_manager,
        billing_system=billing_system,
        notification_service=notification_service,
    )
    command = ScaleAccountCommandDTO(
        account_id=account_id,
        delta_ram=request.delta_ram,
        delta_cpu=request.delta_cpu,
        reason=ScalingReason.MANUAL,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error, status_code=SCALE_ERROR_STATUS.get(result.error.code, 400))

    return result.value


@router.put(
    "/accounts/{account_id}/autoscaling",
    response_model=AutoscalingSettingDTO,
    status_code=status.HTTP_200_OK,
)
async def set_autoscaling(
    account_id: int,
    request: AutoscalingToggleRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Switch autoscaling on or off for an account.

    The account and its purchase are updated together. A disabled account is
    left out of every following sweep but can still be scaled manually.

    **Example request:**
    ```json
    {"enabled": false}
    ```
    """
    use_case = ToggleAutoscaling(
        uow=SqlAlchemyUnitOfWork(session),
        account_repo=SqlAlchemyHostingAccountRepository(session),
    )
    command = ToggleAutoscalingCommandDTO(account_id=account_id, enabled=request.enabled)
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error, status_code=SCALE_ERROR_STATUS.get(result.error.code, 500))

    return result.value


@router.get(
    "/logs",
    response_model=ListScalingLogsResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def list_scaling_logs(
    account_id: Optional[int] = Query(default=None),
    payment_status: Optional[PaymentStatus] = Query(default=None),
    reason: Optional[ScalingReason] = Query(default=None),
    start: Optional[datetime] = Query(default=None, description="Inclusive lower bound on created_at"),
    end: Optional[datetime] = Query(default=None, description="Exclusive upper bound on created_at"),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    """
    Scaling history, newest first. All filters are optional.
    """
    query = ListScalingLogsQueryDTO(
        account_id=account_id,
        payment_status=payment_status,
        reason=reason,
        start=start,
        end=end,
        limit=limit,
        offset=offset,
    )
    result = await ListScalingLogs(SqlAlchemyScalingLogRepository(session)).execute(query)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/settle-pending",
    response_model=SettlementResultDTO,
    status_code=status.HTTP_200_OK,
)
async def settle_pending_payments(
    limit: int = Query(default=100, ge=1, le=1000),
    session: AsyncSession = Depends(get_session),
    session_factory=Depends(get_session_factory),
    billing_system=Depends(get_billing_system),
):
    """
    Retry payment for scaling logs still pending, oldest first.
    """
    use_case = SettlePendingPayments(
        scaling_log_repo=SqlAlchemyScalingLogRepository(session),
        charge_scaling_factory=charge_scaling_scope(session_factory, billing_system),
    )
    result = await use_case.execute(limit=limit)

    if result.is_err():
        raise ClientError(result.error, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return result.value
