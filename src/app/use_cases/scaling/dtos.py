"""Data Transfer Objects for Scaling Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field
from src.domain.scaling_log import PaymentStatus, ScalingReason
from src.domain.scaling_policy import ScalingPolicy


class ScaleAccountCommandDTO(BaseModel):
    """
    Command DTO for scaling one account

    Used as input to ScaleAccount use case. Deltas are re-clamped against the
    plan ceilings under lock, so a stale recommendation is safe to pass.
    """

    account_id: int = Field(..., description="Hosting account ID")

    delta_ram: int = Field(default=0, ge=0, description="Requested RAM increase (MB)")

    delta_cpu: int = Field(default=0, ge=0, description="Requested CPU increase (percentage points)")

    reason: ScalingReason = Field(
        default=ScalingReason.AUTOSCALING,
        description="Why the account is being scaled",
    )


class ScalingOutcomeDTO(BaseModel):
    """
    Response DTO for a completed scaling operation

    success is True once resources were provisioned and recorded, whatever
    the payment outcome. payment_status pending means both payment paths
    failed and the log awaits settlement.
    """

    success: bool = True
    account_id: int
    log_id: int
    previous_ram: int
    previous_cpu: int
    new_ram: int
    new_cpu: int
    scaled_ram: int
    scaled_cpu: int
    cost: Decimal
    payment_status: PaymentStatus
    payment_reference: Optional[str] = None
    message: str

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "account_id": 7,
                "log_id": 42,
                "previous_ram": 1024,
                "previous_cpu": 100,
                "new_ram": 1280,
                "new_cpu": 100,
                "scaled_ram": 256,
                "scaled_cpu": 0,
                "cost": "2.56",
                "payment_status": "paid",
                "payment_reference": "wallet_transaction_19",
                "message": "Scaled and paid",
            }
        }


class ChargeScalingCommandDTO(BaseModel):
    log_id: int = Field(..., description="Scaling log to settle")


class ChargeResultDTO(BaseModel):
    """Response DTO for ChargeScaling"""

    log_id: int
    payment_status: PaymentStatus
    payment_reference: Optional[str] = None
    method: Optional[str] = Field(
        default=None,
        description="'wallet' or 'billing_system' when paid, None while pending",
    )


class RecommendationDTO(BaseModel):
    """
    Scaling recommendation for one account

    Reported by EvaluateScaling and by dry-run sweeps.
    """

    account_id: int
    current_ram: int
    current_cpu: int
    max_ram: int
    max_cpu: int
    ram_usage_mb: int = Field(..., description="Raw RAM usage (MB)")
    cpu_usage: int = Field(..., description="Raw CPU usage (percentage points)")
    ram_usage_percent: float = Field(..., description="RAM usage relative to allocation")
    cpu_usage_percent: float = Field(..., description="CPU usage relative to allocation")
    needs_scaling: bool
    delta_ram: int = 0
    delta_cpu: int = 0
    estimated_cost: Decimal = Decimal("0.00")


class SweepAction(str, Enum):
    SCALED = "scaled"
    RECOMMENDED = "recommended"
    NO_ACTION = "no_action"
    SKIPPED = "skipped"
    FAILED = "failed"


class SweepDetailDTO(BaseModel):
    """Per-account entry of a sweep report"""

    account_id: int
    action: SweepAction
    message: str
    error_code: Optional[str] = None
    recommendation: Optional[RecommendationDTO] = None
    outcome: Optional[ScalingOutcomeDTO] = None


class RunSweepCommandDTO(BaseModel):
    """
    Command DTO for an autoscaling sweep

    The policy is a snapshot taken before the sweep starts and is used
    unchanged for every account in it.
    """

    policy: ScalingPolicy
    dry_run: bool = Field(default=False, description="Evaluate only, apply nothing")


class SweepResultDTO(BaseModel):
    """
    Response DTO for RunAutoscaling

    accounts_scaled counts only accounts whose ScaleAccount succeeded.
    """

    enabled: bool
    dry_run: bool
    accounts_checked: int
    accounts_scaled: int
    details: list[SweepDetailDTO] = Field(default_factory=list)
    cancelled: bool = False
    execution_time_ms: int = 0
    started_at: datetime = Field(default_factory=datetime.utcnow)


class ScalingLogDTO(BaseModel):
    id: int
    hosting_account_id: int
    purchased_hosting_id: int
    previous_ram: int
    previous_cpu: int
    new_ram: int
    new_cpu: int
    scaled_ram: int
    scaled_cpu: int
    reason: ScalingReason
    cost: Decimal
    payment_status: PaymentStatus
    payment_reference: Optional[str] = None
    created_at: datetime


class ListScalingLogsQueryDTO(BaseModel):
    """Filters for scaling history; all optional, combined with AND"""

    account_id: Optional[int] = None
    payment_status: Optional[PaymentStatus] = None
    reason: Optional[ScalingReason] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class ListScalingLogsResponseDTO(BaseModel):
    logs: list[ScalingLogDTO]
    total: int
    limit: int
    offset: int


class SettlementResultDTO(BaseModel):
    """Response DTO for SettlePendingPayments"""

    logs_checked: int
    logs_paid: int
    logs_still_pending: int
    errors: list[str] = Field(default_factory=list)
    execution_time_ms: int = 0


class ToggleAutoscalingCommandDTO(BaseModel):
    account_id: int = Field(..., description="Hosting account ID")
    enabled: bool = Field(..., description="Switch autoscaling on or off")


class AutoscalingSettingDTO(BaseModel):
    """
    Autoscaling switch after a toggle

    Account and purchase flags always move together.
    """

    account_id: int
    purchased_hosting_id: int
    enabled: bool
    message: str
