"""Scaling Log Domain Entity

Append-only audit record of every scaling attempt that changed resources,
together with the outcome of charging for it.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String
from src.domain.base import BaseModel, BigIntId

DEFAULT_COST_PER_RAM_MB = Decimal("0.01")
DEFAULT_COST_PER_CPU_PERCENT = Decimal("0.02")
CURRENCY_PRECISION = Decimal("0.01")


class ScalingReason(str, Enum):
    AUTOSCALING = "autoscaling"
    MANUAL = "manual"
    SCHEDULED = "scheduled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class InvalidPaymentTransition(ValueError):
    """Raised when a settled scaling log is asked to change settlement"""


class ScalingLog(BaseModel, table=True):
    """
    Scaling Log - immutable record of a resource change

    Domain Rules:
    - new_ram = previous_ram + scaled_ram (same for CPU)
    - previous/new/scaled values never change after creation
    - Only payment_status and payment_reference may be updated
    - payment_status leaves PENDING at most once (to PAID or FAILED)
    """

    __tablename__ = "scaling_logs"
    __table_args__ = (
        CheckConstraint('new_ram = previous_ram + scaled_ram', name='ram_delta_consistent'),
        CheckConstraint('new_cpu = previous_cpu + scaled_cpu', name='cpu_delta_consistent'),
        Index('ix_scaling_logs_account_created', 'hosting_account_id', 'created_at'),
        Index('ix_scaling_logs_payment_status', 'payment_status'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntId, primary_key=True, autoincrement=True),
    )

    hosting_account_id: int = Field(
        sa_column=Column(BigIntId, ForeignKey("hosting_accounts.id", ondelete="CASCADE"), nullable=False),
    )

    purchased_hosting_id: int = Field(
        sa_column=Column(BigIntId, ForeignKey("purchased_hostings.id", ondelete="CASCADE"), nullable=False),
    )

    previous_ram: int
    previous_cpu: int
    new_ram: int
    new_cpu: int
    scaled_ram: int
    scaled_cpu: int

    reason: ScalingReason = Field(default=ScalingReason.AUTOSCALING)

    cost: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(10, 2), nullable=False, default=0),
    )

    payment_reference: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
    )

    payment_status: PaymentStatus = Field(default=PaymentStatus.PENDING)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @staticmethod
    def calculate_cost(
        ram_mb: int,
        cpu_percent: int,
        ram_rate: Decimal = DEFAULT_COST_PER_RAM_MB,
        cpu_rate: Decimal = DEFAULT_COST_PER_CPU_PERCENT,
    ) -> Decimal:
        """Price of a resource increase, rounded to currency precision"""
        cost = Decimal(ram_mb) * Decimal(ram_rate) + Decimal(cpu_percent) * Decimal(cpu_rate)
        return cost.quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)

    @property
    def ram_scaling_percent(self) -> float:
        if self.previous_ram <= 0:
            return 0.0
        return round(self.scaled_ram / self.previous_ram * 100, 2)

    @property
    def cpu_scaling_percent(self) -> float:
        if self.previous_cpu <= 0:
            return 0.0
        return round(self.scaled_cpu / self.previous_cpu * 100, 2)

    def is_payment_successful(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    def mark_paid(self, reference: Optional[str] = None) -> bool:
        """
        Mark the log as paid

        Returns:
            True if the log changed, False if it was already in that state
        """
        if self.payment_status == PaymentStatus.FAILED:
            raise InvalidPaymentTransition(f"Scaling log {self.id} is already marked failed")

        changed = self.payment_status != PaymentStatus.PAID
        self.payment_status = PaymentStatus.PAID
        if reference and reference != self.payment_reference:
            self.payment_reference = reference
            changed = True

        if changed:
            self.updated_at = datetime.utcnow()
        return changed

    def mark_failed(self) -> bool:
        if self.payment_status == PaymentStatus.FAILED:
            return False
        if self.payment_status == PaymentStatus.PAID:
            raise InvalidPaymentTransition(f"Scaling log {self.id} is already paid")

        self.payment_status = PaymentStatus.FAILED
        self.updated_at = datetime.utcnow()
        return True

    def mark_pending(self) -> bool:
        if self.payment_status == PaymentStatus.PENDING:
            return False
        raise InvalidPaymentTransition(
            f"Scaling log {self.id} is settled as {self.payment_status.value}"
        )
