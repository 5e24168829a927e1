"""Hosting Plan Domain Entity

Template for the allocation granted at purchase and the hard ceiling
autoscaling may grow an account to.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import CheckConstraint, Numeric
from src.domain.base import BaseModel, BigIntId


class HostingPlan(BaseModel, table=True):
    """
    Hosting Plan - base allocation and autoscaling ceilings

    Domain Rules:
    - max_ram >= ram and max_cpu >= cpu
    - RAM is in MB, CPU is in percentage points (100 = one core)
    - Not mutated by autoscaling
    """

    __tablename__ = "hosting_plans"
    __table_args__ = (
        CheckConstraint('max_ram >= ram', name='max_ram_not_below_base'),
        CheckConstraint('max_cpu >= cpu', name='max_cpu_not_below_base'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntId, primary_key=True, autoincrement=True),
    )

    name: str = Field(description="Plan display name")

    ram: int = Field(description="Base RAM granted at purchase (MB)")
    cpu: int = Field(description="Base CPU granted at purchase (percentage points)")

    max_ram: int = Field(description="Autoscaling RAM ceiling (MB)")
    max_cpu: int = Field(description="Autoscaling CPU ceiling (percentage points)")

    price_monthly: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(10, 2), nullable=False, default=0),
    )

    price_yearly: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(10, 2), nullable=False, default=0),
    )

    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
