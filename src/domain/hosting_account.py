"""Hosting Account Domain Entity

One resource-bearing endpoint per purchased service.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, ForeignKey, String
from src.domain.base import BaseModel, BigIntId


class AccountStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    PENDING = "pending"
    TERMINATED = "terminated"


class HostingAccount(BaseModel, table=True):
    """
    Hosting Account - current resource allocation of a purchased service

    Domain Rules:
    - current_ram <= plan.max_ram and current_cpu <= plan.max_cpu
    - Resource fields are only mutated by the scaling orchestrator
    - An account without resource_manager_id cannot be scaled or queried
    - Never scaled down automatically
    """

    __tablename__ = "hosting_accounts"
    __table_args__ = (
        CheckConstraint('current_ram >= 0', name='current_ram_non_negative'),
        CheckConstraint('current_cpu >= 0', name='current_cpu_non_negative'),
        Index('ix_hosting_accounts_status', 'status', 'is_suspended'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntId, primary_key=True, autoincrement=True),
    )

    user_id: int = Field(index=True, description="Owning user")

    purchased_hosting_id: int = Field(
        sa_column=Column(
            BigIntId,
            ForeignKey("purchased_hostings.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
    )

    username: str = Field(description="System username on the hosting server")

    domain: Optional[str] = Field(default=None)

    status: AccountStatus = Field(default=AccountStatus.PENDING)

    is_suspended: bool = Field(default=False)

    current_ram: int = Field(description="Current RAM allocation (MB)")
    current_cpu: int = Field(description="Current CPU allocation (percentage points)")

    is_autoscaling_enabled: bool = Field(default=True)

    resource_manager_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(128), nullable=True),
        description="Opaque identifier on the external resource manager",
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_provisioned(self) -> bool:
        return bool(self.resource_manager_id)
