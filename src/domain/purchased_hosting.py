"""Purchased Hosting Domain Entity

A user's purchase of a hosting plan. Owns exactly one hosting account.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import ForeignKey, String
from src.domain.base import BaseModel, BigIntId


class PurchaseStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    SUSPENDED = "suspended"


class PurchasedHosting(BaseModel, table=True):
    """
    Purchased Hosting - links a user, a plan and the secondary billing system

    Domain Rules:
    - is_autoscaling_enabled is the purchase-level switch; both this and the
      account-level switch must be on for the account to be swept
    - billing_client_id identifies the customer in the secondary billing system
      (used for fallback charges)
    - billing_service_id identifies the service record there (used for
      resource sync)
    """

    __tablename__ = "purchased_hostings"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntId, primary_key=True, autoincrement=True),
    )

    user_id: int = Field(index=True, description="Owning user")

    hosting_plan_id: int = Field(
        sa_column=Column(BigIntId, ForeignKey("hosting_plans.id", ondelete="RESTRICT"), nullable=False),
    )

    status: PurchaseStatus = Field(default=PurchaseStatus.ACTIVE)

    is_autoscaling_enabled: bool = Field(default=True)

    billing_client_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
    )

    billing_service_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)
