"""Wallet Log Domain Entity

Immutable append-only record of every wallet balance mutation.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, Numeric, String
from src.domain.base import BaseModel, BigIntId


class WalletEntryType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class WalletLog(BaseModel, table=True):
    """
    Wallet Log - signed balance mutation with resulting balance

    Domain Rules:
    - Deposits carry a positive amount, withdrawals a negative one
    - balance_after = balance_before + amount
    - idempotency_key, when given, is unique across all entries
    """

    __tablename__ = "wallet_logs"
    __table_args__ = (
        Index('ix_wallet_logs_wallet_created', 'wallet_id', 'created_at'),
        Index('ix_wallet_logs_source', 'source'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntId, primary_key=True, autoincrement=True),
    )

    wallet_id: int = Field(
        sa_column=Column(BigIntId, ForeignKey("wallets.id", ondelete="CASCADE"), nullable=False),
    )

    entry_type: WalletEntryType

    amount: Decimal = Field(sa_column=Column(Numeric(12, 2), nullable=False))

    source: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Source tag, e.g. 'autoscaling', 'top_up', 'promo_code'",
    )

    reference: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
    )

    description: Optional[str] = Field(default=None)

    balance_before: Decimal = Field(sa_column=Column(Numeric(12, 2), nullable=False))
    balance_after: Decimal = Field(sa_column=Column(Numeric(12, 2), nullable=False))

    idempotency_key: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True, unique=True),
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)
