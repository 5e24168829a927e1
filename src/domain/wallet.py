"""Wallet Domain Entity

Prepaid balance per user. Balance is always >= 0 and changes only through
WalletLog entries written by the wallet ledger.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import CheckConstraint, Numeric, String
from src.domain.base import BaseModel, BigIntId


class Wallet(BaseModel, table=True):
    """
    Wallet - user prepaid balance

    Domain Rules:
    - One wallet per user (user_id is unique)
    - Balance must be non-negative
    - Balance equals the sum of the wallet's log amounts
    """

    __tablename__ = "wallets"
    __table_args__ = (
        CheckConstraint('balance >= 0', name='wallet_balance_non_negative'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntId, primary_key=True, autoincrement=True),
    )

    user_id: int = Field(index=True, unique=True)

    balance: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(12, 2), nullable=False, default=0),
    )

    currency: str = Field(
        default="PLN",
        sa_column=Column(String(3), nullable=False, default="PLN"),
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def has_sufficient_funds(self, amount: Decimal) -> bool:
        """Point-in-time check only, the debit re-checks under lock"""
        return self.balance >= amount
