"""Request schemas for Wallet API"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class DepositRequestSchema(BaseModel):
    """
    Request schema for adding funds to a wallet

    Used for POST /wallets/{user_id}/deposits endpoint.
    """

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount to add (must be > 0)"
    )

    source: str = Field(
        default="top_up",
        min_length=1,
        max_length=50,
        description="Source tag"
    )

    reference: Optional[str] = Field(
        default=None,
        description="External payment reference"
    )

    description: Optional[str] = Field(default=None)

    idempotency_key: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Unique key for idempotent deposits"
    )

    @field_validator('amount')
    @classmethod
    def validate_precision(cls, v):
        """Wallet amounts are kept to 2 decimal places"""
        if v.as_tuple().exponent < -2:
            raise ValueError("Amount must have at most 2 decimal places")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "amount": "100.00",
                "source": "top_up",
                "reference": "p24_8812731",
                "idempotency_key": "top_up:p24_8812731"
            }
        }
