"""Data Transfer Objects for Wallet Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class CreditWalletCommandDTO(BaseModel):
    """
    Command DTO for adding funds to a wallet

    Used as input to CreditWallet use case. Amount validation (> 0) is done by
    the ledger so every caller gets the same INVALID_AMOUNT error.
    """

    user_id: int = Field(
        ...,
        description="Wallet owner"
    )

    amount: Decimal = Field(
        ...,
        description="Amount to add (must be > 0)"
    )

    source: str = Field(
        default="top_up",
        max_length=50,
        description="Source tag (e.g. 'top_up', 'promo_code', 'referral')"
    )

    reference: Optional[str] = Field(
        default=None,
        description="External reference (e.g. payment gateway transaction id)"
    )

    description: Optional[str] = Field(
        default=None,
        description="Human readable description"
    )

    idempotency_key: Optional[str] = Field(
        default=None,
        description="Unique key; a repeated key returns the original entry"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": 15,
                "amount": "100.00",
                "source": "top_up",
                "reference": "p24_8812731",
                "description": "Wallet top-up",
                "idempotency_key": "top_up:p24_8812731"
            }
        }


class WalletTransactionResponseDTO(BaseModel):
    """
    Response DTO for wallet mutations

    Returned by CreditWallet.
    """

    transaction_id: int = Field(..., description="WalletLog ID")
    wallet_id: int
    user_id: int
    entry_type: str = Field(..., description="deposit or withdrawal")
    amount: Decimal = Field(..., description="Signed amount")
    balance_before: Decimal
    balance_after: Decimal
    source: str
    reference: Optional[str] = None
    idempotency_key: Optional[str] = None
    created_at: datetime


class WalletBalanceResponseDTO(BaseModel):
    """
    Response DTO for get wallet balance operation

    Returned by GetWalletBalance use case.
    """

    user_id: int
    wallet_id: int
    balance: Decimal
    currency: str
    last_updated: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": 15,
                "wallet_id": 3,
                "balance": "70.00",
                "currency": "PLN",
                "last_updated": "2024-01-01T00:00:00Z"
            }
        }


class WalletLogDTO(BaseModel):
    id: int
    entry_type: str
    amount: Decimal
    source: str
    reference: Optional[str] = None
    description: Optional[str] = None
    balance_before: Decimal
    balance_after: Decimal
    created_at: datetime


class ListWalletLogsResponseDTO(BaseModel):
    entries: list[WalletLogDTO]
    total: int
    limit: int
    offset: int


class WalletDiscrepancyDTO(BaseModel):
    """Wallet whose balance differs from the sum of its log amounts"""

    user_id: int
    wallet_id: int
    wallet_balance: Decimal
    calculated_balance: Decimal
    discrepancy: Decimal


class WalletReconciliationResultDTO(BaseModel):
    """Response DTO for ReconcileWallets"""

    total_wallets_checked: int
    discrepancies_found: int
    discrepancies: list[WalletDiscrepancyDTO]
    reconciliation_time: datetime
    execution_time_ms: int
