"""Wallet API Routes

FastAPI routes for wallet balances, history and deposits.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.error import ClientError
from src.api.schemas.wallet_request import DepositRequestSchema
from src.adapter.repositories import SqlAlchemyWalletRepository, SqlAlchemyWalletLogRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.wallet_ledger import WalletLedger
from src.app.use_cases.billing import (
    CreditWallet,
    GetWalletBalance,
    ListWalletLogs,
    CreditWalletCommandDTO,
    ListWalletLogsResponseDTO,
    WalletBalanceResponseDTO,
    WalletTransactionResponseDTO,
)
from src.depends import get_session

router = APIRouter(prefix="/wallets", tags=["Wallets"])


@router.get(
    "/{user_id}",
    response_model=WalletBalanceResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        404: {
            "description": "Wallet not found",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "WALLET_NOT_FOUND",
                            "message": "No wallet found for user 15"
                        }
                    }
                }
            }
        }
    }
)
async def get_wallet_balance(
    user_id: int,
    session: AsyncSession = Depends(get_session)
):
    """
    Get current wallet balance for a user.

    **Returns:**
    - 200: Balance retrieved successfully
    - 404: User has no wallet
    """
    use_case = GetWalletBalance(SqlAlchemyWalletRepository(session))
    result = await use_case.execute(user_id)

    if result.is_err():
        if result.error.code == "WALLET_NOT_FOUND":
            raise ClientError(result.error, status_code=status.HTTP_404_NOT_FOUND)
        raise ClientError(result.error)

    return result.value


@router.get(
    "/{user_id}/transactions",
    response_model=ListWalletLogsResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def list_wallet_transactions(
    user_id: int,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    source: Optional[str] = Query(default=None, description="Filter by source tag"),
    session: AsyncSession = Depends(get_session)
):
    """
    Wallet history for a user, newest first.
    """
    use_case = ListWalletLogs(SqlAlchemyWalletRepository(session), SqlAlchemyWalletLogRepository(session))
    result = await use_case.execute(user_id, limit=limit, offset=offset, source=source)

    if result.is_err():
        if result.error.code == "WALLET_NOT_FOUND":
            raise ClientError(result.error, status_code=status.HTTP_404_NOT_FOUND)
        raise ClientError(result.error)

    return result.value


@router.post(
    "/{user_id}/deposits",
    response_model=WalletTransactionResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def deposit(
    user_id: int,
    request: DepositRequestSchema,
    session: AsyncSession = Depends(get_session)
):
    """
    Add funds to a user's wallet, opening the wallet on first deposit.

    Repeated requests with the same `idempotency_key` return the original
    entry without crediting twice.

    **Returns:**
    - 200: Funds added
    - 409: Concurrent balance update, retry
    """
    ledger = WalletLedger(
        SqlAlchemyWalletRepository(session),
        SqlAlchemyWalletLogRepository(session),
        default_currency=ApplicationConfig.WALLET_CURRENCY,
    )
    command = CreditWalletCommandDTO(
        user_id=user_id,
        amount=request.amount,
        source=request.source,
        reference=request.reference,
        description=request.description,
        idempotency_key=request.idempotency_key,
    )
    result = await CreditWallet(SqlAlchemyUnitOfWork(session), ledger).execute(command)

    if result.is_err():
        if result.error.code == "WALLET_UPDATE_CONFLICT":
            raise ClientError(result.error, status_code=status.HTTP_409_CONFLICT)
        raise ClientError(result.error)

    return result.value
