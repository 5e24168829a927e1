"""CreditWallet Use Case

Adds funds to a user's wallet (top-ups, promo codes, refunds).
"""

from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.wallet_ledger import WalletLedger, InvalidAmountError, LedgerError
from src.domain.wallet_log import WalletLog
from .dtos import CreditWalletCommandDTO, WalletTransactionResponseDTO


class CreditWallet:
    """
    Use Case: Credit a user's wallet

    Business Rules:
    1. Amount must be > 0
    2. Wallet is opened on first credit
    3. Balance update and WalletLog entry commit together
    4. Idempotency: same idempotency_key returns the same entry
    """

    def __init__(self, uow: UnitOfWork, wallet_ledger: WalletLedger):
        self.uow = uow
        self.wallet_ledger = wallet_ledger

    async def execute(self, command: CreditWalletCommandDTO) -> Result[WalletTransactionResponseDTO]:
        try:
            entry = await self.wallet_ledger.credit(
                command.user_id,
                command.amount,
                source=command.source,
                reference=command.reference,
                description=command.description,
                idempotency_key=command.idempotency_key,
            )
            response = self._to_response_dto(entry, command.user_id)
            await self.uow.commit()
            return Return.ok(response)

        except InvalidAmountError as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="INVALID_AMOUNT",
                    message=str(e),
                    reason=f"amount={command.amount}",
                )
            )
        except LedgerError as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="WALLET_UPDATE_CONFLICT",
                    message=f"Wallet of user {command.user_id} changed concurrently, retry the request",
                    reason=str(e),
                )
            )
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CREDIT_WALLET_FAILED",
                    message="Failed to credit wallet",
                    reason=str(e),
                )
            )

    def _to_response_dto(self, entry: WalletLog, user_id: int) -> WalletTransactionResponseDTO:
        return WalletTransactionResponseDTO(
            transaction_id=entry.id,
            wallet_id=entry.wallet_id,
            user_id=user_id,
            entry_type=entry.entry_type.value,
            amount=entry.amount,
            balance_before=entry.balance_before,
            balance_after=entry.balance_after,
            source=entry.source,
            reference=entry.reference,
            idempotency_key=entry.idempotency_key,
            created_at=entry.created_at,
        )
