"""Get Wallet Balance Use Case

Retrieves a user's current wallet balance.
"""

from libs.result import Result, Return, Error
from src.app.repositories.wallet_repository import WalletRepository
from src.app.use_cases.billing.dtos import WalletBalanceResponseDTO


class GetWalletBalance:
    """
    Get Wallet Balance Use Case

    Read-only operation that retrieves the current balance for a user.
    """

    def __init__(self, wallet_repo: WalletRepository):
        self.wallet_repo = wallet_repo

    async def execute(self, user_id: int) -> Result[WalletBalanceResponseDTO]:
        """
        Execute get balance operation

        Errors:
            WALLET_NOT_FOUND: User has no wallet
        """
        wallet = await self.wallet_repo.get_by_user_id(user_id)

        if not wallet:
            return Return.err(
                Error(
                    code="WALLET_NOT_FOUND",
                    message=f"No wallet found for user {user_id}",
                )
            )

        return Return.ok(
            WalletBalanceResponseDTO(
                user_id=wallet.user_id,
                wallet_id=wallet.id,
                balance=wallet.balance,
                currency=wallet.currency,
                last_updated=wallet.updated_at,
            )
        )
