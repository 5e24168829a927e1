"""
List Wallet Logs Use Case

Retrieves wallet history for a user with pagination.
"""
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.wallet_repository import WalletRepository
from src.app.repositories.wallet_log_repository import WalletLogRepository
from .dtos import ListWalletLogsResponseDTO, WalletLogDTO


class ListWalletLogs:
    """
    Use case: View wallet history

    Entries are ordered by created_at DESC (most recent first).
    """

    def __init__(self, wallet_repo: WalletRepository, wallet_log_repo: WalletLogRepository):
        self.wallet_repo = wallet_repo
        self.wallet_log_repo = wallet_log_repo

    async def execute(
        self, user_id: int, limit: int = 20, offset: int = 0, source: Optional[str] = None
    ) -> Result[ListWalletLogsResponseDTO]:
        """
        List wallet entries for a user

        Args:
            user_id: Wallet owner
            limit: Maximum number of entries to return (default 20)
            offset: Number of entries to skip (default 0)
            source: Optional source tag filter
        """
        wallet = await self.wallet_repo.get_by_user_id(user_id)
        if not wallet:
            return Return.err(
                Error(
                    code="WALLET_NOT_FOUND",
                    message=f"No wallet found for user {user_id}",
                )
            )

        entries, total = await self.wallet_log_repo.get_by_wallet_id(
            wallet_id=wallet.id,
            limit=limit,
            offset=offset,
            source=source,
        )

        return Return.ok(
            ListWalletLogsResponseDTO(
                entries=[
                    WalletLogDTO(
                        id=entry.id,
                        entry_type=entry.entry_type.value,
                        amount=entry.amount,
                        source=entry.source,
                        reference=entry.reference,
                        description=entry.description,
                        balance_before=entry.balance_before,
                        balance_after=entry.balance_after,
                        created_at=entry.created_at,
                    )
                    for entry in entries
                ],
                total=total,
                limit=limit,
                offset=offset,
            )
        )
