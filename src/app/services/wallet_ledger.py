"""Wallet Ledger

Credit/debit operations over a user's Wallet with an append-only WalletLog.

Every mutation locks the wallet row (SELECT FOR UPDATE) and then applies a
conditional update on the balance it read, so concurrent debits against the
same wallet cannot both pass the funds check. The ledger flushes but never
commits; the caller's unit of work decides the transaction boundary.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from src.app.repositories.wallet_repository import WalletRepository
from src.app.repositories.wallet_log_repository import WalletLogRepository
from src.domain.wallet import Wallet
from src.domain.wallet_log import WalletLog, WalletEntryType

logger = logging.getLogger(__name__)

CURRENCY_PRECISION = Decimal("0.01")


class LedgerError(Exception):
    """Base class for wallet ledger failures"""


class InvalidAmountError(LedgerError):
    def __init__(self, amount: Decimal):
        self.amount = amount
        super().__init__(f"Amount must be greater than zero, got {amount}")


class InsufficientFundsError(LedgerError):
    def __init__(self, user_id: int, balance: Decimal, amount: Decimal):
        self.user_id = user_id
        self.balance = balance
        self.amount = amount
        super().__init__(
            f"Insufficient funds for user {user_id}. Required: {amount}, Available: {balance}"
        )


class WalletNotFoundError(LedgerError):
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"Wallet not found for user {user_id}")


class ConcurrentBalanceUpdateError(LedgerError):
    def __init__(self, wallet_id: int):
        self.wallet_id = wallet_id
        super().__init__(f"Balance of wallet {wallet_id} changed during update")


class WalletLedger:
    """
    Wallet balance mutations

    Business Rules:
    1. Amounts must be > 0 (InvalidAmountError)
    2. Debits require balance >= amount (InsufficientFundsError)
    3. Each mutation appends exactly one WalletLog with the signed amount
    4. An idempotency_key seen before returns the existing entry unchanged
    """

    def __init__(
        self,
        wallet_repo: WalletRepository,
        wallet_log_repo: WalletLogRepository,
        default_currency: str = "PLN",
    ):
        self.wallet_repo = wallet_repo
        self.wallet_log_repo = wallet_log_repo
        self.default_currency = default_currency

    async def open_wallet(self, user_id: int, for_update: bool = False) -> Wallet:
        """Return the user's wallet, creating an empty one if missing"""
        wallet = await self.wallet_repo.get_by_user_id(user_id, for_update=for_update)
        if wallet:
            return wallet

        wallet = await self.wallet_repo.create(
            Wallet(user_id=user_id, balance=Decimal("0"), currency=self.default_currency)
        )
        logger.info(f"Opened wallet {wallet.id} for user {user_id}")
        return wallet

    async def has_sufficient_funds(self, user_id: int, amount: Decimal) -> bool:
        wallet = await self.wallet_repo.get_by_user_id(user_id)
        if not wallet:
            return False
        return wallet.has_sufficient_funds(amount)

    async def credit(
        self,
        user_id: int,
        amount: Decimal,
        source: str,
        reference: Optional[str] = None,
        description: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> WalletLog:
        """
        Add funds to a user's wallet, opening it if needed

        Raises:
            InvalidAmountError: amount <= 0
            ConcurrentBalanceUpdateError: balance changed under the lock
        """
        amount = self._validate_amount(amount)

        existing = await self._find_existing(idempotency_key)
        if existing:
            return existing

        wallet = await self.open_wallet(user_id, for_update=True)
        return await self._apply(
            wallet, amount, WalletEntryType.DEPOSIT, source, reference, description, idempotency_key
        )

    async def debit(
        self,
        user_id: int,
        amount: Decimal,
        source: str,
        reference: Optional[str] = None,
        description: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> WalletLog:
        """
        Withdraw funds from a user's wallet

        Raises:
            InvalidAmountError: amount <= 0
            WalletNotFoundError: user has no wallet
            InsufficientFundsError: balance < amount
            ConcurrentBalanceUpdateError: balance changed under the lock
        """
        amount = self._validate_amount(amount)

        existing = await self._find_existing(idempotency_key)
        if existing:
            return existing

        wallet = await self.wallet_repo.get_by_user_id(user_id, for_update=True)
        if not wallet:
            raise WalletNotFoundError(user_id)

        if not wallet.has_sufficient_funds(amount):
            raise InsufficientFundsError(user_id, wallet.balance, amount)

        return await self._apply(
            wallet, -amount, WalletEntryType.WITHDRAWAL, source, reference, description, idempotency_key
        )

    async def _apply(
        self,
        wallet: Wallet,
        signed_amount: Decimal,
        entry_type: WalletEntryType,
        source: str,
        reference: Optional[str],
        description: Optional[str],
        idempotency_key: Optional[str],
    ) -> WalletLog:
        wallet_id = wallet.id
        balance_before = Decimal(wallet.balance).quantize(CURRENCY_PRECISION)
        balance_after = balance_before + signed_amount

        updated = await self.wallet_repo.update_balance(wallet_id, balance_before, balance_after)
        if not updated:
            raise ConcurrentBalanceUpdateError(wallet_id)

        entry = await self.wallet_log_repo.create(
            WalletLog(
                wallet_id=wallet_id,
                entry_type=entry_type,
                amount=signed_amount,
                source=source,
                reference=reference,
                description=description,
                balance_before=balance_before,
                balance_after=balance_after,
                idempotency_key=idempotency_key,
            )
        )

        logger.info(
            f"Wallet {wallet_id} {entry_type.value} {abs(signed_amount)} "
            f"({source}), balance {balance_before} -> {balance_after}"
        )
        return entry

    async def _find_existing(self, idempotency_key: Optional[str]) -> Optional[WalletLog]:
        if not idempotency_key:
            return None
        existing = await self.wallet_log_repo.get_by_idempotency_key(idempotency_key)
        if existing:
            logger.info(f"Wallet entry for key {idempotency_key} already exists (id={existing.id})")
        return existing

    @staticmethod
    def _validate_amount(amount: Decimal) -> Decimal:
        rounded = Decimal(amount).quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)
        if rounded <= 0:
            raise InvalidAmountError(amount)
        return rounded
