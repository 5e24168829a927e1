"""Unit tests for WalletLedger"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.services.wallet_ledger import (
    WalletLedger,
    InvalidAmountError,
    InsufficientFundsError,
    WalletNotFoundError,
    ConcurrentBalanceUpdateError,
)
from src.domain.wallet import Wallet
from src.domain.wallet_log import WalletEntryType


@pytest.fixture
def wallet_repo():
    repo = AsyncMock()
    repo.get_by_user_id.return_value = Wallet(id=3, user_id=15, balance=Decimal("100.00"))
    repo.update_balance.return_value = True
    return repo


@pytest.fixture
def wallet_log_repo():
    repo = AsyncMock()
    repo.get_by_idempotency_key.return_value = None

    async def create(entry):
        entry.id = 7
        return entry

    repo.create.side_effect = create
    return repo


@pytest.fixture
def ledger(wallet_repo, wallet_log_repo):
    return WalletLedger(wallet_repo, wallet_log_repo)


@pytest.mark.asyncio
class TestDebit:
    async def test_debit_writes_negative_entry(self, ledger, wallet_repo, wallet_log_repo):
        """
        Given: Wallet with 100.00
        When: Debiting 30.00
        Then: Balance compare-and-set 100.00 -> 70.00 and a withdrawal entry of -30.00
        """
        # Act
        entry = await ledger.debit(15, Decimal("30.00"), source="autoscaling", reference="scaling_log_1")

        # Assert
        wallet_repo.get_by_user_id.assert_called_once_with(15, for_update=True)
        wallet_repo.update_balance.assert_called_once_with(3, Decimal("100.00"), Decimal("70.00"))
        assert entry.id == 7
        assert entry.entry_type == WalletEntryType.WITHDRAWAL
        assert entry.amount == Decimal("-30.00")
        assert entry.balance_before == Decimal("100.00")
        assert entry.balance_after == Decimal("70.00")
        assert entry.source == "autoscaling"
        assert entry.reference == "scaling_log_1"

    async def test_debit_of_entire_balance_allowed(self, ledger, wallet_repo):
        entry = await ledger.debit(15, Decimal("100.00"), source="autoscaling")

        assert entry.balance_after == Decimal("0.00")

    async def test_insufficient_funds(self, ledger, wallet_repo, wallet_log_repo):
        with pytest.raises(InsufficientFundsError) as exc_info:
            await ledger.debit(15, Decimal("100.01"), source="autoscaling")

        assert exc_info.value.balance == Decimal("100.00")
        wallet_repo.update_balance.assert_not_called()
        wallet_log_repo.create.assert_not_called()

    async def test_missing_wallet(self, ledger, wallet_repo):
        wallet_repo.get_by_user_id.return_value = None

        with pytest.raises(WalletNotFoundError):
            await ledger.debit(15, Decimal("1.00"), source="autoscaling")

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5.00"), Decimal("0.004")])
    async def test_non_positive_amount_rejected(self, ledger, wallet_repo, amount):
        with pytest.raises(InvalidAmountError):
            await ledger.debit(15, amount, source="autoscaling")

        wallet_repo.get_by_user_id.assert_not_called()

    async def test_lost_compare_and_set_raises(self, ledger, wallet_repo, wallet_log_repo):
        wallet_repo.update_balance.return_value = False

        with pytest.raises(ConcurrentBalanceUpdateError):
            await ledger.debit(15, Decimal("10.00"), source="autoscaling")

        wallet_log_repo.create.assert_not_called()

    async def test_repeated_idempotency_key_returns_existing_entry(self, ledger, wallet_repo, wallet_log_repo):
        """
        Given: An entry already exists for key scaling_log:1
        When: Debiting again with that key
        Then: Existing entry returned, balance untouched
        """
        # Arrange
        existing = MagicMock(id=5)
        wallet_log_repo.get_by_idempotency_key.return_value = existing

        # Act
        entry = await ledger.debit(15, Decimal("30.00"), source="autoscaling", idempotency_key="scaling_log:1")

        # Assert
        assert entry is existing
        wallet_repo.update_balance.assert_not_called()
        wallet_log_repo.create.assert_not_called()


@pytest.mark.asyncio
class TestCredit:
    async def test_credit_adds_positive_entry(self, ledger, wallet_repo):
        entry = await ledger.credit(15, Decimal("25.50"), source="top_up")

        wallet_repo.update_balance.assert_called_once_with(3, Decimal("100.00"), Decimal("125.50"))
        assert entry.entry_type == WalletEntryType.DEPOSIT
        assert entry.amount == Decimal("25.50")

    async def test_credit_opens_missing_wallet(self, ledger, wallet_repo):
        """
        Given: User without a wallet
        When: Crediting 50.00
        Then: A zero wallet in the default currency is created and credited
        """
        # Arrange
        wallet_repo.get_by_user_id.return_value = None

        async def create(wallet):
            wallet.id = 9
            return wallet

        wallet_repo.create.side_effect = create

        # Act
        entry = await ledger.credit(15, Decimal("50.00"), source="top_up")

        # Assert
        created = wallet_repo.create.call_args[0][0]
        assert created.user_id == 15
        assert created.balance == Decimal("0")
        assert created.currency == "PLN"
        wallet_repo.update_balance.assert_called_once_with(9, Decimal("0.00"), Decimal("50.00"))
        assert entry.wallet_id == 9

    async def test_amount_rounded_to_cents(self, ledger, wallet_repo):
        entry = await ledger.credit(15, Decimal("10.005"), source="top_up")

        assert entry.amount == Decimal("10.01")

    async def test_has_sufficient_funds(self, ledger, wallet_repo):
        assert await ledger.has_sufficient_funds(15, Decimal("100.00")) is True
        assert await ledger.has_sufficient_funds(15, Decimal("100.01")) is False

        wallet_repo.get_by_user_id.return_value = None
        assert await ledger.has_sufficient_funds(15, Decimal("1.00")) is False
