"""Integration tests for ScaleAccount and ChargeScaling on a real database

Tests cover:
- Wallet payment of a scaling change
- Fallback charge to the billing system
- Pending payment later settled
- Clamping to the plan ceiling and NO_SCALING_NEEDED
- Concurrent scaling of one account applied once
- Provisioning failure leaving no trace
"""

import asyncio
import pytest
from decimal import Decimal
from sqlmodel import select

from src.adapter.repositories import (
    SqlAlchemyScalingLogRepository,
    SqlAlchemyWalletLogRepository,
    SqlAlchemyWalletRepository,
)
from src.app.services.wallet_ledger import WalletLedger
from src.app.use_cases.scaling import ChargeScalingCommandDTO, ScaleAccountCommandDTO, SettlePendingPayments
from src.depends import build_scale_account, charge_scaling_scope, scale_account_scope
from src.domain import HostingAccount, PaymentStatus, ScalingLog, Wallet, WalletLog


async def fetch_state(session_factory, account_id, user_id=15):
    """Read committed state through a fresh session"""
    async with session_factory() as session:
        account = (await session.execute(select(HostingAccount).where(HostingAccount.id == account_id))).scalar_one()
        logs = list(
            (
                await session.execute(
                    select(ScalingLog).where(ScalingLog.hosting_account_id == account_id).order_by(ScalingLog.id)
                )
            ).scalars()
        )
        wallet = (await session.execute(select(Wallet).where(Wallet.user_id == user_id))).scalar_one_or_none()
        entries = []
        if wallet:
            entries = list(
                (await session.execute(select(WalletLog).where(WalletLog.wallet_id == wallet.id))).scalars()
            )
        return account, logs, wallet, entries


@pytest.mark.asyncio
class TestScaleAccountIntegration:
    async def test_wallet_pays_for_scaling(
        self, db_session, session_factory, seed_account, resource_manager, billing_system, notifier, policy
    ):
        """
        Given: Wallet with 100.00 and a change of +1000 MB / +1000% costing 30.00
        When: Scaling the account
        Then: Wallet 70.00, one -30.00 autoscaling entry, log paid with the
              wallet entry reference, billing system untouched
        """
        # Arrange
        account_id = await seed_account(
            max_ram=4096, max_cpu=2000, wallet_balance=Decimal("100.00"), billing_client_id="c-5"
        )
        use_case = build_scale_account(
            db_session, policy,
            provisioning_gateway=resource_manager,
            billing_system=billing_system,
            notification_service=notifier,
        )

        # Act
        result = await use_case.execute(ScaleAccountCommandDTO(account_id=account_id, delta_ram=1000, delta_cpu=1000))

        # Assert
        assert result.is_ok()
        assert result.value.cost == Decimal("30.00")
        assert result.value.payment_status == PaymentStatus.PAID

        account, logs, wallet, entries = await fetch_state(session_factory, account_id)
        assert (account.current_ram, account.current_cpu) == (2024, 1100)
        assert resource_manager.limits["rm-1"] == (2024, 1100)

        assert len(logs) == 1
        log = logs[0]
        assert (log.previous_ram, log.new_ram, log.scaled_ram) == (1024, 2024, 1000)
        assert log.new_ram == log.previous_ram + log.scaled_ram
        assert log.payment_status == PaymentStatus.PAID

        assert wallet.balance == Decimal("70.00")
        assert len(entries) == 1
        assert entries[0].amount == Decimal("-30.00")
        assert entries[0].source == "autoscaling"
        assert log.payment_reference == f"wallet_transaction_{entries[0].id}"

        assert billing_system.charges == []
        assert len(notifier.events) == 1

    async def test_billing_system_charged_when_wallet_short(
        self, db_session, session_factory, seed_account, resource_manager, billing_system, notifier, policy
    ):
        """
        Given: Wallet with 10.00, purchase linked to billing client c-5
        When: Scaling with cost 30.00
        Then: Billing system charged 30.00, wallet unchanged, log paid by invoice
        """
        # Arrange
        account_id = await seed_account(
            max_ram=4096, max_cpu=2000, wallet_balance=Decimal("10.00"), billing_client_id="c-5"
        )
        use_case = build_scale_account(
            db_session, policy,
            provisioning_gateway=resource_manager,
            billing_system=billing_system,
            notification_service=notifier,
        )

        # Act
        result = await use_case.execute(ScaleAccountCommandDTO(account_id=account_id, delta_ram=1000, delta_cpu=1000))

        # Assert
        assert result.is_ok()
        assert result.value.payment_reference == "billing_invoice_1001"
        assert billing_system.charges[0][:2] == ("c-5", Decimal("30.00"))

        account, logs, wallet, entries = await fetch_state(session_factory, account_id)
        assert account.current_ram == 2024
        assert logs[0].payment_status == PaymentStatus.PAID
        assert logs[0].payment_reference == "billing_invoice_1001"
        assert wallet.balance == Decimal("10.00")
        assert entries == []

    async def test_unpaid_log_settled_later(
        self, db_session, session_factory, seed_account, resource_manager, billing_system, notifier, policy
    ):
        """
        Given: No wallet and billing system down during scaling
        When: The user tops up and pending payments are settled
        Then: Resources stayed applied, the log moves from pending to paid
        """
        # Arrange
        billing_system.available = False
        account_id = await seed_account(billing_client_id="c-5")
        use_case = build_scale_account(
            db_session, policy,
            provisioning_gateway=resource_manager,
            billing_system=billing_system,
            notification_service=notifier,
        )

        # Act - scale with no way to pay
        result = await use_case.execute(ScaleAccountCommandDTO(account_id=account_id, delta_ram=256))

        # Assert - applied but pending
        assert result.is_ok()
        assert result.value.payment_status == PaymentStatus.PENDING
        account, logs, wallet, _ = await fetch_state(session_factory, account_id)
        assert account.current_ram == 1280
        assert logs[0].payment_status == PaymentStatus.PENDING
        assert wallet is None

        # Arrange - user tops up, which opens the wallet
        async with session_factory() as session:
            ledger = WalletLedger(SqlAlchemyWalletRepository(session), SqlAlchemyWalletLogRepository(session))
            await ledger.credit(15, Decimal("20.00"), source="top_up")
            await session.commit()

        # Act - settle
        async with session_factory() as session:
            settlement = await SettlePendingPayments(
                SqlAlchemyScalingLogRepository(session),
                charge_scaling_scope(session_factory, billing_system),
            ).execute()

        # Assert
        assert settlement.is_ok()
        assert settlement.value.logs_paid == 1
        _, logs, wallet, entries = await fetch_state(session_factory, account_id)
        assert logs[0].payment_status == PaymentStatus.PAID
        assert wallet.balance == Decimal("17.44")
        assert sum(entry.amount for entry in entries) == wallet.balance

    async def test_delta_clamped_then_ceiling_reached(
        self, db_session, session_factory, seed_account, resource_manager, billing_system, notifier, policy
    ):
        """
        Given: Account at 1024 MB with max_ram 1280
        When: +512 MB requested twice
        Then: First applies +256 (new 1280), second is NO_SCALING_NEEDED
              with no new log
        """
        # Arrange
        account_id = await seed_account(max_ram=1280, wallet_balance=Decimal("50.00"))
        use_case = build_scale_account(
            db_session, policy,
            provisioning_gateway=resource_manager,
            billing_system=billing_system,
            notification_service=notifier,
        )
        command = ScaleAccountCommandDTO(account_id=account_id, delta_ram=512)

        # Act
        first = await use_case.execute(command)
        second = await use_case.execute(command)

        # Assert
        assert first.is_ok()
        assert first.value.scaled_ram == 256
        assert first.value.new_ram == 1280
        assert second.is_err()
        assert second.error.code == "NO_SCALING_NEEDED"

        account, logs, _, _ = await fetch_state(session_factory, account_id)
        assert account.current_ram == 1280
        assert len(logs) == 1

    async def test_concurrent_scales_of_one_account_apply_once(
        self, session_factory, seed_account, resource_manager, billing_system, notifier, policy
    ):
        """
        Given: Account at 1024 MB with max_ram 1280 and a funded wallet
        When: Two ScaleAccount runs for +512 MB start together, each on its own session
        Then: One scales to 1280 and is charged once, the other is NO_SCALING_NEEDED
        """
        # Arrange
        account_id = await seed_account(max_ram=1280, wallet_balance=Decimal("50.00"))
        scope = scale_account_scope(
            session_factory,
            provisioning_gateway=resource_manager,
            billing_system=billing_system,
            notification_service=notifier,
        )
        command = ScaleAccountCommandDTO(account_id=account_id, delta_ram=512)

        async def scale_in_own_session():
            async with scope(policy) as scale_account:
                return await scale_account.execute(command)

        # Act
        results = await asyncio.gather(scale_in_own_session(), scale_in_own_session())

        # Assert
        succeeded = [r for r in results if r.is_ok()]
        rejected = [r for r in results if r.is_err()]
        assert len(succeeded) == 1
        assert succeeded[0].value.new_ram == 1280
        assert [r.error.code for r in rejected] == ["NO_SCALING_NEEDED"]

        account, logs, wallet, entries = await fetch_state(session_factory, account_id)
        assert account.current_ram == 1280
        assert len(logs) == 1
        assert wallet.balance == Decimal("47.44")
        assert len(entries) == 1
        assert resource_manager.limits["rm-1"] == (1280, 100)
        assert len(notifier.events) == 1

    async def test_provisioning_failure_changes_nothing(
        self, db_session, session_factory, seed_account, resource_manager, billing_system, notifier, policy
    ):
        """
        Given: Resource manager rejects the account's new limits
        When: Scaling
        Then: PROVISIONING_FAILED, allocation unchanged, no log, no debit
        """
        # Arrange
        account_id = await seed_account(wallet_balance=Decimal("100.00"))
        resource_manager.failing.add("rm-1")
        use_case = build_scale_account(
            db_session, policy,
            provisioning_gateway=resource_manager,
            billing_system=billing_system,
            notification_service=notifier,
        )

        # Act
        result = await use_case.execute(ScaleAccountCommandDTO(account_id=account_id, delta_ram=256))

        # Assert
        assert result.is_err()
        assert result.error.code == "PROVISIONING_FAILED"
        account, logs, wallet, entries = await fetch_state(session_factory, account_id)
        assert account.current_ram == 1024
        assert logs == []
        assert wallet.balance == Decimal("100.00")
        assert entries == []
        assert notifier.events == []

    async def test_second_charge_of_same_log_does_not_debit_twice(
        self, db_session, session_factory, seed_account, resource_manager, billing_system, notifier, policy
    ):
        # Arrange
        account_id = await seed_account(wallet_balance=Decimal("100.00"))
        use_case = build_scale_account(
            db_session, policy,
            provisioning_gateway=resource_manager,
            billing_system=billing_system,
            notification_service=notifier,
        )
        result = await use_case.execute(ScaleAccountCommandDTO(account_id=account_id, delta_ram=256))
        log_id = result.value.log_id

        # Act
        async with charge_scaling_scope(session_factory, billing_system)() as charge_scaling:
            again = await charge_scaling.execute(ChargeScalingCommandDTO(log_id=log_id))

        # Assert
        assert again.value.payment_status == PaymentStatus.PAID
        _, _, wallet, entries = await fetch_state(session_factory, account_id)
        assert wallet.balance == Decimal("97.44")
        assert len(entries) == 1
