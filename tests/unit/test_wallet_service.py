"""Unit tests for WalletApplicationService using a mock repository."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from src.mp_common.enums import WalletEntryType
from src.mp_common.errors import InsufficientFundsError, WithdrawalBelowMinimumError
from src.mp_wallet.application.schemas import (
    WithdrawalCreateRequest,
    cursor_decode,
    cursor_encode,
)
from src.mp_wallet.application.service import WalletApplicationService
from src.mp_wallet.domain.models import Wallet, WalletEntry, WithdrawalRequest
from tests.unit.fakes import InMemoryWalletRepository


def _wallet(balance: int = 100000, earned: int = 100000, withdrawn: int = 0) -> Wallet:
    return Wallet(id="w-1", user_id="user-1", balance=balance,
                  total_earned=earned, total_withdrawn=withdrawn)


def _withdrawal(amount: int = 20000, fee: int = 5000) -> WithdrawalRequest:
    return WithdrawalRequest(
        id="wd-1", user_id="user-1", amount=amount, processing_fee=fee,
        net_amount=amount - fee, account_name="Ada Obi", account_number="0123456789",
        bank_name="GTBank", bank_code="058", status="pending",
        created_at=datetime.now(UTC),
    )


def _request(amount: int = 20000) -> WithdrawalCreateRequest:
    return WithdrawalCreateRequest(
        amount_kobo=amount, account_name="Ada Obi", account_number="0123456789",
        bank_name="GTBank", bank_code="058",
    )


class TestGetWallet:
    async def test_returns_display_values(self) -> None:
        repo = AsyncMock()
        repo.get_or_create_wallet.return_value = _wallet(250000, 300000, 50000)
        db = AsyncMock()

        result = await WalletApplicationService(repo=repo).get_wallet(db, "user-1")

        assert result.balance_kobo == 250000
        assert result.balance_display == "₦2,500.00"
        assert result.total_withdrawn_display == "₦500.00"
        db.commit.assert_awaited_once()


class TestRequestWithdrawal:
    async def test_debits_and_inserts_pending(self) -> None:
        repo = AsyncMock()
        repo.debit.return_value = _wallet(balance=80000)
        repo.insert_withdrawal.return_value = _withdrawal()
        db = AsyncMock()
        svc = WalletApplicationService(repo=repo, withdrawal_fee_kobo=5000)

        result = await svc.request_withdrawal(db, "user-1", _request(20000))

        assert result.balance_kobo == 80000
        assert result.withdrawal.net_amount_kobo == 15000
        assert result.withdrawal.status == "pending"
        debit_args = repo.debit.await_args.args
        assert debit_args[1:5] == ("user-1", 20000, WalletEntryType.WITHDRAWAL_HOLD, "WITHDRAWAL")
        assert debit_args[5] == "wd-1"
        assert "****6789" in debit_args[6]
        assert repo.insert_withdrawal.await_args.args[2:4] == (20000, 5000)
        db.commit.assert_awaited_once()

    async def test_hold_entry_references_withdrawal(self) -> None:
        repo = InMemoryWalletRepository()
        await repo.credit(None, "user-1", 50000, "SALE_COMMISSION", "SALE", "s1", "x")
        svc = WalletApplicationService(repo=repo, withdrawal_fee_kobo=5000)

        result = await svc.request_withdrawal(AsyncMock(), "user-1", _request(20000))

        hold = repo.entries_for("user-1")[-1]
        assert hold.entry_type == WalletEntryType.WITHDRAWAL_HOLD
        assert hold.amount == -20000
        assert hold.reference_type == "WITHDRAWAL"
        assert hold.reference_id == result.withdrawal.id
        assert result.withdrawal.id in repo.withdrawals
        assert result.balance_kobo == 30000

    @pytest.mark.parametrize("amount", [1, 4999, 5000])
    async def test_amount_must_exceed_fee(self, amount: int) -> None:
        repo = AsyncMock()
        db = AsyncMock()
        with pytest.raises(WithdrawalBelowMinimumError):
            await WalletApplicationService(repo=repo).request_withdrawal(
                db, "user-1", _request(amount)
            )
        repo.debit.assert_not_awaited()

    async def test_insufficient_funds_rolls_back_and_balance_unchanged(self) -> None:
        repo = InMemoryWalletRepository()
        wallet = await repo.credit(None, "user-1", 10000, "SALE_COMMISSION", "SALE", "s1", "x")
        db = AsyncMock()
        svc = WalletApplicationService(repo=repo)

        with pytest.raises(InsufficientFundsError) as exc_info:
            await svc.request_withdrawal(db, "user-1", _request(20000))

        assert exc_info.value.available == 10000
        assert wallet.balance == 10000
        assert len(repo.entries_for("user-1")) == 1
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()


class TestWalletNonNegativity:
    async def test_gated_debits_never_go_negative(self) -> None:
        repo = InMemoryWalletRepository()
        ops = [("c", 5000), ("d", 3000), ("d", 3000), ("c", 100), ("d", 2100), ("d", 1)]
        for kind, amount in ops:
            if kind == "c":
                await repo.credit(None, "u", amount, "SALE_COMMISSION", "SALE", "s", "")
            else:
                try:
                    await repo.debit(None, "u", amount, "WITHDRAWAL_HOLD", "WITHDRAWAL", None, "")
                except InsufficientFundsError:
                    pass
            assert repo.balance("u") >= 0
        assert repo.balance("u") == 0


class TestListLedger:
    async def test_paginates_with_cursor(self) -> None:
        entries = [
            WalletEntry(id=i, user_id="user-1", entry_type="SALE_COMMISSION",
                        amount=1000, balance_after=1000 * i,
                        created_at=datetime.now(UTC))
            for i in (5, 4, 3)
        ]
        repo = AsyncMock()
        repo.list_entries.return_value = entries
        svc = WalletApplicationService(repo=repo)

        page = await svc.list_ledger(AsyncMock(), "user-1", None, 2, None)

        assert [i.id for i in page.items] == [5, 4]
        assert page.has_more is True
        assert cursor_decode(page.next_cursor) == 4
        assert repo.list_entries.await_args.args[3] == 3

    async def test_last_page(self) -> None:
        repo = AsyncMock()
        repo.list_entries.return_value = []
        page = await WalletApplicationService(repo=repo).list_ledger(
            AsyncMock(), "user-1", cursor_encode(10), 20, None
        )
        assert page.items == []
        assert page.next_cursor is None
        assert repo.list_entries.await_args.args[2] == 10


class TestCursor:
    def test_round_trip(self) -> None:
        assert cursor_decode(cursor_encode(42)) == 42

    def test_garbage_is_none(self) -> None:
        assert cursor_decode("!!notbase64!!") is None
        assert cursor_decode(None) is None
