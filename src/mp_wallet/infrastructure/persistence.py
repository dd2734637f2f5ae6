"""WalletRepository — concrete implementation of WalletRepositoryProtocol.

All balance-mutating operations are single atomic PostgreSQL statements with
server-side arithmetic (balance = balance + :amount) and RETURNING. A result
of 0 rows means a business guard was violated (insufficient funds, missing
wallet, withdrawal no longer pending).

Transaction ownership: the CALLER (settlement engine or application service)
commits or rolls back the transaction; nothing here commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import WalletEntryType, WithdrawalStatus
from src.mp_common.errors import (
    InsufficientFundsError,
    InternalError,
    WalletNotFoundError,
    WithdrawalNotFoundError,
    WithdrawalNotPendingError,
)
from src.mp_wallet.domain.models import Wallet, WalletEntry, WithdrawalRequest

_WALLET_COLUMNS = "id, user_id, balance, total_earned, total_withdrawn, created_at, updated_at"
_WITHDRAWAL_COLUMNS = (
    "id, user_id, amount, processing_fee, net_amount, account_name, account_number, "
    "bank_name, bank_code, status, admin_notes, processed_at, created_at"
)

# ---------------------------------------------------------------------------
# SQL: wallets
# ---------------------------------------------------------------------------

_GET_WALLET_SQL = text(f"""
    SELECT {_WALLET_COLUMNS}
    FROM wallets
    WHERE user_id = :user_id
""")

_GET_OR_CREATE_WALLET_SQL = text(f"""
    INSERT INTO wallets (user_id, balance, total_earned, total_withdrawn)
    VALUES (:user_id, 0, 0, 0)
    ON CONFLICT (user_id) DO UPDATE
        SET user_id = EXCLUDED.user_id
    RETURNING {_WALLET_COLUMNS}
""")

# Upsert-or-increment in one statement: concurrent credits to the same
# wallet serialise on the row lock instead of losing updates.
_CREDIT_SQL = text(f"""
    INSERT INTO wallets (user_id, balance, total_earned, total_withdrawn)
    VALUES (:user_id, :amount, :amount, 0)
    ON CONFLICT (user_id) DO UPDATE
        SET balance      = wallets.balance      + EXCLUDED.balance,
            total_earned = wallets.total_earned + EXCLUDED.total_earned,
            updated_at   = NOW()
    RETURNING {_WALLET_COLUMNS}
""")

_DEBIT_SQL = text(f"""
    UPDATE wallets
    SET balance = balance - :amount,
        updated_at = NOW()
    WHERE user_id = :user_id AND balance >= :amount
    RETURNING {_WALLET_COLUMNS}
""")

_REFUND_SQL = text(f"""
    UPDATE wallets
    SET balance = balance + :amount,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_WALLET_COLUMNS}
""")

_RECORD_WITHDRAWN_SQL = text(f"""
    UPDATE wallets
    SET total_withdrawn = total_withdrawn + :amount,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_WALLET_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: wallet ledger
# ---------------------------------------------------------------------------

_INSERT_ENTRY_SQL = text("""
    INSERT INTO wallet_ledger_entries
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description)
    RETURNING id
""")

_LIST_ENTRIES_SQL = text("""
    SELECT id, user_id, entry_type, amount, balance_after,
           reference_type, reference_id, description, created_at
    FROM wallet_ledger_entries
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:entry_type AS VARCHAR) IS NULL OR entry_type = :entry_type)
    ORDER BY id DESC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# SQL: withdrawal requests
# ---------------------------------------------------------------------------

_INSERT_WITHDRAWAL_SQL = text(f"""
    INSERT INTO withdrawal_requests
        (user_id, amount, processing_fee, net_amount,
         account_name, account_number, bank_name, bank_code, status)
    VALUES
        (:user_id, :amount, :processing_fee, :net_amount,
         :account_name, :account_number, :bank_name, :bank_code, 'pending')
    RETURNING {_WITHDRAWAL_COLUMNS}
""")

_GET_WITHDRAWAL_FOR_UPDATE_SQL = text(f"""
    SELECT {_WITHDRAWAL_COLUMNS}
    FROM withdrawal_requests
    WHERE id = :withdrawal_id
    FOR UPDATE
""")

_LIST_WITHDRAWALS_SQL = text(f"""
    SELECT {_WITHDRAWAL_COLUMNS}
    FROM withdrawal_requests
    WHERE user_id = :user_id
    ORDER BY created_at DESC
    LIMIT :limit
""")

_MARK_WITHDRAWAL_SQL = text(f"""
    UPDATE withdrawal_requests
    SET status = :status,
        admin_notes = COALESCE(:admin_notes, admin_notes),
        processed_at = NOW()
    WHERE id = :withdrawal_id AND status = 'pending'
    RETURNING {_WITHDRAWAL_COLUMNS}
""")


def _row_to_wallet(row: object) -> Wallet:
    return Wallet(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        total_earned=row.total_earned,  # type: ignore[attr-defined]
        total_withdrawn=row.total_withdrawn,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_entry(row: object) -> WalletEntry:
    return WalletEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_withdrawal(row: object) -> WithdrawalRequest:
    return WithdrawalRequest(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        processing_fee=row.processing_fee,  # type: ignore[attr-defined]
        net_amount=row.net_amount,  # type: ignore[attr-defined]
        account_name=row.account_name,  # type: ignore[attr-defined]
        account_number=row.account_number,  # type: ignore[attr-defined]
        bank_name=row.bank_name,  # type: ignore[attr-defined]
        bank_code=row.bank_code,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        admin_notes=row.admin_notes,  # type: ignore[attr-defined]
        processed_at=row.processed_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class WalletRepository:
    """Concrete repository — every mutation atomic at the SQL level."""

    async def get_wallet(self, db: AsyncSession, user_id: str) -> Wallet | None:
        result = await db.execute(_GET_WALLET_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_wallet(row) if row else None

    async def get_or_create_wallet(self, db: AsyncSession, user_id: str) -> Wallet:
        result = await db.execute(_GET_OR_CREATE_WALLET_SQL, {"user_id": user_id})
        row = result.fetchone()
        if row is None:
            raise InternalError("Wallet upsert returned no rows — this should never happen")
        return _row_to_wallet(row)

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        ref_type: str,
        ref_id: str,
        description: str,
    ) -> Wallet:
        if amount <= 0:
            raise ValueError(f"Credit amount must be positive, got {amount}")
        result = await db.execute(_CREDIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            raise InternalError("Wallet upsert returned no rows — this should never happen")
        wallet = _row_to_wallet(row)
        await self._append_entry(
            db, wallet, entry_type, amount, ref_type, ref_id, description
        )
        return wallet

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        ref_type: str,
        ref_id: str | None,
        description: str,
    ) -> Wallet:
        if amount <= 0:
            raise ValueError(f"Debit amount must be positive, got {amount}")
        result = await db.execute(_DEBIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            current = await self.get_wallet(db, user_id)
            raise InsufficientFundsError(amount, current.balance if current else 0)
        wallet = _row_to_wallet(row)
        await self._append_entry(
            db, wallet, entry_type, -amount, ref_type, ref_id, description
        )
        return wallet

    async def refund(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        ref_type: str,
        ref_id: str,
        description: str,
    ) -> Wallet:
        result = await db.execute(_REFUND_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            raise WalletNotFoundError(user_id)
        wallet = _row_to_wallet(row)
        await self._append_entry(
            db, wallet, WalletEntryType.WITHDRAWAL_REFUND, amount, ref_type, ref_id, description
        )
        return wallet

    async def record_withdrawn(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> Wallet:
        result = await db.execute(
            _RECORD_WITHDRAWN_SQL, {"user_id": user_id, "amount": amount}
        )
        row = result.fetchone()
        if row is None:
            raise WalletNotFoundError(user_id)
        return _row_to_wallet(row)

    async def list_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[WalletEntry]:
        result = await db.execute(
            _LIST_ENTRIES_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_entry(row) for row in result.fetchall()]

    async def insert_withdrawal(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        processing_fee: int,
        account_name: str,
        account_number: str,
        bank_name: str,
        bank_code: str | None,
    ) -> WithdrawalRequest:
        result = await db.execute(
            _INSERT_WITHDRAWAL_SQL,
            {
                "user_id": user_id,
                "amount": amount,
                "processing_fee": processing_fee,
                "net_amount": amount - processing_fee,
                "account_name": account_name,
                "account_number": account_number,
                "bank_name": bank_name,
                "bank_code": bank_code,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Withdrawal insert returned no rows — this should never happen")
        return _row_to_withdrawal(row)

    async def get_withdrawal_for_update(
        self, db: AsyncSession, withdrawal_id: str
    ) -> WithdrawalRequest | None:
        result = await db.execute(
            _GET_WITHDRAWAL_FOR_UPDATE_SQL, {"withdrawal_id": withdrawal_id}
        )
        row = result.fetchone()
        return _row_to_withdrawal(row) if row else None

    async def list_withdrawals(
        self, db: AsyncSession, user_id: str, limit: int
    ) -> list[WithdrawalRequest]:
        result = await db.execute(
            _LIST_WITHDRAWALS_SQL, {"user_id": user_id, "limit": limit}
        )
        return [_row_to_withdrawal(row) for row in result.fetchall()]

    async def mark_withdrawal(
        self,
        db: AsyncSession,
        withdrawal_id: str,
        status: str,
        admin_notes: str | None,
    ) -> WithdrawalRequest:
        if status == WithdrawalStatus.PENDING:
            raise ValueError("Cannot mark a withdrawal back to pending")
        result = await db.execute(
            _MARK_WITHDRAWAL_SQL,
            {"withdrawal_id": withdrawal_id, "status": status, "admin_notes": admin_notes},
        )
        row = result.fetchone()
        if row is None:
            current = await self.get_withdrawal_for_update(db, withdrawal_id)
            if current is None:
                raise WithdrawalNotFoundError(withdrawal_id)
            raise WithdrawalNotPendingError(withdrawal_id, current.status)
        return _row_to_withdrawal(row)

    async def _append_entry(
        self,
        db: AsyncSession,
        wallet: Wallet,
        entry_type: str,
        amount: int,
        ref_type: str,
        ref_id: str | None,
        description: str,
    ) -> None:
        await db.execute(
            _INSERT_ENTRY_SQL,
            {
                "user_id": wallet.user_id,
                "entry_type": entry_type,
                "amount": amount,
                "balance_after": wallet.balance,
                "reference_type": ref_type,
                "reference_id": ref_id,
                "description": description,
            },
        )
