"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock or in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_wallet.domain.models import Wallet, WalletEntry, WithdrawalRequest


class WalletRepositoryProtocol(Protocol):
    async def get_wallet(self, db: AsyncSession, user_id: str) -> Wallet | None: ...

    async def get_or_create_wallet(self, db: AsyncSession, user_id: str) -> Wallet: ...

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        ref_type: str,
        ref_id: str,
        description: str,
    ) -> Wallet: ...

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        ref_type: str,
        ref_id: str | None,
        description: str,
    ) -> Wallet: ...

    async def refund(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        ref_type: str,
        ref_id: str,
        description: str,
    ) -> Wallet: ...

    async def record_withdrawn(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> Wallet: ...

    async def list_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[WalletEntry]: ...

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
    ) -> WithdrawalRequest: ...

    async def get_withdrawal_for_update(
        self, db: AsyncSession, withdrawal_id: str
    ) -> WithdrawalRequest | None: ...

    async def list_withdrawals(
        self, db: AsyncSession, user_id: str, limit: int
    ) -> list[WithdrawalRequest]: ...

    async def mark_withdrawal(
        self,
        db: AsyncSession,
        withdrawal_id: str,
        status: str,
        admin_notes: str | None,
    ) -> WithdrawalRequest: ...
