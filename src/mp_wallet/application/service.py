"""WalletApplicationService — wallet reads and the withdrawal request path.

Withdrawal requests insert the pending WithdrawalRequest and debit the balance
(the hold, referencing that request) in one transaction (commit, or rollback
on any error), so an InsufficientFundsError leaves neither a row nor a balance
change.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import WalletEntryType
from src.mp_common.errors import WithdrawalBelowMinimumError
from src.mp_common.kobo import kobo_to_display
from src.mp_wallet.application.schemas import (
    WalletEntryItem,
    WalletLedgerResponse,
    WalletResponse,
    WithdrawalCreatedResponse,
    WithdrawalCreateRequest,
    WithdrawalResponse,
    cursor_decode,
    cursor_encode,
)
from src.mp_wallet.domain.repository import WalletRepositoryProtocol
from src.mp_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger(__name__)


class WalletApplicationService:
    def __init__(
        self,
        repo: WalletRepositoryProtocol | None = None,
        withdrawal_fee_kobo: int = 5000,
    ) -> None:
        self._repo: WalletRepositoryProtocol = repo or WalletRepository()
        self._withdrawal_fee = withdrawal_fee_kobo

    async def get_wallet(self, db: AsyncSession, user_id: str) -> WalletResponse:
        try:
            wallet = await self._repo.get_or_create_wallet(db, user_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return WalletResponse.from_wallet(wallet)

    async def request_withdrawal(
        self, db: AsyncSession, user_id: str, body: WithdrawalCreateRequest
    ) -> WithdrawalCreatedResponse:
        # Amount must leave a positive net payout after the flat fee
        if body.amount_kobo <= self._withdrawal_fee:
            raise WithdrawalBelowMinimumError(body.amount_kobo, self._withdrawal_fee + 1)

        try:
            # Row first so the hold entry can reference it
            withdrawal = await self._repo.insert_withdrawal(
                db,
                user_id,
                body.amount_kobo,
                self._withdrawal_fee,
                body.account_name,
                body.account_number,
                body.bank_name,
                body.bank_code,
            )
            wallet = await self._repo.debit(
                db,
                user_id,
                body.amount_kobo,
                WalletEntryType.WITHDRAWAL_HOLD,
                "WITHDRAWAL",
                withdrawal.id,
                f"Withdrawal to {body.bank_name} ****{body.account_number[-4:]}",
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Withdrawal %s requested: user=%s amount=%d net=%d",
            withdrawal.id, user_id, withdrawal.amount, withdrawal.net_amount,
        )
        return WithdrawalCreatedResponse(
            withdrawal=WithdrawalResponse.from_request(withdrawal),
            balance_kobo=wallet.balance,
            balance_display=kobo_to_display(wallet.balance),
        )

    async def list_withdrawals(
        self, db: AsyncSession, user_id: str, limit: int
    ) -> list[WithdrawalResponse]:
        rows = await self._repo.list_withdrawals(db, user_id, limit)
        return [WithdrawalResponse.from_request(w) for w in rows]

    async def list_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> WalletLedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_entries(db, user_id, cursor_id, limit + 1, entry_type)
        has_more = len(entries) > limit
        page = entries[:limit]

        items = [
            WalletEntryItem(
                id=e.id,
                entry_type=e.entry_type,
                amount_kobo=e.amount,
                amount_display=kobo_to_display(e.amount),
                balance_after_kobo=e.balance_after,
                balance_after_display=kobo_to_display(e.balance_after),
                reference_type=e.reference_type,
                reference_id=e.reference_id,
                description=e.description,
                created_at=e.created_at.isoformat() if e.created_at else "",
            )
            for e in page
        ]

        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return WalletLedgerResponse(items=items, next_cursor=next_cursor, has_more=has_more)
