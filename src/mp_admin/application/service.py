"""Admin application service — withdrawal settlement and ledger audits."""

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import WithdrawalStatus
from src.mp_common.errors import WithdrawalNotFoundError, WithdrawalNotPendingError
from src.mp_settlement.domain.invariants import verify_ledger_invariants
from src.mp_wallet.application.schemas import WithdrawalResponse
from src.mp_wallet.domain.models import WithdrawalRequest
from src.mp_wallet.domain.repository import WalletRepositoryProtocol
from src.mp_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger(__name__)

_LIST_PENDING_SQL = text("""
    SELECT id, user_id, amount, net_amount, bank_name, created_at
    FROM withdrawal_requests
    WHERE status = 'pending'
    ORDER BY created_at ASC
    LIMIT :limit
""")


class AdminService:
    def __init__(self, wallets: WalletRepositoryProtocol | None = None) -> None:
        self._wallets: WalletRepositoryProtocol = wallets or WalletRepository()

    async def list_pending_withdrawals(
        self, db: AsyncSession, limit: int = 100
    ) -> list[dict[str, Any]]:
        rows = (await db.execute(_LIST_PENDING_SQL, {"limit": limit})).fetchall()
        return [
            {
                "id": str(r.id),
                "user_id": r.user_id,
                "amount_kobo": r.amount,
                "net_amount_kobo": r.net_amount,
                "bank_name": r.bank_name,
                "created_at": r.created_at.isoformat() if r.created_at else None,
            }
            for r in rows
        ]

    async def complete_withdrawal(
        self, db: AsyncSession, withdrawal_id: str, admin_notes: str | None = None
    ) -> WithdrawalResponse:
        """Payout sent: the held amount becomes permanently withdrawn."""
        try:
            current = await self._get_pending(db, withdrawal_id)
            withdrawal = await self._wallets.mark_withdrawal(
                db, withdrawal_id, WithdrawalStatus.COMPLETED, admin_notes
            )
            await self._wallets.record_withdrawn(db, current.user_id, current.amount)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Withdrawal %s completed: user=%s amount=%d",
            withdrawal_id, withdrawal.user_id, withdrawal.amount,
        )
        return WithdrawalResponse.from_request(withdrawal)

    async def fail_withdrawal(
        self, db: AsyncSession, withdrawal_id: str, admin_notes: str | None = None
    ) -> WithdrawalResponse:
        """Payout rejected: the held amount goes back to the wallet balance."""
        try:
            current = await self._get_pending(db, withdrawal_id)
            withdrawal = await self._wallets.mark_withdrawal(
                db, withdrawal_id, WithdrawalStatus.FAILED, admin_notes
            )
            await self._wallets.refund(
                db, current.user_id, current.amount, "WITHDRAWAL", withdrawal_id,
                f"Refund of failed withdrawal {withdrawal_id}",
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.warning(
            "Withdrawal %s failed and refunded: user=%s amount=%d",
            withdrawal_id, withdrawal.user_id, withdrawal.amount,
        )
        return WithdrawalResponse.from_request(withdrawal)

    async def check_invariants(self, db: AsyncSession) -> dict[str, Any]:
        violations = await verify_ledger_invariants(db)
        return {"ok": not violations, "violations": violations}

    async def _get_pending(
        self, db: AsyncSession, withdrawal_id: str
    ) -> WithdrawalRequest:
        current = await self._wallets.get_withdrawal_for_update(db, withdrawal_id)
        if current is None:
            raise WithdrawalNotFoundError(withdrawal_id)
        if current.status != WithdrawalStatus.PENDING:
            raise WithdrawalNotPendingError(withdrawal_id, current.status)
        return current
