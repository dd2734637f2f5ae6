"""Ledger invariant verification.

verify_sale_split runs inline after every product settlement.
verify_ledger_invariants runs on demand from the admin API.
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_settlement.domain.models import ProductSplit

logger = logging.getLogger(__name__)


def verify_sale_split(split: ProductSplit) -> None:
    """Raises AssertionError if the split does not conserve the sale amount."""
    total = split.buyer_commission + split.referral_amount + split.admin_amount
    assert total == split.sale_amount, (
        f"Sale split not conserved: buyer({split.buyer_commission}) + "
        f"referral({split.referral_amount}) + admin({split.admin_amount}) "
        f"= {total} != sale={split.sale_amount}"
    )
    assert min(split.buyer_commission, split.referral_amount, split.admin_amount) >= 0, (
        f"Negative split component: {split}"
    )


_UNBALANCED_SALES_SQL = text("""
    SELECT COUNT(*) FROM sales
    WHERE commission_amount + referral_commission_amount + admin_amount <> sale_amount
""")
_NEGATIVE_WALLETS_SQL = text("""
    SELECT COUNT(*) FROM wallets WHERE balance < 0
""")
_WALLET_DRIFT_SQL = text("""
    SELECT w.user_id, w.balance, w.total_earned, w.total_withdrawn,
           COALESCE(h.held, 0) AS held
    FROM wallets w
    LEFT JOIN (
        SELECT user_id, SUM(amount) AS held
        FROM withdrawal_requests
        WHERE status = 'pending'
        GROUP BY user_id
    ) h ON h.user_id = w.user_id
    WHERE w.balance <> w.total_earned - w.total_withdrawn - COALESCE(h.held, 0)
""")
_DUPLICATE_ACTIVE_SUBS_SQL = text("""
    SELECT user_id, COUNT(*) FROM user_subscriptions
    WHERE status = 'active'
    GROUP BY user_id
    HAVING COUNT(*) > 1
""")


async def verify_ledger_invariants(db: AsyncSession) -> list[str]:
    """Check ledger-wide invariants. Returns a list of violation strings."""
    violations: list[str] = []

    unbalanced = (await db.execute(_UNBALANCED_SALES_SQL)).scalar_one()
    if unbalanced:
        violations.append(f"{unbalanced} sale(s) with unconserved split")

    negative = (await db.execute(_NEGATIVE_WALLETS_SQL)).scalar_one()
    if negative:
        violations.append(f"{negative} wallet(s) with negative balance")

    for row in (await db.execute(_WALLET_DRIFT_SQL)).fetchall():
        violations.append(
            f"wallet {row.user_id}: balance({row.balance}) != "
            f"earned({row.total_earned}) - withdrawn({row.total_withdrawn}) "
            f"- held({row.held})"
        )

    for user_id, count in (await db.execute(_DUPLICATE_ACTIVE_SUBS_SQL)).fetchall():
        violations.append(f"user {user_id} has {count} active subscriptions")

    for msg in violations:
        logger.error("Ledger invariant violated: %s", msg)
    return violations
