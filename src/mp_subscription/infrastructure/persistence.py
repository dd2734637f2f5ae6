"""SubscriptionRepository — plan catalog and current-subscription reads."""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_settlement.domain.models import SubscriptionPlan, UserSubscription
from src.mp_settlement.infrastructure.persistence import row_to_plan, row_to_subscription

_LIST_PLANS_SQL = text("""
    SELECT id, name, price, duration_months, commission_rate_bps
    FROM subscription_plans
    ORDER BY price ASC, name ASC
""")

# Same effective-active rule the commission resolver applies
_GET_CURRENT_SQL = text("""
    SELECT s.id, s.user_id, s.plan_id, s.status, s.start_date, s.end_date,
           s.transaction_id,
           p.name, p.price, p.duration_months, p.commission_rate_bps
    FROM user_subscriptions s
    JOIN subscription_plans p ON p.id = s.plan_id
    WHERE s.user_id = :user_id
      AND s.status = 'active'
      AND s.end_date > :now
    ORDER BY s.start_date DESC
    LIMIT 1
""")


class SubscriptionRepository:
    async def list_plans(self, db: AsyncSession) -> list[SubscriptionPlan]:
        result = await db.execute(_LIST_PLANS_SQL)
        return [row_to_plan(row) for row in result.fetchall()]

    async def get_current(
        self, db: AsyncSession, user_id: str, now: datetime
    ) -> tuple[UserSubscription, SubscriptionPlan] | None:
        result = await db.execute(_GET_CURRENT_SQL, {"user_id": user_id, "now": now})
        row = result.fetchone()
        if row is None:
            return None
        plan = SubscriptionPlan(
            id=str(row.plan_id),
            name=row.name,
            price=row.price,
            duration_months=row.duration_months,
            commission_rate_bps=row.commission_rate_bps,
        )
        return row_to_subscription(row), plan
