"""SubscriptionApplicationService — plan catalog, current tier, free activation.

Paid activations happen only through the settlement engine on a verified
charge; this service activates plans whose price is zero.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.datetime_utils import add_months, utc_now
from src.mp_common.errors import PlanNotFoundError, PlanNotFreeError
from src.mp_settlement.domain.repository import LedgerStoreProtocol
from src.mp_settlement.infrastructure.persistence import LedgerStore
from src.mp_subscription.application.schemas import (
    FreeSubscriptionRequest,
    PlanResponse,
    SubscriptionResponse,
)
from src.mp_subscription.infrastructure.persistence import SubscriptionRepository

logger = logging.getLogger(__name__)


class SubscriptionApplicationService:
    def __init__(
        self,
        repo: SubscriptionRepository | None = None,
        store: LedgerStoreProtocol | None = None,
    ) -> None:
        self._repo = repo or SubscriptionRepository()
        self._store: LedgerStoreProtocol = store or LedgerStore()

    async def list_plans(self, db: AsyncSession) -> list[PlanResponse]:
        plans = await self._repo.list_plans(db)
        return [PlanResponse.from_plan(p) for p in plans]

    async def get_current(
        self, db: AsyncSession, user_id: str, now: datetime | None = None
    ) -> SubscriptionResponse | None:
        found = await self._repo.get_current(db, user_id, now or utc_now())
        if found is None:
            return None
        sub, plan = found
        return SubscriptionResponse.from_subscription(sub, plan)

    async def activate_free(
        self, db: AsyncSession, user_id: str, body: FreeSubscriptionRequest
    ) -> SubscriptionResponse:
        plan = await self._store.get_plan_by_id(db, body.plan_id)
        if plan is None:
            raise PlanNotFoundError(body.plan_id)
        if plan.price != 0:
            raise PlanNotFreeError(body.plan_id)

        start = utc_now()
        try:
            sub = await self._store.replace_active_subscription(
                db,
                user_id=user_id,
                plan_id=plan.id,
                start_date=start,
                end_date=add_months(start, plan.duration_months),
                transaction_id=None,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Free plan activated: user=%s plan=%s", user_id, plan.id)
        return SubscriptionResponse.from_subscription(sub, plan)
