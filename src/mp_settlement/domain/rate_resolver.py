"""Commission rate resolution from the buyer's subscription tier."""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.datetime_utils import utc_now
from src.mp_settlement.domain.models import BuyerProfile
from src.mp_settlement.domain.policy import SettlementPolicy
from src.mp_settlement.domain.repository import LedgerStoreProtocol

logger = logging.getLogger(__name__)


class CommissionRateResolver:
    """Buyer's commission rate in bps.

    Guests and buyers without an unexpired active subscription get the
    default rate. A plan rate below the default is raised to it, so a paid
    tier never earns less than the free tier.
    """

    def __init__(self, store: LedgerStoreProtocol, policy: SettlementPolicy) -> None:
        self._store = store
        self._policy = policy

    async def resolve(
        self,
        db: AsyncSession,
        profile: BuyerProfile | None,
        now: datetime | None = None,
    ) -> int:
        default = self._policy.default_commission_rate_bps
        if profile is None:
            return default
        sub = await self._store.get_active_subscription_for_user(
            db, profile.user_id, now or utc_now()
        )
        if sub is None:
            return default
        if sub.commission_rate_bps < default:
            logger.warning(
                "Plan rate below default: user=%s plan=%s rate=%d default=%d",
                profile.user_id, sub.plan_id, sub.commission_rate_bps, default,
            )
            return default
        return sub.commission_rate_bps
