"""Referral award resolution.

Product referrals take a share of the buyer's commission; subscription
referrals take a share of the subscription amount. Both rates come from
SettlementPolicy.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.kobo import apply_rate
from src.mp_settlement.domain.models import ReferralAward
from src.mp_settlement.domain.policy import SettlementPolicy
from src.mp_settlement.domain.repository import LedgerStoreProtocol

logger = logging.getLogger(__name__)


class ReferralResolver:
    def __init__(self, store: LedgerStoreProtocol, policy: SettlementPolicy) -> None:
        self._store = store
        self._policy = policy

    async def resolve_for_product(
        self,
        db: AsyncSession,
        referral_code: str | None,
        buyer_id: str | None,
        commission_amount: int,
    ) -> ReferralAward | None:
        return await self._resolve(
            db, referral_code, buyer_id, commission_amount,
            self._policy.product_referral_rate_bps,
        )

    async def resolve_for_subscription(
        self,
        db: AsyncSession,
        referral_code: str | None,
        buyer_id: str | None,
        subscription_amount: int,
    ) -> ReferralAward | None:
        return await self._resolve(
            db, referral_code, buyer_id, subscription_amount,
            self._policy.subscription_referral_rate_bps,
        )

    async def _resolve(
        self,
        db: AsyncSession,
        referral_code: str | None,
        buyer_id: str | None,
        base_amount: int,
        rate_bps: int,
    ) -> ReferralAward | None:
        code = (referral_code or "").strip()
        if not code or buyer_id is None:
            return None
        referrer = await self._store.get_profile_by_referral_code(db, code)
        if referrer is None:
            logger.warning("Unknown referral code ignored: code=%s buyer=%s", code, buyer_id)
            return None
        if referrer.user_id == buyer_id and not self._policy.allow_self_referral:
            logger.warning("Self-referral ignored: user=%s code=%s", buyer_id, code)
            return None
        amount = apply_rate(base_amount, rate_bps)
        if amount <= 0:
            return None
        return ReferralAward(referrer_id=referrer.user_id, amount=amount, rate_bps=rate_bps)
