"""Tests for CommissionRateResolver and ReferralResolver."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

from src.mp_settlement.domain.models import ActiveSubscription, BuyerProfile
from src.mp_settlement.domain.policy import SettlementPolicy
from src.mp_settlement.domain.rate_resolver import CommissionRateResolver
from src.mp_settlement.domain.referral_resolver import ReferralResolver

NOW = datetime(2026, 6, 1, tzinfo=UTC)
BUYER = BuyerProfile(user_id="buyer", email="buyer@example.com", referral_code="B1")
REFERRER = BuyerProfile(user_id="referrer", email="ref@example.com", referral_code="R1")


def _active(rate_bps: int) -> ActiveSubscription:
    return ActiveSubscription(
        id="sub-1", user_id="buyer", plan_id="plan", commission_rate_bps=rate_bps,
        start_date=NOW - timedelta(days=1), end_date=NOW + timedelta(days=29),
    )


class TestCommissionRateResolver:
    async def test_guest_gets_default(self) -> None:
        store = AsyncMock()
        resolver = CommissionRateResolver(store, SettlementPolicy())
        assert await resolver.resolve(MagicMock(), None, NOW) == 2000
        store.get_active_subscription_for_user.assert_not_awaited()

    async def test_no_subscription_gets_default(self) -> None:
        store = AsyncMock()
        store.get_active_subscription_for_user.return_value = None
        resolver = CommissionRateResolver(store, SettlementPolicy())
        assert await resolver.resolve(MagicMock(), BUYER, NOW) == 2000

    async def test_plan_rate_used(self) -> None:
        store = AsyncMock()
        store.get_active_subscription_for_user.return_value = _active(5000)
        resolver = CommissionRateResolver(store, SettlementPolicy())
        assert await resolver.resolve(MagicMock(), BUYER, NOW) == 5000
        store.get_active_subscription_for_user.assert_awaited_once()
        assert store.get_active_subscription_for_user.await_args.args[1:] == ("buyer", NOW)

    async def test_plan_rate_below_default_is_floored(self) -> None:
        store = AsyncMock()
        store.get_active_subscription_for_user.return_value = _active(500)
        resolver = CommissionRateResolver(store, SettlementPolicy())
        assert await resolver.resolve(MagicMock(), BUYER, NOW) == 2000


class TestReferralResolver:
    def _resolver(self, referrer: BuyerProfile | None, **policy) -> ReferralResolver:
        store = AsyncMock()
        store.get_profile_by_referral_code.return_value = referrer
        return ReferralResolver(store, SettlementPolicy(**policy))

    async def test_product_referral_is_share_of_commission(self) -> None:
        award = await self._resolver(REFERRER).resolve_for_product(
            MagicMock(), "R1", "buyer", 20000
        )
        assert award is not None
        assert award.referrer_id == "referrer"
        assert award.amount == 2000
        assert award.rate_bps == 1000

    async def test_subscription_referral_is_share_of_amount(self) -> None:
        award = await self._resolver(REFERRER).resolve_for_subscription(
            MagicMock(), "R1", "buyer", 250000
        )
        assert award is not None
        assert award.amount == 62500
        assert award.rate_bps == 2500

    async def test_no_code(self) -> None:
        resolver = self._resolver(REFERRER)
        assert await resolver.resolve_for_product(MagicMock(), None, "buyer", 20000) is None
        assert await resolver.resolve_for_product(MagicMock(), "  ", "buyer", 20000) is None

    async def test_guest_never_gets_referral(self) -> None:
        assert await self._resolver(REFERRER).resolve_for_product(
            MagicMock(), "R1", None, 20000
        ) is None

    async def test_unknown_code(self) -> None:
        assert await self._resolver(None).resolve_for_product(
            MagicMock(), "ZZZ", "buyer", 20000
        ) is None

    async def test_self_referral_rejected_by_default(self) -> None:
        assert await self._resolver(BUYER).resolve_for_product(
            MagicMock(), "B1", "buyer", 20000
        ) is None

    async def test_self_referral_allowed_by_policy(self) -> None:
        award = await self._resolver(BUYER, allow_self_referral=True).resolve_for_product(
            MagicMock(), "B1", "buyer", 20000
        )
        assert award is not None
        assert award.referrer_id == "buyer"

    async def test_zero_award_is_none(self) -> None:
        # floor(9 * 10%) == 0
        assert await self._resolver(REFERRER).resolve_for_product(
            MagicMock(), "R1", "buyer", 9
        ) is None
