"""Unit tests for SubscriptionApplicationService."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from src.mp_common.errors import PlanNotFoundError, PlanNotFreeError
from src.mp_settlement.domain.models import SubscriptionPlan, UserSubscription
from src.mp_subscription.application.schemas import FreeSubscriptionRequest
from src.mp_subscription.application.service import SubscriptionApplicationService
from tests.unit.fakes import InMemoryLedgerStore

NOW = datetime(2026, 3, 1, tzinfo=UTC)


def _plan(plan_id: str = "free", price: int = 0, rate: int = 2000) -> SubscriptionPlan:
    return SubscriptionPlan(id=plan_id, name=plan_id.title(), price=price,
                            duration_months=1, commission_rate_bps=rate)


class TestListPlans:
    async def test_maps_plans(self) -> None:
        repo = AsyncMock()
        repo.list_plans.return_value = [_plan(), _plan("pro", 500000, 3500)]
        plans = await SubscriptionApplicationService(repo=repo, store=AsyncMock()).list_plans(
            AsyncMock()
        )
        assert [p.id for p in plans] == ["free", "pro"]
        assert plans[0].is_free is True
        assert plans[1].price_display == "₦5,000.00"
        assert plans[1].commission_rate_display == "35.00%"


class TestGetCurrent:
    async def test_none_when_no_active(self) -> None:
        repo = AsyncMock()
        repo.get_current.return_value = None
        svc = SubscriptionApplicationService(repo=repo, store=AsyncMock())
        assert await svc.get_current(AsyncMock(), "user-1", NOW) is None

    async def test_returns_subscription_with_plan(self) -> None:
        sub = UserSubscription(id="sub-1", user_id="user-1", plan_id="pro", status="active",
                               start_date=NOW, end_date=NOW + timedelta(days=31))
        repo = AsyncMock()
        repo.get_current.return_value = (sub, _plan("pro", 500000, 3500))
        svc = SubscriptionApplicationService(repo=repo, store=AsyncMock())

        result = await svc.get_current(AsyncMock(), "user-1", NOW)

        assert result is not None
        assert result.plan.commission_rate_bps == 3500
        assert result.status == "active"


class TestActivateFree:
    async def test_activates_and_replaces(self) -> None:
        store = InMemoryLedgerStore()
        store.add_plan("free", rate_bps=2000, price=0)
        store.add_plan("pro", rate_bps=3500, price=500000)
        old = store.add_subscription("user-1", "pro", NOW - timedelta(days=40), NOW - timedelta(days=9))
        db = AsyncMock()
        svc = SubscriptionApplicationService(repo=AsyncMock(), store=store)

        result = await svc.activate_free(db, "user-1", FreeSubscriptionRequest(plan_id="free"))

        assert result.plan.id == "free"
        assert old.status == "cancelled"
        assert store.subscriptions[-1].transaction_id is None
        db.commit.assert_awaited_once()

    async def test_paid_plan_rejected(self) -> None:
        store = InMemoryLedgerStore()
        store.add_plan("pro", rate_bps=3500, price=500000)
        db = AsyncMock()
        with pytest.raises(PlanNotFreeError):
            await SubscriptionApplicationService(repo=AsyncMock(), store=store).activate_free(
                db, "user-1", FreeSubscriptionRequest(plan_id="pro")
            )
        assert store.subscriptions == []
        db.commit.assert_not_awaited()

    async def test_unknown_plan(self) -> None:
        with pytest.raises(PlanNotFoundError):
            await SubscriptionApplicationService(
                repo=AsyncMock(), store=InMemoryLedgerStore()
            ).activate_free(AsyncMock(), "user-1", FreeSubscriptionRequest(plan_id="nope"))
