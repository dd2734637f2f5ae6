"""Pydantic schemas for mp_subscription API."""

from pydantic import BaseModel, Field

from src.mp_common.kobo import bps_to_display, kobo_to_display
from src.mp_settlement.domain.models import SubscriptionPlan, UserSubscription


class FreeSubscriptionRequest(BaseModel):
    plan_id: str = Field(..., min_length=1, max_length=64)


class PlanResponse(BaseModel):
    id: str
    name: str
    price_kobo: int
    price_display: str
    duration_months: int
    commission_rate_bps: int
    commission_rate_display: str
    is_free: bool

    @classmethod
    def from_plan(cls, plan: SubscriptionPlan) -> "PlanResponse":
        return cls(
            id=plan.id,
            name=plan.name,
            price_kobo=plan.price,
            price_display=kobo_to_display(plan.price),
            duration_months=plan.duration_months,
            commission_rate_bps=plan.commission_rate_bps,
            commission_rate_display=bps_to_display(plan.commission_rate_bps),
            is_free=plan.price == 0,
        )


class SubscriptionResponse(BaseModel):
    id: str
    status: str
    start_date: str
    end_date: str
    plan: PlanResponse

    @classmethod
    def from_subscription(
        cls, sub: UserSubscription, plan: SubscriptionPlan
    ) -> "SubscriptionResponse":
        return cls(
            id=sub.id,
            status=sub.status,
            start_date=sub.start_date.isoformat(),
            end_date=sub.end_date.isoformat(),
            plan=PlanResponse.from_plan(plan),
        )
