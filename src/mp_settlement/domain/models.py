"""Domain models for mp_settlement — pure dataclasses, no SQLAlchemy dependency.

All amounts are int kobo; all rates are int basis points.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class PaymentEvent:
    """A verified, successful gateway charge, ready for settlement."""

    reference: str          # gateway reference, unique per charge
    amount_kobo: int        # > 0
    customer_email: str
    product_id: str | None = None
    plan_id: str | None = None
    referral_code: str | None = None

    def __post_init__(self) -> None:
        if self.amount_kobo <= 0:
            raise ValueError(f"amount_kobo must be > 0, got {self.amount_kobo}")
        if (self.product_id is None) == (self.plan_id is None):
            raise ValueError("exactly one of product_id / plan_id must be set")


@dataclass
class Product:
    id: str
    title: str
    price: int               # kobo
    is_active: bool
    download_count: int
    file_path: str | None = None


@dataclass
class SubscriptionPlan:
    id: str
    name: str
    price: int               # kobo, 0 for the free tier
    duration_months: int
    commission_rate_bps: int


@dataclass
class BuyerProfile:
    user_id: str
    email: str
    referral_code: str | None = None


@dataclass
class ActiveSubscription:
    id: str
    user_id: str
    plan_id: str
    commission_rate_bps: int
    start_date: datetime
    end_date: datetime


@dataclass
class UserSubscription:
    id: str
    user_id: str
    plan_id: str
    status: str              # SubscriptionStatus value
    start_date: datetime
    end_date: datetime
    transaction_id: str | None = None


@dataclass(frozen=True)
class ProductSplit:
    """Money split of one product sale. Components always sum to sale_amount."""

    sale_amount: int
    commission_rate_bps: int
    gross_commission: int        # before the referral carve-out
    referral_amount: int         # carved out of gross_commission
    admin_amount: int            # platform share

    @property
    def buyer_commission(self) -> int:
        return self.gross_commission - self.referral_amount


@dataclass(frozen=True)
class ReferralAward:
    referrer_id: str
    amount: int
    rate_bps: int


@dataclass
class SaleRecord:
    id: str
    product_id: str
    buyer_id: str | None
    buyer_email: str
    sale_amount: int
    commission_amount: int
    referral_commission_amount: int
    admin_amount: int
    transaction_id: str
    status: str


@dataclass
class SettlementResult:
    reference: str
    purchase_type: str           # PurchaseType value
    outcome: str                 # SettlementOutcome value
    buyer_id: str | None = None
    sale_id: str | None = None
    subscription_id: str | None = None
    sale_amount: int = 0
    commission_amount: int = 0   # credited to the buyer (net of referral)
    referral_amount: int = 0
    admin_amount: int = 0
    referrer_id: str | None = None
