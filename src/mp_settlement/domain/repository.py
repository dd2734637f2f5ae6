"""Ledger store Protocol — the reads and writes settlement needs.

Every method is atomic at the single-row level. Multi-row atomicity comes
from the caller's transaction wrapping the whole settle() call.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_settlement.domain.models import (
    ActiveSubscription,
    BuyerProfile,
    Product,
    SaleRecord,
    SubscriptionPlan,
    UserSubscription,
)


class LedgerStoreProtocol(Protocol):
    async def claim_reference(
        self, db: AsyncSession, reference: str, purchase_type: str
    ) -> bool:
        """Insert the settlement-applied marker. False if it already existed."""
        ...

    async def get_product_by_id(
        self, db: AsyncSession, product_id: str
    ) -> Product | None: ...

    async def get_plan_by_id(
        self, db: AsyncSession, plan_id: str
    ) -> SubscriptionPlan | None: ...

    async def get_profile_by_email(
        self, db: AsyncSession, email: str
    ) -> BuyerProfile | None: ...

    async def get_profile_by_referral_code(
        self, db: AsyncSession, referral_code: str
    ) -> BuyerProfile | None: ...

    async def get_active_subscription_for_user(
        self, db: AsyncSession, user_id: str, now: datetime
    ) -> ActiveSubscription | None: ...

    async def insert_sale(
        self,
        db: AsyncSession,
        product_id: str,
        buyer_id: str | None,
        buyer_email: str,
        sale_amount: int,
        commission_amount: int,
        referral_commission_amount: int,
        admin_amount: int,
        transaction_id: str,
        referral_code: str | None,
    ) -> SaleRecord: ...

    async def insert_referral_commission(
        self,
        db: AsyncSession,
        referrer_id: str,
        referred_user_id: str,
        product_id: str,
        sale_id: str,
        commission_amount: int,
        commission_rate_bps: int,
    ) -> str: ...

    async def insert_download(
        self,
        db: AsyncSession,
        user_id: str | None,
        product_id: str,
        buyer_email: str,
        sale_id: str,
        expires_at: datetime,
    ) -> str: ...

    async def increment_product_download_count(
        self, db: AsyncSession, product_id: str
    ) -> None: ...

    async def replace_active_subscription(
        self,
        db: AsyncSession,
        user_id: str,
        plan_id: str,
        start_date: datetime,
        end_date: datetime,
        transaction_id: str | None,
    ) -> UserSubscription: ...
