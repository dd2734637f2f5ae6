"""LedgerStore — concrete implementation of LedgerStoreProtocol.

Raw SQL through the caller's session; nothing here commits. Unique-key
violations on transaction ids are surfaced as DuplicateEventError so a
concurrent second delivery is reported the same way as a sequential one.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import is_unique_violation
from src.mp_common.enums import ReferralCommissionStatus, SaleStatus, SubscriptionStatus
from src.mp_common.errors import DuplicateEventError, InternalError
from src.mp_settlement.domain.models import (
    ActiveSubscription,
    BuyerProfile,
    Product,
    SaleRecord,
    SubscriptionPlan,
    UserSubscription,
)

_SALES_TXN_CONSTRAINT = "uq_sales_transaction_id"
_SUBS_TXN_CONSTRAINT = "uq_user_subscriptions_transaction_id"

_CLAIM_REFERENCE_SQL = text("""
    INSERT INTO processed_payments (reference, purchase_type)
    VALUES (:reference, :purchase_type)
    ON CONFLICT (reference) DO NOTHING
    RETURNING reference
""")

_GET_PRODUCT_SQL = text("""
    SELECT id, title, price, is_active, download_count, file_path
    FROM products
    WHERE id = :product_id
""")

_GET_PLAN_SQL = text("""
    SELECT id, name, price, duration_months, commission_rate_bps
    FROM subscription_plans
    WHERE id = :plan_id
""")

_GET_PROFILE_BY_EMAIL_SQL = text("""
    SELECT user_id, email, referral_code
    FROM profiles
    WHERE LOWER(email) = LOWER(:email)
    LIMIT 1
""")

_GET_PROFILE_BY_CODE_SQL = text("""
    SELECT user_id, email, referral_code
    FROM profiles
    WHERE referral_code = :referral_code
""")

_GET_ACTIVE_SUBSCRIPTION_SQL = text("""
    SELECT s.id, s.user_id, s.plan_id, p.commission_rate_bps, s.start_date, s.end_date
    FROM user_subscriptions s
    JOIN subscription_plans p ON p.id = s.plan_id
    WHERE s.user_id = :user_id
      AND s.status = 'active'
      AND s.end_date > :now
    ORDER BY s.start_date DESC
    LIMIT 1
""")

_INSERT_SALE_SQL = text("""
    INSERT INTO sales
        (product_id, buyer_id, buyer_email, sale_amount, commission_amount,
         referral_commission_amount, admin_amount, transaction_id,
         referral_code, status)
    VALUES
        (:product_id, :buyer_id, :buyer_email, :sale_amount, :commission_amount,
         :referral_commission_amount, :admin_amount, :transaction_id,
         :referral_code, :status)
    RETURNING id, product_id, buyer_id, buyer_email, sale_amount, commission_amount,
              referral_commission_amount, admin_amount, transaction_id, status
""")

_INSERT_REFERRAL_COMMISSION_SQL = text("""
    INSERT INTO referral_commissions
        (referrer_id, referred_user_id, product_id, sale_id,
         commission_amount, commission_rate_bps, status)
    VALUES
        (:referrer_id, :referred_user_id, :product_id, :sale_id,
         :commission_amount, :commission_rate_bps, :status)
    RETURNING id
""")

_INSERT_DOWNLOAD_SQL = text("""
    INSERT INTO downloads (user_id, product_id, buyer_email, sale_id, download_count, expires_at)
    VALUES (:user_id, :product_id, :buyer_email, :sale_id, 0, :expires_at)
    RETURNING id
""")

_INCREMENT_DOWNLOAD_COUNT_SQL = text("""
    UPDATE products
    SET download_count = download_count + 1
    WHERE id = :product_id
""")

_CANCEL_ACTIVE_SUBSCRIPTIONS_SQL = text("""
    UPDATE user_subscriptions
    SET status = 'cancelled'
    WHERE user_id = :user_id AND status = 'active'
""")

_INSERT_SUBSCRIPTION_SQL = text("""
    INSERT INTO user_subscriptions
        (user_id, plan_id, status, start_date, end_date, transaction_id)
    VALUES
        (:user_id, :plan_id, :status, :start_date, :end_date, :transaction_id)
    RETURNING id, user_id, plan_id, status, start_date, end_date, transaction_id
""")


def _row_to_profile(row: object) -> BuyerProfile:
    return BuyerProfile(
        user_id=row.user_id,  # type: ignore[attr-defined]
        email=row.email,  # type: ignore[attr-defined]
        referral_code=row.referral_code,  # type: ignore[attr-defined]
    )


def row_to_plan(row: object) -> SubscriptionPlan:
    return SubscriptionPlan(
        id=str(row.id),  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        price=row.price,  # type: ignore[attr-defined]
        duration_months=row.duration_months,  # type: ignore[attr-defined]
        commission_rate_bps=row.commission_rate_bps,  # type: ignore[attr-defined]
    )


def row_to_subscription(row: object) -> UserSubscription:
    return UserSubscription(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        plan_id=str(row.plan_id),  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        start_date=row.start_date,  # type: ignore[attr-defined]
        end_date=row.end_date,  # type: ignore[attr-defined]
        transaction_id=row.transaction_id,  # type: ignore[attr-defined]
    )


class LedgerStore:
    async def claim_reference(
        self, db: AsyncSession, reference: str, purchase_type: str
    ) -> bool:
        result = await db.execute(
            _CLAIM_REFERENCE_SQL,
            {"reference": reference, "purchase_type": purchase_type},
        )
        return result.fetchone() is not None

    async def get_product_by_id(
        self, db: AsyncSession, product_id: str
    ) -> Product | None:
        result = await db.execute(_GET_PRODUCT_SQL, {"product_id": product_id})
        row = result.fetchone()
        if row is None:
            return None
        return Product(
            id=str(row.id),
            title=row.title,
            price=row.price,
            is_active=row.is_active,
            download_count=row.download_count,
            file_path=row.file_path,
        )

    async def get_plan_by_id(
        self, db: AsyncSession, plan_id: str
    ) -> SubscriptionPlan | None:
        result = await db.execute(_GET_PLAN_SQL, {"plan_id": plan_id})
        row = result.fetchone()
        return row_to_plan(row) if row else None

    async def get_profile_by_email(
        self, db: AsyncSession, email: str
    ) -> BuyerProfile | None:
        result = await db.execute(_GET_PROFILE_BY_EMAIL_SQL, {"email": email})
        row = result.fetchone()
        return _row_to_profile(row) if row else None

    async def get_profile_by_referral_code(
        self, db: AsyncSession, referral_code: str
    ) -> BuyerProfile | None:
        result = await db.execute(
            _GET_PROFILE_BY_CODE_SQL, {"referral_code": referral_code}
        )
        row = result.fetchone()
        return _row_to_profile(row) if row else None

    async def get_active_subscription_for_user(
        self, db: AsyncSession, user_id: str, now: datetime
    ) -> ActiveSubscription | None:
        result = await db.execute(
            _GET_ACTIVE_SUBSCRIPTION_SQL, {"user_id": user_id, "now": now}
        )
        row = result.fetchone()
        if row is None:
            return None
        return ActiveSubscription(
            id=str(row.id),
            user_id=row.user_id,
            plan_id=str(row.plan_id),
            commission_rate_bps=row.commission_rate_bps,
            start_date=row.start_date,
            end_date=row.end_date,
        )

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
    ) -> SaleRecord:
        try:
            result = await db.execute(
                _INSERT_SALE_SQL,
                {
                    "product_id": product_id,
                    "buyer_id": buyer_id,
                    "buyer_email": buyer_email,
                    "sale_amount": sale_amount,
                    "commission_amount": commission_amount,
                    "referral_commission_amount": referral_commission_amount,
                    "admin_amount": admin_amount,
                    "transaction_id": transaction_id,
                    "referral_code": referral_code,
                    "status": SaleStatus.COMPLETED,
                },
            )
        except IntegrityError as e:
            if is_unique_violation(e, _SALES_TXN_CONSTRAINT):
                raise DuplicateEventError(transaction_id) from e
            raise
        row = result.fetchone()
        if row is None:
            raise InternalError("Sale insert returned no rows — this should never happen")
        return SaleRecord(
            id=str(row.id),
            product_id=str(row.product_id),
            buyer_id=row.buyer_id,
            buyer_email=row.buyer_email,
            sale_amount=row.sale_amount,
            commission_amount=row.commission_amount,
            referral_commission_amount=row.referral_commission_amount,
            admin_amount=row.admin_amount,
            transaction_id=row.transaction_id,
            status=row.status,
        )

    async def insert_referral_commission(
        self,
        db: AsyncSession,
        referrer_id: str,
        referred_user_id: str,
        product_id: str,
        sale_id: str,
        commission_amount: int,
        commission_rate_bps: int,
    ) -> str:
        result = await db.execute(
            _INSERT_REFERRAL_COMMISSION_SQL,
            {
                "referrer_id": referrer_id,
                "referred_user_id": referred_user_id,
                "product_id": product_id,
                "sale_id": sale_id,
                "commission_amount": commission_amount,
                "commission_rate_bps": commission_rate_bps,
                "status": ReferralCommissionStatus.COMPLETED,
            },
        )
        return str(result.scalar_one())

    async def insert_download(
        self,
        db: AsyncSession,
        user_id: str | None,
        product_id: str,
        buyer_email: str,
        sale_id: str,
        expires_at: datetime,
    ) -> str:
        result = await db.execute(
            _INSERT_DOWNLOAD_SQL,
            {
                "user_id": user_id,
                "product_id": product_id,
                "buyer_email": buyer_email,
                "sale_id": sale_id,
                "expires_at": expires_at,
            },
        )
        return str(result.scalar_one())

    async def increment_product_download_count(
        self, db: AsyncSession, product_id: str
    ) -> None:
        await db.execute(_INCREMENT_DOWNLOAD_COUNT_SQL, {"product_id": product_id})

    async def replace_active_subscription(
        self,
        db: AsyncSession,
        user_id: str,
        plan_id: str,
        start_date: datetime,
        end_date: datetime,
        transaction_id: str | None,
    ) -> UserSubscription:
        await db.execute(_CANCEL_ACTIVE_SUBSCRIPTIONS_SQL, {"user_id": user_id})
        try:
            result = await db.execute(
                _INSERT_SUBSCRIPTION_SQL,
                {
                    "user_id": user_id,
                    "plan_id": plan_id,
                    "status": SubscriptionStatus.ACTIVE,
                    "start_date": start_date,
                    "end_date": end_date,
                    "transaction_id": transaction_id,
                },
            )
        except IntegrityError as e:
            if transaction_id is not None and is_unique_violation(e, _SUBS_TXN_CONSTRAINT):
                raise DuplicateEventError(transaction_id) from e
            raise
        row = result.fetchone()
        if row is None:
            raise InternalError("Subscription insert returned no rows — this should never happen")
        return row_to_subscription(row)
