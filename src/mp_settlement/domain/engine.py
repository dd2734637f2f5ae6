"""SettlementEngine — applies one verified payment to the ledger.

settle() performs every write of a settlement through the caller's session
and never commits. The caller wraps it in one transaction, so a settlement
is either applied in full (marker, sale or subscription, download, wallet
credits) or not at all.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.datetime_utils import add_months, utc_now
from src.mp_common.enums import PurchaseType, SettlementOutcome, WalletEntryType
from src.mp_common.errors import (
    DuplicateEventError,
    PlanNotFoundError,
    ProductNotFoundError,
    ProfileNotFoundError,
)
from src.mp_settlement.domain.invariants import verify_sale_split
from src.mp_settlement.domain.models import PaymentEvent, SettlementResult
from src.mp_settlement.domain.policy import SettlementPolicy
from src.mp_settlement.domain.rate_resolver import CommissionRateResolver
from src.mp_settlement.domain.referral_resolver import ReferralResolver
from src.mp_settlement.domain.repository import LedgerStoreProtocol
from src.mp_settlement.domain.split import compute_product_split, gross_commission
from src.mp_wallet.domain.repository import WalletRepositoryProtocol

logger = logging.getLogger(__name__)


class SettlementEngine:
    def __init__(
        self,
        store: LedgerStoreProtocol,
        wallets: WalletRepositoryProtocol,
        rate_resolver: CommissionRateResolver,
        referral_resolver: ReferralResolver,
        policy: SettlementPolicy,
    ) -> None:
        self._store = store
        self._wallets = wallets
        self._rates = rate_resolver
        self._referrals = referral_resolver
        self._policy = policy

    @classmethod
    def build(
        cls,
        store: LedgerStoreProtocol,
        wallets: WalletRepositoryProtocol,
        policy: SettlementPolicy,
    ) -> "SettlementEngine":
        return cls(
            store=store,
            wallets=wallets,
            rate_resolver=CommissionRateResolver(store, policy),
            referral_resolver=ReferralResolver(store, policy),
            policy=policy,
        )

    async def settle(
        self, db: AsyncSession, event: PaymentEvent, now: datetime | None = None
    ) -> SettlementResult:
        """Apply a payment exactly once.

        Raises DuplicateEventError if the reference was already settled, and
        ProductNotFoundError / PlanNotFoundError / ProfileNotFoundError when
        the referenced rows are missing.
        """
        now = now or utc_now()
        purchase_type = (
            PurchaseType.PRODUCT if event.product_id is not None else PurchaseType.SUBSCRIPTION
        )
        claimed = await self._store.claim_reference(db, event.reference, purchase_type)
        if not claimed:
            raise DuplicateEventError(event.reference)

        if purchase_type == PurchaseType.PRODUCT:
            result = await self._settle_product(db, event, now)
        else:
            result = await self._settle_subscription(db, event, now)

        logger.info(
            "Settled %s: ref=%s amount=%d buyer=%s commission=%d referral=%d admin=%d",
            purchase_type.value, event.reference, event.amount_kobo, result.buyer_id,
            result.commission_amount, result.referral_amount, result.admin_amount,
        )
        return result

    async def _settle_product(
        self, db: AsyncSession, event: PaymentEvent, now: datetime
    ) -> SettlementResult:
        product_id = event.product_id
        assert product_id is not None
        product = await self._store.get_product_by_id(db, product_id)
        if product is None or not product.is_active:
            raise ProductNotFoundError(product_id)

        buyer = await self._store.get_profile_by_email(db, event.customer_email)
        buyer_id = buyer.user_id if buyer else None
        rate_bps = await self._rates.resolve(db, buyer, now)

        gross = gross_commission(event.amount_kobo, rate_bps)
        award = await self._referrals.resolve_for_product(
            db, event.referral_code, buyer_id, gross
        )
        split = compute_product_split(
            event.amount_kobo, rate_bps, award.amount if award else 0
        )

        sale = await self._store.insert_sale(
            db,
            product_id=product.id,
            buyer_id=buyer_id,
            buyer_email=event.customer_email,
            sale_amount=split.sale_amount,
            commission_amount=split.buyer_commission,
            referral_commission_amount=split.referral_amount,
            admin_amount=split.admin_amount,
            transaction_id=event.reference,
            referral_code=event.referral_code if award else None,
        )
        await self._store.increment_product_download_count(db, product.id)
        await self._store.insert_download(
            db,
            user_id=buyer_id,
            product_id=product.id,
            buyer_email=event.customer_email,
            sale_id=sale.id,
            expires_at=now + timedelta(days=self._policy.download_ttl_days),
        )

        if buyer_id is not None and split.buyer_commission > 0:
            await self._wallets.credit(
                db, buyer_id, split.buyer_commission,
                WalletEntryType.SALE_COMMISSION, "SALE", sale.id,
                f"Commission on {product.title}",
            )
        if award is not None:
            assert buyer_id is not None
            await self._wallets.credit(
                db, award.referrer_id, award.amount,
                WalletEntryType.REFERRAL_COMMISSION, "SALE", sale.id,
                f"Referral commission on {product.title}",
            )
            await self._store.insert_referral_commission(
                db,
                referrer_id=award.referrer_id,
                referred_user_id=buyer_id,
                product_id=product.id,
                sale_id=sale.id,
                commission_amount=award.amount,
                commission_rate_bps=award.rate_bps,
            )

        verify_sale_split(split)
        return SettlementResult(
            reference=event.reference,
            purchase_type=PurchaseType.PRODUCT.value,
            outcome=SettlementOutcome.SETTLED.value,
            buyer_id=buyer_id,
            sale_id=sale.id,
            sale_amount=split.sale_amount,
            commission_amount=split.buyer_commission,
            referral_amount=split.referral_amount,
            admin_amount=split.admin_amount,
            referrer_id=award.referrer_id if award else None,
        )

    async def _settle_subscription(
        self, db: AsyncSession, event: PaymentEvent, now: datetime
    ) -> SettlementResult:
        plan_id = event.plan_id
        assert plan_id is not None
        plan = await self._store.get_plan_by_id(db, plan_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)
        buyer = await self._store.get_profile_by_email(db, event.customer_email)
        if buyer is None:
            raise ProfileNotFoundError(event.customer_email)

        subscription = await self._store.replace_active_subscription(
            db,
            user_id=buyer.user_id,
            plan_id=plan.id,
            start_date=now,
            end_date=add_months(now, plan.duration_months),
            transaction_id=event.reference,
        )

        # Subscription referrals credit the wallet only; no referral_commissions row.
        award = await self._referrals.resolve_for_subscription(
            db, event.referral_code, buyer.user_id, event.amount_kobo
        )
        if award is not None:
            await self._wallets.credit(
                db, award.referrer_id, award.amount,
                WalletEntryType.SUBSCRIPTION_REFERRAL, "SUBSCRIPTION", subscription.id,
                f"Referral commission on {plan.name} subscription",
            )

        referral = award.amount if award else 0
        return SettlementResult(
            reference=event.reference,
            purchase_type=PurchaseType.SUBSCRIPTION.value,
            outcome=SettlementOutcome.SETTLED.value,
            buyer_id=buyer.user_id,
            subscription_id=subscription.id,
            sale_amount=event.amount_kobo,
            referral_amount=referral,
            admin_amount=event.amount_kobo - referral,
            referrer_id=award.referrer_id if award else None,
        )
