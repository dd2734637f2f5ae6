"""PaymentsApplicationService — webhook intake and transaction initialization.

Webhook flow: verify signature -> parse -> settle in one transaction.
Duplicate deliveries and charges that name neither (or both) of a product and
a plan are acknowledged (200) without writes; missing catalog
or profile rows fail the delivery (500) so Paystack retries it later.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import SettlementOutcome
from src.mp_common.errors import (
    AppError,
    DuplicateEventError,
    InvalidAmountError,
    InvalidPaymentEventError,
    InvalidSignatureError,
    PlanNotFoundError,
    ProductNotFoundError,
    ProfileNotFoundError,
    SettlementFailedError,
)
from src.mp_common.kobo import naira_to_kobo
from src.mp_payments.application.schemas import (
    ChargeData,
    InitializeRequest,
    InitializeResponse,
    WebhookAckResponse,
    WebhookPayload,
)
from src.mp_payments.domain.signature import verify_signature
from src.mp_payments.infrastructure.paystack_client import PaystackClient
from src.mp_settlement.domain.engine import SettlementEngine

logger = logging.getLogger(__name__)

_RETRYABLE_NOT_FOUND = (ProductNotFoundError, PlanNotFoundError, ProfileNotFoundError)


class PaymentsApplicationService:
    def __init__(
        self,
        engine: SettlementEngine,
        client: PaystackClient,
        webhook_secret: str,
        callback_url: str | None = None,
    ) -> None:
        self._engine = engine
        self._client = client
        self._secret = webhook_secret
        self._callback_url = callback_url

    async def handle_webhook(
        self, db: AsyncSession, raw_body: bytes, signature: str | None
    ) -> WebhookAckResponse:
        if not verify_signature(raw_body, signature, self._secret):
            logger.warning("Webhook rejected: invalid signature (len=%d)", len(raw_body))
            raise InvalidSignatureError()

        payload = WebhookPayload.parse_body(raw_body)
        if not payload.is_charge_success:
            logger.info("Webhook event ignored: %s", payload.event)
            return WebhookAckResponse(reference=None, outcome=SettlementOutcome.IGNORED.value)

        try:
            event = payload.to_payment_event()
        except InvalidPaymentEventError as e:
            # Charges from other checkouts on the same account carry no product or plan
            reference = payload.data.reference if isinstance(payload.data, ChargeData) else None
            logger.warning("Charge ignored: ref=%s %s", reference, e.message)
            return WebhookAckResponse(
                reference=reference, outcome=SettlementOutcome.IGNORED.value
            )

        try:
            result = await self._engine.settle(db, event)
            await db.commit()
        except DuplicateEventError:
            await db.rollback()
            logger.warning("Duplicate webhook delivery: ref=%s", event.reference)
            return WebhookAckResponse(
                reference=event.reference, outcome=SettlementOutcome.DUPLICATE.value
            )
        except _RETRYABLE_NOT_FOUND as e:
            await db.rollback()
            logger.error("Settlement failed: ref=%s %s", event.reference, e.message)
            raise SettlementFailedError(event.reference, e.message) from e
        except AppError:
            await db.rollback()
            raise
        except Exception as e:
            await db.rollback()
            logger.exception("Settlement crashed: ref=%s", event.reference)
            raise SettlementFailedError(event.reference, type(e).__name__) from e

        return WebhookAckResponse(
            reference=result.reference,
            outcome=result.outcome,
            purchase_type=result.purchase_type,
        )

    async def initialize(self, body: InitializeRequest) -> InitializeResponse:
        if (body.productId is None) == (body.planId is None):
            raise InvalidPaymentEventError("exactly one of productId / planId is required")
        try:
            amount_kobo = naira_to_kobo(body.amount)
        except ValueError as e:
            raise InvalidAmountError(str(e)) from e

        data = await self._client.initialize_transaction(
            email=body.email,
            amount_kobo=amount_kobo,
            callback_url=self._callback_url,
            metadata=body.metadata(),
        )
        return InitializeResponse(data=data)
