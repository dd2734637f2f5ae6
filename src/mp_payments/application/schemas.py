"""Pydantic request/response schemas for mp_payments.

Webhook DTOs are deliberately narrow: only the fields settlement reads are
declared; everything else Paystack sends is ignored.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.mp_common.enums import PurchaseType, WebhookEvent
from src.mp_common.errors import InvalidPaymentEventError, MalformedWebhookError
from src.mp_settlement.domain.models import PaymentEvent


def _blank_to_none(v: object) -> object:
    if isinstance(v, str) and not v.strip():
        return None
    return v


# profiles.referral_code is VARCHAR(32); a longer code can never match a referrer
REFERRAL_CODE_MAX_LENGTH = 32


# ---------------------------------------------------------------------------
# Webhook (inbound)
# ---------------------------------------------------------------------------


class PaymentMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore")

    productId: str | None = None
    planId: str | None = None
    referralCode: str | None = None

    @field_validator("productId", "planId", "referralCode", mode="before")
    @classmethod
    def blank_is_none(cls, v: object) -> object:
        return _blank_to_none(v)

    @field_validator("referralCode")
    @classmethod
    def drop_oversized_code(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v if len(v) <= REFERRAL_CODE_MAX_LENGTH else None


class Customer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str = Field(..., min_length=3)


class ChargeData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    reference: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0, description="Amount in kobo")
    customer: Customer
    metadata: PaymentMetadata = Field(default_factory=PaymentMetadata)

    @field_validator("metadata", mode="before")
    @classmethod
    def empty_metadata(cls, v: object) -> object:
        # Paystack sends "" or null when no metadata was attached
        return v or {}


class WebhookPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    event: str
    data: ChargeData | dict

    @property
    def is_charge_success(self) -> bool:
        return self.event == WebhookEvent.CHARGE_SUCCESS

    @classmethod
    def parse_body(cls, raw_body: bytes) -> "WebhookPayload":
        """Parse the raw webhook body. Raises MalformedWebhookError.

        data is only validated strictly for charge.success; other events are
        acknowledged without settlement and may carry any shape.
        """
        try:
            envelope = _EventEnvelope.model_validate_json(raw_body)
        except ValidationError as e:
            raise MalformedWebhookError(_first_error(e)) from e
        if envelope.event != WebhookEvent.CHARGE_SUCCESS:
            return cls(event=envelope.event, data=envelope.data)
        try:
            data = ChargeData.model_validate(envelope.data)
        except ValidationError as e:
            raise MalformedWebhookError(_first_error(e)) from e
        return cls(event=envelope.event, data=data)

    def to_payment_event(self) -> PaymentEvent:
        """Raises InvalidPaymentEventError unless exactly one of productId / planId is set."""
        data = self.data
        if not isinstance(data, ChargeData):
            raise InvalidPaymentEventError(f"event {self.event} carries no charge")
        meta = data.metadata
        if (meta.productId is None) == (meta.planId is None):
            raise InvalidPaymentEventError(
                "exactly one of metadata.productId / metadata.planId is required"
            )
        return PaymentEvent(
            reference=data.reference,
            amount_kobo=data.amount,
            customer_email=data.customer.email.strip(),
            product_id=meta.productId,
            plan_id=meta.planId,
            referral_code=meta.referralCode,
        )


class _EventEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    event: str = Field(..., min_length=1)
    data: dict = Field(default_factory=dict)


def _first_error(e: ValidationError) -> str:
    err = e.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ())) or "body"
    return f"{loc}: {err.get('msg', 'invalid')}"


class WebhookAckResponse(BaseModel):
    reference: str | None
    outcome: str            # SettlementOutcome value
    purchase_type: str | None = None


# ---------------------------------------------------------------------------
# Initialize (client -> us -> Paystack)
# ---------------------------------------------------------------------------


class InitializeRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    amount: Decimal = Field(..., description="Amount in naira")
    productId: str | None = None
    planId: str | None = None
    referralCode: str | None = None

    @field_validator("productId", "planId", "referralCode", mode="before")
    @classmethod
    def blank_is_none(cls, v: object) -> object:
        return _blank_to_none(v)

    @property
    def payment_type(self) -> PurchaseType:
        return PurchaseType.PRODUCT if self.productId else PurchaseType.SUBSCRIPTION

    def metadata(self) -> dict:
        return {
            "productId": self.productId,
            "planId": self.planId,
            "referralCode": self.referralCode,
            "paymentType": self.payment_type.value,
        }


class InitializeTransactionData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    authorization_url: str
    access_code: str
    reference: str


class PaystackEnvelope(BaseModel):
    """Outer shape of every Paystack API response."""

    model_config = ConfigDict(extra="ignore")

    status: bool
    message: str = ""
    data: dict | None = None


class InitializeResponse(BaseModel):
    success: bool = True
    data: InitializeTransactionData
