"""mp_payments REST API — Paystack initialize and webhook endpoints.

Neither endpoint requires a bearer token: the webhook is authenticated by its
HMAC signature, and initialize only forwards a checkout to Paystack.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, respond
from src.mp_payments.application.schemas import InitializeRequest
from src.mp_payments.application.service import PaymentsApplicationService
from src.mp_payments.infrastructure.paystack_client import PaystackClient
from src.mp_settlement.domain.engine import SettlementEngine
from src.mp_settlement.domain.policy import SettlementPolicy
from src.mp_settlement.infrastructure.persistence import LedgerStore
from src.mp_wallet.infrastructure.persistence import WalletRepository

router = APIRouter(prefix="/paystack", tags=["payments"])

_service = PaymentsApplicationService(
    engine=SettlementEngine.build(
        LedgerStore(), WalletRepository(), SettlementPolicy.from_settings(settings)
    ),
    client=PaystackClient(
        secret_key=settings.PAYSTACK_SECRET_KEY,
        base_url=settings.PAYSTACK_BASE_URL,
        timeout_seconds=settings.PAYSTACK_TIMEOUT_SECONDS,
        max_retries=settings.PAYSTACK_MAX_RETRIES,
    ),
    webhook_secret=settings.PAYSTACK_SECRET_KEY,
    callback_url=settings.PAYSTACK_CALLBACK_URL,
)


@router.post("/initialize")
async def initialize_payment(body: InitializeRequest, request: Request) -> ApiResponse:
    data = await _service.initialize(body)
    return respond(request, data, "Payment initialized")


@router.post("/webhook")
async def paystack_webhook(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    x_paystack_signature: Annotated[str | None, Header()] = None,
) -> ApiResponse:
    # Signature covers the exact bytes Paystack sent; parse only after verifying
    raw_body = await request.body()
    ack = await _service.handle_webhook(db, raw_body, x_paystack_signature)
    return respond(request, ack, ack.outcome)
