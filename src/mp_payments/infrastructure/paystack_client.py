"""Paystack REST client (outbound calls only).

Transport errors and 5xx responses are retried with exponential backoff;
4xx responses and `status: false` envelopes are final.
"""

import logging

import httpx
from pydantic import ValidationError

from src.mp_common.errors import GatewayUnavailableError, PaymentInitializationError
from src.mp_common.retry import RetryableError, retry_async
from src.mp_payments.application.schemas import (
    InitializeTransactionData,
    PaystackEnvelope,
)

logger = logging.getLogger(__name__)


class PaystackClient:
    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.paystack.co",
        timeout_seconds: float = 10.0,
        max_retries: int = 3,
        base_delay: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._transport = transport
        self._post = retry_async(max_retries=max_retries, base_delay=base_delay)(
            self._post_once
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._secret_key}",
            "Content-Type": "application/json",
        }

    async def _post_once(self, path: str, payload: dict) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                resp = await client.post(path, json=payload, headers=self._headers())
        except httpx.TransportError as e:
            raise RetryableError(f"transport error: {e}") from e
        if resp.status_code >= 500:
            raise RetryableError(f"HTTP {resp.status_code}")
        return resp

    async def initialize_transaction(
        self,
        email: str,
        amount_kobo: int,
        callback_url: str | None,
        metadata: dict,
    ) -> InitializeTransactionData:
        payload: dict = {"email": email, "amount": amount_kobo, "metadata": metadata}
        if callback_url:
            payload["callback_url"] = callback_url
        try:
            resp = await self._post("/transaction/initialize", payload)
        except RetryableError as e:
            raise GatewayUnavailableError(f"Paystack unavailable: {e}") from e

        try:
            envelope = PaystackEnvelope.model_validate_json(resp.content)
        except ValidationError as e:
            raise PaymentInitializationError(
                f"unexpected response (HTTP {resp.status_code})"
            ) from e
        if not envelope.status or envelope.data is None:
            raise PaymentInitializationError(envelope.message or "Failed to initialize payment")
        try:
            data = InitializeTransactionData.model_validate(envelope.data)
        except ValidationError as e:
            raise PaymentInitializationError("response missing authorization_url") from e

        logger.info(
            "Paystack transaction initialized: ref=%s amount=%d", data.reference, amount_kobo
        )
        return data
