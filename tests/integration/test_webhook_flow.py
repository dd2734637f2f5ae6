"""End-to-end webhook settlement against PostgreSQL.

Pre-condition: alembic upgrade head (plans are seeded by migration 008).
"""

import json
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import text

from config.settings import settings
from src.mp_common.database import async_session_factory
from src.mp_payments.domain.signature import compute_signature
from tests.integration.helpers import create_product, create_profile, plan_id_by_name

pytestmark = [pytest.mark.asyncio(loop_scope="session"), pytest.mark.integration]

WEBHOOK = "/api/paystack/webhook"


async def _deliver(client: AsyncClient, email: str, amount: int, metadata: dict,
                   reference: str | None = None):
    body = json.dumps({
        "event": "charge.success",
        "data": {
            "reference": reference or f"ref_{uuid.uuid4().hex}",
            "amount": amount,
            "customer": {"email": email},
            "metadata": metadata,
        },
    }).encode()
    sig = compute_signature(body, settings.PAYSTACK_SECRET_KEY)
    return await client.post(WEBHOOK, content=body, headers={"x-paystack-signature": sig})


async def _balance(client: AsyncClient, token: str) -> int:
    resp = await client.get("/api/wallet", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    return int(resp.json()["data"]["balance_kobo"])


class TestProductSettlement:
    async def test_referred_purchase_credits_both_wallets(self, client: AsyncClient) -> None:
        code = f"R{uuid.uuid4().hex[:8].upper()}"
        referrer = await create_profile(referral_code=code)
        buyer = await create_profile()
        product_id = await create_product(100000)

        resp = await _deliver(client, buyer["email"], 100000,
                              {"productId": product_id, "referralCode": code})

        assert resp.status_code == 200
        assert resp.json()["data"]["outcome"] == "settled"
        # Default 20%: gross 20000, referrer 10% of that
        assert await _balance(client, buyer["token"]) == 18000
        assert await _balance(client, referrer["token"]) == 2000

    async def test_redelivery_is_noop(self, client: AsyncClient) -> None:
        buyer = await create_profile()
        product_id = await create_product(50000)
        reference = f"ref_{uuid.uuid4().hex}"

        first = await _deliver(client, buyer["email"], 50000, {"productId": product_id}, reference)
        second = await _deliver(client, buyer["email"], 50000, {"productId": product_id}, reference)

        assert first.json()["data"]["outcome"] == "settled"
        assert second.status_code == 200
        assert second.json()["data"]["outcome"] == "duplicate"
        assert await _balance(client, buyer["token"]) == 10000
        async with async_session_factory() as session:
            count = (await session.execute(
                text("SELECT COUNT(*) FROM sales WHERE transaction_id = :r"), {"r": reference}
            )).scalar_one()
        assert count == 1

    async def test_guest_purchase_grants_download(self, client: AsyncClient) -> None:
        product_id = await create_product(30000)
        email = f"guest_{uuid.uuid4().hex[:8]}@example.com"

        resp = await _deliver(client, email, 30000, {"productId": product_id})
        assert resp.status_code == 200

        auth = await client.post("/api/downloads/authorize",
                                 json={"product_id": product_id, "buyer_email": email.upper()})
        assert auth.status_code == 200
        assert auth.json()["data"]["download_count"] == 1


class TestSubscriptionSettlement:
    async def test_paid_plan_raises_commission_rate(self, client: AsyncClient) -> None:
        buyer = await create_profile()
        pro = await plan_id_by_name("Pro")

        sub = await _deliver(client, buyer["email"], 500000, {"planId": pro})
        assert sub.status_code == 200

        me = await client.get("/api/subscriptions/me",
                              headers={"Authorization": f"Bearer {buyer['token']}"})
        assert me.json()["data"]["plan"]["commission_rate_bps"] == 3500

        product_id = await create_product(100000)
        await _deliver(client, buyer["email"], 100000, {"productId": product_id})
        assert await _balance(client, buyer["token"]) == 35000


async def test_invariants_hold_after_flows(client: AsyncClient) -> None:
    admin = await create_profile(is_admin=True)
    resp = await client.get("/api/admin/invariants",
                            headers={"Authorization": f"Bearer {admin['token']}"})
    assert resp.status_code == 200
    assert resp.json()["data"]["violations"] == []
