"""HTTP-level tests for the routers, with the DB session dependency overridden."""

import json
from collections.abc import AsyncGenerator, Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from config.settings import settings
from src.main import app
from src.mp_admin.api import router as admin_router
from src.mp_common.database import get_db_session
from src.mp_gateway.auth.dependencies import require_admin
from src.mp_payments.api import router as payments_router
from src.mp_payments.application.service import PaymentsApplicationService
from src.mp_payments.domain.signature import compute_signature
from src.mp_settlement.domain.engine import SettlementEngine
from src.mp_settlement.domain.policy import SettlementPolicy
from tests.unit.fakes import InMemoryLedgerStore, InMemoryWalletRepository

WEBHOOK = "/api/paystack/webhook"


@pytest.fixture
def db() -> Iterator[AsyncMock]:
    session = AsyncMock()

    async def _override() -> AsyncGenerator[AsyncMock, None]:
        yield session

    app.dependency_overrides[get_db_session] = _override
    yield session
    app.dependency_overrides.clear()


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> InMemoryLedgerStore:
    store = InMemoryLedgerStore()
    store.add_product("prod-1", price=100000)
    engine = SettlementEngine.build(store, InMemoryWalletRepository(), SettlementPolicy())
    service = PaymentsApplicationService(
        engine=engine, client=AsyncMock(), webhook_secret=settings.PAYSTACK_SECRET_KEY
    )
    monkeypatch.setattr(payments_router, "_service", service)
    return store


def _signed(payload: dict) -> tuple[bytes, dict[str, str]]:
    body = json.dumps(payload).encode()
    sig = compute_signature(body, settings.PAYSTACK_SECRET_KEY)
    return body, {"x-paystack-signature": sig, "content-type": "application/json"}


def _charge(reference: str = "ref-1", metadata: object = None) -> dict:
    return {
        "event": "charge.success",
        "data": {
            "reference": reference,
            "amount": 100000,
            "customer": {"email": "guest@example.com"},
            "metadata": metadata if metadata is not None else {"productId": "prod-1"},
        },
    }


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


class TestWebhookRoute:
    async def test_settles_guest_purchase(
        self, client: AsyncClient, db: AsyncMock, store: InMemoryLedgerStore
    ) -> None:
        body, headers = _signed(_charge())
        resp = await client.post(WEBHOOK, content=body, headers=headers)

        assert resp.status_code == 200
        payload = resp.json()
        assert payload["code"] == 0
        assert payload["data"]["outcome"] == "settled"
        assert payload["request_id"] == resp.headers["x-request-id"]
        assert len(store.sales) == 1
        db.commit.assert_awaited_once()

    async def test_redelivery_acknowledged(
        self, client: AsyncClient, db: AsyncMock, store: InMemoryLedgerStore
    ) -> None:
        body, headers = _signed(_charge())
        await client.post(WEBHOOK, content=body, headers=headers)
        resp = await client.post(WEBHOOK, content=body, headers=headers)

        assert resp.status_code == 200
        assert resp.json()["data"]["outcome"] == "duplicate"
        assert len(store.sales) == 1

    async def test_bad_signature_401(
        self, client: AsyncClient, db: AsyncMock, store: InMemoryLedgerStore
    ) -> None:
        body, headers = _signed(_charge())
        headers["x-paystack-signature"] = "0" * 128
        resp = await client.post(WEBHOOK, content=body, headers=headers)

        assert resp.status_code == 401
        assert resp.json()["code"] == 4001
        assert store.sales == []

    async def test_missing_signature_401(
        self, client: AsyncClient, db: AsyncMock, store: InMemoryLedgerStore
    ) -> None:
        resp = await client.post(WEBHOOK, content=json.dumps(_charge()).encode())
        assert resp.status_code == 401

    async def test_malformed_body_400(
        self, client: AsyncClient, db: AsyncMock, store: InMemoryLedgerStore
    ) -> None:
        body = b"not json at all"
        sig = compute_signature(body, settings.PAYSTACK_SECRET_KEY)
        resp = await client.post(WEBHOOK, content=body, headers={"x-paystack-signature": sig})
        assert resp.status_code == 400
        assert resp.json()["code"] == 4002

    @pytest.mark.parametrize("metadata", [{"productId": "prod-1", "planId": "pro"}, {}, ""])
    async def test_charge_without_single_target_acknowledged(
        self, client: AsyncClient, db: AsyncMock, store: InMemoryLedgerStore, metadata: object
    ) -> None:
        body, headers = _signed(_charge(metadata=metadata))
        resp = await client.post(WEBHOOK, content=body, headers=headers)

        assert resp.status_code == 200
        assert resp.json()["data"]["outcome"] == "ignored"
        assert store.processed == {}
        db.commit.assert_not_awaited()

    async def test_oversized_referral_code_still_settles(
        self, client: AsyncClient, db: AsyncMock, store: InMemoryLedgerStore
    ) -> None:
        body, headers = _signed(_charge(metadata={"productId": "prod-1", "referralCode": "X" * 40}))
        resp = await client.post(WEBHOOK, content=body, headers=headers)

        assert resp.status_code == 200
        assert resp.json()["data"]["outcome"] == "settled"
        assert store.sale_referral_codes[store.sales[0].id] is None
        db.commit.assert_awaited_once()

    async def test_unknown_product_500_so_gateway_retries(
        self, client: AsyncClient, db: AsyncMock, store: InMemoryLedgerStore
    ) -> None:
        body, headers = _signed(_charge(metadata={"productId": "missing"}))
        resp = await client.post(WEBHOOK, content=body, headers=headers)
        assert resp.status_code == 500
        assert resp.json()["code"] == 9003
        db.rollback.assert_awaited_once()


class TestAuthGuards:
    async def test_wallet_requires_token(self, client: AsyncClient, db: AsyncMock) -> None:
        resp = await client.get("/api/wallet")
        assert resp.status_code == 401

    async def test_admin_requires_token(self, client: AsyncClient, db: AsyncMock) -> None:
        resp = await client.get("/api/admin/invariants")
        assert resp.status_code == 401

    async def test_admin_invariants_with_admin(
        self, client: AsyncClient, db: AsyncMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        service = MagicMock()
        service.check_invariants = AsyncMock(return_value={"ok": True, "violations": []})
        monkeypatch.setattr(admin_router, "_service", service)
        app.dependency_overrides[require_admin] = lambda: MagicMock(is_admin=True)

        resp = await client.get("/api/admin/invariants")

        assert resp.status_code == 200
        assert resp.json()["data"] == {"ok": True, "violations": []}
