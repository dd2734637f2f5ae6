"""Unit tests for DownloadApplicationService."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from src.mp_common.errors import DownloadExpiredError, DownloadNotAuthorizedError
from src.mp_downloads.application.schemas import DownloadAuthorizeRequest
from src.mp_downloads.application.service import DownloadApplicationService
from src.mp_downloads.infrastructure.persistence import DownloadGrant

NOW = datetime(2026, 6, 1, tzinfo=UTC)
BODY = DownloadAuthorizeRequest(product_id="prod-1", buyer_email=" buyer@example.com ")


def _grant(expires_at: datetime | None) -> DownloadGrant:
    return DownloadGrant(id="dl-1", product_id="prod-1", product_title="E-book",
                         file_path="products/ebook.pdf", buyer_email="buyer@example.com",
                         download_count=2, expires_at=expires_at)


async def test_authorizes_and_counts() -> None:
    repo = AsyncMock()
    repo.get_latest_grant.return_value = _grant(NOW + timedelta(days=10))
    repo.increment_count.return_value = 3
    db = AsyncMock()

    result = await DownloadApplicationService(repo=repo).authorize(db, BODY, NOW)

    assert result.download_count == 3
    assert result.file_path == "products/ebook.pdf"
    assert repo.get_latest_grant.await_args.args[1:] == ("prod-1", "buyer@example.com")
    repo.increment_count.assert_awaited_once_with(db, "dl-1")
    db.commit.assert_awaited_once()


async def test_no_purchase_not_authorized() -> None:
    repo = AsyncMock()
    repo.get_latest_grant.return_value = None
    with pytest.raises(DownloadNotAuthorizedError):
        await DownloadApplicationService(repo=repo).authorize(AsyncMock(), BODY, NOW)
    repo.increment_count.assert_not_awaited()


async def test_expired_grant() -> None:
    repo = AsyncMock()
    repo.get_latest_grant.return_value = _grant(NOW - timedelta(seconds=1))
    with pytest.raises(DownloadExpiredError):
        await DownloadApplicationService(repo=repo).authorize(AsyncMock(), BODY, NOW)
    repo.increment_count.assert_not_awaited()


async def test_grant_without_expiry_allowed() -> None:
    repo = AsyncMock()
    repo.get_latest_grant.return_value = _grant(None)
    repo.increment_count.return_value = 1
    result = await DownloadApplicationService(repo=repo).authorize(AsyncMock(), BODY, NOW)
    assert result.expires_at is None
