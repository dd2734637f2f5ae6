"""DownloadApplicationService — checks a purchase entitlement before a download.

Issuing the signed blob URL for file_path is the storage layer's job; this
service only decides whether the buyer may download and counts the attempt.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.datetime_utils import utc_now
from src.mp_common.errors import DownloadExpiredError, DownloadNotAuthorizedError
from src.mp_downloads.application.schemas import (
    DownloadAuthorizeRequest,
    DownloadAuthorizeResponse,
)
from src.mp_downloads.infrastructure.persistence import DownloadRepository

logger = logging.getLogger(__name__)


class DownloadApplicationService:
    def __init__(self, repo: DownloadRepository | None = None) -> None:
        self._repo = repo or DownloadRepository()

    async def authorize(
        self,
        db: AsyncSession,
        body: DownloadAuthorizeRequest,
        now: datetime | None = None,
    ) -> DownloadAuthorizeResponse:
        grant = await self._repo.get_latest_grant(
            db, body.product_id, body.buyer_email.strip()
        )
        if grant is None:
            raise DownloadNotAuthorizedError()
        if grant.expires_at is not None and grant.expires_at <= (now or utc_now()):
            raise DownloadExpiredError()

        try:
            count = await self._repo.increment_count(db, grant.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Download authorized: product=%s count=%d", grant.product_id, count)
        return DownloadAuthorizeResponse(
            product_id=grant.product_id,
            product_title=grant.product_title,
            file_path=grant.file_path,
            download_count=count,
            expires_at=grant.expires_at.isoformat() if grant.expires_at else None,
        )
