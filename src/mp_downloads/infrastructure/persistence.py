"""DownloadRepository — download entitlement lookups and the counter bump."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession


@dataclass
class DownloadGrant:
    id: str
    product_id: str
    product_title: str
    file_path: str | None
    buyer_email: str
    download_count: int
    expires_at: datetime | None


_GET_LATEST_GRANT_SQL = text("""
    SELECT d.id, d.product_id, p.title AS product_title, p.file_path,
           d.buyer_email, d.download_count, d.expires_at
    FROM downloads d
    JOIN products p ON p.id = d.product_id
    WHERE d.product_id = :product_id
      AND LOWER(d.buyer_email) = LOWER(:buyer_email)
    ORDER BY d.created_at DESC
    LIMIT 1
""")

_INCREMENT_SQL = text("""
    UPDATE downloads
    SET download_count = download_count + 1
    WHERE id = :download_id
    RETURNING download_count
""")


class DownloadRepository:
    async def get_latest_grant(
        self, db: AsyncSession, product_id: str, buyer_email: str
    ) -> DownloadGrant | None:
        result = await db.execute(
            _GET_LATEST_GRANT_SQL,
            {"product_id": product_id, "buyer_email": buyer_email},
        )
        row = result.fetchone()
        if row is None:
            return None
        return DownloadGrant(
            id=str(row.id),
            product_id=str(row.product_id),
            product_title=row.product_title,
            file_path=row.file_path,
            buyer_email=row.buyer_email,
            download_count=row.download_count,
            expires_at=row.expires_at,
        )

    async def increment_count(self, db: AsyncSession, download_id: str) -> int:
        result = await db.execute(_INCREMENT_SQL, {"download_id": download_id})
        return result.scalar_one()
