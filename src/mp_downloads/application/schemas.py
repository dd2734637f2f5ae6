"""Pydantic schemas for mp_downloads API."""

from pydantic import BaseModel, Field


class DownloadAuthorizeRequest(BaseModel):
    product_id: str = Field(..., min_length=1, max_length=64)
    buyer_email: str = Field(..., min_length=3, max_length=254)


class DownloadAuthorizeResponse(BaseModel):
    product_id: str
    product_title: str
    file_path: str | None
    download_count: int
    expires_at: str | None
