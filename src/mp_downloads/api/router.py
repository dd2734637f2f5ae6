"""mp_downloads REST API. Guests buy without an account, so no bearer token here."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, respond
from src.mp_downloads.application.schemas import DownloadAuthorizeRequest
from src.mp_downloads.application.service import DownloadApplicationService

router = APIRouter(prefix="/downloads", tags=["downloads"])

_service = DownloadApplicationService()


@router.post("/authorize")
async def authorize_download(
    body: DownloadAuthorizeRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.authorize(db, body)
    return respond(request, data)
