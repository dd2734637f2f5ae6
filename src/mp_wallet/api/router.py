"""mp_wallet REST API — all endpoints act on the authenticated caller's wallet."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, respond
from src.mp_gateway.auth.dependencies import get_current_profile
from src.mp_gateway.profile.db_models import ProfileModel
from src.mp_wallet.application.schemas import WithdrawalCreateRequest
from src.mp_wallet.application.service import WalletApplicationService

router = APIRouter(prefix="/wallet", tags=["wallet"])

_service = WalletApplicationService(withdrawal_fee_kobo=settings.WITHDRAWAL_FEE_KOBO)


@router.get("")
async def get_wallet(
    current: Annotated[ProfileModel, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_wallet(db, current.user_id)
    return respond(request, data)


@router.get("/ledger")
async def list_ledger(
    current: Annotated[ProfileModel, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    entry_type: str | None = Query(None, description="Filter by WalletEntryType"),
) -> ApiResponse:
    data = await _service.list_ledger(db, current.user_id, cursor, limit, entry_type)
    return respond(request, data)


@router.post("/withdrawals", status_code=status.HTTP_201_CREATED)
async def request_withdrawal(
    body: WithdrawalCreateRequest,
    current: Annotated[ProfileModel, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.request_withdrawal(db, current.user_id, body)
    return respond(request, data, "Withdrawal request submitted")


@router.get("/withdrawals")
async def list_withdrawals(
    current: Annotated[ProfileModel, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    items = await _service.list_withdrawals(db, current.user_id, limit)
    return respond(request, [w.model_dump() for w in items])
