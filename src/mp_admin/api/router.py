"""Admin REST API. Every endpoint requires profiles.is_admin."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_admin.application.service import AdminService
from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, respond
from src.mp_gateway.auth.dependencies import require_admin
from src.mp_gateway.profile.db_models import ProfileModel

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


class WithdrawalDecisionRequest(BaseModel):
    admin_notes: str | None = Field(None, max_length=1000)


@router.get("/withdrawals/pending")
async def list_pending_withdrawals(
    admin: Annotated[ProfileModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    limit: int = Query(100, ge=1, le=500),
) -> ApiResponse:
    return respond(request, await _service.list_pending_withdrawals(db, limit))


@router.post("/withdrawals/{withdrawal_id}/complete")
async def complete_withdrawal(
    withdrawal_id: str,
    admin: Annotated[ProfileModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    body: WithdrawalDecisionRequest | None = None,
) -> ApiResponse:
    notes = body.admin_notes if body else None
    data = await _service.complete_withdrawal(db, withdrawal_id, notes)
    return respond(request, data, "Withdrawal completed")


@router.post("/withdrawals/{withdrawal_id}/fail")
async def fail_withdrawal(
    withdrawal_id: str,
    admin: Annotated[ProfileModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    body: WithdrawalDecisionRequest | None = None,
) -> ApiResponse:
    notes = body.admin_notes if body else None
    data = await _service.fail_withdrawal(db, withdrawal_id, notes)
    return respond(request, data, "Withdrawal failed and refunded")


@router.get("/invariants")
async def check_invariants(
    admin: Annotated[ProfileModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return respond(request, await _service.check_invariants(db))
