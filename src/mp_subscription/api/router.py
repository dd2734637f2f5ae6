"""mp_subscription REST API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, respond
from src.mp_gateway.auth.dependencies import get_current_profile
from src.mp_gateway.profile.db_models import ProfileModel
from src.mp_subscription.application.schemas import FreeSubscriptionRequest
from src.mp_subscription.application.service import SubscriptionApplicationService

router = APIRouter(tags=["subscriptions"])

_service = SubscriptionApplicationService()


@router.get("/subscription-plans")
async def list_plans(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    plans = await _service.list_plans(db)
    return respond(request, [p.model_dump() for p in plans])


@router.get("/subscriptions/me")
async def get_my_subscription(
    current: Annotated[ProfileModel, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_current(db, current.user_id)
    return respond(request, data)


@router.post("/subscriptions/free", status_code=status.HTTP_201_CREATED)
async def activate_free_plan(
    body: FreeSubscriptionRequest,
    current: Annotated[ProfileModel, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.activate_free(db, current.user_id, body)
    return respond(request, data, "Subscription activated")
