"""FastAPI dependencies: get_current_profile, require_admin.

Usage in any protected router:
    from src.mp_gateway.auth.dependencies import get_current_profile

    @router.get("/protected")
    async def protected(profile: ProfileModel = Depends(get_current_profile)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.errors import AdminRequiredError, InvalidCredentialsError
from src.mp_gateway.auth.jwt_handler import decode_token
from src.mp_gateway.profile.db_models import ProfileModel

# Tokens come from the hosted auth provider; tokenUrl only feeds Swagger UI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/v1/token")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_profile(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileModel:
    """Validate the Bearer token and return the caller's profile.

    Raises HTTP 401 if the token is invalid/expired or no profile exists yet.
    """
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    result = await db.execute(
        select(ProfileModel).where(ProfileModel.user_id == payload["sub"])
    )
    profile = result.scalar_one_or_none()
    if profile is None:
        raise _CREDENTIALS_EXCEPTION
    return profile


async def require_admin(
    profile: ProfileModel = Depends(get_current_profile),
) -> ProfileModel:
    """Reject callers whose profile is not flagged is_admin."""
    if not profile.is_admin:
        raise AdminRequiredError()
    return profile
