"""JWT verification for access tokens issued by the hosted auth provider.

Tokens are HS256, signed with the project's JWT secret, and carry
sub=<user_id> and aud=<JWT_AUDIENCE>. This service never issues tokens to
end users; create_access_token exists for local tooling and tests.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.mp_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_access_token(user_id: str, email: str | None = None) -> str:
    """Issue an access token shaped like the auth provider's."""
    now = datetime.now(UTC)
    payload: dict[str, object] = {
        "sub": user_id,
        "aud": settings.JWT_AUDIENCE,
        "role": "authenticated",
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    if email is not None:
        payload["email"] = email
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str) -> dict[str, str]:
    """Decode and validate an access token.

    Raises:
        InvalidCredentialsError: signature, expiry, audience or subject invalid.
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if not payload.get("sub"):
        raise InvalidCredentialsError()
    return payload
