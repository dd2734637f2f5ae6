"""Unit tests for JWT handler."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from jose import jwt

from config.settings import settings
from src.mp_common.errors import InvalidCredentialsError
from src.mp_gateway.auth.jwt_handler import create_access_token, decode_token


def test_access_token_contains_provider_claims() -> None:
    token = create_access_token("user-123", email="ada@example.com")
    payload = jwt.get_unverified_claims(token)
    assert payload["sub"] == "user-123"
    assert payload["aud"] == settings.JWT_AUDIENCE
    assert payload["role"] == "authenticated"
    assert payload["email"] == "ada@example.com"


def test_email_claim_omitted_when_not_given() -> None:
    payload = jwt.get_unverified_claims(create_access_token("user-123"))
    assert "email" not in payload


def test_decode_valid_token() -> None:
    payload = decode_token(create_access_token("user-abc"))
    assert payload["sub"] == "user-abc"


def test_expired_token_rejected() -> None:
    with patch("src.mp_gateway.auth.jwt_handler._ACCESS_EXPIRE", timedelta(seconds=-1)):
        token = create_access_token("user-abc")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_tampered_token_rejected() -> None:
    token = create_access_token("user-abc")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token[:-4] + "xxxx")


def test_wrong_secret_rejected() -> None:
    token = jwt.encode(
        {"sub": "user-abc", "aud": settings.JWT_AUDIENCE},
        "some-other-secret-of-reasonable-length",
        algorithm="HS256",
    )
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_wrong_audience_rejected() -> None:
    token = jwt.encode(
        {"sub": "user-abc", "aud": "anon"}, settings.JWT_SECRET, algorithm="HS256"
    )
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_missing_subject_rejected() -> None:
    token = jwt.encode(
        {"aud": settings.JWT_AUDIENCE}, settings.JWT_SECRET, algorithm="HS256"
    )
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)
