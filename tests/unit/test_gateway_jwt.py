"""Unit tests for JWT handler."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from jose import jwt

from src.bz_common.errors import InvalidCredentialsError, InvalidRefreshTokenError
from src.bz_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)


@pytest.mark.parametrize(
    ("factory", "token_type"),
    [(create_access_token, "access"), (create_refresh_token, "refresh")],
)
def test_token_claims_and_decode(factory, token_type: str) -> None:
    token = factory("buyer-1")
    assert jwt.get_unverified_claims(token)["type"] == token_type
    payload = decode_token(token, expected_type=token_type)
    assert payload["sub"] == "buyer-1"


def test_access_token_is_not_a_refresh_token() -> None:
    with pytest.raises(InvalidRefreshTokenError):
        decode_token(create_access_token("buyer-1"), expected_type="refresh")


def test_refresh_token_is_not_an_access_token() -> None:
    with pytest.raises(InvalidCredentialsError):
        decode_token(create_refresh_token("buyer-1"), expected_type="access")


def test_expired_access_token_rejected() -> None:
    with patch("src.bz_gateway.auth.jwt_handler._ACCESS_EXPIRE", timedelta(seconds=-1)):
        token = create_access_token("buyer-1")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token, expected_type="access")


def test_expired_refresh_token_rejected() -> None:
    with patch("src.bz_gateway.auth.jwt_handler._REFRESH_EXPIRE", timedelta(seconds=-1)):
        token = create_refresh_token("buyer-1")
    with pytest.raises(InvalidRefreshTokenError):
        decode_token(token, expected_type="refresh")


def test_token_signed_with_other_secret_is_rejected() -> None:
    forged = jwt.encode({"sub": "buyer-1", "type": "access"}, "other-secret", algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_token(forged, expected_type="access")
