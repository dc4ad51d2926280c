# pawhaven/core/test_security.py
"""
Tests for token issue/verify and credential extraction.

Usage: python -m pytest pawhaven/core/test_security.py -v
"""

import base64

import pytest
import jwt

from pawhaven.core.config import AuthSettings
from pawhaven.core.errors import Unauthenticated
from pawhaven.core.security import (
    TokenService, ExpiredTokenError, InvalidTokenError, Principal, ACCESS, REFRESH,
    strip_bearer, read_cookie_token, authenticate_handshake,
)
from pawhaven.models.user import User

SETTINGS = AuthSettings(access_secret="access-secret", refresh_secret="refresh-secret")


@pytest.fixture
def tokens():
    return TokenService(SETTINGS)


@pytest.fixture
def user():
    return User(user_id="u-1", username="alice", fullname="Alice A", email="alice@example.com",
                password_hash="x", phone="0123456789")


def test_secrets_must_be_present_and_distinct():
    with pytest.raises(ValueError):
        TokenService(AuthSettings(access_secret="", refresh_secret="r"))
    with pytest.raises(ValueError):
        TokenService(AuthSettings(access_secret="same", refresh_secret="same"))


def test_access_token_claims(tokens, user):
    claims = tokens.verify(tokens.issue_access_token(user), ACCESS)
    assert claims["id"] == "u-1"
    assert claims["username"] == "alice"
    assert claims["role"] == "user"
    assert claims["type"] == ACCESS


def test_refresh_token_carries_only_id(tokens, user):
    claims = tokens.verify(tokens.issue_refresh_token(user), REFRESH)
    assert claims["id"] == "u-1"
    assert "email" not in claims


def test_expired_is_distinct_from_tampered(tokens, user):
    expired = tokens.issue_access_token(user, expires_in=-5)
    with pytest.raises(ExpiredTokenError):
        tokens.verify(expired, ACCESS)

    tampered = TokenService(AuthSettings(access_secret="other", refresh_secret="other-refresh")).issue_access_token(user)
    with pytest.raises(InvalidTokenError):
        tokens.verify(tampered, ACCESS)

    header, _, signature = tokens.issue_access_token(user).split(".")
    payload = base64.urlsafe_b64encode(b'{"id":"u-2","type":"access","iat":0,"exp":4102444800}').rstrip(b"=").decode()
    with pytest.raises(InvalidTokenError):
        tokens.verify(f"{header}.{payload}.{signature}", ACCESS)


def test_kinds_do_not_cross(tokens, user):
    with pytest.raises(InvalidTokenError):
        tokens.verify(tokens.issue_refresh_token(user), ACCESS)
    with pytest.raises(InvalidTokenError):
        tokens.verify(tokens.issue_access_token(user), REFRESH)


def test_type_claim_is_checked_even_with_right_secret(tokens):
    forged = jwt.encode({"id": "u-1", "type": REFRESH, "iat": 0, "exp": 4102444800},
                        SETTINGS.access_secret, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        tokens.verify(forged, ACCESS)


def test_principal_from_token(tokens, user):
    principal = tokens.principal_from_token(tokens.issue_access_token(user))
    assert principal == Principal(id="u-1", username="alice", email="alice@example.com",
                                  fullname="Alice A", role="user")
    assert not principal.is_superadmin


def test_strip_bearer_and_cookie():
    assert strip_bearer("bearer abc") == "abc"
    assert strip_bearer("Bearer  abc ") == "abc"
    assert strip_bearer("abc") == "abc"
    assert strip_bearer("   ") is None
    assert strip_bearer(None) is None
    assert read_cookie_token("theme=dark; accessToken=a%2Eb") == "a.b"
    assert read_cookie_token("theme=dark") is None


def test_handshake_lookup_order(tokens, user):
    token = tokens.issue_access_token(user)
    assert authenticate_handshake({"token": f"Bearer {token}"}, {}, tokens).id == "u-1"
    assert authenticate_handshake(None, {"Authorization": f"Bearer {token}"}, tokens).id == "u-1"
    assert authenticate_handshake({}, {"Cookie": f"accessToken={token}"}, tokens).id == "u-1"
    # auth payload wins over a broken header
    assert authenticate_handshake({"token": token}, {"Authorization": "Bearer junk"}, tokens).id == "u-1"


def test_handshake_rejections(tokens, user):
    with pytest.raises(Unauthenticated):
        authenticate_handshake({}, {}, tokens)
    with pytest.raises(Unauthenticated) as exc:
        authenticate_handshake({"token": tokens.issue_access_token(user, expires_in=-1)}, {}, tokens)
    assert exc.value.code == "TOKEN_EXPIRED"
