# pawhaven/core/security.py
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any, Dict, Mapping, Optional
from urllib.parse import unquote

import jwt
from flask import request, g, current_app

from pawhaven.core.config import AuthSettings
from pawhaven.core.errors import Unauthenticated, Forbidden

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


class TokenError(Exception):
    """Base class for token verification failures."""
    code = "TOKEN_INVALID"


class InvalidTokenError(TokenError):
    code = "TOKEN_INVALID"


class ExpiredTokenError(TokenError):
    code = "TOKEN_EXPIRED"


@dataclass(frozen=True)
class Principal:
    """Identity attached to a request or socket connection after token verification."""
    id: str
    username: Optional[str] = None
    email: Optional[str] = None
    fullname: Optional[str] = None
    role: str = "user"

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "Principal":
        user_id = claims.get("id") or claims.get("sub")
        if not user_id:
            raise InvalidTokenError("token has no subject")
        return cls(
            id=str(user_id),
            username=claims.get("username"),
            email=claims.get("email"),
            fullname=claims.get("fullname"),
            role=claims.get("role") or "user",
        )

    @property
    def is_superadmin(self) -> bool:
        return self.role == "superadmin"


class TokenService:
    """Stateless issue/verify of access and refresh tokens (claims only, no revocation list)."""

    def __init__(self, settings: AuthSettings):
        if not settings.access_secret or not settings.refresh_secret:
            raise ValueError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must both be configured.")
        if settings.access_secret == settings.refresh_secret:
            raise ValueError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must be different values.")
        self.settings = settings

    def _secret_for(self, kind: str) -> str:
        if kind == ACCESS:
            return self.settings.access_secret
        if kind == REFRESH:
            return self.settings.refresh_secret
        raise ValueError(f"unknown token kind: {kind}")

    def _encode(self, claims: Dict[str, Any], kind: str, expires_in: int) -> str:
        issued_at = datetime.now(timezone.utc)
        to_encode = dict(claims)
        to_encode.update({
            "type": kind,
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=expires_in),
        })
        return jwt.encode(to_encode, self._secret_for(kind), algorithm=self.settings.algorithm)

    def issue_access_token(self, user, expires_in: Optional[int] = None) -> str:
        claims = {
            "id": user.user_id,
            "email": user.email,
            "username": user.username,
            "fullname": user.fullname,
            "role": user.role,
        }
        ttl = self.settings.access_expires_seconds if expires_in is None else expires_in
        return self._encode(claims, ACCESS, ttl)

    def issue_refresh_token(self, user, expires_in: Optional[int] = None) -> str:
        ttl = self.settings.refresh_expires_seconds if expires_in is None else expires_in
        return self._encode({"id": user.user_id}, REFRESH, ttl)

    def verify(self, token: str, kind: str = ACCESS) -> Dict[str, Any]:
        """Decode and check a token of the given kind; raises ExpiredTokenError or InvalidTokenError."""
        if not token or not isinstance(token, str):
            raise InvalidTokenError("token is empty")
        try:
            claims = jwt.decode(
                token,
                self._secret_for(kind),
                algorithms=[self.settings.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError("token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(str(e))

        if claims.get("type") != kind:
            raise InvalidTokenError(f"expected a {kind} token")
        if not claims.get("id"):
            raise InvalidTokenError("token has no subject")
        return claims

    def principal_from_token(self, token: str) -> Principal:
        return Principal.from_claims(self.verify(token, ACCESS))


# =====================================================================================
# Credential extraction
# =====================================================================================

def strip_bearer(value: Any) -> Optional[str]:
    """Drop a leading 'Bearer ' (any case); non-strings and blanks become None."""
    if not value or not isinstance(value, str):
        return None
    value = value.strip()
    if value[:7].lower() == "bearer ":
        value = value[7:].strip()
    return value or None


def read_cookie_token(cookie_header: Optional[str], name: str = "accessToken") -> Optional[str]:
    if not cookie_header:
        return None
    for part in cookie_header.split(";"):
        key, _, raw = part.strip().partition("=")
        if key == name and raw:
            return unquote(raw)
    return None


def _unauthenticated_from(err: TokenError) -> Unauthenticated:
    if isinstance(err, ExpiredTokenError):
        return Unauthenticated("Token expired", code=ExpiredTokenError.code)
    return Unauthenticated("Invalid or malformed token", code=InvalidTokenError.code)


def _token_service() -> TokenService:
    return current_app.services['tokens']


def _bearer_from_request() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[7:].strip() or None


def _authenticate_request(optional: bool) -> Optional[Principal]:
    header = request.headers.get("Authorization")
    token = _bearer_from_request()
    if not token:
        if optional and not header:
            return None
        raise Unauthenticated("Missing or invalid Authorization header")
    try:
        return _token_service().principal_from_token(token)
    except TokenError as e:
        logger.info(f"Rejected bearer token: {e.__class__.__name__}: {e}")
        raise _unauthenticated_from(e)


def auth_required(f):
    """Require a valid access token; the principal lands on g.principal."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.principal = _authenticate_request(optional=False)
        return f(*args, **kwargs)
    return decorated_function


def auth_optional(f):
    """Attach a principal when a token is sent; anonymous callers get g.principal = None."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.principal = _authenticate_request(optional=True)
        return f(*args, **kwargs)
    return decorated_function


def role_required(role: str):
    """Reject authenticated callers whose role differs. Stack below @auth_required."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            principal = getattr(g, "principal", None)
            if principal is None:
                raise Unauthenticated()
            if principal.role != role:
                raise Forbidden(f"Forbidden: {role} only")
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def current_principal() -> Optional[Principal]:
    return getattr(g, "principal", None)


def authenticate_handshake(auth: Optional[Mapping[str, Any]], headers: Mapping[str, Any],
                           token_service: TokenService) -> Principal:
    """
    Socket handshake auth. Token lookup order: auth payload, Authorization header,
    accessToken cookie.
    """
    auth_token = strip_bearer(auth.get("token")) if isinstance(auth, Mapping) else None
    header_token = strip_bearer(headers.get("Authorization"))
    cookie_token = read_cookie_token(headers.get("Cookie"))

    token = auth_token or header_token or cookie_token
    if not token:
        raise Unauthenticated("Unauthorized: no token")
    try:
        return token_service.principal_from_token(token)
    except TokenError as e:
        raise Unauthenticated(f"Unauthorized: {e.__class__.__name__}", code=e.code)
