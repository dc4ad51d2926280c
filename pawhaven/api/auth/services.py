# pawhaven/api/auth/services.py
import uuid
import logging
from typing import Dict, Any, Optional, Tuple

from werkzeug.security import generate_password_hash, check_password_hash

from pawhaven.core.config import AuthSettings
from pawhaven.core.errors import Unauthenticated, Conflict
from pawhaven.core.security import TokenService, TokenError, ExpiredTokenError, REFRESH
from pawhaven.models.user import User, Role
from pawhaven.repositories.base import UserRepository, DuplicateKeyError


class AuthService:
    """Registration, credential checks and token issuance."""

    def __init__(self, users: UserRepository, tokens: TokenService, settings: AuthSettings):
        self.users = users
        self.tokens = tokens
        self.settings = settings

    # --- password hashing ---
    def hash_password(self, password: str) -> str:
        return generate_password_hash(password, method=self.settings.password_hash_method)

    @staticmethod
    def check_password(user: User, password: str) -> bool:
        return bool(password) and check_password_hash(user.password_hash, password)

    def issue_tokens(self, user: User) -> Dict[str, str]:
        return {
            "accessToken": self.tokens.issue_access_token(user),
            "refreshToken": self.tokens.issue_refresh_token(user),
        }

    # --- registration / login ---
    def register(self, data: Dict[str, Any]) -> Tuple[User, Dict[str, str]]:
        """Create a user from validated RegisterSchema output and sign them in."""
        if self.users.find_by_email(data['email']) or self.users.find_by_username(data['username']):
            raise Conflict()

        user = User(
            user_id=str(uuid.uuid4()),
            username=data['username'],
            fullname=data['fullname'],
            email=data['email'],
            password_hash=self.hash_password(data['password']),
            phone=data['phone'],
            role=Role.USER.value,
            avatar=data.get('avatar') or None,
        )
        try:
            self.users.create(user)
        except DuplicateKeyError:
            # lost a race with a concurrent registration
            raise Conflict()

        logging.info(f"User registered (user_id: {user.user_id})")
        return user, self.issue_tokens(user)

    def authenticate(self, password: str, email: Optional[str] = None,
                     username: Optional[str] = None) -> Tuple[User, Dict[str, str]]:
        user = self.users.find_by_email(email) if email else self.users.find_by_username(username or "")
        if not user or not self.check_password(user, password):
            raise Unauthenticated("Invalid credentials", code="INVALID_CREDENTIALS")
        return user, self.issue_tokens(user)

    def refresh_access_token(self, refresh_token: Optional[str]) -> str:
        """Exchange a valid refresh token for a new access token."""
        if not refresh_token:
            raise Unauthenticated("Refresh token required")
        try:
            claims = self.tokens.verify(refresh_token, REFRESH)
        except ExpiredTokenError:
            raise Unauthenticated("Refresh token expired", code=ExpiredTokenError.code)
        except TokenError:
            raise Unauthenticated("Invalid refresh token", code="TOKEN_INVALID")

        user = self.users.find_by_id(str(claims['id']))
        if not user:
            raise Unauthenticated("User not found", code="USER_NOT_FOUND")
        return self.tokens.issue_access_token(user)
