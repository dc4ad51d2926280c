# pawhaven/api/password/services.py
import secrets
import logging
from typing import Optional

from pawhaven.core.errors import BadRequest
from pawhaven.models.password_reset import PasswordResetToken
from pawhaven.repositories.base import UserRepository, ResetTokenRepository
from pawhaven.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)


class PasswordResetService:
    """
    Forgot / reset flow backed by single-use tokens.

    Issuing a token invalidates every earlier unused token of the same user, and
    consuming one is atomic in the repository, so a link works at most once.
    """

    def __init__(self, users: UserRepository, reset_tokens: ResetTokenRepository, auth_service,
                 mail_service, ttl_minutes: int = 30, base_url: str = "http://localhost:5173"):
        self.users = users
        self.reset_tokens = reset_tokens
        self.auth_service = auth_service
        self.mail_service = mail_service
        self.ttl_minutes = ttl_minutes
        self.base_url = base_url.rstrip("/")

    def build_link(self, token: str) -> str:
        return f"{self.base_url}/reset-password?token={token}"

    def request_reset(self, email: str) -> Optional[str]:
        """
        Issue a reset link for a known email. Unknown emails return None and
        the caller must answer exactly as for a known one.
        """
        user = self.users.find_by_email(email)
        if not user:
            logger.info("Password reset requested for an unknown email")
            return None

        self.reset_tokens.invalidate_active_for_user(user.user_id)
        reset_token = PasswordResetToken(
            token=secrets.token_hex(32),
            user_id=user.user_id,
            expires_at=DateTimeUtils.minutes_from_now(self.ttl_minutes),
        )
        self.reset_tokens.create(reset_token)

        link = self.build_link(reset_token.token)
        self.mail_service.send_password_reset(user.email, link)
        logger.info(f"Password reset token issued (user_id: {user.user_id})")
        return link

    def reset_password(self, token: str, new_password: str) -> None:
        consumed = self.reset_tokens.consume(token)
        if not consumed:
            raise BadRequest("Invalid or expired token", code="TOKEN_INVALID")

        user = self.users.find_by_id(consumed.user_id)
        if not user:
            raise BadRequest("User not found", code="USER_NOT_FOUND")

        self.users.find_by_id_and_update(user.user_id, {
            "password_hash": self.auth_service.hash_password(new_password),
            "updated_at": DateTimeUtils.now(),
        })
        logger.info(f"Password reset completed (user_id: {user.user_id})")
