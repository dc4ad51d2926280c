# pawhaven/api/users/services.py
import logging
from typing import Dict, Any, List

from pawhaven.core.errors import BadRequest, NotFound
from pawhaven.models.user import User
from pawhaven.repositories.base import UserRepository
from pawhaven.utils.datetime_utils import DateTimeUtils


class UserService:
    """Profile self-service plus the superadmin moderation calls."""

    def __init__(self, users: UserRepository, auth_service):
        self.users = users
        self.auth_service = auth_service

    def get_user(self, user_id: str) -> User:
        user = self.users.find_by_id(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def update_profile(self, user_id: str, changes: Dict[str, Any]) -> User:
        if not changes:
            return self.get_user(user_id)
        updates = dict(changes)
        updates['updated_at'] = DateTimeUtils.now()
        user = self.users.find_by_id_and_update(user_id, updates)
        if not user:
            raise NotFound("User not found")
        logging.info(f"Profile updated (user_id: {user_id}, fields: {sorted(changes)})")
        return user

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        user = self.get_user(user_id)
        if not self.auth_service.check_password(user, current_password):
            raise BadRequest("Current password is incorrect", code="INVALID_PASSWORD")
        self.users.find_by_id_and_update(user_id, {
            'password_hash': self.auth_service.hash_password(new_password),
            'updated_at': DateTimeUtils.now(),
        })
        logging.info(f"Password changed (user_id: {user_id})")

    def list_users(self) -> List[User]:
        return self.users.list_all()

    def delete_user(self, user_id: str) -> User:
        user = self.users.find_by_id_and_delete(user_id)
        if not user:
            raise NotFound("User not found")
        logging.info(f"User deleted by superadmin (user_id: {user_id})")
        return user
