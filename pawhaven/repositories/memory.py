# pawhaven/repositories/memory.py
"""
Process-local repositories for development and tests.

Documents are kept as plain dicts and copied on the way in and out so callers
never share mutable state with the store. One re-entrant lock per repository
gives single-document atomicity, mirroring what the Firestore backend offers.
"""

import copy
import logging
import threading
from typing import Any, Dict, List, Optional

from pawhaven.models.pet import Pet
from pawhaven.models.user import User
from pawhaven.models.password_reset import PasswordResetToken
from pawhaven.repositories.base import (
    DuplicateKeyError, PetQuery, PetRepository, Repositories, ResetTokenRepository,
    SortSpec, UserRepository,
)
from pawhaven.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)


class MemoryPetRepository(PetRepository):
    def __init__(self):
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.RLock()

    def _matching(self, query: PetQuery) -> List[Dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(doc) for doc in self._docs.values() if query.matches(doc)]

    def find(self, query: PetQuery, sort: SortSpec, skip: int, limit: int) -> List[Pet]:
        docs = sort.apply(self._matching(query))
        return [Pet.from_dict(doc) for doc in docs[skip:skip + limit]]

    def count(self, query: PetQuery) -> int:
        return len(self._matching(query))

    def find_by_id(self, pet_id: str) -> Optional[Pet]:
        with self._lock:
            doc = self._docs.get(pet_id)
            return Pet.from_dict(copy.deepcopy(doc)) if doc else None

    def create(self, pet: Pet) -> Pet:
        with self._lock:
            if pet.pet_id in self._docs:
                raise DuplicateKeyError(f"pet {pet.pet_id} already exists")
            self._docs[pet.pet_id] = copy.deepcopy(pet.to_dict())
        return pet

    def find_by_id_and_update(self, pet_id: str, updates: Dict[str, Any]) -> Optional[Pet]:
        with self._lock:
            doc = self._docs.get(pet_id)
            if doc is None:
                return None
            doc.update(copy.deepcopy(updates))
            return Pet.from_dict(copy.deepcopy(doc))

    def find_by_id_and_delete(self, pet_id: str) -> Optional[Pet]:
        with self._lock:
            doc = self._docs.pop(pet_id, None)
            return Pet.from_dict(doc) if doc else None


class MemoryUserRepository(UserRepository):
    def __init__(self):
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.RLock()

    def _find_one(self, **criteria) -> Optional[User]:
        with self._lock:
            for doc in self._docs.values():
                if all(doc.get(k) == v for k, v in criteria.items()):
                    return User.from_dict(copy.deepcopy(doc))
        return None

    def create(self, user: User) -> User:
        with self._lock:
            for doc in self._docs.values():
                if doc['email'] == user.email or doc['username_lower'] == user.username_lower:
                    raise DuplicateKeyError("username or email already exists")
            self._docs[user.user_id] = copy.deepcopy(user.to_dict())
        return user

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self._find_one(user_id=user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self._find_one(email=email.lower())

    def find_by_username(self, username: str) -> Optional[User]:
        return self._find_one(username_lower=username.lower())

    def find_by_id_and_update(self, user_id: str, updates: Dict[str, Any]) -> Optional[User]:
        with self._lock:
            doc = self._docs.get(user_id)
            if doc is None:
                return None
            doc.update(copy.deepcopy(updates))
            return User.from_dict(copy.deepcopy(doc))

    def find_by_id_and_delete(self, user_id: str) -> Optional[User]:
        with self._lock:
            doc = self._docs.pop(user_id, None)
            return User.from_dict(doc) if doc else None

    def list_all(self) -> List[User]:
        with self._lock:
            docs = [copy.deepcopy(doc) for doc in self._docs.values()]
        docs.sort(key=lambda d: d['created_at'], reverse=True)
        return [User.from_dict(doc) for doc in docs]


class MemoryResetTokenRepository(ResetTokenRepository):
    def __init__(self):
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.RLock()

    def create(self, token: PasswordResetToken) -> PasswordResetToken:
        with self._lock:
            if token.token in self._docs:
                raise DuplicateKeyError("reset token collision")
            self._docs[token.token] = copy.deepcopy(token.to_dict())
        return token

    def invalidate_active_for_user(self, user_id: str) -> int:
        touched = 0
        with self._lock:
            for doc in self._docs.values():
                if doc['user_id'] == user_id and not doc['used']:
                    doc['used'] = True
                    touched += 1
        return touched

    def consume(self, token: str) -> Optional[PasswordResetToken]:
        with self._lock:
            doc = self._docs.get(token)
            if doc is None or doc['used'] or DateTimeUtils.is_past(doc['expires_at']):
                return None
            doc['used'] = True
            return PasswordResetToken.from_dict(copy.deepcopy(doc))

    def find(self, token: str) -> Optional[PasswordResetToken]:
        with self._lock:
            doc = self._docs.get(token)
            return PasswordResetToken.from_dict(copy.deepcopy(doc)) if doc else None


def build_memory_repositories() -> Repositories:
    logger.info("Using in-memory repositories (data is lost on restart).")
    return Repositories(
        users=MemoryUserRepository(),
        pets=MemoryPetRepository(),
        reset_tokens=MemoryResetTokenRepository(),
    )
