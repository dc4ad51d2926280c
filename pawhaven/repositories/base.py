# pawhaven/repositories/base.py
"""
Storage contracts shared by the Firestore and in-memory backends.

Services only talk to these interfaces. A PetQuery describes a conjunctive
listing filter in storage terms (snake_case field names) and can evaluate
itself against a stored document, which lets a backend push the clauses it
supports down to the database and check the remainder in Python.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pawhaven.models.pet import Pet
from pawhaven.models.user import User
from pawhaven.models.password_reset import PasswordResetToken


class DuplicateKeyError(Exception):
    """A write violated a unique constraint (username or email)."""


# Fields covered by the full-text word match
TEXT_INDEX_FIELDS = ("name", "breed", "description", "city")
# Fields checked for a case-insensitive substring of the free-text query
TEXT_SUBSTRING_FIELDS = ("name", "breed", "description", "city", "other_species")

_WORD = re.compile(r"\w+", re.UNICODE)


def _contains(haystack: Any, needle: str) -> bool:
    return isinstance(haystack, str) and needle.lower() in haystack.lower()


@dataclass
class PetQuery:
    """Conjunction of listing clauses. Empty query matches everything."""
    equals: Dict[str, Any] = field(default_factory=dict)
    contains: Dict[str, str] = field(default_factory=dict)
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    text: Optional[str] = None

    def matches(self, doc: Dict[str, Any]) -> bool:
        for key, expected in self.equals.items():
            if doc.get(key) != expected:
                return False

        for key, needle in self.contains.items():
            if not _contains(doc.get(key), needle):
                return False

        age = doc.get("age_months")
        if self.min_age is not None and (age is None or age < self.min_age):
            return False
        if self.max_age is not None and (age is None or age > self.max_age):
            return False

        if self.text:
            return self._matches_text(doc)
        return True

    def _matches_text(self, doc: Dict[str, Any]) -> bool:
        # full-text: any query term equals an indexed word
        indexed = " ".join(str(doc.get(f) or "") for f in TEXT_INDEX_FIELDS).lower()
        words = set(_WORD.findall(indexed))
        terms = _WORD.findall(self.text.lower())
        if any(term in words for term in terms):
            return True
        return any(_contains(doc.get(f), self.text) for f in TEXT_SUBSTRING_FIELDS)


@dataclass(frozen=True)
class SortSpec:
    field: str
    descending: bool = False

    def apply(self, docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Sort with pet_id as the tie-breaker so pages never overlap; missing values sort first."""
        def key(doc: Dict[str, Any]) -> Tuple[bool, Any, str]:
            value = doc.get(self.field)
            if isinstance(value, str):
                value = value.lower()
            return (value is not None, value if value is not None else 0, doc.get("pet_id", ""))
        return sorted(docs, key=key, reverse=self.descending)


class PetRepository(ABC):
    @abstractmethod
    def find(self, query: PetQuery, sort: SortSpec, skip: int, limit: int) -> List[Pet]: ...

    @abstractmethod
    def count(self, query: PetQuery) -> int: ...

    @abstractmethod
    def find_by_id(self, pet_id: str) -> Optional[Pet]: ...

    @abstractmethod
    def create(self, pet: Pet) -> Pet: ...

    @abstractmethod
    def find_by_id_and_update(self, pet_id: str, updates: Dict[str, Any]) -> Optional[Pet]: ...

    @abstractmethod
    def find_by_id_and_delete(self, pet_id: str) -> Optional[Pet]: ...


class UserRepository(ABC):
    @abstractmethod
    def create(self, user: User) -> User:
        """Insert a new user; raises DuplicateKeyError when username or email is taken."""

    @abstractmethod
    def find_by_id(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    def find_by_username(self, username: str) -> Optional[User]:
        """Case-insensitive lookup."""

    @abstractmethod
    def find_by_id_and_update(self, user_id: str, updates: Dict[str, Any]) -> Optional[User]: ...

    @abstractmethod
    def find_by_id_and_delete(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    def list_all(self) -> List[User]:
        """Every user, newest first."""


class ResetTokenRepository(ABC):
    @abstractmethod
    def create(self, token: PasswordResetToken) -> PasswordResetToken: ...

    @abstractmethod
    def invalidate_active_for_user(self, user_id: str) -> int:
        """Mark every unused token of the user as used; returns how many were touched."""

    @abstractmethod
    def consume(self, token: str) -> Optional[PasswordResetToken]:
        """Atomically burn an unused, unexpired token. Returns it, or None if it was not usable."""

    @abstractmethod
    def find(self, token: str) -> Optional[PasswordResetToken]: ...


@dataclass
class Repositories:
    users: UserRepository
    pets: PetRepository
    reset_tokens: ResetTokenRepository
