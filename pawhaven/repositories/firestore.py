# pawhaven/repositories/firestore.py
"""
Cloud Firestore repositories (production backend).

Firestore has no case-insensitive, substring or full-text operators, so pet
queries push the equality and age-range clauses, the ordering (pet_id breaks
ties) and, when nothing else remains, the page window to the server. Text and
substring clauses are evaluated in Python over the ordered stream, which is
abandoned once the page is filled. Each filter and sort combination needs a
composite index, and names are ordered by code point rather than
case-insensitively.

Unique usernames/emails are enforced with marker documents created in the
same batch as the user document; the batch fails as a whole when a marker
exists.
"""

import logging
from itertools import islice
from typing import Any, Dict, List, Optional

from firebase_admin import firestore
from google.api_core import exceptions as gcp_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter

from pawhaven.models.pet import Pet
from pawhaven.models.user import User
from pawhaven.models.password_reset import PasswordResetToken
from pawhaven.repositories.base import (
    DuplicateKeyError, PetQuery, PetRepository, Repositories, ResetTokenRepository,
    SortSpec, UserRepository,
)
from pawhaven.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)


class FirestorePetRepository(PetRepository):
    def __init__(self, db):
        self.db = db
        self.pets_ref = self.db.collection('pets')

    def _server_query(self, query: PetQuery):
        ref = self.pets_ref
        for key, value in query.equals.items():
            ref = ref.where(filter=FieldFilter(key, "==", value))
        if query.min_age is not None:
            ref = ref.where(filter=FieldFilter("age_months", ">=", query.min_age))
        if query.max_age is not None:
            ref = ref.where(filter=FieldFilter("age_months", "<=", query.max_age))
        return ref

    @staticmethod
    def _needs_residual(query: PetQuery) -> bool:
        return bool(query.contains or query.text)

    def _ordered(self, query: PetQuery, sort: SortSpec):
        direction = firestore.Query.DESCENDING if sort.descending else firestore.Query.ASCENDING
        return self._server_query(query) \
            .order_by(sort.field, direction=direction) \
            .order_by("pet_id", direction=direction)

    def _matching(self, query: PetQuery) -> List[Dict[str, Any]]:
        docs = [DateTimeUtils.from_firestore(snap.to_dict()) for snap in self._server_query(query).stream()]
        return [doc for doc in docs if query.matches(doc)]

    def find(self, query: PetQuery, sort: SortSpec, skip: int, limit: int) -> List[Pet]:
        ordered = self._ordered(query, sort)
        if not self._needs_residual(query):
            snaps = ordered.offset(skip).limit(limit).stream()
            return [Pet.from_dict(DateTimeUtils.from_firestore(snap.to_dict())) for snap in snaps]

        # residual clauses: walk the ordered stream and stop once the page is full
        docs = (DateTimeUtils.from_firestore(snap.to_dict()) for snap in ordered.stream())
        matches = (doc for doc in docs if query.matches(doc))
        return [Pet.from_dict(doc) for doc in islice(matches, skip, skip + limit)]

    def count(self, query: PetQuery) -> int:
        if self._needs_residual(query):
            return len(self._matching(query))
        result = self._server_query(query).count(alias="total").get()
        return int(result[0][0].value)

    def find_by_id(self, pet_id: str) -> Optional[Pet]:
        doc = self.pets_ref.document(pet_id).get()
        return Pet.from_dict(doc.to_dict()) if doc.exists else None

    def create(self, pet: Pet) -> Pet:
        try:
            self.pets_ref.document(pet.pet_id).create(DateTimeUtils.for_firestore(pet.to_dict()))
        except (gcp_exceptions.AlreadyExists, gcp_exceptions.Conflict):
            raise DuplicateKeyError(f"pet {pet.pet_id} already exists")
        logger.info(f"Firestore pet created (pet_id: {pet.pet_id})")
        return pet

    def find_by_id_and_update(self, pet_id: str, updates: Dict[str, Any]) -> Optional[Pet]:
        pet_ref = self.pets_ref.document(pet_id)
        if not pet_ref.get().exists:
            return None
        try:
            pet_ref.update(DateTimeUtils.for_firestore(updates))
        except gcp_exceptions.NotFound:
            return None
        return self.find_by_id(pet_id)

    def find_by_id_and_delete(self, pet_id: str) -> Optional[Pet]:
        pet_ref = self.pets_ref.document(pet_id)
        doc = pet_ref.get()
        if not doc.exists:
            return None
        pet_ref.delete()
        return Pet.from_dict(doc.to_dict())


class FirestoreUserRepository(UserRepository):
    def __init__(self, db):
        self.db = db
        self.users_ref = self.db.collection('users')
        self.uniques_ref = self.db.collection('user_uniques')

    def _marker_refs(self, user: User):
        return [
            self.uniques_ref.document(f"username:{user.username_lower}"),
            self.uniques_ref.document(f"email:{user.email}"),
        ]

    def _first(self, field: str, value: Any) -> Optional[User]:
        query = self.users_ref.where(filter=FieldFilter(field, "==", value)).limit(1).stream()
        doc = next(query, None)
        return User.from_dict(doc.to_dict()) if doc else None

    def create(self, user: User) -> User:
        batch = self.db.batch()
        batch.create(self.users_ref.document(user.user_id), DateTimeUtils.for_firestore(user.to_dict()))
        for marker in self._marker_refs(user):
            batch.create(marker, {'user_id': user.user_id})
        try:
            batch.commit()
        except (gcp_exceptions.AlreadyExists, gcp_exceptions.Conflict):
            raise DuplicateKeyError("username or email already exists")
        logger.info(f"Firestore user created (user_id: {user.user_id})")
        return user

    def find_by_id(self, user_id: str) -> Optional[User]:
        doc = self.users_ref.document(user_id).get()
        return User.from_dict(doc.to_dict()) if doc.exists else None

    def find_by_email(self, email: str) -> Optional[User]:
        return self._first('email', email.lower())

    def find_by_username(self, username: str) -> Optional[User]:
        return self._first('username_lower', username.lower())

    def find_by_id_and_update(self, user_id: str, updates: Dict[str, Any]) -> Optional[User]:
        user_ref = self.users_ref.document(user_id)
        if not user_ref.get().exists:
            return None
        try:
            user_ref.update(DateTimeUtils.for_firestore(updates))
        except gcp_exceptions.NotFound:
            return None
        return self.find_by_id(user_id)

    def find_by_id_and_delete(self, user_id: str) -> Optional[User]:
        user = self.find_by_id(user_id)
        if user is None:
            return None
        batch = self.db.batch()
        batch.delete(self.users_ref.document(user_id))
        for marker in self._marker_refs(user):
            batch.delete(marker)
        batch.commit()
        return user

    def list_all(self) -> List[User]:
        query = self.users_ref.order_by("created_at", direction=firestore.Query.DESCENDING)
        return [User.from_dict(doc.to_dict()) for doc in query.stream()]


class FirestoreResetTokenRepository(ResetTokenRepository):
    def __init__(self, db):
        self.db = db
        self.tokens_ref = self.db.collection('password_reset_tokens')

    def create(self, token: PasswordResetToken) -> PasswordResetToken:
        try:
            self.tokens_ref.document(token.token).create(DateTimeUtils.for_firestore(token.to_dict()))
        except (gcp_exceptions.AlreadyExists, gcp_exceptions.Conflict):
            raise DuplicateKeyError("reset token collision")
        return token

    def invalidate_active_for_user(self, user_id: str) -> int:
        query = self.tokens_ref \
            .where(filter=FieldFilter("user_id", "==", user_id)) \
            .where(filter=FieldFilter("used", "==", False))
        batch = self.db.batch()
        touched = 0
        for doc in query.stream():
            batch.update(doc.reference, {'used': True})
            touched += 1
        if touched:
            batch.commit()
        return touched

    def consume(self, token: str) -> Optional[PasswordResetToken]:
        transaction = self.db.transaction()
        token_ref = self.tokens_ref.document(token)

        @firestore.transactional
        def _consume_in_transaction(transaction):
            snapshot = token_ref.get(transaction=transaction)
            if not snapshot.exists:
                return None
            record = PasswordResetToken.from_dict(snapshot.to_dict())
            if not record.is_active:
                return None
            transaction.update(token_ref, {'used': True})
            record.used = True
            return record

        return _consume_in_transaction(transaction)

    def find(self, token: str) -> Optional[PasswordResetToken]:
        doc = self.tokens_ref.document(token).get()
        return PasswordResetToken.from_dict(doc.to_dict()) if doc.exists else None


def build_firestore_repositories() -> Repositories:
    db = firestore.client()
    return Repositories(
        users=FirestoreUserRepository(db),
        pets=FirestorePetRepository(db),
        reset_tokens=FirestoreResetTokenRepository(db),
    )
