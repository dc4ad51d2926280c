# pawhaven/api/pets/services.py
import uuid
import logging
from typing import Any, Dict, Iterable, Optional, Tuple

from pawhaven.api.pets.policy import can_manage_listing
from pawhaven.core.errors import BadRequest, Forbidden, NotFound
from pawhaven.core.security import Principal
from pawhaven.models.pet import Pet, Species, PetStatus, UPDATABLE_FIELDS
from pawhaven.models.user import User
from pawhaven.repositories.base import PetRepository, UserRepository
from pawhaven.utils.datetime_utils import DateTimeUtils


class PetService:
    """Create, edit, re-status and remove adoption listings."""

    def __init__(self, pets: PetRepository, users: UserRepository, storage_service):
        self.pets = pets
        self.users = users
        self.storage_service = storage_service

    def _load(self, pet_id: str) -> Pet:
        pet = self.pets.find_by_id(pet_id)
        if not pet:
            raise NotFound("Pet not found")
        return pet

    def _load_managed(self, principal: Principal, pet_id: str) -> Pet:
        """Fetch the current record and check the caller may change it."""
        pet = self._load(pet_id)
        if not can_manage_listing(principal, pet):
            raise Forbidden("You can only manage your own listings")
        return pet

    @staticmethod
    def _missing_other_species() -> BadRequest:
        return BadRequest("otherSpecies is required when species is 'other'",
                          errors=[{"field": "otherSpecies", "message": "Required when species is 'other'"}])

    def get_with_owner(self, pet_id: str) -> Tuple[Pet, Optional[User]]:
        pet = self._load(pet_id)
        return pet, self.users.find_by_id(pet.listed_by)

    def create(self, principal: Principal, data: Dict[str, Any], uploads: Iterable = ()) -> Pet:
        """
        :param data: PetCreateSchema output (snake_case keys)
        :param uploads: files from the multipart 'photos' field
        """
        if data.get('species') == Species.OTHER.value and not (data.get('other_species') or '').strip():
            raise self._missing_other_species()

        fields = {k: v for k, v in data.items() if k in UPDATABLE_FIELDS}
        fields['photos'] = list(data.get('photos') or []) + self.storage_service.save_images(uploads)
        fields.setdefault('status', PetStatus.AVAILABLE.value)

        now = DateTimeUtils.now()
        pet = Pet(pet_id=str(uuid.uuid4()), listed_by=principal.id, created_at=now, updated_at=now, **fields)
        self.pets.create(pet)
        logging.info(f"Pet listing created (pet_id: {pet.pet_id}, listed_by: {principal.id})")
        return pet

    def update(self, principal: Principal, pet_id: str, changes: Dict[str, Any], uploads: Iterable = ()) -> Pet:
        """
        Apply a partial update. An explicit photos list replaces the stored one,
        unless files were uploaded too: uploads always extend the stored list.
        """
        pet = self._load_managed(principal, pet_id)
        updates = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}

        species = updates.get('species', pet.species)
        other_species = updates['other_species'] if 'other_species' in updates else pet.other_species
        if species == Species.OTHER.value and not (other_species or '').strip():
            raise self._missing_other_species()

        uploaded = self.storage_service.save_images(uploads)
        if uploaded:
            updates['photos'] = list(pet.photos) + uploaded

        updates['updated_at'] = DateTimeUtils.now()
        updated = self.pets.find_by_id_and_update(pet_id, updates)
        if not updated:
            raise NotFound("Pet not found")
        logging.info(f"Pet listing updated (pet_id: {pet_id}, fields: {sorted(updates)})")
        return updated

    def update_status(self, principal: Principal, pet_id: str, status: str) -> Pet:
        self._load_managed(principal, pet_id)
        updated = self.pets.find_by_id_and_update(pet_id, {'status': status, 'updated_at': DateTimeUtils.now()})
        if not updated:
            raise NotFound("Pet not found")
        logging.info(f"Pet status changed (pet_id: {pet_id}, status: {status})")
        return updated

    def delete(self, principal: Principal, pet_id: str) -> str:
        self._load_managed(principal, pet_id)
        if not self.pets.find_by_id_and_delete(pet_id):
            raise NotFound("Pet not found")
        logging.info(f"Pet listing deleted (pet_id: {pet_id}, by: {principal.id})")
        return pet_id
