# pawhaven/api/pets/policy.py
from typing import Optional

from pawhaven.core.security import Principal
from pawhaven.models.pet import Pet
from pawhaven.models.user import Role


def can_manage_listing(principal: Optional[Principal], pet: Pet) -> bool:
    """Owner or superadmin may edit, re-status or delete a listing."""
    if principal is None:
        return False
    return principal.id == pet.listed_by or principal.role == Role.SUPERADMIN.value
