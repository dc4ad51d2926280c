# pawhaven/api/pets/test_policy.py
from pawhaven.api.pets.policy import can_manage_listing
from pawhaven.core.security import Principal
from pawhaven.models.pet import Pet

PET = Pet(pet_id="p-1", listed_by="owner", name="Rex", species="dog")


def test_owner_can_manage():
    assert can_manage_listing(Principal(id="owner"), PET)


def test_superadmin_can_manage_any_listing():
    assert can_manage_listing(Principal(id="root", role="superadmin"), PET)


def test_others_cannot():
    assert not can_manage_listing(Principal(id="someone"), PET)
    assert not can_manage_listing(Principal(id="someone", role="admin"), PET)
    assert not can_manage_listing(None, PET)
