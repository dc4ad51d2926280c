# pawhaven/api/pets/routes.py

from flask import Blueprint, request, current_app

from pawhaven.api.pets.queries import ListingQuery
from pawhaven.api.pets.schemas import (
    PetCreateSchema, PetUpdateSchema, StatusUpdateSchema, PetListQuerySchema, PetResponseSchema
)
from pawhaven.api.users.schemas import OwnerSummarySchema
from pawhaven.core.responses import success
from pawhaven.core.security import auth_required, auth_optional, current_principal

pets_bp = Blueprint('pets_bp', __name__)


def _pet_service():
    return current_app.services['pets']


def _read_payload():
    """
    Listings can be sent as JSON or as multipart form data with image files in
    the 'photos' field. Returns (payload, uploaded_files).
    """
    if request.mimetype == 'multipart/form-data':
        payload = request.form.to_dict()
        photo_urls = request.form.getlist('photos')
        if photo_urls:
            payload['photos'] = photo_urls
        return payload, request.files.getlist('photos')
    return request.get_json(silent=True) or {}, []


def _search(owner_id=None):
    params = PetListQuerySchema().load(request.args)
    listing = ListingQuery.from_params(params, principal=current_principal(), owner_id=owner_id)
    items, meta = current_app.services['pet_queries'].search(listing)
    return success(PetResponseSchema(many=True).dump(items), meta=meta)


@pets_bp.route('', methods=['GET'])
@auth_optional
def list_pets():
    """Public listing search; `mine=true` needs a token."""
    return _search()


@pets_bp.route('/mine', methods=['GET'])
@auth_required
def list_my_pets():
    return _search(owner_id=current_principal().id)


@pets_bp.route('/<string:pet_id>', methods=['GET'])
def get_pet(pet_id):
    pet, owner = _pet_service().get_with_owner(pet_id)
    data = PetResponseSchema().dump(pet)
    if owner:
        data['owner'] = OwnerSummarySchema().dump(owner)
    return success(data)


@pets_bp.route('', methods=['POST'])
@auth_required
def create_pet():
    payload, uploads = _read_payload()
    data = PetCreateSchema().load(payload)
    pet = _pet_service().create(current_principal(), data, uploads)
    return success(PetResponseSchema().dump(pet), 201)


@pets_bp.route('/<string:pet_id>', methods=['PATCH'])
@auth_required
def update_pet(pet_id):
    payload, uploads = _read_payload()
    changes = PetUpdateSchema().load(payload, partial=True)
    pet = _pet_service().update(current_principal(), pet_id, changes, uploads)
    return success(PetResponseSchema().dump(pet))


@pets_bp.route('/<string:pet_id>/status', methods=['PATCH'])
@auth_required
def update_pet_status(pet_id):
    data = StatusUpdateSchema().load(request.get_json(silent=True) or {})
    pet = _pet_service().update_status(current_principal(), pet_id, data['status'])
    return success({"id": pet.pet_id, "status": pet.status})


@pets_bp.route('/<string:pet_id>', methods=['DELETE'])
@auth_required
def delete_pet(pet_id):
    deleted_id = _pet_service().delete(current_principal(), pet_id)
    return success({"id": deleted_id})
