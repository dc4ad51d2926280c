# pawhaven/api/users/routes.py

from flask import Blueprint, request, current_app

from pawhaven.api.users.schemas import UserPublicResponseSchema, UpdateMeSchema, ChangePasswordSchema
from pawhaven.core.responses import success
from pawhaven.core.security import auth_required, role_required, current_principal

users_bp = Blueprint('users_bp', __name__)


def _user_service():
    return current_app.services['users']


@users_bp.route('/me', methods=['GET'])
@auth_required
def get_me():
    user = _user_service().get_user(current_principal().id)
    return success(UserPublicResponseSchema().dump(user))


@users_bp.route('/me', methods=['PATCH'])
@auth_required
def update_me():
    """Partial profile update: fullname, avatar, phone."""
    changes = UpdateMeSchema().load(request.get_json(silent=True) or {}, partial=True)
    user = _user_service().update_profile(current_principal().id, changes)
    return success(UserPublicResponseSchema().dump(user))


@users_bp.route('/me/password', methods=['PATCH'])
@auth_required
def change_password():
    data = ChangePasswordSchema().load(request.get_json(silent=True) or {})
    _user_service().change_password(current_principal().id, data['current_password'], data['new_password'])
    return success(message="Password updated")


# --- superadmin moderation ---

@users_bp.route('', methods=['GET'])
@auth_required
@role_required('superadmin')
def list_users():
    users = _user_service().list_users()
    return success(UserPublicResponseSchema(many=True).dump(users), meta={"total": len(users)})


@users_bp.route('/<string:user_id>', methods=['GET'])
@auth_required
@role_required('superadmin')
def get_user(user_id):
    return success(UserPublicResponseSchema().dump(_user_service().get_user(user_id)))


@users_bp.route('/<string:user_id>', methods=['DELETE'])
@auth_required
@role_required('superadmin')
def delete_user(user_id):
    user = _user_service().delete_user(user_id)
    return success({"id": user.user_id})
