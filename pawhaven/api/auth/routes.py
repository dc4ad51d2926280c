# pawhaven/api/auth/routes.py

import logging
from flask import Blueprint, request, current_app

from pawhaven.api.auth.schemas import RegisterSchema, LoginSchema, RefreshSchema
from pawhaven.api.users.schemas import UserPublicResponseSchema
from pawhaven.core.responses import success

auth_bp = Blueprint('auth_bp', __name__)

REFRESH_COOKIE = "refreshToken"


def _auth_service():
    return current_app.services['auth']


def _session_response(user, tokens, status):
    """
    Build the {user, accessToken, refreshToken?} body. In cookie mode the refresh
    token only travels as an httpOnly cookie and is left out of the JSON.
    """
    settings = _auth_service().settings
    body = {
        "user": UserPublicResponseSchema().dump(user),
        "accessToken": tokens["accessToken"],
    }
    if not settings.use_refresh_cookie:
        body["refreshToken"] = tokens["refreshToken"]

    response, status = success(body, status)
    if settings.use_refresh_cookie:
        response.set_cookie(
            REFRESH_COOKIE,
            tokens["refreshToken"],
            max_age=settings.refresh_expires_seconds,
            httponly=True,
            samesite='Lax',
            secure=settings.cookie_secure,
            path='/api/auth',
        )
    return response, status


@auth_bp.route('/register', methods=['POST'])
def register():
    """Create an account and sign the new user in."""
    data = RegisterSchema().load(request.get_json(silent=True) or {})
    user, tokens = _auth_service().register(data)
    return _session_response(user, tokens, 201)


@auth_bp.route('/login', methods=['POST'])
def login():
    data = LoginSchema().load(request.get_json(silent=True) or {})
    user, tokens = _auth_service().authenticate(
        data['password'], email=data.get('email'), username=data.get('username')
    )
    logging.info(f"User logged in (user_id: {user.user_id})")
    return _session_response(user, tokens, 200)


@auth_bp.route('/refresh', methods=['POST'])
def refresh():
    """Trade a refresh token for a new access token."""
    service = _auth_service()
    cookie_token = request.cookies.get(REFRESH_COOKIE)
    if service.settings.use_refresh_cookie:
        token = cookie_token
    else:
        data = RefreshSchema().load(request.get_json(silent=True) or {})
        token = data.get('refresh_token') or cookie_token

    access_token = service.refresh_access_token(token)
    return success({"accessToken": access_token})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    # Tokens are stateless; logging out only drops the refresh cookie.
    response, status = success(message="Logged out")
    if _auth_service().settings.use_refresh_cookie:
        response.delete_cookie(REFRESH_COOKIE, path='/api/auth')
    return response, status
