# pawhaven/api/password/routes.py

from flask import Blueprint, request, current_app

from pawhaven.api.password.schemas import ForgotPasswordSchema, ResetPasswordSchema
from pawhaven.core.responses import success

password_bp = Blueprint('password_bp', __name__)


def _expose_link() -> bool:
    return (current_app.config.get('ENV_NAME') != 'production'
            or bool(current_app.config.get('SEND_RESET_LINK_IN_RESPONSE')))


@password_bp.route('/forgot', methods=['POST'])
def forgot_password():
    """Always 200 so callers cannot tell which emails are registered."""
    data = ForgotPasswordSchema().load(request.get_json(silent=True) or {})
    link = current_app.services['password'].request_reset(data['email'])
    if link and _expose_link():
        return success({"link": link})
    return success()


@password_bp.route('/reset', methods=['POST'])
def reset_password():
    data = ResetPasswordSchema().load(request.get_json(silent=True) or {})
    current_app.services['password'].reset_password(data['token'], data['password'])
    return success(message="Password has been reset")
