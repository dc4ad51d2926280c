# pawhaven/__init__.py

# =====================================================================================
# 1. Environment variables (loaded before anything reads os.environ)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. Module imports
# =====================================================================================
import os
import time
import logging
from flask import Flask, send_from_directory
from flask_cors import CORS

# - configuration and cross-cutting pieces
from pawhaven.core.config import config_by_name, AuthSettings
from pawhaven.core.errors import register_error_handlers
from pawhaven.core.responses import success
from pawhaven.core.security import TokenService

# - API blueprints
from pawhaven.api.auth.routes import auth_bp
from pawhaven.api.password.routes import password_bp
from pawhaven.api.users.routes import users_bp
from pawhaven.api.pets.routes import pets_bp

# - services
from pawhaven.repositories import build_repositories
from pawhaven.services.storage_service import StorageService
from pawhaven.services.mail_service import MailService
from pawhaven.api.auth.services import AuthService
from pawhaven.api.password.services import PasswordResetService
from pawhaven.api.users.services import UserService
from pawhaven.api.pets.services import PetService
from pawhaven.api.pets.queries import PetQueryService

# - realtime and operator commands
from pawhaven.realtime import socketio
from pawhaven.cli import promote_user_cmd

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def create_app(config_name=None, test_config=None):
    """
    Application factory.

    :param config_name: key of config_by_name; defaults to FLASK_ENV, then 'development'
    :param test_config: mapping applied over the selected config (tests)
    """
    # =====================================================================================
    # 3. Flask app and base configuration
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')
    if config_name not in config_by_name:
        raise ValueError(f"Unknown configuration '{config_name}'. Use one of: {', '.join(config_by_name)}")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    if test_config:
        app.config.update(test_config)
    app.json.ensure_ascii = False
    app.started_at = time.time()

    logging.basicConfig(
        level=getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
    )

    # =====================================================================================
    # 4. Extensions
    # =====================================================================================
    CORS(app, origins=app.config['CORS_ORIGIN'], supports_credentials=True)

    # =====================================================================================
    # 5. Service instances in 'app.services' (dependency injection)
    # =====================================================================================
    app.services = {}

    # 5-1. storage and infrastructure first
    try:
        repositories = build_repositories(app)
        app.services['repositories'] = repositories
    except Exception as e:
        logging.error(f"Failed to initialize repositories: {e}")
        raise

    try:
        storage_instance = StorageService()
        storage_instance.init_app(app)
        app.services['storage'] = storage_instance
        logging.info("Storage service initialized successfully")
    except Exception as e:
        logging.error(f"Failed to initialize storage service: {e}")
        raise

    app.services['mail'] = MailService()

    settings = AuthSettings.from_mapping(app.config)
    app.services['tokens'] = TokenService(settings)

    # 5-2. domain services that depend on the ones above
    app.services['auth'] = AuthService(repositories.users, app.services['tokens'], settings)
    app.services['users'] = UserService(repositories.users, app.services['auth'])
    app.services['password'] = PasswordResetService(
        users=repositories.users,
        reset_tokens=repositories.reset_tokens,
        auth_service=app.services['auth'],
        mail_service=app.services['mail'],
        ttl_minutes=app.config['PASSWORD_RESET_TTL_MIN'],
        base_url=app.config['APP_BASE_URL'],
    )
    app.services['pets'] = PetService(
        pets=repositories.pets,
        users=repositories.users,
        storage_service=app.services['storage'],
    )
    app.services['pet_queries'] = PetQueryService(repositories.pets)
    logging.info("Domain services initialized successfully")

    # =====================================================================================
    # 6. Blueprints and plain routes
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(password_bp, url_prefix='/api/auth/password')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(pets_bp, url_prefix='/api/pets')

    def health():
        return success({"status": "ok", "uptime": round(time.time() - app.started_at, 3)})

    app.add_url_rule('/health', 'health', health)
    app.add_url_rule('/api/health', 'api_health', health)

    @app.route('/uploads/<path:filename>')
    def uploaded_file(filename):
        return send_from_directory(app.services['storage'].upload_dir, filename)

    @app.after_request
    def set_security_headers(response):
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    # =====================================================================================
    # 7. Error handlers, realtime gateway, CLI
    # =====================================================================================
    register_error_handlers(app)
    socketio.init_app(app, cors_allowed_origins=app.config['CORS_ORIGIN'])
    app.cli.add_command(promote_user_cmd)

    logging.info(f"Flask app created for '{config_name}' environment.")
    return app
