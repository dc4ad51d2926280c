# pawhaven/core/config.py

import os
from dataclasses import dataclass
from typing import List


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_list(name: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, "").split(",") if item.strip()]


class Config:
    """Shared settings for every environment."""
    ENV_NAME = "base"

    # Access and refresh tokens are signed with separate secrets.
    ACCESS_TOKEN_SECRET = os.getenv('ACCESS_TOKEN_SECRET')
    REFRESH_TOKEN_SECRET = os.getenv('REFRESH_TOKEN_SECRET')
    ACCESS_TOKEN_EXPIRES = _env_int('ACCESS_TOKEN_EXPIRES', 15 * 60)
    REFRESH_TOKEN_EXPIRES = _env_int('REFRESH_TOKEN_EXPIRES', 7 * 24 * 60 * 60)
    # Deliver the refresh token as an httpOnly cookie instead of in the JSON body.
    USE_REFRESH_COOKIE = _env_bool('USE_REFRESH_COOKIE')
    PASSWORD_HASH_METHOD = os.getenv('PASSWORD_HASH_METHOD', 'scrypt')

    # 'firestore' in deployed environments, 'memory' for local runs and tests
    STORAGE_BACKEND = os.getenv('STORAGE_BACKEND', 'firestore')
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID')

    UPLOAD_DIR = os.getenv('UPLOAD_DIR', 'uploads')
    UPLOAD_MAX_FILES = _env_int('UPLOAD_MAX_FILES', 5)
    UPLOAD_MAX_FILE_SIZE = _env_int('UPLOAD_MAX_FILE_SIZE', 5 * 1024 * 1024)
    MAX_CONTENT_LENGTH = UPLOAD_MAX_FILES * UPLOAD_MAX_FILE_SIZE + 1024 * 1024

    PASSWORD_RESET_TTL_MIN = _env_int('PASSWORD_RESET_TTL_MIN', 30)
    APP_BASE_URL = os.getenv('APP_BASE_URL', 'http://localhost:5173')
    SEND_RESET_LINK_IN_RESPONSE = _env_bool('SEND_RESET_LINK_IN_RESPONSE')

    CORS_ORIGIN = _env_list('CORS_ORIGIN') or ["http://localhost:5173", "http://127.0.0.1:5173"]
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    """Local development: debug on, fallback secrets so the server boots without a .env."""
    ENV_NAME = "development"
    DEBUG = True
    ACCESS_TOKEN_SECRET = os.getenv('ACCESS_TOKEN_SECRET', 'dev-access-secret-change-me')
    REFRESH_TOKEN_SECRET = os.getenv('REFRESH_TOKEN_SECRET', 'dev-refresh-secret-change-me')
    STORAGE_BACKEND = os.getenv('STORAGE_BACKEND', 'memory')


class TestingConfig(Config):
    """pytest runs: in-memory storage, fixed secrets, cheap password hashing."""
    ENV_NAME = "testing"
    TESTING = True
    DEBUG = False
    ACCESS_TOKEN_SECRET = 'test-access-secret'
    REFRESH_TOKEN_SECRET = 'test-refresh-secret'
    ACCESS_TOKEN_EXPIRES = 15 * 60
    REFRESH_TOKEN_EXPIRES = 60 * 60
    USE_REFRESH_COOKIE = False
    PASSWORD_HASH_METHOD = 'pbkdf2:sha256:1000'
    STORAGE_BACKEND = 'memory'
    SEND_RESET_LINK_IN_RESPONSE = True
    CORS_ORIGIN = ["http://localhost:5173"]


class ProductionConfig(Config):
    ENV_NAME = "production"
    DEBUG = False


# Maps FLASK_ENV values to config classes; create_app picks one from here.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)


@dataclass(frozen=True)
class AuthSettings:
    """Explicit auth configuration handed to TokenService and AuthService."""
    access_secret: str
    refresh_secret: str
    access_expires_seconds: int = 15 * 60
    refresh_expires_seconds: int = 7 * 24 * 60 * 60
    algorithm: str = "HS256"
    use_refresh_cookie: bool = False
    cookie_secure: bool = False
    password_hash_method: str = "scrypt"

    @classmethod
    def from_mapping(cls, config) -> "AuthSettings":
        return cls(
            access_secret=config.get('ACCESS_TOKEN_SECRET') or "",
            refresh_secret=config.get('REFRESH_TOKEN_SECRET') or "",
            access_expires_seconds=int(config.get('ACCESS_TOKEN_EXPIRES', 15 * 60)),
            refresh_expires_seconds=int(config.get('REFRESH_TOKEN_EXPIRES', 7 * 24 * 60 * 60)),
            use_refresh_cookie=bool(config.get('USE_REFRESH_COOKIE', False)),
            cookie_secure=config.get('ENV_NAME') == 'production',
            password_hash_method=config.get('PASSWORD_HASH_METHOD', 'scrypt'),
        )
