# pawhaven/repositories/__init__.py
import logging
import os

from flask import Flask

from .base import (
    DuplicateKeyError, PetQuery, SortSpec, Repositories,
    PetRepository, UserRepository, ResetTokenRepository,
)


def _init_firebase(app: Flask) -> None:
    import firebase_admin
    from firebase_admin import credentials

    if firebase_admin._apps:
        return
    cred_path = app.config.get('FIREBASE_CREDENTIALS_PATH')
    options = {}
    if app.config.get('FIREBASE_PROJECT_ID'):
        options['projectId'] = app.config['FIREBASE_PROJECT_ID']
    if cred_path:
        if not os.path.exists(cred_path):
            raise FileNotFoundError(f"Firebase credentials file not found: {cred_path}")
        firebase_admin.initialize_app(credentials.Certificate(cred_path), options or None)
    else:
        # Application default credentials (Cloud Run, emulator, gcloud auth)
        firebase_admin.initialize_app(options=options or None)


def build_repositories(app: Flask) -> Repositories:
    """Pick the storage backend named by STORAGE_BACKEND."""
    backend = (app.config.get('STORAGE_BACKEND') or 'firestore').lower()
    if backend == 'memory':
        from .memory import build_memory_repositories
        return build_memory_repositories()
    if backend == 'firestore':
        from .firestore import build_firestore_repositories
        _init_firebase(app)
        repositories = build_firestore_repositories()
        logging.info("Firestore repositories initialized successfully")
        return repositories
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")


__all__ = [
    'build_repositories', 'DuplicateKeyError', 'PetQuery', 'SortSpec', 'Repositories',
    'PetRepository', 'UserRepository', 'ResetTokenRepository',
]
