# pawhaven/models/__init__.py
from .user import User, Role, build_default_avatar
from .pet import Pet, Species, PetGender, PetSize, PetStatus
from .password_reset import PasswordResetToken

__all__ = [
    'User', 'Role', 'build_default_avatar',
    'Pet', 'Species', 'PetGender', 'PetSize', 'PetStatus',
    'PasswordResetToken',
]
