# pawhaven/models/user.py
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
from urllib.parse import quote
import re

from pawhaven.utils.datetime_utils import DateTimeUtils

DICEBEAR_URL = "https://api.dicebear.com/7.x/initials/svg?seed={seed}&backgroundType=gradientLinear"


class Role(Enum):
    USER = "user"
    SUPERADMIN = "superadmin"


def build_default_avatar(username: Optional[str] = "", fullname: Optional[str] = "") -> str:
    """Deterministic initials avatar seeded from username, then fullname."""
    seed = (username or fullname or "friend").strip()
    seed = re.sub(r"\s+", "-", seed).lower()
    return DICEBEAR_URL.format(seed=quote(seed, safe=""))


@dataclass
class User:
    """
    Document shape of the 'users' collection.
    password_hash stays on the stored record; UserPublicResponseSchema never dumps it.
    """
    user_id: str
    username: str
    fullname: str
    email: str
    password_hash: str
    phone: str
    role: str = Role.USER.value
    avatar: Optional[str] = None
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    def __post_init__(self):
        if not self.avatar:
            self.avatar = build_default_avatar(self.username, self.fullname)

    @property
    def username_lower(self) -> str:
        return self.username.lower()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        processed = DateTimeUtils.from_firestore(dict(data))
        processed.pop('username_lower', None)
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in processed.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['username_lower'] = self.username_lower
        return data
