# pawhaven/models/password_reset.py
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, Any

from pawhaven.utils.datetime_utils import DateTimeUtils


@dataclass
class PasswordResetToken:
    """Document shape of the 'password_reset_tokens' collection; the token string is the document id."""
    token: str
    user_id: str
    expires_at: datetime
    used: bool = False
    created_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PasswordResetToken":
        processed = DateTimeUtils.from_firestore(dict(data))
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in processed.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def is_expired(self) -> bool:
        return DateTimeUtils.is_past(self.expires_at)

    @property
    def is_active(self) -> bool:
        return not self.used and not self.is_expired
