# pawhaven/models/pet.py
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, List, Dict, Any
from enum import Enum
import logging

from pawhaven.utils.datetime_utils import DateTimeUtils


class Species(Enum):
    DOG = "dog"
    CAT = "cat"
    RABBIT = "rabbit"
    BIRD = "bird"
    OTHER = "other"


class PetGender(Enum):
    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"


class PetSize(Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class PetStatus(Enum):
    """Flat state machine: any status may move to any other."""
    AVAILABLE = "available"
    RESERVED = "reserved"
    ADOPTED = "adopted"


SPECIES_VALUES = [e.value for e in Species]
GENDER_VALUES = [e.value for e in PetGender]
SIZE_VALUES = [e.value for e in PetSize]
STATUS_VALUES = [e.value for e in PetStatus]

# Fields a PATCH may touch; everything else a client sends is dropped.
UPDATABLE_FIELDS = (
    "name", "species", "other_species", "breed", "gender", "age_months", "size", "city",
    "vaccinated", "dewormed", "sterilized", "description", "photos", "status", "contact_phone",
)


def age_label(age_months: Optional[int]) -> str:
    months = age_months or 0
    if months < 12:
        return f"{months} mo"
    years, rest = divmod(months, 12)
    return f"{years}y {rest}m" if rest else f"{years}y"


@dataclass
class Pet:
    """
    Document shape of the 'pets' collection (one adoption listing).
    listed_by is a non-owning reference to the user who created the listing.
    """
    pet_id: str
    listed_by: str
    name: str
    species: str
    other_species: Optional[str] = None
    breed: Optional[str] = None
    gender: str = PetGender.UNKNOWN.value
    age_months: int = 0
    size: str = PetSize.MEDIUM.value
    city: Optional[str] = None
    vaccinated: bool = False
    dewormed: bool = False
    sterilized: bool = False
    description: Optional[str] = None
    photos: List[str] = field(default_factory=list)
    status: str = PetStatus.AVAILABLE.value
    contact_phone: Optional[str] = None
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pet":
        """Build a Pet from a stored document, tolerating legacy or missing values."""
        processed = DateTimeUtils.from_firestore(dict(data))

        status = processed.get('status')
        if status not in STATUS_VALUES:
            if status is not None:
                logging.warning(f"Invalid status '{status}' for pet {processed.get('pet_id')}. Defaulting to available.")
            processed['status'] = PetStatus.AVAILABLE.value

        if processed.get('photos') is None:
            processed['photos'] = []

        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in processed.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def age_label(self) -> str:
        return age_label(self.age_months)
