# pawhaven/api/pets/schemas.py
from marshmallow import Schema, fields, validate, pre_load, validates_schema, ValidationError, EXCLUDE

from pawhaven.models.pet import SPECIES_VALUES, GENDER_VALUES, SIZE_VALUES, STATUS_VALUES, Species
from pawhaven.utils.coercion import parse_bool, digits_only

CARE_FLAGS = ("vaccinated", "dewormed", "sterilized")
TRIMMED_FIELDS = ("name", "species", "otherSpecies", "breed", "gender", "size", "city", "description", "status")
MAX_PHOTO_URLS = 10


def _normalize_listing_payload(data):
    """
    Bring a JSON body or multipart form into one canonical shape before validation.
    Unknown keys (listedBy, ownerId, _id, ...) are left for Meta.unknown to drop.
    """
    data = dict(data or {})

    legacy = data.pop("speciesOther", None)
    if data.get("otherSpecies") is None and legacy is not None:
        data["otherSpecies"] = legacy

    for key in TRIMMED_FIELDS:
        if isinstance(data.get(key), str):
            data[key] = data[key].strip()

    if "contactPhone" in data:
        phone = digits_only(data["contactPhone"])
        if phone:
            data["contactPhone"] = phone
        else:
            data.pop("contactPhone")

    for key in CARE_FLAGS:
        if key in data:
            flag = parse_bool(data[key])
            if flag is None:
                data.pop(key)
            else:
                data[key] = flag

    age = data.get("ageMonths")
    if isinstance(age, str):
        age = age.strip()
        if not age:
            data.pop("ageMonths")
        elif age.isdigit():
            data["ageMonths"] = int(age)

    photos = data.get("photos")
    if isinstance(photos, str):
        photos = [photos]
    if isinstance(photos, (list, tuple)):
        data["photos"] = [p.strip() for p in photos if isinstance(p, str) and p.strip()]
    elif "photos" in data and photos is None:
        data.pop("photos")

    return data


class _ListingFieldsSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(validate=validate.Length(min=1, max=100, error="name must be 1–100 characters"))
    species = fields.Str(validate=validate.OneOf(SPECIES_VALUES, error="Invalid species"))
    other_species = fields.Str(data_key="otherSpecies", allow_none=True,
                               validate=validate.Length(max=60, error="otherSpecies must be at most 60 characters"))
    breed = fields.Str(allow_none=True, validate=validate.Length(max=100))
    gender = fields.Str(validate=validate.OneOf(GENDER_VALUES, error="Invalid gender"))
    age_months = fields.Int(data_key="ageMonths", strict=False,
                            validate=validate.Range(min=0, max=600, error="ageMonths must be between 0 and 600"))
    size = fields.Str(validate=validate.OneOf(SIZE_VALUES, error="Invalid size"))
    city = fields.Str(allow_none=True, validate=validate.Length(max=60))
    vaccinated = fields.Bool()
    dewormed = fields.Bool()
    sterilized = fields.Bool()
    description = fields.Str(allow_none=True, validate=validate.Length(max=2000))
    photos = fields.List(fields.Str(), validate=validate.Length(max=MAX_PHOTO_URLS,
                                                                error=f"At most {MAX_PHOTO_URLS} photo URLs"))
    contact_phone = fields.Str(data_key="contactPhone",
                               validate=validate.Regexp(r"^[0-9]{10,15}$",
                                                        error="contactPhone must be 10–15 digits"))

    @pre_load
    def normalize(self, data, **kwargs):
        return _normalize_listing_payload(data)


class PetCreateSchema(_ListingFieldsSchema):
    """POST /api/pets"""
    name = fields.Str(required=True, validate=validate.Length(min=1, max=100, error="name must be 1–100 characters"),
                      error_messages={"required": "name is required"})
    species = fields.Str(required=True, validate=validate.OneOf(SPECIES_VALUES, error="Invalid species"),
                         error_messages={"required": "species is required"})
    # An unknown status on create falls back to the default instead of failing.
    status = fields.Str()

    @pre_load
    def normalize(self, data, **kwargs):
        data = _normalize_listing_payload(data)
        if data.get("status") not in STATUS_VALUES:
            data.pop("status", None)
        return data

    @validates_schema
    def require_other_species(self, data, **kwargs):
        if data.get("species") == Species.OTHER.value and not (data.get("other_species") or "").strip():
            raise ValidationError("otherSpecies is required when species is 'other'", field_name="otherSpecies")


class PetUpdateSchema(_ListingFieldsSchema):
    """PATCH /api/pets/<pet_id>; load with partial=True."""
    status = fields.Str(validate=validate.OneOf(STATUS_VALUES, error="Invalid status"))


class StatusUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    status = fields.Str(required=True, validate=validate.OneOf(STATUS_VALUES, error="Invalid status"),
                        error_messages={"required": "status is required"})


class PetListQuerySchema(Schema):
    """
    Query string of GET /api/pets and /api/pets/mine.

    Only the enum and age parameters can fail validation. Everything else is
    sanitized by the query service (bad status is ignored, sort falls back to
    -createdAt, page and limit are clamped).
    """
    class Meta:
        unknown = EXCLUDE

    q = fields.Str()
    species = fields.Str(validate=validate.OneOf(SPECIES_VALUES, error="Invalid species"))
    gender = fields.Str(validate=validate.OneOf(GENDER_VALUES, error="Invalid gender"))
    size = fields.Str(validate=validate.OneOf(SIZE_VALUES, error="Invalid size"))
    status = fields.Str()
    city = fields.Str()
    other_species = fields.Str(data_key="otherSpecies")
    vaccinated = fields.Raw()
    dewormed = fields.Raw()
    sterilized = fields.Raw()
    min_age = fields.Int(data_key="minAge", validate=validate.Range(min=0, error="minAge must be a non-negative integer"),
                         error_messages={"invalid": "minAge must be a non-negative integer"})
    max_age = fields.Int(data_key="maxAge", validate=validate.Range(min=0, error="maxAge must be a non-negative integer"),
                         error_messages={"invalid": "maxAge must be a non-negative integer"})
    mine = fields.Raw()
    sort = fields.Str()
    page = fields.Raw()
    limit = fields.Raw()

    @pre_load
    def normalize(self, data, **kwargs):
        data = dict(data.items()) if hasattr(data, "items") else {}
        legacy = data.pop("speciesOther", None)
        if not data.get("otherSpecies") and legacy:
            data["otherSpecies"] = legacy
        # blank parameters count as absent
        return {k: v.strip() if isinstance(v, str) else v
                for k, v in data.items()
                if not (isinstance(v, str) and not v.strip())}


class PetResponseSchema(Schema):
    """Listing view. ownerId is a read-only alias of listedBy."""
    id = fields.Str(attribute="pet_id", dump_only=True)
    owner_id = fields.Str(attribute="listed_by", data_key="ownerId", dump_only=True)
    listed_by = fields.Str(data_key="listedBy")
    name = fields.Str()
    species = fields.Str()
    other_species = fields.Str(data_key="otherSpecies", allow_none=True)
    breed = fields.Str(allow_none=True)
    gender = fields.Str()
    age_months = fields.Int(data_key="ageMonths")
    age_label = fields.Str(data_key="ageLabel", dump_only=True)
    size = fields.Str()
    city = fields.Str(allow_none=True)
    vaccinated = fields.Bool()
    dewormed = fields.Bool()
    sterilized = fields.Bool()
    description = fields.Str(allow_none=True)
    photos = fields.List(fields.Str())
    status = fields.Str()
    contact_phone = fields.Str(data_key="contactPhone", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
