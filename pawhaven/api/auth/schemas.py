# pawhaven/api/auth/schemas.py
from marshmallow import Schema, fields, validate, pre_load, validates_schema, ValidationError, EXCLUDE

from pawhaven.utils.coercion import digits_only


class RegisterSchema(Schema):
    """POST /api/auth/register request body."""
    class Meta:
        unknown = EXCLUDE

    username = fields.Str(required=True, validate=validate.Length(min=3, max=32, error="Username must be 3–32 characters"))
    fullname = fields.Str(required=True, validate=validate.Length(min=2, max=80, error="Full name must be 2–80 characters"))
    email = fields.Email(required=True, error_messages={"invalid": "Enter a valid email address"})
    password = fields.Str(required=True, validate=validate.Length(min=8, max=16, error="Password must be 8–16 characters"))
    phone = fields.Str(
        required=True,
        validate=validate.Regexp(r"^[0-9]{10,15}$", error="Phone must be 10–15 digits (numbers only)"),
        error_messages={"required": "Phone is required"},
    )
    avatar = fields.Str(allow_none=True)

    @pre_load
    def normalize(self, data, **kwargs):
        """Accept contactPhone as an alias of phone; trim text and lowercase the email."""
        data = dict(data or {})
        raw_phone = data.pop("contactPhone", None)
        if data.get("phone") is None:
            data["phone"] = raw_phone
        if data.get("phone") is not None:
            data["phone"] = digits_only(data["phone"])
            if not data["phone"]:
                data.pop("phone")
        for key in ("username", "fullname", "avatar"):
            if isinstance(data.get(key), str):
                data[key] = data[key].strip()
        if isinstance(data.get("email"), str):
            data["email"] = data["email"].strip().lower()
        return data


class LoginSchema(Schema):
    """POST /api/auth/login: email, username or a generic identifier plus the password."""
    class Meta:
        unknown = EXCLUDE

    email = fields.Str(load_default=None)
    username = fields.Str(load_default=None)
    password = fields.Str(required=True, error_messages={"required": "Password is required"})

    @pre_load
    def normalize(self, data, **kwargs):
        data = dict(data or {})
        identifier = data.pop("identifier", None)
        email = (data.get("email") or "").strip().lower() if isinstance(data.get("email"), str) else ""
        username = (data.get("username") or "").strip() if isinstance(data.get("username"), str) else ""
        if isinstance(identifier, str) and identifier.strip():
            if not email and "@" in identifier:
                email = identifier.strip().lower()
            elif not email and not username:
                username = identifier.strip()
        data["email"] = email or None
        data["username"] = username or None
        return data

    @validates_schema
    def require_identity(self, data, **kwargs):
        if not data.get("email") and not data.get("username"):
            raise ValidationError("Provide email or username and password", field_name="email")


class RefreshSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.Str(data_key="refreshToken", load_default=None)
