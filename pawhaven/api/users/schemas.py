# pawhaven/api/users/schemas.py
from marshmallow import Schema, fields, validate, pre_load, EXCLUDE

from pawhaven.utils.coercion import digits_only


class UserPublicResponseSchema(Schema):
    """
    Outward view of a user. The password hash is never part of this schema,
    so it cannot leak through any response that dumps a user.
    """
    id = fields.Str(attribute="user_id", dump_only=True)
    username = fields.Str()
    fullname = fields.Str()
    email = fields.Email()
    phone = fields.Str()
    role = fields.Str()
    avatar = fields.Str(allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")


class OwnerSummarySchema(Schema):
    """Owner contact block shown on a single listing."""
    id = fields.Str(attribute="user_id", dump_only=True)
    username = fields.Str()
    fullname = fields.Str()
    phone = fields.Str()


class UpdateMeSchema(Schema):
    """PATCH /api/users/me (partial)."""
    class Meta:
        unknown = EXCLUDE

    fullname = fields.Str(validate=validate.Length(min=2, max=80,
                                                   error="fullname must be 2–80 characters"))
    avatar = fields.Str(validate=validate.Length(max=500, error="avatar URL too long (max 500 chars)"))
    phone = fields.Str(validate=validate.Regexp(r"^[0-9]{10,15}$", error="phone must be 10–15 digits"))

    @pre_load
    def normalize(self, data, **kwargs):
        data = dict(data or {})
        for key in ("fullname", "avatar"):
            if isinstance(data.get(key), str):
                data[key] = data[key].strip()
        if "phone" in data and data["phone"] is not None:
            data["phone"] = digits_only(data["phone"])
        return data


class ChangePasswordSchema(Schema):
    """PATCH /api/users/me/password"""
    class Meta:
        unknown = EXCLUDE

    current_password = fields.Str(required=True, data_key="currentPassword",
                                  validate=validate.Length(min=8, max=128),
                                  error_messages={"required": "currentPassword is required"})
    new_password = fields.Str(required=True, data_key="newPassword",
                              validate=validate.Length(min=8, max=128, error="newPassword must be 8–128 chars"),
                              error_messages={"required": "newPassword is required"})
