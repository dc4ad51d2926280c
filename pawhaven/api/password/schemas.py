# pawhaven/api/password/schemas.py
from marshmallow import Schema, fields, validate, pre_load, EXCLUDE


class ForgotPasswordSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    email = fields.Str(required=True, validate=validate.Length(min=1),
                       error_messages={"required": "email is required"})

    @pre_load
    def normalize(self, data, **kwargs):
        data = dict(data or {})
        if isinstance(data.get("email"), str):
            data["email"] = data["email"].strip().lower()
        return data


class ResetPasswordSchema(Schema):
    """POST /api/auth/password/reset"""
    class Meta:
        unknown = EXCLUDE

    token = fields.Str(required=True, validate=validate.Length(min=1),
                       error_messages={"required": "token is required"})
    password = fields.Str(required=True,
                          validate=validate.Length(min=8, max=128, error="password must be 8–128 characters"),
                          error_messages={"required": "password is required"})

    @pre_load
    def normalize(self, data, **kwargs):
        data = dict(data or {})
        if isinstance(data.get("token"), str):
            data["token"] = data["token"].strip()
        return data
