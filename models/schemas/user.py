from marshmallow import Schema, fields, pre_load, validates, ValidationError

MIN_PASSWORD_LENGTH = 6


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class _EmailNormalizingSchema(Schema):
    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data


class UserCreateSchema(_EmailNormalizingSchema):
    name = fields.String(required=True, validate=lambda s: len(s.strip()) > 0 and len(s) <= 255)
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")


class UserLoginSchema(_EmailNormalizingSchema):
    email = fields.String(required=True)
    password = fields.String(required=True, load_only=True)


class UserOutSchema(Schema):
    id = fields.String()
    name = fields.String(allow_none=True)
    email = fields.String()
    role = fields.Method("get_role")
    is_premium = fields.Boolean()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()

    def get_role(self, obj):
        return obj.role_name
