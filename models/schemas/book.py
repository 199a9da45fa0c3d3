from marshmallow import Schema, fields, validates, ValidationError, post_load


class BookCreateSchema(Schema):
    title = fields.String(required=True, validate=lambda s: 1 <= len(s.strip()) <= 255)
    author = fields.String(allow_none=True, validate=lambda s: s is None or len(s) <= 255)
    description = fields.String(allow_none=True)
    file_url = fields.Url(allow_none=True)
    cover_url = fields.Url(allow_none=True)
    tags = fields.List(fields.String(), load_default=list)
    is_premium = fields.Boolean(load_default=False)

    @validates("tags")
    def _validate_tags(self, value, **kwargs):
        if any(not t.strip() for t in value):
            raise ValidationError("tags cannot contain empty strings.")

    @post_load
    def _strip_title(self, data, **kwargs):
        data["title"] = data["title"].strip()
        return data


class BookOutSchema(Schema):
    id = fields.String()
    title = fields.String()
    author = fields.String(allow_none=True)
    description = fields.String(allow_none=True)
    file_url = fields.String(allow_none=True)
    cover_url = fields.String(allow_none=True)
    tags = fields.List(fields.String())
    is_premium = fields.Boolean()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class FavoriteCreateSchema(Schema):
    bookId = fields.String(required=True, validate=lambda s: len(s.strip()) > 0)
