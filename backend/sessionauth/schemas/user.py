"""User resource schemas."""

from __future__ import annotations

from marshmallow import Schema, fields


class UserSchema(Schema):
    """Public representation of a user entity."""

    id = fields.Integer(required=True)
    username = fields.String(required=True)
    name = fields.String(required=True)
    email = fields.Email(required=True)


class SessionSchema(Schema):
    """Body returned by every session endpoint."""

    user = fields.Nested(UserSchema, allow_none=True)
    authenticated = fields.Boolean(required=True)
