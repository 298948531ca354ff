"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

# 8-15 chars with lower, upper, digit and one of the allowed specials
PASSWORD_PATTERN = r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@.#$!%*?&^])[A-Za-z\d@.#$!%*?&^]{8,15}$"
PASSWORD_POLICY_MESSAGE = (
    "Password must be 8-15 characters and include upper and lower case letters, "
    "a digit and a special character."
)


class RegisterSchema(Schema):
    """Input payload for account registration."""

    username = fields.String(required=True, validate=validate.Length(min=3, max=50))
    name = fields.String(required=True, validate=validate.Length(min=1, max=30))
    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(
        required=True,
        load_only=True,
        validate=validate.Regexp(PASSWORD_PATTERN, error=PASSWORD_POLICY_MESSAGE),
    )
    confirm_password = fields.String(required=True, load_only=True, data_key="confirmPassword")

    @validates_schema
    def _passwords_match(self, data: dict[str, Any], **kwargs: Any) -> None:
        if data.get("password") != data.get("confirm_password"):
            raise ValidationError("Passwords do not match.", field_name="confirmPassword")


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    username = fields.String(required=True, validate=validate.Length(min=1, max=50))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1, max=128))
