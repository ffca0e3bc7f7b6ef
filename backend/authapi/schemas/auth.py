"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class RegisterSchema(Schema):
    """Input payload for account registration."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=8, max=128))
    name = fields.String(required=True, validate=validate.Length(min=1, max=100))


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class TokenPairSchema(Schema):
    """Access and refresh tokens returned by register, login and refresh."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)


class MessageSchema(Schema):
    message = fields.String(required=True)


class MeSchema(Schema):
    """Identity carried by the presented access token."""

    id = fields.Integer(required=True)
    email = fields.Email(required=True)
    role = fields.String(required=True)
