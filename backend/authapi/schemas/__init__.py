"""Marshmallow schemas for request validation and response serialization."""

from .auth import LoginSchema, MeSchema, MessageSchema, RegisterSchema, TokenPairSchema

__all__ = [
    "LoginSchema",
    "MeSchema",
    "MessageSchema",
    "RegisterSchema",
    "TokenPairSchema",
]
