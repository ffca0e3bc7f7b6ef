# authapi/services/auth/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from authapi.services.auth.expiration import expiration_to_timedelta

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param email: User email (normalized by the model).
    :param password: Raw password, hashed before persistence.
    :param name: Display name.
    """

    email: str
    password: str
    name: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email.
    :param password: Raw password (to be verified).
    """

    email: str
    password: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Access and refresh tokens issued together.

    :param access_token: Encoded access JWT.
    :param refresh_token: Encoded refresh JWT.
    """

    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class RefreshIdentity:
    """
    Identity resolved from a validated refresh token.

    :param id: User id.
    :param email: User email.
    :param role: User role.
    :param token_id: Id of the refresh-token record that was presented.
    :param token: The presented signed token, kept out of ``repr``.
    """

    id: int
    email: str
    role: str
    token_id: int
    token: str | None = field(default=None, repr=False)


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Immutable token policy, built once at startup.

    :param access_secret: HMAC secret for access tokens.
    :param refresh_secret: HMAC secret for refresh tokens (distinct).
    :param access_expires: Access token lifetime.
    :param refresh_expires: Refresh token lifetime (JWT ``exp`` and store ``expires_at``).
    :param algorithm: JWS algorithm.
    """

    access_secret: str
    refresh_secret: str
    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)
    algorithm: str = "HS256"

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> AuthTokenConfig:
        """Build from the mapping returned by ``validate_settings``."""
        return cls(
            access_secret=settings["JWT_ACCESS_TOKEN_SECRET"],
            refresh_secret=settings["JWT_REFRESH_TOKEN_SECRET"],
            access_expires=expiration_to_timedelta(settings["JWT_ACCESS_TOKEN_EXPIRATION"]),
            refresh_expires=expiration_to_timedelta(settings["JWT_REFRESH_TOKEN_EXPIRATION"]),
            algorithm=settings.get("JWT_ALGORITHM", "HS256"),
        )
