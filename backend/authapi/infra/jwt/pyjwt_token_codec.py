# authapi/infra/jwt/pyjwt_token_codec.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from authapi.services._shared.ports import TokenClass, TokenCodec
from authapi.services.auth.dto import AuthTokenConfig

REQUIRED_CLAIMS = ("sub", "iat", "exp")


@dataclass(frozen=True, slots=True)
class PyJWTTokenCodec(TokenCodec):
    """
    HMAC JWT codec with one secret per token class.

    Access tokens are signed with the same secret and algorithm that
    Flask-JWT-Extended is configured with, so its ``verify_jwt_in_request``
    accepts them as-is.
    """

    access_secret: str
    refresh_secret: str
    algorithm: str = "HS256"

    @classmethod
    def from_config(cls, cfg: AuthTokenConfig) -> PyJWTTokenCodec:
        return cls(
            access_secret=cfg.access_secret,
            refresh_secret=cfg.refresh_secret,
            algorithm=cfg.algorithm,
        )

    def _secret(self, token_class: TokenClass) -> str:
        if token_class is TokenClass.ACCESS:
            return self.access_secret
        return self.refresh_secret

    def encode(
        self,
        payload: Mapping[str, Any],
        *,
        token_class: TokenClass,
        expires_in: timedelta,
    ) -> str:
        now = datetime.now(UTC)
        claims = dict(payload)
        claims["iat"] = now
        claims["exp"] = now + expires_in
        return jwt.encode(claims, self._secret(token_class), algorithm=self.algorithm)

    def decode(self, token: str, *, token_class: TokenClass) -> dict[str, Any]:
        return jwt.decode(
            token,
            self._secret(token_class),
            algorithms=[self.algorithm],
            options={"require": list(REQUIRED_CLAIMS)},
        )
