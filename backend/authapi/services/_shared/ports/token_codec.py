from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from enum import Enum
from typing import Any, Protocol


class TokenClass(str, Enum):
    """Token classes; each one is signed with its own secret."""

    ACCESS = "access"
    REFRESH = "refresh"


class TokenCodec(Protocol):
    """Port for signing and verifying compact signed tokens."""

    def encode(
        self,
        payload: Mapping[str, Any],
        *,
        token_class: TokenClass,
        expires_in: timedelta,
    ) -> str:
        """Sign ``payload`` adding ``iat``/``exp``; ``expires_in`` is server policy."""
        ...

    def decode(self, token: str, *, token_class: TokenClass) -> dict[str, Any]:
        """Verify signature and expiry, returning the claims.

        Implementations raise ``jwt.InvalidTokenError`` (or a subclass) on failure.
        """
        ...
