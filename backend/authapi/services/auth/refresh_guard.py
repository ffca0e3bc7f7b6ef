"""Validation of presented refresh tokens before they may be rotated."""

from __future__ import annotations

import hmac
import logging
import re
from typing import Any

import jwt

from authapi.services._shared.base import BaseService
from authapi.services._shared.errors import AuthenticationError
from authapi.services._shared.ports import TokenClass, TokenCodec
from authapi.services.auth.dto import RefreshIdentity

log = logging.getLogger(__name__)

REFRESH_TOKEN_NOT_FOUND = "Refresh token not found"
INVALID_REFRESH_TOKEN = "Invalid refresh token"
REFRESH_TOKEN_EXPIRED = "Refresh token expired"

_POSITIVE_INT_RE = re.compile(r"[1-9][0-9]*")


def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and _POSITIVE_INT_RE.fullmatch(value):
        return int(value)
    return None


class RefreshTokenValidator(BaseService):
    """
    Check a presented refresh token against its signature and its stored record.

    Gates run in order and every failure raises :class:`AuthenticationError`:

    1. signature and ``exp`` under the refresh secret;
    2. the record named by ``tokenId`` exists;
    3. the stored token is byte-identical to the presented one;
    4. the record has not expired (an expired record is deleted on the spot).
    """

    def __init__(self, *, token_codec: TokenCodec) -> None:
        self.tokens = token_codec

    def validate(self, token: str | None) -> RefreshIdentity:
        if not token:
            raise AuthenticationError(REFRESH_TOKEN_NOT_FOUND, reason="missing")

        try:
            claims = self.tokens.decode(token, token_class=TokenClass.REFRESH)
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationError(REFRESH_TOKEN_EXPIRED, reason="expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationError(INVALID_REFRESH_TOKEN, reason="bad_signature") from exc

        token_id = _positive_int(claims.get("tokenId"))
        user_id = _positive_int(claims.get("sub"))
        if token_id is None or user_id is None:
            raise AuthenticationError(INVALID_REFRESH_TOKEN, reason="bad_claims")

        expired = False
        with self.rw_uow() as uow:
            record = uow.refresh_tokens.get(token_id)
            if record is None or record.user_id != user_id:
                raise AuthenticationError(INVALID_REFRESH_TOKEN, reason="unknown_record")
            if not hmac.compare_digest(record.token.encode(), token.encode()):
                raise AuthenticationError(INVALID_REFRESH_TOKEN, reason="token_mismatch")
            if record.is_expired(self.now_utc()):
                uow.refresh_tokens.delete_by_id(record.id)
                expired = True
            else:
                user = uow.users.get(record.user_id)
                if user is None:
                    raise AuthenticationError(INVALID_REFRESH_TOKEN, reason="unknown_user")
                identity = RefreshIdentity(
                    id=user.id,
                    email=user.email,
                    role=user.role,
                    token_id=record.id,
                    token=token,
                )

        # Raised after the block so the deletion above is committed
        if expired:
            log.info(
                "Expired refresh token removed",
                extra={"event": "auth.refresh.expired", "user_id": user_id, "token_id": token_id},
            )
            raise AuthenticationError(REFRESH_TOKEN_EXPIRED, reason="expired")

        return identity
