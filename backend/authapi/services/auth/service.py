# authapi/services/auth/service.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy.exc import IntegrityError

from authapi.models.user import User
from authapi.services._shared.base import BaseService
from authapi.services._shared.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    violates,
)
from authapi.services._shared.ports import (
    PasswordHasher,
    TokenClass,
    TokenCodec,
    TokenDenylistStore,
)
from authapi.services.auth.dto import AuthTokenConfig, LoginIn, RegisterIn, TokenPairOut
from authapi.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
USER_NOT_FOUND = "User not found"
INVALID_REFRESH_TOKEN = "Invalid refresh token"
LOGOUT_MESSAGE = "Logged out successfully"


class AuthService(BaseService):
    """
    Authentication lifecycle service (register / login / logout / refresh).

    Access tokens are stateless JWTs. Every refresh token is backed by a
    ``refresh_tokens`` row; presenting it consumes the row and yields a new
    pair, so each session is a single linear rotation chain.
    """

    def __init__(
        self,
        *,
        token_codec: TokenCodec,
        password_hasher: PasswordHasher,
        denylist_store: TokenDenylistStore,
        token_cfg: AuthTokenConfig,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param token_codec: Signs access and refresh tokens.
        :param password_hasher: Hashes and verifies passwords.
        :param denylist_store: Early revocation of access tokens (by ``jti``).
        :param token_cfg: Token lifetimes and secrets.
        """
        self.tokens = token_codec
        self.hasher = password_hasher
        self.denylist = denylist_store
        self.cfg = token_cfg

    # ------------------------------------------------------------------ #
    # Register
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> TokenPairOut:
        """
        Create an account and start its first session.

        :raises ConflictError: If the email is already registered. The message
            is the generic credentials one so the endpoint cannot be used to
            probe which emails exist.
        """
        password_hash = self.hasher.hash(dto.password)
        try:
            with self.rw_uow() as uow:
                if uow.users.exists_by_email(dto.email):
                    raise ConflictError("User", INVALID_CREDENTIALS)
                user = uow.users.create(email=dto.email, password_hash=password_hash, name=dto.name)
                pair = self._issue_tokens(uow, user)
                user_id = user.id
        except IntegrityError as exc:
            # Lost a race against a concurrent registration of the same email
            if violates(exc, "uq_users_email") or violates(exc, "users.email"):
                raise ConflictError("User", INVALID_CREDENTIALS) from exc
            raise

        log.info("User registered", extra={"event": "auth.register", "user_id": user_id})
        return pair

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> TokenPairOut:
        """
        Authenticate credentials and issue a fresh token pair.

        :raises AuthenticationError: On unknown email or wrong password, with
            the same message either way.
        """
        with self.rw_uow() as uow:
            user = uow.users.get_by_email(dto.email)
            if user is None:
                # Burn the same hashing work as a real check
                self.hasher.verify(self.hasher.dummy_hash, dto.password)
                log.info("Login failed", extra={"event": "auth.login.failed", "reason": "unknown_email"})
                raise AuthenticationError(INVALID_CREDENTIALS, reason="invalid_credentials")
            if not self.hasher.verify(user.password_hash, dto.password):
                log.info(
                    "Login failed",
                    extra={"event": "auth.login.failed", "user_id": user.id, "reason": "bad_password"},
                )
                raise AuthenticationError(INVALID_CREDENTIALS, reason="invalid_credentials")
            pair = self._issue_tokens(uow, user)
            user_id = user.id

        log.info("User logged in", extra={"event": "auth.login", "user_id": user_id})
        return pair

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(
        self,
        user_id: int,
        token_id: int,
        *,
        access_jti: str | None = None,
        access_expires_at: datetime | None = None,
    ) -> dict[str, str]:
        """
        End the session ``token_id`` of ``user_id``.

        Deletes the refresh-token record and, when ``access_jti`` is given,
        revokes the presenting access token until it would have expired.

        :raises NotFoundError: If no such record exists for this user.
        """
        with self.rw_uow() as uow:
            record = uow.refresh_tokens.get(token_id)
            if record is None or record.user_id != user_id:
                raise NotFoundError("Session", token_id)
            if not uow.refresh_tokens.delete_by_id(token_id):
                raise NotFoundError("Session", token_id)

        if access_jti:
            expires_at = access_expires_at or self.now_utc() + self.cfg.access_expires
            self.denylist.revoke_jti(jti=access_jti, expires_at=expires_at)

        log.info(
            "User logged out",
            extra={"event": "auth.logout", "user_id": user_id, "token_id": token_id},
        )
        return {"message": LOGOUT_MESSAGE}

    # ------------------------------------------------------------------ #
    # Refresh rotation
    # ------------------------------------------------------------------ #

    def refresh_tokens(
        self,
        user_id: int,
        old_token_id: int,
        *,
        presented_token: str | None = None,
    ) -> TokenPairOut:
        """
        Consume ``old_token_id`` and issue a new pair.

        Callers validate the presented token first (see
        :class:`~authapi.services.auth.refresh_guard.RefreshTokenValidator`).
        The delete-by-id is the serialization point: when two requests rotate
        the same token, only one of them removes the row. With
        ``presented_token`` the row is only consumed while it still stores
        that exact value.

        :raises AuthenticationError: If the user is gone, or the record was
            already consumed.
        """
        with self.rw_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise AuthenticationError(USER_NOT_FOUND, reason="user_not_found")
            if not uow.refresh_tokens.delete_by_id(old_token_id, token=presented_token):
                log.warning(
                    "Refresh token already consumed",
                    extra={
                        "event": "auth.refresh.reused",
                        "user_id": user_id,
                        "token_id": old_token_id,
                    },
                )
                raise AuthenticationError(INVALID_REFRESH_TOKEN, reason="consumed")
            pair = self._issue_tokens(uow, user)

        log.info(
            "Refresh token rotated",
            extra={"event": "auth.refresh.rotated", "user_id": user_id, "token_id": old_token_id},
        )
        return pair

    # ------------------------------------------------------------------ #
    # Issuance
    # ------------------------------------------------------------------ #

    def _issue_tokens(self, uow: SQLAlchemyUnitOfWork, user: User) -> TokenPairOut:
        """
        Create a refresh record and sign both tokens against it.

        The record is inserted first with a placeholder so its id can be
        embedded in the signed refresh token, then the signed value is stored.
        Runs inside the caller's unit of work.
        """
        record = uow.refresh_tokens.create_pending(
            user_id=user.id,
            expires_at=self.now_utc() + self.cfg.refresh_expires,
        )

        refresh_payload: dict[str, Any] = {
            "sub": str(user.id),
            "email": user.email,
            "tokenId": record.id,
            "jti": str(uuid4()),
        }
        refresh = self.tokens.encode(
            refresh_payload,
            token_class=TokenClass.REFRESH,
            expires_in=self.cfg.refresh_expires,
        )
        uow.refresh_tokens.set_token(record, refresh)

        access_payload: dict[str, Any] = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role,
            "tokenId": record.id,
            "jti": str(uuid4()),
            "type": "access",
        }
        access = self.tokens.encode(
            access_payload,
            token_class=TokenClass.ACCESS,
            expires_in=self.cfg.access_expires,
        )
        return TokenPairOut(access_token=access, refresh_token=refresh)
