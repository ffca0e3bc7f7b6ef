"""Shared API helpers: auth gates, service wiring and response helpers."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request
from flask_jwt_extended import get_jwt, verify_jwt_in_request

from authapi.core.errors import Unauthorized
from authapi.services._shared.base import BaseService
from authapi.services._shared.errors import AuthenticationError, ServiceError
from authapi.services.auth.refresh_guard import REFRESH_TOKEN_NOT_FOUND, RefreshTokenValidator
from authapi.services.auth.service import AuthService

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "bearer "


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]


# ------------------------------ Service wiring ------------------------------


def get_auth_service() -> AuthService:
    """Build an :class:`AuthService` from the adapters bound at startup."""

    ext = current_app.extensions
    return AuthService(
        token_codec=ext["token_codec"],
        password_hasher=ext["password_hasher"],
        denylist_store=ext["token_denylist"],
        token_cfg=ext["auth_token_config"],
    )


def get_refresh_validator() -> RefreshTokenValidator:
    return RefreshTokenValidator(token_codec=current_app.extensions["token_codec"])


def translate_service_errors(func: F) -> F:
    """Re-raise service errors as their HTTP counterparts."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        try:
            return func(*args, **kwargs)
        except ServiceError as exc:
            raise BaseService().translate_exceptions(exc) from exc

    return wrapper  # type: ignore[return-value]


# -------------------------------- Auth gates --------------------------------


def bearer_token() -> str | None:
    """Return the bearer credential from ``Authorization``, if any."""

    header = request.headers.get("Authorization", "")
    if not header.lower().startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX) :].strip()
    return token or None


def require_auth(func: F) -> F:
    """Ensure the request carries a valid, unrevoked access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_access_claims() -> dict[str, Any]:
    """Claims of the verified access token, with ``sub`` and ``tokenId`` as ints.

    :raises Unauthorized: If the token lacks the session binding claims.
    """

    claims = dict(get_jwt() or {})
    try:
        claims["sub"] = int(claims["sub"])
        claims["tokenId"] = int(claims["tokenId"])
    except (KeyError, TypeError, ValueError) as exc:
        raise Unauthorized("Invalid access token") from exc
    return claims


def access_expires_at(claims: dict[str, Any]) -> datetime | None:
    exp = claims.get("exp")
    if exp is None:
        return None
    return datetime.fromtimestamp(int(exp), tz=UTC)


def require_refresh_token(func: F) -> F:
    """Validate the bearer refresh token and expose its identity as ``g.refresh_identity``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_token()
        if token is None:
            raise Unauthorized(REFRESH_TOKEN_NOT_FOUND)
        try:
            g.refresh_identity = get_refresh_validator().validate(token)
        except AuthenticationError as exc:
            current_app.logger.info(
                "Refresh token rejected",
                extra={"event": "auth.refresh.rejected", "reason": exc.reason},
            )
            raise Unauthorized(exc.message) from exc
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
