"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, g, request

from authapi.api.deps import (
    access_expires_at,
    current_access_claims,
    get_auth_service,
    json_response,
    require_auth,
    require_refresh_token,
    timing,
    translate_service_errors,
)
from authapi.schemas import (
    LoginSchema,
    MeSchema,
    MessageSchema,
    RegisterSchema,
    TokenPairSchema,
)
from authapi.services.auth.dto import LoginIn, RegisterIn

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
token_schema = TokenPairSchema()
message_schema = MessageSchema()
me_schema = MeSchema()


@bp.post("/register")
@timing
@translate_service_errors
def register():
    """Create an account and return its first token pair."""

    data = register_schema.load(request.get_json(silent=True) or {})
    pair = get_auth_service().register(RegisterIn(**data))
    return json_response(token_schema.dump(pair), status=201)


@bp.post("/login")
@timing
@translate_service_errors
def login():
    """Authenticate credentials and issue a token pair."""

    data = login_schema.load(request.get_json(silent=True) or {})
    pair = get_auth_service().login(LoginIn(**data))
    return json_response(token_schema.dump(pair))


@bp.post("/logout")
@require_auth
@timing
@translate_service_errors
def logout():
    """End the session bound to the presented access token."""

    claims = current_access_claims()
    result = get_auth_service().logout(
        claims["sub"],
        claims["tokenId"],
        access_jti=claims.get("jti"),
        access_expires_at=access_expires_at(claims),
    )
    return json_response(message_schema.dump(result))


@bp.post("/refresh")
@require_refresh_token
@timing
@translate_service_errors
def refresh():
    """Exchange a valid refresh token for a new pair; the old one is consumed."""

    identity = g.refresh_identity
    pair = get_auth_service().refresh_tokens(
        identity.id, identity.token_id, presented_token=identity.token
    )
    return json_response(token_schema.dump(pair))


@bp.get("/me")
@require_auth
@timing
def me():
    claims = current_access_claims()
    body = {"id": claims["sub"], "email": claims.get("email"), "role": claims.get("role")}
    return json_response(me_schema.dump(body))
