"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from typing import Any

from flask import Flask, current_app

from authapi.core.config import BaseConfig, get_config, validate_settings
from authapi.core.logger import configure_logging, init_app as init_logging


def _register_blocklist_loader() -> None:
    """Reject access tokens whose ``jti`` was revoked at logout."""
    from authapi.core.extensions import jwt

    @jwt.token_in_blocklist_loader
    def _is_revoked(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]) -> bool:
        jti = jwt_payload.get("jti")
        if not jti:
            return False
        return bool(current_app.extensions["token_denylist"].is_revoked(jti))


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :raises ConfigError: If the settings fail startup validation.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    settings = validate_settings(app.config)

    from authapi.infra.jwt.pyjwt_token_codec import PyJWTTokenCodec
    from authapi.infra.security.werkzeug_password_hasher import WerkzeugPasswordHasher
    from authapi.services.auth.dto import AuthTokenConfig

    token_cfg = AuthTokenConfig.from_settings(settings)
    # Flask-JWT-Extended verifies access tokens only
    app.config["JWT_SECRET_KEY"] = token_cfg.access_secret
    app.config["JWT_ALGORITHM"] = token_cfg.algorithm
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = token_cfg.access_expires
    app.extensions["auth_token_config"] = token_cfg
    app.extensions["token_codec"] = PyJWTTokenCodec.from_config(token_cfg)
    app.extensions["password_hasher"] = WerkzeugPasswordHasher(
        app.config.get("PASSWORD_HASH_METHOD", "scrypt")
    )

    from authapi.core import extensions

    extensions.init_app(app)
    _register_blocklist_loader()

    init_logging(app)

    from authapi.core import cors

    cors.init_app(app)

    from authapi.api import init_app as init_api

    init_api(app)

    from authapi.core import errors

    errors.init_app(app)

    from authapi import cli as app_cli

    app_cli.init_app(app)

    return app
