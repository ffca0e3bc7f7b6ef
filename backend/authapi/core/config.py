"""Application settings: environment-driven config classes plus startup validation."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Final

from dotenv import load_dotenv
from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from authapi.services._shared.errors import BadRequestError
from authapi.services.auth.expiration import parse_expiration

ENV_VAR: Final[str] = "APP_ENV"
ENVIRONMENTS: Final[tuple[str, ...]] = ("development", "testing", "production")
MIN_SECRET_LENGTH: Final[int] = 32

load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    ``{"1", "true", "yes", "y", "on"}`` (any case) are truthy; a missing
    variable yields ``default``.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


class ConfigError(RuntimeError):
    """Raised at startup when the process configuration is unusable.

    :param errors: Field name → list of messages, as produced by marshmallow.
    """

    def __init__(self, errors: Mapping[str, Any]) -> None:
        self.errors = dict(errors)
        summary = "; ".join(f"{key}: {msgs}" for key, msgs in sorted(self.errors.items()))
        super().__init__(f"Invalid configuration: {summary}")


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    APP_ENV: str
        Environment name, one of ``development``, ``testing``, ``production``.
    PORT: int
        Listen port used by ``python -m authapi`` and gunicorn.
    JWT_ACCESS_TOKEN_SECRET / JWT_REFRESH_TOKEN_SECRET: str | None
        HMAC secrets, one per token class. No defaults: they must come from
        the environment and be at least 32 characters long.
    JWT_ACCESS_TOKEN_EXPIRATION / JWT_REFRESH_TOKEN_EXPIRATION: str
        Compact durations such as ``"15m"`` or ``"7d"``.
    SQLALCHEMY_DATABASE_URI: str | None
        Database URL from ``DATABASE_URL``.
    REDIS_URL: str | None
        Optional Redis URL backing the access-token denylist.
    PASSWORD_HASH_METHOD: str
        Werkzeug hashing method spec (``"scrypt"`` by default).
    """

    API_BASE_PREFIX = "/api"

    APP_ENV = os.getenv(ENV_VAR, "development").strip().lower()
    PORT = os.getenv("PORT", "3000")

    JWT_ACCESS_TOKEN_SECRET = os.getenv("JWT_ACCESS_TOKEN_SECRET")
    JWT_REFRESH_TOKEN_SECRET = os.getenv("JWT_REFRESH_TOKEN_SECRET")
    JWT_ACCESS_TOKEN_EXPIRATION = os.getenv("JWT_ACCESS_TOKEN_EXPIRATION", "15m")
    JWT_REFRESH_TOKEN_EXPIRATION = os.getenv("JWT_REFRESH_TOKEN_EXPIRATION", "7d")
    JWT_ALGORITHM = "HS256"
    JWT_TOKEN_LOCATION = ["headers"]

    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    REDIS_URL = os.getenv("REDIS_URL")
    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")

    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Local development: debug on, SQLite file database unless overridden."""

    APP_ENV = "development"
    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    CORS_MAX_AGE = 600


class TestingConfig(BaseConfig):
    """Automated test runs.

    Uses an in-memory SQLite database and fixed, test-only secrets. The cheap
    PBKDF2 method keeps the suite fast.
    """

    APP_ENV = "testing"
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    JWT_ACCESS_TOKEN_SECRET = "test-access-secret-0123456789abcdef0123"
    JWT_REFRESH_TOKEN_SECRET = "test-refresh-secret-0123456789abcdef012"
    REDIS_URL = None
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Production defaults: no debug, no SQL echo."""

    APP_ENV = "production"
    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class selected by ``APP_ENV``.

    Unknown names fall back to :class:`DevelopmentConfig`; the raw name is
    still checked by :func:`validate_settings`.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


# ----------------------------- Startup validation -----------------------------


def _validate_expiration(value: str) -> None:
    try:
        millis = parse_expiration(value)
    except BadRequestError as exc:
        raise ValidationError(str(exc)) from exc
    if millis <= 0:
        raise ValidationError("Expiration must be greater than zero.")


def _validate_database_url(value: str) -> None:
    try:
        url = make_url(value)
    except ArgumentError as exc:
        raise ValidationError("Malformed database URL.") from exc
    if not url.drivername:
        raise ValidationError("Database URL has no driver.")


class SettingsSchema(Schema):
    """Shape and constraints of the settings the service refuses to start without."""

    class Meta:
        unknown = EXCLUDE

    APP_ENV = fields.String(load_default="development", validate=validate.OneOf(ENVIRONMENTS))
    PORT = fields.Integer(load_default=3000, validate=validate.Range(min=1, max=65535))
    JWT_ACCESS_TOKEN_SECRET = fields.String(
        required=True, validate=validate.Length(min=MIN_SECRET_LENGTH)
    )
    JWT_REFRESH_TOKEN_SECRET = fields.String(
        required=True, validate=validate.Length(min=MIN_SECRET_LENGTH)
    )
    JWT_ACCESS_TOKEN_EXPIRATION = fields.String(
        load_default="15m", validate=_validate_expiration
    )
    JWT_REFRESH_TOKEN_EXPIRATION = fields.String(
        load_default="7d", validate=_validate_expiration
    )
    JWT_ALGORITHM = fields.String(
        load_default="HS256", validate=validate.OneOf(["HS256", "HS384", "HS512"])
    )
    SQLALCHEMY_DATABASE_URI = fields.String(required=True, validate=_validate_database_url)


def validate_settings(config: Mapping[str, Any]) -> dict[str, Any]:
    """Validate the startup settings found in ``config``.

    :param config: Usually ``app.config``; unrelated keys are ignored.
    :returns: The validated, typed settings.
    :raises ConfigError: With every problem found, not just the first one.
    """
    schema = SettingsSchema()
    raw = {
        name: config.get(name)
        for name in schema.fields
        if config.get(name) is not None
    }
    try:
        return schema.load(raw)
    except ValidationError as exc:
        raise ConfigError(exc.messages) from exc  # type: ignore[arg-type]
