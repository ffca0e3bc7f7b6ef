"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import sqlite3

import redis  # type: ignore[import-untyped]
from flask import Flask
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData, event
from sqlalchemy.engine import Engine

convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """Turn on FK enforcement for SQLite so ON DELETE CASCADE applies."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def init_app(app: Flask) -> None:
    """Bind SQLAlchemy, migrations, JWT and the access-token denylist.

    Parameters
    ----------
    app: flask.Flask
        Application to bind. When ``REDIS_URL`` is configured the denylist is
        Redis-backed (the connection is checked eagerly so startup fails fast);
        otherwise an in-process store is used.
    """
    db.init_app(app)

    # Models must be imported before Alembic inspects the metadata
    from authapi import models as _models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)

    from authapi.services._shared.ports.denylist_store import InMemoryDenylistStore

    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        app.extensions["token_denylist"] = InMemoryDenylistStore()
        return

    from authapi.infra.redis.redis_denylist_store import RedisTokenDenylistStore

    client = redis.Redis.from_url(redis_url)
    try:
        client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
    app.extensions["redis_client"] = client
    app.extensions["token_denylist"] = RedisTokenDenylistStore(client)
