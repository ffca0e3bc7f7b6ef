"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases.
"""

from __future__ import annotations

import os

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from authapi.core.config import TestingConfig
from authapi.core.extensions import db as _db  # Flask-SQLAlchemy instance
from authapi.factory import create_app  # application factory under test
from authapi.infra.jwt.pyjwt_token_codec import PyJWTTokenCodec
from authapi.services._shared.ports import InMemoryDenylistStore
from authapi.services.auth.refresh_guard import RefreshTokenValidator
from authapi.services.auth.service import AuthService


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - In-memory SQLite database, fixed secrets, cheap password hashing.
    - No Redis: the denylist is process-local.
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOG_LEVEL = "WARNING"


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing."""
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig, instance_relative_config=False)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Notes
    -----
    SQLAlchemy 2.0 pattern for transactional tests: a top-level transaction,
    a SAVEPOINT per test, and the SAVEPOINT reinstalled whenever SQLAlchemy
    ends one. Units of work committing inside the test only release their
    own savepoint; everything is rolled back at teardown.
    """
    # 1) Top-level transaction
    top_trans = connection.begin()

    # 2) Scoped session bound to the connection
    SessionFactory = sessionmaker(bind=connection, future=True, autoflush=False)
    scoped = scoped_session(SessionFactory)

    # 3) SAVEPOINT per test
    nested = connection.begin_nested()

    # 4) Re-create SAVEPOINT when the previous nested transaction ends
    @event.listens_for(scoped(), "after_transaction_end")
    def _restart_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            nonlocal nested
            nested = connection.begin_nested()

    # 5) Monkey-patch db.session so app code uses this scoped session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture()
def client(app, session):
    """Flask test client sharing the transactional session."""
    return app.test_client()


@pytest.fixture()
def cli_runner(app, session):
    return app.test_cli_runner()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Service wiring ------------------------------------------------------------


@pytest.fixture()
def token_cfg(app):
    return app.extensions["auth_token_config"]


@pytest.fixture()
def codec(token_cfg) -> PyJWTTokenCodec:
    return PyJWTTokenCodec.from_config(token_cfg)


@pytest.fixture()
def denylist() -> InMemoryDenylistStore:
    return InMemoryDenylistStore()


@pytest.fixture()
def auth_service(app, codec, denylist, token_cfg) -> AuthService:
    """AuthService wired to the real codec and hasher, with a fresh denylist."""
    return AuthService(
        token_codec=codec,
        password_hasher=app.extensions["password_hasher"],
        denylist_store=denylist,
        token_cfg=token_cfg,
    )


@pytest.fixture()
def validator(codec) -> RefreshTokenValidator:
    return RefreshTokenValidator(token_codec=codec)


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield
