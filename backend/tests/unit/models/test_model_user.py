"""Unit tests for the User model."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from authapi.models import User, UserRole
from tests.factories.refresh_token import RefreshTokenFactory
from tests.factories.user import UserFactory


class TestUserModel:
    def test_email_is_normalized(self, session):
        user = UserFactory(email="  Mixed.Case@Example.COM ")
        assert user.email == "mixed.case@example.com"

    def test_default_role_is_user(self, session):
        user = User(email="plain@example.com", password_hash="x", name="Plain")
        session.add(user)
        session.flush()
        assert user.role == UserRole.USER.value

    @pytest.mark.parametrize("email", ["", "no-at-sign", "user@nodot"])
    def test_invalid_email_is_rejected(self, email):
        with pytest.raises(ValueError):
            User(email=email, password_hash="x", name="X")

    def test_unknown_role_is_rejected(self):
        with pytest.raises(ValueError):
            User(email="a@example.com", password_hash="x", name="X", role="root")

    def test_blank_name_is_rejected(self):
        with pytest.raises(ValueError):
            User(email="a@example.com", password_hash="x", name="   ")

    def test_email_is_unique(self, session):
        UserFactory(email="dup@example.com")
        with pytest.raises(IntegrityError):
            UserFactory(email="DUP@example.com")
        session.rollback()

    def test_deleting_user_removes_refresh_tokens(self, session):
        token = RefreshTokenFactory()
        user = token.user
        session.delete(user)
        session.flush()
        assert session.get(type(token), token.id, populate_existing=True) is None
