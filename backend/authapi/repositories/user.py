"""User repository: lookups by normalized email."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from authapi.models.user import User
from authapi.repositories.base import BaseRepository


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Never hashes or verifies passwords; the auth service owns credentials.
    """

    model = User

    def _filterable_fields(self):
        return {"email": User.email, "role": User.role}

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :returns: User instance or ``None`` when not found.
        """
        stmt = select(User).where(User.email == normalize_email(email))
        result = self.session.execute(stmt).scalars().first()
        return cast(User | None, result)

    def exists_by_email(self, email: str) -> bool:
        stmt = select(User.id).where(User.email == normalize_email(email))
        return bool(self.session.execute(stmt).first())

    def create(self, *, email: str, password_hash: str, name: str) -> User:
        """Insert a user with the default role and flush to get its id."""
        return self.add(User(email=email, password_hash=password_hash, name=name))
