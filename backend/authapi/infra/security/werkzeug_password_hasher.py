from __future__ import annotations

import secrets
from functools import cached_property

from werkzeug.security import check_password_hash, generate_password_hash

from authapi.services._shared.ports import PasswordHasher


class WerkzeugPasswordHasher(PasswordHasher):
    """
    Password hashing backed by :mod:`werkzeug.security`.

    :param method: Werkzeug method spec, e.g. ``"scrypt"`` or ``"pbkdf2:sha256:600000"``.
    """

    def __init__(self, method: str = "scrypt") -> None:
        self.method = method

    @cached_property
    def dummy_hash(self) -> str:
        return generate_password_hash(secrets.token_urlsafe(16), method=self.method)

    def hash(self, password: str) -> str:
        if not isinstance(password, str) or not password:
            raise ValueError("Password must be a non-empty string.")
        return generate_password_hash(password, method=self.method)

    def verify(self, digest: str, password: str) -> bool:
        if not digest:
            return False
        # check_password_hash is untyped
        return bool(check_password_hash(digest, password))
