from __future__ import annotations

from typing import Protocol


class PasswordHasher(Protocol):
    """One-way password digest with a matching verifier."""

    @property
    def dummy_hash(self) -> str:
        """A digest of a random secret, verified against when no user matches."""
        ...

    def hash(self, password: str) -> str: ...

    def verify(self, digest: str, password: str) -> bool: ...
