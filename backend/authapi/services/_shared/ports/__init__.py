"""
authapi.services._shared.ports
==============================

*Ports* (hexagonal interfaces) the service layer depends on.

Modules
-------
- :mod:`token_codec`:
    :class:`~.TokenCodec` and :class:`~.TokenClass`: signing/verification of
    access and refresh tokens.

- :mod:`password_hasher`:
    :class:`~.PasswordHasher`: one-way password digests.

- :mod:`denylist_store`:
    :class:`~.TokenDenylistStore`: early revocation of access tokens, plus the
    in-process :class:`~.InMemoryDenylistStore`.

Concrete adapters live under ``authapi.infra``.
"""

from __future__ import annotations

from .denylist_store import InMemoryDenylistStore, TokenDenylistStore
from .password_hasher import PasswordHasher
from .token_codec import TokenClass, TokenCodec

__all__ = [
    "InMemoryDenylistStore",
    "PasswordHasher",
    "TokenClass",
    "TokenCodec",
    "TokenDenylistStore",
]
