"""Refresh-token records: one row per live refresh token."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete

from authapi.models.refresh_token import PENDING_TOKEN, RefreshToken
from authapi.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken`.

    Deletion goes through a single ``DELETE ... WHERE id = :id`` (optionally
    also matching the stored token) so the affected row count tells
    concurrent rotations apart: only the caller that actually removed the
    row sees ``True``.
    """

    model = RefreshToken

    def create_pending(self, *, user_id: int, expires_at: datetime) -> RefreshToken:
        """
        Insert a record holding the placeholder token.

        The id is needed before the refresh JWT can be signed; the signed value
        is written back with :meth:`set_token` in the same transaction.
        """
        return self.add(RefreshToken(user_id=user_id, expires_at=expires_at, token=PENDING_TOKEN))

    def set_token(self, record: RefreshToken, token: str) -> RefreshToken:
        record.token = token
        self.flush()
        return record

    def delete_by_id(self, token_id: int, *, token: str | None = None) -> bool:
        """
        Remove the record with ``token_id``.

        :param token: When given, the row is only removed if it still stores
            exactly this signed value.
        :returns: ``True`` if this call deleted the row, ``False`` if it was
            already gone (or holds another token).
        """
        stmt = delete(RefreshToken).where(RefreshToken.id == token_id)
        if token is not None:
            stmt = stmt.where(RefreshToken.token == token)
        stmt = stmt.execution_options(synchronize_session="evaluate")
        result = self.session.execute(stmt)
        return bool(result.rowcount)

    def purge_expired(self, now: datetime) -> int:
        """Delete records whose ``expires_at`` is at or before ``now``."""
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

