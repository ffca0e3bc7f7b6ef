"""Server-side record backing each refresh token."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from authapi.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .user import User

# Stored until the signed token (which embeds this row's id) is written back
PENDING_TOKEN = "pending"


class RefreshToken(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    One live link of a refresh rotation chain.

    Fields
    ------
    token : str
        The exact signed refresh token handed to the client. A presented token
        is only accepted if it is byte-identical to this value.
    user_id : int
        Owning user; rows disappear with the user.
    expires_at : datetime
        Authoritative expiry, checked independently of the JWT ``exp``.
    """

    __tablename__ = "refresh_tokens"
    # Ids are embedded in signed tokens and must never be handed out twice
    __table_args__ = {"sqlite_autoincrement": True}

    token: Mapped[str] = mapped_column(Text, nullable=False, default=PENDING_TOKEN)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    user: Mapped[User] = relationship(back_populates="refresh_tokens")

    def expires_at_utc(self) -> datetime:
        """Return ``expires_at`` as an aware UTC datetime (SQLite hands back naive values)."""
        value = self.expires_at
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at_utc() <= now
