"""Flask CLI commands for refresh-token housekeeping."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import click
from flask.cli import with_appcontext

from authapi.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

LOGGER = logging.getLogger(__name__)


@click.group("tokens")
def tokens_cli() -> None:
    """Refresh-token maintenance commands."""


@tokens_cli.command("purge-expired")
@click.option("--dry-run", is_flag=True, help="Report what would be removed, then roll back.")
@with_appcontext
def purge_expired_command(dry_run: bool) -> None:
    """Delete refresh-token records whose expiry has passed."""
    now = datetime.now(UTC)
    uow = SQLAlchemyUnitOfWork()
    if dry_run:
        removed = uow.refresh_tokens.purge_expired(now)
        uow.rollback()
        click.echo(f"Would remove {removed} expired refresh token(s).")
        return
    with uow:
        removed = uow.refresh_tokens.purge_expired(now)
    LOGGER.info("Purged expired refresh tokens", extra={"event": "tokens.purge", "reason": "expired"})
    click.echo(f"Removed {removed} expired refresh token(s).")
