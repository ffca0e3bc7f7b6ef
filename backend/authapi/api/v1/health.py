"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from authapi.api.deps import json_response, timing
from authapi.core.extensions import db

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Report database reachability and the active denylist backend."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("healthcheck.db_error")
        db.session.rollback()
        db_status = "fail"
    denylist = current_app.extensions.get("token_denylist")
    payload = {
        "status": "ok" if db_status == "ok" else "degraded",
        "db": db_status,
        "denylist": getattr(denylist, "backend", "none"),
    }
    return json_response(payload)
