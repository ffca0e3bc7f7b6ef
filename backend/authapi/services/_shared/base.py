# authapi/services/_shared/base.py
from __future__ import annotations

from datetime import UTC, datetime

from authapi.core import errors as api_errors
from authapi.services._shared.errors import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    NotFoundError,
    ServiceError,
)
from authapi.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Open read-write units of work.
    * Translate service errors into API errors.

    Notes
    -----
    Services never touch the global session directly; they go through a UoW.
    """

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: UoW that commits on clean exit.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(UTC)

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :returns: Translated exception ready to be re-raised, or ``exc``
            untouched when it is not a service error.
        """
        if isinstance(exc, AuthenticationError):
            # → 401 Unauthorized
            return api_errors.Unauthorized(exc.message)

        if isinstance(exc, NotFoundError):
            # → 404 Not Found
            return api_errors.NotFound(str(exc))

        if isinstance(exc, ConflictError):
            # → 409 Conflict
            return api_errors.Conflict(str(exc))

        if isinstance(exc, BadRequestError | ServiceError):
            # → 400 Bad Request
            return api_errors.BadRequest(str(exc))

        return exc
