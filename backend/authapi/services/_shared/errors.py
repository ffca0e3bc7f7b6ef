"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic**: no Flask, no HTTP. The API layer
translates them into problem responses through
:meth:`authapi.services._shared.base.BaseService.translate_exceptions`.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Tell whether ``exc`` was raised by the named database constraint.

    :param exc: Error raised by SQLAlchemy during flush/commit.
    :param constraint_name: Constraint name, e.g. ``"uq_users_email"``.
    :returns: ``True`` when the driver message mentions the constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Not an HTTP error: unknown subclasses are reported as ``400``.
    """


class AuthenticationError(ServiceError):
    """
    Credentials or a presented token failed a check.

    :param message: Client-safe message.
    :param reason: Short machine code (``"invalid"``, ``"expired"``, ...) for logs.
    """

    def __init__(self, message: str = "Unauthorized", *, reason: str = "invalid") -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason


class BadRequestError(ServiceError):
    """Raised for malformed input such as an unparseable duration string."""


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found.

    :param entity: Entity name (e.g. ``"Session"``).
    :param key: Identifier or search key.
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a uniqueness rule is violated.

    :param entity: Entity name (e.g. ``"User"``), kept for logs.
    :param detail: Client-safe explanation.
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return self.detail
