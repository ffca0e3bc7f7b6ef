"""Unit of Work contract and its SQLAlchemy implementation."""

from .base import UnitOfWork
from .sqlalchemy_uow import SQLAlchemyUnitOfWork

__all__ = [
    "SQLAlchemyUnitOfWork",
    "UnitOfWork",
]
