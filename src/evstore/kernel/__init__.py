"""Kernel – framework-agnostic building blocks."""

from evstore.kernel.errors import (
    ApplicationError,
    BaseError,
    ConcurrencyConflictError,
    ConflictError,
    DomainError,
    EventPersistenceError,
    EventValidationError,
    InfrastructureError,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "ConcurrencyConflictError",
    "ConflictError",
    "DomainError",
    "EventPersistenceError",
    "EventValidationError",
    "InfrastructureError",
    "NotFoundError",
    "ValidationError",
]
