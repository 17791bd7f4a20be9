"""Kernel error hierarchy — public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError                 (domain.py)
    │   ├── InvariantViolationError
    │   ├── ValidationError
    │   │   └── EventValidationError
    │   ├── NotFoundError
    │   └── ConflictError
    │       ├── ConcurrencyConflictError   (retryable)
    │       └── DuplicateTenantNameError
    ├── ApplicationError            (application.py)
    └── InfrastructureError         (infrastructure.py)
        ├── EventPersistenceError
        ├── CacheError
        └── SerializationError
"""

from evstore.kernel.errors.application import ApplicationError
from evstore.kernel.errors.base import BaseError
from evstore.kernel.errors.domain import (
    ConcurrencyConflictError,
    ConflictError,
    DomainError,
    DuplicateTenantNameError,
    EventValidationError,
    InvariantViolationError,
    NotFoundError,
    ValidationError,
)
from evstore.kernel.errors.infrastructure import (
    CacheError,
    EventPersistenceError,
    InfrastructureError,
    SerializationError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "CacheError",
    "ConcurrencyConflictError",
    "ConflictError",
    "DomainError",
    "DuplicateTenantNameError",
    "EventPersistenceError",
    "EventValidationError",
    "InfrastructureError",
    "InvariantViolationError",
    "NotFoundError",
    "SerializationError",
    "ValidationError",
]
