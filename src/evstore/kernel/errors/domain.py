"""Domain errors — rejected batches, stale aggregates, broken invariants."""

from __future__ import annotations

from typing import Any

from evstore.kernel.errors.base import BaseError


class DomainError(BaseError):
    """Raised when a domain rule / invariant is violated."""

    default_code = "domain_error"


class InvariantViolationError(DomainError):
    """An aggregate invariant was violated."""

    default_code = "invariant_violation"


class ValidationError(DomainError):
    """Input data does not meet validation rules.

    ``errors`` is a list of field-level validation failures.
    """

    default_code = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.errors: list[dict[str, Any]] = errors or []

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base["errors"] = self.errors
        return base


class EventValidationError(ValidationError):
    """A batch handed to ``save_events`` is malformed.

    Raised before any I/O. The caller must fix the batch; retrying it
    unchanged fails the same way.
    """

    default_code = "event_validation_error"


class NotFoundError(DomainError):
    """The requested resource does not exist."""

    default_code = "not_found"

    def __init__(
        self,
        resource: str,
        identifier: Any = None,
        **kwargs: Any,
    ) -> None:
        msg = f"{resource} not found"
        if identifier is not None:
            msg = f"{resource} '{identifier}' not found"
        super().__init__(msg, **kwargs)
        self.resource = resource
        self.identifier = identifier


class ConflictError(DomainError):
    """The operation conflicts with existing state."""

    default_code = "conflict"


class ConcurrencyConflictError(ConflictError):
    """The aggregate's committed version is not the one the caller expected.

    ``actual`` is ``None`` when the conflict was detected by the database
    (a racing writer committed first) rather than by the version check.
    """

    default_code = "concurrency_conflict"
    retryable = True

    def __init__(
        self,
        aggregate_id: str,
        expected: int,
        actual: int | None,
        **kwargs: Any,
    ) -> None:
        if actual is None:
            msg = (
                f"Concurrency conflict on aggregate '{aggregate_id}': "
                f"expected version {expected}, a concurrent write committed first"
            )
        else:
            msg = (
                f"Concurrency conflict on aggregate '{aggregate_id}': "
                f"expected version {expected}, found {actual}"
            )
        detail = {"aggregate_id": aggregate_id, "expected": expected, "actual": actual}
        super().__init__(msg, detail=detail, **kwargs)
        self.aggregate_id = aggregate_id
        self.expected = expected
        self.actual = actual


class DuplicateTenantNameError(ConflictError):
    """Another live tenant on the same platform already uses this name."""

    default_code = "duplicate_tenant_name"

    def __init__(self, platform_id: str, name: str, **kwargs: Any) -> None:
        super().__init__(
            f"Tenant name '{name}' already exists on platform '{platform_id}'",
            detail={"platform_id": platform_id, "name": name},
            **kwargs,
        )
        self.platform_id = platform_id
        self.name = name


__all__ = [
    "ConcurrencyConflictError",
    "ConflictError",
    "DomainError",
    "DuplicateTenantNameError",
    "EventValidationError",
    "InvariantViolationError",
    "NotFoundError",
    "ValidationError",
]
