"""Application event sourcing – retry a use case on concurrency conflicts.

Backed by ``tenacity``.
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

import tenacity

from evstore.kernel.errors import ConcurrencyConflictError
from evstore.observability.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


def _log_retry(retry_state: tenacity.RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.info(
        "retry_on_conflict.retrying",
        attempt=retry_state.attempt_number,
        aggregate_id=getattr(exc, "aggregate_id", None),
    )


async def retry_on_conflict(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    wait: Any = None,
) -> T:
    """Run *operation* and re-run it while it raises ConcurrencyConflictError.

    *operation* must perform the whole reload, mutate and save sequence;
    resending the same stale batch would conflict again. Validation and
    persistence errors propagate on the first attempt. After *max_attempts*
    the last conflict is re-raised.

    Example::

        async def rename() -> None:
            tenant = await repo.find_by_id(tenant_id)
            tenant.rename("acme")
            await repo.save(tenant)

        await retry_on_conflict(rename)
    """
    retrying = tenacity.AsyncRetrying(
        stop=tenacity.stop_after_attempt(max_attempts),
        wait=wait or tenacity.wait_random_exponential(multiplier=0.01, max=0.5),
        retry=tenacity.retry_if_exception_type(ConcurrencyConflictError),
        before_sleep=_log_retry,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            result = await operation()
    return result  # type: ignore[return-value]


__all__ = ["retry_on_conflict"]
