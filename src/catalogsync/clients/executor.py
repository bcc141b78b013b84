"""Retry-with-backoff and bounded-concurrency batch execution.

Every GitHub-calling component goes through these two helpers:

* ``with_retry`` retries an operation only when it fails with a rate-limit
  response (HTTP 403/429).  A ``Retry-After`` hint on the error wins over the
  exponential schedule; both are capped at ``max_delay``.
* ``batch_execute`` runs an operation over items in fixed-size chunks, waits
  for the whole chunk to settle and pauses between chunks.  Individual item
  failures are collected, never raised.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

from catalogsync.errors import is_rate_limit_error

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

type SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class Settled[T, R]:
    """Outcome of one item: either ``value`` or ``error`` is meaningful."""

    item: T
    value: R | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def backoff_delay(attempt: int, *, base_delay: float, max_delay: float, retry_after: float | None = None) -> float:
    """Delay before retry number ``attempt`` (0-based)."""

    if retry_after is not None:
        return min(max(retry_after, 0.0), max_delay)
    return min(base_delay * 2**attempt, max_delay)


def _wait_for(base_delay: float, max_delay: float) -> Callable[[RetryCallState], float]:
    def _wait(retry_state: RetryCallState) -> float:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        retry_after = getattr(exc, "retry_after", None)
        return backoff_delay(
            retry_state.attempt_number - 1,
            base_delay=base_delay,
            max_delay=max_delay,
            retry_after=retry_after,
        )

    return _wait


def _log_before_sleep(label: str, max_retries: int) -> Callable[[RetryCallState], None]:
    def _before_sleep(retry_state: RetryCallState) -> None:
        if retry_state.next_action:
            logger.warning(
                "Rate limited on {}, retrying in {:.1f}s (attempt {}/{})",
                label,
                retry_state.next_action.sleep,
                retry_state.attempt_number,
                max_retries,
            )

    return _before_sleep


async def with_retry[R](
    operation: Callable[[], Awaitable[R]],
    *,
    max_retries: int = 2,
    base_delay: float = 10.0,
    max_delay: float = 30.0,
    label: str = "request",
    sleep: SleepFn = asyncio.sleep,
) -> R:
    """Await ``operation``, retrying rate-limit failures up to ``max_retries`` times."""

    retrying = AsyncRetrying(
        retry=retry_if_exception(is_rate_limit_error),
        wait=_wait_for(base_delay, max_delay),
        stop=stop_after_attempt(max_retries + 1),
        before_sleep=_log_before_sleep(label, max_retries),
        sleep=sleep,
        reraise=True,
    )
    async def _attempt() -> R:
        return await operation()

    return await retrying(_attempt)


async def settle_all[T, R](items: Iterable[T], fn: Callable[[T], Awaitable[R]]) -> list[Settled[T, R]]:
    """Run ``fn`` over every item concurrently and collect outcomes in input order."""

    pending = list(items)
    outcomes = await asyncio.gather(*(fn(item) for item in pending), return_exceptions=True)

    settled: list[Settled[T, R]] = []
    for item, outcome in zip(pending, outcomes, strict=True):
        if isinstance(outcome, Exception):
            settled.append(Settled(item=item, error=outcome))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            settled.append(Settled(item=item, value=outcome))
    return settled


async def batch_execute[T, R](
    items: Iterable[T],
    fn: Callable[[T], Awaitable[R]],
    *,
    concurrency: int = 5,
    delay_between_batches: float = 0.0,
    sleep: SleepFn = asyncio.sleep,
) -> list[Settled[T, R]]:
    """Run ``fn`` over items in chunks of ``concurrency``, pausing between chunks."""

    if concurrency < 1:
        raise ValueError("concurrency must be >= 1")

    pending = list(items)
    results: list[Settled[T, R]] = []
    for start in range(0, len(pending), concurrency):
        chunk = pending[start : start + concurrency]
        results.extend(await settle_all(chunk, fn))

        if delay_between_batches > 0 and start + concurrency < len(pending):
            await sleep(delay_between_batches)

    return results
