# =============================================================================
# Provider Call Policy — Timeout + Bounded Exponential Backoff (tenacity)
# =============================================================================
#
# Wraps a single embedding or LLM request:
#   1. Each attempt is bounded by asyncio.wait_for(timeout)
#   2. Transient failures (timeouts, rate limits, connection drops, 5xx)
#      are retried by tenacity up to max_retries times, waiting
#      min(base * 2**(attempt - 1), cap) seconds in between
#   3. Fatal provider failures (auth, bad request) are not retried
#   4. Exhausted retries and fatal failures surface as ProviderError
#
# The SDK clients are built with max_retries=0 so this is the only retry
# loop around a provider call.
#
# Cancellation is not retried: asyncio.CancelledError matches no retry
# predicate, so tenacity re-raises it and wait_for cancels the request.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from screener.config import settings
from screener.errors import ProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Timeout and retry budget for one provider call."""

    timeout_seconds: float
    max_retries: int
    backoff_base_seconds: float
    backoff_max_seconds: float

    @classmethod
    def from_settings(cls) -> RetryPolicy:
        return cls(
            timeout_seconds=settings.provider_timeout_seconds,
            max_retries=settings.provider_max_retries,
            backoff_base_seconds=settings.provider_backoff_base_seconds,
            backoff_max_seconds=settings.provider_backoff_max_seconds,
        )

    @property
    def attempts(self) -> int:
        return self.max_retries + 1


async def call_with_retries(
    operation: Callable[[], Awaitable[T]],
    *,
    provider: str,
    description: str,
    policy: RetryPolicy,
    transient: tuple[type[BaseException], ...] = (),
    fatal: tuple[type[BaseException], ...] = (),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run `operation` under the timeout/retry policy.

    Args:
        operation: Zero-argument factory returning a fresh awaitable per
            attempt (a coroutine cannot be awaited twice).
        provider: Provider label for logs and the raised error.
        description: What the call does, for logs ("embed 3 texts").
        policy: Timeout and retry budget.
        transient: Exception types worth retrying. Timeouts always are.
        fatal: Exception types that fail immediately as ProviderError.
        sleep: Backoff sleep handed to tenacity; injected by tests.

    Raises:
        ProviderError: Retries exhausted or a fatal provider failure.
    """
    attempts_made = 0

    async def attempt() -> T:
        nonlocal attempts_made
        attempts_made += 1
        return await asyncio.wait_for(operation(), timeout=policy.timeout_seconds)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.attempts),
        wait=wait_exponential(
            multiplier=policy.backoff_base_seconds,
            max=policy.backoff_max_seconds,
        ),
        retry=retry_if_exception_type((TimeoutError, *transient)),
        before_sleep=_log_retry(provider, description, policy),
        sleep=sleep,
    )

    try:
        return await retrying(attempt)
    except RetryError as exc:
        last = exc.last_attempt.exception()
        reason = _describe(last, policy)
        logger.error(
            "%s: %s failed after %d attempt(s): %s",
            provider, description, attempts_made, reason,
        )
        raise ProviderError(
            f"{provider} call failed after {attempts_made} attempt(s): {reason}",
            provider=provider,
            attempts=attempts_made,
        ) from last
    except fatal as exc:
        logger.error("%s: %s failed: %s", provider, description, exc)
        raise ProviderError(
            f"{provider} call failed: {exc}",
            provider=provider,
            attempts=attempts_made,
        ) from exc


def _log_retry(
    provider: str, description: str, policy: RetryPolicy,
) -> Callable[[RetryCallState], None]:
    """tenacity before_sleep hook: one warning per scheduled retry."""

    def before_sleep(retry_state: RetryCallState) -> None:
        logger.warning(
            "%s: %s attempt %d/%d failed (%s); retrying in %.1fs",
            provider, description, retry_state.attempt_number, policy.attempts,
            _describe(retry_state.outcome.exception(), policy),
            retry_state.next_action.sleep if retry_state.next_action else 0.0,
        )

    return before_sleep


def _describe(exc: BaseException | None, policy: RetryPolicy) -> str:
    if isinstance(exc, TimeoutError):
        return f"timed out after {policy.timeout_seconds:.1f}s"
    return f"{type(exc).__name__}: {exc}"
