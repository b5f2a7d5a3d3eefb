"""Retry decorators for platform API calls, built on tenacity.

Only idempotent reads are decorated. Creates are never retried here: a
write that timed out may still have landed, and the orchestrator's
idempotency lookup is what protects against duplicates.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from store_migration.client.exceptions import NetworkError, RateLimitError, ServerError
from store_migration.utils.logging import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (NetworkError, ServerError, RateLimitError)


class wait_for_retry_after:
    """tenacity wait strategy honouring a 429's Retry-After header.

    Falls back to randomized exponential backoff for every other error.
    """

    def __init__(self, min_wait: float, max_wait: float):
        self.max_wait = max_wait
        self._fallback = wait_random_exponential(multiplier=1, min=min_wait, max=max_wait)

    def __call__(self, retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome
        error = outcome.exception() if outcome is not None else None
        if isinstance(error, RateLimitError) and error.retry_after:
            return float(min(error.retry_after, self.max_wait))
        return self._fallback(retry_state)


def retry_with_backoff(
    max_attempts: int = 3,
    min_wait: float = 1,
    max_wait: float = 30,
    retry_on_exceptions: tuple[type[Exception], ...] = RETRYABLE_ERRORS,
) -> Callable[[F], F]:
    """Retry an async callable on transient transport errors.

    Args:
        max_attempts: Total attempts including the first call
        min_wait: Minimum wait between attempts in seconds
        max_wait: Maximum wait between attempts in seconds
        retry_on_exceptions: Exception types that trigger another attempt

    Returns:
        Decorator applying the retry policy
    """

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(max_attempts),
                wait=wait_for_retry_after(min_wait, max_wait),
                retry=retry_if_exception_type(retry_on_exceptions),
                reraise=True,
            ):
                with attempt:
                    attempt_number = attempt.retry_state.attempt_number
                    if attempt_number > 1:
                        logger.info(
                            "retry_attempt",
                            function=func.__name__,
                            attempt=attempt_number,
                            max_attempts=max_attempts,
                        )
                    return await func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator


retry_api_call = retry_with_backoff(max_attempts=3, min_wait=1, max_wait=30)
