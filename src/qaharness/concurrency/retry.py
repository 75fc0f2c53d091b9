import asyncio
import functools
import random
from typing import Any, Coroutine, TypeVar
from collections.abc import Callable

import httpx

from qaharness.config.logging_config import get_logger
from qaharness.errors import RetryError

log = get_logger(__name__)

T = TypeVar("T")

RETRYABLE_STATUSES = frozenset({408, 429, 500, 502, 503, 504})

_RETRYABLE_MESSAGES = (
    "ECONNREFUSED",
    "ETIMEDOUT",
    "ENOTFOUND",
    "socket hang up",
)


def is_transient_error(error: BaseException) -> bool:
    """
    Decide whether an error is worth retrying.

    Network-level failures, retryable HTTP statuses and the usual
    connection-reset messages count as transient; everything else does not.
    """
    if isinstance(error, httpx.TransportError):
        return True

    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in RETRYABLE_STATUSES

    status = getattr(error, "status_code", None)
    if isinstance(status, int):
        return status in RETRYABLE_STATUSES

    message = str(error)
    return any(pattern in message for pattern in _RETRYABLE_MESSAGES)


async def retry_with_exponential_backoff(
    func: Callable[[], Coroutine[Any, Any, T]],
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    retryable_exceptions: tuple[type[Exception], ...] = (Exception,),
    retryable_predicate: Callable[[Exception], bool] | None = None,
) -> T:
    """
    Retry an async function with exponential backoff and optional jitter.

    Args:
        func: Async function to execute and retry on failure.
        max_retries: Maximum number of retry attempts (default: 3).
                     Use -1 for unlimited retries.
        initial_delay: Initial delay in seconds between retries (default: 1.0).
        max_delay: Maximum delay cap in seconds (default: 60.0).
        exponential_base: Base for exponential backoff calculation (default: 2.0).
                          Delay = initial_delay * (exponential_base ** attempt)
        jitter: Whether to add random jitter to prevent thundering herd (default: True).
        retryable_exceptions: Tuple of exception types to retry on (default: all exceptions).
        retryable_predicate: Optional check applied to caught exceptions; when it
                             returns False the exception is re-raised immediately.

    Returns:
        The return value of the successfully executed function.

    Raises:
        The last exception if all retries are exhausted, or the first
        exception rejected by ``retryable_predicate``.

    Example:
        data = await retry_with_exponential_backoff(
            lambda: client.get("/decks"),
            max_retries=5,
            initial_delay=0.5,
            retryable_predicate=is_transient_error,
        )
    """
    if max_retries < -1:
        raise ValueError("max_retries must be -1 (unlimited) or >= 0")

    delay = initial_delay
    attempt = 0

    while True:
        try:
            return await func()
        except retryable_exceptions as e:
            if retryable_predicate is not None and not retryable_predicate(e):
                raise

            if max_retries != -1 and attempt >= max_retries:
                log.error(
                    f"Operation failed after {max_retries} retries: {e}",
                    extra={"attempt": attempt + 1, "max_retries": max_retries},
                )
                raise

            log.warning(
                f"Operation failed (attempt {attempt + 1}), retrying in {delay:.2f}s: {e}",
                extra={"attempt": attempt + 1, "next_delay": delay},
            )

            actual_delay = delay * random.uniform(0.5, 1.5) if jitter else delay

            await asyncio.sleep(actual_delay)

            delay = min(delay * exponential_base, max_delay)
            attempt += 1


async def retry_with_fixed_delay(
    func: Callable[[], Coroutine[Any, Any, T]],
    max_attempts: int = 3,
    delay: float = 1.0,
) -> T:
    """
    Call ``func`` up to ``max_attempts`` times, sleeping ``delay`` seconds between attempts.

    Every exception counts as a failed attempt. There is no backoff and no jitter.

    Raises:
        RetryError: carrying the number of attempts and the last exception.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    if delay < 0:
        raise ValueError("delay must be non-negative")

    last_error: Exception | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            return await func()
        except Exception as e:
            last_error = e
            if attempt < max_attempts:
                log.debug(f"Attempt {attempt}/{max_attempts} failed, retrying in {delay:.2f}s: {e}")
                await asyncio.sleep(delay)

    assert last_error is not None
    raise RetryError(
        f"Failed after {max_attempts} attempts: {last_error}",
        attempts=max_attempts,
        last_error=last_error,
    ) from last_error


class RetryPolicy:
    """
    A configurable retry policy for fine-grained control over retry behavior.

    Example:
        # Only retry transient HTTP failures
        policy = RetryPolicy(
            max_retries=3,
            initial_delay=1.0,
            retryable_predicate=is_transient_error,
        )

        result = await policy.execute(lambda: client.get("/health"))
    """

    def __init__(
        self,
        max_retries: int = 3,
        initial_delay: float = 1.0,
        max_delay: float = 10.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
        retryable_exceptions: tuple[type[Exception], ...] = (Exception,),
        retryable_predicate: Callable[[Exception], bool] | None = None,
    ):
        """
        Initialize a retry policy.

        Args:
            max_retries: Maximum number of retry attempts (-1 for unlimited).
            initial_delay: Initial delay in seconds.
            max_delay: Maximum delay cap.
            exponential_base: Base for exponential backoff.
            jitter: Whether to add random jitter.
            retryable_exceptions: Exception types that are retryable.
            retryable_predicate: Custom function to determine if an exception is retryable.
        """
        self.max_retries: int = max_retries
        self.initial_delay: float = initial_delay
        self.max_delay: float = max_delay
        self.exponential_base: float = exponential_base
        self.jitter: bool = jitter
        self.retryable_exceptions: tuple[type[Exception], ...] = retryable_exceptions
        self.retryable_predicate: Callable[[Exception], bool] | None = retryable_predicate

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        return cls(max_retries=0)

    async def execute(self, func: Callable[[], Coroutine[Any, Any, T]]) -> T:
        """Execute a function with this retry policy."""
        return await retry_with_exponential_backoff(
            func=func,
            max_retries=self.max_retries,
            initial_delay=self.initial_delay,
            max_delay=self.max_delay,
            exponential_base=self.exponential_base,
            jitter=self.jitter,
            retryable_exceptions=self.retryable_exceptions,
            retryable_predicate=self.retryable_predicate,
        )

    def __call__(self, func: Callable[[], Coroutine[Any, Any, T]]) -> Callable[[], Coroutine[Any, Any, T]]:
        """
        Use as a decorator for async functions.

        Example:
            @RetryPolicy(max_retries=3, initial_delay=0.5)
            async def fetch_health():
                ...
        """

        @functools.wraps(func)
        async def wrapper() -> T:
            return await self.execute(func)

        return wrapper


__all__ = [
    "RETRYABLE_STATUSES",
    "RetryPolicy",
    "is_transient_error",
    "retry_with_exponential_backoff",
    "retry_with_fixed_delay",
]
