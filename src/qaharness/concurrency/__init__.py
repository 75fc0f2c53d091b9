from .retry import (
    RETRYABLE_STATUSES,
    RetryPolicy,
    is_transient_error,
    retry_with_exponential_backoff,
    retry_with_fixed_delay,
)

__all__ = [
    "RETRYABLE_STATUSES",
    "RetryPolicy",
    "is_transient_error",
    "retry_with_exponential_backoff",
    "retry_with_fixed_delay",
]
