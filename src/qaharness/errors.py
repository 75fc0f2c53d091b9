class QaHarnessError(Exception):
    """Base exception for harness errors."""

    pass


class PoolExhaustedError(QaHarnessError):
    """Raised by the pool convenience helpers when no user can be leased."""

    def __init__(self, worker_id: int, message: str | None = None):
        self.worker_id = worker_id
        super().__init__(message or f"No available users in pool for worker {worker_id}")


class ApiError(QaHarnessError):
    """An API request returned an error status or an error envelope."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class RetryError(QaHarnessError):
    """All attempts of a retried operation failed."""

    def __init__(self, message: str, attempts: int, last_error: BaseException):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(message)
