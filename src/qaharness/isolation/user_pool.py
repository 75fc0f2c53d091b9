"""
User pool for parallel test isolation.

Each test worker leases a distinct test user so that tests running in parallel
never share server-side state tied to one account.

Example:
    from qaharness.isolation import UserPool, UserPoolConfig

    pool = UserPool(UserPoolConfig(pool_size=2))

    user = pool.acquire(worker_id=1)
    if user is None:
        ...  # pool exhausted, caller decides
    try:
        await login(user.email, user.password)
    finally:
        pool.release(user.id)
"""

from __future__ import annotations

import asyncio
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Iterator, NamedTuple

from qaharness.config.environment import Environment
from qaharness.config.logging_config import get_logger
from qaharness.errors import PoolExhaustedError

log = get_logger(__name__)


@dataclass(frozen=True)
class PoolUser:
    """Snapshot of a pooled test user.

    Attributes:
        id: Stable pool id, ``user-1`` .. ``user-N``
        email: Login email built from the pool's email pattern
        password: Shared login password
        in_use: Whether the user was leased when the snapshot was taken
        worker_id: The worker holding the lease, None when free
    """

    id: str
    email: str
    password: str
    in_use: bool = False
    worker_id: int | None = None


@dataclass(frozen=True)
class UserPoolConfig:
    pool_size: int = 10
    email_pattern: str = "testuser{n}@example.com"
    default_password: str = "Test123!"

    def __post_init__(self) -> None:
        if self.pool_size < 1:
            raise ValueError("pool_size must be at least 1")

    @classmethod
    def from_environment(cls) -> UserPoolConfig:
        return cls(
            pool_size=Environment.get_user_pool_size(),
            email_pattern=Environment.get_user_pool_email_pattern(),
            default_password=Environment.get_user_pool_password(),
        )


class PoolStatus(NamedTuple):
    total: int
    available: int
    in_use: int


class UserPool:
    """A fixed-size pool of exclusive test user leases.

    The pool owns the live user records; callers only ever receive frozen
    ``PoolUser`` snapshots, so lease state changes only through
    ``acquire``/``release``/``release_by_worker``/``reset``.

    ``acquire`` never blocks: it returns ``None`` when every user is leased.
    Waiting for a free user is a caller-side convention, see
    ``acquire_with_timeout``.

    Scan-and-mark runs under a lock, so the one-owner-per-user invariant also
    holds when workers are threads rather than processes.
    """

    def __init__(self, config: UserPoolConfig | None = None):
        self._config = config or UserPoolConfig()
        self._users: list[PoolUser] = [
            PoolUser(
                id=f"user-{i}",
                email=self._config.email_pattern.replace("{n}", str(i)),
                password=self._config.default_password,
            )
            for i in range(1, self._config.pool_size + 1)
        ]
        self._lock = threading.Lock()

    @property
    def config(self) -> UserPoolConfig:
        return self._config

    def acquire(self, worker_id: int) -> PoolUser | None:
        """Lease the first available user to ``worker_id``.

        Returns:
            A snapshot of the leased user, or None if the pool is exhausted.
        """
        with self._lock:
            for index, user in enumerate(self._users):
                if not user.in_use:
                    leased = replace(user, in_use=True, worker_id=worker_id)
                    self._users[index] = leased
                    log.info(f"Worker {worker_id} acquired {leased.email}")
                    return leased

        log.warning(f"No users available for worker {worker_id}")
        return None

    def release(self, user_id: str) -> None:
        """Return a user to the pool. Unknown or free users are ignored."""
        with self._lock:
            self._release_locked(user_id)

    def release_by_worker(self, worker_id: int) -> None:
        """Release every user currently leased to ``worker_id``."""
        with self._lock:
            for user in list(self._users):
                if user.in_use and user.worker_id == worker_id:
                    self._release_locked(user.id)

    def _release_locked(self, user_id: str) -> None:
        for index, user in enumerate(self._users):
            if user.id == user_id:
                if user.in_use:
                    log.info(f"Released {user.email} from worker {user.worker_id}")
                    self._users[index] = replace(user, in_use=False, worker_id=None)
                return

    def get_status(self) -> PoolStatus:
        with self._lock:
            in_use = sum(1 for user in self._users if user.in_use)
            return PoolStatus(
                total=len(self._users),
                available=len(self._users) - in_use,
                in_use=in_use,
            )

    def get_all_users(self) -> list[PoolUser]:
        with self._lock:
            return list(self._users)

    def reset(self) -> None:
        """Clear every lease. Not safe while workers still use their users."""
        with self._lock:
            self._users = [replace(user, in_use=False, worker_id=None) for user in self._users]

    @contextmanager
    def acquire_context(self, worker_id: int) -> Iterator[PoolUser]:
        """Lease a user for the duration of a ``with`` block.

        Raises:
            PoolExhaustedError: If no user is available.
        """
        user = self.acquire(worker_id)
        if user is None:
            raise PoolExhaustedError(worker_id)
        try:
            yield user
        finally:
            self.release(user.id)

    async def acquire_with_timeout(
        self,
        worker_id: int,
        timeout: float = 30.0,
        poll_interval: float = 0.5,
    ) -> PoolUser:
        """Poll ``acquire`` until a user frees up or ``timeout`` seconds pass.

        Raises:
            PoolExhaustedError: If the deadline passes without a free user.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            user = self.acquire(worker_id)
            if user is not None:
                return user
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise PoolExhaustedError(
                    worker_id,
                    f"No available users in pool for worker {worker_id} after {timeout}s",
                )
            await asyncio.sleep(min(poll_interval, remaining))


_pool_instance: UserPool | None = None


def get_user_pool(config: UserPoolConfig | None = None) -> UserPool:
    """Return the process-wide pool, creating it on first use.

    ``config`` only applies when the pool is created; call ``reset_user_pool``
    first to rebuild it with a different configuration.
    """
    global _pool_instance
    if _pool_instance is None:
        _pool_instance = UserPool(config)
    return _pool_instance


def reset_user_pool() -> None:
    """Release all leases and drop the process-wide pool."""
    global _pool_instance
    if _pool_instance is not None:
        _pool_instance.reset()
    _pool_instance = None
