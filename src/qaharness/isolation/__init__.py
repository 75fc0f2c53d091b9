from .cleanup_tracker import (
    ApiDeletion,
    CleanupResult,
    CleanupTracker,
    FailedCleanup,
    TrackedResource,
    UiDeletion,
)
from .user_pool import (
    PoolStatus,
    PoolUser,
    UserPool,
    UserPoolConfig,
    get_user_pool,
    reset_user_pool,
)

__all__ = [
    "ApiDeletion",
    "CleanupResult",
    "CleanupTracker",
    "FailedCleanup",
    "PoolStatus",
    "PoolUser",
    "TrackedResource",
    "UiDeletion",
    "UserPool",
    "UserPoolConfig",
    "get_user_pool",
    "reset_user_pool",
]
