"""
Cleanup tracking for resources created during a test.

Tests register every server-side object they create. After the test the
tracker deletes them newest-first, so children (a card) go before the
parents they depend on (its deck).

Example:
    tracker = CleanupTracker()

    deck = await api.post("/decks", {"name": "Biology"})
    tracker.track(TrackedResource.api("deck", deck["id"], f"/decks/{deck['id']}", project="studytab"))

    card = await api.post(f"/decks/{deck['id']}/cards", {...})
    tracker.track(TrackedResource.api("card", card["id"], f"/cards/{card['id']}", project="studytab"))

    await tracker.cleanup(page, api)   # deletes the card, then the deck
    if tracker.has_failures():
        log.warning(tracker.get_failure_report())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated, Any, Awaitable, Callable, Literal, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field

from qaharness.config.environment import Environment
from qaharness.config.logging_config import get_logger
from qaharness.concurrency.retry import retry_with_fixed_delay
from qaharness.errors import RetryError

log = get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 1.0


class ApiDeletion(BaseModel):
    """Delete through the API with ``method`` on ``path``."""

    model_config = ConfigDict(frozen=True)

    via: Literal["api"] = "api"
    path: str
    method: Literal["DELETE", "POST"] = "DELETE"


class UiDeletion(BaseModel):
    """Delete through the browser, using a registered UI deleter."""

    model_config = ConfigDict(frozen=True)

    via: Literal["ui"] = "ui"


Deletion = Annotated[Union[ApiDeletion, UiDeletion], Field(discriminator="via")]


class TrackedResource(BaseModel):
    """
    A resource created by a test that must be deleted afterwards.
    """

    model_config = ConfigDict(frozen=True)

    type: str
    id: str
    name: str | None = None
    delete_via: Deletion
    project: str
    created_at: datetime = Field(default_factory=datetime.now)

    @classmethod
    def api(
        cls,
        type: str,
        id: str,
        path: str,
        project: str,
        name: str | None = None,
        method: Literal["DELETE", "POST"] = "DELETE",
    ) -> TrackedResource:
        return cls(
            type=type,
            id=id,
            name=name,
            project=project,
            delete_via=ApiDeletion(path=path, method=method),
        )

    @classmethod
    def ui(cls, type: str, id: str, project: str, name: str | None = None) -> TrackedResource:
        return cls(type=type, id=id, name=name, project=project, delete_via=UiDeletion())

    def describe(self) -> str:
        label = f"{self.type} {self.id}"
        if self.name:
            label += f" ({self.name})"
        return label


@dataclass(frozen=True)
class FailedCleanup:
    """A resource whose deletion failed on every attempt."""

    resource: TrackedResource
    error: BaseException
    retry_count: int
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class CleanupResult:
    cleaned: int
    failed: int


class ApiHandle(Protocol):
    async def delete(self, path: str, retry: bool = True) -> Any: ...

    async def post(self, path: str, data: Any = None, retry: bool = True) -> Any: ...


UiDeleter = Callable[[Any, TrackedResource], Awaitable[None]]


class CleanupTracker:
    """Records test-created resources and deletes them in reverse order.

    Each deletion gets ``max_attempts`` attempts with a fixed ``retry_delay``
    between them. A resource that fails every attempt is recorded as a
    ``FailedCleanup`` and the remaining resources are still processed;
    ``cleanup()`` does not raise for deletion errors. Inspect
    ``has_failures()``/``get_failure_report()`` afterwards.

    Deletions run one at a time. Running them concurrently could delete a
    parent before its child.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        ui_deleters: dict[str, UiDeleter] | None = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if retry_delay < 0:
            raise ValueError("retry_delay must be non-negative")

        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._resources: list[TrackedResource] = []
        self._failures: list[FailedCleanup] = []
        self._ui_deleters: dict[str, UiDeleter] = dict(ui_deleters or {})

    @classmethod
    def from_environment(cls) -> CleanupTracker:
        return cls(
            max_attempts=Environment.get_cleanup_max_attempts(),
            retry_delay=Environment.get_cleanup_retry_delay(),
        )

    def register_ui_deleter(self, resource_type: str, deleter: UiDeleter) -> None:
        """Use ``deleter(page, resource)`` for UI-deleted resources of this type."""
        self._ui_deleters[resource_type] = deleter

    def track(self, resource: TrackedResource) -> TrackedResource:
        tracked = resource.model_copy(update={"created_at": datetime.now()})
        self._resources.append(tracked)
        log.info(f"Tracked: {tracked.type} - {tracked.id}")
        return tracked

    def get_all(self) -> list[TrackedResource]:
        return list(self._resources)

    def clear(self) -> None:
        """Forget tracked resources without deleting them."""
        self._resources.clear()

    async def cleanup(self, page: Any, api: ApiHandle | None) -> CleanupResult:
        """Delete every tracked resource, newest first.

        A resource leaves the tracked list once its deletion has finished,
        successfully or not. Resources tracked while cleanup is running are
        kept for the next call, and a cancelled cleanup leaves the resources
        it did not reach in place.

        Args:
            page: Browser page passed through to UI deleters.
            api: Handle used for API deletions.

        Returns:
            How many resources were cleaned and how many failed.
        """
        batch = list(reversed(self._resources))

        log.info(f"Starting cleanup of {len(batch)} resources...")

        cleaned = 0
        failed = 0
        for resource in batch:
            try:
                await retry_with_fixed_delay(
                    lambda resource=resource: self._delete(resource, page, api),
                    max_attempts=self.max_attempts,
                    delay=self.retry_delay,
                )
            except RetryError as e:
                failed += 1
                self._failures.append(
                    FailedCleanup(
                        resource=resource,
                        error=e.last_error,
                        retry_count=e.attempts,
                    )
                )
                log.error(
                    f"Failed to delete {resource.type} - {resource.id} "
                    f"after {e.attempts} attempts: {e.last_error}"
                )
            else:
                cleaned += 1
            self._forget(resource)

        log.info(f"Cleanup completed: {cleaned} cleaned, {failed} failed")
        return CleanupResult(cleaned=cleaned, failed=failed)

    def _forget(self, resource: TrackedResource) -> None:
        # by identity: equal copies tracked twice are separate entries
        for index, tracked in enumerate(self._resources):
            if tracked is resource:
                del self._resources[index]
                return

    async def _delete(self, resource: TrackedResource, page: Any, api: ApiHandle | None) -> None:
        deletion = resource.delete_via
        if isinstance(deletion, ApiDeletion):
            if api is None:
                raise RuntimeError(f"No API handle available to delete {resource.describe()}")
            # the tracker owns the attempt loop; the handle must not retry on its own
            if deletion.method == "DELETE":
                await api.delete(deletion.path, retry=False)
            else:
                await api.post(deletion.path, retry=False)
            log.info(f"API deleted: {resource.type} - {resource.id}")
        elif isinstance(deletion, UiDeletion):
            deleter = self._ui_deleters.get(resource.type)
            if deleter is None:
                log.info(f"UI cleanup required: {resource.type} - {resource.id}")
                return
            await deleter(page, resource)
            log.info(f"UI deleted: {resource.type} - {resource.id}")
        else:
            raise TypeError(f"Unsupported deletion strategy: {deletion!r}")

    def has_failures(self) -> bool:
        return bool(self._failures)

    def get_failures(self) -> list[FailedCleanup]:
        return list(self._failures)

    def clear_failures(self) -> None:
        self._failures.clear()

    def get_failure_report(self) -> str:
        """Human-readable summary of every failed cleanup, one line each."""
        if not self._failures:
            return "No cleanup failures"

        lines = [f"{len(self._failures)} resource(s) could not be cleaned up:"]
        for failure in self._failures:
            resource = failure.resource
            lines.append(
                f"- {resource.describe()} [{resource.project}] "
                f"after {failure.retry_count} attempts: {failure.error}"
            )
        return "\n".join(lines)
