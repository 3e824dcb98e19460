"""Local-first sync between the device store and the remote mirror."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from macro_tracker.domain.models import CachedFood, GoalSet, LogEntry
from macro_tracker.domain.sync import SyncError, SyncOutcome, SyncStatus
from macro_tracker.services.identity import IdentityProvider

_logger = logging.getLogger(__name__)

StatusListener = Callable[[SyncStatus], None]


class LocalStore(Protocol):
    """Durable on-device storage for goals, entries and the lookup cache."""

    def get_goals(self, user_id: str) -> GoalSet | None:
        """Return the goal set for a principal, if stored."""

    def save_goals(self, goals: GoalSet) -> None:
        """Insert or update the goal set keyed by its principal."""

    def get_entry(self, entry_id: UUID) -> LogEntry | None:
        """Return a log entry by id."""

    def insert_entry_if_absent(self, entry: LogEntry) -> bool:
        """Insert an entry unless its id exists; return True when inserted."""

    def save_entry(self, entry: LogEntry) -> None:
        """Insert or overwrite an entry keyed by its id."""

    def delete_entry(self, entry_id: UUID) -> bool:
        """Delete an entry; return True when a row was removed."""

    def list_entries(
        self, user_id: str, day: datetime | None = None
    ) -> list[LogEntry]:
        """Return a principal's entries, optionally limited to one day."""

    def get_cached_food(self, barcode: str) -> CachedFood | None:
        """Return cached nutrition facts for a product code."""

    def cache_food(self, food: CachedFood) -> None:
        """Store nutrition facts for a product code."""


class RemoteStore(Protocol):
    """Per-principal document mirror reachable over the network."""

    async def get_goals(self, principal: str) -> GoalSet | None:
        """Fetch the goals document, or None when absent."""

    async def set_goals(self, principal: str, goals: GoalSet) -> None:
        """Overwrite the goals document."""

    async def list_entries(self, principal: str) -> list[LogEntry]:
        """Fetch every entry document of the principal."""

    async def set_entry(self, principal: str, entry: LogEntry) -> None:
        """Overwrite the entry document keyed by the entry id."""

    async def delete_entry(self, principal: str, entry_id: UUID) -> None:
        """Delete the entry document; absent documents are not an error."""


@dataclass
class SyncEngine:
    """Pushes local mutations and pulls remote records for the principal."""

    identity: IdentityProvider
    local_store: LocalStore
    remote_store: RemoteStore
    _in_flight: int = field(default=0, init=False, repr=False)
    _last_error: str | None = field(default=None, init=False, repr=False)
    _listeners: list[StatusListener] = field(
        default_factory=list, init=False, repr=False
    )
    _tasks: set[asyncio.Task] = field(default_factory=set, init=False, repr=False)

    @property
    def status(self) -> SyncStatus:
        """Current status snapshot."""
        return SyncStatus(syncing=self._in_flight > 0, last_error=self._last_error)

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Stream status changes to a listener; returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def push_goals(self, goals: GoalSet) -> SyncOutcome:
        """Overwrite the remote goals document with the given goal set."""

        async def step(principal: str) -> int:
            await self.remote_store.set_goals(principal, goals)
            return 0

        return await self._run("push_goals", step)

    async def pull_goals(self) -> SyncOutcome:
        """Copy the remote goals document into the local store."""
        return await self._run("pull_goals", self._pull_goals)

    async def push_entry(self, entry: LogEntry) -> SyncOutcome:
        """Overwrite the remote document for an entry."""

        async def step(principal: str) -> int:
            await self.remote_store.set_entry(principal, entry)
            return 0

        return await self._run("push_entry", step)

    async def delete_entry(self, entry: LogEntry) -> SyncOutcome:
        """Remove the remote document for an entry."""

        async def step(principal: str) -> int:
            await self.remote_store.delete_entry(principal, entry.id)
            return 0

        return await self._run("delete_entry", step)

    async def pull_entries(self) -> SyncOutcome:
        """Insert remote entries the device has not seen yet."""
        return await self._run("pull_entries", self._pull_entries)

    async def full_sync(self) -> SyncOutcome:
        """Pull goals, then entries, even when the goals pull fails."""
        goals = await self.pull_goals()
        entries = await self.pull_entries()
        return SyncOutcome(
            operation="full_sync",
            skipped=goals.skipped and entries.skipped,
            error=goals.error or entries.error,
            inserted=entries.inserted,
        )

    def launch(self, operation: Coroutine[Any, Any, SyncOutcome]) -> asyncio.Task:
        """Run an operation detached from the caller."""
        task = asyncio.get_running_loop().create_task(operation)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every detached operation to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _pull_goals(self, principal: str) -> int:
        remote = await self.remote_store.get_goals(principal)
        if remote is None:
            return 0
        existing = self.local_store.get_goals(principal)
        if existing is not None and existing == remote:
            return 0
        self.local_store.save_goals(remote)
        _logger.info("Pulled goals for principal %s", principal)
        return 0

    async def _pull_entries(self, principal: str) -> int:
        remote_entries = await self.remote_store.list_entries(principal)
        inserted = 0
        for entry in remote_entries:
            if self.local_store.insert_entry_if_absent(entry):
                inserted += 1
        _logger.info(
            "Pulled entries for principal %s: remote=%s inserted=%s",
            principal,
            len(remote_entries),
            inserted,
        )
        return inserted

    async def _run(
        self, operation: str, step: Callable[[str], Awaitable[int]]
    ) -> SyncOutcome:
        principal = self.identity.current_principal()
        if principal is None:
            return SyncOutcome(operation=operation, skipped=True)

        self._in_flight += 1
        self._last_error = None
        self._publish()
        try:
            inserted = await step(principal)
        except SyncError as exc:
            self._last_error = str(exc)
            _logger.warning("Sync %s failed: %s", operation, exc)
            return SyncOutcome(operation=operation, error=str(exc))
        finally:
            self._in_flight -= 1
            self._publish()
        return SyncOutcome(operation=operation, inserted=inserted)

    def _publish(self) -> None:
        status = self.status
        for listener in list(self._listeners):
            listener(status)
