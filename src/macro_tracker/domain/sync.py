"""Sync status values and error types."""

from dataclasses import dataclass


class SyncError(Exception):
    """Base error for a failed sync step."""


class RemoteStoreError(SyncError):
    """Raised when the remote store is unreachable or rejects a request."""


class LocalStoreError(SyncError):
    """Raised when a local store read or commit fails."""


@dataclass(frozen=True)
class SyncStatus:
    """Snapshot of the engine state shown to observers."""

    syncing: bool = False
    last_error: str | None = None


@dataclass(frozen=True)
class SyncOutcome:
    """Result of a single sync operation."""

    operation: str
    skipped: bool = False
    error: str | None = None
    inserted: int = 0

    @property
    def ok(self) -> bool:
        """True when the operation ran without error."""
        return self.error is None
