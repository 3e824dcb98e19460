"""Supabase-backed remote document store."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Protocol
from uuid import UUID

from pydantic import ValidationError
from supabase import Client

from macro_tracker.adapters.remote_documents import (
    EntryDocument,
    GoalsDocument,
    entries_collection,
    entry_path,
    goals_path,
)
from macro_tracker.domain.models import GoalSet, LogEntry
from macro_tracker.domain.sync import RemoteStoreError
from macro_tracker.services.sync import RemoteStore

_logger = logging.getLogger(__name__)

DOCUMENTS_TABLE = "sync_documents"


class _Response(Protocol):
    data: list[dict[str, Any]] | None


class _Query(Protocol):
    def execute(self) -> _Response: ...


@dataclass
class SupabaseRemoteStore(RemoteStore):
    """Path-addressed documents kept in a single Supabase table.

    Each row holds ``path`` (primary key), ``parent`` (the collection path the
    document lives in) and ``data`` (the document fields as JSON).
    """

    client: Client

    async def get_goals(self, principal: str) -> GoalSet | None:
        """Fetch the goals document, or None when absent."""
        data = await self._get_document(goals_path(principal))
        if data is None:
            return None
        try:
            document = GoalsDocument.model_validate(data)
        except ValidationError as exc:
            raise RemoteStoreError(f"Malformed goals document: {exc}") from exc
        return document.to_goals(principal)

    async def set_goals(self, principal: str, goals: GoalSet) -> None:
        """Overwrite the goals document."""
        path = goals_path(principal)
        parent, _ = path.rsplit("/", 1)
        await self._set_document(
            path, parent=parent, data=GoalsDocument.from_goals(goals)
        )

    async def list_entries(self, principal: str) -> list[LogEntry]:
        """Fetch every entry document of the principal."""
        query = (
            self.client.table(DOCUMENTS_TABLE)
            .select("path, data")
            .eq("parent", entries_collection(principal))
        )
        response = await self._execute("list entries", query)
        entries: list[LogEntry] = []
        for row in response.data or []:
            entry = _parse_entry(row, principal)
            if entry is not None:
                entries.append(entry)
        return entries

    async def set_entry(self, principal: str, entry: LogEntry) -> None:
        """Overwrite the entry document keyed by the entry id."""
        await self._set_document(
            entry_path(principal, entry.id),
            parent=entries_collection(principal),
            data=EntryDocument.from_entry(entry),
        )

    async def delete_entry(self, principal: str, entry_id: UUID) -> None:
        """Delete the entry document; absent documents are not an error."""
        query = (
            self.client.table(DOCUMENTS_TABLE)
            .delete()
            .eq("path", entry_path(principal, entry_id))
        )
        await self._execute("delete entry", query)

    async def _get_document(self, path: str) -> dict[str, object] | None:
        query = (
            self.client.table(DOCUMENTS_TABLE)
            .select("data")
            .eq("path", path)
            .limit(1)
        )
        response = await self._execute("read document", query)
        if not response.data:
            return None
        return response.data[0].get("data") or {}

    async def _set_document(
        self, path: str, parent: str, data: GoalsDocument | EntryDocument
    ) -> None:
        query = self.client.table(DOCUMENTS_TABLE).upsert(
            {"path": path, "parent": parent, "data": data.to_payload()},
            on_conflict="path",
        )
        await self._execute("write document", query)

    async def _execute(self, action: str, query: _Query) -> _Response:
        try:
            return await asyncio.to_thread(query.execute)
        except Exception as exc:
            raise RemoteStoreError(f"Remote {action} failed: {exc}") from exc


def _parse_entry(row: dict[str, object], principal: str) -> LogEntry | None:
    path = str(row.get("path", ""))
    try:
        entry_id = UUID(path.rsplit("/", 1)[-1])
    except ValueError:
        _logger.warning("Skipping remote entry with invalid id: %s", path)
        return None
    try:
        document = EntryDocument.model_validate(row.get("data") or {})
    except ValidationError as exc:
        _logger.warning("Skipping malformed remote entry %s: %s", path, exc)
        return None
    return document.to_entry(entry_id, principal)
