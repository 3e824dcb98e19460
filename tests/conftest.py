"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from macro_tracker.adapters.sqlite_local_store import SqliteLocalStore
from macro_tracker.config import Settings
from macro_tracker.domain.models import GoalSet, LogEntry, MealType
from macro_tracker.domain.sync import RemoteStoreError
from macro_tracker.services.identity import SessionIdentityProvider
from macro_tracker.services.journal import JournalService
from macro_tracker.services.sync import RemoteStore, SyncEngine

PRINCIPAL = "user-1"


@dataclass
class InMemoryRemoteStore(RemoteStore):
    """In-memory remote store that records calls and can simulate outages."""

    goals: dict[str, GoalSet] = field(default_factory=dict)
    entries: dict[str, dict[UUID, LogEntry]] = field(default_factory=dict)
    calls: list[tuple[str, str]] = field(default_factory=list)
    error: str | None = None
    failures: dict[str, str] = field(default_factory=dict)

    async def get_goals(self, principal: str) -> GoalSet | None:
        self._record("get_goals", principal)
        return self.goals.get(principal)

    async def set_goals(self, principal: str, goals: GoalSet) -> None:
        self._record("set_goals", principal)
        self.goals[principal] = replace(goals, user_id=principal)

    async def list_entries(self, principal: str) -> list[LogEntry]:
        self._record("list_entries", principal)
        return [
            replace(entry, user_id=principal)
            for entry in self.entries.get(principal, {}).values()
        ]

    async def set_entry(self, principal: str, entry: LogEntry) -> None:
        self._record("set_entry", principal)
        self.entries.setdefault(principal, {})[entry.id] = entry

    async def delete_entry(self, principal: str, entry_id: UUID) -> None:
        self._record("delete_entry", principal)
        self.entries.get(principal, {}).pop(entry_id, None)

    def _record(self, action: str, principal: str) -> None:
        self.calls.append((action, principal))
        error = self.failures.get(action, self.error)
        if error is not None:
            raise RemoteStoreError(error)


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeDocumentQuery:
    """Query builder over a shared row list, mimicking postgrest chaining."""

    rows: dict[str, dict[str, object]]
    failure: Exception | None = None
    action: str = "select"
    payload: dict[str, object] | None = None
    on_conflict: str | None = None
    filters: list[tuple[str, object]] = field(default_factory=list)
    limit_count: int | None = None

    def select(self, *_columns: str) -> "FakeDocumentQuery":
        self.action = "select"
        return self

    def upsert(
        self, payload: dict[str, object], on_conflict: str = ""
    ) -> "FakeDocumentQuery":
        self.action = "upsert"
        self.payload = payload
        self.on_conflict = on_conflict
        return self

    def delete(self) -> "FakeDocumentQuery":
        self.action = "delete"
        return self

    def eq(self, column: str, value: object) -> "FakeDocumentQuery":
        self.filters.append((column, value))
        return self

    def limit(self, count: int) -> "FakeDocumentQuery":
        self.limit_count = count
        return self

    def execute(self) -> FakeResponse:
        if self.failure is not None:
            raise self.failure
        if self.action == "upsert":
            assert self.payload is not None
            self.rows[str(self.payload["path"])] = dict(self.payload)
            return FakeResponse(data=[dict(self.payload)])
        matched = [
            row
            for row in self.rows.values()
            if all(row.get(column) == value for column, value in self.filters)
        ]
        if self.action == "delete":
            for row in matched:
                self.rows.pop(str(row["path"]), None)
            return FakeResponse(data=matched)
        if self.limit_count is not None:
            matched = matched[: self.limit_count]
        return FakeResponse(data=[dict(row) for row in matched])


@dataclass
class FakeSupabaseClient:
    """Stateful stand-in for the Supabase client."""

    tables: dict[str, dict[str, dict[str, object]]] = field(default_factory=dict)
    failure: Exception | None = None

    def table(self, name: str) -> FakeDocumentQuery:
        rows = self.tables.setdefault(name, {})
        return FakeDocumentQuery(rows=rows, failure=self.failure)


def make_entry(  # noqa: PLR0913
    *,
    entry_id: UUID | None = None,
    user_id: str = PRINCIPAL,
    food_name: str = "Oats",
    carbs: float = 10.0,
    protein: float = 5.0,
    fat: float = 2.0,
    calories: float | None = None,
    barcode: str | None = None,
    meal_type: MealType = MealType.BREAKFAST,
    day: datetime | None = None,
) -> LogEntry:
    created_at = datetime(2026, 10, 19, 8, 30, tzinfo=UTC)
    return LogEntry(
        id=entry_id or uuid4(),
        user_id=user_id,
        date=day or datetime(2026, 10, 19, tzinfo=UTC),
        meal_type=meal_type,
        food_name=food_name,
        carbs=carbs,
        protein=protein,
        fat=fat,
        calories=calories,
        barcode=barcode,
        created_at=created_at,
    )


def make_goals(
    carbs: float = 100.0, protein: float = 80.0, fat: float = 50.0
) -> GoalSet:
    return GoalSet(
        user_id=PRINCIPAL,
        carbs=carbs,
        protein=protein,
        fat=fat,
        updated_at=datetime(2026, 10, 19, 7, 0, tzinfo=UTC),
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_key="header.payload.signature",
        local_db_path=str(tmp_path / "macro_tracker.db"),
    )


@pytest.fixture
def identity() -> SessionIdentityProvider:
    return SessionIdentityProvider(principal=PRINCIPAL)


@pytest.fixture
def local_store() -> SqliteLocalStore:
    store = SqliteLocalStore()
    yield store
    store.close()


@pytest.fixture
def remote_store() -> InMemoryRemoteStore:
    return InMemoryRemoteStore()


@pytest.fixture
def sync_engine(
    identity: SessionIdentityProvider,
    local_store: SqliteLocalStore,
    remote_store: InMemoryRemoteStore,
) -> SyncEngine:
    return SyncEngine(
        identity=identity,
        local_store=local_store,
        remote_store=remote_store,
    )


@pytest.fixture
def journal_service(
    identity: SessionIdentityProvider,
    local_store: SqliteLocalStore,
    sync_engine: SyncEngine,
) -> JournalService:
    return JournalService(
        identity=identity,
        local_store=local_store,
        sync_engine=sync_engine,
    )
