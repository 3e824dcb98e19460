"""SQLite-backed local store for goals, log entries and cached foods."""

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from uuid import UUID

from macro_tracker.domain.models import CachedFood, GoalSet, LogEntry, MealType
from macro_tracker.domain.sync import LocalStoreError
from macro_tracker.services.sync import LocalStore

_logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS goal_sets (
    user_id TEXT PRIMARY KEY,
    carbs REAL NOT NULL,
    protein REAL NOT NULL,
    fat REAL NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS log_entries (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    date TEXT NOT NULL,
    day_start REAL NOT NULL,
    meal_type TEXT NOT NULL,
    food_name TEXT NOT NULL,
    carbs REAL NOT NULL,
    protein REAL NOT NULL,
    fat REAL NOT NULL,
    calories REAL,
    barcode TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_log_entries_user_day
    ON log_entries (user_id, day_start);

CREATE TABLE IF NOT EXISTS cached_foods (
    barcode TEXT PRIMARY KEY,
    food_name TEXT NOT NULL,
    carbs REAL NOT NULL,
    protein REAL NOT NULL,
    fat REAL NOT NULL,
    calories REAL,
    cached_at TEXT NOT NULL
);
"""

_ENTRY_COLUMNS = (
    "id, user_id, date, day_start, meal_type, food_name, carbs, protein, fat, "
    "calories, barcode, created_at"
)


@dataclass
class SqliteLocalStore(LocalStore):
    """Durable on-device store; every write commits before returning."""

    path: str = MEMORY_PATH
    _conn: sqlite3.Connection = field(init=False, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def __post_init__(self) -> None:
        if self.path != MEMORY_PATH:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            self.path, check_same_thread=False, isolation_level=None
        )
        self._conn.row_factory = sqlite3.Row
        if self.path != MEMORY_PATH:
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    def get_goals(self, user_id: str) -> GoalSet | None:
        """Return the goal set for a principal, if stored."""
        with self._guard("read goals"):
            row = self._conn.execute(
                "SELECT * FROM goal_sets WHERE user_id = ?", (user_id,)
            ).fetchone()
        if row is None:
            return None
        return GoalSet(
            user_id=row["user_id"],
            carbs=row["carbs"],
            protein=row["protein"],
            fat=row["fat"],
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def save_goals(self, goals: GoalSet) -> None:
        """Insert or update the goal set keyed by its principal."""
        with self._guard("save goals"):
            self._conn.execute(
                """
                INSERT INTO goal_sets (user_id, carbs, protein, fat, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (user_id) DO UPDATE SET
                    carbs = excluded.carbs,
                    protein = excluded.protein,
                    fat = excluded.fat,
                    updated_at = excluded.updated_at
                """,
                (
                    goals.user_id,
                    goals.carbs,
                    goals.protein,
                    goals.fat,
                    goals.updated_at.isoformat(),
                ),
            )

    def get_entry(self, entry_id: UUID) -> LogEntry | None:
        """Return a log entry by id."""
        with self._guard("read entry"):
            row = self._conn.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM log_entries WHERE id = ?",
                (str(entry_id),),
            ).fetchone()
        if row is None:
            return None
        return _parse_entry(row)

    def insert_entry_if_absent(self, entry: LogEntry) -> bool:
        """Insert an entry unless its id exists; return True when inserted."""
        with self._guard("insert entry"):
            cursor = self._conn.execute(
                f"INSERT OR IGNORE INTO log_entries ({_ENTRY_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                _entry_values(entry),
            )
        return cursor.rowcount == 1

    def save_entry(self, entry: LogEntry) -> None:
        """Insert or overwrite an entry keyed by its id."""
        with self._guard("save entry"):
            self._conn.execute(
                f"INSERT OR REPLACE INTO log_entries ({_ENTRY_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                _entry_values(entry),
            )

    def delete_entry(self, entry_id: UUID) -> bool:
        """Delete an entry; return True when a row was removed."""
        with self._guard("delete entry"):
            cursor = self._conn.execute(
                "DELETE FROM log_entries WHERE id = ?", (str(entry_id),)
            )
        return cursor.rowcount == 1

    def list_entries(
        self, user_id: str, day: datetime | None = None
    ) -> list[LogEntry]:
        """Return a principal's entries, optionally limited to one day."""
        query = f"SELECT {_ENTRY_COLUMNS} FROM log_entries WHERE user_id = ?"
        params: list[object] = [user_id]
        if day is not None:
            query += " AND day_start >= ? AND day_start < ?"
            params.extend(
                [day.timestamp(), (day + timedelta(days=1)).timestamp()]
            )
        query += " ORDER BY created_at, id"
        with self._guard("list entries"):
            rows = self._conn.execute(query, params).fetchall()
        return [_parse_entry(row) for row in rows]

    def get_cached_food(self, barcode: str) -> CachedFood | None:
        """Return cached nutrition facts for a product code."""
        with self._guard("read cached food"):
            row = self._conn.execute(
                "SELECT * FROM cached_foods WHERE barcode = ?", (barcode,)
            ).fetchone()
        if row is None:
            return None
        return CachedFood(
            barcode=row["barcode"],
            food_name=row["food_name"],
            carbs=row["carbs"],
            protein=row["protein"],
            fat=row["fat"],
            calories=row["calories"],
            cached_at=datetime.fromisoformat(row["cached_at"]),
        )

    def cache_food(self, food: CachedFood) -> None:
        """Store nutrition facts for a product code."""
        with self._guard("cache food"):
            self._conn.execute(
                """
                INSERT OR REPLACE INTO cached_foods (
                    barcode, food_name, carbs, protein, fat, calories, cached_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    food.barcode,
                    food.food_name,
                    food.carbs,
                    food.protein,
                    food.fat,
                    food.calories,
                    food.cached_at.isoformat(),
                ),
            )

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        with self._lock:
            try:
                yield
            except sqlite3.Error as exc:
                _logger.error("Local store %s failed: %s", action, exc)
                raise LocalStoreError(f"Local {action} failed: {exc}") from exc


def _entry_values(entry: LogEntry) -> tuple[object, ...]:
    return (
        str(entry.id),
        entry.user_id,
        entry.date.isoformat(),
        entry.date.timestamp(),
        entry.meal_type.value,
        entry.food_name,
        entry.carbs,
        entry.protein,
        entry.fat,
        entry.calories,
        entry.barcode,
        entry.created_at.isoformat(),
    )


def _parse_entry(row: sqlite3.Row) -> LogEntry:
    return LogEntry(
        id=UUID(row["id"]),
        user_id=row["user_id"],
        date=datetime.fromisoformat(row["date"]),
        meal_type=MealType.parse(row["meal_type"]),
        food_name=row["food_name"],
        carbs=row["carbs"],
        protein=row["protein"],
        fat=row["fat"],
        calories=row["calories"],
        barcode=row["barcode"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )
