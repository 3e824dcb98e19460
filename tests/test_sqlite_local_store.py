"""Tests for the SQLite local store."""

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest

from macro_tracker.adapters.sqlite_local_store import SqliteLocalStore
from macro_tracker.domain.models import CachedFood
from macro_tracker.domain.sync import LocalStoreError
from tests.conftest import PRINCIPAL, make_entry, make_goals


def test_save_goals_keeps_one_row_per_principal(
    local_store: SqliteLocalStore,
) -> None:
    local_store.save_goals(make_goals(carbs=100))
    local_store.save_goals(make_goals(carbs=180))

    stored = local_store.get_goals(PRINCIPAL)
    count = local_store._conn.execute("SELECT COUNT(*) FROM goal_sets").fetchone()[0]

    assert stored is not None
    assert stored.carbs == 180
    assert count == 1


def test_get_goals_returns_none_for_unknown_principal(
    local_store: SqliteLocalStore,
) -> None:
    assert local_store.get_goals("nobody") is None


def test_insert_entry_if_absent_rejects_duplicate_ids(
    local_store: SqliteLocalStore,
) -> None:
    entry = make_entry(carbs=10)

    first = local_store.insert_entry_if_absent(entry)
    second = local_store.insert_entry_if_absent(replace(entry, carbs=99))

    assert first is True
    assert second is False
    assert local_store.get_entry(entry.id) == entry


def test_save_entry_overwrites_existing(local_store: SqliteLocalStore) -> None:
    entry = make_entry(carbs=10, barcode="123")
    local_store.save_entry(entry)

    local_store.save_entry(replace(entry, carbs=30, calories=300.0))

    stored = local_store.get_entry(entry.id)
    assert stored is not None
    assert stored.carbs == 30
    assert stored.calories == 300.0
    assert stored.barcode == "123"


def test_delete_entry_reports_whether_a_row_was_removed(
    local_store: SqliteLocalStore,
) -> None:
    entry = make_entry()
    local_store.save_entry(entry)

    assert local_store.delete_entry(entry.id) is True
    assert local_store.delete_entry(entry.id) is False
    assert local_store.get_entry(entry.id) is None


def test_list_entries_filters_by_principal_and_day(
    local_store: SqliteLocalStore,
) -> None:
    today = datetime(2026, 10, 19, tzinfo=UTC)
    yesterday = today - timedelta(days=1)
    todays = make_entry(food_name="Eggs", day=today)
    local_store.save_entry(todays)
    local_store.save_entry(make_entry(food_name="Pasta", day=yesterday))
    local_store.save_entry(make_entry(user_id="someone-else", day=today))

    assert local_store.list_entries(PRINCIPAL, day=today) == [todays]
    assert len(local_store.list_entries(PRINCIPAL)) == 2


def test_cached_food_roundtrip(local_store: SqliteLocalStore) -> None:
    food = CachedFood(
        barcode="737628064502",
        food_name="Peanut butter",
        carbs=20.0,
        protein=25.0,
        fat=50.0,
        calories=None,
        cached_at=datetime(2026, 10, 19, 12, tzinfo=UTC),
    )

    local_store.cache_food(food)

    assert local_store.get_cached_food(food.barcode) == food
    assert local_store.get_cached_food("missing") is None


def test_records_survive_reopen(tmp_path) -> None:
    path = str(tmp_path / "device" / "store.db")
    store = SqliteLocalStore(path)
    entry = make_entry()
    store.save_entry(entry)
    store.save_goals(make_goals())
    store.close()

    reopened = SqliteLocalStore(path)

    assert reopened.get_entry(entry.id) == entry
    assert reopened.get_goals(PRINCIPAL) == make_goals()
    reopened.close()


def test_failures_raise_local_store_error(local_store: SqliteLocalStore) -> None:
    local_store.close()

    with pytest.raises(LocalStoreError, match="Local save goals failed"):
        local_store.save_goals(make_goals())
