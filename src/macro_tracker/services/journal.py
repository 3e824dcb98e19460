"""Local-first food journal service."""

from dataclasses import dataclass, replace
from datetime import UTC, datetime, tzinfo
from uuid import UUID, uuid4

from macro_tracker.domain.models import (
    DaySummary,
    GoalSet,
    LogEntry,
    MealType,
    start_of_day,
)
from macro_tracker.services.identity import IdentityProvider
from macro_tracker.services.sync import LocalStore, SyncEngine

_EDITABLE_FIELDS = {
    "date",
    "meal_type",
    "food_name",
    "carbs",
    "protein",
    "fat",
    "calories",
    "barcode",
}


@dataclass
class JournalService:
    """Entry point used by the UI layer for goals and log entries."""

    identity: IdentityProvider
    local_store: LocalStore
    sync_engine: SyncEngine
    timezone: tzinfo = UTC

    async def save_goals(
        self, carbs: float, protein: float, fat: float
    ) -> GoalSet | None:
        """Store new macro targets and push them to the remote mirror."""
        principal = self.identity.current_principal()
        if principal is None:
            return None
        _validate_macros(carbs=carbs, protein=protein, fat=fat)
        goals = GoalSet(
            user_id=principal,
            carbs=float(carbs),
            protein=float(protein),
            fat=float(fat),
            updated_at=datetime.now(tz=UTC),
        )
        self.local_store.save_goals(goals)
        self.sync_engine.launch(self.sync_engine.push_goals(goals))
        return goals

    def get_goals(self) -> GoalSet | None:
        """Return the signed-in principal's goals."""
        principal = self.identity.current_principal()
        if principal is None:
            return None
        return self.local_store.get_goals(principal)

    async def add_entry(  # noqa: PLR0913
        self,
        *,
        food_name: str,
        carbs: float,
        protein: float,
        fat: float,
        meal_type: MealType = MealType.SNACK,
        day: datetime | None = None,
        calories: float | None = None,
        barcode: str | None = None,
    ) -> LogEntry | None:
        """Log a food item and push it to the remote mirror."""
        principal = self.identity.current_principal()
        if principal is None:
            return None
        _validate_macros(carbs=carbs, protein=protein, fat=fat, calories=calories)
        name = food_name.strip()
        if not name:
            raise ValueError("food_name must not be empty")
        now = datetime.now(tz=UTC)
        entry = LogEntry(
            id=uuid4(),
            user_id=principal,
            date=start_of_day(day or now, self.timezone),
            meal_type=MealType.parse(meal_type),
            food_name=name,
            carbs=float(carbs),
            protein=float(protein),
            fat=float(fat),
            calories=calories,
            barcode=barcode,
            created_at=now,
        )
        self.local_store.save_entry(entry)
        self.sync_engine.launch(self.sync_engine.push_entry(entry))
        return entry

    async def update_entry(
        self, entry_id: UUID, **changes: object
    ) -> LogEntry | None:
        """Edit fields of an existing entry and push the new version."""
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be edited: {sorted(unknown)}")
        entry = self._owned_entry(entry_id)
        if entry is None:
            return None
        if "date" in changes and isinstance(changes["date"], datetime):
            changes["date"] = start_of_day(changes["date"], self.timezone)
        if "meal_type" in changes:
            changes["meal_type"] = MealType.parse(changes["meal_type"])
        if "food_name" in changes:
            changes["food_name"] = str(changes["food_name"]).strip()
            if not changes["food_name"]:
                raise ValueError("food_name must not be empty")
        updated = replace(entry, **changes)
        _validate_macros(
            carbs=updated.carbs,
            protein=updated.protein,
            fat=updated.fat,
            calories=updated.calories,
        )
        self.local_store.save_entry(updated)
        self.sync_engine.launch(self.sync_engine.push_entry(updated))
        return updated

    async def delete_entry(self, entry_id: UUID) -> bool:
        """Delete an entry locally and remotely."""
        entry = self._owned_entry(entry_id)
        if entry is None:
            return False
        self.sync_engine.launch(self.sync_engine.delete_entry(entry))
        return self.local_store.delete_entry(entry_id)

    def entries_for_day(self, day: datetime) -> list[LogEntry]:
        """Return the signed-in principal's entries for a calendar day."""
        principal = self.identity.current_principal()
        if principal is None:
            return []
        return self.local_store.list_entries(
            principal, day=start_of_day(day, self.timezone)
        )

    def day_summary(self, day: datetime) -> DaySummary | None:
        """Return macro and calorie totals for a day next to the goals."""
        principal = self.identity.current_principal()
        if principal is None:
            return None
        midnight = start_of_day(day, self.timezone)
        entries = self.local_store.list_entries(principal, day=midnight)
        return DaySummary(
            day=midnight,
            entries=entries,
            carbs=sum(entry.carbs for entry in entries),
            protein=sum(entry.protein for entry in entries),
            fat=sum(entry.fat for entry in entries),
            calories=sum(entry.total_calories for entry in entries),
            goals=self.local_store.get_goals(principal),
        )

    def _owned_entry(self, entry_id: UUID) -> LogEntry | None:
        principal = self.identity.current_principal()
        if principal is None:
            return None
        entry = self.local_store.get_entry(entry_id)
        if entry is None or entry.user_id != principal:
            return None
        return entry


def _validate_macros(**values: float | None) -> None:
    for name, value in values.items():
        if value is not None and value < 0:
            raise ValueError(f"{name} must not be negative")
