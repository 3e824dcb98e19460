"""Domain models for goals and food-log entries."""

from dataclasses import dataclass
from datetime import datetime, tzinfo
from enum import StrEnum
from uuid import UUID

CARB_KCAL_PER_G = 4.0
PROTEIN_KCAL_PER_G = 4.0
FAT_KCAL_PER_G = 9.0


class MealType(StrEnum):
    """Meal category of a log entry."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"

    @classmethod
    def parse(cls, value: object) -> "MealType":
        """Parse a stored value, falling back to snack for unknown values."""
        try:
            return cls(str(value))
        except ValueError:
            return cls.SNACK


def macro_calories(carbs: float, protein: float, fat: float) -> float:
    """Return calories derived from macro grams."""
    return (
        carbs * CARB_KCAL_PER_G
        + protein * PROTEIN_KCAL_PER_G
        + fat * FAT_KCAL_PER_G
    )


def start_of_day(moment: datetime, tz: tzinfo) -> datetime:
    """Normalize a timestamp to midnight of its calendar day in ``tz``."""
    local = moment.astimezone(tz) if moment.tzinfo else moment.replace(tzinfo=tz)
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass(frozen=True)
class GoalSet:
    """Daily macro targets for a principal."""

    user_id: str
    carbs: float
    protein: float
    fat: float
    updated_at: datetime

    @property
    def calories(self) -> float:
        """Calorie target derived from the macro targets."""
        return macro_calories(self.carbs, self.protein, self.fat)


@dataclass(frozen=True)
class LogEntry:
    """A single logged food item."""

    id: UUID
    user_id: str
    date: datetime
    meal_type: MealType
    food_name: str
    carbs: float
    protein: float
    fat: float
    calories: float | None
    barcode: str | None
    created_at: datetime

    @property
    def total_calories(self) -> float:
        """Calorie override when present, otherwise derived from macros."""
        if self.calories is not None:
            return self.calories
        return macro_calories(self.carbs, self.protein, self.fat)


@dataclass(frozen=True)
class CachedFood:
    """Previously resolved nutrition facts for a product code."""

    barcode: str
    food_name: str
    carbs: float
    protein: float
    fat: float
    calories: float | None
    cached_at: datetime


@dataclass(frozen=True)
class DaySummary:
    """Totals for one calendar day compared with the goal set."""

    day: datetime
    entries: list[LogEntry]
    carbs: float
    protein: float
    fat: float
    calories: float
    goals: GoalSet | None
