"""Pydantic models for remote goal and entry documents."""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    WrapValidator,
)

from macro_tracker.domain.models import GoalSet, LogEntry, MealType


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _fallback(default: Callable[[], object]) -> WrapValidator:
    """Replace values of the wrong type with a default instead of failing."""

    def validate(value: object, handler: ValidatorFunctionWrapHandler) -> object:
        try:
            return handler(value)
        except ValidationError:
            return default()

    return WrapValidator(validate)


Macro = Annotated[float, _fallback(lambda: 0.0)]
OptionalMacro = Annotated[float | None, _fallback(lambda: None)]
Timestamp = Annotated[datetime, _fallback(_now)]
Text = Annotated[str, _fallback(str)]
OptionalText = Annotated[str | None, _fallback(lambda: None)]


def goals_path(principal: str) -> str:
    """Path of the single goals document for a principal."""
    return f"users/{principal}/data/goals"


def entries_collection(principal: str) -> str:
    """Path of the entry collection for a principal."""
    return f"users/{principal}/entries"


def entry_path(principal: str, entry_id: UUID) -> str:
    """Path of one entry document."""
    return f"{entries_collection(principal)}/{entry_id}"


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> dict[str, object]:
        """Serialize with wire field names, omitting unset optional fields."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class GoalsDocument(_Document):
    """Remote goals document."""

    carbs: Macro = 0.0
    protein: Macro = 0.0
    fat: Macro = 0.0
    updated_at: Timestamp = Field(default_factory=_now, alias="updatedAt")

    @classmethod
    def from_goals(cls, goals: GoalSet) -> "GoalsDocument":
        return cls(
            carbs=goals.carbs,
            protein=goals.protein,
            fat=goals.fat,
            updated_at=goals.updated_at,
        )

    def to_goals(self, principal: str) -> GoalSet:
        return GoalSet(
            user_id=principal,
            carbs=self.carbs,
            protein=self.protein,
            fat=self.fat,
            updated_at=self.updated_at,
        )


class EntryDocument(_Document):
    """Remote log entry document."""

    user_id: Text = Field(default="", alias="userId")
    date: Timestamp = Field(default_factory=_now)
    meal_type: Text = Field(default=MealType.SNACK.value, alias="mealType")
    food_name: Text = Field(default="", alias="foodName")
    carbs: Macro = 0.0
    protein: Macro = 0.0
    fat: Macro = 0.0
    calories: OptionalMacro = None
    barcode: OptionalText = None
    created_at: Timestamp = Field(default_factory=_now, alias="createdAt")

    @classmethod
    def from_entry(cls, entry: LogEntry) -> "EntryDocument":
        return cls(
            user_id=entry.user_id,
            date=entry.date,
            meal_type=entry.meal_type.value,
            food_name=entry.food_name,
            carbs=entry.carbs,
            protein=entry.protein,
            fat=entry.fat,
            calories=entry.calories,
            barcode=entry.barcode,
            created_at=entry.created_at,
        )

    def to_entry(self, entry_id: UUID, principal: str) -> LogEntry:
        """Build a local entry owned by the principal."""
        return LogEntry(
            id=entry_id,
            user_id=principal,
            date=self.date,
            meal_type=MealType.parse(self.meal_type),
            food_name=self.food_name,
            carbs=self.carbs,
            protein=self.protein,
            fat=self.fat,
            calories=self.calories,
            barcode=self.barcode,
            created_at=self.created_at,
        )
