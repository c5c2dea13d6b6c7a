"""Food-level substitutions and meal-level options."""

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from uuid import uuid4

from nutrition_planner.domain.plans import (
    FoodSubstitution,
    Meal,
    MealSubstitutionItem,
    MealSubstitutionOption,
)
from nutrition_planner.errors import ValidationError
from nutrition_planner.parsers import is_temporary_id, new_temporary_id


@dataclass
class _Tracked:
    substitution: FoodSubstitution
    is_new: bool
    is_deleted: bool = False


@dataclass
class SubstitutionRegistry:
    """Plan-scoped alternates for individual foods.

    New entries live only in memory until saved. Removing a saved entry flags
    it for deletion on the next save instead of forgetting it, so the save can
    issue the delete.
    """

    _entries: list[_Tracked] = field(default_factory=list)

    @classmethod
    def from_saved(
        cls, substitutions: Iterable[FoodSubstitution]
    ) -> "SubstitutionRegistry":
        registry = cls()
        registry.commit(substitutions)
        return registry

    def add(self, original: str, substitute: str, quantity: str) -> FoodSubstitution:
        """Register a new alternate for ``original``."""
        fields = {
            "original_food": original,
            "substitute_food": substitute,
            "substitute_quantity": quantity,
        }
        for name, value in fields.items():
            if not value or not value.strip():
                raise ValidationError(f"{name} is required", field=name)
        substitution = FoodSubstitution(
            id=new_temporary_id(),
            original_food=original.strip(),
            substitute_food=substitute.strip(),
            substitute_quantity=quantity.strip(),
        )
        self._entries.append(_Tracked(substitution=substitution, is_new=True))
        return substitution

    def remove(self, identity: str) -> None:
        """Purge a new entry or flag a saved one; unknown ids are ignored."""
        for index, tracked in enumerate(self._entries):
            if tracked.substitution.id != identity:
                continue
            if tracked.is_new:
                del self._entries[index]
            else:
                tracked.is_deleted = True
            return

    def list_for(self, original: str) -> list[FoodSubstitution]:
        """Visible alternates for a food, matching its name case-insensitively."""
        wanted = original.casefold()
        return [
            substitution
            for substitution in self.visible()
            if substitution.original_food.casefold() == wanted
        ]

    def visible(self) -> list[FoodSubstitution]:
        return [t.substitution for t in self._entries if not t.is_deleted]

    def pending_inserts(self) -> list[FoodSubstitution]:
        return [t.substitution for t in self._entries if t.is_new]

    def pending_deletes(self) -> list[FoodSubstitution]:
        return [t.substitution for t in self._entries if t.is_deleted]

    def commit(self, saved: Iterable[FoodSubstitution]) -> None:
        """Replace the registry with the store's view after a save or reload."""
        self._entries = [
            _Tracked(substitution=substitution, is_new=False) for substitution in saved
        ]

    def replace_with(self, substitutions: Iterable[FoodSubstitution]) -> None:
        """Swap in a freshly built set, e.g. one copied from a template."""
        self._entries = [
            _Tracked(
                substitution=substitution,
                is_new=is_temporary_id(substitution.id),
            )
            for substitution in substitutions
        ]


def default_option_name(meal: Meal) -> str:
    """Name proposed for the next option; the main meal counts as option 1."""
    return f"Option {len(meal.options) + 2}"


def save_option(
    meal: Meal,
    name: str,
    items: Iterable[MealSubstitutionItem],
    option_id: str | None = None,
) -> MealSubstitutionOption:
    """Create or replace a meal option; items without a food are dropped."""
    if not name or not name.strip():
        raise ValidationError("Option name is required", field="name")
    kept = tuple(
        replace(item, food_name=item.food_name.strip())
        for item in items
        if item.food_name and item.food_name.strip()
    )
    option = MealSubstitutionOption(
        id=option_id or str(uuid4()), name=name.strip(), items=kept
    )
    for index, existing in enumerate(meal.options):
        if existing.id == option.id:
            meal.options[index] = option
            return option
    meal.options.append(option)
    return option


def remove_option(meal: Meal, option_id: str) -> None:
    """Remove a meal option; unknown ids are ignored."""
    meal.options = [option for option in meal.options if option.id != option_id]
