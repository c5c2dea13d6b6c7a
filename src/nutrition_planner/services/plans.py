"""Plan editing and the plan save sequence."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Protocol
from uuid import uuid4

from nutrition_planner.domain.foods import FoodItem, UnitType
from nutrition_planner.domain.goals import MacroGoals, PlanEvaluation
from nutrition_planner.domain.plans import (
    MEAL_SLOTS,
    DietPlan,
    FoodSubstitution,
    MacroTotals,
    Meal,
    MealEntry,
    MealSubstitutionOption,
)
from nutrition_planner.domain.templates import MaterializedPlan
from nutrition_planner.errors import (
    NotFoundError,
    PlannerError,
    ValidationError,
    call_external,
)
from nutrition_planner.parsers import (
    is_temporary_id,
    new_temporary_id,
    parse_grams,
    parse_locale_number,
    require_durable_id,
    round_half_up,
)
from nutrition_planner.services.aggregation import NutritionAggregator
from nutrition_planner.services.catalog import CatalogService
from nutrition_planner.services.goals import MacroGoalEvaluator
from nutrition_planner.services.substitutions import SubstitutionRegistry
from nutrition_planner.services.units import grams_from_units

_logger = logging.getLogger(__name__)


class PlanRepository(Protocol):
    """Persistence interface for plans, meals, entries and substitutions."""

    def get_plan(self, plan_id: str) -> DietPlan | None:
        """Return the plan header without meals, if present."""

    def list_meals(self, plan_id: str) -> list[Meal]:
        """Return the plan's meals with their entries and options."""

    def list_substitutions(self, plan_id: str) -> list[FoodSubstitution]:
        """Return the plan's food substitutions."""

    def update_plan(self, plan_id: str, payload: dict[str, object]) -> None:
        """Update plan header columns."""

    def create_meal(self, plan_id: str, meal: Meal) -> str:
        """Insert a meal and return its generated id."""

    def update_meal(self, meal: Meal) -> None:
        """Update a saved meal's columns and options."""

    def delete_meal(self, meal_id: str) -> None:
        """Delete a meal together with its entries."""

    def delete_meals(self, meal_ids: list[str]) -> None:
        """Delete several meals together with their entries."""

    def create_entry(self, meal_id: str, entry: MealEntry) -> str:
        """Insert an entry and return its generated id."""

    def update_entry(self, entry: MealEntry) -> None:
        """Update a saved entry."""

    def delete_entry(self, entry_id: str) -> None:
        """Delete one entry."""

    def create_substitutions(
        self, plan_id: str, substitutions: list[FoodSubstitution]
    ) -> None:
        """Insert food substitutions for a plan."""

    def delete_substitution(self, substitution_id: str) -> None:
        """Delete one food substitution."""

    def delete_substitutions_for_plan(self, plan_id: str) -> None:
        """Delete every food substitution of a plan."""


class SaveStatus(StrEnum):
    """Lifecycle of a plan save as shown to the practitioner."""

    IDLE = "idle"
    SAVING = "saving"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class SaveResult:
    """Outcome of a plan save.

    Steps are applied in order and never rolled back, so a failed save lists
    what already reached the store.
    """

    status: SaveStatus
    applied_steps: list[str]
    failed_step: str | None = None
    error: str | None = None
    saved_at: datetime | None = None


@dataclass
class PlanComposer:
    """In-memory editing session over one plan."""

    plan: DietPlan
    substitutions: SubstitutionRegistry
    aggregator: NutritionAggregator
    repository: PlanRepository
    catalog: CatalogService
    evaluator: MacroGoalEvaluator = field(default_factory=MacroGoalEvaluator)
    save_status: SaveStatus = SaveStatus.IDLE
    last_saved_at: datetime | None = None

    @property
    def meals(self) -> list[Meal]:
        return self.plan.meals

    def meal(self, meal_id: str) -> Meal:
        for meal in self.plan.meals:
            if meal.id == meal_id:
                return meal
        raise NotFoundError("Meal", meal_id)

    def entry(self, meal_id: str, entry_id: str) -> MealEntry:
        return self.meal(meal_id).entries[self._entry_index(meal_id, entry_id)]

    def add_meal(self, name: str = "", suggested_time: str | None = None) -> Meal:
        """Append an empty meal with a temporary identity."""
        _check_meal_name(name)
        meal = Meal(
            id=new_temporary_id(),
            name=name,
            suggested_time=suggested_time,
            order_index=len(self.plan.meals),
        )
        self.plan.meals.append(meal)
        return meal

    def update_meal(
        self,
        meal_id: str,
        *,
        name: str | None = None,
        suggested_time: str | None = None,
    ) -> Meal:
        meal = self.meal(meal_id)
        if name is not None:
            _check_meal_name(name)
            meal.name = name
        if suggested_time is not None:
            meal.suggested_time = suggested_time or None
        return meal

    def remove_meal(self, meal_id: str) -> None:
        """Remove a meal; a saved one is deleted from the store right away."""
        meal = self.meal(meal_id)
        if not is_temporary_id(meal.id):
            call_external("delete meal", self.repository.delete_meal, meal.id)
        self.plan.meals = [item for item in self.plan.meals if item.id != meal_id]

    def move_meal(self, meal_id: str, offset: int) -> None:
        """Swap a meal with its neighbour; moves past either end are ignored."""
        meals = self.plan.meals
        index = meals.index(self.meal(meal_id))
        target = index + offset
        if offset not in (-1, 1) or not 0 <= target < len(meals):
            return
        meals[index], meals[target] = meals[target], meals[index]
        for position, meal in enumerate(meals):
            meal.order_index = position

    def duplicate_meal(self, meal_id: str) -> Meal:
        """Append a copy of a meal; every copied entry and option gets a new id."""
        source = self.meal(meal_id)
        copy = Meal(
            id=new_temporary_id(),
            name=source.name,
            suggested_time=source.suggested_time,
            order_index=len(self.plan.meals),
            entries=[
                replace(entry, id=new_temporary_id(), meal_id=None)
                for entry in source.entries
            ],
            options=[
                MealSubstitutionOption(
                    id=str(uuid4()), name=option.name, items=option.items
                )
                for option in source.options
            ],
        )
        self.plan.meals.append(copy)
        return copy

    def add_entry(self, meal_id: str) -> MealEntry:
        """Append a blank entry waiting for a food and a quantity."""
        meal = self.meal(meal_id)
        entry = MealEntry(
            id=new_temporary_id(),
            food_name="",
            grams=None,
            order_index=len(meal.entries),
            meal_id=meal.id,
        )
        meal.entries.append(entry)
        return entry

    def select_food(self, meal_id: str, entry_id: str, food: FoodItem) -> MealEntry:
        """Point an entry at a catalog food.

        The unit resets to grams and a missing quantity defaults to 100 g.
        """
        current = self.entry(meal_id, entry_id)
        unit = food.unit
        if unit is None:
            try:
                unit = self.catalog.get_unit_metadata(food.id)
            except Exception:
                _logger.exception(
                    "Unit metadata lookup failed", extra={"food_id": food.id}
                )
        grams = current.grams or 100.0
        updated = replace(
            current,
            food_name=food.name,
            grams=grams,
            unit_type=UnitType.GRAMAS,
            quantity_units=None,
            grams_per_unit=unit.grams_per_unit if unit else None,
            profile=food.profile,
        )
        return self._store_entry(meal_id, self._rehydrate(updated))

    def change_quantity(self, meal_id: str, entry_id: str, value: object) -> MealEntry:
        """Apply a typed quantity, in units when the entry uses a weighed unit.

        Grams are stored rounded to the nearest whole gram.
        """
        current = self.entry(meal_id, entry_id)
        gpu = current.grams_per_unit
        quantity_units = None
        if current.unit_type is not UnitType.GRAMAS and gpu and gpu > 0:
            quantity_units = parse_locale_number(value)
            if quantity_units < 0:
                raise ValidationError("Quantity must not be negative", field="quantity")
            grams = parse_grams(round_half_up(grams_from_units(quantity_units, gpu)))
        else:
            parsed = parse_grams(value)
            grams = None if parsed is None else float(round_half_up(parsed))
        updated = replace(current, grams=grams, quantity_units=quantity_units)
        return self._store_entry(meal_id, self._rehydrate(updated))

    def change_unit_type(
        self, meal_id: str, entry_id: str, unit_type: UnitType | str
    ) -> MealEntry:
        """Switch the unit; the quantity must be entered again except for grams."""
        current = self.entry(meal_id, entry_id)
        resolved = UnitType(unit_type)
        updated = replace(
            current,
            unit_type=resolved,
            grams=current.grams if resolved is UnitType.GRAMAS else None,
            quantity_units=None,
            macros=None,
        )
        return self._store_entry(meal_id, updated)

    def remove_entry(self, meal_id: str, entry_id: str) -> None:
        """Remove an entry; a saved one is deleted from the store right away."""
        meal = self.meal(meal_id)
        index = self._entry_index(meal_id, entry_id)
        if not is_temporary_id(entry_id):
            call_external("delete entry", self.repository.delete_entry, entry_id)
        del meal.entries[index]

    def meal_totals(self, meal_id: str) -> MacroTotals:
        return self.aggregator.per_meal(self.meal(meal_id).entries)

    def daily_totals(self) -> MacroTotals:
        return self.aggregator.per_day(self.plan.meals)

    def option_totals(self, meal_id: str, option_id: str) -> MacroTotals:
        for option in self.meal(meal_id).options:
            if option.id == option_id:
                return self.aggregator.per_option(option)
        raise NotFoundError("Meal option", option_id)

    def evaluate(self, goals: MacroGoals) -> PlanEvaluation:
        return self.evaluator.evaluate_totals(self.daily_totals(), goals)

    def install(self, materialized: MaterializedPlan) -> None:
        """Replace meals and substitutions with content built from a template."""
        self.plan.meals = list(materialized.meals)
        self.substitutions.replace_with(materialized.substitutions)
        incoming = NutritionAggregator.from_foods(materialized.foods)
        self.aggregator = NutritionAggregator(
            profiles={**self.aggregator.profiles, **incoming.profiles},
            grams_per_unit={
                **self.aggregator.grams_per_unit,
                **incoming.grams_per_unit,
            },
        )

    def acknowledge_save_status(self) -> None:
        """Return to idle once the success or error message has been shown."""
        if self.save_status is not SaveStatus.SAVING:
            self.save_status = SaveStatus.IDLE

    def _entry_index(self, meal_id: str, entry_id: str) -> int:
        for index, entry in enumerate(self.meal(meal_id).entries):
            if entry.id == entry_id:
                return index
        raise NotFoundError("Entry", entry_id)

    def _store_entry(self, meal_id: str, entry: MealEntry) -> MealEntry:
        self.meal(meal_id).entries[self._entry_index(meal_id, entry.id)] = entry
        return entry

    def _rehydrate(self, entry: MealEntry) -> MealEntry:
        if entry.profile is None or entry.grams is None:
            return replace(entry, macros=None)
        return replace(entry, macros=self.aggregator.per_entry(entry))


@dataclass
class PlanService:
    """Loads plans into composers and writes them back."""

    repository: PlanRepository
    catalog: CatalogService

    def load(self, plan_id: str) -> PlanComposer:
        """Fetch a plan with its meals and substitutions and hydrate the entries."""
        plan, substitutions, aggregator = self._fetch(plan_id)
        return PlanComposer(
            plan=plan,
            substitutions=SubstitutionRegistry.from_saved(substitutions),
            aggregator=aggregator,
            repository=self.repository,
            catalog=self.catalog,
        )

    def save(self, composer: PlanComposer) -> SaveResult:
        """Write a composer back to the store and reload it.

        The steps run in order and stop at the first failure. Nothing is rolled
        back; the result lists the steps that were applied.
        """
        if composer.save_status is SaveStatus.SAVING:
            raise ValidationError("A save is already in progress")
        composer.save_status = SaveStatus.SAVING
        plan = composer.plan
        applied: list[str] = []
        now = datetime.now(tz=UTC)
        totals = composer.daily_totals()
        header = {
            "name": plan.name or "Dieta",
            "daily_calories": round_half_up(totals.calories),
            "protein_g": round_half_up(totals.protein),
            "carbs_g": round_half_up(totals.carbs),
            "fat_g": round_half_up(totals.fats),
            "water_goal_liters": plan.water_goal_liters or None,
            "notes": plan.notes or None,
            "updated_at": now.isoformat(),
        }
        try:
            _step(applied, "update plan", self.repository.update_plan, plan.id, header)
            for meal in plan.meals:
                meal_id = self._save_meal(applied, plan.id, meal)
                for entry in meal.entries:
                    self._save_entry(applied, meal_id, entry)
            for substitution in composer.substitutions.pending_deletes():
                _step(
                    applied,
                    f"delete substitution {substitution.id}",
                    self.repository.delete_substitution,
                    require_durable_id(substitution.id, "Substitution"),
                )
            inserts = composer.substitutions.pending_inserts()
            if inserts:
                _step(
                    applied,
                    "insert substitutions",
                    self.repository.create_substitutions,
                    plan.id,
                    inserts,
                )
            reloaded, substitutions, aggregator = self._fetch(plan.id)
        except PlannerError as exc:
            failed_step = getattr(exc, "operation", "reload plan")
            composer.save_status = SaveStatus.ERROR
            _logger.error(
                "Plan save stopped at %s after %s steps: %s",
                failed_step,
                len(applied),
                exc.message,
            )
            return SaveResult(
                status=SaveStatus.ERROR,
                applied_steps=applied,
                failed_step=failed_step,
                error=exc.message,
            )
        composer.plan = reloaded
        composer.substitutions.commit(substitutions)
        composer.aggregator = aggregator
        composer.save_status = SaveStatus.SUCCESS
        composer.last_saved_at = now
        _logger.info("Plan %s saved in %s steps", plan.id, len(applied))
        return SaveResult(status=SaveStatus.SUCCESS, applied_steps=applied, saved_at=now)

    def _save_meal(self, applied: list[str], plan_id: str, meal: Meal) -> str:
        if is_temporary_id(meal.id):
            return _step(
                applied,
                f"insert meal {meal.order_index}",
                self.repository.create_meal,
                plan_id,
                meal,
            )
        _step(applied, f"update meal {meal.id}", self.repository.update_meal, meal)
        return meal.id

    def _save_entry(self, applied: list[str], meal_id: str, entry: MealEntry) -> None:
        if is_temporary_id(entry.id):
            _step(
                applied,
                f"insert entry {entry.order_index} of meal {meal_id}",
                self.repository.create_entry,
                meal_id,
                entry,
            )
        else:
            _step(
                applied,
                f"update entry {entry.id}",
                self.repository.update_entry,
                replace(entry, meal_id=meal_id),
            )

    def _fetch(
        self, plan_id: str
    ) -> tuple[DietPlan, list[FoodSubstitution], NutritionAggregator]:
        plan = call_external("load plan", self.repository.get_plan, plan_id)
        if plan is None:
            raise NotFoundError("Plan", plan_id)
        meals = call_external("load meals", self.repository.list_meals, plan_id)
        substitutions = call_external(
            "load substitutions", self.repository.list_substitutions, plan_id
        )
        names = {entry.food_name for meal in meals for entry in meal.entries}
        names.update(
            item.food_name
            for meal in meals
            for option in meal.options
            for item in option.items
        )
        foods = call_external(
            "load catalog foods", self.catalog.foods_by_name, sorted(n for n in names if n)
        )
        aggregator = NutritionAggregator.from_foods(foods)
        plan.meals = [
            _hydrate_meal(meal, aggregator, foods)
            for meal in sorted(meals, key=lambda item: item.order_index)
        ]
        return plan, substitutions, aggregator


def _hydrate_meal(
    meal: Meal, aggregator: NutritionAggregator, foods: dict[str, FoodItem]
) -> Meal:
    entries = []
    for entry in sorted(meal.entries, key=lambda item: item.order_index):
        food = foods.get(entry.food_name)
        if food is not None and food.unit is not None:
            entry = replace(entry, grams_per_unit=food.unit.grams_per_unit)
        entries.append(aggregator.hydrate(entry))
    meal.entries = entries
    return meal


def _step(applied: list[str], operation: str, func: Callable, *args: object):
    result = call_external(operation, func, *args)
    applied.append(operation)
    return result


def _check_meal_name(name: str) -> None:
    if name and name not in MEAL_SLOTS:
        raise ValidationError(f"Unknown meal name: {name}", field="name")
