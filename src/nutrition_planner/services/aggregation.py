"""Macro aggregation over entries, meals and whole days."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace

from nutrition_planner.domain.foods import FoodItem, NutrientProfile, UnitType
from nutrition_planner.domain.plans import (
    MacroTotals,
    Meal,
    MealEntry,
    MealSubstitutionItem,
    MealSubstitutionOption,
)
from nutrition_planner.parsers import parse_locale_number
from nutrition_planner.services.units import grams_from_units

_WEIGHED_UNITS = (UnitType.GRAMAS, UnitType.ML)
_DEFAULT_GRAMS_PER_UNIT = 100.0


@dataclass
class NutritionAggregator:
    """Computes macro totals from per-100 g profiles keyed by food name.

    Profiles and unit weights are passed in explicitly; the aggregator never
    reaches out to the catalog on its own.
    """

    profiles: Mapping[str, NutrientProfile] = field(default_factory=dict)
    grams_per_unit: Mapping[str, float] = field(default_factory=dict)

    @classmethod
    def from_foods(cls, foods: Mapping[str, FoodItem]) -> "NutritionAggregator":
        """Build an aggregator from catalog foods keyed by name."""
        return cls(
            profiles={name: food.profile for name, food in foods.items()},
            grams_per_unit={
                name: food.unit.grams_per_unit
                for name, food in foods.items()
                if food.unit is not None and food.unit.grams_per_unit
            },
        )

    def per_entry(
        self, entry: MealEntry, profile: NutrientProfile | None = None
    ) -> MacroTotals:
        """Scale the profile to the entry's grams; unknown data counts as zero."""
        resolved = profile or entry.profile or self.profiles.get(entry.food_name)
        if resolved is None or entry.grams is None:
            return MacroTotals()
        return _scale(resolved, entry.grams)

    def per_meal(self, entries: Iterable[MealEntry]) -> MacroTotals:
        """Sum the cached macros of ``entries``."""
        total = MacroTotals()
        for entry in entries:
            if entry.macros is not None:
                total = total + entry.macros
        return total

    def per_day(self, meals: Iterable[Meal]) -> MacroTotals:
        """Sum every meal of a day."""
        total = MacroTotals()
        for meal in meals:
            total = total + self.per_meal(meal.entries)
        return total

    def hydrate(self, entry: MealEntry) -> MealEntry:
        """Attach the catalog profile and regenerate the cached macros.

        Entries without a quantity or a known food get their macros cleared.
        """
        profile = self.profiles.get(entry.food_name) or entry.profile
        if profile is None or entry.grams is None:
            return replace(entry, profile=profile, macros=None)
        return replace(entry, profile=profile, macros=_scale(profile, entry.grams))

    def per_option(self, option: MealSubstitutionOption) -> MacroTotals:
        """Totals of a meal option, for comparing it with the main meal.

        Items in grams or ml use their quantity as grams. Other units are
        counts converted with the food's unit weight, 100 g when unknown.
        """
        total = MacroTotals()
        for item in option.items:
            profile = self.profiles.get(item.food_name)
            if profile is None:
                continue
            total = total + _scale(profile, self._option_item_grams(item))
        return total

    def _option_item_grams(self, item: MealSubstitutionItem) -> float:
        if item.unit_type in _WEIGHED_UNITS:
            return parse_locale_number(item.quantity)
        units = item.quantity_units
        if units is None:
            units = parse_locale_number(item.quantity)
        weight = self.grams_per_unit.get(item.food_name) or _DEFAULT_GRAMS_PER_UNIT
        return grams_from_units(units, weight)


def _scale(profile: NutrientProfile, grams: float) -> MacroTotals:
    factor = grams / 100
    return MacroTotals(
        calories=profile.calories * factor,
        protein=profile.protein * factor,
        carbs=profile.carbs * factor,
        fats=profile.fat * factor,
        fiber=profile.fiber * factor,
    )
