"""Tests for macro aggregation."""

import random

import pytest

from nutrition_planner.domain.foods import UnitType
from nutrition_planner.domain.plans import (
    MacroTotals,
    Meal,
    MealEntry,
    MealSubstitutionItem,
    MealSubstitutionOption,
)
from nutrition_planner.services.aggregation import NutritionAggregator
from tests.conftest import BANANA, CHICKEN, EGG, RICE

PROFILES = {food.name: food.profile for food in (RICE, CHICKEN, EGG, BANANA)}


def _entry(identity: str, name: str, grams: float | None) -> MealEntry:
    return NutritionAggregator(PROFILES).hydrate(
        MealEntry(id=identity, food_name=name, grams=grams)
    )


def _assert_totals_equal(left: MacroTotals, right: MacroTotals) -> None:
    assert left.calories == pytest.approx(right.calories)
    assert left.protein == pytest.approx(right.protein)
    assert left.carbs == pytest.approx(right.carbs)
    assert left.fats == pytest.approx(right.fats)
    assert left.fiber == pytest.approx(right.fiber)


def test_per_entry_scales_per_100g_values() -> None:
    aggregator = NutritionAggregator(PROFILES)
    entry = MealEntry(id="e1", food_name=RICE.name, grams=150.0)

    totals = aggregator.per_entry(entry)

    assert totals.calories == pytest.approx(192.0)
    assert totals.carbs == pytest.approx(42.15)
    assert totals.fiber == pytest.approx(2.4)


def test_per_entry_unknown_food_or_missing_quantity_is_zero() -> None:
    aggregator = NutritionAggregator(PROFILES)

    unknown = aggregator.per_entry(MealEntry(id="e1", food_name="Tofu", grams=100.0))
    pending = aggregator.per_entry(MealEntry(id="e2", food_name=RICE.name, grams=None))

    assert unknown == MacroTotals()
    assert pending == MacroTotals()


def test_per_meal_of_nothing_is_zero() -> None:
    assert NutritionAggregator().per_meal([]) == MacroTotals()


def test_per_meal_ignores_entries_without_macros() -> None:
    aggregator = NutritionAggregator(PROFILES)
    entries = [
        _entry("e1", RICE.name, 100.0),
        MealEntry(id="e2", food_name=CHICKEN.name, grams=100.0),
    ]

    totals = aggregator.per_meal(entries)

    assert totals.calories == pytest.approx(128.0)


def test_per_day_is_order_independent_and_matches_flattened_entries() -> None:
    aggregator = NutritionAggregator(PROFILES)
    entries = [
        _entry("e1", RICE.name, 150.0),
        _entry("e2", CHICKEN.name, 120.0),
        _entry("e3", EGG.name, 100.0),
        _entry("e4", BANANA.name, 110.0),
        _entry("e5", RICE.name, 80.0),
    ]
    meals = [
        Meal(id="m1", name="Almoço", entries=entries[:2]),
        Meal(id="m2", name="Jantar", entries=entries[2:4]),
        Meal(id="m3", name="Ceia", entries=entries[4:]),
    ]
    shuffled = [
        Meal(id=meal.id, name=meal.name, entries=list(reversed(meal.entries)))
        for meal in reversed(meals)
    ]
    random.Random(7).shuffle(shuffled)

    day = aggregator.per_day(meals)

    _assert_totals_equal(day, aggregator.per_day(shuffled))
    _assert_totals_equal(day, aggregator.per_meal(entries))


def test_hydrate_clears_macros_without_quantity() -> None:
    aggregator = NutritionAggregator(PROFILES)
    entry = _entry("e1", EGG.name, 100.0)

    cleared = aggregator.hydrate(
        MealEntry(id=entry.id, food_name=entry.food_name, grams=None)
    )

    assert entry.macros is not None
    assert entry.profile == EGG.profile
    assert cleared.macros is None


def test_per_option_totals() -> None:
    aggregator = NutritionAggregator(PROFILES)
    option = MealSubstitutionOption(
        id="opt-1",
        name="Option 2",
        items=(
            MealSubstitutionItem(food_name=EGG.name, quantity="100"),
            MealSubstitutionItem(food_name=BANANA.name, quantity="55,0"),
            MealSubstitutionItem(food_name="Desconhecido", quantity="30"),
        ),
    )

    totals = aggregator.per_option(option)

    assert totals.calories == pytest.approx(146 + 98 * 0.55)
    assert totals.protein == pytest.approx(13.3 + 1.3 * 0.55)


def test_per_option_converts_unit_counts_to_grams() -> None:
    aggregator = NutritionAggregator.from_foods({EGG.name: EGG, RICE.name: RICE})
    option = MealSubstitutionOption(
        id="opt-1",
        name="Option 2",
        items=(
            MealSubstitutionItem(
                food_name=EGG.name, quantity="2", unit_type=UnitType.UNIDADE
            ),
            MealSubstitutionItem(
                food_name=RICE.name, quantity="1,5", unit_type=UnitType.COLHER_SOPA
            ),
        ),
    )

    totals = aggregator.per_option(option)

    # two 50 g eggs; rice has no unit weight so a spoon counts as 100 g
    assert totals.calories == pytest.approx(146 + 128 * 1.5)
    assert totals.protein == pytest.approx(13.3 + 2.5 * 1.5)


def test_per_option_prefers_explicit_unit_count() -> None:
    aggregator = NutritionAggregator.from_foods({BANANA.name: BANANA})
    option = MealSubstitutionOption(
        id="opt-1",
        name="Option 2",
        items=(
            MealSubstitutionItem(
                food_name=BANANA.name,
                quantity="110",
                unit_type=UnitType.UNIDADE,
                quantity_units=2.0,
            ),
        ),
    )

    assert aggregator.per_option(option).calories == pytest.approx(98 * 1.1)
