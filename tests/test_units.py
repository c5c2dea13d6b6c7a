"""Tests for unit conversion and display helpers."""

import pytest

from nutrition_planner.domain.foods import UnitType
from nutrition_planner.domain.plans import MealEntry
from nutrition_planner.services.units import (
    display_name,
    format_food_name,
    format_quantity_display,
    grams_from_units,
    has_unit_support,
    quantity_input_value,
    unit_label,
    units_from_grams,
)
from tests.conftest import BREAD, CHICKEN, RICE


@pytest.mark.parametrize("units", [0.5, 1.0, 2.0, 3.25])
@pytest.mark.parametrize("grams_per_unit", [25.0, 50.0, 12.5])
def test_units_grams_round_trip(units: float, grams_per_unit: float) -> None:
    grams = grams_from_units(units, grams_per_unit)

    assert units_from_grams(grams, grams_per_unit) == pytest.approx(units)


def test_units_from_grams_without_weight_is_zero() -> None:
    assert units_from_grams(100, 0) == 0
    assert units_from_grams(100, -1) == 0
    assert units_from_grams(100, None) == 0


def test_format_quantity_display() -> None:
    assert format_quantity_display(100, None, UnitType.GRAMAS) == "100g"
    assert format_quantity_display(60, 2, UnitType.FATIA) == "2 fatias (60g)"
    assert format_quantity_display(25, 1, "fatia") == "1 fatia (25g)"
    assert format_quantity_display(37.5, 1.5, UnitType.COLHER_SOPA) == (
        "1.5 colheres de sopa (38g)"
    )
    assert format_quantity_display(80, 0, UnitType.UNIDADE) == "80g"


def test_unit_label_singular_and_plural() -> None:
    assert unit_label(UnitType.UNIDADE) == "unidade"
    assert unit_label(UnitType.UNIDADE, 3) == "unidades"


def test_has_unit_support() -> None:
    assert has_unit_support(BREAD)
    assert not has_unit_support(RICE)


def test_format_food_name_keeps_connectives_lowercase() -> None:
    assert format_food_name("Arroz, tipo 2, cru") == "Arroz Tipo 2 Cru"
    assert format_food_name("FRANGO, peito, sem pele") == "Frango Peito sem Pele"
    assert format_food_name(None) == ""


def test_display_name_prefers_simplified_name() -> None:
    assert display_name(CHICKEN) == "Peito de frango grelhado"
    assert display_name(RICE) == "Arroz Tipo 1 Cozido"


def test_quantity_input_value_depends_on_unit() -> None:
    grams_entry = MealEntry(id="e1", food_name=RICE.name, grams=150.0)
    slice_entry = MealEntry(
        id="e2",
        food_name=BREAD.name,
        grams=50.0,
        unit_type=UnitType.FATIA,
        quantity_units=2.0,
    )
    pending = MealEntry(
        id="e3", food_name=BREAD.name, grams=None, unit_type=UnitType.FATIA
    )

    assert quantity_input_value(grams_entry) == "150"
    assert quantity_input_value(slice_entry) == "2"
    assert quantity_input_value(pending) == ""
