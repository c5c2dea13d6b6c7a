"""Conversions between grams and semantic units."""

import re

from nutrition_planner.domain.foods import UNIT_LABELS, FoodItem, UnitType
from nutrition_planner.domain.plans import MealEntry
from nutrition_planner.parsers import round_half_up

_SMALL_WORDS = {
    "de",
    "da",
    "do",
    "das",
    "dos",
    "com",
    "sem",
    "e",
    "em",
    "para",
    "por",
    "ao",
    "a",
    "o",
}
_WHITESPACE = re.compile(r"\s+")


def grams_from_units(units: float, grams_per_unit: float) -> float:
    """Return the weight of ``units`` units; rounding is left to display."""
    return units * grams_per_unit


def units_from_grams(grams: float, grams_per_unit: float | None) -> float:
    """Return how many units ``grams`` is; 0 when the unit has no weight."""
    if grams_per_unit is None or grams_per_unit <= 0:
        return 0.0
    return grams / grams_per_unit


def format_quantity_display(
    grams: float, units: float | None, unit_type: UnitType | str
) -> str:
    """Format a quantity as ``"100g"`` or ``"2 fatias (60g)"``."""
    resolved = UnitType(unit_type)
    if resolved is UnitType.GRAMAS or not units:
        return f"{_format_number(grams)}g"
    label = unit_label(resolved, units)
    return f"{_format_number(units)} {label} ({round_half_up(grams)}g)"


def unit_label(unit_type: UnitType | str, quantity: float = 1) -> str:
    """Return the singular or plural label for a unit."""
    labels = UNIT_LABELS[UnitType(unit_type)]
    return labels.singular if quantity == 1 else labels.plural


def has_unit_support(food: FoodItem) -> bool:
    """Return True when the food can be measured in a non-gram unit."""
    return bool(
        food.unit
        and food.unit.unit_type is not UnitType.GRAMAS
        and food.unit.grams_per_unit
        and food.unit.grams_per_unit > 0
    )


def format_food_name(name: str | None) -> str:
    """Turn a raw catalog name into a display name.

    "Frango, peito, sem pele, grelhado" -> "Frango Peito sem Pele Grelhado".
    """
    if not name:
        return ""
    cleaned = _WHITESPACE.sub(" ", name.replace(",", " ")).strip().lower()
    words = []
    for index, word in enumerate(cleaned.split(" ")):
        if index == 0 or word not in _SMALL_WORDS:
            words.append(word[:1].upper() + word[1:])
        else:
            words.append(word)
    return " ".join(words)


def display_name(food: FoodItem) -> str:
    """Prefer the simplified name, falling back to the formatted catalog name."""
    if food.simplified_name:
        return food.simplified_name
    return format_food_name(food.name)


def quantity_input_value(entry: MealEntry) -> str:
    """Value an edit form should show for the entry's quantity."""
    if entry.unit_type is UnitType.GRAMAS:
        return "" if entry.grams is None else _format_number(entry.grams)
    if entry.quantity_units is None:
        return ""
    return _format_number(entry.quantity_units)


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"
