"""Row conversions shared by the Supabase repositories."""

from nutrition_planner.domain.foods import UnitType
from nutrition_planner.domain.plans import MealSubstitutionItem, MealSubstitutionOption
from nutrition_planner.parsers import parse_optional_number


def parse_unit_type(raw: object) -> UnitType:
    """Read a stored unit type; unknown or empty values fall back to grams."""
    try:
        return UnitType(str(raw)) if raw else UnitType.GRAMAS
    except ValueError:
        return UnitType.GRAMAS


def parse_meal_options(raw: object) -> list[MealSubstitutionOption]:
    """Parse the ``meal_substitutions`` JSON column of a meal row."""
    if not isinstance(raw, list):
        return []
    options = []
    for option in raw:
        if not isinstance(option, dict):
            continue
        items = tuple(
            MealSubstitutionItem(
                food_name=str(item.get("food_name") or ""),
                quantity=str(item.get("quantity") or ""),
                unit_type=parse_unit_type(item.get("unit_type")),
                quantity_units=parse_optional_number(item.get("quantity_units")),
            )
            for item in option.get("items") or []
            if isinstance(item, dict)
        )
        options.append(
            MealSubstitutionOption(
                id=str(option.get("id") or ""),
                name=str(option.get("name") or ""),
                items=items,
            )
        )
    return options


def dump_meal_options(
    options: list[MealSubstitutionOption] | tuple[MealSubstitutionOption, ...],
) -> list[dict[str, object]]:
    """Serialize meal options for the ``meal_substitutions`` JSON column."""
    return [
        {
            "id": option.id,
            "name": option.name,
            "items": [
                {
                    "food_name": item.food_name,
                    "quantity": item.quantity,
                    "unit_type": str(item.unit_type),
                    "quantity_units": item.quantity_units,
                }
                for item in option.items
            ],
        }
        for option in options
    ]


def first_id(data: list[dict[str, object]] | None, what: str) -> str:
    """Return the id of the first returned row of an insert."""
    if not data:
        raise RuntimeError(f"Failed to create {what}")
    return str(data[0]["id"])
