"""Domain models for diet plans."""

from dataclasses import dataclass, field

from nutrition_planner.domain.foods import NutrientProfile, UnitType

MEAL_SLOTS = (
    "Café da Manhã",
    "Lanche da Manhã",
    "Almoço",
    "Lanche da Tarde",
    "Jantar",
    "Ceia",
    "Pré-Treino",
    "Pós-Treino",
)


@dataclass(frozen=True)
class MacroTotals:
    """Macro totals for an entry, a meal or a day."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fats: float = 0.0
    fiber: float = 0.0

    def __add__(self, other: "MacroTotals") -> "MacroTotals":
        return MacroTotals(
            calories=self.calories + other.calories,
            protein=self.protein + other.protein,
            carbs=self.carbs + other.carbs,
            fats=self.fats + other.fats,
            fiber=self.fiber + other.fiber,
        )


@dataclass(frozen=True)
class MealEntry:
    """One food line inside a meal.

    ``grams`` is the canonical quantity; ``None`` means the practitioner still
    has to enter it. ``quantity_units`` is derived from grams when the entry
    uses a semantic unit. ``profile`` and ``macros`` are caches filled from
    catalog data and are never persisted.
    """

    id: str
    food_name: str
    grams: float | None
    unit_type: UnitType = UnitType.GRAMAS
    quantity_units: float | None = None
    order_index: int = 0
    meal_id: str | None = None
    grams_per_unit: float | None = None
    profile: NutrientProfile | None = None
    macros: MacroTotals | None = None


@dataclass(frozen=True)
class MealSubstitutionItem:
    """Lightweight food line of an alternative meal option."""

    food_name: str
    quantity: str
    unit_type: UnitType = UnitType.GRAMAS
    quantity_units: float | None = None


@dataclass(frozen=True)
class MealSubstitutionOption:
    """Named alternative set of foods for a whole meal."""

    id: str
    name: str
    items: tuple[MealSubstitutionItem, ...] = ()


@dataclass(frozen=True)
class FoodSubstitution:
    """Plan-scoped alternate for one ingredient, keyed by food name."""

    id: str
    original_food: str
    substitute_food: str
    substitute_quantity: str


@dataclass
class Meal:
    """A meal slot of a plan with its ordered entries."""

    id: str
    name: str
    suggested_time: str | None = None
    order_index: int = 0
    entries: list[MealEntry] = field(default_factory=list)
    options: list[MealSubstitutionOption] = field(default_factory=list)


@dataclass
class DietPlan:
    """A client's nutrition plan.

    The daily totals are the snapshot stored on the last save, not a live value.
    """

    id: str
    client_id: str
    name: str
    meals: list[Meal] = field(default_factory=list)
    water_goal_liters: float | None = None
    notes: str | None = None
    daily_calories: float | None = None
    protein_g: float | None = None
    carbs_g: float | None = None
    fat_g: float | None = None
