"""Domain models for diet templates."""

from dataclasses import dataclass, field

from nutrition_planner.domain.foods import FoodItem, UnitType
from nutrition_planner.domain.plans import FoodSubstitution, Meal, MealSubstitutionOption


@dataclass(frozen=True)
class TemplateSubstitution:
    """Alternate food for a template food, keyed by the template food id."""

    id: str
    template_food_id: str
    substitute_food: str
    substitute_quantity: str


@dataclass(frozen=True)
class TemplateMealFood:
    """Food line of a template meal."""

    id: str
    food_name: str
    quantity: str
    order_index: int = 0
    unit_type: UnitType = UnitType.GRAMAS
    quantity_units: float | None = None
    substitutions: tuple[TemplateSubstitution, ...] = ()


@dataclass(frozen=True)
class TemplateMeal:
    """Meal of a template."""

    id: str
    name: str
    suggested_time: str | None = None
    order_index: int = 0
    foods: tuple[TemplateMealFood, ...] = ()
    options: tuple[MealSubstitutionOption, ...] = ()


@dataclass(frozen=True)
class DietTemplate:
    """Reusable, client-independent blueprint of a plan."""

    id: str
    name: str
    description: str | None = None
    water_goal_liters: float = 2.0
    meals: tuple[TemplateMeal, ...] = ()


@dataclass(frozen=True)
class MaterializedPlan:
    """Plan content built from a template, ready to install into a composer."""

    template: DietTemplate
    meals: list[Meal]
    substitutions: list[FoodSubstitution]
    foods: dict[str, FoodItem] = field(default_factory=dict)
