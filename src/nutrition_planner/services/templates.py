"""Diet templates: management and materialization into plans."""

import logging
from dataclasses import dataclass, replace
from typing import Protocol
from uuid import uuid4

from nutrition_planner.domain.foods import UnitType
from nutrition_planner.domain.plans import (
    DietPlan,
    FoodSubstitution,
    Meal,
    MealEntry,
    MealSubstitutionOption,
)
from nutrition_planner.domain.templates import (
    DietTemplate,
    MaterializedPlan,
    TemplateMeal,
    TemplateMealFood,
    TemplateSubstitution,
)
from nutrition_planner.errors import NotFoundError, ValidationError, call_external
from nutrition_planner.parsers import (
    is_temporary_id,
    new_temporary_id,
    parse_optional_number,
    require_durable_id,
)
from nutrition_planner.services.aggregation import NutritionAggregator
from nutrition_planner.services.catalog import CatalogService
from nutrition_planner.services.plans import PlanRepository

_logger = logging.getLogger(__name__)


class TemplateRepository(Protocol):
    """Persistence interface for diet templates."""

    def list_templates(self) -> list[DietTemplate]:
        """Return template headers ordered by name."""

    def get_template(self, template_id: str) -> DietTemplate | None:
        """Return a template with meals, foods and substitutions."""

    def create_template(self, template: DietTemplate) -> str:
        """Insert a template header and return its id."""

    def update_template(self, template: DietTemplate) -> None:
        """Update a template header."""

    def delete_template(self, template_id: str) -> None:
        """Delete a template and everything under it."""

    def delete_template_meals(self, template_id: str) -> None:
        """Delete every meal of a template together with its foods."""

    def create_template_meal(self, template_id: str, meal: TemplateMeal) -> str:
        """Insert a template meal and return its id."""

    def create_template_food(self, meal_id: str, food: TemplateMealFood) -> str:
        """Insert a template meal food and return its id."""

    def create_template_substitutions(
        self, food_id: str, substitutions: list[TemplateSubstitution]
    ) -> None:
        """Insert the alternates of a template food."""


@dataclass
class TemplateService:
    """Create, edit, copy and remove templates."""

    repository: TemplateRepository

    def list_templates(self) -> list[DietTemplate]:
        return call_external("list templates", self.repository.list_templates)

    def get_template(self, template_id: str) -> DietTemplate:
        template = call_external(
            "load template", self.repository.get_template, template_id
        )
        if template is None:
            raise NotFoundError("Template", template_id)
        return template

    def save_template(self, template: DietTemplate) -> DietTemplate:
        """Create or update a template, rewriting its meals from scratch."""
        if not template.name or not template.name.strip():
            raise ValidationError("Template name is required", field="name")
        if not template.id or is_temporary_id(template.id):
            template_id = call_external(
                "create template", self.repository.create_template, template
            )
        else:
            template_id = template.id
            call_external("update template", self.repository.update_template, template)
            call_external(
                "delete template meals",
                self.repository.delete_template_meals,
                template_id,
            )
        for position, meal in enumerate(template.meals):
            meal_id = call_external(
                "create template meal",
                self.repository.create_template_meal,
                template_id,
                replace(meal, order_index=position),
            )
            for index, food in enumerate(meal.foods):
                if not food.food_name.strip():
                    continue
                food_id = call_external(
                    "create template food",
                    self.repository.create_template_food,
                    meal_id,
                    replace(food, order_index=index),
                )
                if food.substitutions:
                    call_external(
                        "create template substitutions",
                        self.repository.create_template_substitutions,
                        food_id,
                        list(food.substitutions),
                    )
        return self.get_template(template_id)

    def duplicate_template(self, template_id: str) -> DietTemplate:
        """Copy a template under the name ``"<name> (Copy)"``."""
        source = self.get_template(template_id)
        copy = DietTemplate(
            id=new_temporary_id(),
            name=f"{source.name} (Copy)",
            description=source.description,
            water_goal_liters=source.water_goal_liters,
            meals=tuple(_copy_template_meal(meal) for meal in source.meals),
        )
        return self.save_template(copy)

    def delete_template(self, template_id: str) -> None:
        require_durable_id(template_id, "Template")
        call_external("delete template", self.repository.delete_template, template_id)


@dataclass
class TemplateMaterializer:
    """Replaces a plan's meals and substitutions with a template's content.

    The store steps are not atomic: meals and substitutions deleted before a
    later failure stay deleted. Everything built here has fresh temporary
    identities, so the next plan save inserts it.
    """

    templates: TemplateRepository
    plans: PlanRepository
    catalog: CatalogService

    def apply(self, plan: DietPlan, template_id: str) -> MaterializedPlan:
        template = call_external(
            "load template", self.templates.get_template, template_id
        )
        if template is None:
            raise NotFoundError("Template", template_id)
        _logger.info(
            "Applying template %s to plan %s: meals=%s",
            template_id,
            plan.id,
            len(template.meals),
        )

        durable_ids = [meal.id for meal in plan.meals if not is_temporary_id(meal.id)]
        if durable_ids:
            call_external("delete plan meals", self.plans.delete_meals, durable_ids)
        call_external(
            "delete plan substitutions",
            self.plans.delete_substitutions_for_plan,
            plan.id,
        )

        names = {food.food_name for meal in template.meals for food in meal.foods}
        names.update(
            item.food_name
            for meal in template.meals
            for option in meal.options
            for item in option.items
        )
        foods = call_external(
            "load catalog foods", self.catalog.foods_by_name, sorted(names - {""})
        )
        aggregator = NutritionAggregator.from_foods(foods)

        meals = []
        for position, template_meal in enumerate(
            sorted(template.meals, key=lambda item: item.order_index)
        ):
            meal = Meal(
                id=new_temporary_id(),
                name=template_meal.name,
                suggested_time=template_meal.suggested_time,
                order_index=position,
                options=[_fresh_option(option) for option in template_meal.options],
            )
            for template_food in sorted(
                template_meal.foods, key=lambda item: item.order_index
            ):
                food = foods.get(template_food.food_name)
                entry = MealEntry(
                    id=new_temporary_id(),
                    food_name=template_food.food_name,
                    grams=parse_optional_number(template_food.quantity),
                    unit_type=UnitType(template_food.unit_type),
                    quantity_units=template_food.quantity_units or None,
                    order_index=template_food.order_index,
                    grams_per_unit=food.unit.grams_per_unit
                    if food is not None and food.unit is not None
                    else None,
                )
                meal.entries.append(aggregator.hydrate(entry))
            meals.append(meal)

        substitutions = _resolve_substitutions(template)
        _logger.info(
            "Template %s materialized: meals=%s entries=%s substitutions=%s",
            template_id,
            len(meals),
            sum(len(meal.entries) for meal in meals),
            len(substitutions),
        )
        return MaterializedPlan(
            template=template, meals=meals, substitutions=substitutions, foods=foods
        )


def _resolve_substitutions(template: DietTemplate) -> list[FoodSubstitution]:
    """Turn alternates keyed by template food id into name-keyed plan rows."""
    food_names = {
        food.id: food.food_name for meal in template.meals for food in meal.foods
    }
    resolved = []
    for meal in template.meals:
        for food in meal.foods:
            for substitution in food.substitutions:
                original = food_names.get(substitution.template_food_id)
                if original is None:
                    continue
                resolved.append(
                    FoodSubstitution(
                        id=new_temporary_id(),
                        original_food=original,
                        substitute_food=substitution.substitute_food,
                        substitute_quantity=substitution.substitute_quantity,
                    )
                )
    return resolved


def _fresh_option(option: MealSubstitutionOption) -> MealSubstitutionOption:
    return MealSubstitutionOption(id=str(uuid4()), name=option.name, items=option.items)


def _copy_template_meal(meal: TemplateMeal) -> TemplateMeal:
    foods = []
    for food in meal.foods:
        food_id = new_temporary_id()
        foods.append(
            replace(
                food,
                id=food_id,
                substitutions=tuple(
                    replace(sub, id=new_temporary_id(), template_food_id=food_id)
                    for sub in food.substitutions
                ),
            )
        )
    return replace(
        meal,
        id=new_temporary_id(),
        foods=tuple(foods),
        options=tuple(_fresh_option(option) for option in meal.options),
    )
