"""Supabase implementation for diet templates."""

from dataclasses import dataclass

from supabase import Client

from nutrition_planner.adapters.supabase_rows import (
    dump_meal_options,
    first_id,
    parse_meal_options,
    parse_unit_type,
)
from nutrition_planner.domain.templates import (
    DietTemplate,
    TemplateMeal,
    TemplateMealFood,
    TemplateSubstitution,
)
from nutrition_planner.parsers import parse_optional_number, require_durable_id
from nutrition_planner.services.templates import TemplateRepository


@dataclass
class SupabaseTemplateRepository(TemplateRepository):
    """Supabase-backed repository for templates and their meals."""

    client: Client

    def list_templates(self) -> list[DietTemplate]:
        response = (
            self.client.table("diet_templates")
            .select("id, name, description, water_goal_liters")
            .order("name")
            .execute()
        )
        return [_parse_template(row) for row in response.data or []]

    def get_template(self, template_id: str) -> DietTemplate | None:
        """Load a template with meals, foods and food alternates."""
        header_response = (
            self.client.table("diet_templates")
            .select("*")
            .eq("id", template_id)
            .limit(1)
            .execute()
        )
        if not header_response.data:
            return None
        meals_response = (
            self.client.table("diet_template_meals")
            .select("*, diet_template_meal_foods(*)")
            .eq("template_id", template_id)
            .order("order_index")
            .execute()
        )
        meal_rows = meals_response.data or []
        food_ids = [
            str(food["id"])
            for row in meal_rows
            for food in row.get("diet_template_meal_foods") or []
        ]
        substitutions: dict[str, list[TemplateSubstitution]] = {}
        if food_ids:
            subs_response = (
                self.client.table("diet_template_food_substitutions")
                .select("*")
                .in_("template_food_id", food_ids)
                .execute()
            )
            for row in subs_response.data or []:
                substitution = _parse_substitution(row)
                substitutions.setdefault(substitution.template_food_id, []).append(
                    substitution
                )
        meals = tuple(_parse_meal(row, substitutions) for row in meal_rows)
        return _parse_template(header_response.data[0], meals)

    def create_template(self, template: DietTemplate) -> str:
        response = (
            self.client.table("diet_templates")
            .insert(_template_payload(template))
            .execute()
        )
        return first_id(response.data, "template")

    def update_template(self, template: DietTemplate) -> None:
        self.client.table("diet_templates").update(_template_payload(template)).eq(
            "id", require_durable_id(template.id, "Template")
        ).execute()

    def delete_template(self, template_id: str) -> None:
        self.client.table("diet_templates").delete().eq(
            "id", require_durable_id(template_id, "Template")
        ).execute()

    def delete_template_meals(self, template_id: str) -> None:
        self.client.table("diet_template_meals").delete().eq(
            "template_id", require_durable_id(template_id, "Template")
        ).execute()

    def create_template_meal(self, template_id: str, meal: TemplateMeal) -> str:
        response = (
            self.client.table("diet_template_meals")
            .insert(
                {
                    "template_id": template_id,
                    "name": meal.name,
                    "suggested_time": meal.suggested_time,
                    "order_index": meal.order_index,
                    "meal_substitutions": dump_meal_options(meal.options),
                }
            )
            .execute()
        )
        return first_id(response.data, "template meal")

    def create_template_food(self, meal_id: str, food: TemplateMealFood) -> str:
        response = (
            self.client.table("diet_template_meal_foods")
            .insert(
                {
                    "template_meal_id": meal_id,
                    "food_name": food.food_name,
                    "quantity": food.quantity,
                    "order_index": food.order_index,
                    "unit_type": str(food.unit_type),
                    "quantity_units": food.quantity_units,
                }
            )
            .execute()
        )
        return first_id(response.data, "template food")

    def create_template_substitutions(
        self, food_id: str, substitutions: list[TemplateSubstitution]
    ) -> None:
        if not substitutions:
            return
        self.client.table("diet_template_food_substitutions").insert(
            [
                {
                    "template_food_id": food_id,
                    "substitute_food": substitution.substitute_food,
                    "substitute_quantity": substitution.substitute_quantity,
                }
                for substitution in substitutions
            ]
        ).execute()


def _template_payload(template: DietTemplate) -> dict[str, object]:
    return {
        "name": template.name.strip(),
        "description": (template.description or "").strip() or None,
        "water_goal_liters": template.water_goal_liters or 2.0,
    }


def _parse_template(
    row: dict[str, object], meals: tuple[TemplateMeal, ...] = ()
) -> DietTemplate:
    return DietTemplate(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        description=row.get("description"),
        water_goal_liters=parse_optional_number(row.get("water_goal_liters")) or 2.0,
        meals=meals,
    )


def _parse_meal(
    row: dict[str, object], substitutions: dict[str, list[TemplateSubstitution]]
) -> TemplateMeal:
    foods = sorted(
        row.get("diet_template_meal_foods") or [],
        key=lambda food: int(food.get("order_index") or 0),
    )
    return TemplateMeal(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        suggested_time=row.get("suggested_time"),
        order_index=int(row.get("order_index") or 0),
        foods=tuple(
            TemplateMealFood(
                id=str(food["id"]),
                food_name=str(food.get("food_name") or ""),
                quantity=str(food.get("quantity") or ""),
                order_index=int(food.get("order_index") or 0),
                unit_type=parse_unit_type(food.get("unit_type")),
                quantity_units=parse_optional_number(food.get("quantity_units")),
                substitutions=tuple(substitutions.get(str(food["id"]), ())),
            )
            for food in foods
        ),
        options=tuple(parse_meal_options(row.get("meal_substitutions"))),
    )


def _parse_substitution(row: dict[str, object]) -> TemplateSubstitution:
    return TemplateSubstitution(
        id=str(row["id"]),
        template_food_id=str(row.get("template_food_id") or ""),
        substitute_food=str(row.get("substitute_food") or ""),
        substitute_quantity=str(row.get("substitute_quantity") or ""),
    )
