"""Supabase implementation for diet plans."""

from dataclasses import dataclass

from supabase import Client

from nutrition_planner.adapters.supabase_rows import (
    dump_meal_options,
    first_id,
    parse_meal_options,
    parse_unit_type,
)
from nutrition_planner.domain.plans import DietPlan, FoodSubstitution, Meal, MealEntry
from nutrition_planner.parsers import (
    format_grams,
    parse_optional_number,
    require_durable_id,
)
from nutrition_planner.services.plans import PlanRepository


@dataclass
class SupabasePlanRepository(PlanRepository):
    """Supabase-backed repository for plans, meals, entries and substitutions."""

    client: Client

    def get_plan(self, plan_id: str) -> DietPlan | None:
        response = (
            self.client.table("diet_plans")
            .select("*")
            .eq("id", plan_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_plan(response.data[0])

    def list_meals(self, plan_id: str) -> list[Meal]:
        """Return meals with their foods embedded, ordered by position."""
        response = (
            self.client.table("meals")
            .select("*, meal_foods(*)")
            .eq("diet_plan_id", plan_id)
            .order("order_index")
            .execute()
        )
        return [_parse_meal(row) for row in response.data or []]

    def list_substitutions(self, plan_id: str) -> list[FoodSubstitution]:
        response = (
            self.client.table("food_substitutions")
            .select("*")
            .eq("diet_plan_id", plan_id)
            .execute()
        )
        return [_parse_substitution(row) for row in response.data or []]

    def update_plan(self, plan_id: str, payload: dict[str, object]) -> None:
        self.client.table("diet_plans").update(payload).eq(
            "id", require_durable_id(plan_id, "Plan")
        ).execute()

    def create_meal(self, plan_id: str, meal: Meal) -> str:
        response = (
            self.client.table("meals")
            .insert({"diet_plan_id": plan_id, **_meal_payload(meal)})
            .execute()
        )
        return first_id(response.data, "meal")

    def update_meal(self, meal: Meal) -> None:
        self.client.table("meals").update(_meal_payload(meal)).eq(
            "id", require_durable_id(meal.id, "Meal")
        ).execute()

    def delete_meal(self, meal_id: str) -> None:
        """Delete a meal after its foods."""
        require_durable_id(meal_id, "Meal")
        self.client.table("meal_foods").delete().eq("meal_id", meal_id).execute()
        self.client.table("meals").delete().eq("id", meal_id).execute()

    def delete_meals(self, meal_ids: list[str]) -> None:
        """Delete several meals; the store cascades to their foods."""
        for meal_id in meal_ids:
            require_durable_id(meal_id, "Meal")
        if not meal_ids:
            return
        self.client.table("meals").delete().in_("id", meal_ids).execute()

    def create_entry(self, meal_id: str, entry: MealEntry) -> str:
        response = (
            self.client.table("meal_foods")
            .insert({"meal_id": meal_id, **_entry_payload(entry)})
            .execute()
        )
        return first_id(response.data, "meal food")

    def update_entry(self, entry: MealEntry) -> None:
        self.client.table("meal_foods").update(_entry_payload(entry)).eq(
            "id", require_durable_id(entry.id, "Entry")
        ).execute()

    def delete_entry(self, entry_id: str) -> None:
        self.client.table("meal_foods").delete().eq(
            "id", require_durable_id(entry_id, "Entry")
        ).execute()

    def create_substitutions(
        self, plan_id: str, substitutions: list[FoodSubstitution]
    ) -> None:
        if not substitutions:
            return
        self.client.table("food_substitutions").insert(
            [
                {
                    "diet_plan_id": plan_id,
                    "original_food": substitution.original_food,
                    "substitute_food": substitution.substitute_food,
                    "substitute_quantity": substitution.substitute_quantity,
                }
                for substitution in substitutions
            ]
        ).execute()

    def delete_substitution(self, substitution_id: str) -> None:
        self.client.table("food_substitutions").delete().eq(
            "id", require_durable_id(substitution_id, "Substitution")
        ).execute()

    def delete_substitutions_for_plan(self, plan_id: str) -> None:
        self.client.table("food_substitutions").delete().eq(
            "diet_plan_id", plan_id
        ).execute()


def _meal_payload(meal: Meal) -> dict[str, object]:
    return {
        "name": meal.name or "",
        "suggested_time": meal.suggested_time or None,
        "order_index": meal.order_index,
        "meal_substitutions": dump_meal_options(meal.options),
    }


def _entry_payload(entry: MealEntry) -> dict[str, object]:
    """Columns written for an entry; grams are stored as text."""
    return {
        "food_name": entry.food_name or "",
        "quantity": format_grams(entry.grams),
        "order_index": entry.order_index,
        "unit_type": str(entry.unit_type),
        "quantity_units": entry.quantity_units,
    }


def _parse_plan(row: dict[str, object]) -> DietPlan:
    return DietPlan(
        id=str(row["id"]),
        client_id=str(row.get("client_id") or ""),
        name=str(row.get("name") or ""),
        water_goal_liters=parse_optional_number(row.get("water_goal_liters")),
        notes=row.get("notes"),
        daily_calories=parse_optional_number(row.get("daily_calories")),
        protein_g=parse_optional_number(row.get("protein_g")),
        carbs_g=parse_optional_number(row.get("carbs_g")),
        fat_g=parse_optional_number(row.get("fat_g")),
    )


def _parse_meal(row: dict[str, object]) -> Meal:
    meal_id = str(row["id"])
    foods = row.get("meal_foods") or []
    return Meal(
        id=meal_id,
        name=str(row.get("name") or ""),
        suggested_time=row.get("suggested_time"),
        order_index=int(row.get("order_index") or 0),
        entries=[_parse_entry(food, meal_id) for food in foods],
        options=parse_meal_options(row.get("meal_substitutions")),
    )


def _parse_entry(row: dict[str, object], meal_id: str) -> MealEntry:
    return MealEntry(
        id=str(row["id"]),
        food_name=str(row.get("food_name") or ""),
        grams=parse_optional_number(row.get("quantity")),
        unit_type=parse_unit_type(row.get("unit_type")),
        quantity_units=parse_optional_number(row.get("quantity_units")),
        order_index=int(row.get("order_index") or 0),
        meal_id=meal_id,
    )


def _parse_substitution(row: dict[str, object]) -> FoodSubstitution:
    return FoodSubstitution(
        id=str(row["id"]),
        original_food=str(row.get("original_food") or ""),
        substitute_food=str(row.get("substitute_food") or ""),
        substitute_quantity=str(row.get("substitute_quantity") or ""),
    )
