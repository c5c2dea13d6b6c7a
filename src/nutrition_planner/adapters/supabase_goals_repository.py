"""Supabase implementation for client macro goals."""

from dataclasses import dataclass

from supabase import Client

from nutrition_planner.domain.goals import MacroGoals
from nutrition_planner.parsers import parse_optional_number
from nutrition_planner.services.goals import GoalsRepository


@dataclass
class SupabaseGoalsRepository(GoalsRepository):
    """Reads goals from the client's profile row."""

    client: Client

    def get_goals(self, client_id: str) -> MacroGoals | None:
        response = (
            self.client.table("profiles")
            .select("protein_goal, carbs_goal, fats_goal, calories_goal, fiber_goal")
            .eq("id", client_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return MacroGoals(
            protein=parse_optional_number(row.get("protein_goal")),
            carbs=parse_optional_number(row.get("carbs_goal")),
            fats=parse_optional_number(row.get("fats_goal")),
            calories=parse_optional_number(row.get("calories_goal")),
            fiber=parse_optional_number(row.get("fiber_goal")),
        )
