"""Goal evaluation for plan macro totals."""

from dataclasses import dataclass
from typing import Protocol

from nutrition_planner.domain.goals import (
    MacroEvaluation,
    MacroGoals,
    MacroStatus,
    PlanEvaluation,
)
from nutrition_planner.domain.plans import MacroTotals
from nutrition_planner.errors import NotFoundError
from nutrition_planner.parsers import round_half_up

_GOOD_RANGE = (95, 105)
_LOW_BELOW = 90
_HIGH_ABOVE = 110

_STATUS_ICONS = {
    MacroStatus.GOOD: "✅",
    MacroStatus.CLOSE: "\U0001f7e1",
    MacroStatus.LOW: "\U0001f534",
    MacroStatus.HIGH: "\U0001f7e0",
    MacroStatus.NEUTRAL: "⚪",
}


class GoalsRepository(Protocol):
    """Persistence interface for client macro goals."""

    def get_goals(self, client_id: str) -> MacroGoals | None:
        """Return a client's goals, or ``None`` when the client is unknown."""


class MacroGoalEvaluator:
    """Buckets aggregate values against per-client goals."""

    def evaluate(self, current: float, goal: float | None) -> MacroEvaluation:
        """Evaluate one nutrient.

        The percentage is rounded before bucketing, so 94.6 % counts as good.
        A missing or zero goal is neutral.
        """
        if not goal:
            difference = None if goal is None else current - goal
            return MacroEvaluation(
                status=MacroStatus.NEUTRAL, difference=difference, percentage=None
            )
        percentage = round_half_up(current / goal * 100)
        return MacroEvaluation(
            status=_bucket(percentage),
            difference=current - goal,
            percentage=percentage,
        )

    def evaluate_totals(self, totals: MacroTotals, goals: MacroGoals) -> PlanEvaluation:
        """Evaluate every tracked nutrient of a day."""
        return PlanEvaluation(
            calories=self.evaluate(totals.calories, goals.calories),
            protein=self.evaluate(totals.protein, goals.protein),
            carbs=self.evaluate(totals.carbs, goals.carbs),
            fats=self.evaluate(totals.fats, goals.fats),
            fiber=self.evaluate(totals.fiber, goals.fiber),
        )

    @staticmethod
    def status_icon(status: MacroStatus) -> str:
        return _STATUS_ICONS.get(status, _STATUS_ICONS[MacroStatus.NEUTRAL])


@dataclass
class GoalsService:
    """Loads client goals."""

    repository: GoalsRepository

    def get_goals(self, client_id: str) -> MacroGoals:
        goals = self.repository.get_goals(client_id)
        if goals is None:
            raise NotFoundError("Client", client_id)
        return goals


def _bucket(percentage: int) -> MacroStatus:
    low, high = _GOOD_RANGE
    if low <= percentage <= high:
        return MacroStatus.GOOD
    if percentage < _LOW_BELOW:
        return MacroStatus.LOW
    if percentage > _HIGH_ABOVE:
        return MacroStatus.HIGH
    return MacroStatus.CLOSE
