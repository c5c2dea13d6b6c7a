"""Domain models for macro goals."""

from dataclasses import dataclass
from enum import StrEnum


class MacroStatus(StrEnum):
    """How close an aggregate value is to its goal."""

    GOOD = "good"
    CLOSE = "close"
    LOW = "low"
    HIGH = "high"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class MacroGoals:
    """Per-client macro targets; ``None`` means no goal is set."""

    protein: float | None = None
    carbs: float | None = None
    fats: float | None = None
    calories: float | None = None
    fiber: float | None = None


@dataclass(frozen=True)
class MacroEvaluation:
    """Evaluation of one nutrient against its goal."""

    status: MacroStatus
    difference: float | None
    percentage: int | None


@dataclass(frozen=True)
class PlanEvaluation:
    """Evaluations of every tracked nutrient."""

    calories: MacroEvaluation
    protein: MacroEvaluation
    carbs: MacroEvaluation
    fats: MacroEvaluation
    fiber: MacroEvaluation
