"""Pydantic response models for the planner API."""

from pydantic import BaseModel

from nutrition_planner.config import Settings
from nutrition_planner.domain.foods import ExerciseItem, FoodItem
from nutrition_planner.domain.goals import MacroEvaluation, MacroGoals, PlanEvaluation
from nutrition_planner.domain.plans import MacroTotals, MealEntry
from nutrition_planner.domain.search import SearchCandidate, SearchOutcome
from nutrition_planner.domain.templates import DietTemplate
from nutrition_planner.services.goals import MacroGoalEvaluator
from nutrition_planner.services.plans import PlanComposer, SaveResult, SaveStatus
from nutrition_planner.services.units import display_name, format_quantity_display


class MacroTotalsModel(BaseModel):
    """Macro totals payload."""

    calories: float
    protein: float
    carbs: float
    fats: float
    fiber: float

    @classmethod
    def from_totals(cls, totals: MacroTotals) -> "MacroTotalsModel":
        return cls(
            calories=totals.calories,
            protein=totals.protein,
            carbs=totals.carbs,
            fats=totals.fats,
            fiber=totals.fiber,
        )


class EntryModel(BaseModel):
    """Meal entry payload."""

    id: str
    food_name: str
    grams: float | None
    unit_type: str
    quantity_units: float | None
    quantity_display: str
    macros: MacroTotalsModel | None


class OptionItemModel(BaseModel):
    food_name: str
    quantity: str
    unit_type: str
    quantity_units: float | None


class OptionModel(BaseModel):
    """Alternative meal option payload."""

    id: str
    name: str
    items: list[OptionItemModel]
    totals: MacroTotalsModel


class MealModel(BaseModel):
    """Meal payload with entries, options and totals."""

    id: str
    name: str
    suggested_time: str | None
    order_index: int
    entries: list[EntryModel]
    options: list[OptionModel]
    totals: MacroTotalsModel


class SubstitutionModel(BaseModel):
    id: str
    original_food: str
    substitute_food: str
    substitute_quantity: str


class PlanModel(BaseModel):
    """Plan payload with live daily totals."""

    id: str
    client_id: str
    name: str
    water_goal_liters: float | None
    notes: str | None
    meals: list[MealModel]
    substitutions: list[SubstitutionModel]
    totals: MacroTotalsModel


class SearchResultModel(BaseModel):
    """Catalog item returned by a picker search."""

    id: int | str
    name: str
    catalog_name: str
    unit_type: str | None = None
    grams_per_unit: float | None = None
    muscle_group: str | None = None


class SearchResponse(BaseModel):
    state: str
    query: str
    results: list[SearchResultModel]


class NutrientEvaluationModel(BaseModel):
    """One nutrient compared with its goal."""

    current: float
    goal: float | None
    status: str
    icon: str
    difference: float | None
    percentage: int | None


class EvaluationResponse(BaseModel):
    calories: NutrientEvaluationModel
    protein: NutrientEvaluationModel
    carbs: NutrientEvaluationModel
    fats: NutrientEvaluationModel
    fiber: NutrientEvaluationModel


class SaveResultModel(BaseModel):
    """Save outcome; ``display_seconds`` is how long to show the status."""

    status: str
    applied_steps: list[str]
    failed_step: str | None
    error: str | None
    display_seconds: int


class ApplyTemplateResponse(BaseModel):
    save: SaveResultModel
    plan: PlanModel


class TemplateSummaryModel(BaseModel):
    id: str
    name: str
    description: str | None
    water_goal_liters: float


def plan_model(composer: PlanComposer) -> PlanModel:
    """Render a composer's plan with its current totals."""
    plan = composer.plan
    return PlanModel(
        id=plan.id,
        client_id=plan.client_id,
        name=plan.name,
        water_goal_liters=plan.water_goal_liters,
        notes=plan.notes,
        meals=[
            MealModel(
                id=meal.id,
                name=meal.name,
                suggested_time=meal.suggested_time,
                order_index=meal.order_index,
                entries=[_entry_model(entry) for entry in meal.entries],
                options=[
                    OptionModel(
                        id=option.id,
                        name=option.name,
                        items=[
                            OptionItemModel(
                                food_name=item.food_name,
                                quantity=item.quantity,
                                unit_type=str(item.unit_type),
                                quantity_units=item.quantity_units,
                            )
                            for item in option.items
                        ],
                        totals=MacroTotalsModel.from_totals(
                            composer.aggregator.per_option(option)
                        ),
                    )
                    for option in meal.options
                ],
                totals=MacroTotalsModel.from_totals(
                    composer.aggregator.per_meal(meal.entries)
                ),
            )
            for meal in plan.meals
        ],
        substitutions=[
            SubstitutionModel(
                id=substitution.id,
                original_food=substitution.original_food,
                substitute_food=substitution.substitute_food,
                substitute_quantity=substitution.substitute_quantity,
            )
            for substitution in composer.substitutions.visible()
        ],
        totals=MacroTotalsModel.from_totals(composer.daily_totals()),
    )


def search_response(outcome: SearchOutcome) -> SearchResponse:
    return SearchResponse(
        state=str(outcome.state),
        query=outcome.query,
        results=[_search_result(candidate) for candidate in outcome.results],
    )


def evaluation_response(
    totals: MacroTotals, goals: MacroGoals, evaluation: PlanEvaluation
) -> EvaluationResponse:
    def nutrient(
        current: float, goal: float | None, result: MacroEvaluation
    ) -> NutrientEvaluationModel:
        return NutrientEvaluationModel(
            current=current,
            goal=goal,
            status=str(result.status),
            icon=MacroGoalEvaluator.status_icon(result.status),
            difference=result.difference,
            percentage=result.percentage,
        )

    return EvaluationResponse(
        calories=nutrient(totals.calories, goals.calories, evaluation.calories),
        protein=nutrient(totals.protein, goals.protein, evaluation.protein),
        carbs=nutrient(totals.carbs, goals.carbs, evaluation.carbs),
        fats=nutrient(totals.fats, goals.fats, evaluation.fats),
        fiber=nutrient(totals.fiber, goals.fiber, evaluation.fiber),
    )


def save_result_model(result: SaveResult, settings: Settings) -> SaveResultModel:
    if result.status is SaveStatus.ERROR:
        display_seconds = settings.save_error_display_seconds
    else:
        display_seconds = settings.save_success_display_seconds
    return SaveResultModel(
        status=str(result.status),
        applied_steps=result.applied_steps,
        failed_step=result.failed_step,
        error=result.error,
        display_seconds=display_seconds,
    )


def template_summary(template: DietTemplate) -> TemplateSummaryModel:
    return TemplateSummaryModel(
        id=template.id,
        name=template.name,
        description=template.description,
        water_goal_liters=template.water_goal_liters,
    )


def _entry_model(entry: MealEntry) -> EntryModel:
    return EntryModel(
        id=entry.id,
        food_name=entry.food_name,
        grams=entry.grams,
        unit_type=str(entry.unit_type),
        quantity_units=entry.quantity_units,
        quantity_display=""
        if entry.grams is None
        else format_quantity_display(
            entry.grams, entry.quantity_units, entry.unit_type
        ),
        macros=MacroTotalsModel.from_totals(entry.macros) if entry.macros else None,
    )


def _search_result(candidate: SearchCandidate) -> SearchResultModel:
    payload = candidate.payload
    if isinstance(payload, FoodItem):
        return SearchResultModel(
            id=payload.id,
            name=display_name(payload),
            catalog_name=payload.name,
            unit_type=str(payload.unit.unit_type) if payload.unit else None,
            grams_per_unit=payload.unit.grams_per_unit if payload.unit else None,
        )
    if isinstance(payload, ExerciseItem):
        return SearchResultModel(
            id=payload.id,
            name=payload.name,
            catalog_name=payload.name,
            muscle_group=payload.muscle_group,
        )
    return SearchResultModel(
        id=str(candidate.id),
        name=candidate.display_name,
        catalog_name=candidate.primary_name,
    )
