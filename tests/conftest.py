"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from itertools import count

import pytest

from nutrition_planner.config import Settings
from nutrition_planner.containers import AppContainer
from nutrition_planner.domain.foods import (
    ExerciseItem,
    FoodItem,
    NutrientProfile,
    UnitMetadata,
    UnitType,
)
from nutrition_planner.domain.goals import MacroGoals
from nutrition_planner.domain.plans import DietPlan, FoodSubstitution, Meal, MealEntry
from nutrition_planner.domain.templates import (
    DietTemplate,
    TemplateMeal,
    TemplateMealFood,
    TemplateSubstitution,
)
from nutrition_planner.services.cache import InMemoryCache
from nutrition_planner.services.catalog import CatalogClient, CatalogService
from nutrition_planner.services.goals import GoalsRepository, GoalsService
from nutrition_planner.services.plans import PlanRepository, PlanService
from nutrition_planner.services.search import (
    ExerciseSearchService,
    FoodSearchService,
    SearchRanker,
    normalize_text,
)
from nutrition_planner.services.templates import (
    TemplateMaterializer,
    TemplateRepository,
    TemplateService,
)

RICE = FoodItem(
    id=1,
    name="Arroz, tipo 1, cozido",
    profile=NutrientProfile(calories=128, protein=2.5, carbs=28.1, fat=0.2, fiber=1.6),
)
CHICKEN = FoodItem(
    id=2,
    name="Frango, peito, sem pele, grelhado",
    profile=NutrientProfile(calories=159, protein=32.0, carbs=0.0, fat=2.5),
    simplified_name="Peito de frango grelhado",
)
BREAD = FoodItem(
    id=3,
    name="Pão, trigo, forma, integral",
    profile=NutrientProfile(calories=253, protein=9.4, carbs=49.9, fat=3.7, fiber=6.9),
    unit=UnitMetadata(unit_type=UnitType.FATIA, grams_per_unit=25.0),
    simplified_name="Pão de forma integral",
)
EGG = FoodItem(
    id=4,
    name="Ovo, de galinha, inteiro, cozido",
    profile=NutrientProfile(calories=146, protein=13.3, carbs=0.6, fat=9.5),
    unit=UnitMetadata(unit_type=UnitType.UNIDADE, grams_per_unit=50.0),
    simplified_name="Ovo cozido",
)
BEANS = FoodItem(
    id=5,
    name="Feijão, carioca, cozido",
    profile=NutrientProfile(calories=76, protein=4.8, carbs=13.6, fat=0.5, fiber=8.5),
)
BANANA = FoodItem(
    id=6,
    name="Banana, prata, crua",
    profile=NutrientProfile(calories=98, protein=1.3, carbs=26.0, fat=0.1, fiber=2.0),
    unit=UnitMetadata(unit_type=UnitType.UNIDADE, grams_per_unit=55.0),
)
CATALOG_FOODS = [RICE, CHICKEN, BREAD, EGG, BEANS, BANANA]

SQUAT = ExerciseItem(id="ex-1", name="Agachamento livre", muscle_group="Pernas")
BENCH = ExerciseItem(id="ex-2", name="Supino reto com barra", muscle_group="Peito")
ROW = ExerciseItem(id="ex-3", name="Remada curvada com barra", muscle_group="Costas")


class StoreFailure(RuntimeError):
    """Raised by in-memory stores when a call is set up to fail."""


@dataclass
class FakeCatalogClient(CatalogClient):
    foods: list[FoodItem] = field(default_factory=lambda: list(CATALOG_FOODS))
    exercises: list[ExerciseItem] = field(
        default_factory=lambda: [SQUAT, BENCH, ROW]
    )
    failing: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    def find_by_name_substring(self, query: str, limit: int) -> list[FoodItem]:
        self._record("find_by_name_substring")
        needle = normalize_text(query)
        return [food for food in self.foods if needle in normalize_text(food.name)][
            :limit
        ]

    def find_by_simplified_name(self, query: str, limit: int) -> list[FoodItem]:
        self._record("find_by_simplified_name")
        needle = normalize_text(query)
        return [
            food
            for food in self.foods
            if food.simplified_name and needle in normalize_text(food.simplified_name)
        ][:limit]

    def find_by_names(self, names: list[str]) -> list[FoodItem]:
        self._record("find_by_names")
        return [food for food in self.foods if food.name in names]

    def get_nutrient_profile(self, food_id: int) -> NutrientProfile | None:
        self._record("get_nutrient_profile")
        for food in self.foods:
            if food.id == food_id:
                return food.profile
        return None

    def get_unit_metadata(self, food_id: int) -> UnitMetadata | None:
        self._record("get_unit_metadata")
        for food in self.foods:
            if food.id == food_id:
                return food.unit
        return None

    def find_exercises(self, query: str, limit: int) -> list[ExerciseItem]:
        self._record("find_exercises")
        needle = normalize_text(query)
        return [
            item for item in self.exercises if needle in normalize_text(item.name)
        ][:limit]

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failing:
            raise StoreFailure(f"{name} unavailable")


@dataclass
class InMemoryPlanRepository(PlanRepository):
    plans: dict[str, DietPlan] = field(default_factory=dict)
    meals: dict[str, list[Meal]] = field(default_factory=dict)
    substitutions: dict[str, list[FoodSubstitution]] = field(default_factory=dict)
    failing: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)
    _ids: count = field(default_factory=lambda: count(1))

    def add_plan(self, plan: DietPlan) -> DietPlan:
        self.plans[plan.id] = replace(plan, meals=[])
        self.meals.setdefault(plan.id, [])
        self.substitutions.setdefault(plan.id, [])
        for meal in plan.meals:
            meal_id = self.create_meal(plan.id, meal)
            for entry in meal.entries:
                self.create_entry(meal_id, entry)
        self.calls.clear()
        return self.plans[plan.id]

    def get_plan(self, plan_id: str) -> DietPlan | None:
        self._record("get_plan")
        plan = self.plans.get(plan_id)
        return replace(plan, meals=[]) if plan else None

    def list_meals(self, plan_id: str) -> list[Meal]:
        self._record("list_meals")
        return [
            replace(meal, entries=list(meal.entries), options=list(meal.options))
            for meal in self.meals.get(plan_id, [])
        ]

    def list_substitutions(self, plan_id: str) -> list[FoodSubstitution]:
        self._record("list_substitutions")
        return list(self.substitutions.get(plan_id, []))

    def update_plan(self, plan_id: str, payload: dict[str, object]) -> None:
        self._record("update_plan")
        plan = self.plans[plan_id]
        columns = {
            key: value
            for key, value in payload.items()
            if key in DietPlan.__dataclass_fields__
        }
        self.plans[plan_id] = replace(plan, **columns)

    def create_meal(self, plan_id: str, meal: Meal) -> str:
        self._record("create_meal")
        meal_id = f"meal-{next(self._ids)}"
        self.meals.setdefault(plan_id, []).append(
            Meal(
                id=meal_id,
                name=meal.name,
                suggested_time=meal.suggested_time,
                order_index=meal.order_index,
                options=list(meal.options),
            )
        )
        return meal_id

    def update_meal(self, meal: Meal) -> None:
        self._record("update_meal")
        stored = self._find_meal(meal.id)
        stored.name = meal.name
        stored.suggested_time = meal.suggested_time
        stored.order_index = meal.order_index
        stored.options = list(meal.options)

    def delete_meal(self, meal_id: str) -> None:
        self._record("delete_meal")
        self.delete_meals([meal_id])

    def delete_meals(self, meal_ids: list[str]) -> None:
        self._record("delete_meals")
        for plan_id, meals in self.meals.items():
            self.meals[plan_id] = [meal for meal in meals if meal.id not in meal_ids]

    def create_entry(self, meal_id: str, entry: MealEntry) -> str:
        self._record("create_entry")
        entry_id = f"food-{next(self._ids)}"
        self._find_meal(meal_id).entries.append(
            replace(
                entry,
                id=entry_id,
                meal_id=meal_id,
                grams_per_unit=None,
                profile=None,
                macros=None,
            )
        )
        return entry_id

    def update_entry(self, entry: MealEntry) -> None:
        self._record("update_entry")
        meal = self._find_meal(entry.meal_id or "")
        meal.entries = [
            replace(entry, grams_per_unit=None, profile=None, macros=None)
            if stored.id == entry.id
            else stored
            for stored in meal.entries
        ]

    def delete_entry(self, entry_id: str) -> None:
        self._record("delete_entry")
        for meals in self.meals.values():
            for meal in meals:
                meal.entries = [entry for entry in meal.entries if entry.id != entry_id]

    def create_substitutions(
        self, plan_id: str, substitutions: list[FoodSubstitution]
    ) -> None:
        self._record("create_substitutions")
        stored = self.substitutions.setdefault(plan_id, [])
        for substitution in substitutions:
            stored.append(replace(substitution, id=f"sub-{next(self._ids)}"))

    def delete_substitution(self, substitution_id: str) -> None:
        self._record("delete_substitution")
        for plan_id, stored in self.substitutions.items():
            self.substitutions[plan_id] = [
                item for item in stored if item.id != substitution_id
            ]

    def delete_substitutions_for_plan(self, plan_id: str) -> None:
        self._record("delete_substitutions_for_plan")
        self.substitutions[plan_id] = []

    def _find_meal(self, meal_id: str) -> Meal:
        for meals in self.meals.values():
            for meal in meals:
                if meal.id == meal_id:
                    return meal
        raise KeyError(meal_id)

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failing:
            raise StoreFailure(f"{name} unavailable")


@dataclass
class InMemoryTemplateRepository(TemplateRepository):
    templates: dict[str, DietTemplate] = field(default_factory=dict)
    failing: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)
    _ids: count = field(default_factory=lambda: count(1))

    def add_template(self, template: DietTemplate) -> DietTemplate:
        self.templates[template.id] = template
        return template

    def list_templates(self) -> list[DietTemplate]:
        self._record("list_templates")
        return sorted(
            (replace(template, meals=()) for template in self.templates.values()),
            key=lambda template: template.name,
        )

    def get_template(self, template_id: str) -> DietTemplate | None:
        self._record("get_template")
        return self.templates.get(template_id)

    def create_template(self, template: DietTemplate) -> str:
        self._record("create_template")
        template_id = f"tpl-{next(self._ids)}"
        self.templates[template_id] = replace(template, id=template_id, meals=())
        return template_id

    def update_template(self, template: DietTemplate) -> None:
        self._record("update_template")
        stored = self.templates[template.id]
        self.templates[template.id] = replace(
            template, meals=stored.meals
        )

    def delete_template(self, template_id: str) -> None:
        self._record("delete_template")
        self.templates.pop(template_id, None)

    def delete_template_meals(self, template_id: str) -> None:
        self._record("delete_template_meals")
        self.templates[template_id] = replace(self.templates[template_id], meals=())

    def create_template_meal(self, template_id: str, meal: TemplateMeal) -> str:
        self._record("create_template_meal")
        meal_id = f"tmeal-{next(self._ids)}"
        template = self.templates[template_id]
        self.templates[template_id] = replace(
            template, meals=(*template.meals, replace(meal, id=meal_id, foods=()))
        )
        return meal_id

    def create_template_food(self, meal_id: str, food: TemplateMealFood) -> str:
        self._record("create_template_food")
        food_id = f"tfood-{next(self._ids)}"
        self._update_meal(
            meal_id,
            lambda meal: replace(
                meal, foods=(*meal.foods, replace(food, id=food_id, substitutions=()))
            ),
        )
        return food_id

    def create_template_substitutions(
        self, food_id: str, substitutions: list[TemplateSubstitution]
    ) -> None:
        self._record("create_template_substitutions")
        saved = tuple(
            replace(sub, id=f"tsub-{next(self._ids)}", template_food_id=food_id)
            for sub in substitutions
        )
        for template_id, template in self.templates.items():
            meals = tuple(
                replace(
                    meal,
                    foods=tuple(
                        replace(food, substitutions=(*food.substitutions, *saved))
                        if food.id == food_id
                        else food
                        for food in meal.foods
                    ),
                )
                for meal in template.meals
            )
            self.templates[template_id] = replace(template, meals=meals)

    def _update_meal(self, meal_id: str, change) -> None:  # type: ignore[no-untyped-def]
        for template_id, template in self.templates.items():
            meals = tuple(
                change(meal) if meal.id == meal_id else meal for meal in template.meals
            )
            self.templates[template_id] = replace(template, meals=meals)

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failing:
            raise StoreFailure(f"{name} unavailable")


@dataclass
class InMemoryGoalsRepository(GoalsRepository):
    goals: dict[str, MacroGoals] = field(default_factory=dict)

    def get_goals(self, client_id: str) -> MacroGoals | None:
        return self.goals.get(client_id)


def make_plan(plan_id: str = "plan-1", client_id: str = "client-1") -> DietPlan:
    """A plan with breakfast and lunch, quantities in grams."""
    return DietPlan(
        id=plan_id,
        client_id=client_id,
        name="Cutting",
        water_goal_liters=2.5,
        meals=[
            Meal(
                id="draft-breakfast",
                name="Café da Manhã",
                suggested_time="07:00",
                order_index=0,
                entries=[
                    MealEntry(
                        id="draft-bread",
                        food_name=BREAD.name,
                        grams=50.0,
                        unit_type=UnitType.FATIA,
                        quantity_units=2.0,
                        order_index=0,
                    ),
                    MealEntry(
                        id="draft-egg", food_name=EGG.name, grams=100.0, order_index=1
                    ),
                ],
            ),
            Meal(
                id="draft-lunch",
                name="Almoço",
                suggested_time="12:30",
                order_index=1,
                entries=[
                    MealEntry(
                        id="draft-rice", food_name=RICE.name, grams=150.0, order_index=0
                    ),
                    MealEntry(
                        id="draft-chicken",
                        food_name=CHICKEN.name,
                        grams=120.0,
                        order_index=1,
                    ),
                ],
            ),
        ],
    )


def make_template(template_id: str = "tpl-base") -> DietTemplate:
    """A template with three meals holding 2, 1 and 4 foods and two alternates."""
    return DietTemplate(
        id=template_id,
        name="Hipertrofia",
        description="Base template",
        water_goal_liters=3.0,
        meals=(
            TemplateMeal(
                id="tm-1",
                name="Café da Manhã",
                suggested_time="07:00",
                order_index=0,
                foods=(
                    TemplateMealFood(
                        id="tf-1",
                        food_name=BREAD.name,
                        quantity="50",
                        order_index=0,
                        unit_type=UnitType.FATIA,
                        quantity_units=2.0,
                    ),
                    TemplateMealFood(
                        id="tf-2",
                        food_name=EGG.name,
                        quantity="100",
                        order_index=1,
                        substitutions=(
                            TemplateSubstitution(
                                id="ts-1",
                                template_food_id="tf-2",
                                substitute_food=CHICKEN.name,
                                substitute_quantity="80",
                            ),
                        ),
                    ),
                ),
            ),
            TemplateMeal(
                id="tm-2",
                name="Lanche da Manhã",
                order_index=1,
                foods=(
                    TemplateMealFood(
                        id="tf-3", food_name=BANANA.name, quantity="110", order_index=0
                    ),
                ),
            ),
            TemplateMeal(
                id="tm-3",
                name="Almoço",
                suggested_time="12:30",
                order_index=2,
                foods=(
                    TemplateMealFood(
                        id="tf-4",
                        food_name=RICE.name,
                        quantity="150",
                        order_index=0,
                        substitutions=(
                            TemplateSubstitution(
                                id="ts-2",
                                template_food_id="tf-4",
                                substitute_food=BEANS.name,
                                substitute_quantity="200",
                            ),
                        ),
                    ),
                    TemplateMealFood(
                        id="tf-5", food_name=BEANS.name, quantity="100", order_index=1
                    ),
                    TemplateMealFood(
                        id="tf-6", food_name=CHICKEN.name, quantity="120", order_index=2
                    ),
                    TemplateMealFood(
                        id="tf-7", food_name="Salada verde", quantity="80", order_index=3
                    ),
                ),
            ),
        ),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
    )


@pytest.fixture
def catalog_client() -> FakeCatalogClient:
    return FakeCatalogClient()


@pytest.fixture
def catalog_service(catalog_client: FakeCatalogClient) -> CatalogService:
    return CatalogService(client=catalog_client, cache=InMemoryCache())


@pytest.fixture
def plan_repository() -> InMemoryPlanRepository:
    repository = InMemoryPlanRepository()
    repository.add_plan(make_plan())
    return repository


@pytest.fixture
def template_repository() -> InMemoryTemplateRepository:
    repository = InMemoryTemplateRepository()
    repository.add_template(make_template())
    return repository


@pytest.fixture
def goals_repository() -> InMemoryGoalsRepository:
    return InMemoryGoalsRepository(
        goals={
            "client-1": MacroGoals(
                protein=150, carbs=200, fats=60, calories=2000, fiber=None
            )
        }
    )


@pytest.fixture
def plan_service(
    plan_repository: InMemoryPlanRepository, catalog_service: CatalogService
) -> PlanService:
    return PlanService(repository=plan_repository, catalog=catalog_service)


@pytest.fixture
def materializer(
    template_repository: InMemoryTemplateRepository,
    plan_repository: InMemoryPlanRepository,
    catalog_service: CatalogService,
) -> TemplateMaterializer:
    return TemplateMaterializer(
        templates=template_repository,
        plans=plan_repository,
        catalog=catalog_service,
    )


@pytest.fixture
def container(
    settings: Settings,
    catalog_service: CatalogService,
    plan_service: PlanService,
    template_repository: InMemoryTemplateRepository,
    goals_repository: InMemoryGoalsRepository,
    materializer: TemplateMaterializer,
) -> AppContainer:
    ranker = SearchRanker()

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        catalog_service=catalog_service,
        food_search_service=FoodSearchService(catalog=catalog_service, ranker=ranker),
        exercise_search_service=ExerciseSearchService(
            catalog=catalog_service, ranker=ranker
        ),
        goals_service=GoalsService(goals_repository),
        plan_service=plan_service,
        template_service=TemplateService(template_repository),
        template_materializer=materializer,
        close_resources=close_resources,
    )
