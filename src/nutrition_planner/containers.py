"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrition_planner.adapters.supabase_catalog_repository import (
    SupabaseCatalogRepository,
)
from nutrition_planner.adapters.supabase_goals_repository import (
    SupabaseGoalsRepository,
)
from nutrition_planner.adapters.supabase_plan_repository import SupabasePlanRepository
from nutrition_planner.adapters.supabase_template_repository import (
    SupabaseTemplateRepository,
)
from nutrition_planner.config import Settings
from nutrition_planner.services.cache import InMemoryCache
from nutrition_planner.services.catalog import CatalogService
from nutrition_planner.services.goals import GoalsService
from nutrition_planner.services.plans import PlanService
from nutrition_planner.services.search import (
    ExerciseSearchService,
    FoodSearchService,
    SearchRanker,
)
from nutrition_planner.services.templates import TemplateMaterializer, TemplateService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    catalog_service: CatalogService
    food_search_service: FoodSearchService
    exercise_search_service: ExerciseSearchService
    goals_service: GoalsService
    plan_service: PlanService
    template_service: TemplateService
    template_materializer: TemplateMaterializer
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    catalog_repository = SupabaseCatalogRepository(supabase_client)
    plan_repository = SupabasePlanRepository(supabase_client)
    template_repository = SupabaseTemplateRepository(supabase_client)
    goals_repository = SupabaseGoalsRepository(supabase_client)
    cache = InMemoryCache()
    catalog_service = CatalogService(
        client=catalog_repository,
        cache=cache,
        ttl_seconds=resolved_settings.catalog_cache_ttl_seconds,
        debug=resolved_settings.debug,
    )
    ranker = SearchRanker(
        min_query_length=resolved_settings.search_min_query_length,
        limit=resolved_settings.search_result_limit,
    )

    async def close_resources() -> None:
        cache.invalidate()

    return AppContainer(
        settings=resolved_settings,
        catalog_service=catalog_service,
        food_search_service=FoodSearchService(
            catalog=catalog_service,
            ranker=ranker,
            lookup_limit=resolved_settings.catalog_lookup_limit,
        ),
        exercise_search_service=ExerciseSearchService(
            catalog=catalog_service,
            ranker=ranker,
            lookup_limit=resolved_settings.catalog_lookup_limit,
        ),
        goals_service=GoalsService(goals_repository),
        plan_service=PlanService(repository=plan_repository, catalog=catalog_service),
        template_service=TemplateService(template_repository),
        template_materializer=TemplateMaterializer(
            templates=template_repository,
            plans=plan_repository,
            catalog=catalog_service,
        ),
        close_resources=close_resources,
    )
