"""Supabase implementation of the food and exercise catalog."""

from dataclasses import dataclass

from supabase import Client

from nutrition_planner.adapters.supabase_rows import parse_unit_type
from nutrition_planner.domain.foods import (
    ExerciseItem,
    FoodItem,
    NutrientProfile,
    UnitMetadata,
)
from nutrition_planner.parsers import parse_locale_number, parse_optional_number
from nutrition_planner.services.catalog import CatalogClient

_FOOD_COLUMNS = "*, food_metadata(*)"


@dataclass
class SupabaseCatalogRepository(CatalogClient):
    """Reads the TACO food table, its metadata and the exercise library.

    Name lookups use PostgREST ``ilike``, which ignores case but not accents:
    "acucar" does not find "Açúcar". Search ranking folds accents, but only
    over the rows these lookups return, so unaccented input misses accented
    catalog names unless the database side normalizes them.
    """

    client: Client

    def find_by_name_substring(self, query: str, limit: int) -> list[FoodItem]:
        """Search catalog names with a case-insensitive substring match."""
        response = (
            self.client.table("tabela_taco")
            .select(_FOOD_COLUMNS)
            .ilike("alimento", f"%{query}%")
            .limit(limit)
            .execute()
        )
        return [_parse_food(row) for row in response.data or []]

    def find_by_simplified_name(self, query: str, limit: int) -> list[FoodItem]:
        """Search simplified names, then load the matching catalog rows."""
        metadata_response = (
            self.client.table("food_metadata")
            .select("taco_id, nome_simplificado, unidade_tipo, peso_por_unidade")
            .ilike("nome_simplificado", f"%{query}%")
            .limit(limit)
            .execute()
        )
        metadata = {
            int(row["taco_id"]): row
            for row in metadata_response.data or []
            if row.get("taco_id") is not None
        }
        if not metadata:
            return []
        foods_response = (
            self.client.table("tabela_taco")
            .select("*")
            .in_("id", list(metadata))
            .execute()
        )
        return [
            _parse_food(row, metadata.get(int(row["id"])))
            for row in foods_response.data or []
        ]

    def find_by_names(self, names: list[str]) -> list[FoodItem]:
        """Return catalog rows whose name is exactly one of ``names``."""
        if not names:
            return []
        response = (
            self.client.table("tabela_taco")
            .select(_FOOD_COLUMNS)
            .in_("alimento", names)
            .execute()
        )
        return [_parse_food(row) for row in response.data or []]

    def get_nutrient_profile(self, food_id: int) -> NutrientProfile | None:
        response = (
            self.client.table("tabela_taco")
            .select("*")
            .eq("id", food_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_profile(response.data[0])

    def get_unit_metadata(self, food_id: int) -> UnitMetadata | None:
        response = (
            self.client.table("food_metadata")
            .select("unidade_tipo, peso_por_unidade")
            .eq("taco_id", food_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_unit(response.data[0])

    def find_exercises(self, query: str, limit: int) -> list[ExerciseItem]:
        """Search exercise names with a case-insensitive substring match."""
        response = (
            self.client.table("exercise_library")
            .select("id, name, muscle_group")
            .ilike("name", f"%{query}%")
            .order("name")
            .limit(limit)
            .execute()
        )
        return [
            ExerciseItem(
                id=str(row["id"]),
                name=str(row.get("name") or ""),
                muscle_group=row.get("muscle_group"),
            )
            for row in response.data or []
        ]


def _parse_food(
    row: dict[str, object], metadata: dict[str, object] | None = None
) -> FoodItem:
    """Parse a ``tabela_taco`` row, with its metadata embedded or passed in."""
    if metadata is None:
        embedded = row.get("food_metadata")
        if isinstance(embedded, list):
            embedded = embedded[0] if embedded else None
        metadata = embedded if isinstance(embedded, dict) else None
    return FoodItem(
        id=int(row["id"]),
        name=str(row.get("alimento") or ""),
        profile=_parse_profile(row),
        unit=_parse_unit(metadata) if metadata else None,
        simplified_name=(metadata or {}).get("nome_simplificado") or None,
    )


def _parse_profile(row: dict[str, object]) -> NutrientProfile:
    return NutrientProfile(
        calories=parse_locale_number(row.get("caloria")),
        protein=parse_locale_number(row.get("proteina")),
        carbs=parse_locale_number(row.get("carboidrato")),
        fat=parse_locale_number(row.get("gordura")),
        fiber=parse_locale_number(row.get("fibra")),
    )


def _parse_unit(row: dict[str, object]) -> UnitMetadata:
    return UnitMetadata(
        unit_type=parse_unit_type(row.get("unidade_tipo")),
        grams_per_unit=parse_optional_number(row.get("peso_por_unidade")),
    )
