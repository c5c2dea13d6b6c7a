"""Catalog access: the client interface and a cached facade over it."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from nutrition_planner.domain.foods import (
    ExerciseItem,
    FoodItem,
    NutrientProfile,
    UnitMetadata,
)
from nutrition_planner.services.cache import Cache

_logger = logging.getLogger(__name__)


class CatalogClient(Protocol):
    """Read interface to the food and exercise catalog."""

    def find_by_name_substring(self, query: str, limit: int) -> list[FoodItem]:
        """Return foods whose catalog name contains ``query``."""

    def find_by_simplified_name(self, query: str, limit: int) -> list[FoodItem]:
        """Return foods whose simplified name contains ``query``."""

    def find_by_names(self, names: list[str]) -> list[FoodItem]:
        """Return foods whose catalog name is exactly one of ``names``."""

    def get_nutrient_profile(self, food_id: int) -> NutrientProfile | None:
        """Return per-100 g nutrients for a food, if known."""

    def get_unit_metadata(self, food_id: int) -> UnitMetadata | None:
        """Return the semantic unit for a food, if known."""

    def find_exercises(self, query: str, limit: int) -> list[ExerciseItem]:
        """Return exercises whose name contains ``query``."""


@dataclass
class CatalogService(CatalogClient):
    """Catalog client with a TTL cache in front of it."""

    client: CatalogClient
    cache: Cache
    ttl_seconds: int = 3600
    debug: bool = False

    def find_by_name_substring(self, query: str, limit: int) -> list[FoodItem]:
        """Search catalog names, caching per query."""
        cache_key = f"food:search:name:{query.lower()}:{limit}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached
        foods = self.client.find_by_name_substring(query, limit)
        self._remember(cache_key, foods)
        return foods

    def find_by_simplified_name(self, query: str, limit: int) -> list[FoodItem]:
        """Search simplified names, caching per query."""
        cache_key = f"food:search:simplified:{query.lower()}:{limit}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached
        foods = self.client.find_by_simplified_name(query, limit)
        self._remember(cache_key, foods)
        return foods

    def find_by_names(self, names: list[str]) -> list[FoodItem]:
        """Return foods by exact name; only uncached names hit the client."""
        found: list[FoodItem] = []
        missing: list[str] = []
        for name in dict.fromkeys(names):
            cached = self.cache.get(f"food:name:{name}")
            if isinstance(cached, FoodItem):
                found.append(cached)
            elif name:
                missing.append(name)
        if missing:
            for food in self.client.find_by_names(missing):
                self._remember(f"food:name:{food.name}", food)
                found.append(food)
        return found

    def get_nutrient_profile(self, food_id: int) -> NutrientProfile | None:
        """Return per-100 g nutrients for a food."""
        cache_key = f"food:profile:{food_id}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, NutrientProfile):
            return cached
        profile = self.client.get_nutrient_profile(food_id)
        if profile is not None:
            self._remember(cache_key, profile)
        return profile

    def get_unit_metadata(self, food_id: int) -> UnitMetadata | None:
        """Return the semantic unit of a food."""
        cache_key = f"food:unit:{food_id}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, UnitMetadata):
            return cached
        metadata = self.client.get_unit_metadata(food_id)
        if metadata is not None:
            self._remember(cache_key, metadata)
        return metadata

    def find_exercises(self, query: str, limit: int) -> list[ExerciseItem]:
        """Search exercises, caching per query."""
        cache_key = f"exercise:search:{query.lower()}:{limit}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached
        exercises = self.client.find_exercises(query, limit)
        self._remember(cache_key, exercises)
        return exercises

    def foods_by_name(self, names: Iterable[str]) -> dict[str, FoodItem]:
        """Map each known food name to its catalog item."""
        return {food.name: food for food in self.find_by_names(list(names))}

    def profiles_by_name(self, names: Iterable[str]) -> dict[str, NutrientProfile]:
        """Map each known food name to its per-100 g profile."""
        return {name: food.profile for name, food in self.foods_by_name(names).items()}

    def invalidate(self, food_id: int | None = None) -> None:
        """Forget cached catalog data after a catalog edit.

        With a ``food_id`` only that food's profile and unit are dropped, along
        with name and search results that may embed it.
        """
        if food_id is None:
            dropped = self.cache.invalidate("food:") + self.cache.invalidate(
                "exercise:"
            )
        else:
            dropped = (
                self.cache.delete(f"food:profile:{food_id}")
                + self.cache.delete(f"food:unit:{food_id}")
                + self.cache.invalidate("food:name:")
                + self.cache.invalidate("food:search:")
            )
        if self.debug:
            _logger.info(
                "Catalog cache invalidated: food_id=%s entries=%s", food_id, dropped
            )

    def _remember(self, key: str, value: object) -> None:
        self.cache.set(key, value, ttl_seconds=self.ttl_seconds)
