"""Incremental search over catalog foods and exercises."""

import logging
import re
import unicodedata
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from nutrition_planner.domain.foods import ExerciseItem, FoodItem
from nutrition_planner.domain.search import SearchCandidate, SearchOutcome, SearchState
from nutrition_planner.services.catalog import CatalogClient

_WHITESPACE = re.compile(r"\s+")

_logger = logging.getLogger(__name__)


def normalize_text(text: str | None) -> str:
    """Lowercase, strip accents, treat commas as spaces and collapse whitespace."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return _WHITESPACE.sub(" ", stripped.replace(",", " ")).strip()


def tokenize(query: str) -> list[str]:
    """Split a query into normalized, non-empty tokens."""
    return [token for token in normalize_text(query).split(" ") if token]


@dataclass
class SearchRanker:
    """Filters and orders candidates for a free-text query.

    Every query token must appear in the candidate's name. Candidates from the
    secondary index (simplified names) are matched on that name and come
    first when deduplicating. Ordering puts names starting with the first
    token ahead of the rest, then sorts alphabetically ignoring accents.
    Callers debounce keystrokes; the ranker does not.
    """

    min_query_length: int = 2
    limit: int = 30

    def is_too_short(self, query: str) -> bool:
        """Return True when the raw query is below the search threshold."""
        return len(query.strip()) < self.min_query_length or not tokenize(query)

    def rank(
        self,
        query: str,
        primary: Iterable[SearchCandidate],
        secondary: Iterable[SearchCandidate] = (),
    ) -> SearchOutcome:
        """Return the ranked, deduplicated and capped outcome for ``query``."""
        if self.is_too_short(query):
            return SearchOutcome(state=SearchState.TOO_SHORT, query=query)
        tokens = tokenize(query)

        seen: set[object] = set()
        combined: list[SearchCandidate] = []
        for candidate in secondary:
            if candidate.id in seen or not _matches_secondary(candidate, tokens):
                continue
            seen.add(candidate.id)
            combined.append(candidate)
        for candidate in primary:
            if candidate.id in seen or not _contains_all(
                normalize_text(candidate.primary_name), tokens
            ):
                continue
            seen.add(candidate.id)
            combined.append(candidate)

        if not combined:
            return SearchOutcome(state=SearchState.NO_MATCHES, query=query)

        first_token = tokens[0]
        ordered = sorted(combined, key=lambda item: _sort_key(item, first_token))
        return SearchOutcome(
            state=SearchState.RESULTS, query=query, results=ordered[: self.limit]
        )


@dataclass
class FoodSearchService:
    """Resolves food picker input against the catalog."""

    catalog: CatalogClient
    ranker: SearchRanker
    lookup_limit: int = 30

    def search(self, query: str) -> SearchOutcome:
        """Search foods by catalog name and simplified name.

        Lookup failures are logged and treated as empty results.
        """
        if self.ranker.is_too_short(query):
            return SearchOutcome(state=SearchState.TOO_SHORT, query=query)
        by_name: list[FoodItem] = []
        by_simplified: list[FoodItem] = []
        for term in _lookup_terms(query):
            by_name += _best_effort(
                self.catalog.find_by_name_substring,
                term,
                self.lookup_limit,
                action="food name lookup",
                query=query,
            )
            by_simplified += _best_effort(
                self.catalog.find_by_simplified_name,
                term,
                self.lookup_limit,
                action="simplified name lookup",
                query=query,
            )
        return self.ranker.rank(
            query,
            primary=[_food_candidate(food) for food in by_name],
            secondary=[_food_candidate(food) for food in by_simplified],
        )


@dataclass
class ExerciseSearchService:
    """Resolves exercise picker input against the catalog."""

    catalog: CatalogClient
    ranker: SearchRanker
    lookup_limit: int = 30

    def search(self, query: str) -> SearchOutcome:
        """Search exercises by name; failures degrade to no results."""
        if self.ranker.is_too_short(query):
            return SearchOutcome(state=SearchState.TOO_SHORT, query=query)
        exercises: list[ExerciseItem] = []
        for term in _lookup_terms(query):
            exercises += _best_effort(
                self.catalog.find_exercises,
                term,
                self.lookup_limit,
                action="exercise lookup",
                query=query,
            )
        return self.ranker.rank(
            query, primary=[_exercise_candidate(item) for item in exercises]
        )


def _contains_all(name: str, tokens: Sequence[str]) -> bool:
    return all(token in name for token in tokens)


def _matches_secondary(candidate: SearchCandidate, tokens: Sequence[str]) -> bool:
    secondary = normalize_text(candidate.secondary_name)
    if not secondary:
        return False
    return _contains_all(secondary, tokens)


def _sort_key(
    candidate: SearchCandidate, first_token: str
) -> tuple[int, str, str, str]:
    secondary = normalize_text(candidate.secondary_name)
    primary = normalize_text(candidate.primary_name)
    if secondary and secondary.startswith(first_token):
        tier = 0
    elif primary.startswith(first_token):
        tier = 1
    else:
        tier = 2
    display = candidate.display_name
    return tier, normalize_text(display), display, str(candidate.id)


def _lookup_terms(query: str) -> list[str]:
    """Distinct raw words of the query, each looked up on its own.

    Lookups are capped, so a common word alone can crowd out the rows that
    match the whole query; any word's slice is enough for the ranker.
    """
    terms: dict[str, str] = {}
    for word in query.replace(",", " ").split():
        terms.setdefault(word.casefold(), word)
    return list(terms.values()) or [query.strip()]


def _best_effort(
    lookup: Callable[..., list], *args: object, action: str, query: str
) -> list:
    try:
        return lookup(*args)
    except Exception:
        _logger.exception("Catalog %s failed", action, extra={"query": query})
        return []


def _food_candidate(food: FoodItem) -> SearchCandidate:
    return SearchCandidate(
        id=food.id,
        primary_name=food.name,
        secondary_name=food.simplified_name,
        payload=food,
    )


def _exercise_candidate(exercise: ExerciseItem) -> SearchCandidate:
    return SearchCandidate(id=exercise.id, primary_name=exercise.name, payload=exercise)
