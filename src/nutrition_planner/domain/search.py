"""Domain models for incremental catalog search."""

from dataclasses import dataclass, field
from enum import StrEnum


class SearchState(StrEnum):
    """Outcome kinds a picker renders differently."""

    TOO_SHORT = "too_short"
    NO_MATCHES = "no_matches"
    RESULTS = "results"


@dataclass(frozen=True)
class SearchCandidate:
    """A catalog item as seen by the ranker."""

    id: object
    primary_name: str
    secondary_name: str | None = None
    payload: object | None = None

    @property
    def display_name(self) -> str:
        return self.secondary_name or self.primary_name


@dataclass(frozen=True)
class SearchOutcome:
    """Ranked search results plus the state that produced them."""

    state: SearchState
    query: str
    results: list[SearchCandidate] = field(default_factory=list)
