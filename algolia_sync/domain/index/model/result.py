"""Type-safe result types for index searches."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class SearchResult(BaseModel):
    """Result of a search.

    ``hits`` are the raw hits returned by the remote index. When searching by
    entity class, ``entities`` holds the matching local entities (or None for
    hits whose entity no longer exists locally).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    hits: list[dict[str, Any]]
    total: int
    query: str
    raw: dict[str, Any] = {}
    entities: list[Any] | None = None

    @classmethod
    def from_response(
        cls, query: str, response: dict[str, Any], entities: list[Any] | None = None
    ) -> "SearchResult":
        hits = response.get("hits", [])
        return cls(
            hits=hits,
            total=response.get("nbHits", len(hits)),
            query=query,
            raw=response,
            entities=entities,
        )

    @property
    def is_hydrated(self) -> bool:
        return self.entities is not None


class CommitSummary(BaseModel, frozen=True):
    """Number of objects sent per operation during one commit phase."""

    created: int = 0
    updated: int = 0
    deleted: int = 0

    @property
    def total(self) -> int:
        return self.created + self.updated + self.deleted
