"""Knowledge search client — the generation agent's only capability.

Failures never cross this boundary as exceptions: ``search`` returns a
tagged ``SearchSuccess`` or ``SearchFailure`` so the agent loop can carry
on without the lookup.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

from lmn_fulfillment.exceptions import SearchError
from lmn_fulfillment.models import KnowledgeSearchResult, SearchResponse
from lmn_fulfillment.search.protocols import IKnowledgeIndex

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchSuccess:
    results: list[KnowledgeSearchResult] = field(default_factory=list)

    def to_response(self) -> SearchResponse:
        return SearchResponse(search_results=self.results, total_found=len(self.results))


@dataclass(frozen=True)
class SearchFailure:
    error: str


SearchOutcome = Union[SearchSuccess, SearchFailure]


class KnowledgeSearchClient:
    """Validates queries and shields callers from index failures."""

    def __init__(self, index: IKnowledgeIndex, *, default_top_k: int = 5) -> None:
        self._index = index
        self._default_top_k = default_top_k

    async def search(self, query: str, top_k: int | None = None) -> SearchOutcome:
        """Return up to *top_k* entries ordered by rerank score."""
        k = self._default_top_k if top_k is None else top_k
        if not query or not query.strip():
            return SearchFailure(error="query must be a non-empty string")
        if k < 1:
            return SearchFailure(error=f"topK must be a positive integer, got {k}")

        try:
            results = await self._index.search_records(query.strip(), k)
        except SearchError as e:
            log.warning("Knowledge search failed for %r: %s", query, e)
            return SearchFailure(error=str(e))

        ranked = sorted(results, key=lambda r: r.relevance_score, reverse=True)[:k]
        log.debug("Knowledge search %r returned %d results", query, len(ranked))
        return SearchSuccess(results=ranked)
