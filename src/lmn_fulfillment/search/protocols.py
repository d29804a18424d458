"""Knowledge index protocol: semantic retrieval plus rerank over coded entries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from lmn_fulfillment.models import KnowledgeSearchResult


@dataclass(frozen=True)
class ReferenceRecord:
    """One coded reference entry as stored in the index."""

    code: str
    description: str
    condition: str = ""


@runtime_checkable
class IKnowledgeIndex(Protocol):
    """Protocol for knowledge-search backends (Pinecone, in-memory, etc.).

    ``search_records`` returns hits already reranked: retrieval selects
    ``top_k`` candidates, then a reranker orders those same candidates.
    """

    async def search_records(self, query: str, top_k: int) -> list[KnowledgeSearchResult]:
        """Return up to *top_k* entries in rerank order. Raises SearchError on failure."""
        ...

    async def upsert_records(self, records: list[ReferenceRecord]) -> int:
        """Insert or replace *records*. Returns the number written."""
        ...
