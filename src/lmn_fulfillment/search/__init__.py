"""Knowledge search over coded medical reference data."""

from __future__ import annotations

from lmn_fulfillment.search.client import (
    KnowledgeSearchClient,
    SearchFailure,
    SearchOutcome,
    SearchSuccess,
)
from lmn_fulfillment.search.memory_backend import MemoryKnowledgeIndex
from lmn_fulfillment.search.protocols import IKnowledgeIndex, ReferenceRecord

__all__ = [
    "IKnowledgeIndex",
    "KnowledgeSearchClient",
    "MemoryKnowledgeIndex",
    "ReferenceRecord",
    "SearchFailure",
    "SearchOutcome",
    "SearchSuccess",
    "create_knowledge_index",
]


def create_knowledge_index(config: object) -> IKnowledgeIndex:
    """Build the configured index from a ``SearchConfig``."""
    backend = getattr(config, "backend", "memory")
    if backend == "pinecone":
        from lmn_fulfillment.search.pinecone_backend import PineconeKnowledgeIndex

        return PineconeKnowledgeIndex(config)  # type: ignore[arg-type]
    seed_path = getattr(config, "seed_path", None)
    if seed_path is not None:
        return MemoryKnowledgeIndex.from_json_file(seed_path)
    return MemoryKnowledgeIndex()
