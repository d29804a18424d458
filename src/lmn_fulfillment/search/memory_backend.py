"""In-memory knowledge index — hashing embeddings plus lexical rerank."""

from __future__ import annotations

import logging
from pathlib import Path

from lmn_fulfillment.models import KnowledgeSearchResult
from lmn_fulfillment.search.embedder import HashingEmbedder, KeywordOverlapReranker, cosine
from lmn_fulfillment.search.protocols import ReferenceRecord

log = logging.getLogger(__name__)


class MemoryKnowledgeIndex:
    """Stores records and vectors in a dict — nothing leaves the process."""

    def __init__(
        self,
        embedder: HashingEmbedder | None = None,
        reranker: KeywordOverlapReranker | None = None,
    ) -> None:
        self._embedder = embedder or HashingEmbedder()
        self._reranker = reranker or KeywordOverlapReranker()
        self._records: dict[str, ReferenceRecord] = {}
        self._vectors: dict[str, list[float]] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def upsert_records(self, records: list[ReferenceRecord]) -> int:
        for record in records:
            self._records[record.code] = record
            self._vectors[record.code] = self._embedder.embed(_record_text(record))
        log.debug("Upserted %d records into memory index", len(records))
        return len(records)

    async def search_records(self, query: str, top_k: int) -> list[KnowledgeSearchResult]:
        if not self._records:
            return []
        query_vec = self._embedder.embed(query)
        retrieved = sorted(
            ((cosine(query_vec, vec), code) for code, vec in self._vectors.items()),
            key=lambda item: (-item[0], item[1]),
        )[:top_k]

        results: list[KnowledgeSearchResult] = []
        for score, code in retrieved:
            record = self._records[code]
            results.append(
                KnowledgeSearchResult(
                    icd_code=record.code,
                    condition=record.condition,
                    description=f"{record.condition} - {record.description}",
                    relevance_score=self._reranker.score(query, _record_text(record), score),
                )
            )
        results.sort(key=lambda r: (-r.relevance_score, r.icd_code))
        return results

    @classmethod
    def from_json_file(cls, path: Path) -> MemoryKnowledgeIndex:
        """Build a populated index from an ``{"icd10_codes": [...]}`` file."""
        from lmn_fulfillment.search.ingest import load_reference_records

        index = cls()
        for record in load_reference_records(path):
            index._records[record.code] = record
            index._vectors[record.code] = index._embedder.embed(_record_text(record))
        log.info("Loaded %d reference records from %s", len(index), path)
        return index


def _record_text(record: ReferenceRecord) -> str:
    return f"{record.condition} {record.description} {record.code}"

