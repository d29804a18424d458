"""Pinecone integrated-inference index over the records REST API.

The index embeds ``chunk_text`` server-side; each search retrieves
``top_k`` hits and reranks those same hits with a cross-encoder.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from lmn_fulfillment.core.config import SearchConfig
from lmn_fulfillment.exceptions import SearchError
from lmn_fulfillment.models import KnowledgeSearchResult
from lmn_fulfillment.search.protocols import ReferenceRecord

log = logging.getLogger(__name__)


class PineconeKnowledgeIndex:
    """Knowledge index backed by a Pinecone serverless index with integrated embedding."""

    def __init__(
        self,
        config: SearchConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not config.index_host:
            raise ValueError("Pinecone index host is required (LMN_SEARCH_INDEX_HOST)")
        self._config = config
        self._base_url = config.index_host.rstrip("/")
        if not self._base_url.startswith("http"):
            self._base_url = f"https://{self._base_url}"
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._config.timeout,
            transport=self._transport,
            headers={
                "Api-Key": self._config.api_key,
                "X-Pinecone-API-Version": self._config.api_version,
            },
        )

    def _namespace_path(self, action: str) -> str:
        return f"/records/namespaces/{self._config.namespace}/{action}"

    async def search_records(self, query: str, top_k: int) -> list[KnowledgeSearchResult]:
        body: dict[str, Any] = {
            "query": {"inputs": {"text": query}, "top_k": top_k},
            "fields": ["chunk_text", "condition"],
            "rerank": {
                "model": self._config.rerank_model,
                "rank_fields": ["chunk_text"],
                "top_n": top_k,
            },
        }
        try:
            async with self._client() as client:
                response = await client.post(self._namespace_path("search"), json=body)
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as e:
            raise SearchError(f"Knowledge search timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise SearchError(
                f"Knowledge search failed with HTTP {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise SearchError(f"Knowledge search failed: {e}") from e

        if not isinstance(payload, dict):
            raise SearchError(f"Knowledge search returned {type(payload).__name__}, expected an object")
        result = payload.get("result") or {}
        if not isinstance(result, dict):
            raise SearchError("Knowledge search result must be an object")
        hits = result.get("hits") or []
        if not isinstance(hits, list):
            raise SearchError("Knowledge search hits must be a list")
        try:
            return [self._to_result(hit) for hit in hits]
        except (AttributeError, TypeError, PydanticValidationError) as e:
            raise SearchError(f"Malformed knowledge search hit: {e}") from e

    @staticmethod
    def _to_result(hit: Any) -> KnowledgeSearchResult:
        if not isinstance(hit, dict):
            raise TypeError(f"hit is {type(hit).__name__}, expected an object")
        fields = hit.get("fields") or {}
        condition = str(fields.get("condition") or "")
        chunk_text = str(fields.get("chunk_text") or "")
        return KnowledgeSearchResult(
            icd_code=str(hit.get("_id") or hit.get("id") or ""),
            condition=condition,
            description=f"{condition} - {chunk_text}",
            relevance_score=hit.get("_score", 0.0),
        )

    async def upsert_records(self, records: list[ReferenceRecord]) -> int:
        if not records:
            return 0
        lines = "\n".join(
            json.dumps({"_id": r.code, "chunk_text": r.description, "condition": r.condition})
            for r in records
        )
        try:
            async with self._client() as client:
                response = await client.post(
                    self._namespace_path("upsert"),
                    content=lines.encode("utf-8"),
                    headers={"Content-Type": "application/x-ndjson"},
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SearchError(
                f"Upsert failed with HTTP {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise SearchError(f"Upsert failed: {e}") from e
        log.debug("Upserted %d records into namespace %s", len(records), self._config.namespace)
        return len(records)
