"""Deterministic hashing embedder and lexical reranker for offline search."""

from __future__ import annotations

import re
from hashlib import blake2b
from math import sqrt

_TOKEN_RE = re.compile(r"[a-z0-9]+(?:\.[a-z0-9]+)?")


def tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


class HashingEmbedder:
    """Signed feature-hashing embedding, unit-normalized.

    Deterministic and dependency-free; stands in for a hosted embedding
    model in tests and local runs.
    """

    def __init__(self, dimension: int = 256) -> None:
        self.dimension = dimension

    def embed(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        tokens = tokenize(text)
        if not tokens:
            return vector

        for token in tokens:
            digest = blake2b(token.encode("utf-8"), digest_size=8).digest()
            idx = int.from_bytes(digest[:4], "little") % self.dimension
            sign = -1.0 if digest[4] % 2 else 1.0
            vector[idx] += sign

        norm = sqrt(sum(value * value for value in vector))
        if norm == 0:
            return vector
        return [value / norm for value in vector]


def cosine(a: list[float], b: list[float]) -> float:
    return sum(x * y for x, y in zip(a, b))


class KeywordOverlapReranker:
    """Rescores candidates by query-term coverage blended with retrieval score."""

    def __init__(self, overlap_weight: float = 0.6) -> None:
        self._overlap_weight = overlap_weight

    def score(self, query: str, text: str, retrieval_score: float) -> float:
        query_terms = set(tokenize(query))
        if not query_terms:
            return max(0.0, retrieval_score)
        text_terms = set(tokenize(text))
        overlap = len(query_terms & text_terms) / len(query_terms)
        blended = (max(0.0, retrieval_score) * (1 - self._overlap_weight)) + (
            overlap * self._overlap_weight
        )
        return min(1.0, blended)
