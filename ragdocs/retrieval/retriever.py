# -*- coding: utf-8 -*-
"""
Retriever
=========
Hybrid (semantic + keyword) search over the embeddings file.

Pipeline: query text --(embedder)--> vector
          embeddings file --(StoreCache, loaded once)--> candidate chunks
          cosine(query, chunk) + keyword boost --> SearchResult list

Notes
-----
* Scores are `min(cosine + boost, 1.0)`. Cosine is exactly 0.0 when either
  vector has zero magnitude, so NaN/Inf never reach the ranking.
* Sorting is stable and descending; ties keep their store order.
* If nothing clears `min_score` but candidates exist, the best
  `min(fallback_k, top_k)` are returned anyway. An empty candidate set
  (empty store, unknown project) returns [].
* Embedding errors propagate; the chat layer decides whether they are fatal.
"""
from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

import numpy as np

from ragdocs.config.settings import Settings
from ragdocs.ingestion.embedder import make_embedder
from ragdocs.ingestion.embeddings_store import EmbeddingsStore, StoreCache
from ragdocs.retrieval.keyword_boost import extract_keywords, keyword_boost
from ragdocs.retrieval.options import RetrievalOptions
from ragdocs.retrieval.search_result import SearchResult
from ragdocs.utils.logging import SimpleLogger
from ragdocs.utils.paths import PATHS
from ragdocs.utils.single_flight import SingleFlight


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| * |b|); 0.0 if either vector has zero magnitude."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"vector length mismatch: {va.shape} vs {vb.shape}")
    na = float(np.linalg.norm(va))
    nb = float(np.linalg.norm(vb))
    if na == 0.0 or nb == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (na * nb))


def cosine_scores(matrix: np.ndarray, q: np.ndarray) -> np.ndarray:
    """Row-wise cosine of `matrix` (N, D) against `q` (D,); zero-norm rows score 0.0."""
    qn = float(np.linalg.norm(q))
    if matrix.shape[0] == 0 or qn == 0.0:
        return np.zeros(matrix.shape[0], dtype=np.float64)
    A = matrix.astype(np.float64, copy=False)
    norms = np.linalg.norm(A, axis=1)
    dots = A @ q.astype(np.float64)
    sims = np.zeros(A.shape[0], dtype=np.float64)
    nonzero = norms > 0.0
    sims[nonzero] = dots[nonzero] / (norms[nonzero] * qn)
    return sims


class Retriever:
    """
    High-level retrieval orchestrator.

    Parameters
    ----------
    store : StoreCache
        Process-scoped embeddings store (loaded on first search).
    embedder :
        Object exposing `model_name` and async `embed_query(text)`; must be the
        same model and normalisation used to build the store.
    """

    def __init__(self, store: StoreCache, embedder) -> None:
        self._store = store
        self._emb = embedder

    # ---- public API ----
    async def search(self, query: str, options: Optional[RetrievalOptions] = None) -> List[SearchResult]:
        """
        Ranked chunks for `query`, highest score first.

        Steps:
        1) Load the store and embed the query (concurrently).
        2) Optionally restrict candidates to one project.
        3) Cosine-score every candidate, then add keyword boosts (capped at 1.0).
        4) Threshold on min_score and cut to top_k; fall back when nothing qualifies.
        """
        options = options or RetrievalOptions()
        if not query or not query.strip():
            return []

        store, q_vec = await asyncio.gather(self._store.get(), self._emb.embed_query(query))
        q = self._check_query_vector(store, q_vec)

        matrix = store.matrix()
        indices = list(range(len(store.chunks)))
        if options.project_filter:
            indices = [i for i in indices if store.chunks[i].project == options.project_filter]
        if not indices:
            return []

        sims = cosine_scores(matrix[indices], q)
        scored = [SearchResult(chunk=store.chunks[i], score=float(s)) for i, s in zip(indices, sims)]
        scored.sort(key=lambda r: r.score, reverse=True)

        keywords = extract_keywords(query, options.boost)
        boosted = [
            SearchResult(
                chunk=r.chunk,
                score=min(r.score + keyword_boost(r.chunk, keywords, options.boost,
                                                  include_project=options.include_project_in_keywords), 1.0),
            )
            for r in scored
        ]
        boosted.sort(key=lambda r: r.score, reverse=True)

        results = [r for r in boosted if r.score >= options.min_score][: options.top_k]
        if not results and boosted:
            k = min(options.fallback_k, options.top_k)
            SimpleLogger.debug(
                f"Retriever: no chunk reached min_score={options.min_score:.2f}; returning top {k}"
            )
            return boosted[:k]
        return results

    # ---- helpers ----
    def _check_query_vector(self, store: EmbeddingsStore, vector: Sequence[float]) -> np.ndarray:
        q = np.asarray(vector, dtype=np.float64).reshape(-1)
        if q.shape[0] != store.dimensions:
            raise ValueError(
                f"query embedding has {q.shape[0]} dimensions but the store uses {store.dimensions} "
                f"({store.model}); rebuild the embeddings with the query model"
            )
        model = getattr(self._emb, "model_name", None)
        if model and store.model and not _same_model(model, store.model):
            SimpleLogger.warning(f"Retriever: query model {model!r} differs from store model {store.model!r}")
        return q


def _same_model(a: str, b: str) -> bool:
    # "Xenova/all-MiniLM-L6-v2" and "sentence-transformers/all-MiniLM-L6-v2" are the same weights
    return a.rsplit("/", 1)[-1].lower() == b.rsplit("/", 1)[-1].lower()


async def _build_default() -> Retriever:
    path = Settings.get_path("RAGDOCS_EMBEDDINGS_PATH", PATHS["embeddings"])
    return Retriever(StoreCache(path), make_embedder())


# Process-scoped; built once from Settings on first use. reset() rebuilds it.
DEFAULT_RETRIEVER: SingleFlight[Retriever] = SingleFlight(_build_default)


async def search_context(
        query: str,
        options: Optional[RetrievalOptions] = None,
        retriever: Optional[Retriever] = None,
) -> List[SearchResult]:
    """
    Search with `retriever`, or the process-wide one built from Settings.
    Without explicit options the deployment's own are used (RAGDOCS_POLICY,
    RAGDOCS_OWNER_NAME as a stopword).
    """
    if retriever is None:
        retriever = await DEFAULT_RETRIEVER.get()
    if options is None:
        options = RetrievalOptions.from_settings()
    return await retriever.search(query, options)
