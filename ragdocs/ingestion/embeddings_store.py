# -*- coding: utf-8 -*-
"""
embeddings_store.py

Purpose:
    Persist and load the embeddings file consumed at query time.

What this module provides:
    1) EmbeddingsStore
       - model, dimensions, generated_at, chunks (ordered EmbeddedChunk list)
       - matrix(): cached float32 array of shape (N, D) for vectorised scoring
    2) load_embeddings(path) -> EmbeddingsStore
    3) save_embeddings(store, path) -> None       (atomic: *.tmp then os.replace)
    4) StoreCache(path)                           (load once per process)

JSON written to disk:
    {
      "model": "sentence-transformers/all-MiniLM-L6-v2",
      "dimensions": 384,
      "generatedAt": "YYYY-MM-DDTHH:MM:SSZ",
      "chunks": [{"id", "project", "file", "section", "content", "embedding"}, ...]
    }

Notes:
    - The file is rewritten wholesale by the generator; there are no partial updates.
    - A missing file is a hard failure (FileNotFoundError). Retrieval cannot
      proceed without it, so callers must not swallow it here.
"""

from __future__ import annotations

import asyncio
import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

from ragdocs.retrieval.chunk import EmbeddedChunk
from ragdocs.utils.logging import SimpleLogger
from ragdocs.utils.single_flight import SingleFlight


@dataclass
class EmbeddingsStore:
    model: str
    dimensions: int
    generated_at: str
    chunks: List[EmbeddedChunk] = field(default_factory=list)
    _matrix: Optional[np.ndarray] = field(default=None, init=False, repr=False, compare=False)

    def matrix(self) -> np.ndarray:
        """All chunk embeddings stacked as float32 (N, D); (0, D) when empty."""
        if self._matrix is None:
            if self.chunks:
                self._matrix = np.asarray([c.embedding for c in self.chunks], dtype=np.float32)
            else:
                self._matrix = np.zeros((0, self.dimensions), dtype=np.float32)
        return self._matrix

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "dimensions": self.dimensions,
            "generatedAt": self.generated_at,
            "chunks": [c.to_dict() for c in self.chunks],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmbeddingsStore":
        try:
            chunks = [EmbeddedChunk.from_dict(c) for c in data["chunks"]]
            store = cls(
                model=str(data["model"]),
                dimensions=int(data["dimensions"]),
                generated_at=str(data.get("generatedAt", "")),
                chunks=chunks,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Embeddings data is malformed: {e!r}") from e

        for c in chunks:
            if len(c.embedding) != store.dimensions:
                raise ValueError(
                    f"Chunk {c.id!r} has {len(c.embedding)} dimensions, expected {store.dimensions}"
                )
        return store


def load_embeddings(path: Path | str) -> EmbeddingsStore:
    """
    Read the embeddings file.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the file is not valid JSON or lacks required fields.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Embeddings file not found: {p}")

    try:
        with p.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Embeddings file is not valid JSON: {p}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Embeddings file must hold a JSON object: {p}")
    store = EmbeddingsStore.from_dict(data)
    SimpleLogger.info(f"Loaded {len(store.chunks)} chunks ({store.model}, {store.dimensions}d) from {p}")
    return store


def save_embeddings(store: EmbeddingsStore, path: Path | str) -> None:
    """Write the ENTIRE embeddings file atomically."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    if not store.generated_at:
        store.generated_at = utc_now_iso()

    tmp_path = p.with_suffix(p.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(store.to_dict(), f, ensure_ascii=False, indent=2)

    # either the old file stays, or the new one fully replaces it
    os.replace(str(tmp_path), str(p))


def utc_now_iso() -> str:
    """Return a UTC timestamp in ISO-8601 format with 'Z' suffix."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class StoreCache:
    """Process-scoped embeddings store, read from disk on first use only."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._flight: SingleFlight[EmbeddingsStore] = SingleFlight(self._load)

    async def get(self) -> EmbeddingsStore:
        return await self._flight.get()

    async def _load(self) -> EmbeddingsStore:
        store = await asyncio.to_thread(load_embeddings, self.path)
        store.matrix()
        return store

    def reset(self) -> None:
        self._flight.reset()
