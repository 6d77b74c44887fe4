# -*- coding: utf-8 -*-
"""
SearchResult
============
Pure data container for retrieval results; produced per query, never persisted.

- `chunk`: the matched EmbeddedChunk
- `score`: hybrid score (cosine similarity + keyword boost, capped at 1.0)
"""
from __future__ import annotations
from dataclasses import dataclass

from ragdocs.retrieval.chunk import EmbeddedChunk

@dataclass(frozen=True, slots=True)
class SearchResult:
    chunk: EmbeddedChunk
    score: float
