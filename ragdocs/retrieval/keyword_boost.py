"""
Keyword boost
=============
Literal-match signal added on top of cosine similarity.

Embeddings under-weight rare proper nouns (project names, product names), so a
chunk that literally contains a query keyword gets a fixed bonus per keyword.
"""
from typing import List

from ragdocs.retrieval.chunk import Chunk
from ragdocs.retrieval.options import KeywordBoostConfig


def extract_keywords(query: str, config: KeywordBoostConfig) -> List[str]:
    """Lowercased whitespace tokens minus short tokens and stopwords (duplicates kept)."""
    return [
        w for w in query.lower().split()
        if len(w) >= config.min_keyword_length and w not in config.stopwords
    ]


def keyword_boost(chunk: Chunk, keywords: List[str], config: KeywordBoostConfig, include_project: bool = False) -> float:
    if not keywords:
        return 0.0
    haystack = f"{chunk.content} {chunk.section}"
    if include_project:
        haystack = f"{haystack} {chunk.project}"
    haystack = haystack.lower()

    boost = 0.0
    for kw in keywords:
        if kw in haystack:
            boost += config.long_boost if len(kw) >= config.long_keyword_min_length else config.short_boost
    return boost
