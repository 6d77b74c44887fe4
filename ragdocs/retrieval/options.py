# -*- coding: utf-8 -*-
"""
Retrieval options
=================
Tunable knobs for search and context formatting, grouped per deployment target.

CLOUD : large hosted model; more context, lower threshold, labelled context with citations.
LOCAL : small in-browser/on-device model; less context, stricter threshold, terse context.

Every value here is configuration, not contract: override per call with
`RetrievalOptions.for_policy(policy, top_k=...)` or `dataclasses.replace`.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, Optional

from ragdocs.config.settings import Settings

# Articles, pronouns, question words and filler that carry no retrieval signal.
DEFAULT_STOPWORDS: FrozenSet[str] = frozenset({
    "the", "and", "for", "what", "how", "does", "has", "about", "tell",
    "can", "you", "with", "this", "that", "are", "was", "been",
    "who", "why", "when", "where", "which", "his", "her", "him", "she",
    "they", "them", "their", "its", "your", "yours", "our", "ours",
    "these", "those", "did", "any", "some",
})


class DeploymentPolicy(str, Enum):
    CLOUD = "cloud"
    LOCAL = "local"


class FormatPolicy(str, Enum):
    LABELED = "labeled"   # grouped by project, relevance tiers, cite sources
    TERSE = "terse"       # plain background text, no metadata to echo back


@dataclass(frozen=True)
class KeywordBoostConfig:
    long_boost: float = 0.15
    short_boost: float = 0.08
    long_keyword_min_length: int = 5     # keywords longer than 4 chars get long_boost
    min_keyword_length: int = 3          # keywords of 2 chars or fewer are ignored
    stopwords: FrozenSet[str] = DEFAULT_STOPWORDS

    def with_extra_stopwords(self, *words: str) -> "KeywordBoostConfig":
        """Add names (e.g. the assistant's or owner's) that appear in most questions."""
        extra = {w.lower() for word in words for w in word.split() if w}
        return replace(self, stopwords=self.stopwords | frozenset(extra))


@dataclass(frozen=True)
class RetrievalOptions:
    top_k: int = 8
    min_score: float = 0.20
    project_filter: Optional[str] = None
    fallback_k: int = 5
    include_project_in_keywords: bool = False
    format_policy: FormatPolicy = FormatPolicy.LABELED
    boost: KeywordBoostConfig = field(default_factory=KeywordBoostConfig)

    def __post_init__(self) -> None:
        if self.top_k <= 0:
            raise ValueError("top_k must be positive")
        if self.fallback_k < 0:
            raise ValueError("fallback_k must be non-negative")

    @classmethod
    def for_policy(cls, policy: DeploymentPolicy | str, **overrides) -> "RetrievalOptions":
        policy = DeploymentPolicy(policy)
        if policy is DeploymentPolicy.CLOUD:
            base = cls(
                top_k=8,
                min_score=0.20,
                include_project_in_keywords=False,
                format_policy=FormatPolicy.LABELED,
            )
        else:
            base = cls(
                top_k=4,
                min_score=0.30,
                include_project_in_keywords=True,
                format_policy=FormatPolicy.TERSE,
            )
        return replace(base, **overrides) if overrides else base

    @classmethod
    def from_settings(cls, policy: DeploymentPolicy | str | None = None, **overrides) -> "RetrievalOptions":
        """
        Options for this deployment: RAGDOCS_POLICY picks the preset, and a
        configured RAGDOCS_OWNER_NAME is dropped from query keywords.
        An unset owner adds no stopwords.
        """
        policy = policy or Settings.get("RAGDOCS_POLICY", DeploymentPolicy.CLOUD.value)
        base = cls.for_policy(policy)
        owner = Settings.get("RAGDOCS_OWNER_NAME")
        if owner:
            base = replace(base, boost=base.boost.with_extra_stopwords(owner))
        return replace(base, **overrides) if overrides else base
