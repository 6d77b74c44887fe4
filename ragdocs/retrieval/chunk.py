# -*- coding: utf-8 -*-
"""
Chunk: data records for retrieval units.

Chunk          : one piece of a markdown document, produced by the chunker.
EmbeddedChunk  : a Chunk plus its embedding vector, as stored in embeddings.json.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple


@dataclass(frozen=True, slots=True)
class Chunk:
    id: str          # "<project-slug>-<section-slug>[-N]", unique within one chunker run
    project: str     # grouping label, e.g. "AHSR"
    file: str        # source file name, e.g. "architecture.md"
    section: str     # heading text, or "Introduction"
    content: str     # never empty

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project": self.project,
            "file": self.file,
            "section": self.section,
            "content": self.content,
        }


@dataclass(frozen=True, slots=True)
class EmbeddedChunk(Chunk):
    embedding: Tuple[float, ...] = ()

    @classmethod
    def from_chunk(cls, chunk: Chunk, embedding: Sequence[float]) -> "EmbeddedChunk":
        return cls(
            id=chunk.id,
            project=chunk.project,
            file=chunk.file,
            section=chunk.section,
            content=chunk.content,
            embedding=tuple(float(x) for x in embedding),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmbeddedChunk":
        return cls(
            id=str(data["id"]),
            project=str(data["project"]),
            file=str(data["file"]),
            section=str(data["section"]),
            content=str(data["content"]),
            embedding=tuple(float(x) for x in data["embedding"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = Chunk.to_dict(self)
        d["embedding"] = list(self.embedding)
        return d
