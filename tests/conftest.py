# FILE: tests/conftest.py
"""
Pytest configuration for the ragdocs test suite.

Provides:
- pytest-asyncio for async tests
- FakeEmbedder: deterministic text -> vector table, no model download
- FakeLLMClient: records calls, returns canned text
- make_store / write_store: build embeddings files in tmp_path
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

from ragdocs.ingestion.embeddings_store import EmbeddingsStore, save_embeddings
from ragdocs.retrieval.chunk import EmbeddedChunk
from ragdocs.utils.logging import SimpleLogger

pytest_plugins = ["pytest_asyncio"]


@pytest.fixture(autouse=True)
def _quiet_logger():
    SimpleLogger.set_enabled(False)
    yield
    SimpleLogger.set_enabled(True)


class FakeEmbedder:
    def __init__(
        self,
        vectors: Optional[Dict[str, Sequence[float]]] = None,
        default: Sequence[float] = (1.0, 0.0, 0.0),
        model_name: str = "fake-model",
        fail_on: Optional[str] = None,
    ) -> None:
        self.vectors = dict(vectors or {})
        self.default = list(default)
        self.model_name = model_name
        self.dimensions = len(self.default)
        self.fail_on = fail_on
        self.calls: List[List[str]] = []

    async def embed(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        out = []
        for t in texts:
            if self.fail_on is not None and self.fail_on in t:
                raise RuntimeError(f"embedding service unavailable for {t[:20]!r}")
            out.append(list(self.vectors.get(t, self.default)))
        return out

    async def embed_query(self, text: str) -> List[float]:
        return (await self.embed([text]))[0]


class FakeLLMClient:
    def __init__(self, reply: str = "Hello there.") -> None:
        self.reply = reply
        self.calls: List[dict] = []

    async def chat(self, *, messages, system, model_name, temperature=None, max_output_tokens=1024) -> str:
        self.calls.append({"messages": messages, "system": system, "model_name": model_name})
        return self.reply

    async def stream(self, *, messages, system, model_name, temperature=None, max_output_tokens=1024):
        self.calls.append({"messages": messages, "system": system, "model_name": model_name})
        for word in self.reply.split(" "):
            yield word + " "


def embedded(
    id: str,
    embedding: Sequence[float],
    content: str = "content",
    project: str = "Proj",
    section: str = "Section",
    file: str = "doc.md",
) -> EmbeddedChunk:
    return EmbeddedChunk(
        id=id,
        project=project,
        file=file,
        section=section,
        content=content,
        embedding=tuple(float(x) for x in embedding),
    )


def make_store(chunks: List[EmbeddedChunk], dimensions: int = 3, model: str = "fake-model") -> EmbeddingsStore:
    return EmbeddingsStore(model=model, dimensions=dimensions, generated_at="2026-01-01T00:00:00Z", chunks=chunks)


@pytest.fixture
def write_store(tmp_path: Path):
    def _write(chunks: List[EmbeddedChunk], dimensions: int = 3, model: str = "fake-model") -> Path:
        path = tmp_path / "rag" / "embeddings.json"
        save_embeddings(make_store(chunks, dimensions, model), path)
        return path
    return _write
