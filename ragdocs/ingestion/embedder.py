"""
Embedder
========
Turns text into fixed-length, L2-normalised vectors.

Two interchangeable backends share one async interface
(`model_name`, `dimensions`, `embed(texts)`, `embed_query(text)`):

- Embedder        local Hugging Face encoder (mean pooling + L2 normalisation)
- OpenAIEmbedder  OpenAI embeddings API, normalised client-side

The same backend and model must be used to build the embeddings file and to
embed queries, otherwise scores are meaningless.
"""
from __future__ import annotations

import asyncio
import os
from typing import List, Optional, Tuple

import numpy as np
from openai import AsyncOpenAI

from ragdocs.config.settings import Settings
from ragdocs.utils.logging import SimpleLogger
from ragdocs.utils.single_flight import SingleFlight

DEFAULT_LOCAL_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
DEFAULT_LOCAL_DIMENSIONS = 384
DEFAULT_OPENAI_MODEL = "text-embedding-3-small"
DEFAULT_OPENAI_DIMENSIONS = 1536


class Embedder:
    """Local transformer encoder; the model is loaded once, on first use."""

    def __init__(
        self,
        model: str = DEFAULT_LOCAL_MODEL,
        dimensions: int = DEFAULT_LOCAL_DIMENSIONS,
        batch_size: int = 32,
        device: Optional[str] = None,
    ) -> None:
        self.model_name = model
        self.dimensions = dimensions
        self.batch_size = batch_size
        self.device = device
        self._handle: SingleFlight[Tuple[object, object]] = SingleFlight(self._load)

    async def embed(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for a list of texts.
        Returns: list of embedding vectors (one per text)
        """
        if not texts:
            return []
        tokenizer, model = await self._handle.get()
        return await asyncio.to_thread(self._encode, tokenizer, model, texts)

    async def embed_query(self, text: str) -> List[float]:
        return (await self.embed([text]))[0]

    # ---- internals ----
    async def _load(self) -> Tuple[object, object]:
        return await asyncio.to_thread(self._load_sync)

    def _load_sync(self) -> Tuple[object, object]:
        import torch
        from transformers import AutoModel, AutoTokenizer

        device = self.device or ("cuda" if torch.cuda.is_available() else "cpu")
        SimpleLogger.info(f"Embedder: loading {self.model_name} on {device}")
        tokenizer = AutoTokenizer.from_pretrained(self.model_name)
        model = AutoModel.from_pretrained(self.model_name).to(device)
        model.eval()
        self.device = device
        return tokenizer, model

    def _encode(self, tokenizer, model, texts: List[str]) -> List[List[float]]:
        import torch
        import torch.nn.functional as F

        vectors: List[List[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start:start + self.batch_size]
            enc = tokenizer(batch, padding=True, truncation=True, return_tensors="pt").to(self.device)
            with torch.no_grad():
                out = model(**enc)
            # mean pooling over real (non-padding) tokens
            mask = enc["attention_mask"].unsqueeze(-1).to(out.last_hidden_state.dtype)
            summed = (out.last_hidden_state * mask).sum(dim=1)
            counts = mask.sum(dim=1).clamp(min=1e-9)
            pooled = F.normalize(summed / counts, p=2, dim=1)
            vectors.extend(pooled.cpu().tolist())
        return vectors


class OpenAIEmbedder:
    """OpenAI embeddings API backend."""

    def __init__(
        self,
        model: str = DEFAULT_OPENAI_MODEL,
        dimensions: int = DEFAULT_OPENAI_DIMENSIONS,
        api_key: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self.model_name = model
        self.dimensions = dimensions
        if client is None:
            key = api_key or Settings.get("OPENAI_API_KEY") or os.getenv("OPENAI_API_KEY")
            if not key:
                raise ValueError("OPENAI_API_KEY not found in environment or .env file")
            client = AsyncOpenAI(api_key=key)
        self.client = client

    async def embed(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        # OpenAI API allows batch embedding calls
        response = await self.client.embeddings.create(
            model=self.model_name,
            input=texts,
            dimensions=self.dimensions,
        )
        return [_l2_normalise(item.embedding) for item in response.data]

    async def embed_query(self, text: str) -> List[float]:
        return (await self.embed([text]))[0]


def _l2_normalise(vector: List[float]) -> List[float]:
    v = np.asarray(vector, dtype=np.float64)
    norm = float(np.linalg.norm(v))
    if norm == 0.0:
        return v.tolist()
    return (v / norm).tolist()


def make_embedder(backend: Optional[str] = None):
    """Build the configured backend (RAGDOCS_EMBED_BACKEND: 'local' or 'openai')."""
    backend = (backend or Settings.get("RAGDOCS_EMBED_BACKEND", "local")).strip().lower()
    model = Settings.get("RAGDOCS_EMBED_MODEL")
    if backend == "local":
        return Embedder(
            model=model or DEFAULT_LOCAL_MODEL,
            dimensions=Settings.get_int("RAGDOCS_EMBED_DIMENSIONS", DEFAULT_LOCAL_DIMENSIONS),
        )
    if backend == "openai":
        return OpenAIEmbedder(
            model=model or DEFAULT_OPENAI_MODEL,
            dimensions=Settings.get_int("RAGDOCS_EMBED_DIMENSIONS", DEFAULT_OPENAI_DIMENSIONS),
        )
    raise ValueError(f"Unknown embedding backend: {backend!r} (expected 'local' or 'openai')")
