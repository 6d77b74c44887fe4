# -*- coding: utf-8 -*-
"""
ingestion_manager.py

Purpose:
    Offline embedding generation for the documentation assistant:
      discover → read → chunk → embed → write embeddings.json

Key responsibilities:
    1) Ask the DocumentLoader for every markdown source.
    2) For each file: read, chunk (MarkdownChunker), embed every chunk.
    3) Write one EmbeddingsStore holding all chunks, in discovery order.

Failure policy:
    • A file that fails to read, chunk or embed is logged and skipped; the run
      continues with the remaining files.
    • No files discovered → an empty store is still written, so the query side
      always finds a valid file.

API:
    IngestionManager(loader, chunker, embedder).run(output_path) -> IngestionStats
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List

from .loader import DocumentLoader, SourceFile
from .chunker import MarkdownChunker
from .embeddings_store import EmbeddingsStore, save_embeddings, utc_now_iso
from ragdocs.retrieval.chunk import EmbeddedChunk
from ragdocs.utils.logging import SimpleLogger


@dataclass(frozen=True)
class IngestionStats:
    """Aggregate numbers for quick reporting / testing."""
    files_discovered: int
    files_processed: int
    files_empty: int
    files_failed: int
    chunks_written: int
    output_path: str


class IngestionManager:
    """
    Coordinates the embedding generation pipeline.

    Typical usage:
        mgr = IngestionManager(
            loader=DocumentLoader(PATHS["portfolio"], PATHS["personal"], PATHS["blog"]),
            chunker=MarkdownChunker(),
            embedder=Embedder(),
        )
        stats = await mgr.run(PATHS["embeddings"])
    """

    def __init__(self, loader: DocumentLoader, chunker: MarkdownChunker, embedder) -> None:
        self.loader = loader
        self.chunker = chunker
        self.embedder = embedder

    async def run(self, output_path: Path | str) -> IngestionStats:
        output_path = Path(output_path).resolve()
        SimpleLogger.info(f"Embedding generation: model={self.embedder.model_name}")

        sources = self.loader.discover()
        if not sources:
            SimpleLogger.info("No files found. Writing empty embeddings file.")
        else:
            SimpleLogger.info(f"Found {len(sources)} markdown file(s) to process.")

        all_chunks: List[EmbeddedChunk] = []
        processed = empty = failed = 0

        for source in sources:
            label = f"{source.project}/{source.file}"
            SimpleLogger.info(f"Processing {label}...")
            try:
                embedded = await self._process(source)
            except Exception as exc:
                SimpleLogger.exception(f"Error processing {label}", exc)
                failed += 1
                continue

            if not embedded:
                SimpleLogger.info(f"  No chunks generated for {label} (file may be empty)")
                empty += 1
                continue

            all_chunks.extend(embedded)
            processed += 1
            SimpleLogger.info(f"  {len(embedded)} chunk(s) embedded")

        store = EmbeddingsStore(
            model=self.embedder.model_name,
            dimensions=self.embedder.dimensions,
            generated_at=utc_now_iso(),
            chunks=all_chunks,
        )
        save_embeddings(store, output_path)
        SimpleLogger.info(f"Wrote {len(all_chunks)} chunk(s) to {output_path}")

        return IngestionStats(
            files_discovered=len(sources),
            files_processed=processed,
            files_empty=empty,
            files_failed=failed,
            chunks_written=len(all_chunks),
            output_path=str(output_path),
        )

    async def _process(self, source: SourceFile) -> List[EmbeddedChunk]:
        text = self.loader.read(source)
        chunks = self.chunker.split(text, source.project, source.file)
        if not chunks:
            return []

        vectors = await self.embedder.embed([c.content for c in chunks])
        if len(vectors) != len(chunks):
            raise ValueError(f"embedder returned {len(vectors)} vectors for {len(chunks)} chunks")
        for v in vectors:
            if len(v) != self.embedder.dimensions:
                raise ValueError(f"embedder returned {len(v)} dimensions, expected {self.embedder.dimensions}")
        return [EmbeddedChunk.from_chunk(c, v) for c, v in zip(chunks, vectors)]
