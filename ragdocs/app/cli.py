#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ragdocs command line

  ragdocs generate [--output PATH]
      chunk + embed every markdown source and rewrite embeddings.json

  ragdocs search "query" [--top-k N] [--min-score F] [--project P] [--policy cloud|local] [--format]
      print ranked chunks (or the formatted context block)

  ragdocs chat "message" [--policy cloud|local] [--stream]
      run one chat turn (needs OPENAI_API_KEY)
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Dict, List, Optional

from openai import OpenAIError

from ragdocs.app.controller import ChatController
from ragdocs.config.settings import Settings
from ragdocs.ingestion.chunker import MarkdownChunker
from ragdocs.ingestion.embedder import make_embedder
from ragdocs.ingestion.embeddings_store import StoreCache
from ragdocs.ingestion.ingestion_manager import IngestionManager
from ragdocs.ingestion.loader import DocumentLoader
from ragdocs.orchestration.llm_client import LLMClient
from ragdocs.orchestration.prompt_builder import PromptBuilder
from ragdocs.retrieval.options import DeploymentPolicy, RetrievalOptions
from ragdocs.retrieval.retriever import Retriever
from ragdocs.utils.logging import SimpleLogger
from ragdocs.utils.paths import PATHS


def _embeddings_path(arg: Optional[Path]) -> Path:
    return arg or Settings.get_path("RAGDOCS_EMBEDDINGS_PATH", PATHS["embeddings"])


def _owner() -> str:
    # display only; stopwords come from RetrievalOptions.from_settings
    return Settings.get("RAGDOCS_OWNER_NAME", "the site owner")


def _options(args: argparse.Namespace) -> RetrievalOptions:
    overrides: Dict[str, object] = {}
    if getattr(args, "top_k", None) is not None:
        overrides["top_k"] = args.top_k
    if getattr(args, "min_score", None) is not None:
        overrides["min_score"] = args.min_score
    if getattr(args, "project", None):
        overrides["project_filter"] = args.project
    return RetrievalOptions.from_settings(args.policy, **overrides)


async def _generate(args: argparse.Namespace) -> int:
    loader = DocumentLoader(
        portfolio_dir=Settings.get_path("RAGDOCS_PORTFOLIO_DIR", PATHS["portfolio"]),
        personal_dir=Settings.get_path("RAGDOCS_PERSONAL_DIR", PATHS["personal"]),
        blog_dir=Settings.get_path("RAGDOCS_BLOG_DIR", PATHS["blog"]),
        owner_name=_owner(),
    )
    mgr = IngestionManager(loader=loader, chunker=MarkdownChunker(), embedder=make_embedder())
    stats = await mgr.run(_embeddings_path(args.output))

    print("\n--- Embedding Stats ---")
    print(f"files_discovered : {stats.files_discovered}")
    print(f"files_processed  : {stats.files_processed}")
    print(f"files_empty      : {stats.files_empty}")
    print(f"files_failed     : {stats.files_failed}")
    print(f"chunks_written   : {stats.chunks_written}")
    print(f"output           : {stats.output_path}")
    return 0


async def _search(args: argparse.Namespace) -> int:
    options = _options(args)
    retriever = Retriever(StoreCache(_embeddings_path(args.embeddings)), make_embedder())
    results = await retriever.search(args.query, options)

    if args.format:
        print(PromptBuilder(options.format_policy, subject=_owner()).format_context(results))
        return 0

    if not results:
        print("[INFO] No results.")
        return 0
    for rank, r in enumerate(results, start=1):
        c = r.chunk
        print(f"#{rank}\t{r.score:.4f}\t{c.id}\t{c.project}/{c.file} [{c.section}]")
    return 0


async def _chat(args: argparse.Namespace) -> int:
    options = _options(args)
    controller = ChatController(
        retriever=Retriever(StoreCache(_embeddings_path(args.embeddings)), make_embedder()),
        llm_client=LLMClient(),
        prompt_builder=PromptBuilder(options.format_policy, subject=_owner()),
        options=options,
        owner_name=_owner(),
        model_name=Settings.get("RAGDOCS_CHAT_MODEL", "gpt-4o-mini"),
    )
    messages: List[Dict[str, str]] = [{"role": "user", "content": args.message}]
    if args.stream:
        async for delta in controller.stream(messages):
            print(delta, end="", flush=True)
        print()
    else:
        print(await controller.respond(messages))
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="ragdocs", description="Documentation RAG: embed, search, chat.")
    sub = ap.add_subparsers(dest="command", required=True)
    default_policy = Settings.get("RAGDOCS_POLICY", DeploymentPolicy.CLOUD.value)
    policies = [p.value for p in DeploymentPolicy]

    gen = sub.add_parser("generate", help="Chunk and embed all markdown sources.")
    gen.add_argument("--output", type=Path, default=None, help="Embeddings JSON path.")
    gen.set_defaults(func=_generate)

    srch = sub.add_parser("search", help="Rank chunks for a query.")
    srch.add_argument("query")
    srch.add_argument("--embeddings", type=Path, default=None, help="Embeddings JSON path.")
    srch.add_argument("--policy", choices=policies, default=default_policy)
    srch.add_argument("--top-k", type=int, default=None)
    srch.add_argument("--min-score", type=float, default=None)
    srch.add_argument("--project", default=None, help="Only search this project.")
    srch.add_argument("--format", action="store_true", help="Print the formatted context block.")
    srch.set_defaults(func=_search)

    chat = sub.add_parser("chat", help="Answer one message with retrieved context.")
    chat.add_argument("message")
    chat.add_argument("--embeddings", type=Path, default=None, help="Embeddings JSON path.")
    chat.add_argument("--policy", choices=policies, default=default_policy)
    chat.add_argument("--stream", action="store_true")
    chat.set_defaults(func=_chat)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(args.func(args))
    except (FileNotFoundError, ValueError, RuntimeError, OpenAIError) as exc:
        SimpleLogger.exception(f"{args.command} failed", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
