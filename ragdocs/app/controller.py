# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import AsyncIterator, Dict, List, Optional

from ragdocs.orchestration.llm_client import LLMClient
from ragdocs.orchestration.prompt_builder import PromptBuilder
from ragdocs.retrieval.options import RetrievalOptions
from ragdocs.retrieval.retriever import Retriever
from ragdocs.utils.logging import SimpleLogger

MAX_MESSAGE_LENGTH = 4000   # ~1000 tokens
MAX_MESSAGES_COUNT = 20
MAX_TOTAL_CHARS = 32000
ROLES = ("user", "assistant")

SYSTEM_PROMPT_TEMPLATE = """You are a helpful assistant for {owner}'s portfolio website. Your role is to help visitors learn about {owner}'s background, projects, skills, and experiences.

## Guidelines

- Use the retrieved documentation to provide accurate, specific answers about {owner}'s work
- Always speak in third person ("{owner} built...", "Their experience includes...")
- Be friendly, professional, and concise
- If the retrieved context doesn't contain relevant information, say so honestly rather than making things up
- When discussing technical projects, highlight the technologies used and the problems solved

## Response Style

- Keep responses focused and relevant to what was asked
- Use markdown formatting when helpful (lists, code blocks, bold text)
- If asked about something outside {owner}'s portfolio, politely redirect to relevant topics"""


def validate_messages(messages: List[Dict[str, str]]) -> None:
    """Raise ValueError with a user-facing reason if the conversation is not acceptable."""
    if not isinstance(messages, list) or not messages:
        raise ValueError("Invalid request: messages array is required")
    if len(messages) > MAX_MESSAGES_COUNT:
        raise ValueError(f"Conversation too long. Maximum {MAX_MESSAGES_COUNT} messages allowed.")

    total = 0
    for msg in messages:
        content = msg.get("content") if isinstance(msg, dict) else None
        if not content or not isinstance(content, str):
            raise ValueError("Invalid message format")
        if len(content) > MAX_MESSAGE_LENGTH:
            raise ValueError(f"Message too long. Maximum {MAX_MESSAGE_LENGTH} characters per message.")
        if msg.get("role") not in ROLES:
            raise ValueError("Invalid message role")
        total += len(content)

    if total > MAX_TOTAL_CHARS:
        raise ValueError("Conversation too long. Please start a new chat.")


def last_user_message(messages: List[Dict[str, str]]) -> str:
    for msg in reversed(messages):
        if msg.get("role") == "user":
            return msg["content"]
    raise ValueError("No user message found in conversation")


class ChatController:
    def __init__(
        self,
        retriever: Retriever,
        llm_client: LLMClient,
        prompt_builder: PromptBuilder,
        options: RetrievalOptions,
        owner_name: str = "the site owner",
        model_name: str = "gpt-4o-mini",
        system_prompt: Optional[str] = None,
        max_output_tokens: int = 1024,
    ) -> None:
        """
        One chat turn: retrieve context for the latest user message, append it
        to the system prompt, then call the LLM.

        Retrieval failures never fail the turn; the model simply gets no context.
        """
        self.retriever = retriever
        self.llm_client = llm_client
        self.prompt_builder = prompt_builder
        self.options = options
        self.model_name = model_name
        self.max_output_tokens = max_output_tokens
        self.system_prompt = system_prompt or SYSTEM_PROMPT_TEMPLATE.format(owner=owner_name)

    async def build_prompt(self, messages: List[Dict[str, str]]) -> str:
        validate_messages(messages)
        query = last_user_message(messages)
        try:
            results = await self.retriever.search(query, self.options)
        except Exception as exc:
            SimpleLogger.exception("RAG search failed; continuing without context", exc)
            results = []
        SimpleLogger.debug(f"ChatController: {len(results)} context chunk(s) for {query[:80]!r}")
        return self.prompt_builder.build_system_prompt(self.system_prompt, results)

    async def respond(self, messages: List[Dict[str, str]]) -> str:
        system = await self.build_prompt(messages)
        return await self.llm_client.chat(
            messages=messages,
            system=system,
            model_name=self.model_name,
            max_output_tokens=self.max_output_tokens,
        )

    async def stream(self, messages: List[Dict[str, str]]) -> AsyncIterator[str]:
        system = await self.build_prompt(messages)
        async for delta in self.llm_client.stream(
            messages=messages,
            system=system,
            model_name=self.model_name,
            max_output_tokens=self.max_output_tokens,
        ):
            yield delta
