# ragdocs/orchestration/llm_client.py
# -*- coding: utf-8 -*-
"""
LLMClient: thin async wrapper around the chat completion provider.

- Uses the OpenAI Python client v1 (AsyncOpenAI + chat.completions.create).
- Reads OPENAI_API_KEY from Settings / environment (or api_key in __init__).
- The system prompt (base prompt + retrieved context) is sent as the first
  message; `stream()` yields text deltas as they arrive.
"""

from __future__ import annotations
from typing import AsyncIterator, Dict, List, Optional

from openai import AsyncOpenAI

from ragdocs.config.settings import Settings
from ragdocs.utils.logging import SimpleLogger

Message = Dict[str, str]


class LLMClient:
    """
    Neutral LLM gateway.

    You give it:
      - messages: [{"role": "user", "content": "..."}, {"role": "assistant", "content": "..."}]
      - system: the full system prompt
      - model_name, temperature, max_output_tokens

    It returns the assistant text (or an async stream of text deltas).
    """

    def __init__(self, api_key: Optional[str] = None, client: Optional[AsyncOpenAI] = None) -> None:
        self._client: Optional[AsyncOpenAI] = client
        if client is not None:
            return

        key = api_key or Settings.get("OPENAI_API_KEY") or ""
        if not key:
            SimpleLogger.info("LLMClient: OPENAI_API_KEY not set. Any LLM call will fail until you set it.")
            return

        try:
            self._client = AsyncOpenAI(api_key=key)
            SimpleLogger.info("LLMClient: OpenAI client initialised.")
        except Exception as exc:
            SimpleLogger.exception("LLMClient: failed to initialise OpenAI client", exc)
            self._client = None

    @staticmethod
    def _messages(system: str, messages: List[Message]) -> List[Message]:
        out: List[Message] = [{"role": "system", "content": system}]
        out.extend({"role": m["role"], "content": m["content"]} for m in messages)
        return out

    def _kwargs(self, system, messages, model_name, temperature, max_output_tokens) -> dict:
        if self._client is None:
            raise RuntimeError("LLMClient: OpenAI client is not initialised")
        kwargs: dict = {
            "model": model_name,
            "messages": self._messages(system, messages),
            "max_completion_tokens": max_output_tokens,
        }
        # temperature is illegal for gpt-5* reasoning models, allowed for others
        if temperature is not None and not model_name.startswith("gpt-5"):
            kwargs["temperature"] = temperature
        return kwargs

    async def chat(
            self,
            *,
            messages: List[Message],
            system: str,
            model_name: str,
            temperature: Optional[float] = None,
            max_output_tokens: int = 1024,
    ) -> str:
        kwargs = self._kwargs(system, messages, model_name, temperature, max_output_tokens)
        resp = await self._client.chat.completions.create(**kwargs)
        content = resp.choices[0].message.content
        return content if isinstance(content, str) else str(content or "")

    async def stream(
            self,
            *,
            messages: List[Message],
            system: str,
            model_name: str,
            temperature: Optional[float] = None,
            max_output_tokens: int = 1024,
    ) -> AsyncIterator[str]:
        kwargs = self._kwargs(system, messages, model_name, temperature, max_output_tokens)
        stream = await self._client.chat.completions.create(stream=True, **kwargs)
        async for event in stream:
            if not event.choices:
                continue
            delta = event.choices[0].delta.content
            if delta:
                yield delta
