# -*- coding: utf-8 -*-
"""
SingleFlight
============
Write-once, read-many async value with idempotent lazy initialisation.

The first caller of `get()` starts the factory coroutine as a task; concurrent
callers await the same task. A successful result is kept for the life of the
object. A failed or cancelled task is dropped so the next call retries.
Callers that are cancelled while waiting do not cancel the shared task.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    def __init__(self, factory: Callable[[], Awaitable[T]]) -> None:
        self._factory = factory
        self._task: Optional[asyncio.Future] = None

    @property
    def ready(self) -> bool:
        """True once a value has been produced successfully."""
        task = self._task
        return task is not None and task.done() and not task.cancelled() and task.exception() is None

    async def get(self) -> T:
        task = self._task
        if task is None or (task.done() and (task.cancelled() or task.exception() is not None)):
            task = asyncio.ensure_future(self._factory())
            self._task = task
        try:
            return await asyncio.shield(task)
        except BaseException:
            if task.done() and self._task is task and (task.cancelled() or task.exception() is not None):
                self._task = None
            raise

    def reset(self) -> None:
        self._task = None
