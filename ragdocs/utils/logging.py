# -*- coding: utf-8 -*-
"""
SimpleLogger: logging facade for ragdocs.

- One class with classmethods, printing single lines to stdout.
- Minimum level comes from RAGDOCS_LOG_LEVEL (DEBUG, INFO, WARN, ERROR).
- Callers never configure handlers; tests can silence it with set_enabled(False).
"""

from __future__ import annotations
import os
import sys
import datetime
from typing import ClassVar, Dict, Optional


_LEVELS: Dict[str, int] = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}


class SimpleLogger:
    """
    Usage:
        SimpleLogger.info("Loaded 42 chunks")
        SimpleLogger.exception("Failed to embed query", exc)
    """

    _enabled: ClassVar[bool] = True
    _prefix: ClassVar[str] = "ragdocs"
    _min_level: ClassVar[Optional[int]] = None

    @classmethod
    def _threshold(cls) -> int:
        if cls._min_level is None:
            name = os.getenv("RAGDOCS_LOG_LEVEL", "INFO").strip().upper()
            if name == "WARNING":
                name = "WARN"
            cls._min_level = _LEVELS.get(name, _LEVELS["INFO"])
        return cls._min_level

    @classmethod
    def _log(cls, level: str, msg: str) -> None:
        if not cls._enabled or _LEVELS[level] < cls._threshold():
            return
        now = datetime.datetime.now().strftime("%H:%M:%S")
        line = f"{cls._prefix} | {level:5s} | {now} | {msg}"
        print(line, file=sys.stdout, flush=True)

    @classmethod
    def debug(cls, msg: str) -> None:
        cls._log("DEBUG", msg)

    @classmethod
    def info(cls, msg: str) -> None:
        cls._log("INFO", msg)

    @classmethod
    def warning(cls, msg: str) -> None:
        cls._log("WARN", msg)

    @classmethod
    def error(cls, msg: str) -> None:
        cls._log("ERROR", msg)

    @classmethod
    def exception(cls, msg: str, exc: BaseException) -> None:
        cls._log("ERROR", f"{msg}: {exc!r}")

    @classmethod
    def set_enabled(cls, enabled: bool) -> None:
        cls._enabled = enabled

    @classmethod
    def set_level(cls, level: str) -> None:
        level = level.strip().upper()
        if level not in _LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        cls._min_level = _LEVELS[level]

    @classmethod
    def set_prefix(cls, prefix: str) -> None:
        cls._prefix = prefix
