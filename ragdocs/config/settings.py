"""
Settings
========
Centralised, cached access to environment configuration.
A `.env` file in the working directory is loaded once, before the first lookup.
"""
import os
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv


class Settings:
    _CACHE: Dict[str, Any] = {}
    _DOTENV_LOADED: bool = False

    @classmethod
    def _ensure_dotenv(cls) -> None:
        if not cls._DOTENV_LOADED:
            load_dotenv()
            cls._DOTENV_LOADED = True

    @classmethod
    def get(cls, key: str, default: Any | None = None) -> Any:
        cls._ensure_dotenv()
        if key not in cls._CACHE:
            cls._CACHE[key] = os.getenv(key, default)
        return cls._CACHE[key]

    @classmethod
    def get_int(cls, key: str, default: int) -> int:
        raw = cls.get(key)
        if raw is None or raw == "":
            return default
        try:
            return int(raw)
        except (TypeError, ValueError) as e:
            raise ValueError(f"{key} must be an integer, got {raw!r}") from e

    @classmethod
    def get_float(cls, key: str, default: float) -> float:
        raw = cls.get(key)
        if raw is None or raw == "":
            return default
        try:
            return float(raw)
        except (TypeError, ValueError) as e:
            raise ValueError(f"{key} must be a number, got {raw!r}") from e

    @classmethod
    def get_path(cls, key: str, default: Path) -> Path:
        raw = cls.get(key)
        return Path(raw).expanduser() if raw else default

    @classmethod
    def clear(cls) -> None:
        cls._CACHE.clear()
