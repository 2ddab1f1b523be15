"""
Settings — read from the environment (and an optional `.env` file).

    settings = load_settings()
    settings.currency          # "USD"
    settings.decimals          # 2

Nothing is read at import time; entry points call `load_settings()` once and
pass the result down.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_int(*keys: str, default: int | None = None) -> int | None:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return int(v)


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    currency: str = "USD"
    decimals: int = 2
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if len(self.currency) != 3 or not self.currency.isalpha():
            raise ValueError(f"currency must be a 3-letter code, got {self.currency!r}")
        if not 0 <= self.decimals <= 4:
            raise ValueError(f"decimals must be within 0..4, got {self.decimals}")

    @property
    def log_level_number(self) -> int:
        return logging.getLevelNamesMapping().get(self.log_level.upper(), logging.INFO)


def load_settings(env_file: str | Path | None = ".env") -> Settings:
    """Build Settings from TALLY_* variables; `.env` never overrides the environment."""
    if env_file is not None:
        load_dotenv(dotenv_path=env_file, override=False)

    decimals = _get_int("TALLY_DECIMALS", default=2)
    return Settings(
        database_url=_get_env("TALLY_DATABASE_URL", default=DEFAULT_DATABASE_URL) or DEFAULT_DATABASE_URL,
        currency=(_get_env("TALLY_CURRENCY", default="USD") or "USD").upper(),
        decimals=2 if decimals is None else decimals,
        log_level=_get_env("TALLY_LOG_LEVEL", default="INFO") or "INFO",
    )


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure default logging if no handlers are present."""
    root = logging.getLogger()
    if root.handlers:
        return
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


__all__ = ("DEFAULT_DATABASE_URL", "Settings", "load_settings", "configure_logging")
