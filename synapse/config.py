"""Runtime settings read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MODEL = "llama-3.3-70b-versatile"
DEFAULT_DATA_DIR = Path("data")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    api_key: str
    model: str
    data_dir: Path
    log_level: str
    llm_max_attempts: int
    llm_backoff_seconds: float
    timezone: str

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


def load_settings() -> Settings:
    return Settings(
        api_key=os.environ.get("GROQ_API_KEY", "").strip(),
        model=os.environ.get("SYNAPSE_MODEL", "").strip() or DEFAULT_MODEL,
        data_dir=Path(os.environ.get("SYNAPSE_DATA_DIR", "").strip() or DEFAULT_DATA_DIR),
        log_level=os.environ.get("SYNAPSE_LOG_LEVEL", "").strip() or "info",
        llm_max_attempts=max(1, _env_int("SYNAPSE_LLM_MAX_ATTEMPTS", 3)),
        llm_backoff_seconds=max(0.0, _env_float("SYNAPSE_LLM_BACKOFF_SECONDS", 0.5)),
        timezone=os.environ.get("SYNAPSE_TIMEZONE", "").strip() or "UTC",
    )


def configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
