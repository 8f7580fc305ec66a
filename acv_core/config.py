from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


ROOT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_DATA_DIR = ROOT_DIR / "data"
DEFAULT_API_BASE_URL = "http://localhost:8000/api"
DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    api_base_url: str = DEFAULT_API_BASE_URL
    cors_origins: tuple = tuple(DEFAULT_CORS_ORIGINS.split(","))
    fetch_timeout: float = 10.0
    log_level: str = "INFO"


def _split_origins(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def _as_float(value: Optional[str], default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring invalid numeric setting %r, using %s", value, default)
        return default


def load_settings(env: Optional[dict] = None) -> Settings:
    """Build settings from ``env`` (defaults to the process environment)."""
    if env is None:
        load_dotenv(ROOT_DIR / ".env", override=False)
        env = dict(os.environ)
    data_dir = env.get("ACV_DATA_DIR")
    return Settings(
        data_dir=Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR,
        api_base_url=(env.get("ACV_API_BASE_URL") or DEFAULT_API_BASE_URL).rstrip("/"),
        cors_origins=tuple(_split_origins(env.get("ACV_CORS_ORIGINS") or DEFAULT_CORS_ORIGINS)),
        fetch_timeout=_as_float(env.get("ACV_FETCH_TIMEOUT"), 10.0),
        log_level=(env.get("ACV_LOG_LEVEL") or "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
