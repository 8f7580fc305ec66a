from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

import requests

from acv_core.kinds import DatasetKind, kind_info


logger = logging.getLogger(__name__)


class FetchFailed(Exception):
    """Any failure to obtain raw rows for a dataset kind."""

    def __init__(self, kind: DatasetKind, message: str = ""):
        self.kind = DatasetKind(kind)
        self.message = message or f"Failed to fetch {kind_info(self.kind).label} data"
        super().__init__(self.message)


class DataSource(Protocol):
    def fetch(self, kind: DatasetKind) -> List[Dict[str, Any]]:
        ...


def _ensure_rows(kind: DatasetKind, payload: Any) -> List[Dict[str, Any]]:
    if not isinstance(payload, list):
        raise FetchFailed(kind, f"Expected a JSON array for {kind_info(kind).label}, got {type(payload).__name__}")
    return list(payload)


@lru_cache(maxsize=8)
def _read_json(path: str, mtime: float) -> Any:
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)


class FileDataSource:
    """Static JSON files, one per dataset kind, re-read only when modified."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def path_for(self, kind: DatasetKind) -> Path:
        return self.data_dir / kind_info(kind).file_name

    def fetch(self, kind: DatasetKind) -> List[Dict[str, Any]]:
        kind = DatasetKind(kind)
        path = self.path_for(kind)
        try:
            payload = _read_json(str(path), path.stat().st_mtime)
        except (OSError, ValueError) as exc:
            logger.error("Cannot load %s: %s", path, exc)
            raise FetchFailed(kind) from exc
        rows = _ensure_rows(kind, payload)
        return [dict(r) if isinstance(r, dict) else r for r in rows]


class HttpDataSource:
    """Raw rows from the dashboard API (``GET <base_url>/<slug>``)."""

    def __init__(self, base_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, kind: DatasetKind) -> List[Dict[str, Any]]:
        kind = DatasetKind(kind)
        url = f"{self.base_url}/{kind.value}"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("GET %s failed: %s", url, exc)
            raise FetchFailed(kind) from exc
        return _ensure_rows(kind, payload)
