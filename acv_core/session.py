from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from acv_core.aggregate import Aggregation, aggregate
from acv_core.datasource import DataSource, FetchFailed
from acv_core.drilldown import DrillDownController, DrillDownSelection
from acv_core.kinds import DatasetKind
from acv_core.records import Record, normalize_rows


logger = logging.getLogger(__name__)


class LoadStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class LoadState:
    status: LoadStatus = LoadStatus.IDLE
    kind: Optional[DatasetKind] = None
    token: int = 0
    aggregation: Optional[Aggregation] = None
    records: Tuple[Record, ...] = ()
    dropped: int = 0
    error: Optional[str] = None


class DashboardSession:
    """One dataset at a time; only the most recently requested kind may land.

    ``begin`` hands out a token per request. Results or failures carrying an
    older token are discarded, so switching kinds mid-fetch cannot show stale data.
    """

    def __init__(self) -> None:
        self._token = 0
        self.state = LoadState()
        self.drilldown = DrillDownController()

    def is_current(self, token: int) -> bool:
        return self._token > 0 and token == self._token

    def begin(self, kind: DatasetKind) -> int:
        self._token += 1
        self.state = LoadState(status=LoadStatus.LOADING, kind=DatasetKind(kind), token=self._token)
        self.drilldown.reset(())
        return self._token

    def resolve(self, token: int, rows: Iterable[Dict[str, Any]]) -> bool:
        if not self.is_current(token):
            logger.debug("Discarding stale response for request %d", token)
            return False
        kind = self.state.kind
        normalized = normalize_rows(rows, kind)
        self.state = replace(
            self.state,
            status=LoadStatus.READY,
            aggregation=aggregate(normalized.records, kind),
            records=normalized.records,
            dropped=normalized.dropped,
        )
        self.drilldown.reset(normalized.records)
        return True

    def reject(self, token: int, exc: Exception) -> bool:
        if not self.is_current(token):
            logger.debug("Discarding stale failure for request %d: %s", token, exc)
            return False
        logger.warning("Loading %s failed: %s", self.state.kind.value, exc)
        self.state = replace(self.state, status=LoadStatus.ERROR, error=str(exc))
        return True

    def load(self, kind: DatasetKind, source: DataSource) -> LoadState:
        token = self.begin(kind)
        try:
            rows = source.fetch(self.state.kind)
        except FetchFailed as exc:
            self.reject(token, exc)
        else:
            self.resolve(token, rows)
        return self.state

    async def load_async(
        self,
        kind: DatasetKind,
        fetch: Callable[[DatasetKind], Awaitable[List[Dict[str, Any]]]],
    ) -> LoadState:
        token = self.begin(kind)
        try:
            rows = await fetch(DatasetKind(kind))
        except FetchFailed as exc:
            self.reject(token, exc)
        else:
            self.resolve(token, rows)
        return self.state

    def select(self, category: str) -> Optional[DrillDownSelection]:
        """Open the drill-down on ``category`` with its chart color."""
        agg = self.state.aggregation
        if self.state.status is not LoadStatus.READY or agg is None:
            return None
        return self.drilldown.select(category, agg.colors.get(category, ""))
