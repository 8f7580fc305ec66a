from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from acv_core.formatting import format_currency
from acv_core.records import Record


@dataclass(frozen=True)
class DrillDownSelection:
    category: str
    color: str


class DrillDownController:
    """Closed, or open on one category picked from the donut.

    A new selection replaces the previous one; loading new records closes it.
    """

    def __init__(self, records: Iterable[Record] = ()):
        self._records: Tuple[Record, ...] = tuple(records)
        self._selection: Optional[DrillDownSelection] = None

    @property
    def selection(self) -> Optional[DrillDownSelection]:
        return self._selection

    @property
    def is_open(self) -> bool:
        return self._selection is not None

    def reset(self, records: Iterable[Record]) -> None:
        self._records = tuple(records)
        self._selection = None

    def select(self, category: str, color: str) -> DrillDownSelection:
        self._selection = DrillDownSelection(category=category, color=color)
        return self._selection

    def dismiss(self) -> None:
        self._selection = None

    def rows(self) -> Tuple[Record, ...]:
        if self._selection is None:
            return ()
        matching = [r for r in self._records if r.category == self._selection.category]
        return tuple(sorted(matching, key=lambda r: r.quarter))

    def detail_rows(self) -> List[Dict[str, Any]]:
        return [
            {"Fiscal Quarter": r.quarter, "Count": r.count, "ACV ($)": format_currency(r.acv)}
            for r in self.rows()
        ]
