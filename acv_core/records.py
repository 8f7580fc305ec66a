from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from acv_core.kinds import QUARTER_FIELD, DatasetKind, extract_category


logger = logging.getLogger(__name__)

RECORD_COLUMNS = ["quarter", "category", "count", "acv"]
_INT64 = np.iinfo(np.int64)


@dataclass(frozen=True)
class Record:
    quarter: str
    category: str
    count: int = 0
    acv: float = 0.0


@dataclass(frozen=True)
class NormalizedRows:
    records: Tuple[Record, ...]
    dropped: int = 0


def _as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        out = float(pd.to_numeric(value, errors="coerce"))
    except (TypeError, ValueError):
        return None
    if math.isnan(out) or math.isinf(out):
        return None
    return out


def _as_quarter(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _as_count(value: Any) -> int:
    count = _as_number(value)
    if count is None or not _INT64.min <= count <= _INT64.max:
        return 0
    return int(count)


def normalize_row(raw: Mapping[str, Any], kind: DatasetKind) -> Optional[Record]:
    """Canonical record for one raw row, or ``None`` when the row has no quarter.

    Non-numeric or absent ``count``/``acv`` default to 0, fractional counts are
    truncated, counts outside the int64 range default to 0, and negative values
    are kept as-is.
    """
    quarter = _as_quarter(raw.get(QUARTER_FIELD))
    if quarter is None:
        return None
    acv = _as_number(raw.get("acv"))
    return Record(
        quarter=quarter,
        category=extract_category(raw, kind),
        count=_as_count(raw.get("count")),
        acv=acv if acv is not None else 0.0,
    )


def normalize_rows(rows: Iterable[Mapping[str, Any]], kind: DatasetKind) -> NormalizedRows:
    records: List[Record] = []
    dropped = 0
    for raw in rows or []:
        if not isinstance(raw, Mapping):
            dropped += 1
            continue
        rec = normalize_row(raw, kind)
        if rec is None:
            dropped += 1
            continue
        records.append(rec)
    if dropped:
        logger.warning("Dropped %d %s row(s) without a fiscal quarter", dropped, DatasetKind(kind).value)
    return NormalizedRows(records=tuple(records), dropped=dropped)


def records_frame(records: Iterable[Record]) -> pd.DataFrame:
    df = pd.DataFrame(
        [(r.quarter, r.category, r.count, r.acv) for r in records],
        columns=RECORD_COLUMNS,
    )
    return df.astype({"quarter": object, "category": object, "count": "int64", "acv": "float64"})
