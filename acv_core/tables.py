from __future__ import annotations

from dataclasses import asdict
from enum import Enum
from typing import Any, Dict, List

import pandas as pd

from acv_core.aggregate import Aggregation, PivotRow, PivotTable, QuarterBreakdown
from acv_core.formatting import format_currency, format_percent
from acv_core.kinds import kind_info

PIVOT_METRICS = ("# of Opps", "ACV", "% of Total")


def _pivot_values(row: PivotRow) -> List[Any]:
    out: List[Any] = []
    for cell in list(row.cells) + [row.total]:
        out.extend([cell.count, cell.acv, cell.pct])
    return out


def pivot_frame(pivot: PivotTable, index_name: str = "Category") -> pd.DataFrame:
    """Pivot as a DataFrame with (quarter | Total, metric) column pairs."""
    columns = pd.MultiIndex.from_tuples(
        [(q, m) for q in list(pivot.quarters) + ["Total"] for m in PIVOT_METRICS]
    )
    rows = list(pivot.rows) + [pivot.total_row]
    return pd.DataFrame(
        [_pivot_values(r) for r in rows],
        index=pd.Index([r.category for r in rows], name=index_name),
        columns=columns,
    )


def format_pivot_frame(df: pd.DataFrame) -> pd.DataFrame:
    formatted = df.copy().astype(object)
    for col in formatted.columns:
        metric = col[1]
        if metric == "ACV":
            formatted[col] = df[col].apply(lambda v: format_currency(v, 0))
        elif metric == "% of Total":
            formatted[col] = df[col].apply(format_percent)
        else:
            formatted[col] = df[col].astype(int)
    return formatted


def flatten_columns(df: pd.DataFrame) -> pd.DataFrame:
    flat = df.copy()
    flat.columns = [f"{q} {m}" for q, m in flat.columns]
    return flat.reset_index()


def export_pivot_csv(agg: Aggregation) -> bytes:
    df = pivot_frame(agg.pivot, index_name=kind_info(agg.kind).label)
    return flatten_columns(df).to_csv(index=False).encode("utf-8")


def breakdown_frame(breakdown: QuarterBreakdown, label: str = "Category") -> pd.DataFrame:
    return pd.DataFrame(
        [
            {label: r.category, "Customers": r.count, "ACV": r.acv, "Average ACV": r.avg_acv}
            for r in breakdown.rows
        ],
        columns=[label, "Customers", "ACV", "Average ACV"],
    )


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def aggregation_payload(agg: Aggregation) -> Dict[str, Any]:
    payload = _plain(asdict(agg))
    payload["kpis"] = {
        "count": agg.grand_total.count,
        "acv": agg.grand_total.acv,
        "avg_acv": agg.grand_total.avg_acv,
    }
    return payload


def breakdown_payload(breakdown: QuarterBreakdown) -> Dict[str, Any]:
    return _plain(asdict(breakdown))


def records_payload(records) -> List[Dict[str, Any]]:
    return [asdict(r) for r in records]
