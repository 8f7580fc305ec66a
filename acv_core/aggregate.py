from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

import pandas as pd

from acv_core.kinds import DatasetKind
from acv_core.ordering import assign_colors, order_categories
from acv_core.records import Record, records_frame


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregatedCell:
    quarter: str
    category: str
    count: int
    acv: float


@dataclass(frozen=True)
class QuarterTotal:
    quarter: str
    count: int
    acv: float


@dataclass(frozen=True)
class GrandTotal:
    count: int = 0
    acv: float = 0.0

    @property
    def avg_acv(self) -> float:
        return safe_ratio(self.acv, self.count)


@dataclass(frozen=True)
class TimeSeriesPoint:
    quarter: str
    values: Tuple[float, ...]
    total: float


@dataclass(frozen=True)
class TimeSeries:
    categories: Tuple[str, ...] = ()
    points: Tuple[TimeSeriesPoint, ...] = ()
    colors: Dict[str, str] = field(default_factory=dict)

    @property
    def max_total(self) -> float:
        return max((p.total for p in self.points), default=0.0)


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    count: int
    acv: float
    share: float
    color: str


@dataclass(frozen=True)
class PivotCell:
    count: int
    acv: float
    pct: float


@dataclass(frozen=True)
class PivotRow:
    category: str
    cells: Tuple[PivotCell, ...]
    total: PivotCell


@dataclass(frozen=True)
class PivotTable:
    quarters: Tuple[str, ...] = ()
    rows: Tuple[PivotRow, ...] = ()
    total_row: PivotRow = PivotRow("Total", (), PivotCell(0, 0.0, 1.0))


@dataclass(frozen=True)
class Aggregation:
    kind: DatasetKind
    quarters: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    colors: Dict[str, str] = field(default_factory=dict)
    cells: Tuple[AggregatedCell, ...] = ()
    quarter_totals: Tuple[QuarterTotal, ...] = ()
    grand_total: GrandTotal = GrandTotal()
    time_series: TimeSeries = TimeSeries()
    category_totals: Tuple[CategoryTotal, ...] = ()
    pivot: PivotTable = PivotTable()

    def cell(self, quarter: str, category: str) -> Optional[AggregatedCell]:
        for c in self.cells:
            if c.quarter == quarter and c.category == category:
                return c
        return None

    def quarter_total(self, quarter: str) -> Optional[QuarterTotal]:
        for qt in self.quarter_totals:
            if qt.quarter == quarter:
                return qt
        return None


@dataclass(frozen=True)
class BreakdownRow:
    category: str
    count: int
    acv: float
    avg_acv: float
    pct: float


@dataclass(frozen=True)
class QuarterBreakdown:
    quarter: str
    rows: Tuple[BreakdownRow, ...]
    count: int
    acv: float
    avg_acv: float


def safe_ratio(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    out = numerator / denominator
    if math.isnan(out) or math.isinf(out):
        return 0.0
    return float(out)


def _cell_grid(df: pd.DataFrame, quarters: list, categories: list) -> pd.DataFrame:
    """Zero-filled (quarter, category) grid; the first row wins for duplicate pairs."""
    deduped = df.drop_duplicates(subset=["quarter", "category"], keep="first")
    if len(deduped) < len(df):
        logger.info("Ignored %d duplicate (quarter, category) row(s)", len(df) - len(deduped))
    in_universe = deduped[deduped["category"].isin(categories)]
    if len(in_universe) < len(deduped):
        logger.debug("Excluded %d row(s) outside the fixed category set", len(deduped) - len(in_universe))
    index = pd.MultiIndex.from_product([quarters, categories], names=["quarter", "category"])
    grid = in_universe.set_index(["quarter", "category"])[["count", "acv"]].reindex(index, fill_value=0)
    return grid.astype({"count": "int64", "acv": "float64"})


def aggregate(records: Iterable[Record], kind: DatasetKind) -> Aggregation:
    """Aggregate normalized records into every derived view for one dataset kind."""
    kind = DatasetKind(kind)
    df = records_frame(records)
    if df.empty:
        return Aggregation(kind=kind)

    quarters = sorted(df["quarter"].unique().tolist())
    categories = order_categories(df["category"].tolist(), kind)
    colors = assign_colors(categories)
    grid = _cell_grid(df, quarters, categories)

    cells = tuple(
        AggregatedCell(quarter=q, category=c, count=int(row["count"]), acv=float(row["acv"]))
        for (q, c), row in grid.iterrows()
    )

    by_quarter = grid.groupby(level="quarter", sort=False).sum().reindex(quarters)
    quarter_totals = tuple(
        QuarterTotal(quarter=q, count=int(by_quarter.at[q, "count"]), acv=float(by_quarter.at[q, "acv"]))
        for q in quarters
    )
    grand_total = GrandTotal(
        count=sum(qt.count for qt in quarter_totals),
        acv=float(sum(qt.acv for qt in quarter_totals)),
    )

    acv_matrix = grid["acv"].unstack("category").reindex(index=quarters, columns=categories)
    count_matrix = grid["count"].unstack("category").reindex(index=quarters, columns=categories)
    time_series = TimeSeries(
        categories=tuple(categories),
        points=tuple(
            TimeSeriesPoint(
                quarter=qt.quarter,
                values=tuple(float(v) for v in acv_matrix.loc[qt.quarter].tolist()),
                total=qt.acv,
            )
            for qt in quarter_totals
        ),
        colors=colors,
    )

    by_category = grid.groupby(level="category", sort=False).sum().reindex(categories)
    category_totals = tuple(
        CategoryTotal(
            category=c,
            count=int(by_category.at[c, "count"]),
            acv=float(by_category.at[c, "acv"]),
            share=safe_ratio(float(by_category.at[c, "acv"]), grand_total.acv),
            color=colors[c],
        )
        for c in categories
    )

    rows = []
    for ct in category_totals:
        pivot_cells = tuple(
            PivotCell(
                count=int(count_matrix.at[qt.quarter, ct.category]),
                acv=float(acv_matrix.at[qt.quarter, ct.category]),
                pct=safe_ratio(float(acv_matrix.at[qt.quarter, ct.category]), qt.acv),
            )
            for qt in quarter_totals
        )
        rows.append(PivotRow(ct.category, pivot_cells, PivotCell(ct.count, ct.acv, ct.share)))
    total_row = PivotRow(
        "Total",
        tuple(PivotCell(qt.count, qt.acv, 1.0) for qt in quarter_totals),
        PivotCell(grand_total.count, grand_total.acv, 1.0),
    )

    return Aggregation(
        kind=kind,
        quarters=tuple(quarters),
        categories=tuple(categories),
        colors=colors,
        cells=cells,
        quarter_totals=quarter_totals,
        grand_total=grand_total,
        time_series=time_series,
        category_totals=category_totals,
        pivot=PivotTable(quarters=tuple(quarters), rows=tuple(rows), total_row=total_row),
    )


def quarter_breakdown(agg: Aggregation, quarter: str) -> QuarterBreakdown:
    qt = agg.quarter_total(quarter)
    if qt is None:
        raise ValueError(f"Unknown fiscal quarter: {quarter!r}")
    rows = []
    for category in agg.categories:
        cell = agg.cell(quarter, category)
        rows.append(
            BreakdownRow(
                category=category,
                count=cell.count,
                acv=cell.acv,
                avg_acv=safe_ratio(cell.acv, cell.count),
                pct=safe_ratio(cell.acv, qt.acv),
            )
        )
    return QuarterBreakdown(
        quarter=quarter,
        rows=tuple(rows),
        count=qt.count,
        acv=qt.acv,
        avg_acv=safe_ratio(qt.acv, qt.count),
    )
