from __future__ import annotations

import re
from typing import Dict, Iterable, List, Sequence

from acv_core.kinds import DatasetKind, kind_info


# d3.schemeCategory10
PALETTE: tuple = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
)

_RANGE_TOKEN = re.compile(r"\$(\d+)K")


def acv_range_floor(label: str) -> int:
    """Integer from the first ``$<digits>K`` token in ``label`` (0 when absent)."""
    match = _RANGE_TOKEN.search(label or "")
    return int(match.group(1)) if match else 0


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out


def order_categories(categories: Iterable[str], kind: DatasetKind) -> List[str]:
    """Display order shared by bar stacks, donut slices, legends and pivot rows.

    ``categories`` is taken in first-seen order; ties in the ACV range order keep it.
    """
    kind = DatasetKind(kind)
    fixed = kind_info(kind).fixed_categories
    if fixed is not None:
        return list(fixed)
    unique = _unique(categories)
    if kind is DatasetKind.ACV_RANGE:
        return sorted(unique, key=acv_range_floor)
    return sorted(unique)


def assign_colors(ordered: Sequence[str], palette: Sequence[str] = PALETTE) -> Dict[str, str]:
    # Wraps around when there are more categories than colors.
    return {cat: palette[i % len(palette)] for i, cat in enumerate(ordered)}
