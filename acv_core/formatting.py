from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional


def round_half_up(value: float, ndigits: int = 0) -> float:
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def _finite(value: Optional[float]) -> bool:
    return value is not None and not (math.isnan(value) or math.isinf(value))


def format_thousands(value: Optional[float]) -> str:
    """``647821.48`` -> ``$648K``."""
    if not _finite(value):
        return ""
    return f"${round_half_up(value / 1000):,.0f}K"


def format_percent(value: Optional[float], decimals: int = 1) -> str:
    """Fraction to percent text: ``0.7426`` -> ``74.3%``."""
    if not _finite(value):
        return ""
    return f"{round_half_up(value * 100, decimals):.{decimals}f}%"


def format_currency(value: Optional[float], decimals: int = 2) -> str:
    if not _finite(value):
        return "N/A"
    return f"${value:,.{decimals}f}"
