from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


class DatasetKind(str, Enum):
    CUSTOMER_TYPE = "customer-type"
    TEAM = "teams"
    INDUSTRY = "industries"
    ACV_RANGE = "acv-range"


@dataclass(frozen=True)
class KindInfo:
    category_field: str
    label: str
    file_name: str
    fixed_categories: Optional[Tuple[str, ...]] = None

    @property
    def title(self) -> str:
        return f"Won ACV by {self.label}"


CUSTOMER_TYPES: Tuple[str, ...] = ("Existing Customer", "New Customer")

KIND_INFO: Dict[DatasetKind, KindInfo] = {
    DatasetKind.CUSTOMER_TYPE: KindInfo("Cust_Type", "Customer Type", "Customer Type.json", CUSTOMER_TYPES),
    DatasetKind.TEAM: KindInfo("Team", "Team", "Team.json"),
    DatasetKind.INDUSTRY: KindInfo("Acct_Industry", "Industry", "Account Industry.json"),
    DatasetKind.ACV_RANGE: KindInfo("ACV_Range", "ACV Range", "ACV Range.json"),
}

QUARTER_FIELD = "closed_fiscal_quarter"


def kind_info(kind: DatasetKind) -> KindInfo:
    return KIND_INFO[DatasetKind(kind)]


def kind_from_slug(slug: str) -> DatasetKind:
    try:
        return DatasetKind((slug or "").strip().lower())
    except ValueError:
        raise ValueError(f"Unknown dataset kind: {slug!r}") from None


def extract_category(raw: Mapping[str, Any], kind: DatasetKind) -> str:
    """Category label of a raw row; missing or null values become ``""``."""
    value = raw.get(kind_info(kind).category_field)
    if value is None:
        return ""
    return str(value)
