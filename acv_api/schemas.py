from __future__ import annotations

from typing import List

from pydantic import BaseModel


class KindModel(BaseModel):
    slug: str
    label: str
    title: str
    category_field: str


class MetaKindsResponse(BaseModel):
    kinds: List[KindModel]


class DrillDownRecordModel(BaseModel):
    quarter: str
    category: str
    count: int
    acv: float


class DrillDownResponse(BaseModel):
    kind: str
    category: str
    color: str
    records: List[DrillDownRecordModel]
