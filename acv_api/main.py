from __future__ import annotations

import logging
import math

import numpy as np
from fastapi import Depends, FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from acv_api.schemas import DrillDownResponse, KindModel, MetaKindsResponse
from acv_core.aggregate import Aggregation, aggregate, quarter_breakdown
from acv_core.charts import donut_chart, stacked_bar_chart, to_vega_spec
from acv_core.config import configure_logging, get_settings
from acv_core.datasource import DataSource, FetchFailed, FileDataSource
from acv_core.drilldown import DrillDownController
from acv_core.kinds import KIND_INFO, DatasetKind, kind_from_slug, kind_info
from acv_core.layout import layout_donut, layout_stacked_bars
from acv_core.records import NormalizedRows, normalize_rows
from acv_core.tables import aggregation_payload, breakdown_payload, export_pivot_csv, records_payload


settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title="Won ACV Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_data_source() -> DataSource:
    return FileDataSource(get_settings().data_dir)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
            },
        )
    )


def _error(exc: FetchFailed) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": exc.message})


def _not_found(message: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": message})


def _load(slug: str, source: DataSource) -> tuple[NormalizedRows, Aggregation]:
    kind = kind_from_slug(slug)
    normalized = normalize_rows(source.fetch(kind), kind)
    return normalized, aggregate(normalized.records, kind)


def _raw(kind: DatasetKind, source: DataSource):
    try:
        rows = source.fetch(kind)
    except FetchFailed as exc:
        logger.exception("%s failed", kind.value)
        return _error(exc)
    return _json(rows)


@app.get("/api/customer-type")
def customer_type(source: DataSource = Depends(get_data_source)):
    return _raw(DatasetKind.CUSTOMER_TYPE, source)


@app.get("/api/teams")
def teams(source: DataSource = Depends(get_data_source)):
    return _raw(DatasetKind.TEAM, source)


@app.get("/api/industries")
def industries(source: DataSource = Depends(get_data_source)):
    return _raw(DatasetKind.INDUSTRY, source)


@app.get("/api/acv-range")
def acv_range(source: DataSource = Depends(get_data_source)):
    return _raw(DatasetKind.ACV_RANGE, source)


@app.get("/api/meta/kinds", response_model=MetaKindsResponse)
def meta_kinds():
    return MetaKindsResponse(
        kinds=[
            KindModel(slug=kind.value, label=info.label, title=info.title, category_field=info.category_field)
            for kind, info in KIND_INFO.items()
        ]
    )


@app.get("/api/{slug}/summary")
def summary(slug: str, source: DataSource = Depends(get_data_source)):
    try:
        normalized, agg = _load(slug, source)
    except ValueError as exc:
        return _not_found(str(exc))
    except FetchFailed as exc:
        logger.exception("summary %s failed", slug)
        return _error(exc)

    bars = layout_stacked_bars(agg.time_series, title=kind_info(agg.kind).title)
    donut = layout_donut(agg.category_totals)
    payload = aggregation_payload(agg)
    payload["dropped"] = normalized.dropped
    payload["layout"] = {"stacked_bars": bars, "donut": donut}
    payload["charts"] = {
        "stacked_bars": to_vega_spec(stacked_bar_chart(bars)),
        "donut": to_vega_spec(donut_chart(donut)),
    }
    return _json(payload)


@app.get("/api/{slug}/quarters/{quarter}")
def quarter(slug: str, quarter: str, source: DataSource = Depends(get_data_source)):
    try:
        _, agg = _load(slug, source)
        breakdown = quarter_breakdown(agg, quarter)
    except ValueError as exc:
        return _not_found(str(exc))
    except FetchFailed as exc:
        logger.exception("quarter %s/%s failed", slug, quarter)
        return _error(exc)
    return _json(breakdown_payload(breakdown))


@app.get("/api/{slug}/drilldown", response_model=DrillDownResponse)
def drilldown(slug: str, category: str = Query(default=""), source: DataSource = Depends(get_data_source)):
    try:
        normalized, agg = _load(slug, source)
    except ValueError as exc:
        return _not_found(str(exc))
    except FetchFailed as exc:
        logger.exception("drilldown %s failed", slug)
        return _error(exc)
    if category not in agg.colors:
        return _not_found(f"Unknown category: {category!r}")

    controller = DrillDownController(normalized.records)
    selection = controller.select(category, agg.colors[category])
    return DrillDownResponse(
        kind=agg.kind.value,
        category=selection.category,
        color=selection.color,
        records=records_payload(controller.rows()),
    )


@app.get("/api/export/{slug}")
def export_pivot(slug: str, source: DataSource = Depends(get_data_source)):
    try:
        _, agg = _load(slug, source)
    except ValueError as exc:
        return _not_found(str(exc))
    except FetchFailed as exc:
        logger.exception("export %s failed", slug)
        return _error(exc)
    filename = f"{slug}-pivot.csv"
    return Response(
        content=export_pivot_csv(agg),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
