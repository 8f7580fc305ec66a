from __future__ import annotations

from typing import Any, Dict, Sequence

import altair as alt
import pandas as pd

from acv_core.layout import DonutLayout, LegendEntry, StackedBarLayout

alt.data_transformers.disable_max_rows()

DONUT_SELECTION = "slice"


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _px(field: str) -> Dict[str, Any]:
    # Geometry is already in pixels, so every positional channel bypasses scales.
    return {"field": field, "type": "quantitative", "scale": None, "axis": None}


def _legend_layers(entries: Sequence[LegendEntry]) -> list:
    df = pd.DataFrame(
        [
            {
                "x": e.x,
                "x2": e.x + e.size,
                "y": e.y,
                "y2": e.y + e.size,
                "text_x": e.x + e.size + 5,
                "text_y": e.y + e.size / 2,
                "color": e.color,
                "label": e.label,
            }
            for e in entries
        ],
        columns=["x", "x2", "y", "y2", "text_x", "text_y", "color", "label"],
    )
    swatches = alt.Chart(df).mark_rect().encode(
        x=alt.X(**_px("x")),
        x2="x2",
        y=alt.Y(**_px("y")),
        y2="y2",
        color=alt.Color("color:N", scale=None, legend=None),
    )
    labels = alt.Chart(df).mark_text(align="left", baseline="middle", fontSize=12).encode(
        x=alt.X(**_px("text_x")),
        y=alt.Y(**_px("text_y")),
        text="label:N",
    )
    return [swatches, labels]


def _canvas(layers: list, width: float, height: float) -> alt.LayerChart:
    return (
        alt.layer(*layers)
        .properties(width=width, height=height, autosize="none", padding=0)
        .configure_view(stroke=None)
    )


def stacked_bar_chart(layout: StackedBarLayout) -> alt.LayerChart:
    segments = pd.DataFrame(
        [
            {
                "quarter": s.quarter,
                "category": s.category,
                "value": s.value,
                "color": s.color,
                "x": s.x,
                "x2": s.x + s.width,
                "y": s.y,
                "y2": s.y + s.height,
                "label": s.label,
                "label_x": s.label_x,
                "label_y": s.label_y,
            }
            for bar in layout.bars
            for s in bar.segments
        ],
        columns=["quarter", "category", "value", "color", "x", "x2", "y", "y2", "label", "label_x", "label_y"],
    )
    bottom = layout.plot_top + layout.plot_height
    quarters = pd.DataFrame(
        [{"quarter": b.quarter, "x": b.x + b.width / 2, "y": bottom + 8} for b in layout.bars],
        columns=["quarter", "x", "y"],
    )
    ticks = pd.DataFrame(
        [{"x": layout.plot_left, "x2": layout.plot_left + layout.plot_width, "y": t.y, "label": t.label} for t in layout.y_ticks],
        columns=["x", "x2", "y", "label"],
    )

    rects = alt.Chart(segments).mark_rect().encode(
        x=alt.X(**_px("x")),
        x2="x2",
        y=alt.Y(**_px("y")),
        y2="y2",
        color=alt.Color("color:N", scale=None, legend=None),
        tooltip=[
            alt.Tooltip("quarter:N", title="Quarter"),
            alt.Tooltip("category:N", title="Category"),
            alt.Tooltip("value:Q", title="ACV", format="$,.0f"),
        ],
    )
    segment_labels = alt.Chart(segments).mark_text(color="white", fontSize=12, baseline="middle").encode(
        x=alt.X(**_px("label_x")),
        y=alt.Y(**_px("label_y")),
        text="label:N",
    )
    grid = alt.Chart(ticks).mark_rule(color="#e5e7eb", strokeDash=[4, 4]).encode(
        x=alt.X(**_px("x")),
        x2="x2",
        y=alt.Y(**_px("y")),
    )
    tick_labels = alt.Chart(ticks).mark_text(align="right", baseline="middle", fontSize=11, dx=-6).encode(
        x=alt.X(**_px("x")),
        y=alt.Y(**_px("y")),
        text="label:N",
    )
    quarter_labels = alt.Chart(quarters).mark_text(align="right", baseline="top", angle=315, fontSize=11).encode(
        x=alt.X(**_px("x")),
        y=alt.Y(**_px("y")),
        text="quarter:N",
    )
    title = alt.Chart(pd.DataFrame([{"x": layout.plot_left + layout.plot_width / 2, "y": layout.plot_top / 2, "text": layout.title}])).mark_text(
        fontSize=16, baseline="middle"
    ).encode(x=alt.X(**_px("x")), y=alt.Y(**_px("y")), text="text:N")

    layers = [grid, rects, segment_labels, tick_labels, quarter_labels, title] + _legend_layers(layout.legend)
    return _canvas(layers, layout.width, layout.height)


def donut_chart(layout: DonutLayout) -> alt.LayerChart:
    arcs = pd.DataFrame(
        [
            {
                "category": a.category,
                "value": a.value,
                "share": a.share,
                "color": a.color,
                "start": a.start_angle,
                "end": a.end_angle,
                "inner": a.inner_radius,
                "outer": a.outer_radius,
                "cx": layout.center_x,
                "cy": layout.center_y,
                "label": a.label,
                "label_x": a.label_x,
                "label_y": a.label_y,
            }
            for a in layout.arcs
        ],
        columns=["category", "value", "share", "color", "start", "end", "inner", "outer", "cx", "cy", "label", "label_x", "label_y"],
    )
    ring = alt.Chart(arcs).mark_arc(cursor="pointer").encode(
        theta=alt.Theta("start:Q", scale=None),
        theta2="end",
        radius=alt.Radius("outer:Q", scale=None),
        radius2="inner",
        x=alt.X(**_px("cx")),
        y=alt.Y(**_px("cy")),
        color=alt.Color("color:N", scale=None, legend=None),
        tooltip=[
            alt.Tooltip("category:N", title="Category"),
            alt.Tooltip("value:Q", title="ACV", format="$,.0f"),
            alt.Tooltip("share:Q", title="Share", format=".1%"),
        ],
    ).add_params(alt.selection_point(name=DONUT_SELECTION, fields=["category"]))
    arc_labels = alt.Chart(arcs).mark_text(fontSize=11, baseline="middle").encode(
        x=alt.X(**_px("label_x")),
        y=alt.Y(**_px("label_y")),
        text="label:N",
    )
    center = pd.DataFrame(
        [
            {"x": layout.center_x, "y": layout.center_y - 10, "text": layout.center_label[0]},
            {"x": layout.center_x, "y": layout.center_y + 10, "text": layout.center_label[1]},
        ]
    )
    center_text = alt.Chart(center).mark_text(fontSize=16, baseline="middle").encode(
        x=alt.X(**_px("x")),
        y=alt.Y(**_px("y")),
        text="text:N",
    )
    layers = [ring, arc_labels, center_text] + _legend_layers(layout.legend)
    return _canvas(layers, layout.width, layout.height)

