import math

import pytest

from acv_core.aggregate import CategoryTotal, TimeSeries, TimeSeriesPoint, aggregate
from acv_core.kinds import DatasetKind
from acv_core.layout import (
    LABEL_MIN_HEIGHT,
    BandScale,
    ChartDimensions,
    DonutDimensions,
    layout_donut,
    layout_stacked_bars,
    linear_ticks,
)


@pytest.fixture
def customer_agg(customer_records):
    return aggregate(customer_records, DatasetKind.CUSTOMER_TYPE)


def _series(values_by_quarter, categories=("A", "B")):
    colors = {c: f"#00000{i}" for i, c in enumerate(categories)}
    points = tuple(TimeSeriesPoint(q, tuple(vals), float(sum(vals))) for q, vals in values_by_quarter)
    return TimeSeries(categories=tuple(categories), points=points, colors=colors)


def test_layout_is_deterministic(customer_agg):
    first = layout_stacked_bars(customer_agg.time_series, title="Won ACV by Customer Type")
    second = layout_stacked_bars(customer_agg.time_series, title="Won ACV by Customer Type")
    assert first == second
    assert layout_donut(customer_agg.category_totals) == layout_donut(customer_agg.category_totals)


def test_segments_stack_bottom_up(customer_agg):
    dims = ChartDimensions()
    layout = layout_stacked_bars(customer_agg.time_series, dims)
    baseline = dims.margin.top + dims.inner_height
    bar = layout.bars[0]
    first, second = bar.segments
    assert first.category == "Existing Customer"
    assert first.y + first.height == pytest.approx(baseline)
    assert second.y + second.height == pytest.approx(first.y)
    # the tallest bar reaches the top of the plot
    assert second.y == pytest.approx(dims.margin.top)
    assert first.label == "$648K"
    assert second.label == "$225K"
    assert first.color == customer_agg.colors["Existing Customer"]


def test_band_scale_padding():
    scale = BandScale(("2024-Q1",), 0.0, 110.0, padding=0.1)
    assert scale.step == pytest.approx(100.0)
    assert scale.bandwidth == pytest.approx(90.0)
    assert scale("2024-Q1") == pytest.approx(10.0)


def test_zero_height_segment_has_empty_label():
    layout = layout_stacked_bars(_series([("2024-Q1", (1000.0, 0.0))]))
    empty = layout.bars[0].segments[1]
    assert empty.height == 0
    assert empty.label == ""


def test_small_segment_label_hidden():
    layout = layout_stacked_bars(_series([("2024-Q1", (1_000_000.0, 1000.0))]))
    tiny = layout.bars[0].segments[1]
    assert 0 < tiny.height < LABEL_MIN_HEIGHT
    assert tiny.label == ""
    assert layout.bars[0].segments[0].label == "$1,000K"


def test_all_zero_series_collapses_to_baseline():
    dims = ChartDimensions()
    layout = layout_stacked_bars(_series([("2024-Q1", (0.0, 0.0)), ("2024-Q2", (0.0, 0.0))]), dims)
    for bar in layout.bars:
        for seg in bar.segments:
            assert seg.height == 0
            assert seg.y == dims.margin.top + dims.inner_height
    assert [t.value for t in layout.y_ticks] == [0.0]


def test_empty_series():
    layout = layout_stacked_bars(TimeSeries())
    assert layout.bars == ()
    assert layout.legend == ()


def test_y_ticks():
    assert linear_ticks(872464.78) == tuple(float(v) for v in range(0, 900000, 100000))
    assert linear_ticks(0.0) == (0.0,)


def test_legend_follows_category_order(customer_agg):
    layout = layout_stacked_bars(customer_agg.time_series)
    assert [e.category for e in layout.legend] == ["Existing Customer", "New Customer"]
    assert layout.legend[1].y - layout.legend[0].y == 20.0


def test_donut_arcs(customer_agg):
    dims = DonutDimensions()
    donut = layout_donut(customer_agg.category_totals, dims)
    assert [a.category for a in donut.arcs] == ["Existing Customer", "New Customer"]
    assert donut.arcs[0].start_angle == 0.0
    assert donut.arcs[-1].end_angle == pytest.approx(2 * math.pi)
    assert donut.arcs[0].end_angle == pytest.approx(donut.arcs[1].start_angle)
    assert donut.inner_radius == pytest.approx(donut.outer_radius * 0.6)
    assert donut.arcs[0].label == "74.3%"
    assert donut.arcs[1].label == "25.7%"
    assert donut.center_label == ("Total", "$872K")
    assert donut.legend[0].label == "Existing Customer (74.3%)"


def test_donut_zero_total():
    totals = [CategoryTotal("A", 0, 0.0, 0.0, "#1"), CategoryTotal("B", 0, 0.0, 0.0, "#2")]
    donut = layout_donut(totals)
    assert all(a.start_angle == a.end_angle == 0.0 for a in donut.arcs)
    assert all(a.label == "" for a in donut.arcs)
    assert donut.center_label == ("Total", "$0K")
