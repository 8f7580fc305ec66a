"""Pure chart layout: time series and category totals to drawing geometry.

Nothing here touches a rendering library. Every function returns frozen
dataclasses, so the same input always compares equal to the same output.
Coordinates are absolute pixels inside the chart canvas with the origin in
the top-left corner; donut angles are radians clockwise from 12 o'clock.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence, Tuple

from acv_core.aggregate import CategoryTotal, TimeSeries
from acv_core.formatting import format_percent, format_thousands


# Segments shorter than this (in pixels) get no in-bar label; 12px font.
LABEL_MIN_HEIGHT = 12.0
BAND_PADDING = 0.1
DONUT_INNER_RATIO = 0.6
LEGEND_ROW_HEIGHT = 20.0
LEGEND_SWATCH = 15.0
Y_TICK_COUNT = 10


@dataclass(frozen=True)
class Margin:
    top: float = 20.0
    right: float = 200.0
    bottom: float = 60.0
    left: float = 60.0


@dataclass(frozen=True)
class ChartDimensions:
    width: float = 800.0
    height: float = 400.0
    margin: Margin = field(default_factory=Margin)

    @property
    def inner_width(self) -> float:
        return max(0.0, self.width - self.margin.left - self.margin.right)

    @property
    def inner_height(self) -> float:
        return max(0.0, self.height - self.margin.top - self.margin.bottom)


@dataclass(frozen=True)
class DonutDimensions:
    width: float = 250.0
    height: float = 250.0
    legend_width: float = 220.0
    inner_ratio: float = DONUT_INNER_RATIO

    @property
    def radius(self) -> float:
        return min(self.width, self.height) / 2


@dataclass(frozen=True)
class BandScale:
    domain: Tuple[str, ...]
    start: float
    stop: float
    padding: float = BAND_PADDING

    @property
    def step(self) -> float:
        n = len(self.domain)
        return (self.stop - self.start) / max(1.0, n - self.padding + self.padding * 2)

    @property
    def bandwidth(self) -> float:
        return self.step * (1 - self.padding)

    def __call__(self, key: str) -> float:
        n = len(self.domain)
        offset = self.start + (self.stop - self.start - self.step * (n - self.padding)) / 2
        return offset + self.step * self.domain.index(key)


@dataclass(frozen=True)
class LinearScale:
    domain_max: float
    range_bottom: float
    range_top: float

    def __call__(self, value: float) -> float:
        # A zero (or negative) maximum collapses everything onto the baseline.
        if self.domain_max <= 0:
            return self.range_bottom
        return self.range_bottom + (self.range_top - self.range_bottom) * (value / self.domain_max)


def tick_step(stop: float, count: int = Y_TICK_COUNT) -> float:
    step0 = stop / max(1, count)
    base = 10 ** math.floor(math.log10(step0))
    error = step0 / base
    if error >= math.sqrt(50):
        return base * 10
    if error >= math.sqrt(10):
        return base * 5
    if error >= math.sqrt(2):
        return base * 2
    return base


def linear_ticks(stop: float, count: int = Y_TICK_COUNT) -> Tuple[float, ...]:
    if not stop > 0 or math.isinf(stop):
        return (0.0,)
    step = tick_step(stop, count)
    n = int(math.floor(stop / step + 1e-9))
    return tuple(round(i * step, 10) for i in range(n + 1))


@dataclass(frozen=True)
class Tick:
    value: float
    y: float
    label: str


@dataclass(frozen=True)
class LegendEntry:
    category: str
    color: str
    x: float
    y: float
    size: float
    label: str


@dataclass(frozen=True)
class BarSegment:
    quarter: str
    category: str
    color: str
    value: float
    y0: float
    y1: float
    x: float
    y: float
    width: float
    height: float
    label: str
    label_x: float
    label_y: float


@dataclass(frozen=True)
class QuarterBar:
    quarter: str
    x: float
    width: float
    total: float
    segments: Tuple[BarSegment, ...]


@dataclass(frozen=True)
class StackedBarLayout:
    width: float
    height: float
    plot_left: float
    plot_top: float
    plot_width: float
    plot_height: float
    title: str
    bars: Tuple[QuarterBar, ...]
    y_ticks: Tuple[Tick, ...]
    legend: Tuple[LegendEntry, ...]


@dataclass(frozen=True)
class ArcSegment:
    category: str
    color: str
    value: float
    share: float
    start_angle: float
    end_angle: float
    inner_radius: float
    outer_radius: float
    label: str
    label_x: float
    label_y: float


@dataclass(frozen=True)
class DonutLayout:
    width: float
    height: float
    center_x: float
    center_y: float
    inner_radius: float
    outer_radius: float
    total: float
    center_label: Tuple[str, str]
    arcs: Tuple[ArcSegment, ...]
    legend: Tuple[LegendEntry, ...]


def _legend(categories: Sequence[str], colors: dict, labels: Sequence[str], x: float, y: float) -> Tuple[LegendEntry, ...]:
    return tuple(
        LegendEntry(
            category=cat,
            color=colors.get(cat, ""),
            x=x,
            y=y + i * LEGEND_ROW_HEIGHT,
            size=LEGEND_SWATCH,
            label=label,
        )
        for i, (cat, label) in enumerate(zip(categories, labels))
    )


def layout_stacked_bars(
    series: TimeSeries,
    dimensions: ChartDimensions = ChartDimensions(),
    title: str = "",
) -> StackedBarLayout:
    """One bar per quarter, categories stacked bottom-up in series order."""
    m = dimensions.margin
    plot_w, plot_h = dimensions.inner_width, dimensions.inner_height
    quarters = tuple(p.quarter for p in series.points)
    x = BandScale(quarters, m.left, m.left + plot_w)
    y = LinearScale(series.max_total, m.top + plot_h, m.top)

    bars = []
    for point in series.points:
        bx = x(point.quarter)
        bw = x.bandwidth
        segments = []
        base = 0.0
        for category, value in zip(series.categories, point.values):
            y0, y1 = base, base + value
            base = y1
            top = y(max(y0, y1))
            height = y(min(y0, y1)) - top
            show = value > 0 and height >= LABEL_MIN_HEIGHT
            segments.append(
                BarSegment(
                    quarter=point.quarter,
                    category=category,
                    color=series.colors.get(category, ""),
                    value=value,
                    y0=y0,
                    y1=y1,
                    x=bx,
                    y=top,
                    width=bw,
                    height=height,
                    label=format_thousands(value) if show else "",
                    label_x=bx + bw / 2,
                    label_y=top + height / 2,
                )
            )
        bars.append(QuarterBar(point.quarter, bx, bw, point.total, tuple(segments)))

    ticks = tuple(Tick(v, y(v), format_thousands(v)) for v in linear_ticks(series.max_total))
    legend = _legend(series.categories, series.colors, series.categories, m.left + plot_w + 10, m.top)
    return StackedBarLayout(
        width=dimensions.width,
        height=dimensions.height,
        plot_left=m.left,
        plot_top=m.top,
        plot_width=plot_w,
        plot_height=plot_h,
        title=title,
        bars=tuple(bars),
        y_ticks=ticks,
        legend=legend,
    )


def layout_donut(
    totals: Sequence[CategoryTotal],
    dimensions: DonutDimensions = DonutDimensions(),
) -> DonutLayout:
    """Ring chart in category order; slices start at 12 o'clock and run clockwise.

    Non-positive values get a zero-width slice and an empty label.
    """
    outer = dimensions.radius
    inner = outer * dimensions.inner_ratio
    cx, cy = dimensions.width / 2, dimensions.height / 2
    total = float(sum(t.acv for t in totals))
    positive = sum(t.acv for t in totals if t.acv > 0)
    k = (2 * math.pi) / positive if positive > 0 else 0.0

    arcs = []
    angle = 0.0
    for t in totals:
        sweep = t.acv * k if t.acv > 0 else 0.0
        start, end = angle, angle + sweep
        angle = end
        mid = (start + end) / 2 - math.pi / 2
        r = (inner + outer) / 2
        arcs.append(
            ArcSegment(
                category=t.category,
                color=t.color,
                value=t.acv,
                share=t.share,
                start_angle=start,
                end_angle=end,
                inner_radius=inner,
                outer_radius=outer,
                label=format_percent(t.share) if sweep > 0 else "",
                label_x=cx + math.cos(mid) * r,
                label_y=cy + math.sin(mid) * r,
            )
        )

    categories = [t.category for t in totals]
    labels = [f"{t.category} ({format_percent(t.share)})" for t in totals]
    colors = {t.category: t.color for t in totals}
    legend = _legend(categories, colors, labels, dimensions.width + 10, 0.0)
    return DonutLayout(
        width=dimensions.width + dimensions.legend_width,
        height=max(dimensions.height, len(totals) * LEGEND_ROW_HEIGHT),
        center_x=cx,
        center_y=cy,
        inner_radius=inner,
        outer_radius=outer,
        total=total,
        center_label=("Total", format_thousands(total)),
        arcs=tuple(arcs),
        legend=legend,
    )
