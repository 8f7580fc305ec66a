from contextlib import contextmanager

import pandas as pd
import streamlit as st

from acv_core.aggregate import quarter_breakdown
from acv_core.charts import DONUT_SELECTION, donut_chart, stacked_bar_chart
from acv_core.config import configure_logging, get_settings
from acv_core.datasource import HttpDataSource
from acv_core.formatting import format_currency, format_percent
from acv_core.kinds import KIND_INFO, DatasetKind, kind_info
from acv_core.layout import layout_donut, layout_stacked_bars
from acv_core.session import DashboardSession, LoadStatus
from acv_core.tables import breakdown_frame, export_pivot_csv, format_pivot_frame, pivot_frame


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #333333;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #E3EAF5;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #333333;margin-bottom: 8px;}
        .drill-header {border-radius: 8px 8px 0 0;padding: 10px 14px;color: white;font-weight: 600;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def render_page_header(title: str) -> bool:
    c1, c2 = st.columns([6, 1])
    with c1:
        st.markdown(f"<div class='app-top-bar'><div class='page-title'>{title}</div></div>", unsafe_allow_html=True)
    with c2:
        refresh = st.button("Refresh")
    return refresh


def get_session() -> DashboardSession:
    if "dashboard_session" not in st.session_state:
        st.session_state["dashboard_session"] = DashboardSession()
    return st.session_state["dashboard_session"]


# ---------- UI setup ----------
settings = get_settings()
configure_logging(settings.log_level)
st.set_page_config(page_title="Won ACV Dashboard", layout="wide")
inject_base_styles()

source = HttpDataSource(settings.api_base_url, timeout=settings.fetch_timeout)
session = get_session()

with st.sidebar:
    st.markdown("### Dataset")
    kinds = list(KIND_INFO.keys())
    selected = st.radio(
        "Dataset",
        kinds,
        index=kinds.index(DatasetKind.TEAM),
        format_func=lambda k: kind_info(k).label,
        label_visibility="collapsed",
    )

info = kind_info(selected)
refresh = render_page_header(info.title)

if refresh or session.state.status is LoadStatus.IDLE or session.state.kind is not selected:
    with st.spinner(f"Loading {info.label} data..."):
        session.load(selected, source)

state = session.state
if state.status is LoadStatus.ERROR:
    st.error(state.error or "Failed to fetch data")
    st.stop()
if state.status is not LoadStatus.READY or state.aggregation is None:
    st.info("Loading...")
    st.stop()

agg = state.aggregation
if state.dropped:
    st.caption(f"{state.dropped} row(s) without a fiscal quarter were skipped.")

# ----- KPIs -----
k1, k2, k3 = st.columns(3)
k1.metric("Total Opportunities", f"{agg.grand_total.count:,}")
k2.metric("Total ACV", format_currency(agg.grand_total.acv, 0))
k3.metric("Average ACV", format_currency(agg.grand_total.avg_acv, 0))

if not agg.quarters:
    st.warning(f"No {info.label} data available.")
    st.stop()

# ----- Charts -----
bars = layout_stacked_bars(agg.time_series, title=info.title)
donut = layout_donut(agg.category_totals)
left, right = st.columns([3, 2])
with left:
    st.altair_chart(stacked_bar_chart(bars), use_container_width=False)
with right:
    event = st.altair_chart(
        donut_chart(donut),
        use_container_width=False,
        on_select="rerun",
        key=f"donut_{selected.value}",
    )

# Streamlit keeps the point selection across reruns, so only a new click opens the panel.
picked = event.selection.get(DONUT_SELECTION) or []
clicked = picked[0].get("category") if picked else None
last_key = f"donut_click_{selected.value}"
if clicked != st.session_state.get(last_key):
    st.session_state[last_key] = clicked
    if clicked is not None:
        session.select(clicked)

# ----- Drill-down -----
with card(f"{info.label} Details"):
    selection = session.drilldown.selection
    if selection is not None:
        st.markdown(
            f"<div class='drill-header' style='background-color:{selection.color}'>{selection.category or '(blank)'} Details</div>",
            unsafe_allow_html=True,
        )
        st.dataframe(pd.DataFrame(session.drilldown.detail_rows()), hide_index=True, use_container_width=True)
        if st.button("Close"):
            session.drilldown.dismiss()
            st.rerun()
    else:
        st.caption(f"Click a donut slice to see quarterly details for that {info.label.lower()}.")

# ----- Pivot -----
with card(f"Won ACV by {info.label} and Quarter"):
    st.dataframe(format_pivot_frame(pivot_frame(agg.pivot, index_name=info.label)), use_container_width=True)
    st.download_button(
        "Download pivot CSV",
        data=export_pivot_csv(agg),
        file_name=f"{selected.value}-pivot.csv",
        mime="text/csv",
    )

# ----- Quarter breakdown -----
with card("Quarter Breakdown"):
    quarter = st.selectbox("Fiscal Quarter", list(agg.quarters), index=len(agg.quarters) - 1)
    breakdown = quarter_breakdown(agg, quarter)
    b1, b2, b3 = st.columns(3)
    b1.metric("Opportunities", f"{breakdown.count:,}")
    b2.metric("ACV", format_currency(breakdown.acv, 0))
    b3.metric("Average ACV", format_currency(breakdown.avg_acv, 0))
    table = breakdown_frame(breakdown, label=info.label)
    table["ACV"] = table["ACV"].apply(lambda v: format_currency(v, 0))
    table["Average ACV"] = table["Average ACV"].apply(lambda v: format_currency(v, 0))
    table["% of Quarter"] = [format_percent(r.pct) for r in breakdown.rows]
    st.dataframe(table, hide_index=True, use_container_width=True)
