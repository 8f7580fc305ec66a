"""Core (UI-agnostic) won-ACV dashboard logic.

This package contains:
- dataset kinds and raw row normalization
- category ordering and color assignment
- aggregation into time series, category totals and pivot tables
- chart layout (pure geometry) and Altair -> Vega-Lite rendering
- drill-down and dataset load state
"""
