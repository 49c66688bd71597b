"""Reporting helpers: daily charts and the chart index page."""
from __future__ import annotations

from .charts import render_chart, render_daily_chart
from .index import build_link_table, chart_filter, list_charts, write_index

__all__ = [
    "build_link_table",
    "chart_filter",
    "list_charts",
    "render_chart",
    "render_daily_chart",
    "write_index",
]
