"""Daily temperature chart rendering.

plotly is used purely as a sink: the same title, axis and series always
produce the same HTML document.
"""
from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Mapping, Sequence

import plotly.graph_objects as go

from ..storage.archive import DailySeries
from .artifacts import write_text_atomic

CHART_DIV_ID = 'daily-chart'

INDOOR_SERIES = 'Indoor Temp'
OUTDOOR_SERIES = 'Outdoor Temp'
FAN_SERIES = 'Fan RPM%'


def render_chart(
    output: Path,
    title: str,
    subtitle: str,
    x: Sequence[float],
    series: Mapping[str, Sequence[float]],
    *,
    mark_extremes: Sequence[str] = (),
) -> Path:
    """Render *series* against *x* into a standalone HTML file at *output*."""

    if not series:
        raise ValueError('at least one series is required')
    axis = list(x)
    fig = go.Figure()
    for name, values in series.items():
        points = list(values)
        if len(points) != len(axis):
            raise ValueError(f"series {name!r} has {len(points)} points, x axis has {len(axis)}")
        fig.add_trace(go.Scatter(x=axis, y=points, mode='lines', name=name, line=dict(shape='spline')))
    for name in mark_extremes:
        points = list(series.get(name) or ())
        if not points:
            continue
        fig.add_hline(y=min(points), line_dash='dot', annotation_text=f"{name} minimum")
        fig.add_hline(y=max(points), line_dash='dot', annotation_text=f"{name} maximum")

    fig.update_layout(
        title=dict(text=f"{title}<br><sup>{subtitle}</sup>"),
        xaxis_title='Day of month',
        hovermode='x unified',
        template='plotly_white',
        legend=dict(orientation='h', yanchor='bottom', y=1.02, xanchor='left', x=0),
    )
    html = fig.to_html(full_html=True, include_plotlyjs='cdn', div_id=CHART_DIV_ID)
    return write_text_atomic(output, html)


def render_daily_chart(
    series: DailySeries,
    output: Path,
    *,
    day: date,
    source: Path,
    version: str,
) -> Path:
    """Render the indoor/outdoor/fan chart for one archived day."""

    return render_chart(
        output,
        title=f"Infinilog {version} HVAC Daily Chart {day:%Y-%m-%d}",
        subtitle=f"Indoor and Outdoor Temperatures from {Path(source).name}",
        x=series.frac_day,
        series={
            INDOOR_SERIES: series.indoor,
            OUTDOOR_SERIES: series.outdoor,
            FAN_SERIES: series.fan,
        },
        mark_extremes=(INDOOR_SERIES, OUTDOOR_SERIES),
    )
