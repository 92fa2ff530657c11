from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import plotly.graph_objects as go

from ntpramp.metrics import StepResult
from ntpramp.report.export import series_frame

LOGGER = logging.getLogger("ntpramp.report.charts")

FAILED_CHART = "ntp_stress_test.html"
FAIL_PERCENT_CHART = "ntp_stress_test_fail_percentage.html"


def failed_requests_figure(series: Sequence[StepResult]) -> go.Figure:
    frame = series_frame(series)
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=frame["rate"],
            y=frame["failed"],
            name="Failed Requests",
            mode="lines+markers",
        )
    )
    fig.update_layout(
        title="NTP Server Stress Test",
        xaxis_title="Request Rate (requests/sec)",
        yaxis_title="Failed Requests",
        width=1000,
        height=500,
        margin=dict(l=10, r=10, t=40, b=10),
    )
    return fig


def fail_percent_figure(series: Sequence[StepResult]) -> go.Figure:
    frame = series_frame(series)
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=frame["rate"],
            y=frame["fail_percent"],
            name="Fail Percentage",
            mode="lines+markers",
        )
    )
    fig.update_layout(
        title="NTP Server Stress Test Fail Percentages",
        xaxis_title="Request Rate (requests/sec)",
        yaxis_title="Fail Percentage",
        yaxis=dict(range=[0, 100]),
        width=1000,
        height=500,
        margin=dict(l=10, r=10, t=40, b=10),
    )
    return fig


def render_charts(series: Sequence[StepResult], output_dir: Path) -> list[Path]:
    """Write the failed-count and fail-percentage charts, keyed on step rate."""
    if not series:
        LOGGER.warning("No steps recorded; skipping charts")
        return []
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for figure, filename in (
        (failed_requests_figure(series), FAILED_CHART),
        (fail_percent_figure(series), FAIL_PERCENT_CHART),
    ):
        path = output_dir / filename
        figure.write_html(str(path), include_plotlyjs="cdn")
        LOGGER.info("Rendering chart %s", path)
        paths.append(path)
    return paths
