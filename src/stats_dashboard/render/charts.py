from __future__ import annotations

from typing import Any

import plotly.graph_objects as go

from stats_dashboard.config.settings import PlotConfig


SCATTER_COLOR = "rgba(54, 162, 235, 0.5)"
BINNED_COLOR = "rgba(255, 159, 64, 0.6)"
CATEGORICAL_COLOR = "rgba(75, 192, 192, 0.6)"
PREDICTED_COLOR = "rgba(153, 102, 255, 0.6)"
ACTUAL_COLOR = "#F44336"
CI_BAND_COLOR = "rgba(54, 162, 235, 0.15)"


def _residual_layout(fig: go.Figure, title: str, x_title: str, plots: PlotConfig) -> go.Figure:
    fig.update_layout(
        template=plots.template,
        title=title,
        xaxis_title=x_title,
        yaxis_title="Residuals",
        yaxis_range=list(plots.residual_range),
        showlegend=False,
    )
    return fig


def scatter_figure(points: list[dict[str, float]], variable: str, plots: PlotConfig) -> go.Figure:
    fig = go.Figure(
        go.Scatter(
            x=[p["x"] for p in points],
            y=[p["y"] for p in points],
            mode="markers",
            marker={"color": SCATTER_COLOR},
            name=f"{variable} vs Residuals",
        )
    )
    return _residual_layout(fig, f"{variable} vs Pearson Residuals", variable, plots)


def _grouped_box_figure(data: dict[str, Any], color: str) -> go.Figure:
    fig = go.Figure()
    for label, points in zip(data["x"], data["points"]):
        fig.add_trace(
            go.Box(
                y=points,
                name=label,
                boxpoints="all",
                jitter=0.3,
                pointpos=0,
                marker={"color": color},
            )
        )
    fig.add_trace(
        go.Scatter(
            x=data["x"],
            y=data["mean"],
            mode="markers",
            marker={"color": "black", "symbol": "diamond"},
            error_y={"type": "data", "array": data["se"], "visible": True},
            name="Mean ± SE",
        )
    )
    return fig


def binned_box_figure(data: dict[str, Any], variable: str, plots: PlotConfig) -> go.Figure:
    fig = _grouped_box_figure(data, BINNED_COLOR)
    return _residual_layout(fig, f"{variable} (Binned) vs Residuals", f"{variable} bin", plots)


def categorical_box_figure(data: dict[str, Any], variable: str, plots: PlotConfig) -> go.Figure:
    fig = _grouped_box_figure(data, CATEGORICAL_COLOR)
    return _residual_layout(fig, f"Residuals by {variable}", variable, plots)


def category_pred_figure(data: dict[str, Any], variable: str, plots: PlotConfig) -> go.Figure:
    fig = go.Figure()
    for category, pred_values in zip(data["categories"], data["pred_values"]):
        fig.add_trace(
            go.Box(
                y=pred_values,
                name=category,
                boxpoints="outliers",
                marker={"color": PREDICTED_COLOR},
                showlegend=False,
            )
        )
    fig.add_trace(
        go.Scatter(
            x=data["categories"],
            y=data["actual"],
            mode="markers",
            marker={"color": ACTUAL_COLOR, "size": 10},
            error_y={
                "type": "data",
                "symmetric": False,
                "array": data["error_plus"],
                "arrayminus": data["error_minus"],
                "visible": True,
            },
            name="Observed mortality (95% CI)",
        )
    )
    fig.update_layout(
        template=plots.template,
        title=f"Predicted vs Observed Mortality by {variable}",
        xaxis_title=variable,
        yaxis_title="Mortality probability",
    )
    return fig


def smooth_residual_figure(data: dict[str, list[float]], variable: str, plots: PlotConfig) -> go.Figure:
    x = data["binned_x"]
    fig = go.Figure()
    # Upper bound first, then the lower bound filled up to it.
    fig.add_trace(
        go.Scatter(x=x, y=data["ci_upper"], mode="lines", line={"width": 0}, hoverinfo="skip", showlegend=False)
    )
    fig.add_trace(
        go.Scatter(
            x=x,
            y=data["ci_lower"],
            mode="lines",
            line={"width": 0},
            fill="tonexty",
            fillcolor=CI_BAND_COLOR,
            name="95% CI",
        )
    )
    fig.add_trace(
        go.Scatter(x=x, y=data["binned_mean"], mode="markers", marker={"color": BINNED_COLOR}, name="Binned mean")
    )
    fig.add_trace(
        go.Scatter(x=data["smooth_x"], y=data["smooth_y"], mode="lines", line={"color": "black"}, name="LOWESS")
    )
    fig.add_hline(y=0, line_dash="dot", line_color="grey")
    fig.update_layout(
        template=plots.template,
        title=f"Smoothed Residuals: {variable}",
        xaxis_title=variable,
        yaxis_title="Residuals",
    )
    return fig


def group_rate_figure(data: dict[str, list[Any]], variable: str, plots: PlotConfig) -> go.Figure:
    fig = go.Figure(
        go.Bar(
            x=data["groups"],
            y=data["rate"],
            customdata=data["n"],
            hovertemplate="%{x}: %{y:.1%} (n=%{customdata})<extra></extra>",
            marker={"color": CATEGORICAL_COLOR},
        )
    )
    fig.update_layout(
        template=plots.template,
        title=f"Mortality by {variable}",
        xaxis_title=variable,
        yaxis_title="Mortality rate",
        yaxis_tickformat=".0%",
    )
    return fig


def calibration_figure(data: dict[str, list[Any]], plots: PlotConfig) -> go.Figure:
    fig = go.Figure(
        data=[
            go.Scatter(x=data["predicted"], y=data["observed"], mode="lines+markers", text=data["bins"], name="Observed"),
            go.Scatter(x=[0, 1], y=[0, 1], mode="lines", line={"dash": "dash", "color": "grey"}, name="Ideal"),
        ]
    )
    fig.update_layout(
        template=plots.template,
        title="Calibration",
        xaxis_title="Mean predicted probability",
        yaxis_title="Observed proportion",
    )
    return fig


def figure_html(fig: go.Figure, div_id: str) -> str:
    # plotly.js is loaded once by the page.
    return fig.to_html(full_html=False, include_plotlyjs=False, div_id=div_id)
