"""
Chart components for the Wa-Tor Simulator UI.

Helper functions returning Plotly figures built from the per-chronon KPI
DataFrame produced by `MetricsCollector.to_dataframe()`.
"""

import pandas as pd
import plotly.graph_objects as go


def _x_axis(df: pd.DataFrame):
    return df["chronon"] if "chronon" in df.columns else df.index


def population_over_time(
    df: pd.DataFrame,
    title: str = "Population Over Time",
) -> go.Figure:
    """Line chart of prey, predator and total counts per chronon."""
    fig = go.Figure()

    pop_cols = {
        "prey_count": ("Prey", "#27ae60"),
        "predator_count": ("Predators", "#c0392b"),
        "total_count": ("Total", "#7f8c8d"),
    }

    x = _x_axis(df)
    for col, (label, color) in pop_cols.items():
        if col in df.columns:
            fig.add_trace(go.Scatter(
                x=x, y=df[col],
                mode="lines",
                name=label,
                line=dict(color=color, width=2),
            ))

    fig.update_layout(
        title=title,
        xaxis_title="Chronon",
        yaxis_title="Count",
        template="plotly_white",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
    )
    return fig


def phase_portrait(
    df: pd.DataFrame,
    title: str = "Prey vs Predators",
) -> go.Figure:
    """Predator count against prey count, the classic Lotka-Volterra cycle view."""
    fig = go.Figure()
    if {"prey_count", "predator_count"} <= set(df.columns):
        fig.add_trace(go.Scatter(
            x=df["prey_count"], y=df["predator_count"],
            mode="lines+markers",
            marker=dict(size=3, color=_x_axis(df), colorscale="Viridis"),
            line=dict(color="rgba(52, 73, 94, 0.4)", width=1),
            name="trajectory",
        ))
    fig.update_layout(
        title=title,
        xaxis_title="Prey",
        yaxis_title="Predators",
        template="plotly_white",
    )
    return fig


def predator_energy_over_time(
    df: pd.DataFrame,
    title: str = "Predator Energy",
) -> go.Figure:
    """Mean, min and max predator energy per chronon."""
    fig = go.Figure()
    energy_cols = {
        "avg_predator_energy": ("Mean", "#f39c12"),
        "min_predator_energy": ("Min", "#e74c3c"),
        "max_predator_energy": ("Max", "#2980b9"),
    }
    x = _x_axis(df)
    for col, (label, color) in energy_cols.items():
        if col in df.columns:
            fig.add_trace(go.Scatter(
                x=x, y=df[col], mode="lines", name=label,
                line=dict(color=color, width=2),
            ))
    fig.update_layout(
        title=title,
        xaxis_title="Chronon",
        yaxis_title="Energy",
        template="plotly_white",
    )
    return fig
