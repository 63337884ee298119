"""
Grid View component for the Wa-Tor Simulator UI.

Renders the planet occupancy as a Plotly heatmap:
  - empty cells in a pale sea blue
  - prey in green
  - predators in red
Works from a live Planet or from a saved snapshot dict.
"""

from typing import Optional

import numpy as np
import plotly.graph_objects as go

from wator.core.planet import Planet
from wator.logging.snapshot import occupancy_from_snapshot


# Discrete colorscale for cell states 0 (empty), 1 (prey), 2 (predator)
CELL_COLORSCALE = [
    [0.0, "#d6eaf8"], [0.333, "#d6eaf8"],
    [0.333, "#27ae60"], [0.666, "#27ae60"],
    [0.666, "#c0392b"], [1.0, "#c0392b"],
]

CELL_LABELS = np.array(["empty", "prey", "predator"])


def occupancy_figure(
    occupancy: np.ndarray,
    title: Optional[str] = None,
    width: int = 700,
    height: int = 700,
) -> go.Figure:
    """
    Build a heatmap figure from an occupancy grid.

    Args:
        occupancy: (height, width) int array with values 0, 1 or 2.
        title: Chart title.
        width, height: Plot size in pixels.

    Returns:
        Plotly figure. Row 0 is drawn at the top.
    """
    rows, cols = occupancy.shape
    fig = go.Figure(go.Heatmap(
        z=occupancy,
        zmin=0, zmax=2,
        colorscale=CELL_COLORSCALE,
        showscale=False,
        customdata=CELL_LABELS[occupancy],
        hovertemplate="(%{y}, %{x}) %{customdata}<extra></extra>",
    ))
    fig.update_layout(
        title=title,
        width=width,
        height=height,
        xaxis=dict(range=[-0.5, cols - 0.5], title="col",
                   scaleanchor="y", scaleratio=1, constrain="domain"),
        yaxis=dict(range=[rows - 0.5, -0.5], title="row"),
        template="plotly_white",
        margin=dict(l=40, r=40, t=60, b=40),
    )
    return fig


def render_planet_grid(
    planet: Planet,
    chronon: Optional[int] = None,
    title: Optional[str] = None,
    **kwargs,
) -> go.Figure:
    """Render a live planet."""
    if title is None:
        title = (
            f"Planet ({planet.width}x{planet.height}) | "
            f"prey {planet.prey_count}, predators {planet.predator_count}"
        )
        if chronon is not None:
            title += f" | chronon {chronon}"
    return occupancy_figure(planet.occupancy(), title=title, **kwargs)


def render_snapshot_grid(snapshot: dict, title: Optional[str] = None, **kwargs) -> go.Figure:
    """Render a snapshot dict as saved by SnapshotManager."""
    if title is None:
        title = (
            f"Snapshot ({snapshot['width']}x{snapshot['height']}) | "
            f"chronon {snapshot.get('chronon', '?')}"
        )
    return occupancy_figure(occupancy_from_snapshot(snapshot), title=title, **kwargs)
