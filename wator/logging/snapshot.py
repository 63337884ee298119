"""
Snapshot manager for the Wa-Tor Simulator.

Saves and loads planet state snapshots (JSON) at chosen chronons.
A snapshot records the grid size, counts and every live entity, which is
enough to redraw the grid or resume analysis later.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np

from wator.core.planet import Planet


SNAPSHOT_PREFIX = "chronon_"


class SnapshotManager:
    """
    Saves and loads planet snapshots as JSON files.

    Each snapshot is saved to: {output_dir}/snapshots/chronon_{N:06d}.json

    Attributes:
        output_dir: Base output directory for the run.
        snapshot_dir: Directory holding the snapshot files.
    """

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)
        self.snapshot_dir = self.output_dir / "snapshots"
        self.snapshot_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, chronon: int) -> Path:
        return self.snapshot_dir / f"{SNAPSHOT_PREFIX}{chronon:06d}.json"

    def save(self, planet: Planet, chronon: int) -> Path:
        """
        Save a snapshot of the current planet state.

        Returns:
            Path to the saved snapshot file.
        """
        file_path = self._path_for(chronon)
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(planet_to_dict(planet, chronon), f, indent=2, default=_json_default)
        return file_path

    def load(self, chronon: int) -> dict:
        """
        Load the snapshot taken at a chronon.

        Raises:
            FileNotFoundError: If the snapshot doesn't exist.
        """
        file_path = self._path_for(chronon)
        if not file_path.exists():
            raise FileNotFoundError(f"Snapshot not found: {file_path}")
        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def list_snapshots(self) -> list[int]:
        """Sorted chronon numbers that have a snapshot on disk."""
        chronons = []
        for p in self.snapshot_dir.glob(f"{SNAPSHOT_PREFIX}*.json"):
            suffix = p.stem[len(SNAPSHOT_PREFIX):]
            if suffix.isdigit():
                chronons.append(int(suffix))
        return sorted(chronons)


def planet_to_dict(planet: Planet, chronon: int) -> dict:
    """Convert planet state to a serializable dict."""
    return {
        "chronon": chronon,
        "width": planet.width,
        "height": planet.height,
        "prey_count": planet.prey_count,
        "predator_count": planet.predator_count,
        "entities": [e.to_dict() for e in planet],
    }


def occupancy_from_snapshot(snapshot: dict) -> np.ndarray:
    """Rebuild the (height, width) occupancy grid (0/1/2) from a snapshot dict."""
    grid = np.zeros((snapshot["height"], snapshot["width"]), dtype=np.int8)
    for e in snapshot.get("entities", []):
        grid[e["row"], e["col"]] = 1 if e["prey"] else 2
    return grid


def _json_default(obj: Any) -> Any:
    """JSON serialization fallback for NumPy types."""
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")
