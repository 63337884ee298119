"""
Run Manager for the Wa-Tor Simulator.

Owns the output directory of one simulation run and wires the engine's
per-chronon callback to the CSV metrics log and the snapshot files.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from wator.core.config import SimConfig, save_config
from wator.core.planet import Planet
from wator.logging.csv_logger import CSVLogger
from wator.logging.snapshot import SnapshotManager


class RunManager:
    """
    Manages a single simulation run's output directory.

    Directory structure:
        {base_dir}/{run_name}/
            config.json          - copy of the simulation config
            metrics.csv          - per-chronon KPIs
            summary.json         - written by finalize()
            snapshots/           - planet snapshots (JSON)
                chronon_000000.json
                ...

    Attributes:
        run_dir: Path to this run's output directory.
        csv_logger: CSVLogger instance for metrics.
        snapshot_manager: SnapshotManager instance for planet snapshots.
    """

    def __init__(
        self,
        config: SimConfig,
        base_dir: Optional[str | Path] = None,
        run_name: Optional[str] = None,
    ):
        """
        Initialize a run manager and create the output directory.

        Args:
            config: Simulation configuration (saved as config.json).
            base_dir: Base output directory. None = config.output.output_dir.
            run_name: Name for this run's subdirectory. None = timestamp.
        """
        if base_dir is None:
            base_dir = config.output.output_dir
        if run_name is None:
            run_name = datetime.now().strftime("%Y%m%d_%H%M%S")

        self.config = config
        self.run_dir = Path(base_dir) / run_name
        self.run_dir.mkdir(parents=True, exist_ok=True)

        self._config_path = self.run_dir / "config.json"
        save_config(config, self._config_path)

        self.csv_logger = CSVLogger(self.run_dir / "metrics.csv")
        self.snapshot_manager = SnapshotManager(self.run_dir)

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def metrics_path(self) -> Path:
        return self.csv_logger.file_path

    @property
    def snapshots_dir(self) -> Path:
        return self.snapshot_manager.snapshot_dir

    def should_log(self, chronon: int) -> bool:
        return chronon % self.config.output.log_every_n_chronons == 0

    def should_snapshot(self, chronon: int) -> bool:
        every = self.config.output.snapshot_every_n_chronons
        return every > 0 and chronon % every == 0

    def log_chronon(self, kpis: dict) -> None:
        """Append a chronon's KPIs to the CSV log."""
        self.csv_logger.log_row(kpis)

    def save_snapshot(self, planet: Planet, chronon: int) -> Path:
        return self.snapshot_manager.save(planet, chronon)

    def finalize(self, summary: Optional[dict] = None) -> None:
        """Write summary.json if a summary is given."""
        if summary is not None:
            with open(self.run_dir / "summary.json", "w", encoding="utf-8") as f:
                json.dump(summary, f, indent=2, ensure_ascii=False)

    @staticmethod
    def list_runs(base_dir: str | Path) -> list[str]:
        """Sorted names of run directories (those holding a config.json)."""
        base = Path(base_dir)
        if not base.exists():
            return []
        return sorted(
            d.name for d in base.iterdir()
            if d.is_dir() and (d / "config.json").exists()
        )

    def __repr__(self) -> str:
        return f"RunManager(run_dir='{self.run_dir}')"
