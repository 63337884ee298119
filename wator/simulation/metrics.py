"""
KPI Metrics collection for the Wa-Tor Simulator.

MetricsCollector gathers per-chronon Key Performance Indicators (KPIs)
from the planet state and the chronon's statistics. It produces a flat
dictionary per chronon suitable for CSV export, and a pandas DataFrame
for charts and analysis.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd

from wator.core.config import SimConfig
from wator.core.planet import Planet
from wator.simulation.engine import ChrononStats


# ---------------------------------------------------------------------------
# MetricsCollector
# ---------------------------------------------------------------------------

class MetricsCollector:
    """
    Collects and computes KPIs per chronon.

    Usage:
      1. After a chronon, call `collect(planet, chronon, chronon_stats)`
      2. Resulting dict is appended to `history`
      3. Call `to_dataframe()` for analysis or plotting

    Attributes:
        config: Simulation configuration.
        history: List of KPI dicts, one per collected chronon. Stays empty
            when keep_history is False.
        last: Most recently collected KPI dict, or None.
    """

    def __init__(self, config: SimConfig, keep_history: bool = True):
        self.config = config
        self.keep_history = keep_history
        self.history: list[dict] = []
        self.last: Optional[dict] = None

    def collect(
        self,
        planet: Planet,
        chronon: int,
        stats: Optional[ChrononStats] = None,
    ) -> dict:
        """
        Compute all KPIs for the current chronon and append to history.

        Args:
            planet: Current planet state.
            chronon: Chronon number the state belongs to.
            stats: Counters of the chronon that produced this state.

        Returns:
            Dict of KPI_name -> value.
        """
        if stats is None:
            stats = ChrononStats()

        kpis: dict = {}

        # --- Population ---
        kpis["chronon"] = chronon
        kpis["prey_count"] = planet.prey_count
        kpis["predator_count"] = planet.predator_count
        kpis["total_count"] = planet.population
        kpis["occupancy_pct"] = planet.population / planet.capacity
        kpis["capacity_pct"] = planet.population / self.config.population.max_entities
        kpis["prey_predator_ratio"] = (
            planet.prey_count / planet.predator_count if planet.predator_count > 0 else 0.0
        )

        # --- Predator energy ---
        energies = np.array(
            [e.energy for e in planet if e.energy is not None],
            dtype=float,
        )
        if energies.size:
            kpis["avg_predator_energy"] = float(np.mean(energies))
            kpis["min_predator_energy"] = float(np.min(energies))
            kpis["max_predator_energy"] = float(np.max(energies))
        else:
            kpis["avg_predator_energy"] = 0.0
            kpis["min_predator_energy"] = 0.0
            kpis["max_predator_energy"] = 0.0

        # --- Events ---
        kpis["prey_born"] = stats.prey_born
        kpis["predators_born"] = stats.predators_born
        kpis["prey_eaten"] = stats.prey_eaten
        kpis["predators_starved"] = stats.predators_starved
        kpis["prey_balanced"] = stats.prey_balanced
        kpis["predators_balanced"] = stats.predators_balanced
        kpis["moves"] = stats.moves
        kpis["blocked"] = stats.blocked

        self.last = kpis
        if self.keep_history:
            self.history.append(kpis)
        return kpis

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_history(self) -> list[dict]:
        """Return all collected KPI snapshots."""
        return list(self.history)

    def get_last(self) -> Optional[dict]:
        """Return the last collected KPI snapshot, or None."""
        return self.last

    def get_kpi_series(self, kpi_name: str) -> list:
        """Extract a single KPI as a list across all collected chronons."""
        return [snap[kpi_name] for snap in self.history if kpi_name in snap]

    def to_dataframe(self) -> pd.DataFrame:
        """History as a DataFrame with one row per chronon, columns in KPI order."""
        return pd.DataFrame(self.history, columns=self.kpi_names())

    @staticmethod
    def kpi_names() -> list[str]:
        """Return the ordered list of all KPI names."""
        return [
            "chronon",
            "prey_count",
            "predator_count",
            "total_count",
            "occupancy_pct",
            "capacity_pct",
            "prey_predator_ratio",
            "avg_predator_energy",
            "min_predator_energy",
            "max_predator_energy",
            "prey_born",
            "predators_born",
            "prey_eaten",
            "predators_starved",
            "prey_balanced",
            "predators_balanced",
            "moves",
            "blocked",
        ]
