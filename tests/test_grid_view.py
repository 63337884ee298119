"""
Unit tests for the UI figure builders (no Streamlit needed).

Tests cover:
- Grid heatmap from a planet and from a snapshot
- Population, phase and energy charts from the KPI DataFrame
"""

import numpy as np
import pandas as pd
import pytest

from wator.core.entity import Entity, reset_entity_id_counter
from wator.core.planet import Planet
from wator.core.position import Position
from wator.logging.snapshot import planet_to_dict
from wator.ui.components.charts import (
    phase_portrait,
    population_over_time,
    predator_energy_over_time,
)
from wator.ui.components.grid_view import (
    occupancy_figure,
    render_planet_grid,
    render_snapshot_grid,
)


@pytest.fixture(autouse=True)
def reset_ids():
    reset_entity_id_counter()
    yield
    reset_entity_id_counter()


@pytest.fixture
def planet() -> Planet:
    p = Planet(width=4, height=3)
    for is_prey, row, col in [(True, 0, 0), (True, 1, 2), (False, 2, 3)]:
        p.place(Entity(is_prey, Position(row, col)), Position(row, col))
    return p


@pytest.fixture
def kpi_df() -> pd.DataFrame:
    return pd.DataFrame({
        "chronon": [1, 2, 3],
        "prey_count": [30, 34, 29],
        "predator_count": [50, 48, 51],
        "total_count": [80, 82, 80],
        "avg_predator_energy": [14.0, 13.5, 13.9],
        "min_predator_energy": [10.0, 9.0, 8.0],
        "max_predator_energy": [15.0, 19.0, 19.0],
    })


class TestGridView:
    def test_heatmap_matches_occupancy(self, planet):
        fig = render_planet_grid(planet)
        np.testing.assert_array_equal(np.asarray(fig.data[0].z), planet.occupancy())

    def test_row_zero_on_top(self, planet):
        fig = render_planet_grid(planet)
        assert tuple(fig.layout.yaxis.range) == (2.5, -0.5)

    def test_default_title_has_counts(self, planet):
        fig = render_planet_grid(planet, chronon=7)
        assert "prey 2" in fig.layout.title.text
        assert "predators 1" in fig.layout.title.text
        assert "chronon 7" in fig.layout.title.text

    def test_custom_title_and_size(self, planet):
        fig = render_planet_grid(planet, title="Ocean", width=300, height=200)
        assert fig.layout.title.text == "Ocean"
        assert fig.layout.width == 300

    def test_snapshot_grid(self, planet):
        fig = render_snapshot_grid(planet_to_dict(planet, chronon=5))
        np.testing.assert_array_equal(np.asarray(fig.data[0].z), planet.occupancy())
        assert "chronon 5" in fig.layout.title.text

    def test_empty_grid(self):
        fig = occupancy_figure(np.zeros((2, 2), dtype=np.int8))
        assert len(fig.data) == 1


class TestCharts:
    def test_population_traces(self, kpi_df):
        fig = population_over_time(kpi_df)
        assert [t.name for t in fig.data] == ["Prey", "Predators", "Total"]
        assert list(fig.data[0].y) == [30, 34, 29]

    def test_missing_columns_skipped(self):
        fig = population_over_time(pd.DataFrame({"prey_count": [1, 2]}))
        assert [t.name for t in fig.data] == ["Prey"]

    def test_phase_portrait(self, kpi_df):
        fig = phase_portrait(kpi_df)
        assert len(fig.data) == 1
        assert list(fig.data[0].x) == [30, 34, 29]
        assert list(fig.data[0].y) == [50, 48, 51]

    def test_phase_portrait_empty(self):
        assert len(phase_portrait(pd.DataFrame()).data) == 0

    def test_energy_chart(self, kpi_df):
        fig = predator_energy_over_time(kpi_df)
        assert [t.name for t in fig.data] == ["Mean", "Min", "Max"]
