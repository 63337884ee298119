"""
Unit tests for KPI metrics and run output.

Tests cover:
- MetricsCollector:
  - KPI computation from known planet states
  - Predator energy statistics
  - Event counters taken from ChrononStats
  - History tracking and DataFrame export
  - Empty planet edge cases
- CSVLogger:
  - Header written on first row
  - Incremental appending
  - Read-back as DataFrame
- SnapshotManager:
  - Save/load roundtrip
  - List snapshots
  - Missing snapshot error
- RunManager:
  - Directory creation and config copy
  - Logging/snapshot cadence
  - Summary and run listing
"""

import json
import shutil
import tempfile
from pathlib import Path

import numpy as np
import pytest

from wator.core.config import SimConfig, load_config
from wator.core.entity import Entity, reset_entity_id_counter
from wator.core.planet import Planet
from wator.core.position import Position
from wator.logging.csv_logger import CSVLogger
from wator.logging.run_manager import RunManager
from wator.logging.snapshot import SnapshotManager, occupancy_from_snapshot
from wator.simulation.engine import ChrononStats, SimulationEngine
from wator.simulation.metrics import MetricsCollector


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def reset_ids():
    reset_entity_id_counter()
    yield
    reset_entity_id_counter()


@pytest.fixture
def config() -> SimConfig:
    cfg = SimConfig()
    cfg.world.width = 10
    cfg.world.height = 10
    cfg.prey.initial_count = 0
    cfg.predator.initial_count = 0
    cfg.population.max_entities = 50
    return cfg


@pytest.fixture
def planet(config) -> Planet:
    return Planet(config.world.width, config.world.height)


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory, cleaned up after test."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


def put(planet: Planet, config: SimConfig, is_prey: bool, row: int, col: int, energy=None) -> Entity:
    entity = Entity(is_prey, Position(row, col), config)
    if energy is not None:
        entity.energy = energy
    planet.place(entity, Position(row, col))
    return entity


# ===========================================================================
# MetricsCollector Tests
# ===========================================================================

class TestMetricsCollectorBasic:
    def test_collect_returns_dict(self, config, planet):
        mc = MetricsCollector(config)
        kpis = mc.collect(planet, chronon=0)
        assert isinstance(kpis, dict)
        assert kpis["chronon"] == 0

    def test_all_kpi_names_present(self, config, planet):
        mc = MetricsCollector(config)
        kpis = mc.collect(planet, chronon=0)
        assert list(kpis.keys()) == MetricsCollector.kpi_names()

    def test_counts(self, config, planet):
        for col in range(4):
            put(planet, config, True, 0, col)
        put(planet, config, False, 5, 5)
        put(planet, config, False, 6, 6)

        kpis = MetricsCollector(config).collect(planet, chronon=3)
        assert kpis["prey_count"] == 4
        assert kpis["predator_count"] == 2
        assert kpis["total_count"] == 6
        assert kpis["occupancy_pct"] == pytest.approx(0.06)
        assert kpis["capacity_pct"] == pytest.approx(6 / 50)
        assert kpis["prey_predator_ratio"] == pytest.approx(2.0)

    def test_ratio_without_predators(self, config, planet):
        put(planet, config, True, 0, 0)
        kpis = MetricsCollector(config).collect(planet, chronon=0)
        assert kpis["prey_predator_ratio"] == 0.0


class TestEnergyStatistics:
    def test_known_energies(self, config, planet):
        put(planet, config, False, 0, 0, energy=3)
        put(planet, config, False, 0, 1, energy=9)
        put(planet, config, False, 0, 2, energy=12)
        put(planet, config, True, 1, 1)

        kpis = MetricsCollector(config).collect(planet, chronon=0)
        assert kpis["avg_predator_energy"] == pytest.approx(8.0)
        assert kpis["min_predator_energy"] == 3.0
        assert kpis["max_predator_energy"] == 12.0

    def test_empty_planet_energy(self, config, planet):
        kpis = MetricsCollector(config).collect(planet, chronon=0)
        assert kpis["avg_predator_energy"] == 0.0
        assert kpis["total_count"] == 0


class TestEventCounters:
    def test_stats_copied(self, config, planet):
        stats = ChrononStats(prey_born=4, predators_born=1, prey_eaten=2,
                             predators_starved=3, prey_balanced=5, moves=17, blocked=2)
        kpis = MetricsCollector(config).collect(planet, chronon=1, stats=stats)
        assert kpis["prey_born"] == 4
        assert kpis["predators_born"] == 1
        assert kpis["prey_eaten"] == 2
        assert kpis["predators_starved"] == 3
        assert kpis["prey_balanced"] == 5
        assert kpis["predators_balanced"] == 0
        assert kpis["moves"] == 17
        assert kpis["blocked"] == 2

    def test_missing_stats_default_to_zero(self, config, planet):
        kpis = MetricsCollector(config).collect(planet, chronon=0)
        assert kpis["prey_born"] == 0
        assert kpis["moves"] == 0


class TestMetricsHistory:
    def test_history_appended(self, config, planet):
        mc = MetricsCollector(config)
        for chronon in range(3):
            mc.collect(planet, chronon)
        assert len(mc.get_history()) == 3
        assert mc.get_last()["chronon"] == 2

    def test_without_history_keeps_only_last(self, config, planet):
        mc = MetricsCollector(config, keep_history=False)
        for chronon in range(500):
            mc.collect(planet, chronon)
        assert mc.history == []
        assert mc.get_last()["chronon"] == 499

    def test_get_last_empty(self, config):
        assert MetricsCollector(config).get_last() is None

    def test_get_kpi_series(self, config, planet):
        mc = MetricsCollector(config)
        mc.collect(planet, 0)
        put(planet, config, True, 0, 0)
        mc.collect(planet, 1)
        assert mc.get_kpi_series("prey_count") == [0, 1]

    def test_to_dataframe(self, config, planet):
        mc = MetricsCollector(config)
        mc.collect(planet, 0)
        mc.collect(planet, 1)
        df = mc.to_dataframe()
        assert list(df.columns) == MetricsCollector.kpi_names()
        assert len(df) == 2
        assert df["chronon"].tolist() == [0, 1]

    def test_empty_dataframe_has_columns(self, config):
        df = MetricsCollector(config).to_dataframe()
        assert df.empty
        assert list(df.columns) == MetricsCollector.kpi_names()

    def test_engine_integration(self, config):
        config.prey.initial_count = 10
        config.predator.initial_count = 5
        engine = SimulationEngine(config)
        engine.initialize()
        mc = MetricsCollector(config)
        engine.on_chronon = lambda chronon, eng: mc.collect(eng.planet, chronon, eng.chronon_stats)
        engine.run(10)

        df = mc.to_dataframe()
        assert df["chronon"].tolist() == list(range(1, 11))
        assert (df["total_count"] == df["prey_count"] + df["predator_count"]).all()
        assert df.iloc[-1]["prey_count"] == engine.prey_count


# ===========================================================================
# CSVLogger Tests
# ===========================================================================

class TestCSVLogger:
    def test_log_row_creates_file(self, tmp_dir):
        path = tmp_dir / "test.csv"
        logger = CSVLogger(path, columns=["a", "b", "c"])
        logger.log_row({"a": 1, "b": 2, "c": 3})
        assert path.exists()

    def test_header_written(self, tmp_dir):
        path = tmp_dir / "test.csv"
        logger = CSVLogger(path, columns=["a", "b", "c"])
        logger.log_row({"a": 1, "b": 2, "c": 3})

        lines = path.read_text().strip().split("\n")
        assert lines[0] == "a,b,c"
        assert lines[1] == "1,2,3"

    def test_append_multiple_rows(self, tmp_dir):
        path = tmp_dir / "test.csv"
        logger = CSVLogger(path, columns=["chronon", "prey"])
        logger.log_row({"chronon": 0, "prey": 30})
        logger.log_row({"chronon": 1, "prey": 31})
        assert logger.log_rows([{"chronon": 2, "prey": 29}]) == 1

        df = logger.read_dataframe()
        assert len(df) == 3
        assert df["prey"].tolist() == [30, 31, 29]
        assert logger.rows_written == 3

    def test_header_written_once_across_loggers(self, tmp_dir):
        path = tmp_dir / "test.csv"
        CSVLogger(path, columns=["x"]).log_row({"x": 1})
        CSVLogger(path, columns=["x"]).log_row({"x": 2})
        assert path.read_text().strip().split("\n") == ["x", "1", "2"]

    def test_read_empty(self, tmp_dir):
        logger = CSVLogger(tmp_dir / "nonexistent.csv", columns=["a"])
        df = logger.read_dataframe()
        assert df.empty
        assert list(df.columns) == ["a"]

    def test_extra_keys_ignored(self, tmp_dir):
        logger = CSVLogger(tmp_dir / "test.csv", columns=["a", "b"])
        logger.log_row({"a": 1, "b": 2, "c": 3})
        assert list(logger.read_dataframe().columns) == ["a", "b"]

    def test_default_columns_are_kpis(self, tmp_dir):
        logger = CSVLogger(tmp_dir / "metrics.csv")
        assert logger.columns == MetricsCollector.kpi_names()


# ===========================================================================
# SnapshotManager Tests
# ===========================================================================

class TestSnapshotManager:
    def test_save_creates_file(self, config, planet, tmp_dir):
        sm = SnapshotManager(tmp_dir)
        put(planet, config, True, 1, 1)
        path = sm.save(planet, chronon=0)
        assert path.exists()
        assert path.name == "chronon_000000.json"

    def test_save_load_roundtrip(self, config, planet, tmp_dir):
        sm = SnapshotManager(tmp_dir)
        put(planet, config, True, 1, 2)
        put(planet, config, False, 3, 4, energy=7)

        sm.save(planet, chronon=12)
        loaded = sm.load(12)

        assert loaded["chronon"] == 12
        assert loaded["width"] == 10 and loaded["height"] == 10
        assert loaded["prey_count"] == 1
        assert loaded["predator_count"] == 1
        predator = [e for e in loaded["entities"] if not e["prey"]][0]
        assert (predator["row"], predator["col"]) == (3, 4)
        assert predator["energy"] == 7

    def test_occupancy_from_snapshot(self, config, planet, tmp_dir):
        sm = SnapshotManager(tmp_dir)
        put(planet, config, True, 0, 0)
        put(planet, config, False, 9, 9)
        sm.save(planet, chronon=1)
        np.testing.assert_array_equal(occupancy_from_snapshot(sm.load(1)), planet.occupancy())

    def test_list_snapshots(self, planet, tmp_dir):
        sm = SnapshotManager(tmp_dir)
        for chronon in (10, 0, 5):
            sm.save(planet, chronon)
        assert sm.list_snapshots() == [0, 5, 10]

    def test_load_missing_raises(self, tmp_dir):
        with pytest.raises(FileNotFoundError):
            SnapshotManager(tmp_dir).load(99)


# ===========================================================================
# RunManager Tests
# ===========================================================================

class TestRunManager:
    def test_creates_directory_and_config(self, config, tmp_dir):
        rm = RunManager(config, base_dir=tmp_dir, run_name="test_run")
        assert rm.run_dir == tmp_dir / "test_run"
        assert rm.config_path.exists()
        assert rm.snapshots_dir.is_dir()

    def test_config_copy_loads_back(self, config, tmp_dir):
        config.world.seed = 1234
        rm = RunManager(config, base_dir=tmp_dir, run_name="r")
        assert load_config(rm.config_path).world.seed == 1234

    def test_default_run_name_is_timestamp(self, config, tmp_dir):
        rm = RunManager(config, base_dir=tmp_dir)
        assert rm.run_dir.parent == tmp_dir
        assert rm.run_dir.name[:8].isdigit()

    def test_cadence(self, config, tmp_dir):
        config.output.log_every_n_chronons = 5
        config.output.snapshot_every_n_chronons = 0
        rm = RunManager(config, base_dir=tmp_dir, run_name="r")
        assert rm.should_log(10)
        assert not rm.should_log(11)
        assert not rm.should_snapshot(0)

        config.output.snapshot_every_n_chronons = 100
        assert rm.should_snapshot(200)
        assert not rm.should_snapshot(150)

    def test_log_and_snapshot(self, config, planet, tmp_dir):
        rm = RunManager(config, base_dir=tmp_dir, run_name="r")
        kpis = MetricsCollector(config).collect(planet, chronon=1)
        rm.log_chronon(kpis)
        rm.save_snapshot(planet, 1)
        assert rm.metrics_path.exists()
        assert rm.snapshot_manager.list_snapshots() == [1]

    def test_finalize_writes_summary(self, config, tmp_dir):
        rm = RunManager(config, base_dir=tmp_dir, run_name="r")
        rm.finalize({"total_chronons": 7})
        with open(rm.run_dir / "summary.json", encoding="utf-8") as f:
            assert json.load(f)["total_chronons"] == 7

    def test_finalize_without_summary(self, config, tmp_dir):
        rm = RunManager(config, base_dir=tmp_dir, run_name="r")
        rm.finalize()
        assert not (rm.run_dir / "summary.json").exists()

    def test_list_runs(self, config, tmp_dir):
        RunManager(config, base_dir=tmp_dir, run_name="b")
        RunManager(config, base_dir=tmp_dir, run_name="a")
        (tmp_dir / "not_a_run").mkdir()
        assert RunManager.list_runs(tmp_dir) == ["a", "b"]
        assert RunManager.list_runs(tmp_dir / "missing") == []
