"""Tests for CSV, image and report exports."""

from __future__ import annotations

import csv
import warnings
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from pedestrian_flow_ca.export import CSVWriter, Reporter, Visualizer
from pedestrian_flow_ca.model import SimulationEngine

from conftest import bin_node, entry, make_params, vendor


@pytest.fixture
def engine() -> SimulationEngine:
    obstacles = np.zeros((10, 10), dtype=bool)
    obstacles[4, 3:8] = True
    nodes = [entry("e", 10, 10), bin_node("b", 190, 190), vendor("v", 100, 30)]
    return SimulationEngine(make_params(agent_count=6), nodes, obstacles=obstacles, seed=0)


class TestCSVWriter:
    def test_agent_rows_per_step(self, engine: SimulationEngine, tmp_path: Path) -> None:
        path = tmp_path / "logs" / "agents.csv"
        with CSVWriter(path) as writer:
            for _ in range(3):
                engine.advance()
                writer.append(engine.snapshot())
        with open(path, newline="") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 18
        assert set(rows[0]) == {"step", "agent_id", "x", "y", "target_id", "distance_traveled"}
        assert rows[-1]["step"] == "3"

    def test_statistics_rows(self, engine: SimulationEngine, tmp_path: Path) -> None:
        path = tmp_path / "stats.csv"
        writer = CSVWriter(path, kind="statistics")
        for _ in range(4):
            engine.advance()
            writer.append(engine.snapshot())
        writer.close()
        with open(path, newline="") as f:
            rows = list(csv.DictReader(f))
        assert [r["step_count"] for r in rows] == ["1", "2", "3", "4"]
        assert rows[-1]["total_agents"] == "6"

    def test_unknown_kind(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            CSVWriter(tmp_path / "x.csv", kind="nodes")


class TestVisualizer:
    def test_snapshot_and_heatmap(self, engine: SimulationEngine, tmp_path: Path) -> None:
        for _ in range(5):
            engine.advance()
        visualizer = Visualizer(engine.geometry, engine.obstacle_map(), engine.nodes())
        state = engine.snapshot()
        visualizer.save_snapshot(state, tmp_path / "final.png")
        visualizer.save_congestion_heatmap(state, tmp_path / "congestion.png")
        assert (tmp_path / "final.png").stat().st_size > 0
        assert (tmp_path / "congestion.png").stat().st_size > 0

    def test_heatmap_raises_no_colormap_deprecation(self, engine: SimulationEngine,
                                                    tmp_path: Path) -> None:
        engine.advance()
        visualizer = Visualizer(engine.geometry, engine.obstacle_map(), engine.nodes())
        with warnings.catch_warnings():
            warnings.simplefilter("error", PendingDeprecationWarning)
            visualizer.save_congestion_heatmap(engine.snapshot(), tmp_path / "congestion.png")
        assert (tmp_path / "congestion.png").exists()

    def test_gif_from_buffered_frames(self, engine: SimulationEngine, tmp_path: Path) -> None:
        visualizer = Visualizer(engine.geometry, engine.obstacle_map(), engine.nodes())
        for _ in range(3):
            engine.advance()
            visualizer.buffer_frame(engine.snapshot())
        gif = tmp_path / "sim.gif"
        visualizer.generate_gif(gif, fps=5)
        with Image.open(gif) as img:
            assert img.n_frames == 3
        visualizer.clear_frames()
        assert visualizer.frames == []

    def test_gif_without_frames_writes_nothing(self, engine: SimulationEngine,
                                                tmp_path: Path) -> None:
        visualizer = Visualizer(engine.geometry, engine.obstacle_map(), engine.nodes())
        visualizer.generate_gif(tmp_path / "none.gif")
        assert not (tmp_path / "none.gif").exists()


class TestReporter:
    def test_summary_contents(self, engine: SimulationEngine, tmp_path: Path) -> None:
        reporter = Reporter("venue.yaml", seed=0)
        for _ in range(10):
            engine.advance()
            reporter.update(engine.snapshot())
        report = reporter.generate_summary(engine.snapshot(), engine.hotspots(3), tmp_path,
                                           csv_enabled=True, snapshot_enabled=False,
                                           heatmap_enabled=True, gif_enabled=False)
        assert "PEDESTRIAN FLOW SIMULATION REPORT" in report
        assert "Total Steps:            10" in report
        assert "Random Seed: 0" in report
        assert "CONGESTION HOTSPOTS" in report
        assert "1. (" in report
        assert "Snapshot:    (disabled)" in report
        assert len(reporter.history) == 10
        assert reporter.peak_trail > 0

    def test_stalled_steps_counted(self, tmp_path: Path) -> None:
        obstacles = np.ones((3, 3), dtype=bool)
        obstacles[1, 1] = False
        params = make_params(cell_size=10, map_width=30, map_height=30, agent_count=2)
        engine = SimulationEngine(params, [entry("e", 15, 15)], obstacles=obstacles, seed=0)
        reporter = Reporter("boxed.yaml", seed=None)
        for _ in range(4):
            engine.advance()
            reporter.update(engine.snapshot())
        assert reporter.stalled_steps == 4
