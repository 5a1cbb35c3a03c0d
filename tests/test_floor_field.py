"""Tests for static, dynamic and congestion fields."""

from __future__ import annotations

import numpy as np
import pytest

from pedestrian_flow_ca.model import (
    CongestionMap,
    DynamicField,
    GridGeometry,
    StaticField,
    compute_static_field,
)


def relaxed_hop_distance(obstacles: np.ndarray, sources) -> np.ndarray:
    """Reference 8-connected hop distance by repeated relaxation."""
    rows, cols = obstacles.shape
    dist = np.full((rows, cols), np.inf)
    for r, c in sources:
        dist[r, c] = 0
    changed = True
    while changed:
        changed = False
        for r in range(rows):
            for c in range(cols):
                if obstacles[r, c] or dist[r, c] == 0:
                    continue
                best = dist[r, c]
                for dr in (-1, 0, 1):
                    for dc in (-1, 0, 1):
                        nr, nc = r + dr, c + dc
                        if (dr or dc) and 0 <= nr < rows and 0 <= nc < cols:
                            best = min(best, dist[nr, nc] + 1)
                if best < dist[r, c]:
                    dist[r, c] = best
                    changed = True
    return dist


class TestComputeStaticField:
    def test_single_source_is_chebyshev_distance(self) -> None:
        obstacles = np.zeros((7, 9), dtype=bool)
        field = compute_static_field((7, 9), [(3, 5)], obstacles)
        rows, cols = np.indices((7, 9))
        expected = np.maximum(np.abs(rows - 3), np.abs(cols - 5))
        np.testing.assert_array_equal(field, expected)

    def test_multi_source_takes_nearest(self) -> None:
        obstacles = np.zeros((1, 10), dtype=bool)
        field = compute_static_field((1, 10), [(0, 0), (0, 9)], obstacles)
        np.testing.assert_array_equal(field[0], [0, 1, 2, 3, 4, 4, 3, 2, 1, 0])

    def test_routes_around_wall(self) -> None:
        obstacles = np.zeros((5, 5), dtype=bool)
        obstacles[0:4, 2] = True
        field = compute_static_field((5, 5), [(0, 0)], obstacles)
        assert field[4, 2] == 4
        assert field[0, 3] == 8
        assert np.all(np.isinf(field[obstacles]))

    def test_matches_reference_with_random_obstacles(self) -> None:
        rng = np.random.default_rng(7)
        obstacles = rng.random((12, 15)) < 0.3
        sources = [(0, 0), (11, 14), (6, 7)]
        for r, c in sources:
            obstacles[r, c] = False
        field = compute_static_field(obstacles.shape, sources, obstacles)
        expected = relaxed_hop_distance(obstacles, sources)
        # Obstacles are never expanded, so they stay unreached
        expected[obstacles] = np.inf
        np.testing.assert_array_equal(field, expected)

    def test_enclosed_region_is_unreachable(self) -> None:
        obstacles = np.zeros((10, 10), dtype=bool)
        obstacles[5, 5:] = True
        obstacles[5:, 5] = True
        field = compute_static_field((10, 10), [(0, 0)], obstacles)
        assert np.all(np.isinf(field[6:, 6:]))
        assert np.all(np.isfinite(field[:5, :]))

    def test_is_pure(self) -> None:
        rng = np.random.default_rng(3)
        obstacles = rng.random((20, 20)) < 0.25
        sources = [(1, 1), (18, 3)]
        first = compute_static_field((20, 20), sources, obstacles)
        second = compute_static_field((20, 20), sources, obstacles)
        assert first.tobytes() == second.tobytes()

    def test_sources_outside_grid_ignored(self) -> None:
        obstacles = np.zeros((3, 3), dtype=bool)
        field = compute_static_field((3, 3), [(-1, 0), (5, 5)], obstacles)
        assert np.all(np.isinf(field))

    def test_no_sources_leaves_everything_unreachable(self) -> None:
        field = compute_static_field((4, 4), [], np.zeros((4, 4), dtype=bool))
        assert np.all(np.isinf(field))


class TestStaticField:
    def test_compute_freezes_field(self) -> None:
        geometry = GridGeometry(10, 50, 50)
        static = StaticField(geometry)
        static.compute(np.zeros(geometry.shape, dtype=bool), [(2, 2)])
        assert static.get_distance(0, 0) == 2
        assert static.get_distance(-1, 0) == np.inf
        with pytest.raises(ValueError):
            static.field[0, 0] = 5


class TestDynamicField:
    def test_deposit_accumulates_repeated_cells(self) -> None:
        dynamic = DynamicField(GridGeometry(10, 30, 30), diffusion_rate=0.0, decay_rate=1.0)
        dynamic.deposit(np.array([[1, 1], [1, 1], [0, 2]]))
        assert dynamic.get_value(1, 1) == 2.0
        assert dynamic.get_value(0, 2) == 1.0
        assert dynamic.field.sum() == 3.0

    def test_decay_scales_field(self) -> None:
        dynamic = DynamicField(GridGeometry(10, 30, 30), diffusion_rate=0.0, decay_rate=0.5)
        dynamic.deposit(np.array([[1, 1]]), amount=4.0)
        dynamic.update()
        assert dynamic.get_value(1, 1) == 2.0

    def test_zero_decay_clears_field(self) -> None:
        dynamic = DynamicField(GridGeometry(10, 30, 30), diffusion_rate=0.3, decay_rate=0.0)
        dynamic.deposit(np.array([[1, 1]]), amount=4.0)
        dynamic.update()
        assert not dynamic.field.any()

    def test_diffusion_weighted_average(self) -> None:
        dynamic = DynamicField(GridGeometry(10, 30, 30), diffusion_rate=1.0, decay_rate=1.0)
        dynamic.deposit(np.array([[1, 1]]), amount=9.0)
        dynamic.update()
        # centre: (9 + 0) / (1 + 8)
        assert dynamic.get_value(1, 1) == pytest.approx(1.0)
        # corner, 3 neighbours: (0 + 9) / (1 + 3)
        assert dynamic.get_value(0, 0) == pytest.approx(2.25)
        # edge, 5 neighbours: (0 + 9) / (1 + 5)
        assert dynamic.get_value(0, 1) == pytest.approx(1.5)

    def test_diffusion_reads_from_previous_buffer(self) -> None:
        # A row-major in-place update would make the result asymmetric
        dynamic = DynamicField(GridGeometry(10, 50, 50), diffusion_rate=0.7, decay_rate=1.0)
        dynamic.deposit(np.array([[2, 2]]), amount=10.0)
        dynamic.update()
        np.testing.assert_allclose(dynamic.field, dynamic.field[::-1, ::-1])
        np.testing.assert_allclose(dynamic.field, dynamic.field.T)

    def test_values_stay_non_negative(self) -> None:
        rng = np.random.default_rng(0)
        dynamic = DynamicField(GridGeometry(10, 80, 60), diffusion_rate=2.5, decay_rate=0.3)
        for _ in range(50):
            cells = np.column_stack([rng.integers(0, 6, 10), rng.integers(0, 8, 10)])
            dynamic.deposit(cells)
            dynamic.update()
            assert dynamic.field.min() >= 0.0

    def test_reset(self) -> None:
        dynamic = DynamicField(GridGeometry(10, 30, 30), diffusion_rate=0.1, decay_rate=0.9)
        dynamic.deposit(np.array([[0, 0]]))
        dynamic.reset()
        assert not dynamic.field.any()


class TestCongestionMap:
    def test_record_and_aggregate(self) -> None:
        congestion = CongestionMap(GridGeometry(10, 20, 20))
        congestion.record(np.array([[0, 0], [0, 0], [1, 1]]))
        assert congestion.max() == 2
        assert congestion.mean() == pytest.approx(0.75)

    def test_hotspots_busiest_first(self) -> None:
        congestion = CongestionMap(GridGeometry(10, 30, 30))
        congestion.record(np.array([[2, 2], [2, 2], [2, 2], [0, 1], [0, 1], [1, 0]]))
        assert congestion.hotspots(2) == [((2, 2), 3), ((0, 1), 2)]
        assert len(congestion.hotspots(10)) == 3

    def test_empty_record_is_noop(self) -> None:
        congestion = CongestionMap(GridGeometry(10, 20, 20))
        congestion.record(np.zeros((0, 2), dtype=np.int64))
        assert congestion.max() == 0
