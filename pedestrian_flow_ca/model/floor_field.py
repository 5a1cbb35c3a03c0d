"""Floor field implementations for the pedestrian flow simulation."""

import logging
from collections import deque
from typing import Iterable, Tuple

import numpy as np
from scipy.ndimage import convolve

from .grid import GridGeometry, MOORE_OFFSETS

logger = logging.getLogger(__name__)

# Sums the 8 Moore neighbours, excluding the centre cell
NEIGHBOR_KERNEL = np.array([
    [1.0, 1.0, 1.0],
    [1.0, 0.0, 1.0],
    [1.0, 1.0, 1.0]
], dtype=np.float64)


def compute_static_field(shape: Tuple[int, int],
                         sources: Iterable[Tuple[int, int]],
                         obstacles: np.ndarray) -> np.ndarray:
    """
    Hop distance from every cell to the nearest source cell.

    Multi-source BFS over the 8-connected neighbourhood: every source is
    seeded at distance 0 before expansion starts, each cell is visited
    exactly once, and obstacle cells are never entered. Diagonal and
    orthogonal steps both cost 1, so the result is a Chebyshev-style hop
    count. Unreachable cells stay ``inf``.

    Sources outside the grid are ignored. The result depends only on the
    arguments.
    """
    rows, cols = shape
    field = np.full(shape, np.inf, dtype=np.float64)
    visited = np.zeros(shape, dtype=bool)
    queue = deque()

    for row, col in sources:
        if 0 <= row < rows and 0 <= col < cols and not visited[row, col]:
            field[row, col] = 0
            visited[row, col] = True
            queue.append((row, col, 0))

    while queue:
        row, col, dist = queue.popleft()
        for dr, dc in MOORE_OFFSETS:
            nr, nc = row + dr, col + dc
            if (0 <= nr < rows and 0 <= nc < cols
                    and not visited[nr, nc] and not obstacles[nr, nc]):
                visited[nr, nc] = True
                field[nr, nc] = dist + 1
                queue.append((nr, nc, dist + 1))

    return field


class StaticField:
    """
    Pre-computed distance field guiding agents toward nodes.
    Lower distance values = closer to a node.
    """

    def __init__(self, geometry: GridGeometry):
        self.geometry = geometry
        self.field = np.full(geometry.shape, np.inf)

    def compute(self, obstacles: np.ndarray,
                sources: Iterable[Tuple[int, int]]) -> None:
        """Rebuild the field from ``sources`` and freeze it."""
        sources = list(sources)
        for row, col in sources:
            if not self.geometry.in_bounds(row, col):
                logger.warning("Node cell (%d, %d) lies outside the %dx%d grid; ignored",
                               row, col, self.geometry.rows, self.geometry.cols)

        self.field = compute_static_field(self.geometry.shape, sources, obstacles)
        self.field.setflags(write=False)

        reachable = int(np.isfinite(self.field).sum())
        logger.debug("Static field computed: %d/%d cells reachable",
                     reachable, self.field.size)

    def get_distance(self, row: int, col: int) -> float:
        """Return raw distance value at a cell."""
        if self.geometry.in_bounds(row, col):
            return self.field[row, col]
        return np.inf


class DynamicField:
    """
    Time-varying traffic trail.
    Agents deposit into it; it decays and diffuses once per step.
    """

    def __init__(self, geometry: GridGeometry,
                 diffusion_rate: float, decay_rate: float):
        self.geometry = geometry
        self.diffusion_rate = diffusion_rate
        self.decay_rate = decay_rate

        self.field = np.zeros(geometry.shape, dtype=np.float64)

        # Number of in-bounds neighbours per cell (3 in corners, 5 on edges, 8 inside)
        self.neighbor_count = convolve(np.ones(geometry.shape), NEIGHBOR_KERNEL,
                                       mode='constant', cval=0.0)

    def deposit(self, cells: np.ndarray, amount: float = 1.0) -> None:
        """Add ``amount`` at each (row, col) in ``cells``; repeated cells accumulate."""
        if len(cells) == 0:
            return
        np.add.at(self.field, (cells[:, 0], cells[:, 1]), amount)

    def update(self) -> None:
        """
        Apply decay, then diffusion.

        Decay:     D <- decay_rate * D
        Diffusion: D'[c] = (D[c] + r * sum(D[n])) / (1 + r * |n|)
        over in-bounds Moore neighbours n, read entirely from the decayed
        field into a fresh buffer.
        """
        self.field *= self.decay_rate

        if self.diffusion_rate > 0:
            neighbor_sum = convolve(self.field, NEIGHBOR_KERNEL,
                                    mode='constant', cval=0.0)
            diffused = ((self.field + self.diffusion_rate * neighbor_sum)
                        / (1.0 + self.diffusion_rate * self.neighbor_count))
            self.field = diffused

    def get_value(self, row: int, col: int) -> float:
        """Return trail intensity at a cell."""
        if self.geometry.in_bounds(row, col):
            return self.field[row, col]
        return 0.0

    def reset(self) -> None:
        """Reset the dynamic field to zero."""
        self.field = np.zeros(self.geometry.shape, dtype=np.float64)


class CongestionMap:
    """Cumulative per-cell visit counter. Never decays."""

    def __init__(self, geometry: GridGeometry):
        self.geometry = geometry
        self.counts = np.zeros(geometry.shape, dtype=np.int64)

    def record(self, cells: np.ndarray) -> None:
        if len(cells) == 0:
            return
        np.add.at(self.counts, (cells[:, 0], cells[:, 1]), 1)

    def max(self) -> int:
        return int(self.counts.max())

    def mean(self) -> float:
        return float(self.counts.mean())

    def hotspots(self, count: int = 5):
        """Return the ``count`` most visited cells as ((row, col), visits), busiest first."""
        flat = self.counts.ravel()
        count = min(count, flat.size)
        # Stable sort keeps row-major order among ties
        order = np.argsort(-flat, kind='stable')[:count]
        cols = self.geometry.cols
        return [((int(i // cols), int(i % cols)), int(flat[i]))
                for i in order if flat[i] > 0]

    def reset(self) -> None:
        self.counts.fill(0)
