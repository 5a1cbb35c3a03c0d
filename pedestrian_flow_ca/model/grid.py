"""Grid geometry and obstacle map for the pedestrian flow simulation."""

import math
from typing import Iterator, List, Optional, Tuple

import numpy as np

# Moore neighbourhood (8-connected), row-major order
MOORE_OFFSETS = [
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1),           (0, 1),
    (1, -1),  (1, 0),  (1, 1)
]


class GridGeometry:
    """
    Maps continuous world coordinates to discrete cells and back.

    Coordinate convention: (x, y) for world positions, (row, col) for cells,
    [row, col] for array indexing. Rows grow with y, columns with x.
    """

    def __init__(self, cell_size: float, map_width: float, map_height: float):
        if not (math.isfinite(cell_size) and cell_size > 0):
            raise ValueError(f"cell_size must be a positive finite number, got {cell_size}")
        if not (math.isfinite(map_width) and map_width > 0):
            raise ValueError(f"map_width must be a positive finite number, got {map_width}")
        if not (math.isfinite(map_height) and map_height > 0):
            raise ValueError(f"map_height must be a positive finite number, got {map_height}")

        self.cell_size = cell_size
        self.map_width = map_width
        self.map_height = map_height
        self.rows = math.ceil(map_height / cell_size)
        self.cols = math.ceil(map_width / cell_size)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.rows, self.cols)

    def world_to_cell(self, x: float, y: float) -> Tuple[int, int]:
        """Return the (row, col) containing a world point. May be out of bounds."""
        return (math.floor(y / self.cell_size), math.floor(x / self.cell_size))

    def cell_to_world(self, row: int, col: int) -> Tuple[float, float]:
        """Return the world position of a cell's centre."""
        return ((col + 0.5) * self.cell_size, (row + 0.5) * self.cell_size)

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def moore_neighbors(self, row: int, col: int) -> Iterator[Tuple[int, int]]:
        """Yield the in-bounds cells of the 8-connected neighbourhood."""
        for dr, dc in MOORE_OFFSETS:
            nr, nc = row + dr, col + dc
            if 0 <= nr < self.rows and 0 <= nc < self.cols:
                yield nr, nc

    def __repr__(self) -> str:
        return (f"GridGeometry(cell_size={self.cell_size}, "
                f"rows={self.rows}, cols={self.cols})")


class ObstacleMap:
    """
    Boolean walkability layer. True = obstacle (impassable).

    Defaults to fully walkable. The mask is frozen once the engine takes
    ownership of it.
    """

    def __init__(self, geometry: GridGeometry,
                 mask: Optional[np.ndarray] = None):
        self.geometry = geometry
        if mask is None:
            self.mask = np.zeros(geometry.shape, dtype=bool)
        else:
            mask = np.array(mask, dtype=bool)
            if mask.shape != geometry.shape:
                raise ValueError(
                    f"Obstacle grid shape {mask.shape} does not match "
                    f"computed grid shape {geometry.shape}"
                )
            self.mask = mask

    def add_rectangle(self, col: int, row: int, width: int, height: int) -> None:
        """Mark a rectangular block of cells as obstacle."""
        # Clamp to grid boundaries
        col_end = min(col + width, self.geometry.cols)
        row_end = min(row + height, self.geometry.rows)
        col = max(0, col)
        row = max(0, row)
        self.mask[row:row_end, col:col_end] = True

    def add_cells(self, cells: List[Tuple[int, int]]) -> None:
        """Mark specific (row, col) cells as obstacle."""
        for row, col in cells:
            if self.geometry.in_bounds(row, col):
                self.mask[row, col] = True

    def freeze(self) -> None:
        self.mask.setflags(write=False)

    def is_walkable(self, row: int, col: int) -> bool:
        """Check if cell is within bounds and not an obstacle."""
        if not self.geometry.in_bounds(row, col):
            return False
        return not self.mask[row, col]
