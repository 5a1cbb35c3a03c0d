"""Validated engine parameters."""

import math
import numbers
from dataclasses import dataclass
from typing import Optional


def _is_integer(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


@dataclass(frozen=True)
class SimulationParameters:
    """
    Inputs fixed for the lifetime of one engine.

    Lengths (cell_size, map_width, map_height) are in world units, the same
    units node positions use.
    """
    cell_size: float
    map_width: float
    map_height: float
    agent_count: int
    static_weight: float = 1.0   # w_s
    dynamic_weight: float = 0.5  # w_d
    randomness: float = 0.1      # epsilon
    decay_rate: float = 0.95     # fraction of the trail kept per step
    diffusion_rate: float = 0.1
    path_history: Optional[int] = 500
    route_to_target: bool = False

    def __post_init__(self):
        for name in ('cell_size', 'map_width', 'map_height'):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be a positive finite number, got {value}")
        if not _is_integer(self.agent_count):
            raise ValueError(f"agent_count must be an integer, got {self.agent_count!r}")
        if self.agent_count < 0:
            raise ValueError(f"agent_count must be >= 0, got {self.agent_count}")

        for name in ('static_weight', 'dynamic_weight', 'randomness'):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")

        if not math.isfinite(self.decay_rate) or not 0.0 <= self.decay_rate <= 1.0:
            raise ValueError(f"decay_rate must lie in [0, 1], got {self.decay_rate}")
        if not math.isfinite(self.diffusion_rate) or self.diffusion_rate < 0:
            raise ValueError(f"diffusion_rate must be finite and >= 0, got {self.diffusion_rate}")

        if self.path_history is not None and not _is_integer(self.path_history):
            raise ValueError(f"path_history must be an integer or None, got {self.path_history!r}")
        if self.path_history is not None and self.path_history < 0:
            raise ValueError(f"path_history must be >= 0 or None, got {self.path_history}")

    @property
    def rows(self) -> int:
        return math.ceil(self.map_height / self.cell_size)

    @property
    def cols(self) -> int:
        return math.ceil(self.map_width / self.cell_size)

    @property
    def arrival_radius(self) -> float:
        """Distance under which an agent counts as having reached its target."""
        return 2 * self.cell_size
