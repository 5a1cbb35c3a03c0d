"""State snapshot dataclasses for the pedestrian flow simulation."""

from dataclasses import dataclass, asdict
from typing import List, Dict, Tuple
import numpy as np


@dataclass(frozen=True)
class AgentSnapshot:
    """Immutable snapshot of an agent's state at a given time step."""
    agent_id: str
    x: float
    y: float
    target_id: str
    path: Tuple[Tuple[float, float], ...]
    distance_traveled: float


@dataclass(frozen=True)
class SimulationStatistics:
    """Aggregate figures over the current engine state."""
    step_count: int
    total_agents: int
    avg_distance_traveled: float
    max_congestion: int
    avg_congestion: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class SimulationState:
    """Complete snapshot of simulation state at a given time step."""
    step: int
    agents: Tuple[AgentSnapshot, ...]
    dynamic_field: np.ndarray   # Copy of trail field
    congestion_map: np.ndarray  # Copy of visit counts
    statistics: SimulationStatistics

    def to_csv_rows(self) -> List[Dict]:
        """Convert to CSV-compatible format."""
        return [
            {
                "step": self.step,
                "agent_id": a.agent_id,
                "x": round(a.x, 3),
                "y": round(a.y, 3),
                "target_id": a.target_id,
                "distance_traveled": round(a.distance_traveled, 3)
            }
            for a in self.agents
        ]
