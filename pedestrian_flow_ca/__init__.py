"""Floor-field cellular automaton for predicting foot traffic on venue maps."""

from .model import (
    Node,
    NodeCategory,
    SimulationEngine,
    SimulationParameters,
    SimulationStatistics,
)

__version__ = "0.1.0"

__all__ = [
    'Node',
    'NodeCategory',
    'SimulationEngine',
    'SimulationParameters',
    'SimulationStatistics',
]
