"""Model package for the pedestrian flow CA simulation."""

from .state import AgentSnapshot, SimulationState, SimulationStatistics
from .grid import GridGeometry, ObstacleMap
from .nodes import Node, NodeCategory, NodeRegistry
from .parameters import SimulationParameters
from .floor_field import StaticField, DynamicField, CongestionMap, compute_static_field
from .agent import Agent
from .engine import SimulationEngine

__all__ = [
    'AgentSnapshot',
    'SimulationState',
    'SimulationStatistics',
    'GridGeometry',
    'ObstacleMap',
    'Node',
    'NodeCategory',
    'NodeRegistry',
    'SimulationParameters',
    'StaticField',
    'DynamicField',
    'CongestionMap',
    'compute_static_field',
    'Agent',
    'SimulationEngine',
]
