"""Simulation engine for the pedestrian flow CA."""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from .agent import Agent
from .floor_field import CongestionMap, DynamicField, StaticField
from .grid import GridGeometry, ObstacleMap
from .nodes import Node, NodeRegistry
from .parameters import SimulationParameters
from .state import AgentSnapshot, SimulationState, SimulationStatistics

logger = logging.getLogger(__name__)


class SimulationEngine:
    """
    Orchestrates the discrete-time simulation loop.

    Implements:
    1. Grid, obstacle and static field initialization
    2. Agent spawning at entry-exit nodes
    3. Sequential agent movement and target reassignment
    4. Dynamic field deposit, decay and diffusion
    5. Statistics and read-only snapshots

    The engine is a synchronous state machine: ``advance()`` runs one whole
    step before returning and must not be re-entered. Every accessor returns
    copies, never the engine's own arrays or agents.
    """

    def __init__(self, params: SimulationParameters,
                 nodes: Iterable[Node],
                 obstacles: Optional[np.ndarray] = None,
                 rng: Optional[np.random.Generator] = None,
                 seed: Optional[int] = None):
        self.params = params
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.current_step = 0

        # Initialize grid layers
        self.geometry = GridGeometry(params.cell_size, params.map_width, params.map_height)
        self.obstacles = ObstacleMap(self.geometry, obstacles)
        self.obstacles.freeze()
        self.node_registry = NodeRegistry(nodes)
        self._node_cells: Dict[str, Tuple[int, int]] = {
            n.node_id: self.geometry.world_to_cell(n.x, n.y) for n in self.node_registry
        }

        self._static_field = StaticField(self.geometry)
        self._static_field.compute(self.obstacles.mask, self._node_cells.values())

        # Optional per-target fields used for movement instead of the shared one
        self._target_fields: Dict[str, StaticField] = {}
        if params.route_to_target:
            self._setup_target_fields()

        self._dynamic_field = DynamicField(
            self.geometry,
            params.diffusion_rate,
            params.decay_rate
        )
        self._congestion = CongestionMap(self.geometry)

        self._agents: List[Agent] = []
        self._spawn_agents()

        logger.info("Engine ready: %dx%d grid, %d nodes, %d agents",
                    self.geometry.rows, self.geometry.cols,
                    len(self.node_registry), len(self._agents))

    def _setup_target_fields(self) -> None:
        """Create one single-source static field per target-eligible node."""
        for node in self.node_registry.targets:
            field = StaticField(self.geometry)
            field.compute(self.obstacles.mask, [self._node_cells[node.node_id]])
            self._target_fields[node.node_id] = field

    def _spawn_agents(self) -> None:
        """Create agents at random entry-exit nodes with random initial targets."""
        spawn_points = self.node_registry.spawn_points
        targets = self.node_registry.targets

        if not spawn_points or not targets:
            if self.params.agent_count > 0:
                logger.warning("No entry-exit node available; spawned 0 of %d agents",
                               self.params.agent_count)
            return

        for i in range(self.params.agent_count):
            entry = spawn_points[self.rng.integers(len(spawn_points))]
            target = targets[self.rng.integers(len(targets))]
            self._agents.append(Agent(
                agent_id=f"agent-{i}",
                position=entry.position,
                target_id=target.node_id,
                path_history=self.params.path_history
            ))

    def _movement_field(self, agent: Agent) -> StaticField:
        return self._target_fields.get(agent.target_id, self._static_field)

    def _candidate_cells(self, agent: Agent,
                         row: int, col: int) -> Tuple[List[Tuple[int, int]], np.ndarray]:
        """Walkable, reachable Moore neighbours and their static values."""
        field = self._movement_field(agent)
        candidates = []
        static_values = []
        for nr, nc in self.geometry.moore_neighbors(row, col):
            if not self.obstacles.is_walkable(nr, nc):
                continue
            value = field.get_distance(nr, nc)
            # Unreachable cells carry zero weight
            if value == np.inf:
                continue
            candidates.append((nr, nc))
            static_values.append(value)
        return candidates, np.array(static_values, dtype=np.float64)

    def _move_agent(self, agent: Agent, row: int, col: int) -> None:
        candidates, static_values = self._candidate_cells(agent, row, col)
        if not candidates:
            # Boxed in: stays put this step
            return

        dynamic_values = np.array([self._dynamic_field.get_value(r, c) for r, c in candidates])
        probs = agent.calculate_transition_probabilities(
            static_values,
            dynamic_values,
            self.params.static_weight,
            self.params.dynamic_weight,
            self.params.randomness,
            self.rng
        )
        next_row, next_col = agent.decide_next_move(candidates, probs, self.rng)
        agent.move_to(*self.geometry.cell_to_world(next_row, next_col))

    def _reassign_target(self, agent: Agent) -> None:
        """Pick a fresh target once the current one is within the arrival radius."""
        if agent.target_id not in self.node_registry:
            return
        target = self.node_registry.get(agent.target_id)
        if agent.distance_to(target.x, target.y) >= self.params.arrival_radius:
            return

        alternatives = self.node_registry.targets_except(agent.target_id)
        if alternatives:
            agent.target_id = alternatives[self.rng.integers(len(alternatives))].node_id

    def _agent_cells(self) -> np.ndarray:
        cells = [self.geometry.world_to_cell(a.x, a.y) for a in self._agents]
        return np.array(cells, dtype=np.int64).reshape(-1, 2)

    def advance(self) -> None:
        """
        Execute one discrete time step.

        1. Deposit trail and congestion at every agent's pre-move cell
        2. Move each agent and reassign reached targets
        3. Decay and diffuse the dynamic field
        4. Advance the step counter
        """
        # Phase 1: deposits, all taken from the same pre-move snapshot
        cells = self._agent_cells()
        inside = ((cells[:, 0] >= 0) & (cells[:, 0] < self.geometry.rows)
                  & (cells[:, 1] >= 0) & (cells[:, 1] < self.geometry.cols))
        self._dynamic_field.deposit(cells[inside])
        self._congestion.record(cells[inside])

        # Phase 2: movement
        for agent, (row, col) in zip(self._agents, cells):
            self._move_agent(agent, int(row), int(col))
            self._reassign_target(agent)

        # Phase 3: decay and diffusion
        self._dynamic_field.update()

        self.current_step += 1

    def reset(self) -> None:
        """Clear agents, trails, congestion and the step counter, then re-spawn."""
        self.current_step = 0
        self._agents = []
        self._dynamic_field.reset()
        self._congestion.reset()
        self._spawn_agents()
        logger.debug("Engine reset: %d agents re-spawned", len(self._agents))

    # Accessors -------------------------------------------------------------

    @property
    def grid_shape(self) -> Tuple[int, int]:
        return self.geometry.shape

    def agents(self) -> Tuple[AgentSnapshot, ...]:
        return tuple(a.snapshot() for a in self._agents)

    def nodes(self) -> Tuple[Node, ...]:
        return tuple(self.node_registry)

    def static_field(self) -> np.ndarray:
        return self._static_field.field.copy()

    def dynamic_field(self) -> np.ndarray:
        return self._dynamic_field.field.copy()

    def congestion_map(self) -> np.ndarray:
        return self._congestion.counts.copy()

    def obstacle_map(self) -> np.ndarray:
        return self.obstacles.mask.copy()

    def hotspots(self, count: int = 5) -> List[Tuple[Tuple[int, int], int]]:
        """Most visited cells so far, busiest first."""
        return self._congestion.hotspots(count)

    def statistics(self) -> SimulationStatistics:
        total_agents = len(self._agents)
        avg_distance = (sum(a.distance_traveled for a in self._agents) / total_agents
                        if total_agents > 0 else 0.0)
        return SimulationStatistics(
            step_count=self.current_step,
            total_agents=total_agents,
            avg_distance_traveled=avg_distance,
            max_congestion=self._congestion.max(),
            avg_congestion=self._congestion.mean()
        )

    def snapshot(self) -> SimulationState:
        """Create immutable snapshot of current simulation state."""
        return SimulationState(
            step=self.current_step,
            agents=self.agents(),
            dynamic_field=self.dynamic_field(),
            congestion_map=self.congestion_map(),
            statistics=self.statistics()
        )
