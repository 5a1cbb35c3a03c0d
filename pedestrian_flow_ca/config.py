"""Configuration dataclasses and YAML loader for the pedestrian flow simulation."""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
from pathlib import Path

import numpy as np
import yaml

from .model.grid import GridGeometry, ObstacleMap
from .model.nodes import Node, NodeCategory
from .model.parameters import SimulationParameters


@dataclass
class GridConfig:
    cell_size: float
    width: float   # world units
    height: float  # world units


@dataclass
class FloorFieldConfig:
    static_weight: float   # w_s
    dynamic_weight: float  # w_d
    randomness: float      # epsilon
    decay_rate: float      # 0.0-1.0, fraction kept per step
    diffusion_rate: float  # >= 0


@dataclass
class AgentConfig:
    count: int
    path_history: Optional[int] = 500
    route_to_target: bool = False


@dataclass
class WallSpec:
    wall_type: str  # "rectangle" or "points"
    data: Dict[str, Any]


@dataclass
class NodeSpec:
    node_id: str
    x: float
    y: float
    category: NodeCategory


@dataclass
class LayoutConfig:
    nodes: List[NodeSpec]
    walls: List[WallSpec]


@dataclass
class SimulationConfig:
    grid: GridConfig
    max_steps: int
    floor_field: FloorFieldConfig
    agents: AgentConfig
    layout: LayoutConfig

    # Export flags (can be overridden by CLI)
    csv_enabled: bool = True
    snapshot_enabled: bool = True
    heatmap_enabled: bool = True
    gif_enabled: bool = False
    quiet: bool = False
    seed: Optional[int] = None
    out_dir: Path = field(default_factory=lambda: Path("./output"))

    def to_parameters(self) -> SimulationParameters:
        """Build validated engine parameters."""
        return SimulationParameters(
            cell_size=self.grid.cell_size,
            map_width=self.grid.width,
            map_height=self.grid.height,
            agent_count=self.agents.count,
            static_weight=self.floor_field.static_weight,
            dynamic_weight=self.floor_field.dynamic_weight,
            randomness=self.floor_field.randomness,
            decay_rate=self.floor_field.decay_rate,
            diffusion_rate=self.floor_field.diffusion_rate,
            path_history=self.agents.path_history,
            route_to_target=self.agents.route_to_target
        )

    def build_nodes(self) -> List[Node]:
        return [Node(n.node_id, n.x, n.y, n.category) for n in self.layout.nodes]

    def build_obstacles(self) -> Optional[np.ndarray]:
        """Rasterise wall specs into a boolean grid, or None when there are none."""
        if not self.layout.walls:
            return None
        geometry = GridGeometry(self.grid.cell_size, self.grid.width, self.grid.height)
        obstacles = ObstacleMap(geometry)
        for wall in self.layout.walls:
            if wall.wall_type == "rectangle":
                obstacles.add_rectangle(
                    wall.data['col'], wall.data['row'],
                    wall.data['width'], wall.data['height']
                )
            elif wall.wall_type == "points":
                obstacles.add_cells(wall.data['cells'])
        return obstacles.mask


def _parse_walls(walls_raw: List[Dict]) -> List[WallSpec]:
    """Parse wall specifications (in cell units) from raw YAML data."""
    walls = []
    for w in walls_raw:
        wall_type = w.get('type', 'rectangle')
        if wall_type == 'rectangle':
            data = {
                'col': w['col'],
                'row': w['row'],
                'width': w['width'],
                'height': w['height']
            }
        elif wall_type == 'points':
            data = {'cells': [tuple(c) for c in w['cells']]}
        else:
            raise ValueError(f"Unknown wall type: {wall_type}")
        walls.append(WallSpec(wall_type=wall_type, data=data))
    return walls


def _parse_nodes(nodes_raw: List[Dict]) -> List[NodeSpec]:
    """Parse node specifications from raw YAML data."""
    return [
        NodeSpec(
            node_id=str(n['id']),
            x=float(n['x']),
            y=float(n['y']),
            category=NodeCategory.parse(n['type'])
        )
        for n in nodes_raw
    ]


def load_config(config_path: Path) -> SimulationConfig:
    """Load a YAML configuration file."""
    with open(config_path) as f:
        raw = yaml.safe_load(f)
    return parse_config(raw)


def parse_config(raw: Dict[str, Any]) -> SimulationConfig:
    """Build a SimulationConfig from already-loaded YAML data."""
    grid = GridConfig(
        cell_size=raw['grid']['cell_size'],
        width=raw['grid']['width'],
        height=raw['grid']['height']
    )

    ff_raw = raw['floor_field']
    floor_field = FloorFieldConfig(
        static_weight=ff_raw.get('static_weight', 1.0),
        dynamic_weight=ff_raw.get('dynamic_weight', 0.5),
        randomness=ff_raw.get('randomness', 0.1),
        decay_rate=ff_raw.get('decay_rate', 0.95),
        diffusion_rate=ff_raw.get('diffusion_rate', 0.1)
    )

    agents_raw = raw.get('agents', {})
    agents = AgentConfig(
        count=agents_raw.get('count', 0),
        path_history=agents_raw.get('path_history', 500),
        route_to_target=agents_raw.get('route_to_target', False)
    )

    layout_raw = raw.get('layout', {})
    layout = LayoutConfig(
        nodes=_parse_nodes(layout_raw.get('nodes', [])),
        walls=_parse_walls(layout_raw.get('walls', []))
    )

    sim_raw = raw.get('simulation', {})
    export_raw = raw.get('export', {})

    return SimulationConfig(
        grid=grid,
        max_steps=sim_raw.get('max_steps', 500),
        floor_field=floor_field,
        agents=agents,
        layout=layout,
        seed=sim_raw.get('seed'),
        csv_enabled=export_raw.get('csv', True),
        snapshot_enabled=export_raw.get('snapshot', True),
        heatmap_enabled=export_raw.get('heatmap', True),
        gif_enabled=export_raw.get('gif', False)
    )
