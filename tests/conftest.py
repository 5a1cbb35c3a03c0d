"""Shared builders for pedestrian flow tests."""

from __future__ import annotations

import numpy as np
import pytest

from pedestrian_flow_ca.model import Node, NodeCategory, SimulationParameters


def make_params(**overrides) -> SimulationParameters:
    """10x10 grid of 20-unit cells unless overridden."""
    values = dict(
        cell_size=20,
        map_width=200,
        map_height=200,
        agent_count=5,
        static_weight=1.0,
        dynamic_weight=0.5,
        randomness=0.5,
        decay_rate=0.9,
        diffusion_rate=0.1,
    )
    values.update(overrides)
    return SimulationParameters(**values)


def entry(node_id: str, x: float, y: float) -> Node:
    return Node(node_id, x, y, NodeCategory.ENTRY_EXIT)


def bin_node(node_id: str, x: float, y: float) -> Node:
    return Node(node_id, x, y, NodeCategory.BIN)


def vendor(node_id: str, x: float, y: float) -> Node:
    return Node(node_id, x, y, NodeCategory.VENDOR)


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)
