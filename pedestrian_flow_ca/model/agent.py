"""Agent implementation with floor-field transition probability."""

import math
from collections import deque
from typing import List, Optional, Tuple

import numpy as np

from .state import AgentSnapshot


class Agent:
    """
    Individual pedestrian walking between target nodes.

    Transition weight for a candidate cell j:
    w(j) = exp(-kS * S_j + kD * D_j + eps * U_j)

    Where:
    - kS = static field sensitivity
    - kD = dynamic field sensitivity
    - S_j = static field value (hop distance to a node)
    - D_j = dynamic field value (trail intensity)
    - eps = randomness amplitude
    - U_j ~ Uniform[-0.5, 0.5), drawn per candidate per step

    Note the signs: cells nearer a node and cells carrying more traffic
    are both favoured.
    """

    def __init__(self, agent_id: str,
                 position: Tuple[float, float],
                 target_id: str,
                 path_history: Optional[int] = None):
        self.id = agent_id
        self.x, self.y = position
        self.target_id = target_id
        # maxlen=None keeps everything, maxlen=0 records nothing
        self.path = deque(maxlen=path_history)
        self.distance_traveled = 0.0

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def calculate_transition_probabilities(
        self,
        static_values: np.ndarray,
        dynamic_values: np.ndarray,
        kS: float,
        kD: float,
        randomness: float,
        rng: np.random.Generator
    ) -> np.ndarray:
        """
        Probability distribution over the candidate cells whose field values
        are given, in the same order.

        Uses a max-shift before exponentiating; this only rescales the
        unnormalised weights.
        """
        noise = rng.random(len(static_values)) - 0.5
        scores = -kS * static_values + kD * dynamic_values + randomness * noise

        exp_scores = np.exp(scores - np.max(scores))
        return exp_scores / np.sum(exp_scores)

    def decide_next_move(
        self,
        candidates: List[Tuple[int, int]],
        probabilities: np.ndarray,
        rng: np.random.Generator
    ) -> Optional[Tuple[int, int]]:
        """
        Sample a candidate cell by inverting the cumulative distribution.
        Returns None when there is nothing to choose from.
        """
        if not candidates:
            return None

        cumulative = np.cumsum(probabilities)
        draw = rng.random() * cumulative[-1]
        idx = int(np.searchsorted(cumulative, draw, side='right'))
        # Guard against the draw landing on the final edge through rounding
        return candidates[min(idx, len(candidates) - 1)]

    def move_to(self, x: float, y: float) -> float:
        """Step to a new world position; returns the step length."""
        step = math.hypot(x - self.x, y - self.y)
        self.x, self.y = x, y
        self.distance_traveled += step
        self.path.append((x, y))
        return step

    def distance_to(self, x: float, y: float) -> float:
        return math.hypot(x - self.x, y - self.y)

    def snapshot(self) -> AgentSnapshot:
        return AgentSnapshot(
            agent_id=self.id,
            x=self.x,
            y=self.y,
            target_id=self.target_id,
            path=tuple(self.path),
            distance_traveled=self.distance_traveled
        )

    def __repr__(self) -> str:
        return (f"Agent(id={self.id}, pos=({self.x:.1f}, {self.y:.1f}), "
                f"target={self.target_id})")
