# =============================================================================
# L4 Intent - Simulation Oracle Contract
# =============================================================================
# The forward motion model predicting the velocity an agent would exhibit
# if it were navigating toward a hypothesized goal while avoiding the other
# agents. Implementations live with the motion-simulation backend
# (see L3_crowd.oracle); tests substitute deterministic stubs.
# =============================================================================

import numpy as np
from abc import ABC, abstractmethod

from .types import Goal, JointState


class SimulationOracle(ABC):
    """
    Abstract simulation oracle.

    simulate() must account for every agent in the joint state, not only
    the queried one. It is called once per (agent, goal) pair per cycle and
    is treated as deterministic given its inputs; results are never cached
    across cycles.
    """

    @abstractmethod
    def simulate(self, joint_state: JointState, agent_id: int, goal: Goal) -> np.ndarray:
        """
        Predict one agent's one-step velocity toward a goal.

        Args:
            joint_state: Every observed agent this cycle
            agent_id: Agent whose velocity is predicted
            goal: Hypothesized goal of that agent

        Returns:
            Predicted velocity [vx, vy]
        """
        pass


def validate_prediction(prediction, agent_id: int, goal: Goal) -> np.ndarray:
    """Coerce an oracle result to a finite 2-vector or raise ValueError."""
    velocity = np.asarray(prediction, dtype=float)
    if velocity.shape != (2,):
        raise ValueError(
            f"Oracle returned shape {velocity.shape} for agent {agent_id}, goal {goal.id}; "
            f"expected (2,)"
        )
    if not np.all(np.isfinite(velocity)):
        raise ValueError(f"Oracle returned non-finite velocity {velocity} "
                         f"for agent {agent_id}, goal {goal.id}")
    return velocity
