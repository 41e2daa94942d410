# =============================================================================
# L3 Crowd - Crowd Simulation Oracle
# =============================================================================
# Answers "what velocity would this agent have if it were heading for this
# goal?" by running one navigator step in the full joint state.
# =============================================================================

import numpy as np
from typing import Dict, Optional

from L4_intent import Goal, JointState, SimulationOracle

from .navigation import VelocityObstacleNavigator
from .config import PEDESTRIAN_SPEED


class CrowdSimulationOracle(SimulationOracle):
    """
    Simulation oracle backed by the velocity obstacle navigator.

    Every other agent in the joint state is a neighbour of the simulated
    agent, so the prediction accounts for interaction with the whole crowd
    (ego robot included when the engine hands it over).
    """

    def __init__(self,
                 navigator: Optional[VelocityObstacleNavigator] = None,
                 preferred_speed: float = PEDESTRIAN_SPEED,
                 agent_speeds: Optional[Dict[int, float]] = None):
        """
        Initialize the oracle.

        Args:
            navigator: Motion model (default parameters if None)
            preferred_speed: Cruise speed assumed for unknown agents
            agent_speeds: Optional per-agent cruise speeds
        """
        self.navigator = navigator if navigator is not None else VelocityObstacleNavigator()
        self.preferred_speed = preferred_speed
        self.agent_speeds = dict(agent_speeds) if agent_speeds else {}
        self.call_count = 0

    def simulate(self, joint_state: JointState, agent_id: int, goal: Goal) -> np.ndarray:
        self.call_count += 1
        agent = joint_state.agent(agent_id)
        speed = self.agent_speeds.get(agent_id, self.preferred_speed)
        return self.navigator.compute_velocity(
            agent, goal.target, joint_state.agents.values(), speed
        )
