# =============================================================================
# L4 Intent - Types and Data Structures
# =============================================================================
# Agents, goal hypotheses, joint state, inference configuration and the
# per-cycle belief report handed to downstream consumers.
# =============================================================================

import numpy as np
from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Optional, Sequence, Tuple
from enum import Enum

from .config import (
    MAX_ACCELERATION,
    CYCLE_PERIOD,
    VELOCITY_CORRELATION,
    LIKELIHOOD_MODEL,
    STUDENT_T_DOF,
    POSTERIOR_FLOOR_THRESHOLD,
    POSTERIOR_FLOOR_VALUE,
    RESET_PRIORS,
    MAX_MISSED_CYCLES,
    INCLUDE_EGO_IN_SIMULATION,
    DEFAULT_AGENT_RADIUS,
    DEFAULT_SAMPLE_RESOLUTION
)


# =============================================================================
# Enumerations
# =============================================================================

class AgentRole(Enum):
    """Role of an observed agent."""
    EGO = "EGO"         # The robot running the inference
    OTHER = "OTHER"     # Pedestrian / vehicle whose goal is inferred


# =============================================================================
# Agents
# =============================================================================

@dataclass(eq=False)
class Agent:
    """Latest observation of one agent (overwritten every cycle)."""
    id: int
    role: AgentRole
    position: np.ndarray                # [x, y] in world frame (meters)
    velocity: np.ndarray                # [vx, vy] (m/s)
    radius: float = DEFAULT_AGENT_RADIUS

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=float).reshape(2)
        self.velocity = np.asarray(self.velocity, dtype=float).reshape(2)

    @property
    def is_ego(self) -> bool:
        return self.role == AgentRole.EGO


@dataclass
class JointState:
    """Snapshot of every tracked agent and the ego robot for one cycle."""
    agents: Dict[int, Agent] = field(default_factory=dict)
    cycle: int = 0

    @classmethod
    def from_agents(cls, agents: Sequence[Agent], cycle: int = 0) -> "JointState":
        return cls(agents={agent.id: agent for agent in agents}, cycle=cycle)

    def agent(self, agent_id: int) -> Agent:
        """Get an observed agent, raising KeyError if it is not in this snapshot."""
        try:
            return self.agents[agent_id]
        except KeyError:
            raise KeyError(f"Agent {agent_id} is not observed in cycle {self.cycle}") from None

    @property
    def agent_ids(self) -> List[int]:
        return list(self.agents.keys())

    @property
    def ego(self) -> Optional[Agent]:
        for agent in self.agents.values():
            if agent.is_ego:
                return agent
        return None

    @property
    def others(self) -> List[Agent]:
        return [agent for agent in self.agents.values() if not agent.is_ego]

    def without_ego(self) -> "JointState":
        return JointState(
            agents={aid: a for aid, a in self.agents.items() if not a.is_ego},
            cycle=self.cycle
        )

    def __contains__(self, agent_id) -> bool:
        return agent_id in self.agents

    def __len__(self) -> int:
        return len(self.agents)


# =============================================================================
# Goal Hypotheses
# =============================================================================

@dataclass
class SampleSpace:
    """Axis-aligned rectangle from which goal hypotheses are sampled."""
    x_min: float
    x_max: float
    y_min: float
    y_max: float

    def __post_init__(self):
        if self.x_max < self.x_min or self.y_max < self.y_min:
            raise ValueError(
                f"Invalid sample space: x=[{self.x_min}, {self.x_max}], "
                f"y=[{self.y_min}, {self.y_max}]"
            )

    @property
    def centre(self) -> np.ndarray:
        return np.array([(self.x_min + self.x_max) / 2, (self.y_min + self.y_max) / 2])

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        return self.x_min, self.x_max, self.y_min, self.y_max


@dataclass(eq=False)
class Goal:
    """A candidate destination: a fixed position or a sampled region."""
    id: Hashable
    position: Optional[np.ndarray] = None
    region: Optional[SampleSpace] = None

    def __post_init__(self):
        if self.position is None and self.region is None:
            raise ValueError(f"Goal {self.id} needs a position or a region")
        if self.position is not None:
            self.position = np.asarray(self.position, dtype=float).reshape(2)

    @property
    def target(self) -> np.ndarray:
        """Point an agent heading for this goal navigates toward."""
        if self.position is not None:
            return self.position
        return self.region.centre


@dataclass
class GoalHypothesisConfig:
    """How the hypothesis set is produced: fixed catalog or sampled space."""
    goal_sequence: List[Goal] = field(default_factory=list)
    sampling: bool = False
    sample_space: Optional[SampleSpace] = None
    sample_resolution: float = DEFAULT_SAMPLE_RESOLUTION


@dataclass
class ModelHypotheses:
    """Which agents are modelled and which goals they may be heading for."""
    goals: GoalHypothesisConfig = field(default_factory=GoalHypothesisConfig)
    agents: Optional[List[int]] = None  # None = every non-ego agent observed


# =============================================================================
# Inference Configuration
# =============================================================================

@dataclass
class InferenceConfig:
    """
    Explicit configuration of the goal inference engine.

    velocity_sigma is derived so that two standard deviations span the
    largest velocity change physically achievable within one cycle.
    """
    max_acceleration: float = MAX_ACCELERATION
    cycle_period: float = CYCLE_PERIOD
    correlation: float = VELOCITY_CORRELATION
    floor_threshold: float = POSTERIOR_FLOOR_THRESHOLD
    floor_value: float = POSTERIOR_FLOOR_VALUE
    reset_priors: bool = RESET_PRIORS
    max_missed_cycles: int = MAX_MISSED_CYCLES
    include_ego: bool = INCLUDE_EGO_IN_SIMULATION
    likelihood_model: str = LIKELIHOOD_MODEL
    student_t_dof: float = STUDENT_T_DOF

    def __post_init__(self):
        if self.max_acceleration <= 0:
            raise ValueError(f"max_acceleration must be positive, got {self.max_acceleration}")
        if self.cycle_period <= 0:
            raise ValueError(f"cycle_period must be positive, got {self.cycle_period}")
        if not -1.0 < self.correlation < 1.0:
            raise ValueError(f"correlation must lie in (-1, 1), got {self.correlation}")
        if not 0.0 <= self.floor_threshold < 1.0:
            raise ValueError(f"floor_threshold must lie in [0, 1), got {self.floor_threshold}")
        if not 0.0 < self.floor_value < 1.0:
            raise ValueError(f"floor_value must lie in (0, 1), got {self.floor_value}")
        if self.max_missed_cycles < 0:
            raise ValueError(f"max_missed_cycles must be >= 0, got {self.max_missed_cycles}")
        if self.student_t_dof <= 0:
            raise ValueError(f"student_t_dof must be positive, got {self.student_t_dof}")

    @property
    def velocity_sigma(self) -> float:
        return (self.max_acceleration / 2) * self.cycle_period


# =============================================================================
# Belief Output
# =============================================================================

@dataclass
class BeliefReport:
    """
    Normalized goal belief of one agent for one cycle.

    probabilities always holds the normalized posterior, never the
    floor-clamped prior persisted for the next cycle.
    """
    agent_id: int
    cycle: int
    probabilities: Dict[Hashable, float]
    degenerate: bool = False                                    # All raw mass was zero
    clamped: Tuple[Hashable, ...] = ()                          # Prior floor-clamped this cycle
    initialized: Tuple[Hashable, ...] = ()                      # Uniform: new or reset

    @property
    def goal_ids(self) -> List[Hashable]:
        return list(self.probabilities.keys())

    def most_likely_goal(self) -> Optional[Hashable]:
        if not self.probabilities:
            return None
        return max(self.probabilities, key=self.probabilities.get)

    def as_array(self, goal_ids: Optional[Sequence[Hashable]] = None) -> np.ndarray:
        if goal_ids is None:
            goal_ids = self.goal_ids
        return np.array([self.probabilities[g] for g in goal_ids])
