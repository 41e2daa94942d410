# =============================================================================
# L3 Crowd - Crowd World and Scenario Presets
# =============================================================================

import logging
import numpy as np
from typing import Dict, Hashable, List, Optional

from L4_intent import (
    Agent,
    AgentRole,
    Goal,
    GoalHypothesisConfig,
    HypothesisGenerator,
    JointState,
    ObservationFeed,
    SampleSpace,
    goals_from_positions
)

from .navigation import VelocityObstacleNavigator
from .config import (
    WORLD_BOUNDS,
    DEFAULT_DT,
    PEDESTRIAN_SPEED,
    PEDESTRIAN_RADIUS,
    EGO_SPEED,
    EGO_RADIUS,
    EGO_START_POSITION,
    EGO_GOAL_POSITION,
    FIRST_PEDESTRIAN_ID,
    OBSERVATION_NOISE_STD,
    CROSSING_EXITS,
    CROSSING_PEDESTRIANS,
    CORRIDOR_GOALS,
    CORRIDOR_PEDESTRIANS,
    CORRIDOR_EGO_START,
    CORRIDOR_EGO_GOAL,
    SAMPLED_RESOLUTION,
    SAMPLED_PEDESTRIANS
)

logger = logging.getLogger(__name__)

EGO_ID = 0


class CrowdWorld(ObservationFeed):
    """
    Simulated plaza with an ego robot and pedestrians.

    Each pedestrian walks toward a hidden goal using the same navigator the
    oracle uses, and leaves the world once it arrives.
    """

    def __init__(self, dt: float = DEFAULT_DT,
                 world_bounds: tuple = WORLD_BOUNDS,
                 noise_std: float = OBSERVATION_NOISE_STD,
                 seed: Optional[int] = None,
                 navigator: Optional[VelocityObstacleNavigator] = None):
        """
        Initialize the simulation world.

        Args:
            dt: Delta time for the simulation
            world_bounds: (x_min, x_max, y_min, y_max)
            noise_std: Std of Gaussian noise on observed velocities
            seed: Seed of the observation noise generator
            navigator: Motion model of every agent
        """
        self.dt = dt
        self.world_bounds = world_bounds
        self.noise_std = noise_std
        self.rng = np.random.default_rng(seed)
        self.navigator = navigator if navigator is not None else VelocityObstacleNavigator()

        self.ego: Optional[Agent] = None
        self.ego_goal: Optional[np.ndarray] = None
        self.ego_speed = EGO_SPEED

        self.pedestrians: Dict[int, Agent] = {}
        self.pedestrian_goals: Dict[int, Goal] = {}
        self.speeds: Dict[int, float] = {}

        # Ground truth of every pedestrian ever spawned: id -> goal id
        self.true_goals: Dict[int, Hashable] = {}
        self.departed: List[int] = []

        self.current_time = 0.0
        self.current_frame = 0
        self._next_id = FIRST_PEDESTRIAN_ID

    # =========================================================================
    # Population
    # =========================================================================

    def set_ego(self, position, goal_position, speed: float = EGO_SPEED,
                radius: float = EGO_RADIUS):
        self.ego = Agent(id=EGO_ID, role=AgentRole.EGO, position=position,
                         velocity=np.zeros(2), radius=radius)
        self.ego_goal = np.asarray(goal_position, dtype=float)
        self.ego_speed = speed

    def add_pedestrian(self, position, goal: Goal,
                       speed: float = PEDESTRIAN_SPEED,
                       radius: float = PEDESTRIAN_RADIUS) -> int:
        """Spawn a pedestrian heading for goal. Returns its id."""
        agent_id = self._next_id
        self._next_id += 1
        self.pedestrians[agent_id] = Agent(id=agent_id, role=AgentRole.OTHER,
                                           position=position, velocity=np.zeros(2),
                                           radius=radius)
        self.pedestrian_goals[agent_id] = goal
        self.speeds[agent_id] = speed
        self.true_goals[agent_id] = goal.id
        return agent_id

    def clear(self):
        self.ego = None
        self.ego_goal = None
        self.pedestrians.clear()
        self.pedestrian_goals.clear()
        self.speeds.clear()
        self.true_goals.clear()
        self.departed = []
        self.current_time = 0.0
        self.current_frame = 0
        self._next_id = FIRST_PEDESTRIAN_ID

    def _all_agents(self) -> List[Agent]:
        agents = list(self.pedestrians.values())
        if self.ego is not None:
            agents.insert(0, self.ego)
        return agents

    # =========================================================================
    # Simulation
    # =========================================================================

    def update(self) -> dict:
        """Advance every agent by one step; arrived pedestrians leave."""
        agents = self._all_agents()

        # Synchronous update: all velocities from the same snapshot
        new_velocities = {}
        if self.ego is not None:
            new_velocities[self.ego.id] = self.navigator.compute_velocity(
                self.ego, self.ego_goal, agents, self.ego_speed
            )
        for agent_id, pedestrian in self.pedestrians.items():
            new_velocities[agent_id] = self.navigator.compute_velocity(
                pedestrian, self.pedestrian_goals[agent_id].target, agents,
                self.speeds[agent_id]
            )

        x_min, x_max, y_min, y_max = self.world_bounds
        for agent in agents:
            agent.velocity = new_velocities[agent.id]
            agent.position = agent.position + agent.velocity * self.dt
            agent.position[0] = np.clip(agent.position[0], x_min, x_max)
            agent.position[1] = np.clip(agent.position[1], y_min, y_max)

        self.departed = [
            agent_id for agent_id, pedestrian in self.pedestrians.items()
            if np.linalg.norm(self.pedestrian_goals[agent_id].target - pedestrian.position)
            < self.navigator.goal_tolerance
        ]
        for agent_id in self.departed:
            del self.pedestrians[agent_id]
            del self.pedestrian_goals[agent_id]
            del self.speeds[agent_id]
            logger.info("Pedestrian %s reached goal %s and left",
                        agent_id, self.true_goals[agent_id])

        self.current_time += self.dt
        self.current_frame += 1

        return {
            'time': self.current_time,
            'frame': self.current_frame,
            'num_pedestrians': len(self.pedestrians),
            'departed': list(self.departed)
        }

    def observe(self) -> JointState:
        """Current joint state, with observation noise on velocities."""
        observed = []
        for agent in self._all_agents():
            velocity = agent.velocity.copy()
            if self.noise_std > 0 and not agent.is_ego:
                velocity = velocity + self.rng.normal(0.0, self.noise_std, 2)
            observed.append(Agent(id=agent.id, role=agent.role,
                                  position=agent.position.copy(),
                                  velocity=velocity, radius=agent.radius))
        return JointState.from_agents(observed, cycle=self.current_frame)

    def get_ground_truth(self) -> Dict[int, Hashable]:
        return dict(self.true_goals)

    @property
    def is_empty(self) -> bool:
        return not self.pedestrians


class ScenarioPresets:
    """
    Presets for common test scenarios.

    Every preset populates the world and returns the goal hypothesis
    configuration the observer should reason over.
    """

    @staticmethod
    def scenario_crossing(world: CrowdWorld) -> GoalHypothesisConfig:
        world.clear()
        world.set_ego(EGO_START_POSITION, EGO_GOAL_POSITION)
        exits = goals_from_positions(CROSSING_EXITS)
        for start, exit_index in CROSSING_PEDESTRIANS:
            world.add_pedestrian(start, exits[exit_index])
        return GoalHypothesisConfig(goal_sequence=exits)

    @staticmethod
    def scenario_corridor(world: CrowdWorld) -> GoalHypothesisConfig:
        world.clear()
        world.set_ego(CORRIDOR_EGO_START, CORRIDOR_EGO_GOAL)
        goals = goals_from_positions(CORRIDOR_GOALS)
        for start, goal_index in CORRIDOR_PEDESTRIANS:
            world.add_pedestrian(start, goals[goal_index])
        return GoalHypothesisConfig(goal_sequence=goals)

    @staticmethod
    def scenario_sampled(world: CrowdWorld) -> GoalHypothesisConfig:
        world.clear()
        world.set_ego(EGO_START_POSITION, EGO_GOAL_POSITION)
        config = GoalHypothesisConfig(
            sampling=True,
            sample_space=SampleSpace(*world.world_bounds),
            sample_resolution=SAMPLED_RESOLUTION
        )
        cells = HypothesisGenerator().generate(config)
        for start, target in SAMPLED_PEDESTRIANS:
            # Pedestrian heads for the cell whose centre is nearest the target
            goal = min(cells, key=lambda g: np.linalg.norm(g.target - np.asarray(target)))
            world.add_pedestrian(start, goal)
        return config


SCENARIOS = {
    'crossing': ScenarioPresets.scenario_crossing,
    'corridor': ScenarioPresets.scenario_corridor,
    'sampled': ScenarioPresets.scenario_sampled,
}


def load_scenario(world: CrowdWorld, name: str) -> GoalHypothesisConfig:
    """Populate world with the named scenario."""
    try:
        preset = SCENARIOS[name]
    except KeyError:
        raise ValueError(f"Unknown scenario: {name}") from None
    return preset(world)
