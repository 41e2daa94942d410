# =============================================================================
# L3 Crowd - Velocity Obstacle Navigator
# =============================================================================
# Goal-directed collision avoidance shared by every simulated agent:
# - Preferred velocity: straight toward the goal, slowing near it
# - Time-To-Collision (TTC) against every neighbour at its current velocity
# - Candidate sampling: pick the velocity closest to the preferred one while
#   penalising imminent collisions
#
# Deterministic: the same inputs always give the same velocity.
# =============================================================================

import numpy as np
from typing import Iterable, List, Tuple

from L4_intent import Agent

from .config import (
    GOAL_TOLERANCE,
    SLOW_DOWN_RADIUS,
    VO_TIME_HORIZON,
    VO_NUM_SPEEDS,
    VO_NUM_HEADINGS,
    VO_COLLISION_WEIGHT,
    VO_MIN_TTC
)


class VelocityObstacleNavigator:
    """
    Non-reciprocal velocity obstacle planner.

    Every neighbour is assumed to keep its current velocity over the time
    horizon. Candidates that would collide sooner are penalised by
    collision_weight / ttc.
    """

    def __init__(self,
                 time_horizon: float = VO_TIME_HORIZON,
                 num_speeds: int = VO_NUM_SPEEDS,
                 num_headings: int = VO_NUM_HEADINGS,
                 collision_weight: float = VO_COLLISION_WEIGHT,
                 goal_tolerance: float = GOAL_TOLERANCE,
                 slow_down_radius: float = SLOW_DOWN_RADIUS):
        self.time_horizon = time_horizon
        self.num_speeds = num_speeds
        self.num_headings = num_headings
        self.collision_weight = collision_weight
        self.goal_tolerance = goal_tolerance
        self.slow_down_radius = slow_down_radius

        # Unit heading vectors, fixed order
        angles = np.linspace(-np.pi, np.pi, num_headings, endpoint=False)
        self._headings = np.column_stack([np.cos(angles), np.sin(angles)])

    # =========================================================================
    # Preferred Velocity
    # =========================================================================

    def preferred_velocity(self, position: np.ndarray, goal: np.ndarray,
                           max_speed: float) -> np.ndarray:
        """
        Compute desired velocity toward goal.

        Args:
            position: Current agent position
            goal: Goal position
            max_speed: Cruise speed

        Returns:
            Desired velocity vector
        """
        to_goal = np.asarray(goal, dtype=float) - np.asarray(position, dtype=float)
        dist_to_goal = np.linalg.norm(to_goal)

        if dist_to_goal < self.goal_tolerance:
            return np.array([0.0, 0.0])

        goal_dir = to_goal / dist_to_goal

        # Slow down near goal
        if dist_to_goal < self.slow_down_radius:
            speed = max_speed * (dist_to_goal / self.slow_down_radius)
        else:
            speed = max_speed

        return goal_dir * speed

    # =========================================================================
    # Time To Collision
    # =========================================================================

    @staticmethod
    def time_to_collision(rel_pos: np.ndarray,
                          rel_vel: np.ndarray,
                          combined_radius: float) -> float:
        """
        Compute Time-To-Collision (TTC) between two discs.

        Uses the quadratic formula to find when distance equals combined radius.

        Args:
            rel_pos: Relative position (neighbour - agent)
            rel_vel: Relative velocity (neighbour_vel - agent_vel)
            combined_radius: Sum of both radii

        Returns:
            Time to collision, 0.0 if already overlapping, inf if never
        """
        # |rel_pos + t * rel_vel|^2 = combined_radius^2
        a = np.dot(rel_vel, rel_vel)
        b = 2 * np.dot(rel_pos, rel_vel)
        c = np.dot(rel_pos, rel_pos) - combined_radius**2

        # Already colliding?
        if c < 0:
            return 0.0

        if a < 1e-9:
            return float('inf')

        discriminant = b**2 - 4*a*c
        if discriminant < 0:
            return float('inf')

        sqrt_disc = np.sqrt(discriminant)
        t1 = (-b - sqrt_disc) / (2*a)
        t2 = (-b + sqrt_disc) / (2*a)

        if t1 > 0:
            return float(t1)
        if t2 > 0:
            return float(t2)
        # Collision in the past
        return float('inf')

    def _min_ttc(self, agent: Agent, velocity: np.ndarray,
                 neighbours: List[Agent]) -> float:
        ttc = float('inf')
        for other in neighbours:
            t = self.time_to_collision(
                other.position - agent.position,
                other.velocity - velocity,
                agent.radius + other.radius
            )
            ttc = min(ttc, t)
        return ttc

    # =========================================================================
    # Velocity Selection
    # =========================================================================

    def candidate_velocities(self, v_pref: np.ndarray, max_speed: float) -> np.ndarray:
        """Preferred velocity first, then a stop, then the speed x heading grid."""
        speeds = np.linspace(0.0, max_speed, self.num_speeds + 1)[1:]
        grid = (speeds[:, None, None] * self._headings[None, :, :]).reshape(-1, 2)
        return np.vstack([v_pref, np.zeros(2), grid])

    def compute_velocity(self, agent: Agent, goal: np.ndarray,
                         neighbours: Iterable[Agent],
                         max_speed: float) -> np.ndarray:
        """
        Select the agent's next velocity.

        Args:
            agent: Agent being steered
            goal: Point the agent navigates toward
            neighbours: Every other agent, assumed to keep its velocity
            max_speed: Cruise speed of the agent

        Returns:
            Velocity [vx, vy]
        """
        neighbours = [n for n in neighbours if n.id != agent.id]
        v_pref = self.preferred_velocity(agent.position, goal, max_speed)

        if not self.threats(agent, v_pref, neighbours):
            return v_pref

        best_velocity, best_cost = v_pref, float('inf')
        for candidate in self.candidate_velocities(v_pref, max_speed):
            cost = self._cost(agent, candidate, v_pref, neighbours)
            if cost < best_cost:
                best_velocity, best_cost = candidate, cost
        return np.array(best_velocity, dtype=float)

    def _cost(self, agent: Agent, candidate: np.ndarray, v_pref: np.ndarray,
              neighbours: List[Agent]) -> float:
        deviation = float(np.linalg.norm(candidate - v_pref))
        ttc = self._min_ttc(agent, candidate, neighbours)
        if ttc > self.time_horizon:
            return deviation
        return deviation + self.collision_weight / max(ttc, VO_MIN_TTC)

    def threats(self, agent: Agent, velocity: np.ndarray,
                neighbours: Iterable[Agent]) -> List[Tuple[int, float]]:
        """(neighbour id, ttc) pairs colliding within the horizon, most urgent first."""
        result = []
        for other in neighbours:
            if other.id == agent.id:
                continue
            t = self.time_to_collision(other.position - agent.position,
                                       other.velocity - velocity,
                                       agent.radius + other.radius)
            if t <= self.time_horizon:
                result.append((other.id, t))
        return sorted(result, key=lambda item: item[1])
