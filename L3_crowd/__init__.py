# =============================================================================
# L3 Crowd Package
# =============================================================================
# Simulated crowd layer feeding the goal inference engine.
#
# Responsibilities:
# - Velocity obstacle navigation shared by every simulated agent
# - Simulation oracle for goal-directed velocity prediction
# - Crowd world with hidden pedestrian goals (observation feed)
#
# Usage:
#   from L3_crowd import CrowdWorld, CrowdSimulationOracle, load_scenario
#   world = CrowdWorld(dt=0.1, seed=7)
#   goals = load_scenario(world, 'crossing')
#   world.update()
#   joint_state = world.observe()
# =============================================================================

from .navigation import VelocityObstacleNavigator
from .oracle import CrowdSimulationOracle
from .world import CrowdWorld, ScenarioPresets, SCENARIOS, load_scenario, EGO_ID

# Re-export config for convenience
from .config import (
    WORLD_BOUNDS,
    DEFAULT_DT,
    DEFAULT_SIMULATION_STEPS,
    PEDESTRIAN_SPEED,
    OBSERVATION_NOISE_STD
)

__all__ = [
    # Navigation
    'VelocityObstacleNavigator',

    # Oracle
    'CrowdSimulationOracle',

    # World
    'CrowdWorld',
    'ScenarioPresets',
    'SCENARIOS',
    'load_scenario',
    'EGO_ID',

    # Config exports
    'WORLD_BOUNDS',
    'DEFAULT_DT',
    'DEFAULT_SIMULATION_STEPS',
    'PEDESTRIAN_SPEED',
    'OBSERVATION_NOISE_STD',
]

__version__ = '2.0.0'
