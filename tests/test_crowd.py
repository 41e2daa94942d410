"""
Simulated crowd tests: navigator, oracle, world and an end-to-end run of
the inference engine on the simulated crowd.
"""

import numpy as np
import pytest

from L3_crowd import (
    CrowdSimulationOracle,
    CrowdWorld,
    EGO_ID,
    ScenarioPresets,
    VelocityObstacleNavigator,
    load_scenario,
)
from L4_intent import (
    Agent,
    AgentRole,
    Goal,
    GoalHypothesisConfig,
    GoalInferenceEngine,
    InferenceConfig,
    JointState,
    ModelHypotheses,
    goals_from_positions,
)


def pedestrian(agent_id, position, velocity=(0.0, 0.0), radius=0.3):
    return Agent(id=agent_id, role=AgentRole.OTHER, position=position,
                 velocity=velocity, radius=radius)


# =============================================================================
# Navigator
# =============================================================================

def test_time_to_collision_head_on():
    ttc = VelocityObstacleNavigator.time_to_collision(
        np.array([2.0, 0.0]), np.array([-1.0, 0.0]), 1.0
    )
    assert ttc == pytest.approx(1.0)


def test_time_to_collision_diverging_and_overlapping():
    nav = VelocityObstacleNavigator
    assert nav.time_to_collision(np.array([2.0, 0.0]), np.array([1.0, 0.0]), 1.0) == float('inf')
    assert nav.time_to_collision(np.array([2.0, 0.0]), np.array([0.0, 0.0]), 1.0) == float('inf')
    assert nav.time_to_collision(np.array([0.5, 0.0]), np.array([1.0, 0.0]), 1.0) == 0.0


def test_preferred_velocity():
    nav = VelocityObstacleNavigator(goal_tolerance=0.3, slow_down_radius=1.0)
    np.testing.assert_allclose(nav.preferred_velocity([0, 0], [10, 0], 1.2), [1.2, 0.0])
    np.testing.assert_allclose(nav.preferred_velocity([0, 0], [0, 0.5], 1.2), [0.0, 0.6])
    np.testing.assert_array_equal(nav.preferred_velocity([0, 0], [0.1, 0], 1.2), [0.0, 0.0])


def test_free_space_returns_preferred_velocity_exactly():
    nav = VelocityObstacleNavigator()
    agent = pedestrian(1, [0.0, 0.0])
    far = pedestrian(2, [0.0, 8.0], velocity=[0.0, 1.0])

    velocity = nav.compute_velocity(agent, np.array([5.0, 0.0]), [agent, far], 1.2)
    np.testing.assert_array_equal(velocity, nav.preferred_velocity([0, 0], [5, 0], 1.2))


def test_head_on_neighbour_forces_avoidance():
    nav = VelocityObstacleNavigator()
    agent = pedestrian(1, [0.0, 0.0])
    oncoming = pedestrian(2, [2.0, 0.0], velocity=[-1.2, 0.0])

    velocity = nav.compute_velocity(agent, np.array([10.0, 0.0]), [oncoming], 1.2)

    assert not np.allclose(velocity, [1.2, 0.0])
    assert nav.threats(agent, np.array([1.2, 0.0]), [oncoming])[0][0] == 2
    assert not nav.threats(agent, velocity, [oncoming]) or \
        nav.threats(agent, velocity, [oncoming])[0][1] > \
        nav.threats(agent, np.array([1.2, 0.0]), [oncoming])[0][1]

    # Deterministic
    again = nav.compute_velocity(agent, np.array([10.0, 0.0]), [oncoming], 1.2)
    np.testing.assert_array_equal(velocity, again)


def test_candidates_start_with_preferred_velocity():
    nav = VelocityObstacleNavigator(num_speeds=2, num_headings=4)
    candidates = nav.candidate_velocities(np.array([0.3, 0.4]), 1.0)
    assert candidates.shape == (2 + 2 * 4, 2)
    np.testing.assert_array_equal(candidates[0], [0.3, 0.4])
    np.testing.assert_array_equal(candidates[1], [0.0, 0.0])


# =============================================================================
# Oracle
# =============================================================================

def test_oracle_accounts_for_other_agents():
    oracle = CrowdSimulationOracle(preferred_speed=1.2)
    goal = Goal(id=0, position=[10.0, 0.0])

    alone = JointState.from_agents([pedestrian(1, [0.0, 0.0])])
    crowded = JointState.from_agents([pedestrian(1, [0.0, 0.0]),
                                      pedestrian(2, [2.0, 0.0], velocity=[-1.2, 0.0])])

    np.testing.assert_allclose(oracle.simulate(alone, 1, goal), [1.2, 0.0])
    assert not np.allclose(oracle.simulate(crowded, 1, goal), [1.2, 0.0])
    assert oracle.call_count == 2


def test_oracle_uses_per_agent_speed():
    oracle = CrowdSimulationOracle(preferred_speed=1.2, agent_speeds={1: 0.5})
    state = JointState.from_agents([pedestrian(1, [0.0, 0.0])])
    np.testing.assert_allclose(oracle.simulate(state, 1, Goal(id=0, position=[0, 9])), [0.0, 0.5])


def test_oracle_unknown_agent_raises():
    oracle = CrowdSimulationOracle()
    with pytest.raises(KeyError):
        oracle.simulate(JointState(), 3, Goal(id=0, position=[0, 0]))


# =============================================================================
# World
# =============================================================================

def test_pedestrian_walks_to_goal_and_leaves():
    world = CrowdWorld(dt=0.1)
    agent_id = world.add_pedestrian([0.0, 0.0], Goal(id="exit", position=[3.0, 0.0]))

    for _ in range(100):
        state = world.update()
        if state['departed']:
            break

    assert state['departed'] == [agent_id]
    assert world.is_empty
    assert world.get_ground_truth() == {agent_id: "exit"}


def test_observe_builds_joint_state():
    world = CrowdWorld()
    ScenarioPresets.scenario_crossing(world)
    world.update()
    state = world.observe()

    assert state.ego.id == EGO_ID
    assert len(state.others) == 4
    assert state.cycle == 1
    for agent in state.others:
        assert np.linalg.norm(agent.velocity) > 0


def test_observation_noise_is_seeded():
    def observed_velocities(seed):
        world = CrowdWorld(noise_std=0.05, seed=seed)
        ScenarioPresets.scenario_corridor(world)
        world.update()
        return np.array([a.velocity for a in world.observe().others])

    np.testing.assert_array_equal(observed_velocities(3), observed_velocities(3))
    assert not np.allclose(observed_velocities(3), observed_velocities(4))


def test_noise_free_observation_is_exact():
    world = CrowdWorld()
    ScenarioPresets.scenario_corridor(world)
    world.update()
    state = world.observe()
    for agent_id, pedestrian_state in world.pedestrians.items():
        np.testing.assert_array_equal(state.agent(agent_id).velocity, pedestrian_state.velocity)


def test_sampled_scenario_goals_are_grid_cells():
    world = CrowdWorld()
    config = load_scenario(world, 'sampled')
    assert config.sampling
    cell_count = 16
    assert all(0 <= goal_id < cell_count for goal_id in world.get_ground_truth().values())


def test_unknown_scenario_rejected():
    with pytest.raises(ValueError, match="Unknown scenario"):
        load_scenario(CrowdWorld(), 'stadium')


# =============================================================================
# End to end
# =============================================================================

def test_engine_recognises_goal_of_lone_pedestrian():
    world = CrowdWorld()
    goals = goals_from_positions([[9.0, 0.0], [0.0, 9.0], [-9.0, 0.0]])
    agent_id = world.add_pedestrian([0.0, 0.0], goals[0])

    engine = GoalInferenceEngine(
        InferenceConfig(),
        CrowdSimulationOracle(navigator=world.navigator),
        feed=world,
        hypotheses=ModelHypotheses(goals=GoalHypothesisConfig(goal_sequence=goals))
    )

    for _ in range(5):
        world.update()
        reports = engine.step()

    report = reports[agent_id]
    assert report.most_likely_goal() == 0
    assert report.probabilities[0] > 0.99
