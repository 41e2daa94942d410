"""
Hypothesis generator tests: catalog enumeration and grid sampling.
"""

import numpy as np
import pytest

from L4_intent import (
    Goal,
    GoalHypothesisConfig,
    HypothesisGenerator,
    SampleSpace,
    goals_from_positions,
)


def test_enumeration_returns_catalog_in_order():
    catalog = [Goal(id="door", position=[1, 2]), Goal(id="exit", position=[5, 0]),
               Goal(id="lift", position=[-3, 4])]
    goals = HypothesisGenerator().generate(GoalHypothesisConfig(goal_sequence=catalog))
    assert [g.id for g in goals] == ["door", "exit", "lift"]


def test_empty_catalog_gives_empty_set():
    assert HypothesisGenerator().generate(GoalHypothesisConfig()) == []


def test_goals_from_positions_indexes_from_zero():
    goals = goals_from_positions([[0, 0], [3, 4]])
    assert [g.id for g in goals] == [0, 1]
    np.testing.assert_array_equal(goals[1].target, [3.0, 4.0])


def test_sampling_is_row_major():
    config = GoalHypothesisConfig(sampling=True,
                                  sample_space=SampleSpace(0, 2, 0, 2),
                                  sample_resolution=1.0)
    goals = HypothesisGenerator().generate(config)

    assert [g.id for g in goals] == [0, 1, 2, 3]
    centres = np.array([g.target for g in goals])
    np.testing.assert_allclose(centres, [[0.5, 0.5], [1.5, 0.5], [0.5, 1.5], [1.5, 1.5]])
    assert goals[3].region.bounds == (1.0, 2.0, 1.0, 2.0)


def test_sampling_clips_last_cell_to_bounds():
    goals = HypothesisGenerator().sample_goals(SampleSpace(0, 2.5, 0, 1), 1.0)
    assert len(goals) == 3
    np.testing.assert_allclose(goals[-1].target, [2.25, 0.5])
    assert goals[-1].region.x_max == 2.5


def test_zero_width_axis_gives_single_cell():
    goals = HypothesisGenerator().sample_goals(SampleSpace(1, 1, 0, 2), 1.0)
    assert len(goals) == 2
    assert all(g.target[0] == 1.0 for g in goals)


def test_sampled_ids_are_stable_across_cycles():
    generator = HypothesisGenerator()
    space = SampleSpace(-10, 10, -10, 10)
    first = generator.sample_goals(space, 5.0)
    second = generator.sample_goals(space, 5.0)
    assert [g.id for g in first] == [g.id for g in second]
    for a, b in zip(first, second):
        np.testing.assert_array_equal(a.target, b.target)


@pytest.mark.parametrize("resolution", [0.0, -1.0])
def test_non_positive_resolution_rejected(resolution):
    with pytest.raises(ValueError):
        HypothesisGenerator().sample_goals(SampleSpace(0, 1, 0, 1), resolution)


def test_sampling_without_space_rejected():
    with pytest.raises(ValueError):
        HypothesisGenerator().generate(GoalHypothesisConfig(sampling=True))


def test_sampling_limit():
    generator = HypothesisGenerator(max_sampled_goals=3)
    with pytest.raises(ValueError, match="exceeds the limit"):
        generator.sample_goals(SampleSpace(0, 2, 0, 2), 1.0)


@pytest.mark.parametrize("space, resolution", [
    (SampleSpace(0, 1e13, 0, 1), 1e-3),
    (SampleSpace(0, 1, 0, 1), 1e-320),
])
def test_oversized_grid_rejected_before_allocation(space, resolution):
    with pytest.raises(ValueError, match="exceeds the limit"):
        HypothesisGenerator().sample_goals(space, resolution)


def test_nan_resolution_rejected():
    with pytest.raises(ValueError, match="must be positive"):
        HypothesisGenerator().sample_goals(SampleSpace(0, 1, 0, 1), float("nan"))


def test_invalid_sample_space_rejected():
    with pytest.raises(ValueError):
        SampleSpace(1, 0, 0, 1)


def test_goal_needs_position_or_region():
    with pytest.raises(ValueError):
        Goal(id=0)
    region_goal = Goal(id=1, region=SampleSpace(0, 2, 0, 4))
    np.testing.assert_array_equal(region_goal.target, [1.0, 2.0])
