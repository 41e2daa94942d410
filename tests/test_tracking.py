"""
Agent registry tests: creation, eviction after missed cycles, departure.
"""

import pytest

from L4_intent import AgentRegistry


def test_observe_reports_new_agents_once():
    registry = AgentRegistry()
    assert registry.observe([1, 2], cycle=1) == [1, 2]
    assert registry.observe([1, 2, 3], cycle=2) == [3]
    assert sorted(registry.agent_ids) == [1, 2, 3]


def test_eviction_after_more_than_max_missed_cycles():
    registry = AgentRegistry(max_missed_cycles=2)
    registry.observe([1], cycle=1)

    registry.observe([], cycle=2)
    assert registry.expire() == []
    registry.observe([], cycle=3)
    assert registry.expire() == []
    assert registry.missed_cycles(1) == 2

    registry.observe([], cycle=4)
    assert registry.expire() == [1]
    assert 1 not in registry


def test_observation_refreshes_last_seen():
    registry = AgentRegistry(max_missed_cycles=1)
    registry.observe([1], cycle=1)
    registry.observe([], cycle=2)
    registry.observe([1], cycle=3)
    registry.observe([], cycle=4)
    assert registry.expire() == []


def test_zero_tolerance_evicts_on_first_miss():
    registry = AgentRegistry(max_missed_cycles=0)
    registry.observe([1, 2], cycle=1)
    registry.observe([2], cycle=2)
    assert registry.expire() == [1]


def test_depart():
    registry = AgentRegistry()
    registry.observe([5], cycle=1)
    assert registry.depart(5)
    assert not registry.depart(5)
    assert 5 not in registry


def test_missed_cycles_unknown_agent_raises():
    with pytest.raises(KeyError):
        AgentRegistry().missed_cycles(9)


def test_reset():
    registry = AgentRegistry()
    registry.observe([1], cycle=3)
    registry.reset()
    assert registry.agent_ids == []
    assert registry.current_cycle == 0
