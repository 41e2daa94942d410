# =============================================================================
# L4 Intent - Belief Tracker
# =============================================================================
# Recursive Bayesian update of a per-agent, per-goal belief.
#
# Per (agent, goal) the belief is either uninitialized (no entry) or tracked
# (prior carried from the previous cycle). Each cycle:
# 1. raw[g] = 1/n if uninitialized or reset, else likelihood[g] * prior[g]
# 2. normalizer = Σ raw[g]
# 3. normalizer == 0: report uniform, keep every prior untouched
# 4. otherwise report raw[g] / normalizer and persist it as prior, except
#    values at or below the floor threshold, which persist the floor value
#
# The reported value and the persisted prior differ whenever the floor clamp
# triggers: a zero prior could never recover under a multiplicative update.
# =============================================================================

import logging
from typing import Dict, Hashable, List, Mapping, Optional

from .types import BeliefReport
from .config import POSTERIOR_FLOOR_THRESHOLD, POSTERIOR_FLOOR_VALUE

logger = logging.getLogger(__name__)


class UnknownBeliefKeyError(KeyError):
    """No belief entry exists for the requested (agent, goal) key."""

    def __init__(self, agent_id, goal_id=None):
        self.agent_id = agent_id
        self.goal_id = goal_id
        if goal_id is None:
            message = f"No belief tracked for agent {agent_id}"
        else:
            message = f"No belief tracked for agent {agent_id}, goal {goal_id}"
        super().__init__(message)


class BeliefTracker:
    """
    Stores and recursively updates goal priors keyed by (agent_id, goal_id).

    Entries are created lazily with a uniform prior the first time an
    (agent, goal) pair is referenced, and dropped when the goal leaves the
    hypothesis set or the agent is removed.
    """

    def __init__(self,
                 floor_threshold: float = POSTERIOR_FLOOR_THRESHOLD,
                 floor_value: float = POSTERIOR_FLOOR_VALUE):
        """
        Initialize the tracker.

        Args:
            floor_threshold: Posteriors at or below this are clamped when persisted
            floor_value: Prior persisted for clamped hypotheses
        """
        self.floor_threshold = floor_threshold
        self.floor_value = floor_value

        # agent_id -> goal_id -> prior for next cycle
        self._priors: Dict[int, Dict[Hashable, float]] = {}

    # =========================================================================
    # Queries
    # =========================================================================

    def prior(self, agent_id: int, goal_id: Hashable) -> float:
        """Persisted prior of one (agent, goal) pair."""
        try:
            return self._priors[agent_id][goal_id]
        except KeyError:
            raise UnknownBeliefKeyError(agent_id, goal_id) from None

    def priors(self, agent_id: int) -> Dict[Hashable, float]:
        """Copy of every persisted prior of an agent."""
        try:
            return dict(self._priors[agent_id])
        except KeyError:
            raise UnknownBeliefKeyError(agent_id) from None

    def has_agent(self, agent_id: int) -> bool:
        return agent_id in self._priors

    def is_tracked(self, agent_id: int, goal_id: Hashable) -> bool:
        return goal_id in self._priors.get(agent_id, {})

    @property
    def agent_ids(self) -> List[int]:
        return list(self._priors.keys())

    # =========================================================================
    # Update
    # =========================================================================

    def update(self,
               agent_id: int,
               likelihoods: Mapping[Hashable, float],
               cycle: int = 0,
               reset: bool = False) -> Optional[BeliefReport]:
        """
        Run one recursive update for an agent over its current hypotheses.

        Args:
            agent_id: Agent whose belief is updated
            likelihoods: goal_id -> emission likelihood, in hypothesis order
            cycle: Cycle stamp copied into the report
            reset: Treat every goal as uninitialized (uniform) this cycle

        Returns:
            BeliefReport with the normalized posterior, or None when the
            hypothesis set is empty
        """
        goal_ids = list(likelihoods.keys())
        n_goals = len(goal_ids)
        if n_goals == 0:
            return None

        agent_priors = self._priors.setdefault(agent_id, {})
        self._drop_stale_goals(agent_id, agent_priors, goal_ids)

        uniform = 1.0 / n_goals
        raw: Dict[Hashable, float] = {}
        initialized = []

        for goal_id in goal_ids:
            if reset:
                raw[goal_id] = uniform
                initialized.append(goal_id)
                continue
            try:
                prior = self.prior(agent_id, goal_id)
            except UnknownBeliefKeyError:
                raw[goal_id] = uniform
                initialized.append(goal_id)
                continue
            raw[goal_id] = likelihoods[goal_id] * prior

        normalizer = sum(raw.values())

        if normalizer == 0:
            # Every likelihood collapsed: report uniform, keep accumulated priors
            logger.warning(
                "Agent %s cycle %s: all goal likelihoods are zero, reporting uniform belief",
                agent_id, cycle
            )
            return BeliefReport(
                agent_id=agent_id,
                cycle=cycle,
                probabilities={goal_id: uniform for goal_id in goal_ids},
                degenerate=True,
                initialized=tuple(initialized)
            )

        probabilities = {}
        clamped = []
        for goal_id in goal_ids:
            posterior = raw[goal_id] / normalizer
            probabilities[goal_id] = posterior
            if posterior > self.floor_threshold:
                agent_priors[goal_id] = posterior
            else:
                agent_priors[goal_id] = self.floor_value
                clamped.append(goal_id)
            logger.debug(
                "Agent %s goal %s: likelihood=%.6g raw=%.6g posterior=%.6g prior=%.6g",
                agent_id, goal_id, likelihoods[goal_id], raw[goal_id],
                posterior, agent_priors[goal_id]
            )

        return BeliefReport(
            agent_id=agent_id,
            cycle=cycle,
            probabilities=probabilities,
            degenerate=False,
            clamped=tuple(clamped),
            initialized=tuple(initialized)
        )

    def _drop_stale_goals(self, agent_id: int,
                          agent_priors: Dict[Hashable, float],
                          goal_ids: List[Hashable]):
        live = set(goal_ids)
        stale = [goal_id for goal_id in agent_priors if goal_id not in live]
        for goal_id in stale:
            del agent_priors[goal_id]
        if stale:
            logger.debug("Agent %s: dropped beliefs for goals %s", agent_id, stale)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def remove_agent(self, agent_id: int) -> bool:
        """Delete every belief entry of an agent. Returns False if none existed."""
        return self._priors.pop(agent_id, None) is not None

    def reset(self):
        self._priors = {}
