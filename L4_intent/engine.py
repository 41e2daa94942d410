# =============================================================================
# L4 Intent - Goal Inference Engine
# =============================================================================
# Orchestrates one inference cycle:
# 1. Obtain the joint agent state (argument or observation feed)
# 2. Generate the goal hypothesis set
# 3. Query the simulation oracle for every (agent, goal) pair
# 4. Evaluate emission likelihoods
# 5. Run the belief update per agent
# 6. Expose the normalized belief of every agent to consumers
#
# Single-threaded, run-to-completion: every prediction of a cycle is
# gathered before any belief is updated.
# =============================================================================

import logging
import numpy as np
from typing import Dict, Hashable, List, Optional

from .types import BeliefReport, Goal, InferenceConfig, JointState, ModelHypotheses
from .hypotheses import HypothesisGenerator
from .likelihood import LikelihoodModel, likelihood_from_config
from .belief import BeliefTracker, UnknownBeliefKeyError
from .tracking import AgentRegistry
from .oracle import SimulationOracle, validate_prediction
from .feed import ObservationFeed

logger = logging.getLogger(__name__)


class GoalInferenceEngine:
    """
    Simulation-based inverse planning over goal hypotheses.

    For every modelled agent and every goal the oracle predicts the
    velocity the agent would have if heading for that goal; the match
    against the observed velocity drives a recursive Bayesian update of a
    per-agent belief.
    """

    def __init__(self,
                 config: Optional[InferenceConfig],
                 oracle: SimulationOracle,
                 likelihood_model: Optional[LikelihoodModel] = None,
                 hypothesis_generator: Optional[HypothesisGenerator] = None,
                 feed: Optional[ObservationFeed] = None,
                 hypotheses: Optional[ModelHypotheses] = None):
        """
        Initialize the engine.

        Args:
            config: Inference parameters (defaults if None)
            oracle: Simulation oracle predicting goal-directed velocities
            likelihood_model: Emission model (built from config if None)
            hypothesis_generator: Goal hypothesis generator
            feed: Observation source used by step()
            hypotheses: Default model hypotheses for each cycle
        """
        self.config = config if config is not None else InferenceConfig()
        self.oracle = oracle
        self.likelihood_model = (likelihood_model if likelihood_model is not None
                                 else likelihood_from_config(self.config))
        self.hypothesis_generator = (hypothesis_generator if hypothesis_generator is not None
                                     else HypothesisGenerator())
        self.feed = feed
        self.hypotheses = hypotheses

        self.tracker = BeliefTracker(
            floor_threshold=self.config.floor_threshold,
            floor_value=self.config.floor_value
        )
        self.registry = AgentRegistry(max_missed_cycles=self.config.max_missed_cycles)

        self.cycle = 0
        self.latest: Dict[int, BeliefReport] = {}
        self.current_goals: List[Goal] = []

    # =========================================================================
    # Inference Cycle
    # =========================================================================

    def step(self) -> Dict[int, BeliefReport]:
        """Pull the current joint state from the feed and run one cycle."""
        if self.feed is None:
            raise RuntimeError("GoalInferenceEngine.step() requires an observation feed")
        return self.run_cycle(self.feed.observe())

    def run_cycle(self,
                  joint_state: JointState,
                  hypotheses: Optional[ModelHypotheses] = None,
                  reset: bool = False) -> Dict[int, BeliefReport]:
        """
        Run one full inference cycle.

        Args:
            joint_state: Latest observation of every agent
            hypotheses: Model hypotheses for this cycle (engine default if None)
            reset: Assert reset-to-uniform for every belief this cycle

        Returns:
            agent_id -> BeliefReport for every agent updated this cycle
        """
        if hypotheses is None:
            hypotheses = self.hypotheses
        if hypotheses is None:
            raise ValueError("No model hypotheses given for the inference cycle")

        # Nothing is committed until every prediction of the cycle is in
        cycle = self.cycle + 1
        reset = reset or self.config.reset_priors

        goals = self.hypothesis_generator.generate(hypotheses.goals)
        agent_ids = self._select_agents(joint_state, hypotheses, cycle)

        predictions = {}
        if goals:
            sim_state = joint_state if self.config.include_ego else joint_state.without_ego()
            predictions = self._predict(sim_state, agent_ids, goals)

        self.cycle = cycle
        self.current_goals = goals
        self.registry.observe(agent_ids, cycle)
        for agent_id in self.registry.expire():
            self.tracker.remove_agent(agent_id)

        if not goals:
            logger.debug("Cycle %d: empty hypothesis set, skipping belief update", cycle)
            self.latest = {}
            return {}

        reports = {}
        for agent_id in agent_ids:
            observed = joint_state.agent(agent_id).velocity
            likelihoods = {
                goal_id: self.likelihood_model.evaluate(observed, predicted)
                for goal_id, predicted in predictions[agent_id].items()
            }
            report = self.tracker.update(agent_id, likelihoods, cycle=cycle, reset=reset)
            if report is not None:
                reports[agent_id] = report

        self.latest = reports
        return dict(reports)

    def _select_agents(self, joint_state: JointState,
                       hypotheses: ModelHypotheses, cycle: int) -> List[int]:
        if hypotheses.agents is None:
            return [agent.id for agent in joint_state.others]

        selected = []
        for agent_id in hypotheses.agents:
            if agent_id not in joint_state:
                logger.warning("Cycle %d: modelled agent %s is not observed", cycle, agent_id)
                continue
            if joint_state.agent(agent_id).is_ego:
                logger.warning("Cycle %d: skipping ego agent %s, its goal is known",
                               cycle, agent_id)
                continue
            selected.append(agent_id)
        return selected

    def _predict(self, joint_state: JointState, agent_ids: List[int],
                 goals: List[Goal]) -> Dict[int, Dict[Hashable, np.ndarray]]:
        """Gather every oracle prediction of the cycle: O(agents x goals) calls."""
        predictions = {}
        for agent_id in agent_ids:
            predictions[agent_id] = {
                goal.id: validate_prediction(
                    self.oracle.simulate(joint_state, agent_id, goal), agent_id, goal
                )
                for goal in goals
            }
        return predictions

    # =========================================================================
    # Query Methods
    # =========================================================================

    def get_beliefs(self) -> Dict[int, BeliefReport]:
        """Belief reports emitted by the most recent cycle."""
        return dict(self.latest)

    def get_belief(self, agent_id: int) -> BeliefReport:
        try:
            return self.latest[agent_id]
        except KeyError:
            raise UnknownBeliefKeyError(agent_id) from None

    def get_most_likely_goals(self) -> Dict[int, Hashable]:
        return {agent_id: report.most_likely_goal() for agent_id, report in self.latest.items()}

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def remove_agent(self, agent_id: int) -> bool:
        """Explicit departure: forget every belief entry of an agent."""
        departed = self.registry.depart(agent_id)
        removed = self.tracker.remove_agent(agent_id)
        self.latest.pop(agent_id, None)
        return departed or removed

    def reset(self):
        """Reset the engine to its initial state."""
        self.tracker.reset()
        self.registry.reset()
        self.cycle = 0
        self.latest = {}
        self.current_goals = []

    def get_statistics(self) -> dict:
        """Get inference statistics."""
        reports = list(self.latest.values())
        return {
            "cycle": self.cycle,
            "tracked_agents": len(self.tracker.agent_ids),
            "reported_agents": len(reports),
            "hypotheses": len(self.current_goals),
            "degenerate_count": len([r for r in reports if r.degenerate]),
            "clamped_count": sum(len(r.clamped) for r in reports),
        }

    def export_state(self) -> List[dict]:
        """Export belief state for analysis/debug."""
        state = []
        for agent_id in self.tracker.agent_ids:
            report = self.latest.get(agent_id)
            state.append({
                "id": agent_id,
                "priors": {str(g): float(p) for g, p in self.tracker.priors(agent_id).items()},
                "belief": ({str(g): float(p) for g, p in report.probabilities.items()}
                           if report is not None else None),
                "most_likely_goal": report.most_likely_goal() if report is not None else None,
                "degenerate": report.degenerate if report is not None else None,
                "missed_cycles": (self.registry.missed_cycles(agent_id)
                                  if agent_id in self.registry else None),
            })
        return state
