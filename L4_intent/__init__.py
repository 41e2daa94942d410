# =============================================================================
# L4 Intent Package
# =============================================================================
# Goal inference layer: infers where surrounding agents are heading from
# their observed velocities.
#
# Responsibilities:
# - Goal hypothesis generation (fixed catalog or sampled area)
# - Emission likelihood of observed vs. simulated velocity
# - Recursive Bayesian belief per (agent, goal) with floor clamp
# - Agent lifecycle (creation, eviction, departure)
#
# Usage:
#   from L4_intent import GoalInferenceEngine, InferenceConfig
#   engine = GoalInferenceEngine(InferenceConfig(), oracle, hypotheses=hyp)
#   beliefs = engine.run_cycle(joint_state)
# =============================================================================

# Types
from .types import (
    AgentRole,
    Agent,
    JointState,
    SampleSpace,
    Goal,
    GoalHypothesisConfig,
    ModelHypotheses,
    InferenceConfig,
    BeliefReport
)

# Core components
from .hypotheses import HypothesisGenerator, goals_from_positions
from .likelihood import (
    LikelihoodModel,
    BivariateGaussianLikelihood,
    FullCovarianceGaussianLikelihood,
    StudentTLikelihood,
    likelihood_from_config
)
from .belief import BeliefTracker, UnknownBeliefKeyError
from .tracking import AgentRegistry
from .oracle import SimulationOracle, validate_prediction
from .feed import ObservationFeed
from .history import BeliefHistory
from .engine import GoalInferenceEngine

__all__ = [
    # Types
    'AgentRole',
    'Agent',
    'JointState',
    'SampleSpace',
    'Goal',
    'GoalHypothesisConfig',
    'ModelHypotheses',
    'InferenceConfig',
    'BeliefReport',

    # Hypotheses
    'HypothesisGenerator',
    'goals_from_positions',

    # Likelihood
    'LikelihoodModel',
    'BivariateGaussianLikelihood',
    'FullCovarianceGaussianLikelihood',
    'StudentTLikelihood',
    'likelihood_from_config',

    # Belief
    'BeliefTracker',
    'UnknownBeliefKeyError',
    'AgentRegistry',

    # Contracts
    'SimulationOracle',
    'validate_prediction',
    'ObservationFeed',

    # Complete layer
    'BeliefHistory',
    'GoalInferenceEngine',
]

__version__ = '2.0.0'
