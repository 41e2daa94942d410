# =============================================================================
# L4 Intent - Observation Feed Contract
# =============================================================================

from abc import ABC, abstractmethod

from .types import JointState


class ObservationFeed(ABC):
    """Supplies, once per cycle, the latest pose and velocity of every agent."""

    @abstractmethod
    def observe(self) -> JointState:
        pass
