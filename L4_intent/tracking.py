# =============================================================================
# L4 Intent - Agent Registry
# =============================================================================
# Lifecycle of modelled agents:
# - Creation on the first cycle an agent is modelled
# - Eviction after more than max_missed_cycles cycles without observation
# - Explicit departure on request
# =============================================================================

import logging
from typing import Dict, Iterable, List

from .config import MAX_MISSED_CYCLES

logger = logging.getLogger(__name__)


class AgentRegistry:
    """
    Remembers when each modelled agent was last observed.

    The registry only decides who is alive; belief entries themselves are
    owned by the BeliefTracker and are deleted by the engine on eviction.
    """

    def __init__(self, max_missed_cycles: int = MAX_MISSED_CYCLES):
        """
        Initialize the registry.

        Args:
            max_missed_cycles: Cycles an agent may go unobserved before eviction
        """
        self.max_missed_cycles = max_missed_cycles
        self.last_seen: Dict[int, int] = {}
        self.current_cycle = 0

    def observe(self, agent_ids: Iterable[int], cycle: int) -> List[int]:
        """
        Record the agents observed in a cycle.

        Args:
            agent_ids: Agents modelled and observed this cycle
            cycle: Current cycle number

        Returns:
            Newly registered agent ids
        """
        self.current_cycle = cycle
        created = []
        for agent_id in agent_ids:
            if agent_id not in self.last_seen:
                created.append(agent_id)
                logger.info("Tracking new agent %s (cycle %d)", agent_id, cycle)
            self.last_seen[agent_id] = cycle
        return created

    def expire(self) -> List[int]:
        """Remove and return agents unobserved for more than max_missed_cycles."""
        expired = [
            agent_id for agent_id, seen in self.last_seen.items()
            if self.current_cycle - seen > self.max_missed_cycles
        ]
        for agent_id in expired:
            del self.last_seen[agent_id]
            logger.info("Evicting agent %s: unobserved since cycle %d",
                        agent_id, self.current_cycle - self.max_missed_cycles - 1)
        return expired

    def depart(self, agent_id: int) -> bool:
        """Explicit departure signal. Returns False for an unknown agent."""
        if self.last_seen.pop(agent_id, None) is None:
            return False
        logger.info("Agent %s departed (cycle %d)", agent_id, self.current_cycle)
        return True

    def missed_cycles(self, agent_id: int) -> int:
        return self.current_cycle - self.last_seen[agent_id]

    @property
    def agent_ids(self) -> List[int]:
        return list(self.last_seen.keys())

    def __contains__(self, agent_id) -> bool:
        return agent_id in self.last_seen

    def reset(self):
        self.last_seen = {}
        self.current_cycle = 0
