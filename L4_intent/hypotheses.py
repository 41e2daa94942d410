# =============================================================================
# L4 Intent - Hypothesis Generator
# =============================================================================
# Produces the ordered set of candidate goals considered in a cycle:
# - Enumeration: the fixed catalog, unchanged
# - Sampling: a declared space discretized at a caller-specified resolution
# =============================================================================

import logging
import math
import numpy as np
from typing import List, Optional, Sequence

from .types import Goal, GoalHypothesisConfig, SampleSpace
from .config import MAX_SAMPLED_GOALS

logger = logging.getLogger(__name__)


def goals_from_positions(positions: Sequence[Sequence[float]]) -> List[Goal]:
    """Build a goal catalog indexed 0..n-1 from a list of [x, y] positions."""
    return [Goal(id=i, position=np.asarray(p, dtype=float)) for i, p in enumerate(positions)]


class HypothesisGenerator:
    """
    Generates goal hypotheses for one inference cycle.

    Sampled goals carry a stable integer id (their index in the row-major
    grid), so regenerating the same space at the same resolution yields the
    same ids and belief can be carried across cycles.
    """

    def __init__(self, max_sampled_goals: int = MAX_SAMPLED_GOALS):
        self.max_sampled_goals = max_sampled_goals

    def generate(self, config: GoalHypothesisConfig) -> List[Goal]:
        """
        Generate the hypothesis set described by config.

        Args:
            config: Catalog or sampling description

        Returns:
            Ordered list of Goal (possibly empty)
        """
        if config.sampling:
            return self.sample_goals(config.sample_space, config.sample_resolution)
        return self.enumerate_goals(config.goal_sequence)

    @staticmethod
    def enumerate_goals(goal_sequence: Sequence[Goal]) -> List[Goal]:
        return list(goal_sequence)

    def sample_goals(self, space: SampleSpace, resolution: float) -> List[Goal]:
        """
        Tile the sample space into square cells of side `resolution`.

        Cells are ordered row-major starting at (x_min, y_min); the last
        column/row is clipped to the space bounds. Each cell becomes a goal
        located at the cell centre.
        """
        if space is None:
            raise ValueError("Sampling mode requires a sample space")
        if not resolution > 0:
            raise ValueError(f"Sample resolution must be positive, got {resolution}")

        n_x = self._axis_cells(space.x_min, space.x_max, resolution)
        n_y = self._axis_cells(space.y_min, space.y_max, resolution)
        if n_x is None or n_y is None or n_x * n_y > self.max_sampled_goals:
            count = "an unbounded number of" if n_x is None or n_y is None else n_x * n_y
            raise ValueError(
                f"Sampling {count} goals exceeds the limit of {self.max_sampled_goals}; "
                f"increase the resolution"
            )

        x_edges = self._axis_edges(space.x_min, space.x_max, resolution, n_x)
        y_edges = self._axis_edges(space.y_min, space.y_max, resolution, n_y)

        goals = []
        for j in range(len(y_edges) - 1):
            for i in range(len(x_edges) - 1):
                cell = SampleSpace(x_edges[i], x_edges[i + 1], y_edges[j], y_edges[j + 1])
                goals.append(Goal(id=len(goals), position=cell.centre, region=cell))

        logger.debug("Sampled %d goal hypotheses at resolution %.3f", len(goals), resolution)
        return goals

    @staticmethod
    def _axis_cells(lower: float, upper: float, resolution: float) -> Optional[int]:
        """Cells along one axis, None when the ratio overflows."""
        ratio = (upper - lower) / resolution
        if not math.isfinite(ratio):
            return None
        # A zero-width axis still yields a single (degenerate) cell
        return max(1, math.ceil(ratio - 1e-9))

    @staticmethod
    def _axis_edges(lower: float, upper: float, resolution: float, n_cells: int) -> np.ndarray:
        edges = lower + resolution * np.arange(n_cells + 1)
        edges[-1] = upper
        return edges
