# =============================================================================
# L4 Intent - Belief History
# =============================================================================
# Per-cycle log of belief reports for offline analysis.
# =============================================================================

import pandas as pd
from typing import Dict, Iterable, List, Mapping, Hashable

from .types import BeliefReport

HISTORY_COLUMNS = ['cycle', 'agent_id', 'goal_id', 'probability', 'degenerate', 'clamped']


class BeliefHistory:
    """Accumulates belief reports, one row per (cycle, agent, goal)."""

    def __init__(self):
        self.rows: List[dict] = []

    def record(self, reports: Iterable[BeliefReport]):
        for report in reports:
            clamped = set(report.clamped)
            for goal_id, probability in report.probabilities.items():
                self.rows.append({
                    'cycle': report.cycle,
                    'agent_id': report.agent_id,
                    'goal_id': goal_id,
                    'probability': probability,
                    'degenerate': report.degenerate,
                    'clamped': goal_id in clamped,
                })

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=HISTORY_COLUMNS)

    def most_likely(self) -> pd.DataFrame:
        """Most likely goal of every agent in every cycle."""
        df = self.to_dataframe()
        if df.empty:
            return pd.DataFrame(columns=['cycle', 'agent_id', 'goal_id', 'probability'])
        idx = df.groupby(['cycle', 'agent_id'])['probability'].idxmax()
        return df.loc[idx, ['cycle', 'agent_id', 'goal_id', 'probability']].reset_index(drop=True)

    def accuracy(self, true_goals: Mapping[int, Hashable]) -> Dict[str, float]:
        """
        Fraction of (cycle, agent) reports whose most likely goal is the true one.

        Args:
            true_goals: agent_id -> ground-truth goal id

        Returns:
            {'overall': fraction, 'total_samples': n, 'correct': k}
        """
        df = self.most_likely()
        df = df[df['agent_id'].isin(list(true_goals.keys()))]
        total = len(df)
        if total == 0:
            return {'overall': 0.0, 'total_samples': 0, 'correct': 0}
        correct = int((df['goal_id'] == df['agent_id'].map(true_goals)).sum())
        return {'overall': correct / total, 'total_samples': total, 'correct': correct}

    def __len__(self) -> int:
        return len(self.rows)

    def clear(self):
        self.rows = []
