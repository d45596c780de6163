"""
Aggregation of streamed candidate evaluations into an analysis result.

The engine re-reports the same candidates at increasing depth; the latest
report for a move replaces the earlier one.
"""

from __future__ import annotations

import logging

from .parsers import MoveEvaluation

logger = logging.getLogger(__name__)

AnalysisResult = list[tuple[str, MoveEvaluation]]


class AnalysisAggregator:
    """
    Collects candidate evaluations for one search.

    Usage:
        aggregator = AnalysisAggregator()
        aggregator.observe("e2e4", evaluation)
        result = aggregator.result()
    """

    def __init__(self) -> None:
        self._moves: dict[str, MoveEvaluation] = {}
        self._max_depth = 0

    @property
    def max_depth(self) -> int:
        """Deepest depth seen in the current search."""
        return self._max_depth

    def __len__(self) -> int:
        return len(self._moves)

    def observe(self, move: str, evaluation: MoveEvaluation) -> None:
        """Record the latest evaluation for a move."""
        if evaluation.depth > self._max_depth:
            self._max_depth = evaluation.depth
            logger.info(f"Current depth: {self._max_depth}")
        self._moves[move] = evaluation

    def result(self) -> AnalysisResult:
        """Get the candidates ordered by ascending score.

        Score is the only key; moves with equal scores keep the order in
        which they were first reported.
        """
        return sorted(self._moves.items(), key=lambda item: item[1].score)
