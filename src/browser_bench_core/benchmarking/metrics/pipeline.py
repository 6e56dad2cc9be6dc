"""Scoring pipeline: apply every scorer to every run result."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from ...domain.models import RunResult, Score
from .registry import ScorerRegistry, default_scorers

logger = logging.getLogger(__name__)


class ScoringPipeline:
    """
    Applies the configured scorers to each RunResult.

    Scorers see what the scenario body returned (see RunResult.scoring_input),
    so non-boolean expectations compare against the raw value.

    Scorers are independent of each other; one that raises or returns an
    invalid score is logged and contributes nothing for that result. Input
    results are not mutated: scored copies are returned.
    """

    def __init__(
        self,
        scorers: Optional[ScorerRegistry] = None,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.scorers = scorers if scorers is not None else default_scorers()
        # Optional per-scenario expected values; absent means "expects success".
        self.expected: Dict[str, Any] = dict(expected or {})

    def score(self, result: RunResult) -> RunResult:
        expected = self.expected.get(result.item.scenario_name)
        scores: Dict[str, float] = dict(result.scores)
        for key, fn in self.scorers.items():
            try:
                out = fn(result.item, result.scoring_input, expected)
                if not isinstance(out, Score):
                    out = Score.model_validate(out)
            except (ValidationError, TypeError, ValueError) as e:
                logger.error(f"Scorer '{key}' returned an invalid score for {result.item.name}: {e}")
                continue
            except Exception as e:
                logger.error(f"Scorer '{key}' failed for {result.item.name}: {e}")
                continue
            scores[out.name] = out.value
        return result.model_copy(update={"scores": scores})

    def score_all(self, results: Sequence[RunResult]) -> List[RunResult]:
        return [self.score(r) for r in results]


__all__ = ["ScoringPipeline"]
