"""Scoring functions and the pipeline that applies them."""

from .error_rate import ERROR_RATE, error_rate
from .exact_match import EXACT_MATCH, exact_match
from .pipeline import ScoringPipeline
from .registry import ScorerFn, ScorerRegistry, default_scorers
from .success import normalize_success

__all__ = [
    "ERROR_RATE",
    "EXACT_MATCH",
    "ScorerFn",
    "ScorerRegistry",
    "ScoringPipeline",
    "default_scorers",
    "error_rate",
    "exact_match",
    "normalize_success",
]
