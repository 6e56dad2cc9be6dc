"""Orchestration engine: planning, scheduling, scoring, aggregation and gating."""

from .aggregate import build_summary, load_summary, write_summary
from .engine import EvalEngine, EvalReport, Scheduler, isolate
from .gate import GateResult, check_gate, render_gate_report
from .metrics import ScoringPipeline, default_scorers, error_rate, exact_match, normalize_success
from .plan import build_plan, expand_trials, generate_plan
from .registry import ScenarioFn, ScenarioRegistry

__all__ = [
    "EvalEngine",
    "EvalReport",
    "GateResult",
    "ScenarioFn",
    "ScenarioRegistry",
    "Scheduler",
    "ScoringPipeline",
    "build_plan",
    "build_summary",
    "check_gate",
    "default_scorers",
    "error_rate",
    "exact_match",
    "expand_trials",
    "generate_plan",
    "isolate",
    "load_summary",
    "normalize_success",
    "render_gate_report",
    "write_summary",
]
