"""browser_bench_core: evaluation harness for browser-automation scenarios.

Expands a scenario registry into a bounded, repeated-trial execution plan,
runs each scenario in isolation, scores the outcomes and gates the build on
the aggregated exact-match percentage.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .benchmarking import EvalEngine, ScenarioRegistry, build_plan, check_gate
from .eval_logger import EvalLogger

__all__ = ["EvalEngine", "EvalLogger", "ScenarioRegistry", "build_plan", "check_gate", "__version__"]
