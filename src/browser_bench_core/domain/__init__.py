"""Domain package exports for browser_bench_core.

Exposes the Pydantic contracts shared by the planner, engine, scorers and gate.
"""

from .models import (
    AuxiliaryValue,
    LogEntry,
    OutcomeRecord,
    RunResult,
    Score,
    Summary,
    TaskRef,
    WorkItem,
)

__all__ = [
    "AuxiliaryValue",
    "LogEntry",
    "OutcomeRecord",
    "RunResult",
    "Score",
    "Summary",
    "TaskRef",
    "WorkItem",
]
