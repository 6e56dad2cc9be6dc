"""
Evaluation engine.

Orchestrates: plan -> bounded, isolated scenario invocations -> scoring
              -> summary.

Concurrency is cooperative (one asyncio loop). At most `max_concurrency`
invocations are running or suspended at once; the rest wait on a semaphore.
Every invocation is wrapped by `isolate`, which turns any scenario fault into
a failed OutcomeRecord, so one scenario can never abort its siblings.

Resources acquired inside a scenario body (browser sessions) are released by
that body. If the whole run is abandoned by an outer timeout, in-flight
invocations are cancelled without any cleanup callback and their sessions may
leak.
"""

from __future__ import annotations

import asyncio
import logging
import time as _time
import traceback
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from ..domain.models import LEVEL_ERROR, OutcomeRecord, RunResult, Summary, WorkItem
from ..eval_logger import EvalLogger
from ..exceptions import RunError
from .aggregate import build_summary
from .metrics import ScoringPipeline
from .registry import ScenarioFn, ScenarioRegistry

logger = logging.getLogger(__name__)


class EvalReport(BaseModel):
    started_at: float
    finished_at: float
    results: List[RunResult]
    summary: Summary
    max_in_flight: int = Field(0, ge=0)


# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------


async def isolate(
    fn: ScenarioFn,
    item: WorkItem,
    *,
    timeout_seconds: Optional[float] = None,
) -> RunResult:
    """
    Invoke one scenario body and always return a RunResult.

    - A fresh EvalLogger is created for the invocation.
    - Synchronous raises, rejected awaitables, invalid return values and
      timeouts all become `success=False` outcomes with a structured `error`.
    - Cancellation is not swallowed; it belongs to the run, not the scenario.
    """
    eval_logger = EvalLogger()
    returned: Dict[str, Any] = {}
    t0 = _time.perf_counter()
    try:
        pending = fn(item.model_name, eval_logger)
        if timeout_seconds and _is_awaitable(pending):
            raw = await asyncio.wait_for(pending, timeout=timeout_seconds)
        else:
            raw = await _maybe_await(pending)
        output = _with_logger_context(OutcomeRecord.coerce(raw), eval_logger)
        returned["raw_output"] = raw
    except Exception as e:
        logger.error(f"❌ {item.name}: Error - {_short_error(str(e) or type(e).__name__)}")
        output = _fault_outcome(e, item, eval_logger)
    else:
        if output.success:
            logger.info(f"✅ {item.name}: Passed")
        else:
            logger.info(f"❌ {item.name}: Failed")
    duration_ms = max(0, int((_time.perf_counter() - t0) * 1000))
    return RunResult(item=item, output=output, duration_ms=duration_ms, **returned)


def _fault_outcome(exc: BaseException, item: WorkItem, eval_logger: EvalLogger) -> OutcomeRecord:
    trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    error: Dict[str, Any] = {
        "message": str(exc),
        "type": type(exc).__name__,
        "trace": trace,
    }
    eval_logger.error(
        {
            "message": f"Error in task {item.name}",
            "level": LEVEL_ERROR,
            "auxiliary": {
                "error": {"value": f"{type(exc).__name__}: {exc}", "type": "object"},
                "trace": {"value": trace, "type": "string"},
            },
        }
    )
    return OutcomeRecord(
        success=False,
        error=error,
        logs=eval_logger.get_logs(),
        debug_url=eval_logger.debug_url,
        session_url=eval_logger.session_url,
    )


def _with_logger_context(output: OutcomeRecord, eval_logger: EvalLogger) -> OutcomeRecord:
    update: Dict[str, Any] = {}
    if not output.logs and len(eval_logger):
        update["logs"] = eval_logger.get_logs()
    if output.debug_url is None and eval_logger.debug_url:
        update["debug_url"] = eval_logger.debug_url
    if output.session_url is None and eval_logger.session_url:
        update["session_url"] = eval_logger.session_url
    return output.model_copy(update=update) if update else output


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


class Scheduler:
    """Runs WorkItems through a fixed-capacity pool of in-flight invocations."""

    def __init__(
        self,
        registry: ScenarioRegistry,
        max_concurrency: int = 20,
        task_timeout_seconds: Optional[float] = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self.registry = registry
        self.max_concurrency = max_concurrency
        self.task_timeout_seconds = task_timeout_seconds
        self.in_flight = 0
        self.max_in_flight = 0

    async def run(self, items: Sequence[WorkItem]) -> List[RunResult]:
        """Execute every item; one RunResult per item, in completion order."""
        sema = asyncio.Semaphore(self.max_concurrency)
        results: List[RunResult] = []

        async def _bounded(item: WorkItem) -> None:
            async with sema:
                self.in_flight += 1
                self.max_in_flight = max(self.max_in_flight, self.in_flight)
                try:
                    result = await self._invoke(item)
                finally:
                    self.in_flight -= 1
            results.append(result)

        await asyncio.gather(*(_bounded(item) for item in items))
        return results

    async def _invoke(self, item: WorkItem) -> RunResult:
        try:
            fn = self.registry.get(item.scenario_name)
        except KeyError as e:
            logger.error(f"❌ {item.name}: not registered")
            return RunResult(item=item, output=_fault_outcome(e, item, EvalLogger()))
        return await isolate(fn, item, timeout_seconds=self.task_timeout_seconds)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class EvalEngine:
    """
    Runs a prepared plan end to end and returns an EvalReport.

    Results are put back into plan order before scoring so that the summary
    does not depend on completion order.
    """

    def __init__(
        self,
        registry: ScenarioRegistry,
        *,
        max_concurrency: int = 20,
        task_timeout_seconds: Optional[float] = None,
        scoring: Optional[ScoringPipeline] = None,
    ) -> None:
        self.scheduler = Scheduler(registry, max_concurrency, task_timeout_seconds)
        self.scoring = scoring or ScoringPipeline()

    async def run(self, plan: Sequence[WorkItem]) -> EvalReport:
        started_at = _time.time()
        logger.info(
            f"Running {len(plan)} work item(s) with max concurrency {self.scheduler.max_concurrency}"
        )
        results = await self.scheduler.run(plan)
        try:
            ordered = sorted(results, key=lambda r: r.item.sequence)
            scored = self.scoring.score_all(ordered)
            summary = build_summary(scored)
        except Exception as e:
            raise RunError(f"Failed to score or aggregate results: {e}") from e
        return EvalReport(
            started_at=started_at,
            finished_at=_time.time(),
            results=scored,
            summary=summary,
            max_in_flight=self.scheduler.max_in_flight,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_awaitable(x: Any) -> bool:
    return asyncio.iscoroutine(x) or asyncio.isfuture(x) or hasattr(x, "__await__")


async def _maybe_await(x: Any) -> Any:
    if _is_awaitable(x):
        return await x
    return x


def _short_error(msg: str, max_len: int = 300) -> str:
    m = msg.strip().replace("\n", " ")[:max_len]
    return m


__all__ = ["EvalEngine", "EvalReport", "Scheduler", "isolate"]
