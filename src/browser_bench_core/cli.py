"""
Command-line entry points.

browser-bench-evals [SCENARIO]
    Build the plan from the run configuration (environment / configs/evals.yaml),
    run it, and write the summary file. SCENARIO narrows the plan to one
    scenario name; a name that matches nothing gives an empty run.

browser-bench-gate [--summary PATH] [--threshold N]
    Check the summary file against the accuracy threshold and exit 0 or 1.

Both commands exit 1 on run-level faults and never print a traceback for them.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .benchmarking.aggregate import write_summary
from .benchmarking.engine import EvalEngine, EvalReport
from .benchmarking.gate import DEFAULT_THRESHOLD, check_gate, render_gate_report
from .benchmarking.plan import build_plan
from .benchmarking.registry import ScenarioRegistry
from .config import EvalRunConfig, load_run_config
from .exceptions import BrowserBenchError, ConfigurationError, RunError
from .logging_config import setup_logging
from .scenarios import build_web_registry, load_launcher

logger = logging.getLogger(__name__)


async def run_evaluation(
    config: EvalRunConfig,
    registry: ScenarioRegistry,
    name_filter: Optional[str] = None,
) -> EvalReport:
    """Plan, execute, score and persist one run."""
    plan = build_plan(
        registry,
        config.models,
        config.enabled_scenarios(),
        config.trial_count,
        allow_list=config.allow_list,
        name_filter=name_filter,
    )
    engine = EvalEngine(
        registry,
        max_concurrency=config.max_concurrency,
        task_timeout_seconds=config.task_timeout_seconds,
    )
    report = await engine.run(plan)
    write_summary(report.summary, config.summary_path)
    return report


async def _run_with_timeout(
    config: EvalRunConfig, registry: ScenarioRegistry, name_filter: Optional[str]
) -> EvalReport:
    coro = run_evaluation(config, registry, name_filter)
    if config.run_timeout_seconds is None:
        return await coro
    try:
        return await asyncio.wait_for(coro, timeout=config.run_timeout_seconds)
    except asyncio.TimeoutError as e:
        # In-flight scenarios are cancelled here; their browser sessions are
        # not guaranteed to be released.
        raise RunError(
            f"Evaluation run exceeded {config.run_timeout_seconds:g}s; "
            "in-flight sessions were abandoned and may leak"
        ) from e


def build_run_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="browser-bench-evals",
        description="Run the browser scenario matrix and write the evaluation summary.",
    )
    parser.add_argument(
        "scenario",
        nargs="?",
        default=None,
        help="Run only this scenario (others are filtered out).",
    )
    return parser


def run_main(argv: Optional[List[str]] = None) -> int:
    args = build_run_parser().parse_args(argv)
    try:
        config = load_run_config()
    except ConfigurationError as e:
        setup_logging("INFO")
        logger.error(str(e))
        return 1
    setup_logging(config.log_level)

    try:
        if not config.session_launcher:
            raise ConfigurationError(
                "No session launcher configured; set EVAL_SESSION_LAUNCHER=module:attr"
            )
        registry = build_web_registry(load_launcher(config.session_launcher), config)
        report = asyncio.run(_run_with_timeout(config, registry, args.scenario))
    except BrowserBenchError as e:
        logger.error(f"Error during evaluation run: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Error during evaluation run: {e}")
        return 1

    summary = report.summary
    logger.info(
        f"Completed {summary.total_tasks} task(s): "
        f"{len(summary.passed_tasks)} passed, {len(summary.failed_tasks)} failed"
    )
    return 0


def build_gate_parser(config: EvalRunConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="browser-bench-gate",
        description="Fail the build when the exact match score is below the threshold.",
    )
    parser.add_argument("--summary", default=config.summary_path, help="Summary JSON path.")
    parser.add_argument(
        "--threshold", type=float, default=DEFAULT_THRESHOLD, help="Minimum exact match percent."
    )
    return parser


def gate_main(argv: Optional[List[str]] = None) -> int:
    try:
        config = load_run_config()
    except ConfigurationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1
    args = build_gate_parser(config).parse_args(argv)
    result = check_gate(args.summary, threshold=args.threshold)
    render_gate_report(result)
    return result.exit_code


def main() -> None:
    sys.exit(run_main())


def main_gate() -> None:
    sys.exit(gate_main())


if __name__ == "__main__":
    main()
