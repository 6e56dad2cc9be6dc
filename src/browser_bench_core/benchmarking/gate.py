"""
Accuracy gate over the persisted evaluation summary.

Fails (exit code 1) when:
- the summary file is missing or unreadable
- it is not valid JSON
- it does not match the Summary schema
- exactMatchScorePercent is null or below the threshold

Passes (exit code 0) otherwise. No exception escapes `check_gate`.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO, Union

from jsonschema import Draft7Validator
from pydantic import ValidationError

from ..domain.models import Summary

# CI accuracy bar. Only the gate CLI flag can change it.
DEFAULT_THRESHOLD = 85.0

EXIT_PASS = 0
EXIT_FAIL = 1


@dataclass
class GateResult:
    passed: bool
    reason: str
    summary: Optional[Summary] = None
    errors: Optional[List[str]] = None

    @property
    def exit_code(self) -> int:
        return EXIT_PASS if self.passed else EXIT_FAIL


@lru_cache(maxsize=1)
def summary_schema() -> Dict[str, Any]:
    """JSON schema of the persisted summary (camelCase keys)."""
    return Summary.model_json_schema(by_alias=True)


def _format_errors_from_validator(doc: Any, validator: Draft7Validator) -> List[str]:
    errors: List[str] = []
    for err in validator.iter_errors(doc):
        path = "$"
        for p in err.absolute_path:
            if isinstance(p, int):
                path += f"[{p}]"
            else:
                path += f".{p}"
        errors.append(f"{path}: {err.message}")
    return sorted(errors)


def check_gate(path: Union[str, Path], threshold: float = DEFAULT_THRESHOLD) -> GateResult:
    source = Path(path)
    if not source.is_file():
        return GateResult(False, "Eval summary not found. Failing CI.")

    try:
        doc = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, ValueError, RecursionError) as e:
        return GateResult(False, f"Eval summary could not be parsed ({e}). Failing CI.")

    errors = _format_errors_from_validator(doc, Draft7Validator(summary_schema()))
    if errors:
        return GateResult(False, "Eval summary does not match the expected schema. Failing CI.", errors=errors)

    try:
        summary = Summary.model_validate(doc)
    except ValidationError as e:
        return GateResult(
            False,
            "Eval summary is inconsistent. Failing CI.",
            errors=[err["msg"] for err in e.errors()],
        )

    score = summary.exact_match_score_percent
    if score is None:
        return GateResult(False, "Exact match score is missing. Failing CI.", summary=summary)
    if score < threshold:
        return GateResult(
            False, f"Exact match score is below {threshold:g}%. Failing CI.", summary=summary
        )
    return GateResult(True, f"Exact match score is at least {threshold:g}%.", summary=summary)


def render_gate_report(result: GateResult, out: Optional[TextIO] = None) -> None:
    """Print the CI-style report for a gate result."""
    out = out or sys.stdout
    summary = result.summary
    if summary is not None:
        score = summary.exact_match_score_percent
        print(f"Total number of evals: {summary.total_tasks}", file=out)
        print(f"Number of evals that passed: {len(summary.passed_tasks)}", file=out)
        print(f"Number of evals that failed: {len(summary.failed_tasks)}", file=out)
        print(f"Exact match score: {'null' if score is None else f'{score:g}'}%", file=out)
        for title, tasks in (
            ("Passing evals:", summary.passed_tasks),
            ("Failing evals:", summary.failed_tasks),
        ):
            if not tasks:
                continue
            print("", file=out)
            print(title, file=out)
            for task in tasks:
                print("", file=out)
                print(f"name: {task.name}", file=out)
                print(f"model: {task.model_identifier}", file=out)
        print("", file=out)
    for err in result.errors or []:
        print(f"  - {err}", file=out)
    print(result.reason, file=out)


__all__ = ["DEFAULT_THRESHOLD", "EXIT_FAIL", "EXIT_PASS", "GateResult", "check_gate", "render_gate_report", "summary_schema"]
