"""
Aggregation of scored run results into the persisted Summary.

The summary is recomputed from scratch on every call and written with a
stable layout, so aggregating the same results twice gives identical bytes.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydantic import ValidationError

from ..domain.models import RunResult, Summary, TaskRef
from ..exceptions import ArtifactError
from .metrics import EXACT_MATCH

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def exact_match_percent(results: Sequence[RunResult]) -> Optional[float]:
    """Mean exact-match score as a 0-100 percentage, or None without scores."""
    values = [r.scores[EXACT_MATCH] for r in results if EXACT_MATCH in r.scores]
    if not values:
        return None
    return 100.0 * sum(values) / len(values)


def build_summary(results: Sequence[RunResult]) -> Summary:
    """Partition results by success and compute the exact-match percentage.

    A result counts as passed only if its outcome reports success=True.
    """
    passed: List[TaskRef] = []
    failed: List[TaskRef] = []
    for r in results:
        ref = TaskRef(name=r.item.name, model_identifier=r.item.model_name)
        (passed if r.output.success is True else failed).append(ref)
    return Summary(
        exact_match_score_percent=exact_match_percent(results),
        total_tasks=len(results),
        passed_tasks=passed,
        failed_tasks=failed,
    )


def write_summary(summary: Summary, path: PathLike) -> Path:
    """Write the summary JSON, replacing any previous file."""
    target = Path(path)
    if target.parent and not target.parent.exists():
        target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(summary.to_json() + "\n", encoding="utf-8")
    logger.info(f"Evaluation summary written to {target.as_posix()}")
    return target


def load_summary(path: PathLike) -> Summary:
    """
    Read and validate a summary file.

    Raises:
        ArtifactError if the file is missing, not JSON, or not a valid Summary.
    """
    source = Path(path)
    if not source.is_file():
        raise ArtifactError(f"Eval summary not found: {source.as_posix()}")
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, ValueError, RecursionError) as e:
        raise ArtifactError(f"Eval summary is not valid JSON: {e}") from e
    try:
        return Summary.model_validate(data)
    except ValidationError as e:
        raise ArtifactError(f"Eval summary has an invalid shape: {e}") from e


__all__ = ["build_summary", "exact_match_percent", "load_summary", "write_summary"]
