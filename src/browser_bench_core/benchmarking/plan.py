"""
Plan generation: registry x models x enabled scenarios x trials -> WorkItems.

Filters only ever narrow the enabled list:
- allow_list: keep items whose name is listed (CI_EVALS)
- name_filter: keep items matching a single scenario name (CLI override)

Configuration faults (unknown names, filters that match nothing) produce a
smaller or empty plan, never an exception.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from ..domain.models import WorkItem
from .registry import ScenarioRegistry

logger = logging.getLogger(__name__)


def generate_plan(
    registry: ScenarioRegistry,
    models: Sequence[str],
    enabled: Sequence[str],
    *,
    allow_list: Optional[Iterable[str]] = None,
    name_filter: Optional[str] = None,
) -> List[WorkItem]:
    """Produce one WorkItem per (model, enabled scenario), model-major.

    Args:
        registry: scenario bodies available for this run.
        models: model identifiers, passed through untouched.
        enabled: scenario names enabled for this run, in plan order.
        allow_list: optional names to intersect with `enabled`; empty means no filter.
        name_filter: optional single scenario name.

    Returns:
        WorkItems with trial_index 0 and sequence set to their plan position.
    """
    scenarios: List[str] = []
    for name in enabled:
        if name not in registry:
            logger.warning("Enabled scenario '%s' is not registered; skipping", name)
            continue
        if name not in scenarios:
            scenarios.append(name)

    items: List[WorkItem] = [
        WorkItem.for_pair(scenario, model)
        for model in models
        for scenario in scenarios
    ]

    allowed = {a.strip() for a in allow_list or () if a and a.strip()}
    if allowed:
        items = [item for item in items if item.name in allowed]

    if name_filter:
        items = [
            item
            for item in items
            if item.name == name_filter or item.scenario_name == name_filter
        ]
        if not items:
            logger.warning("Scenario filter '%s' matched nothing; plan is empty", name_filter)

    return [item.model_copy(update={"sequence": i}) for i, item in enumerate(items)]


def expand_trials(items: Sequence[WorkItem], trial_count: int) -> List[WorkItem]:
    """Repeat each item `trial_count` times as independent trials.

    Trials of an item are adjacent; sequence numbers are reassigned so the
    expanded plan has a total order.
    """
    if trial_count < 1:
        raise ValueError("trial_count must be >= 1")
    expanded: List[WorkItem] = []
    for item in items:
        for trial in range(trial_count):
            expanded.append(
                WorkItem.for_pair(
                    item.scenario_name,
                    item.model_name,
                    trial_index=trial,
                    sequence=len(expanded),
                )
            )
    return expanded


def build_plan(
    registry: ScenarioRegistry,
    models: Sequence[str],
    enabled: Sequence[str],
    trial_count: int,
    *,
    allow_list: Optional[Iterable[str]] = None,
    name_filter: Optional[str] = None,
) -> List[WorkItem]:
    """generate_plan followed by expand_trials."""
    base = generate_plan(
        registry, models, enabled, allow_list=allow_list, name_filter=name_filter
    )
    plan = expand_trials(base, trial_count)
    logger.info(
        "Plan: %d item(s) = %d model(s) x %d scenario(s) x %d trial(s)",
        len(plan),
        len(models),
        len({item.scenario_name for item in base}),
        trial_count,
    )
    return plan


__all__ = ["generate_plan", "expand_trials", "build_plan"]
