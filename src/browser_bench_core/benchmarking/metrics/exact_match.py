"""Exact match scorer."""

import logging
from typing import Any

from ...domain.models import Score, WorkItem
from .success import normalize_success

logger = logging.getLogger(__name__)

EXACT_MATCH = "Exact match"


def _strict_equals(output: Any, expected: Any) -> bool:
    # Booleans never equal numbers; other numbers compare by value.
    if isinstance(output, bool) or isinstance(expected, bool):
        return type(output) is type(expected) and output == expected
    numbers = (int, float)
    if isinstance(output, numbers) and isinstance(expected, numbers):
        return output == expected
    return type(output) is type(expected) and output == expected


def exact_match(item: WorkItem, output: Any, expected: Any = None) -> Score:
    """Score 1 when the output matches the expectation, else 0.

    With no expectation (or an expectation of True) the output must report
    success; any other expectation is compared by strict equality.
    """
    logger.debug('Task "%s" returned: %s', item.name, normalize_success(output))
    if expected is None:
        expected = True
    if expected is True:
        return Score(name=EXACT_MATCH, value=1.0 if normalize_success(output) else 0.0)
    return Score(name=EXACT_MATCH, value=1.0 if _strict_equals(output, expected) else 0.0)
