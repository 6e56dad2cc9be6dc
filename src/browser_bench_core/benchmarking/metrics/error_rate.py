"""Error rate scorer.

Measures whether an error was captured, independently of success: a negative
scenario that succeeds by asserting an expected failure still scores 1 here
when it attaches an `error`. Keep this separate from exact match.
"""

import logging
from collections.abc import Mapping
from typing import Any

from ...domain.models import OutcomeRecord, Score, WorkItem
from .success import normalize_success

logger = logging.getLogger(__name__)

ERROR_RATE = "Error rate"


def error_rate(item: WorkItem, output: Any, expected: Any = None) -> Score:
    """Score 1 when the output carries an `error` field, else 0."""
    logger.debug('Task "%s" returned: %s', item.name, normalize_success(output))
    if isinstance(output, OutcomeRecord):
        present = output.has_error
    elif isinstance(output, Mapping):
        present = "error" in output
    else:
        present = False
    return Score(name=ERROR_RATE, value=1.0 if present else 0.0)
