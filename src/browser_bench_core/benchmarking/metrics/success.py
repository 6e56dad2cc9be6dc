"""Canonical success flag for raw scenario output."""

from collections.abc import Mapping
from typing import Any

from ...domain.models import OutcomeRecord


def normalize_success(output: Any) -> bool:
    """Return True only when the output reports success explicitly.

    Accepted forms:
    - the boolean True
    - an OutcomeRecord with success=True
    - a mapping whose "success" (or legacy "_success") value is True

    Anything else, including a missing flag or a truthy non-boolean, is False.
    """
    if output is True:
        return True
    if isinstance(output, OutcomeRecord):
        return output.success is True
    if isinstance(output, Mapping):
        return output.get("success") is True or output.get("_success") is True
    return getattr(output, "success", None) is True
