"""Registry for scorers."""

from collections.abc import Callable
from typing import Any

from ...domain.models import Score, WorkItem
from ...exceptions import RegistryError
from .error_rate import ERROR_RATE, error_rate
from .exact_match import EXACT_MATCH, exact_match

# fn(item, output, expected=None) -> Score
ScorerFn = Callable[[WorkItem, Any, Any], Score]


class ScorerRegistry:
    """Ordered, constructed mapping of scorer name -> scorer function."""

    def __init__(self) -> None:
        self._scorers: dict[str, ScorerFn] = {}

    def register(self, name: str, fn: ScorerFn) -> None:
        """Register a scorer under a unique name."""
        if not isinstance(name, str) or not name:
            raise RegistryError("Scorer name must be a non-empty string")
        if not callable(fn):
            raise RegistryError("Scorer must be callable")
        if name in self._scorers:
            raise RegistryError(f"Scorer '{name}' already registered")
        self._scorers[name] = fn

    def get(self, name: str) -> ScorerFn | None:
        """Get a scorer by name."""
        return self._scorers.get(name)

    def list_scorers(self) -> list[str]:
        """List registered scorer names in registration order."""
        return list(self._scorers)

    def items(self) -> list[tuple[str, ScorerFn]]:
        return list(self._scorers.items())

    def __len__(self) -> int:
        return len(self._scorers)


def default_scorers() -> ScorerRegistry:
    """Exact match and error rate, the two scores every run reports."""
    registry = ScorerRegistry()
    registry.register(EXACT_MATCH, exact_match)
    registry.register(ERROR_RATE, error_rate)
    return registry
