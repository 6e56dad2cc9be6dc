"""
Scenario registry.

An explicit, constructed mapping from scenario name to an async scenario body.
There is no module-level singleton: the CLI builds one registry per run and
tests build their own, so registries never leak between runs.

API:
- register(name, fn) / scenario(name) decorator
- get(name) -> ScenarioFn  (KeyError if unknown)
- names() -> list[str] in registration order
- `name in registry`, len(registry)
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional

from ..eval_logger import EvalLogger
from ..exceptions import RegistryError

# async (model_name, logger) -> OutcomeRecord | dict | bool
ScenarioFn = Callable[[str, EvalLogger], Awaitable[Any]]


class ScenarioRegistry:
    """
    In-memory registry of scenario bodies.
    Starts empty; names are unique.
    """

    def __init__(self, scenarios: Optional[Dict[str, ScenarioFn]] = None) -> None:
        self._scenarios: Dict[str, ScenarioFn] = {}
        for name, fn in (scenarios or {}).items():
            self.register(name, fn)

    def register(self, name: str, fn: ScenarioFn) -> None:
        if not isinstance(name, str) or not name.strip():
            raise RegistryError("Scenario name must be a non-empty string")
        if name in self._scenarios:
            raise RegistryError(f"Scenario '{name}' already registered")
        if not callable(fn):
            raise RegistryError(f"Scenario '{name}' must be callable")
        self._scenarios[name] = fn

    def scenario(self, name: str) -> Callable[[ScenarioFn], ScenarioFn]:
        """Decorator form of register()."""

        def _decorator(fn: ScenarioFn) -> ScenarioFn:
            self.register(name, fn)
            return fn

        return _decorator

    def get(self, name: str) -> ScenarioFn:
        try:
            return self._scenarios[name]
        except KeyError as exc:
            available = ", ".join(sorted(self._scenarios))
            raise KeyError(f"Unknown scenario '{name}'. Available scenarios: [{available}]") from exc

    def names(self) -> List[str]:
        return list(self._scenarios)

    def __contains__(self, name: object) -> bool:
        return name in self._scenarios

    def __iter__(self) -> Iterator[str]:
        return iter(self._scenarios)

    def __len__(self) -> int:
        return len(self._scenarios)


__all__ = ["ScenarioFn", "ScenarioRegistry"]
