"""Exception hierarchy for browser_bench_core.

Scenario faults never surface as exceptions outside the engine's isolation
boundary; the classes here cover the remaining fault kinds: configuration,
registry misuse, summary artifact problems and run-level failures.
"""

from __future__ import annotations


class BrowserBenchError(Exception):
    """Base class for all harness errors."""


class ConfigurationError(BrowserBenchError):
    """Invalid run configuration (bad env value, unusable launcher path, ...)."""


class RegistryError(BrowserBenchError):
    """Invalid or duplicate registration in a scenario or scorer registry."""


class ArtifactError(BrowserBenchError):
    """The persisted evaluation summary is missing or malformed."""


class RunError(BrowserBenchError):
    """A fault escaped the top-level run orchestration."""


__all__ = [
    "BrowserBenchError",
    "ConfigurationError",
    "RegistryError",
    "ArtifactError",
    "RunError",
]
