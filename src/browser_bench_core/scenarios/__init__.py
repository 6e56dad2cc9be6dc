"""Scenario bodies and the automation-engine interfaces they depend on."""

from .automation import (
    ActResult,
    BrowserSession,
    LaunchOptions,
    Observation,
    SessionLauncher,
    load_launcher,
)
from .web import WEB_SCENARIOS, build_web_registry

__all__ = [
    "ActResult",
    "BrowserSession",
    "LaunchOptions",
    "Observation",
    "SessionLauncher",
    "WEB_SCENARIOS",
    "build_web_registry",
    "load_launcher",
]
