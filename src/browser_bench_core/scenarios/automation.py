"""Interfaces to the browser automation engine used by scenario bodies.

The engine itself (page navigation, semantic actions, observation and
structured extraction) lives outside this package. Scenario bodies talk to it
only through `BrowserSession`; the harness obtains sessions from a
`SessionLauncher`, which callers supply by import path.
"""

from __future__ import annotations

import importlib
from typing import Any, Dict, List, Optional, Protocol, Type, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from ..eval_logger import EvalLogger
from ..exceptions import ConfigurationError

M = TypeVar("M", bound=BaseModel)


class ActResult(BaseModel):
    """Outcome of a semantic action as reported by the automation engine."""

    model_config = ConfigDict(extra="allow")

    success: bool
    message: str = ""
    action: str = ""


class Observation(BaseModel):
    """A candidate element returned by observe()."""

    model_config = ConfigDict(extra="allow")

    selector: str
    description: str = ""


class LaunchOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    env: str = "LOCAL"
    headless: bool = False
    enable_caching: bool = False
    dom_settle_timeout_ms: Optional[int] = Field(None, ge=0)


@runtime_checkable
class BrowserSession(Protocol):
    """One automation-engine browser context owned by a single invocation."""

    session_id: Optional[str]
    debug_url: Optional[str]
    session_url: Optional[str]

    @property
    def url(self) -> str: ...

    async def goto(self, url: str, timeout_ms: Optional[int] = None) -> None: ...

    async def act(self, action: str, variables: Optional[Dict[str, str]] = None) -> ActResult: ...

    async def observe(self, instruction: Optional[str] = None) -> List[Observation]: ...

    async def extract(
        self, instruction: str, schema: Type[M], model_name: Optional[str] = None
    ) -> M: ...

    async def inner_html(self, selector: str) -> str: ...

    async def is_visible(self, text: str) -> bool: ...

    async def close(self) -> None: ...


class SessionLauncher(Protocol):
    """Starts a browser session bound to a model and an invocation logger.

    Implementations should route engine log lines to `logger.sink()` and call
    `logger.init(session)` once the session exists.
    """

    async def __call__(
        self, model_name: str, logger: EvalLogger, options: LaunchOptions
    ) -> BrowserSession: ...


def load_launcher(path: str) -> SessionLauncher:
    """Resolve a launcher from a 'package.module:attr' import path.

    If the attribute is a class it is instantiated without arguments.
    """
    if ":" not in path:
        raise ConfigurationError(f"Session launcher '{path}' is not a 'module:attr' path")
    mod_name, attr = path.split(":", 1)
    try:
        module = importlib.import_module(mod_name)
        target: Any = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot import session launcher '{path}': {e}") from e
    if isinstance(target, type):
        target = target()
    if not callable(target):
        raise ConfigurationError(f"Session launcher '{path}' is not callable")
    return target


__all__ = [
    "ActResult",
    "BrowserSession",
    "LaunchOptions",
    "Observation",
    "SessionLauncher",
    "load_launcher",
]
