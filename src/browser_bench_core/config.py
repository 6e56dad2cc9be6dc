"""
Run configuration for the evaluation harness.

- Strongly typed with Pydantic v2
- Environment-style inputs (EVAL_ENV, HEADLESS, CI_EVALS, ...) as used by CI
- Optional YAML overlay at configs/evals.yaml (override path via EVAL_CONFIG_YAML)

Precedence:
  Built-in defaults < YAML overlay < environment variables < override dict

Usage:
    from browser_bench_core.config import load_run_config
    cfg = load_run_config()
    cfg.max_concurrency, cfg.trial_count
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_MODELS: Tuple[str, ...] = ("gpt-4o", "claude-3-5-sonnet-20241022")
DEFAULT_SUMMARY_PATH = "eval-summary.json"
DEFAULT_CONFIG_YAML = os.path.join("configs", "evals.yaml")

# Scenarios run by default, in plan order. peeler_simple loads a file:// page
# and is dropped on remote browsers, which block local file access.
CI_SCENARIOS: Tuple[str, ...] = (
    "vanta_h",
    "peeler_simple",
    "wikipedia",
    "peeler_complex",
    "simple_google_search",
    "extract_github_stars",
    "extract_collaborators_from_github_repository",
    "nonsense_action",
    "amazon_add_to_cart",
)
LOCAL_ONLY_SCENARIOS = frozenset({"peeler_simple"})

_TRUE = {"1", "true", "yes", "on"}


class ExecutionEnv(str, Enum):
    """Where browser sessions are launched."""

    LOCAL = "LOCAL"
    BROWSERBASE = "BROWSERBASE"


class EvalRunConfig(BaseModel):
    """Immutable settings for one evaluation run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    env: ExecutionEnv = Field(ExecutionEnv.LOCAL, description="Browser execution environment")
    headless: bool = Field(False, description="Run local browsers headless")
    enable_caching: bool = Field(False, description="Allow the automation engine to cache actions")
    models: Tuple[str, ...] = Field(DEFAULT_MODELS, min_length=1)
    allow_list: Optional[Tuple[str, ...]] = Field(
        None, description="Scenario names to keep (CI_EVALS); None keeps every enabled scenario"
    )
    max_concurrency: int = Field(20, ge=1, description="Maximum in-flight scenario invocations")
    trial_count: int = Field(5, ge=1, description="Independent repetitions per (model, scenario)")
    summary_path: str = Field(DEFAULT_SUMMARY_PATH, min_length=1)
    task_timeout_seconds: Optional[float] = Field(None, gt=0)
    run_timeout_seconds: Optional[float] = Field(None, gt=0)
    session_launcher: Optional[str] = Field(
        None, description="Import path 'module:attr' of the browser session launcher"
    )
    log_level: str = Field("INFO")

    @field_validator("env", mode="before")
    @classmethod
    def _normalise_env(cls, v: Any) -> Any:
        # Anything other than "browserbase" means a local browser.
        if isinstance(v, ExecutionEnv):
            return v
        if isinstance(v, str) and v.strip().lower() == "browserbase":
            return ExecutionEnv.BROWSERBASE
        return ExecutionEnv.LOCAL

    @field_validator("models", "allow_list", mode="before")
    @classmethod
    def _split_csv(cls, v: Any) -> Any:
        if v is None:
            return None
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            return tuple(str(x).strip() for x in v if str(x).strip())
        return v

    @field_validator("allow_list")
    @classmethod
    def _empty_allow_list_is_none(cls, v: Optional[Tuple[str, ...]]) -> Optional[Tuple[str, ...]]:
        return v or None

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v: Any) -> Any:
        level = str(v).strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v!r}")
        return level

    def enabled_scenarios(self) -> List[str]:
        return default_enabled_scenarios(self.env)


def default_enabled_scenarios(env: ExecutionEnv) -> List[str]:
    """Scenario names enabled for the given environment, in plan order."""
    if env is ExecutionEnv.BROWSERBASE:
        return [name for name in CI_SCENARIOS if name not in LOCAL_ONLY_SCENARIOS]
    return list(CI_SCENARIOS)


# Environment variable -> config field
ENV_VARS: Dict[str, str] = {
    "EVAL_ENV": "env",
    "HEADLESS": "headless",
    "EVAL_ENABLE_CACHING": "enable_caching",
    "EVAL_MODELS": "models",
    "CI_EVALS": "allow_list",
    "EVAL_MAX_CONCURRENCY": "max_concurrency",
    "EVAL_TRIAL_COUNT": "trial_count",
    "EVAL_SUMMARY_PATH": "summary_path",
    "EVAL_TASK_TIMEOUT": "task_timeout_seconds",
    "EVAL_RUN_TIMEOUT": "run_timeout_seconds",
    "EVAL_SESSION_LAUNCHER": "session_launcher",
    "EVAL_LOG_LEVEL": "log_level",
}

_BOOL_FIELDS = {"headless", "enable_caching"}


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for var, field in ENV_VARS.items():
        if var not in environ:
            continue
        raw = environ[var]
        if field in _BOOL_FIELDS:
            overrides[field] = raw.strip().lower() in _TRUE
        else:
            overrides[field] = raw
    return overrides


def _load_yaml(path: str) -> Dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.debug("No eval config YAML at %s; using built-in defaults", path)
        return {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse eval config YAML {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Eval config YAML {path} is not a mapping")
    return data


def load_run_config(
    environ: Optional[Mapping[str, str]] = None,
    override: Optional[Dict[str, Any]] = None,
) -> EvalRunConfig:
    """
    Build an EvalRunConfig from defaults, YAML overlay, environment and overrides.

    Raises:
        ConfigurationError if the merged values fail validation.
    """
    env = os.environ if environ is None else environ
    yaml_path = env.get("EVAL_CONFIG_YAML") or DEFAULT_CONFIG_YAML

    merged: Dict[str, Any] = {}
    merged.update(_load_yaml(yaml_path))
    merged.update(_env_overrides(env))
    if override:
        merged.update(override)

    try:
        return EvalRunConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid eval run configuration: {e}") from e


__all__ = [
    "CI_SCENARIOS",
    "DEFAULT_MODELS",
    "DEFAULT_SUMMARY_PATH",
    "ENV_VARS",
    "EvalRunConfig",
    "ExecutionEnv",
    "LOCAL_ONLY_SCENARIOS",
    "default_enabled_scenarios",
    "load_run_config",
]
