"""Typed contracts for evaluation runs.

All records are Pydantic v2 models so they can be validated when they cross a
boundary (scenario output -> engine, engine -> summary file -> gate) and dumped
to JSON without custom encoders.

Lifecycle:
- WorkItem: created once per run by the plan generator, frozen.
- OutcomeRecord: produced by the engine for exactly one WorkItem; scenario
  specific fields are kept as extras.
- RunResult: pairs a WorkItem with its OutcomeRecord and, after scoring, the
  named scores.
- Summary: derived from the full RunResult list and persisted as the single
  run artifact. Keys are camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

AuxiliaryType = Literal["string", "integer", "float", "boolean", "object"]

LEVEL_ERROR = 0
LEVEL_INFO = 1
LEVEL_DEBUG = 2


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Logging records
# ---------------------------------------------------------------------------


class AuxiliaryValue(BaseModel):
    """A labelled value attached to a log entry, stored in string form."""

    model_config = ConfigDict(extra="forbid")

    value: str
    type: AuxiliaryType = "string"


class LogEntry(BaseModel):
    """One leveled log line captured during a scenario invocation.

    Levels follow the automation engine's convention: 0=error, 1=info, 2=debug.
    """

    model_config = ConfigDict(extra="forbid")

    message: str
    level: int = Field(LEVEL_INFO, ge=0)
    category: Optional[str] = None
    timestamp: str = Field(default_factory=_utc_now_iso)
    auxiliary: Dict[str, AuxiliaryValue] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


class WorkItem(BaseModel):
    """One scheduled (scenario, model, trial) unit of execution."""

    model_config = ConfigDict(frozen=True, extra="forbid", protected_namespaces=())

    name: str = Field(..., min_length=1, description="Scenario name used for reporting")
    scenario_name: str = Field(..., min_length=1)
    model_name: str = Field(..., min_length=1)
    trial_index: int = Field(0, ge=0)
    sequence: int = Field(0, ge=0, description="Position of the item in the plan")
    tags: Tuple[str, str]
    metadata: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def for_pair(
        cls,
        scenario_name: str,
        model_name: str,
        *,
        trial_index: int = 0,
        sequence: int = 0,
    ) -> WorkItem:
        """Build an item with tags/metadata derived from the (model, scenario) pair."""
        return cls(
            name=scenario_name,
            scenario_name=scenario_name,
            model_name=model_name,
            trial_index=trial_index,
            sequence=sequence,
            tags=(model_name, scenario_name),
            metadata={"model": model_name, "test": scenario_name},
        )


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class OutcomeRecord(BaseModel):
    """Result of one scenario invocation.

    `success` defaults to False: a scenario that never sets it has failed.
    Only the boolean True counts as success; truthy non-booleans do not.

    `error` is considered present when it was explicitly supplied, even as
    None. Use `has_error` rather than testing the value.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    success: bool = False
    logs: List[LogEntry] = Field(default_factory=list)
    debug_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("debug_url", "debugUrl")
    )
    session_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("session_url", "sessionUrl")
    )
    error: Any = None

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_success_key(cls, values: Any) -> Any:
        # Older scenario bodies report `_success`; pydantic fields cannot start
        # with an underscore, so fold it into `success` before validation.
        if isinstance(values, dict) and "_success" in values:
            values = dict(values)
            legacy = values.pop("_success")
            values.setdefault("success", legacy)
        return values

    @field_validator("success", mode="before")
    @classmethod
    def _only_true_is_success(cls, v: Any) -> bool:
        return v is True

    @property
    def has_error(self) -> bool:
        return "error" in self.model_fields_set

    @classmethod
    def coerce(cls, raw: Any) -> OutcomeRecord:
        """Normalise whatever a scenario body returned into an OutcomeRecord.

        - OutcomeRecord: returned unchanged.
        - Mapping: validated (extra keys kept).
        - bool: wrapped as the success flag.
        - anything else: a failed record keeping the value under `raw_output`.
        """
        if isinstance(raw, OutcomeRecord):
            return raw
        if isinstance(raw, dict):
            return cls.model_validate(raw)
        if isinstance(raw, bool):
            return cls(success=raw)
        return cls(success=False, raw_output=repr(raw))


class Score(BaseModel):
    """A named score in [0, 1] produced by one scoring function."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1)
    value: float = Field(..., ge=0.0, le=1.0)


class RunResult(BaseModel):
    """A WorkItem together with its OutcomeRecord and attached scores.

    `raw_output` holds whatever the scenario body returned, before coercion.
    It is only set when the body returned; a faulted invocation has none and
    is scored on its OutcomeRecord instead.
    """

    model_config = ConfigDict(extra="forbid")

    item: WorkItem
    output: OutcomeRecord
    raw_output: Any = None
    scores: Dict[str, float] = Field(default_factory=dict)
    duration_ms: int = Field(0, ge=0)

    @property
    def scoring_input(self) -> Any:
        """The value scorers compare against expectations."""
        if "raw_output" in self.model_fields_set:
            return self.raw_output
        return self.output


# ---------------------------------------------------------------------------
# Summary artifact
# ---------------------------------------------------------------------------


class TaskRef(BaseModel):
    """Scenario name with model attribution, as listed in the summary."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", protected_namespaces=())

    name: str
    model_identifier: str = Field(..., alias="modelIdentifier")


class Summary(BaseModel):
    """Aggregated view of a run; the single persisted artifact."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    exact_match_score_percent: Optional[float] = Field(
        ..., alias="exactMatchScorePercent", ge=0.0, le=100.0
    )
    total_tasks: int = Field(..., alias="totalTasks", ge=0)
    passed_tasks: List[TaskRef] = Field(default_factory=list, alias="passedTasks")
    failed_tasks: List[TaskRef] = Field(default_factory=list, alias="failedTasks")

    @model_validator(mode="after")
    def _totals_add_up(self) -> Summary:
        if self.total_tasks != len(self.passed_tasks) + len(self.failed_tasks):
            raise ValueError("totalTasks must equal len(passedTasks) + len(failedTasks)")
        return self

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


__all__ = [
    "AuxiliaryType",
    "LEVEL_ERROR",
    "LEVEL_INFO",
    "LEVEL_DEBUG",
    "AuxiliaryValue",
    "LogEntry",
    "WorkItem",
    "OutcomeRecord",
    "Score",
    "RunResult",
    "TaskRef",
    "Summary",
]
