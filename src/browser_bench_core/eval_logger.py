"""Per-invocation structured log buffer.

An EvalLogger is created fresh for every scenario invocation and never shared.
It collects LogEntry records (also forwarded to the stdlib logger) so that the
scenario's outcome can carry its own log trail, and it remembers which
automation session the entries belong to for later correlation.

The logger must never raise into scenario code: every public method coerces
its input and falls back to a plain string entry when that fails.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from .domain.models import LEVEL_DEBUG, LEVEL_ERROR, LEVEL_INFO, AuxiliaryValue, LogEntry

logger = logging.getLogger(__name__)

LogPayload = Union[LogEntry, Mapping[str, Any], str]

_PY_LEVELS = {LEVEL_ERROR: logging.ERROR, LEVEL_INFO: logging.INFO, LEVEL_DEBUG: logging.DEBUG}


def _aux_value(raw: Any) -> AuxiliaryValue:
    if isinstance(raw, AuxiliaryValue):
        return raw
    if isinstance(raw, Mapping) and "value" in raw:
        value = raw.get("value")
        kind = raw.get("type", "string")
        if kind not in ("string", "integer", "float", "boolean", "object"):
            kind = "object"
    else:
        value, kind = raw, "object"
    if not isinstance(value, str):
        try:
            value = json.dumps(value, default=repr)
        except (TypeError, ValueError):
            value = repr(value)
    return AuxiliaryValue(value=value, type=kind)


class EvalLogger:
    """Buffers leveled log entries for a single scenario invocation."""

    def __init__(self) -> None:
        self._logs: List[LogEntry] = []
        self.session_id: Optional[str] = None
        self.debug_url: Optional[str] = None
        self.session_url: Optional[str] = None

    def init(self, session: Any) -> None:
        """Associate this buffer with an automation session.

        Reads `session_id`, `debug_url` and `session_url` when the session
        exposes them; later entries are stamped with the session id.
        """
        self.session_id = _optional_str(getattr(session, "session_id", None))
        self.debug_url = _optional_str(getattr(session, "debug_url", None))
        self.session_url = _optional_str(getattr(session, "session_url", None))

    def log(self, payload: LogPayload, *, level: Optional[int] = None) -> None:
        self._append(self._build(payload, level))

    def info(self, payload: LogPayload) -> None:
        self.log(payload, level=LEVEL_INFO)

    def warn(self, payload: LogPayload) -> None:
        # Level 1 in the buffer, WARNING for stdlib handlers.
        self._append(self._build(payload, LEVEL_INFO), py_level=logging.WARNING)

    def error(self, payload: LogPayload) -> None:
        self.log(payload, level=LEVEL_ERROR)

    def _append(self, entry: LogEntry, py_level: Optional[int] = None) -> None:
        self._logs.append(entry)
        logger.log(
            py_level if py_level is not None else _PY_LEVELS.get(entry.level, logging.DEBUG),
            "%s%s",
            f"[{entry.category}] " if entry.category else "",
            entry.message,
        )

    def get_logs(self) -> List[LogEntry]:
        return list(self._logs)

    def sink(self) -> Callable[[LogPayload], None]:
        """Callback suitable for an automation engine's `logger=` option."""
        return self.log

    def __len__(self) -> int:
        return len(self._logs)

    def _build(self, payload: LogPayload, level: Optional[int]) -> LogEntry:
        try:
            if isinstance(payload, LogEntry):
                data: Dict[str, Any] = payload.model_dump()
            elif isinstance(payload, Mapping):
                data = dict(payload)
            else:
                data = {"message": str(payload)}
            data["message"] = str(data.get("message", ""))
            data["auxiliary"] = {
                str(k): _aux_value(v) for k, v in dict(data.get("auxiliary") or {}).items()
            }
            if self.session_id and "session_id" not in data["auxiliary"]:
                data["auxiliary"]["session_id"] = AuxiliaryValue(value=self.session_id)
            if level is not None:
                data["level"] = level
            return LogEntry.model_validate(
                {k: v for k, v in data.items() if k in LogEntry.model_fields}
            )
        except (ValidationError, TypeError, ValueError) as e:
            return LogEntry(
                message=str(payload),
                level=level if level is not None else LEVEL_INFO,
                auxiliary={"log_error": AuxiliaryValue(value=str(e))},
            )


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


__all__ = ["EvalLogger", "LogPayload"]
