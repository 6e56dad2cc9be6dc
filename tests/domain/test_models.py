"""Tests for domain models: WorkItem, OutcomeRecord, Score, Summary."""

import json

import pytest
from pydantic import ValidationError

from browser_bench_core.domain.models import (
    LEVEL_ERROR,
    LogEntry,
    OutcomeRecord,
    RunResult,
    Score,
    Summary,
    TaskRef,
    WorkItem,
)


def test_work_item_for_pair_tags_and_metadata():
    item = WorkItem.for_pair("wikipedia", "gpt-4o", trial_index=2, sequence=7)
    assert item.name == "wikipedia"
    assert item.tags == ("gpt-4o", "wikipedia")
    assert item.metadata == {"model": "gpt-4o", "test": "wikipedia"}
    assert item.trial_index == 2
    assert item.sequence == 7


def test_work_item_is_frozen_and_rejects_extras():
    item = WorkItem.for_pair("vanta_h", "gpt-4o")
    with pytest.raises(ValidationError):
        item.name = "other"
    with pytest.raises(ValidationError):
        WorkItem(
            name="x",
            scenario_name="x",
            model_name="m",
            tags=("m", "x"),
            unexpected="boom",
        )


def test_outcome_success_defaults_to_false():
    assert OutcomeRecord().success is False


@pytest.mark.parametrize("value", ["true", 1, "yes", [True]])
def test_outcome_truthy_non_boolean_is_not_success(value):
    assert OutcomeRecord.model_validate({"success": value}).success is False


def test_outcome_accepts_legacy_success_key():
    rec = OutcomeRecord.model_validate({"_success": True})
    assert rec.success is True
    # explicit success wins over the legacy key
    rec = OutcomeRecord.model_validate({"_success": True, "success": False})
    assert rec.success is False


def test_outcome_error_present_even_when_none():
    assert OutcomeRecord.model_validate({"success": True, "error": None}).has_error is True
    assert OutcomeRecord(success=True).has_error is False


def test_outcome_camel_case_urls_and_extras_kept():
    rec = OutcomeRecord.model_validate(
        {"success": True, "debugUrl": "http://debug", "sessionUrl": "http://session", "price": 11.99}
    )
    assert rec.debug_url == "http://debug"
    assert rec.session_url == "http://session"
    assert rec.model_extra["price"] == 11.99


def test_outcome_coerce_variants():
    existing = OutcomeRecord(success=True)
    assert OutcomeRecord.coerce(existing) is existing
    assert OutcomeRecord.coerce(True).success is True
    assert OutcomeRecord.coerce(False).success is False
    assert OutcomeRecord.coerce({"success": True, "logs": []}).success is True

    weird = OutcomeRecord.coerce("done")
    assert weird.success is False
    assert weird.model_extra["raw_output"] == "'done'"


def test_log_entry_level_must_be_non_negative():
    assert LogEntry(message="boom", level=LEVEL_ERROR).level == 0
    with pytest.raises(ValidationError):
        LogEntry(message="boom", level=-1)


def test_score_range():
    assert Score(name="Exact match", value=1.0).value == 1.0
    with pytest.raises(ValidationError):
        Score(name="Exact match", value=1.5)
    with pytest.raises(ValidationError):
        Score(name="Exact match", value=-0.1)


def test_run_result_defaults():
    item = WorkItem.for_pair("vanta_h", "gpt-4o")
    result = RunResult(item=item, output=OutcomeRecord(success=True))
    assert result.scores == {}
    assert result.duration_ms == 0


def test_summary_totals_must_add_up():
    ref = TaskRef(name="vanta_h", model_identifier="gpt-4o")
    Summary(exact_match_score_percent=50.0, total_tasks=2, passed_tasks=[ref], failed_tasks=[ref])
    with pytest.raises(ValidationError) as exc:
        Summary(exact_match_score_percent=50.0, total_tasks=3, passed_tasks=[ref], failed_tasks=[ref])
    assert "totalTasks" in str(exc.value)


def test_summary_percent_bounds_and_null():
    assert Summary(exact_match_score_percent=None, total_tasks=0).exact_match_score_percent is None
    with pytest.raises(ValidationError):
        Summary(exact_match_score_percent=100.5, total_tasks=0)


def test_summary_json_uses_camel_case_keys():
    summary = Summary(
        exact_match_score_percent=100.0,
        total_tasks=1,
        passed_tasks=[TaskRef(name="wikipedia", model_identifier="gpt-4o")],
    )
    doc = json.loads(summary.to_json())
    assert set(doc) == {"exactMatchScorePercent", "totalTasks", "passedTasks", "failedTasks"}
    assert doc["passedTasks"] == [{"name": "wikipedia", "modelIdentifier": "gpt-4o"}]
    assert Summary.model_validate(doc) == summary
