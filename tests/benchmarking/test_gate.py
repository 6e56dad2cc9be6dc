"""Tests for the accuracy gate."""

import io
import json

import pytest

from browser_bench_core.benchmarking.gate import (
    EXIT_FAIL,
    EXIT_PASS,
    check_gate,
    render_gate_report,
    summary_schema,
)


def _write(tmp_path, doc, name="eval-summary.json"):
    path = tmp_path / name
    path.write_text(json.dumps(doc) if not isinstance(doc, str) else doc, encoding="utf-8")
    return path


def _summary(score, passed=1, failed=0):
    return {
        "exactMatchScorePercent": score,
        "totalTasks": passed + failed,
        "passedTasks": [{"name": f"p{i}", "modelIdentifier": "gpt-4o"} for i in range(passed)],
        "failedTasks": [{"name": f"f{i}", "modelIdentifier": "gpt-4o"} for i in range(failed)],
    }


def test_passes_at_or_above_threshold(tmp_path):
    result = check_gate(_write(tmp_path, _summary(90, passed=9, failed=1)))
    assert result.passed
    assert result.exit_code == EXIT_PASS

    assert check_gate(_write(tmp_path, _summary(85.0), "edge.json")).exit_code == EXIT_PASS


def test_fails_below_threshold(tmp_path):
    result = check_gate(_write(tmp_path, _summary(80, passed=8, failed=2)))
    assert result.exit_code == EXIT_FAIL
    assert result.reason == "Exact match score is below 85%. Failing CI."


def test_custom_threshold(tmp_path):
    path = _write(tmp_path, _summary(80, passed=8, failed=2))
    assert check_gate(path, threshold=75).exit_code == EXIT_PASS


def test_missing_file_fails_without_raising(tmp_path):
    result = check_gate(tmp_path / "nope.json")
    assert result.exit_code == EXIT_FAIL
    assert result.reason == "Eval summary not found. Failing CI."


def test_invalid_json_fails(tmp_path):
    result = check_gate(_write(tmp_path, "{oops"))
    assert result.exit_code == EXIT_FAIL
    assert "could not be parsed" in result.reason


def test_null_score_fails(tmp_path):
    result = check_gate(_write(tmp_path, _summary(None, passed=0)))
    assert result.exit_code == EXIT_FAIL
    assert "missing" in result.reason


@pytest.mark.parametrize(
    "doc",
    [
        {"totalTasks": 1},
        dict(_summary(90), totalTasks="1"),
        dict(_summary(90), extra=True),
        dict(_summary(90), exactMatchScorePercent=140),
    ],
)
def test_schema_violations_fail(tmp_path, doc):
    result = check_gate(_write(tmp_path, doc))
    assert result.exit_code == EXIT_FAIL
    assert result.errors


def test_inconsistent_totals_fail(tmp_path):
    doc = dict(_summary(90, passed=1), totalTasks=5)
    result = check_gate(_write(tmp_path, doc))
    assert result.exit_code == EXIT_FAIL
    assert "inconsistent" in result.reason


def test_schema_uses_camel_case_keys():
    props = summary_schema()["properties"]
    assert {"exactMatchScorePercent", "totalTasks", "passedTasks", "failedTasks"} <= set(props)


def test_render_report_lists_tasks(tmp_path):
    result = check_gate(_write(tmp_path, _summary(50, passed=1, failed=1)))
    out = io.StringIO()
    render_gate_report(result, out)
    text = out.getvalue()
    assert "Total number of evals: 2" in text
    assert "Exact match score: 50%" in text
    assert "Passing evals:" in text and "Failing evals:" in text
    assert "name: f0" in text
    assert "model: gpt-4o" in text
    assert text.rstrip().endswith("Failing CI.")


def test_render_report_without_summary(tmp_path):
    out = io.StringIO()
    render_gate_report(check_gate(tmp_path / "nope.json"), out)
    assert out.getvalue().strip() == "Eval summary not found. Failing CI."


def test_deeply_nested_json_fails_without_raising(tmp_path):
    result = check_gate(_write(tmp_path, "[" * 200000 + "]" * 200000))
    assert result.exit_code == EXIT_FAIL
    assert "could not be parsed" in result.reason
