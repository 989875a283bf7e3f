"""
Tests for the plan checker CLI (scripts/validate_plan.py).
"""

import json
import os

import pytest

from data_loader import make_course
from validate_plan import audit_catalog, format_summary, main

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "data")
SAMPLE_PLAN = os.path.join(DATA_DIR, "sample_plan.json")


def _catalog(*courses):
    return {
        "courses": {c["code"]: c for c in courses},
        "catalog_codes": {c["code"] for c in courses},
    }


class TestFormatSummary:
    def test_pass(self):
        text = format_summary({"is_valid": True, "errors": [], "warnings": []}, "plan.json")
        assert text.splitlines() == ["[PASS] plan.json", "  All checks passed."]

    def test_fail_lists_errors_then_warnings(self):
        result = {
            "is_valid": False,
            "errors": [{"course_code": "ECE 250", "message": "Cannot take with CS 241"}],
            "warnings": [{"course_code": "ECE 105", "message": "Course already exists in 1A"}],
        }
        assert format_summary(result).splitlines() == [
            "[FAIL] plan",
            "  [ERROR] ECE 250: Cannot take with CS 241",
            "  [WARN]  ECE 105: Course already exists in 1A",
        ]


class TestAuditCatalog:
    def test_unknown_reference(self):
        catalog = _catalog(
            make_course("ECE 380", "Prereq: ECE 205 or ECE 206"),
            make_course("ECE 205"),
        )
        result = audit_catalog(catalog)
        assert result["is_valid"] is False
        assert result["errors"][0]["course_code"] == "ECE 380"
        assert "ECE 206" in result["errors"][0]["message"]

    def test_unparseable_text_is_warning(self):
        catalog = _catalog(make_course("ECE 499", "Prereq: Department consent required"))
        result = audit_catalog(catalog)
        assert result["is_valid"] is True
        assert result["warnings"][0]["course_code"] == "ECE 499"

    def test_clean_catalog(self):
        catalog = _catalog(make_course("ECE 105"), make_course("ECE 250", "Prereq: ECE 105"))
        assert audit_catalog(catalog) == {"is_valid": True, "errors": [], "warnings": []}


class TestMain:
    def test_requires_a_mode(self):
        with pytest.raises(SystemExit):
            main([])

    def test_sample_plan_reports_antirequisite(self, capsys):
        code = main(["--plan", SAMPLE_PLAN])
        out = capsys.readouterr().out
        assert code == 1
        assert "[FAIL] sample_plan.json" in out
        assert "ECE 250: Cannot take with CS 241" in out

    def test_clean_plan_passes(self, tmp_path, capsys):
        path = tmp_path / "plan.json"
        path.write_text(json.dumps({"terms": [["ECE 105"], ["ECE 250"]]}))
        assert main(["--plan", str(path)]) == 0
        assert "[PASS] plan.json" in capsys.readouterr().out

    def test_unreadable_plan(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        assert main(["--plan", str(path)]) == 2

    def test_audit_shipped_catalog(self, capsys):
        assert main(["--audit-catalog"]) == 1
        assert "ECE 206" in capsys.readouterr().out
