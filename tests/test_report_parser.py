"""
Report Parser Tests
===================
Tests for schema detection, field alias resolution, tool-tag filtering
and deep links. All inputs are inline JSON; only the missing-file case
touches disk (tmp_path).
"""
import json
import logging

import pytest

from review_pipeline.core.config import AppSettings
from review_pipeline.models.issue_record import IssueRecord, Severity
from review_pipeline.parser.detection import ReportShape, detect_shape, load_document
from review_pipeline.core.errors import ParseStructureError
from review_pipeline.parser.fields import normalize_severity
from review_pipeline.parser.report_parser import (
    ReportParser,
    RoslynReportParser,
    SonarReportParser,
)
from review_pipeline.services.file_loader import FileLoader


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _sarif(*results):
    return json.dumps({"runs": [{"results": list(results)}]})


def _sarif_result(rule_id="CA1000", level="warning", text="bad", uri="file:///x.cs", line=5):
    result = {"ruleId": rule_id, "message": {"text": text}}
    if level is not None:
        result["level"] = level
    if uri is not None:
        result["locations"] = [{
            "physicalLocation": {
                "artifactLocation": {"uri": uri},
                "region": {"startLine": line},
            }
        }]
    return result


# ===================================================================
# SARIF
# ===================================================================
def test_sarif_scheme_stripped_and_line_kept():
    parser = RoslynReportParser()
    records = parser.parse(_sarif(_sarif_result()))

    assert len(records) == 1
    record = records[0]
    assert record.source == "Roslyn"
    assert record.id == "CA1000"
    assert record.severity == Severity.MAJOR
    assert record.message == "bad"
    assert record.file_path == "x.cs"
    assert record.line == 5
    assert record.url is None


def test_sarif_one_record_per_result():
    results = [_sarif_result(rule_id=f"CA{i}", line=i + 1) for i in range(7)]
    records = RoslynReportParser().parse(_sarif(*results))
    assert [r.id for r in records] == [f"CA{i}" for i in range(7)]


def test_sarif_level_absent_maps_to_info():
    records = RoslynReportParser().parse(_sarif(_sarif_result(level=None)))
    assert records[0].severity == Severity.INFO


def test_sarif_levels():
    results = [
        _sarif_result(rule_id="E", level="error"),
        _sarif_result(rule_id="W", level="warning"),
        _sarif_result(rule_id="N", level="note"),
        _sarif_result(rule_id="X", level="none"),
    ]
    records = RoslynReportParser().parse(_sarif(*results))
    assert [r.severity for r in records] == [
        Severity.CRITICAL, Severity.MAJOR, Severity.MINOR, Severity.INFO,
    ]


def test_sarif_legacy_result_file_location():
    result = {
        "ruleId": "CS0168",
        "level": "warning",
        "message": "variable declared but never used",
        "locations": [{"resultFile": {"uri": "src\\Foo.cs", "region": {"startLine": 12}}}],
    }
    record = RoslynReportParser().parse(_sarif(result))[0]
    assert record.message == "variable declared but never used"
    assert record.file_path == "src/Foo.cs"
    assert record.line == 12


def test_sarif_result_without_locations_keeps_empty_path():
    record = RoslynReportParser().parse(_sarif(_sarif_result(uri=None)))[0]
    assert record.file_path == ""
    assert record.line is None


def test_sarif_rule_id_from_rule_object():
    result = {"rule": {"id": "IDE0005"}, "level": "note", "message": {"text": "unused using"}}
    record = RoslynReportParser().parse(_sarif(result))[0]
    assert record.id == "IDE0005"
    assert record.severity == Severity.MINOR


def test_sarif_non_object_results_skipped():
    text = json.dumps({"runs": [{"results": ["oops", _sarif_result()]}, "not-a-run"]})
    records = RoslynReportParser().parse(text)
    assert len(records) == 1


# ===================================================================
# Issue arrays
# ===================================================================
def test_wrapped_issue_array():
    text = json.dumps({"issues": [{
        "key": "S001", "severity": "Critical", "message": "null deref",
        "component": "a.cs", "line": 10,
    }]})
    records = SonarReportParser().parse(text)

    assert len(records) == 1
    assert records[0] == IssueRecord(
        source="SonarQube", id="S001", severity=Severity.CRITICAL,
        message="null deref", file_path="a.cs", line=10,
    )


def test_bare_issue_array():
    text = json.dumps([
        {"ruleId": "R1", "level": "error", "message": {"text": "boom"}, "filePath": "b.cs", "line": 2},
        {"ruleId": "R2", "level": "note", "message": "meh", "filePath": "c.cs"},
    ])
    records = SonarReportParser().parse(text)
    assert [(r.id, r.severity, r.line) for r in records] == [
        ("R1", Severity.CRITICAL, 2),
        ("R2", Severity.MINOR, None),
    ]


def test_canonical_and_legacy_aliases_produce_identical_records():
    canonical = [{
        "ruleId": "R1", "level": "warning", "message": {"text": "m"},
        "filePath": "src/a.cs", "line": 3,
    }]
    legacy = [{
        "key": "R1", "severity": "WARNING", "message": "m",
        "component": "src\\a.cs", "textRange": {"startLine": 3},
    }]
    parser = SonarReportParser()
    assert parser.parse(json.dumps(canonical)) == parser.parse(json.dumps(legacy))


def test_wrong_typed_fields_fall_through_to_defaults():
    text = json.dumps([{
        "ruleId": 42,
        "key": "K1",
        "severity": ["not", "a", "string"],
        "message": {"text": 5},
        "filePath": None,
        "line": "abc",
    }])
    record = SonarReportParser().parse(text)[0]
    assert record.id == "K1"
    assert record.severity == Severity.INFO
    assert record.message == ""
    assert record.file_path == ""
    assert record.line is None


def test_integral_float_line_accepted():
    text = json.dumps([
        {"ruleId": "A", "line": 10.0},
        {"ruleId": "B", "line": 10.5},
        {"ruleId": "C", "line": -3.0},
    ])
    records = SonarReportParser().parse(text)
    assert [r.line for r in records] == [10, None, None]
    assert isinstance(records[0].line, int)


def test_string_line_and_non_positive_line():
    text = json.dumps([
        {"ruleId": "A", "line": "17"},
        {"ruleId": "B", "line": 0},
        {"ruleId": "C", "line": True},
    ])
    records = SonarReportParser().parse(text)
    assert [r.line for r in records] == [17, None, None]


def test_non_object_items_skipped(caplog):
    text = json.dumps([1, "two", {"ruleId": "A"}])
    with caplog.at_level(logging.WARNING):
        records = SonarReportParser().parse(text)
    assert [r.id for r in records] == ["A"]
    assert "not an object" in caplog.text


def test_runs_take_priority_over_issues():
    text = json.dumps({
        "runs": [{"results": [_sarif_result()]}],
        "issues": [{"ruleId": "A"}, {"ruleId": "B"}],
    })
    records = RoslynReportParser().parse(text)
    assert [r.id for r in records] == ["CA1000"]


def test_utf8_bom_tolerated():
    text = "\ufeff" + json.dumps([{"ruleId": "A"}])
    assert len(SonarReportParser().parse(text)) == 1


# ===================================================================
# Structural failures never raise
# ===================================================================
@pytest.mark.parametrize("text", [
    "",
    "   ",
    "{not json",
    json.dumps({"foo": 1}),
    json.dumps("just a string"),
    json.dumps({"issues": "nope"}),
])
def test_unrecognised_input_returns_empty_with_warning(text, caplog):
    with caplog.at_level(logging.WARNING):
        records = SonarReportParser().parse(text)
    assert records == []
    assert "could not parse report" in caplog.text


def test_detect_shape_raises_for_unknown_structure():
    with pytest.raises(ParseStructureError):
        detect_shape(load_document('{"foo": []}'))


def test_detect_shape_order():
    assert detect_shape([{"a": 1}]).shape is ReportShape.ISSUE_ARRAY
    assert detect_shape({"issues": []}).shape is ReportShape.ISSUE_ARRAY
    assert detect_shape({"runs": [], "issues": [1]}).shape is ReportShape.SARIF


def test_missing_file_returns_empty(tmp_path, caplog):
    parser = SonarReportParser(loader=FileLoader(str(tmp_path)))
    with caplog.at_level(logging.WARNING):
        records = parser.parse_file("reports/absent.json")
    assert records == []
    assert "not found" in caplog.text


def test_parse_file_reads_relative_to_base_dir(tmp_path):
    report = tmp_path / "roslyn.sarif"
    report.write_text(_sarif(_sarif_result()), encoding="utf-8")
    parser = RoslynReportParser(loader=FileLoader(str(tmp_path)))
    assert len(parser.parse_file("roslyn.sarif")) == 1


def test_parsing_is_deterministic():
    text = _sarif(_sarif_result(rule_id="A"), _sarif_result(rule_id="B", level="error"))
    parser = RoslynReportParser()
    assert parser.parse(text) == parser.parse(text)


# ===================================================================
# Deep links and component prefixes
# ===================================================================
def test_sonar_deep_link_and_project_prefix_stripped():
    text = json.dumps({"issues": [{
        "key": "AX-1", "rule": "csharpsquid:S1481", "severity": "MAJOR",
        "project": "my-proj", "component": "my-proj:src/App.cs", "line": 4,
        "message": "Remove unused variable",
    }]})
    parser = SonarReportParser(sonar_host_url="https://sonar.example.com/")
    record = parser.parse(text)[0]

    assert record.file_path == "src/App.cs"
    assert record.url == "https://sonar.example.com/project/issues?id=my-proj&open=AX-1"


def test_no_project_means_no_deep_link():
    record = SonarReportParser().parse(json.dumps([{"key": "AX-1"}]))[0]
    assert record.url is None


# ===================================================================
# Tool-tag filtering
# ===================================================================
_SHARED_REPORT = json.dumps([
    {"ruleId": "S1", "engineId": "SonarQube"},
    {"ruleId": "CA1", "externalRuleEngine": "roslyn"},
    {"ruleId": "U1"},
])


def test_foreign_engine_entries_skipped_by_default(caplog):
    with caplog.at_level(logging.INFO):
        sonar = SonarReportParser().parse(_SHARED_REPORT)
    roslyn = RoslynReportParser().parse(_SHARED_REPORT)

    assert [r.id for r in sonar] == ["S1", "U1"]
    assert [r.id for r in roslyn] == ["CA1", "U1"]
    assert "skipped 1 entry" in caplog.text


def test_foreign_engine_filter_can_be_disabled():
    parser = SonarReportParser(skip_foreign_engine_entries=False)
    assert [r.id for r in parser.parse(_SHARED_REPORT)] == ["S1", "CA1", "U1"]


def test_from_settings_carries_options():
    settings = AppSettings(skip_foreign_engine_entries=False, sonar_host_url="https://sq.local/")
    parser = SonarReportParser.from_settings(settings)
    assert parser.skip_foreign_engine_entries is False
    assert parser.sonar_host_url == "https://sq.local"


def test_custom_source_parser():
    parser = ReportParser(source="StyleCop", engine_names=["StyleCop"])
    text = json.dumps([{"ruleId": "SA1600", "engineId": "stylecop"}])
    records = parser.parse(text)
    assert records[0].source == "StyleCop"


# ===================================================================
# Severity vocabulary
# ===================================================================
@pytest.mark.parametrize("label,expected", [
    ("BLOCKER", Severity.CRITICAL),
    ("Critical", Severity.CRITICAL),
    ("error", Severity.CRITICAL),
    ("major", Severity.MAJOR),
    ("Warning", Severity.MAJOR),
    ("MINOR", Severity.MINOR),
    ("note", Severity.MINOR),
    ("INFO", Severity.INFO),
    ("whatever", Severity.INFO),
    ("", Severity.INFO),
    (None, Severity.INFO),
])
def test_normalize_severity(label, expected):
    assert normalize_severity(label) == expected
