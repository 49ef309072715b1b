"""
Issue Aggregator Tests
======================
Deduplication by fingerprint and severity filtering.
"""
import logging

from review_pipeline.models.issue_record import IssueRecord, Severity
from review_pipeline.services.issue_aggregator import IssueAggregator


def _issue(source="SonarQube", id="S001", severity=Severity.MAJOR, file_path="a.cs",
           line=10, message="msg"):
    return IssueRecord(
        source=source, id=id, severity=severity,
        message=message, file_path=file_path, line=line,
    )


# ===================================================================
# aggregate()
# ===================================================================
def test_duplicates_removed_first_seen_wins():
    first = _issue(message="first")
    dup = _issue(message="second wording")
    other = _issue(line=11)

    result = IssueAggregator().aggregate([first, dup], [other])

    assert len(result) == 2
    assert result[0].message == "first"
    assert result[1].line == 11


def test_same_rule_different_source_is_not_a_duplicate():
    sonar = _issue(source="SonarQube")
    roslyn = _issue(source="Roslyn")
    assert len(IssueAggregator().aggregate([sonar], [roslyn])) == 2


def test_order_follows_input_order():
    a, b, c = _issue(id="A"), _issue(id="B"), _issue(id="C")
    result = IssueAggregator().aggregate([b, a], [c, a])
    assert [i.id for i in result] == ["B", "A", "C"]


def test_aggregate_is_idempotent():
    aggregator = IssueAggregator()
    once = aggregator.aggregate([_issue(id="A"), _issue(id="A"), _issue(id="B")])
    twice = aggregator.aggregate(once)
    assert once == twice


def test_aggregate_treats_none_as_empty():
    assert IssueAggregator().aggregate(None, [_issue()]) == [_issue()]
    assert IssueAggregator().aggregate() == []


def test_aggregate_does_not_mutate_inputs():
    sonar = [_issue(id="A"), _issue(id="A")]
    IssueAggregator().aggregate(sonar)
    assert len(sonar) == 2


def test_missing_line_is_part_of_fingerprint():
    no_line = _issue(line=None)
    with_line = _issue(line=1)
    assert len(IssueAggregator().aggregate([no_line, with_line, _issue(line=None)])) == 2


# ===================================================================
# filter_by_severity()
# ===================================================================
def test_filter_keeps_threshold_and_above():
    issues = [
        _issue(id="C", severity=Severity.CRITICAL),
        _issue(id="M", severity=Severity.MAJOR),
        _issue(id="m", severity=Severity.MINOR),
        _issue(id="i", severity=Severity.INFO),
    ]
    aggregator = IssueAggregator()
    assert [i.id for i in aggregator.filter_by_severity(issues, "Critical")] == ["C"]
    assert [i.id for i in aggregator.filter_by_severity(issues, "major")] == ["C", "M"]
    assert [i.id for i in aggregator.filter_by_severity(issues, "Minor")] == ["C", "M", "m"]
    assert len(aggregator.filter_by_severity(issues, "INFO")) == 4


def test_filter_is_monotonic():
    issues = [_issue(id=str(n), severity=s) for n, s in enumerate(Severity)]
    aggregator = IssueAggregator()
    labels = ["Critical", "Major", "Minor", "Info"]
    sizes = [len(aggregator.filter_by_severity(issues, label)) for label in labels]
    assert sizes == sorted(sizes)


def test_unknown_threshold_defaults_to_major(caplog):
    issues = [
        _issue(id="M", severity=Severity.MAJOR),
        _issue(id="m", severity=Severity.MINOR),
    ]
    with caplog.at_level(logging.WARNING):
        result = IssueAggregator().filter_by_severity(issues, "Urgent")
    assert [i.id for i in result] == ["M"]
    assert "defaulting to Major" in caplog.text


def test_critical_threshold_drops_minor_in_same_file():
    critical = _issue(id="S001", severity=Severity.CRITICAL, file_path="a.cs", line=10)
    minor = _issue(id="S002", severity=Severity.MINOR, file_path="a.cs", line=20)

    aggregator = IssueAggregator()
    merged = aggregator.aggregate([critical, minor])
    assert aggregator.filter_by_severity(merged, "Critical") == [critical]
    assert aggregator.filter_by_severity([critical], "Major") == [critical]


def test_filter_of_empty_list():
    assert IssueAggregator().filter_by_severity([], "Major") == []
