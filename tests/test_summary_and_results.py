"""
Summary Builder & Results Writer Tests
======================================
"""
import json
import os

from review_pipeline.models.issue_record import IssueRecord, Severity
from review_pipeline.services.results_writer import ResultsWriter
from review_pipeline.services.summary_builder import ReviewSummaryBuilder
from review_pipeline.state.review_state import ReviewStage
from review_pipeline.utils.fingerprint import generate_issue_signature


ISSUES = [
    IssueRecord(source="SonarQube", id="S1", severity=Severity.CRITICAL,
                message="null deref", file_path="a.cs", line=10),
    IssueRecord(source="SonarQube", id="S2", severity=Severity.MINOR,
                message="naming", file_path="a.cs", line=20),
    IssueRecord(source="Roslyn", id="CA1", severity=Severity.MAJOR,
                message="dispose", file_path="b.cs"),
]


def _state(**overrides):
    state = {
        "correlation_id": "run-1",
        "stage": ReviewStage.DONE,
        "stages": [ReviewStage.INIT, ReviewStage.PARSING, ReviewStage.DONE],
        "issue_counts": {"SonarQube": 2, "Roslyn": 1},
        "issues": ISSUES,
        "relevant_issues": ISSUES[:1],
        "llm_executed": True,
        "llm_error": "",
        "completion_text": "Looks risky.",
        "summary": "## Static Analysis Review",
        "status": "success",
        "error": "",
        "elapsed_seconds": 1.23456,
    }
    state.update(overrides)
    return state


# ===================================================================
# ReviewSummaryBuilder
# ===================================================================
def test_summary_counts_by_severity_and_source():
    summary = ReviewSummaryBuilder().build_summary(ISSUES, "Fix the null deref first.")

    assert summary.startswith("## Static Analysis Review")
    assert "**3 issue(s)** found across all sources." in summary
    assert "| Critical | 1 |" in summary
    assert "| Major | 1 |" in summary
    assert "| Minor | 1 |" in summary
    assert "| Info | 0 |" in summary
    assert "| SonarQube | 2 |" in summary
    assert "| Roslyn | 1 |" in summary
    assert summary.rstrip().endswith("Fix the null deref first.")


def test_summary_severity_rows_ordered_critical_first():
    summary = ReviewSummaryBuilder().build_summary(ISSUES, "")
    positions = [summary.index(f"| {label} |") for label in ("Critical", "Major", "Minor", "Info")]
    assert positions == sorted(positions)


def test_summary_without_completion_notes_absence():
    summary = ReviewSummaryBuilder().build_summary(ISSUES, "")
    assert "AI review unavailable" in summary


def test_summary_of_no_issues():
    summary = ReviewSummaryBuilder().build_summary([], "")
    assert "**0 issue(s)**" in summary
    assert "| Source |" not in summary


# ===================================================================
# Issue signature
# ===================================================================
def test_signature_is_stable_and_fingerprint_based():
    a = ISSUES[0]
    reworded = a.model_copy(update={"message": "other text"})
    assert generate_issue_signature(a) == generate_issue_signature(reworded)
    assert len(generate_issue_signature(a)) == 16
    assert generate_issue_signature(a) != generate_issue_signature(ISSUES[1])


# ===================================================================
# ResultsWriter
# ===================================================================
def test_build_payload_shape():
    payload = ResultsWriter.build_payload(_state())

    assert payload["run"] == {
        "correlation_id": "run-1",
        "status": "success",
        "stages": ["Init", "Parsing", "Done"],
        "elapsed_seconds": 1.235,
    }
    assert payload["counts"] == {"per_source": {"SonarQube": 2, "Roslyn": 1}, "total": 3, "relevant": 1}
    assert payload["llm"] == {"executed": True, "error": "", "completion": "Looks risky."}
    assert payload["issues"][0]["severity"] == "Critical"
    assert payload["issues"][2]["line"] is None
    assert payload["issues"][0]["signature"] == generate_issue_signature(ISSUES[0])
    assert len(payload["relevant_issues"]) == 1


def test_write_results_creates_file(tmp_path):
    out = tmp_path / "nested" / "results.json"
    assert ResultsWriter.write_results(_state(), str(out)) is True

    with open(out, encoding="utf-8") as f:
        data = json.load(f)
    assert data["run"]["correlation_id"] == "run-1"
    assert data["summary"] == "## Static Analysis Review"


def test_write_results_failure_is_reported_not_raised(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    # parent "directory" is a regular file
    target = os.path.join(str(blocker), "results.json")
    assert ResultsWriter.write_results(_state(), target) is False
