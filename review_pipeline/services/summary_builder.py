"""
Review Summary Builder
======================
Renders the global review summary handed to the feedback publisher.

Layout (markdown):
    ## Static Analysis Review
    **N issue(s)** found across all sources.
    | Severity | Count |   — Critical → Info, zero rows included
    | Source | Count |     — in order of first appearance
    ### AI Review           — completion text, or a note that none is available
"""
from typing import Dict, Iterable, List

from review_pipeline.models.issue_record import IssueRecord, Severity

_NO_COMPLETION_NOTE = "_AI review unavailable for this run (LLM skipped or failed)._"


class ReviewSummaryBuilder:

    def build_summary(self, issues: Iterable[IssueRecord], completion_text: str) -> str:
        issue_list = list(issues)

        by_severity: Dict[Severity, int] = {s: 0 for s in Severity}
        by_source: Dict[str, int] = {}
        for issue in issue_list:
            by_severity[issue.severity] += 1
            by_source[issue.source] = by_source.get(issue.source, 0) + 1

        lines: List[str] = [
            "## Static Analysis Review",
            "",
            f"**{len(issue_list)} issue(s)** found across all sources.",
            "",
            "| Severity | Count |",
            "|---|---|",
        ]
        for severity in sorted(Severity, key=lambda s: s.ordinal, reverse=True):
            lines.append(f"| {severity.value} | {by_severity[severity]} |")

        if by_source:
            lines += ["", "| Source | Count |", "|---|---|"]
            lines += [f"| {source} | {count} |" for source, count in by_source.items()]

        lines += ["", "### AI Review", ""]
        text = (completion_text or "").strip()
        lines.append(text if text else _NO_COMPLETION_NOTE)

        return "\n".join(lines) + "\n"
