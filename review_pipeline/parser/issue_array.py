"""
Issue-Array Extraction
======================
Turns the items of a custom issue array (bare list or {"issues": [...]})
into RawFinding objects. Each field goes through the ordered alias table in
parser/fields.py, so both the canonical (ruleId/level) and the legacy
(key/severity) conventions produce identical findings.
"""
import logging
from typing import Any, Iterator, List

from review_pipeline.parser.fields import (
    ISSUE_ARRAY_FIELDS,
    RawFinding,
    normalize_severity,
    probe_line,
    probe_text,
)
from review_pipeline.utils.path_utils import normalize_report_path

logger = logging.getLogger(__name__)


def _strip_project_prefix(path: str, project: str) -> str:
    """Sonar components look like "<projectKey>:<path>"; keep only the path."""
    prefix = f"{project}:"
    if project and path.startswith(prefix):
        return path[len(prefix):]
    return path


def issue_item_to_finding(item: dict) -> RawFinding:
    project = probe_text(item, ISSUE_ARRAY_FIELDS["project"]) or None
    raw_path = probe_text(item, ISSUE_ARRAY_FIELDS["file_path"])
    if project:
        raw_path = _strip_project_prefix(raw_path, project)

    return RawFinding(
        rule_id=probe_text(item, ISSUE_ARRAY_FIELDS["id"]),
        severity=normalize_severity(probe_text(item, ISSUE_ARRAY_FIELDS["severity"], default="")),
        message=probe_text(item, ISSUE_ARRAY_FIELDS["message"]),
        file_path=normalize_report_path(raw_path) if raw_path else "",
        line=probe_line(item, ISSUE_ARRAY_FIELDS["line"]),
        engine=probe_text(item, ISSUE_ARRAY_FIELDS["engine"]) or None,
        project=project,
        issue_key=probe_text(item, ISSUE_ARRAY_FIELDS["issue_key"]) or None,
    )


def iter_issue_findings(items: List[Any]) -> Iterator[RawFinding]:
    """Yield one finding per object item; non-object items are skipped."""
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("Issue #%d is not an object (%s) – skipping", index, type(item).__name__)
            continue
        yield issue_item_to_finding(item)
