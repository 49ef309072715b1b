"""
Issue Fingerprint Utility
=========================
Stable, compact identifiers for findings.

Fingerprint:
    (source, id, file_path, line) — the deduplication key.

Issue Signature:
    SHA-256 of the fingerprint, truncated to 16 hex chars. Used where a
    string key is needed (results.json, inline comment markers) so the same
    finding maps to the same key across runs.
"""
import hashlib

from review_pipeline.models.issue_record import IssueRecord


def generate_issue_signature(issue: IssueRecord) -> str:
    """
    Generate a deterministic signature for a finding.

    Parameters
    ----------
    issue : IssueRecord
        The finding to fingerprint.

    Returns
    -------
    str
        16-character hex digest; the line is rendered as 0 when absent.
    """
    source, rule_id, file_path, line = issue.fingerprint
    raw = f"{source}:{rule_id}:{file_path}:{line or 0}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]
