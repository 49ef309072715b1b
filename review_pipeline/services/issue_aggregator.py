"""
Issue Aggregator
================
Merges parser outputs, removes duplicates and filters by severity.

Deduplication:
    Two records are the same finding when their fingerprints
    (source, id, file_path, line) are equal. The first occurrence wins, so
    the result is deterministic in input order (Sonar before Roslyn, each
    list's internal order preserved). Aggregating an already aggregated
    list returns an equal list.

Severity filter:
    Keeps records whose severity ordinal is >= the threshold's ordinal.
    Unknown threshold labels fall back to Major.

Neither operation mutates its inputs; both return new lists of new records.
"""
import logging
from typing import Iterable, List, Optional

from review_pipeline.models.issue_record import Fingerprint, IssueRecord, Severity

logger = logging.getLogger(__name__)


class IssueAggregator:

    def aggregate(self, *issue_lists: Optional[Iterable[IssueRecord]]) -> List[IssueRecord]:
        seen: set[Fingerprint] = set()
        unique: list[IssueRecord] = []
        total = 0

        for issues in issue_lists:
            for issue in issues or ():
                total += 1
                key = issue.fingerprint
                if key in seen:
                    continue
                seen.add(key)
                unique.append(issue.model_copy())

        if total != len(unique):
            logger.info("Removed %d duplicate issue(s) by fingerprint.", total - len(unique))
        return unique

    def filter_by_severity(
        self,
        issues: Iterable[IssueRecord],
        threshold_label: Optional[str],
    ) -> List[IssueRecord]:
        threshold = Severity.resolve_threshold(threshold_label)
        if threshold.value.lower() != (threshold_label or "").strip().lower():
            logger.warning(
                "Unknown severity threshold %r – defaulting to %s.", threshold_label, threshold.value
            )
        return [i.model_copy() for i in issues if i.severity.ordinal >= threshold.ordinal]
