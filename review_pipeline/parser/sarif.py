"""
SARIF Extraction
================
Turns the "runs" list of a SARIF document into RawFinding objects.

Consumed subset:
    runs[].results[] → ruleId, level, message ({text} or string),
                       locations[0].physicalLocation.{artifactLocation.uri, region.startLine}
                       (or the legacy locations[0].resultFile.{uri, region.startLine})

Tolerance:
    - a run without a results array is skipped
    - a result that is not an object is skipped with a warning
    - a result without locations keeps an empty path and no line
    - every result that IS an object yields exactly one finding
"""
import logging
from typing import Any, Iterator, List

from review_pipeline.parser.fields import (
    SARIF_LOCATION_FIELDS,
    SARIF_RESULT_FIELDS,
    RawFinding,
    normalize_severity,
    probe_line,
    probe_text,
)
from review_pipeline.utils.path_utils import normalize_report_path

logger = logging.getLogger(__name__)


def _first_location(result: dict) -> Any:
    locations = result.get("locations")
    if isinstance(locations, list) and locations:
        return locations[0]
    return None


def sarif_result_to_finding(result: dict) -> RawFinding:
    location = _first_location(result)
    uri = probe_text(location, SARIF_LOCATION_FIELDS["uri"])
    engine = probe_text(result, SARIF_RESULT_FIELDS["engine"]) or None

    return RawFinding(
        rule_id=probe_text(result, SARIF_RESULT_FIELDS["id"]),
        severity=normalize_severity(probe_text(result, SARIF_RESULT_FIELDS["severity"], default="")),
        message=probe_text(result, SARIF_RESULT_FIELDS["message"]),
        file_path=normalize_report_path(uri) if uri else "",
        line=probe_line(location, SARIF_LOCATION_FIELDS["line"]),
        engine=engine,
    )


def iter_sarif_findings(runs: List[Any]) -> Iterator[RawFinding]:
    """Yield one finding per SARIF result object, in document order."""
    for run_index, run in enumerate(runs):
        if not isinstance(run, dict):
            logger.warning("SARIF run #%d is not an object – skipping", run_index)
            continue

        results = run.get("results")
        if not isinstance(results, list):
            logger.debug("SARIF run #%d has no results array", run_index)
            continue

        for result_index, result in enumerate(results):
            if not isinstance(result, dict):
                logger.warning(
                    "SARIF run #%d result #%d is not an object – skipping",
                    run_index, result_index,
                )
                continue
            yield sarif_result_to_finding(result)
