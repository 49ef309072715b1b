"""
Report Shape Detection
======================
Decides which schema family a report document belongs to.

Detection order (shapes overlap structurally, so order matters):
    1. object with a "runs" array    → SARIF
    2. root array                    → issue array (bare)
    3. object with an "issues" array → issue array (wrapped)
    4. anything else                 → ParseStructureError

Text that is empty or not valid JSON also raises ParseStructureError.
The caller (ReportParser.parse) turns that into a logged warning.
"""
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, List

from review_pipeline.core.errors import ParseStructureError


class ReportShape(str, Enum):
    SARIF = "sarif"
    ISSUE_ARRAY = "issue_array"


@dataclass(frozen=True)
class DetectedReport:
    """A decoded report plus the list to iterate (SARIF runs or issue items)."""
    shape: ReportShape
    entries: List[Any]


def load_document(raw_text: str) -> Any:
    """Decode report text as JSON, tolerating a UTF-8 byte-order mark."""
    if raw_text is None or not raw_text.strip():
        raise ParseStructureError("report is empty")

    text = raw_text.lstrip("\ufeff")
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ParseStructureError(f"report is not valid JSON: {exc}") from exc


def detect_shape(document: Any) -> DetectedReport:
    """
    Classify a decoded report.

    Raises
    ------
    ParseStructureError
        If no known shape matches.
    """
    if isinstance(document, dict) and isinstance(document.get("runs"), list):
        return DetectedReport(ReportShape.SARIF, document["runs"])

    if isinstance(document, list):
        return DetectedReport(ReportShape.ISSUE_ARRAY, document)

    if isinstance(document, dict) and isinstance(document.get("issues"), list):
        return DetectedReport(ReportShape.ISSUE_ARRAY, document["issues"])

    kind = type(document).__name__
    keys = sorted(document.keys())[:10] if isinstance(document, dict) else []
    raise ParseStructureError(
        f"no recognizable SARIF or issue-array structure (top-level {kind}, keys={keys})"
    )
