"""
Field Alias Resolution
======================
One ordered alias table per report shape. Producers emit the same logical
field under different names, so every lookup walks the candidate paths in
order and takes the first one that is PRESENT and CORRECTLY TYPED:

    canonical name  →  legacy alias(es)  →  safe default (caller supplies)

A present-but-wrong-typed value counts as absent, so one bad field never
aborts the record it belongs to.

Issue arrays (bare list or {"issues": [...]}):
    id          ruleId → key → rule
    severity    level → severity
    message     message.text → message (plain string)
    file_path   filePath → component
    line        line → textRange.startLine
    engine      externalRuleEngine → engineId
    project     project
    issue_key   key

SARIF results:
    id          ruleId → rule.id
    severity    level
    message     message.text → message (plain string)
    engine      externalRuleEngine → properties.externalRuleEngine

SARIF locations (first element of result.locations):
    uri         physicalLocation.artifactLocation.uri → resultFile.uri
    line        physicalLocation.region.startLine → resultFile.region.startLine

Severity labels are normalised here, at the parser boundary, and never
travel further as raw strings.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from review_pipeline.models.issue_record import Severity

FieldPath = Tuple[str, ...]


@dataclass(frozen=True)
class RawFinding:
    """Fields pulled out of one report entry, before source/link assignment."""
    rule_id: str = ""
    severity: Severity = Severity.INFO
    message: str = ""
    file_path: str = ""
    line: Optional[int] = None
    engine: Optional[str] = None
    project: Optional[str] = None
    issue_key: Optional[str] = None

ISSUE_ARRAY_FIELDS: Dict[str, Tuple[FieldPath, ...]] = {
    "id": (("ruleId",), ("key",), ("rule",)),
    "severity": (("level",), ("severity",)),
    "message": (("message", "text"), ("message",)),
    "file_path": (("filePath",), ("component",)),
    "line": (("line",), ("textRange", "startLine")),
    "engine": (("externalRuleEngine",), ("engineId",)),
    "project": (("project",),),
    "issue_key": (("key",),),
}

SARIF_RESULT_FIELDS: Dict[str, Tuple[FieldPath, ...]] = {
    "id": (("ruleId",), ("rule", "id")),
    "severity": (("level",),),
    "message": (("message", "text"), ("message",)),
    "engine": (("externalRuleEngine",), ("properties", "externalRuleEngine")),
}

SARIF_LOCATION_FIELDS: Dict[str, Tuple[FieldPath, ...]] = {
    "uri": (
        ("physicalLocation", "artifactLocation", "uri"),
        ("resultFile", "uri"),
    ),
    "line": (
        ("physicalLocation", "region", "startLine"),
        ("resultFile", "region", "startLine"),
    ),
}

# Vendor severity vocabulary → canonical severity (lower-cased keys)
SEVERITY_ALIASES: Dict[str, Severity] = {
    "blocker": Severity.CRITICAL,
    "critical": Severity.CRITICAL,
    "error": Severity.CRITICAL,
    "major": Severity.MAJOR,
    "warning": Severity.MAJOR,
    "minor": Severity.MINOR,
    "note": Severity.MINOR,
    "info": Severity.INFO,
    "none": Severity.INFO,
}


def _walk(entry: Any, path: FieldPath) -> Any:
    node = entry
    for key in path:
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


def probe(
    entry: Any,
    paths: Tuple[FieldPath, ...],
    coerce: Callable[[Any], Any],
) -> Any:
    """
    Return the first candidate value that ``coerce`` accepts.

    ``coerce`` returns the converted value, or None to reject it.
    """
    for path in paths:
        value = coerce(_walk(entry, path))
        if value is not None:
            return value
    return None


def as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def as_line(value: Any) -> Optional[int]:
    """Positive int (or integral float, or digit string); anything else is rejected."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        return int(value) if value.is_integer() and value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        number = int(value.strip())
        return number if number > 0 else None
    return None


def probe_text(entry: Any, paths: Tuple[FieldPath, ...], default: str = "") -> str:
    value = probe(entry, paths, as_text)
    return default if value is None else value


def probe_line(entry: Any, paths: Tuple[FieldPath, ...]) -> Optional[int]:
    return probe(entry, paths, as_line)


def normalize_severity(label: Optional[str]) -> Severity:
    """Map a vendor severity/level string onto the four canonical values."""
    if not isinstance(label, str):
        return Severity.INFO
    return SEVERITY_ALIASES.get(label.strip().lower(), Severity.INFO)
