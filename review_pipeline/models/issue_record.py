"""
Issue Record Model
==================
Pydantic model for one normalized static-analysis finding.
This is the contract between the report parsers and every downstream stage.

Fields:
    source      — originating tool (SonarQube, Roslyn, ...), never empty
    id          — tool-local rule / issue identifier, empty if unknown
    severity    — Critical / Major / Minor / Info (unknown input → Info)
    message     — tool message, empty string when absent
    file_path   — repo-relative path as reported, not checked on disk
    line        — positive line number, None when the tool gives none
    url         — deep link to the finding, only when one can be derived

Fingerprint:
    (source, id, file_path, line) — two records with the same fingerprint
    are the same finding, whatever their message says.
"""
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

from review_pipeline.core.constants import DEFAULT_THRESHOLD, SEVERITY_ORDINALS


class Severity(str, Enum):
    CRITICAL = "Critical"
    MAJOR = "Major"
    MINOR = "Minor"
    INFO = "Info"

    @property
    def ordinal(self) -> int:
        return SEVERITY_ORDINALS[self.value]

    @classmethod
    def from_label(cls, label: Optional[str]) -> "Severity":
        """Case-insensitive lookup of a canonical label; anything else is Info."""
        if isinstance(label, str):
            for member in cls:
                if member.value.lower() == label.strip().lower():
                    return member
        return cls.INFO

    @classmethod
    def resolve_threshold(cls, label: Optional[str]) -> "Severity":
        """Like from_label, but unknown threshold labels fall back to Major."""
        if isinstance(label, str):
            for member in cls:
                if member.value.lower() == label.strip().lower():
                    return member
        return cls(DEFAULT_THRESHOLD)


Fingerprint = Tuple[str, str, str, Optional[int]]


class IssueRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    id: str = ""
    severity: Severity = Severity.INFO
    message: str = ""
    file_path: str = ""
    line: Optional[int] = None
    url: Optional[str] = None

    @field_validator("source")
    @classmethod
    def _source_required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("source must not be empty")
        return value

    @field_validator("id", "message", "file_path", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("line")
    @classmethod
    def _positive_line(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 1:
            raise ValueError("line must be a positive integer")
        return value

    @property
    def fingerprint(self) -> Fingerprint:
        return (self.source, self.id, self.file_path, self.line)
