"""
Report Parser
=============
Converts raw analyzer report text into normalized IssueRecord objects.

Pipeline:
    1. Decode JSON (empty / invalid text → warning, no records)
    2. Detect the shape: SARIF → bare issue array → {"issues": [...]}
    3. Extract RawFindings through the ordered field-alias table
    4. Drop entries tagged with another tool's engine (configurable)
    5. Attach source name and, when a project id is known, a deep link

Contract:
    - parse() NEVER raises. Structural failures are logged as warnings and
      whatever was extracted before the failure is returned.
    - Same text → same records, in document order.
    - Parser output is never mutated after it is returned.

Tool-tag filtering:
    A report file can be shared by several tools. Entries carrying an
    engine tag (externalRuleEngine / engineId) that names a DIFFERENT tool
    are skipped when skip_foreign_engine_entries is on (default), so the
    same finding is not counted once per parser. Untagged entries are
    always kept.
"""
import logging
from typing import FrozenSet, Iterable, List, Optional
from urllib.parse import quote

from pydantic import ValidationError

from review_pipeline.core.config import AppSettings
from review_pipeline.core.constants import ROSLYN_SOURCE, SONAR_SOURCE
from review_pipeline.models.issue_record import IssueRecord
from review_pipeline.parser.detection import ReportShape, detect_shape, load_document
from review_pipeline.parser.fields import RawFinding
from review_pipeline.parser.issue_array import iter_issue_findings
from review_pipeline.parser.sarif import iter_sarif_findings
from review_pipeline.services.file_loader import FileLoader

logger = logging.getLogger(__name__)


class ReportParser:
    """
    Schema-detecting parser for one originating tool.

    Subclasses only pin ``source`` and ``engine_names``; every subclass
    accepts every supported report shape.
    """

    source: str = "Unknown"
    engine_names: FrozenSet[str] = frozenset()

    def __init__(
        self,
        loader: Optional[FileLoader] = None,
        sonar_host_url: str = "https://sonarcloud.io",
        skip_foreign_engine_entries: bool = True,
        source: Optional[str] = None,
        engine_names: Optional[Iterable[str]] = None,
    ) -> None:
        self.loader = loader or FileLoader()
        self.sonar_host_url = sonar_host_url.rstrip("/")
        self.skip_foreign_engine_entries = skip_foreign_engine_entries
        if source:
            self.source = source
        if engine_names is not None:
            self.engine_names = frozenset(n.lower() for n in engine_names)

    @classmethod
    def from_settings(cls, settings: AppSettings, loader: Optional[FileLoader] = None) -> "ReportParser":
        return cls(
            loader=loader,
            sonar_host_url=settings.sonar_host_url,
            skip_foreign_engine_entries=settings.skip_foreign_engine_entries,
        )

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------
    def parse_file(self, path: str) -> List[IssueRecord]:
        """Load and parse a report file; a missing file means zero issues."""
        text = self.loader.load_text(path)
        if text is None:
            logger.warning("%s report not found at %s. Returning empty list.", self.source, path)
            return []
        return self.parse(text)

    def parse(self, raw_text: str) -> List[IssueRecord]:
        """
        Parse report text into IssueRecords.

        Parameters
        ----------
        raw_text : str
            Report contents (SARIF or issue-array JSON).

        Returns
        -------
        List[IssueRecord]
            Records extracted before any failure; possibly empty.
        """
        records: list[IssueRecord] = []
        skipped_foreign = 0

        try:
            report = detect_shape(load_document(raw_text))
            if report.shape is ReportShape.SARIF:
                findings = iter_sarif_findings(report.entries)
            else:
                findings = iter_issue_findings(report.entries)

            for finding in findings:
                if self._is_foreign(finding.engine):
                    skipped_foreign += 1
                    continue
                record = self._to_record(finding)
                if record is not None:
                    records.append(record)

            logger.info(
                "%s parser: mapped %d issues from %s report.",
                self.source, len(records), report.shape.value,
            )
        except Exception as exc:
            logger.warning(
                "%s parser: could not parse report (%s). Keeping %d issue(s) extracted so far.",
                self.source, exc, len(records),
            )

        if skipped_foreign:
            logger.info(
                "%s parser: skipped %d entr%s tagged with another tool's engine.",
                self.source, skipped_foreign, "y" if skipped_foreign == 1 else "ies",
            )
        return records

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------
    def _is_foreign(self, engine: Optional[str]) -> bool:
        if not self.skip_foreign_engine_entries or not engine:
            return False
        return engine.strip().lower() not in self.engine_names

    def _deep_link(self, finding: RawFinding) -> Optional[str]:
        if not finding.project:
            return None
        url = f"{self.sonar_host_url}/project/issues?id={quote(finding.project, safe='')}"
        key = finding.issue_key or finding.rule_id
        if key:
            url += f"&open={quote(key, safe='')}"
        return url

    def _to_record(self, finding: RawFinding) -> Optional[IssueRecord]:
        try:
            return IssueRecord(
                source=self.source,
                id=finding.rule_id,
                severity=finding.severity,
                message=finding.message,
                file_path=finding.file_path,
                line=finding.line,
                url=self._deep_link(finding),
            )
        except ValidationError as exc:
            logger.warning("%s parser: dropping unmappable entry: %s", self.source, exc)
            return None


class SonarReportParser(ReportParser):
    """SonarQube / SonarCloud issue exports."""
    source = SONAR_SOURCE
    engine_names = frozenset({"sonarqube", "sonar", "sonarcloud", "sonaranalyzer"})


class RoslynReportParser(ReportParser):
    """Roslyn analyzer output (SARIF from /errorlog or a custom JSON dump)."""
    source = ROSLYN_SOURCE
    engine_names = frozenset({"roslyn"})
