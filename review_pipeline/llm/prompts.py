"""
LLM Prompts
===========
Builds the code-review prompt from the filtered issues and the run context.

Template:
    - Loaded from settings.prompt_template_path, else the packaged
      templates/code_review_prompt.txt
    - Must contain the {{ISSUES}} marker; the rendered issue list replaces it
    - Missing or blank template → built-in fallback (logged as a warning)

Issue Line Format:
    - [<severity>] <file_path>:<line, 0 when absent> - <message> (Source: <source>)

Run Context:
    The correlation id is appended as "RunId: <id>" so a completion can be
    traced back to the run that requested it.

Deterministic: same issues + same context → same prompt.
"""
import os
import logging
from typing import Iterable, Optional

from review_pipeline.core.constants import FALLBACK_PROMPT_TEMPLATE, ISSUES_MARKER
from review_pipeline.models.issue_record import IssueRecord
from review_pipeline.models.run_context import RunContext
from review_pipeline.services.file_loader import FileLoader

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_PATH = os.path.join(os.path.dirname(__file__), "templates", "code_review_prompt.txt")


def format_issue_line(issue: IssueRecord) -> str:
    return (
        f"- [{issue.severity.value}] {issue.file_path}:{issue.line or 0} "
        f"- {issue.message} (Source: {issue.source})"
    )


class PromptBuilder:

    def __init__(self, loader: Optional[FileLoader] = None) -> None:
        self.loader = loader or FileLoader()

    def _load_template(self, context: RunContext) -> str:
        path = context.settings.prompt_template_path or DEFAULT_TEMPLATE_PATH
        template = self.loader.load_text(path)
        if not template or not template.strip():
            logger.warning("Prompt template not found at %s; using fallback simple prompt.", path)
            return FALLBACK_PROMPT_TEMPLATE
        if ISSUES_MARKER not in template:
            logger.warning("Prompt template %s has no %s marker; issues appended at the end.", path, ISSUES_MARKER)
            template = template.rstrip("\n") + "\n\n" + ISSUES_MARKER
        return template

    def build_prompt(self, issues: Iterable[IssueRecord], context: RunContext) -> str:
        """
        Render the prompt for a list of issues.

        Parameters
        ----------
        issues : Iterable[IssueRecord]
            Severity-filtered issues, in aggregation order.
        context : RunContext
            Supplies the template location and the correlation id.

        Returns
        -------
        str
            Prompt text ending with the RunId line.
        """
        template = self._load_template(context)
        issues_text = "".join(format_issue_line(i) + "\n" for i in issues)

        prompt = template.replace(ISSUES_MARKER, issues_text)
        prompt += f"\n\nRunId: {context.correlation_id}\n"
        return prompt
