"""
Feedback Publisher
==================
Contract for delivering review results to a pull request.

Operations:
    publish_inline_comments(issues, completion_text)
    publish_summary(summary_text)

Both are fire-and-forget from the orchestrator's point of view, but any
failure is FATAL to the run: implementations raise PublishError (other
exceptions are wrapped into PublishError by the orchestrator).

The real PR backend is outside this project. LoggingFeedbackPublisher is
the default implementation: it narrates what would be posted.
"""
import logging
from abc import ABC, abstractmethod
from typing import Iterable

from review_pipeline.models.issue_record import IssueRecord
from review_pipeline.utils.fingerprint import generate_issue_signature

logger = logging.getLogger(__name__)


class FeedbackPublisher(ABC):

    @abstractmethod
    async def publish_inline_comments(self, issues: Iterable[IssueRecord], completion_text: str) -> None:
        """Post one inline comment per issue that has a file location."""

    @abstractmethod
    async def publish_summary(self, summary_text: str) -> None:
        """Post the global review summary."""


class LoggingFeedbackPublisher(FeedbackPublisher):
    """Writes comments and the summary to the execution log instead of a PR."""

    async def publish_inline_comments(self, issues: Iterable[IssueRecord], completion_text: str) -> None:
        logger.info("Publishing inline comments (log only).")
        count = 0
        for issue in issues:
            if not issue.file_path:
                continue
            count += 1
            logger.info(
                "[Inline %s] %s:%s [%s] %s",
                generate_issue_signature(issue), issue.file_path, issue.line or 0,
                issue.severity.value, issue.message,
            )
        logger.info(
            "Inline comments: %d issue(s), AI review %s.",
            count, "attached" if completion_text else "not available",
        )

    async def publish_summary(self, summary_text: str) -> None:
        logger.info("Publishing PR summary (log only):\n%s", summary_text or "(empty)")
