"""
Orchestrator
============
Drives one review run through its stages:

    Init → Parsing → Aggregating → Filtering → (Prompting | SkippingLLM)
         → Summarizing → Publishing → Done

Branching:
    Prompting runs only when at least one issue passed the severity filter
    AND settings.llm_enabled is true. Otherwise the LLM stage is skipped and
    the run continues with an empty completion text.

Failure Isolation:
    - Construction — an LLM client that cannot serve the configured provider
                     raises ConfigurationError before any stage runs
    - Parsing      — parsers never raise; a broken/missing report contributes
                     zero issues (already logged by the parser)
    - Prompting    — any LLMError is logged and degrades to "no completion";
                     the run continues
    - Summarizing  — failures propagate (fatal)
    - Publishing   — failures propagate as PublishError (fatal)

Concurrency:
    The two report parses are independent and run concurrently in worker
    threads; the orchestrator waits for both before aggregating. Every stage
    consumes immutable inputs and returns new values, so no locking is needed.

Output:
    Done always yields the aggregated issue list, the (possibly empty)
    completion text and the summary, whether or not the LLM stage ran.
"""
import time
import logging
import asyncio
from typing import List, Optional, Tuple

from review_pipeline.core.config import AppSettings
from review_pipeline.core.errors import ConfigurationError, LLMError, PublishError
from review_pipeline.feedback.publisher import FeedbackPublisher, LoggingFeedbackPublisher
from review_pipeline.llm.client import LLMClient
from review_pipeline.llm.prompts import PromptBuilder
from review_pipeline.llm.router import get_llm_client
from review_pipeline.models.issue_record import IssueRecord
from review_pipeline.models.run_context import RunContext
from review_pipeline.parser.report_parser import ReportParser, RoslynReportParser, SonarReportParser
from review_pipeline.services.file_loader import FileLoader
from review_pipeline.services.issue_aggregator import IssueAggregator
from review_pipeline.services.results_writer import ResultsWriter
from review_pipeline.services.summary_builder import ReviewSummaryBuilder
from review_pipeline.state.review_state import ReviewStage, ReviewState
from review_pipeline.utils.logging_config import bind_run_id, reset_run_id

logger = logging.getLogger(__name__)


def _initial_state(context: RunContext) -> ReviewState:
    return {
        "correlation_id": context.correlation_id,
        "stage": ReviewStage.INIT,
        "stages": [ReviewStage.INIT],
        "issue_counts": {},
        "issues": [],
        "relevant_issues": [],
        "llm_executed": False,
        "llm_error": "",
        "completion_text": "",
        "summary": "",
        "status": "pending",
        "error": "",
        "elapsed_seconds": 0.0,
    }


def _enter(state: ReviewState, stage: ReviewStage) -> None:
    state["stage"] = stage
    state["stages"].append(stage)
    logger.info("Stage: %s", stage.value)


class Orchestrator:
    """
    Sequences parsers, aggregator, prompt builder, LLM client and feedback
    publisher for a single run.

    Every collaborator can be injected (tests, alternative backends);
    defaults are built from the run context's settings.
    """

    def __init__(
        self,
        context: RunContext,
        sonar_parser: Optional[ReportParser] = None,
        roslyn_parser: Optional[ReportParser] = None,
        aggregator: Optional[IssueAggregator] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        llm_client: Optional[LLMClient] = None,
        publisher: Optional[FeedbackPublisher] = None,
        summary_builder: Optional[ReviewSummaryBuilder] = None,
        loader: Optional[FileLoader] = None,
    ) -> None:
        settings = context.settings
        loader = loader or FileLoader()

        self.context = context
        self.sonar_parser = sonar_parser or SonarReportParser.from_settings(settings, loader)
        self.roslyn_parser = roslyn_parser or RoslynReportParser.from_settings(settings, loader)
        self.aggregator = aggregator or IssueAggregator()
        self.prompt_builder = prompt_builder or PromptBuilder(loader)
        self.llm_client, self._owns_llm_client = self._resolve_llm_client(settings, llm_client)
        self.publisher = publisher or LoggingFeedbackPublisher()
        self.summary_builder = summary_builder or ReviewSummaryBuilder()

        # Last state seen, readable by callers if run() raises
        self._partial_state: Optional[ReviewState] = None

    @staticmethod
    def _resolve_llm_client(
        settings: AppSettings, llm_client: Optional[LLMClient]
    ) -> Tuple[Optional[LLMClient], bool]:
        """
        Pick the LLM client before any stage runs.

        Raises
        ------
        ConfigurationError
            If no client serves the configured provider, or the injected
            client cannot use the configured provider settings.
        """
        if not settings.llm_enabled:
            return llm_client, False
        if llm_client is None:
            return get_llm_client(settings.llm), True
        if not llm_client.accepts(settings.llm):
            raise ConfigurationError(
                f"{type(llm_client).__name__} cannot use {type(settings.llm).__name__} "
                f"(provider '{settings.llm.provider}')"
            )
        return llm_client, False

    async def run(self) -> ReviewState:
        """Execute the full review pipeline once."""
        token = bind_run_id(self.context.correlation_id)
        run_start = time.time()
        state = _initial_state(self.context)
        self._partial_state = state
        settings = self.context.settings

        logger.info("Pipeline run id: %s", self.context.correlation_id)

        try:
            # ===========================================================
            # 1. Parse both reports concurrently
            # ===========================================================
            _enter(state, ReviewStage.PARSING)
            sonar_issues, roslyn_issues = await self._parse_reports()
            state["issue_counts"] = {
                self.sonar_parser.source: len(sonar_issues),
                self.roslyn_parser.source: len(roslyn_issues),
            }
            logger.info(
                "Parsed %d %s issues and %d %s issues.",
                len(sonar_issues), self.sonar_parser.source,
                len(roslyn_issues), self.roslyn_parser.source,
            )

            # ===========================================================
            # 2. Aggregate + dedupe
            # ===========================================================
            _enter(state, ReviewStage.AGGREGATING)
            issues = self.aggregator.aggregate(sonar_issues, roslyn_issues)
            state["issues"] = issues
            logger.info("Aggregated %d unique issues.", len(issues))

            # ===========================================================
            # 3. Severity filter
            # ===========================================================
            _enter(state, ReviewStage.FILTERING)
            relevant = self.aggregator.filter_by_severity(issues, settings.severity_threshold)
            state["relevant_issues"] = relevant
            logger.info(
                "%d issues meet severity threshold %s.", len(relevant), settings.severity_threshold
            )

            # ===========================================================
            # 4. LLM review (fail-soft)
            # ===========================================================
            if relevant and settings.llm_enabled:
                _enter(state, ReviewStage.PROMPTING)
                state["completion_text"] = await self._request_completion(relevant, state)
            else:
                _enter(state, ReviewStage.SKIPPING_LLM)
                reason = "LLM disabled" if not settings.llm_enabled else "no relevant issues"
                logger.info("Skipping LLM call (%s).", reason)

            # ===========================================================
            # 5. Summary
            # ===========================================================
            _enter(state, ReviewStage.SUMMARIZING)
            state["summary"] = self.summary_builder.build_summary(issues, state["completion_text"])

            # ===========================================================
            # 6. Publish (fatal on failure)
            # ===========================================================
            _enter(state, ReviewStage.PUBLISHING)
            await self._publish(issues, state["completion_text"], state["summary"])
            logger.info("Feedback publishing completed.")

            state["status"] = "success"
            state["elapsed_seconds"] = time.time() - run_start
            _enter(state, ReviewStage.DONE)

            if settings.results_path:
                ResultsWriter.write_results(state, settings.results_path)

            logger.info(
                "Pipeline finished: %d issues, %d relevant, LLM %s in %.2fs.",
                len(issues), len(relevant),
                "executed" if state["llm_executed"] else "skipped",
                state["elapsed_seconds"],
            )
            return state

        except Exception as exc:
            state["status"] = "error"
            state["error"] = str(exc)
            state["elapsed_seconds"] = time.time() - run_start
            logger.error("Pipeline failed at stage %s: %s", state["stage"].value, exc)
            raise
        finally:
            reset_run_id(token)

    # -----------------------------------------------------------------------
    # Stage helpers
    # -----------------------------------------------------------------------
    async def _parse_reports(self) -> Tuple[List[IssueRecord], List[IssueRecord]]:
        settings = self.context.settings
        sonar, roslyn = await asyncio.gather(
            asyncio.to_thread(self.sonar_parser.parse_file, settings.sonar_report_path),
            asyncio.to_thread(self.roslyn_parser.parse_file, settings.roslyn_report_path),
        )
        return sonar, roslyn

    async def _request_completion(self, relevant: List[IssueRecord], state: ReviewState) -> str:
        """Single LLM attempt. Any LLMError becomes an empty completion."""
        settings = self.context.settings
        client = self.llm_client
        state["llm_executed"] = True

        try:
            prompt = self.prompt_builder.build_prompt(relevant, self.context)
            logger.info(
                "Sending prompt for %d issue(s) to LLM provider '%s'.",
                len(relevant), settings.llm.provider,
            )
            completion = await client.send_prompt(prompt, settings.llm)
            logger.info("Received response from LLM.")
            return completion
        except LLMError as exc:
            state["llm_error"] = f"{type(exc).__name__}: {exc}"
            logger.error("LLM call failed: %s. Continuing without LLM.", state["llm_error"])
            return ""
        finally:
            if self._owns_llm_client:
                await client.close()

    async def _publish(self, issues: List[IssueRecord], completion_text: str, summary: str) -> None:
        try:
            await self.publisher.publish_inline_comments(issues, completion_text)
            await self.publisher.publish_summary(summary)
        except PublishError:
            raise
        except Exception as exc:
            raise PublishError(f"Feedback publishing failed: {exc}") from exc
