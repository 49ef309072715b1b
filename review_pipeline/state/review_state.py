"""
Review State
TypedDict holding everything one orchestrator run produces.
Fields: correlation_id, stage history, issues, completion text, summary, etc.
"""
from enum import Enum
from typing import Dict, List, TypedDict

from review_pipeline.models.issue_record import IssueRecord


class ReviewStage(str, Enum):
    INIT = "Init"
    PARSING = "Parsing"
    AGGREGATING = "Aggregating"
    FILTERING = "Filtering"
    PROMPTING = "Prompting"
    SKIPPING_LLM = "SkippingLLM"
    SUMMARIZING = "Summarizing"
    PUBLISHING = "Publishing"
    DONE = "Done"


class ReviewState(TypedDict):
    correlation_id: str
    stage: ReviewStage
    stages: List[ReviewStage]       # Every stage entered, in order

    # Parsing / aggregation
    issue_counts: Dict[str, int]    # Source name → records parsed
    issues: List[IssueRecord]       # Aggregated, deduplicated
    relevant_issues: List[IssueRecord]  # After severity filtering

    # LLM stage
    llm_executed: bool
    llm_error: str
    completion_text: str

    # Final summary
    summary: str
    status: str                     # pending, success, error
    error: str
    elapsed_seconds: float
