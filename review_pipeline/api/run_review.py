"""
POST /run-review
Runs one review pipeline with optional per-request overrides and returns the
run outcome: counts, relevant issues, AI completion and summary.
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from review_pipeline.agents.orchestrator import Orchestrator
from review_pipeline.core.config import load_settings
from review_pipeline.core.errors import ReviewPipelineError
from review_pipeline.models.issue_record import IssueRecord
from review_pipeline.models.run_context import RunContext
from review_pipeline.state.review_state import ReviewState

logger = logging.getLogger(__name__)

router = APIRouter()


class RunReviewRequest(BaseModel):
    sonar_report_path: Optional[str] = None
    roslyn_report_path: Optional[str] = None
    severity_threshold: Optional[str] = None
    llm_enabled: Optional[bool] = None


class RunReviewResponse(BaseModel):
    correlation_id: str
    status: str
    stages: List[str]
    issue_counts: Dict[str, int]
    total_issues: int
    relevant_issues: List[IssueRecord]
    llm_executed: bool
    llm_error: str
    completion_text: str
    summary: str
    elapsed_seconds: float


def _state_to_response(state: ReviewState) -> RunReviewResponse:
    return RunReviewResponse(
        correlation_id=state["correlation_id"],
        status=state["status"],
        stages=[s.value for s in state["stages"]],
        issue_counts=state["issue_counts"],
        total_issues=len(state["issues"]),
        relevant_issues=state["relevant_issues"],
        llm_executed=state["llm_executed"],
        llm_error=state["llm_error"],
        completion_text=state["completion_text"],
        summary=state["summary"],
        elapsed_seconds=round(state["elapsed_seconds"], 3),
    )


@router.post("/run-review", response_model=RunReviewResponse)
async def run_review(request: Optional[RunReviewRequest] = None):
    # ReviewPipelineError propagates to the app-level handler (400 / 500)
    overrides = request.model_dump() if request else None
    settings = load_settings(overrides=overrides)
    orchestrator = Orchestrator(RunContext.create(settings))
    try:
        state = await orchestrator.run()
    except ReviewPipelineError:
        raise
    except Exception as exc:
        logger.error("[API] Review run failed: %s", exc, exc_info=True)
        raise HTTPException(status_code=500, detail=f"Review failed: {exc}")

    return _state_to_response(state)
