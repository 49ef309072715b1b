"""
Results Writer
==============
Serializes the final ReviewState into a results.json artifact for CI
dashboards and the GET /results endpoint.
"""
import json
import logging
import os
from typing import Any, Dict

from review_pipeline.state.review_state import ReviewState
from review_pipeline.utils.fingerprint import generate_issue_signature

logger = logging.getLogger(__name__)


class ResultsWriter:
    """
    Service responsible for compiling a finished review run into a
    structured JSON file.
    """

    @staticmethod
    def build_payload(state: ReviewState) -> Dict[str, Any]:
        def _issue_dicts(key: str) -> list:
            out = []
            for issue in state.get(key, []):
                item = issue.model_dump(mode="json")
                item["signature"] = generate_issue_signature(issue)
                out.append(item)
            return out

        return {
            "run": {
                "correlation_id": state.get("correlation_id", ""),
                "status": state.get("status", "pending"),
                "stages": [s.value for s in state.get("stages", [])],
                "elapsed_seconds": round(state.get("elapsed_seconds", 0.0), 3),
            },
            "counts": {
                "per_source": state.get("issue_counts", {}),
                "total": len(state.get("issues", [])),
                "relevant": len(state.get("relevant_issues", [])),
            },
            "llm": {
                "executed": state.get("llm_executed", False),
                "error": state.get("llm_error", ""),
                "completion": state.get("completion_text", ""),
            },
            "issues": _issue_dicts("issues"),
            "relevant_issues": _issue_dicts("relevant_issues"),
            "summary": state.get("summary", ""),
        }

    @staticmethod
    def write_results(state: ReviewState, output_path: str = "results.json") -> bool:
        """
        Compile state and write results.json. Failures are logged, never raised.
        """
        try:
            data = ResultsWriter.build_payload(state)

            abs_output = os.path.abspath(output_path)
            parent = os.path.dirname(abs_output)
            if parent:
                os.makedirs(parent, exist_ok=True)
            logger.info("Writing final results to %s", abs_output)

            with open(abs_output, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)

            return True

        except Exception as e:
            logger.error("Failed to write results.json: %s", e, exc_info=True)
            return False
