"""
Command-line entry point.

Runs one review pipeline and maps the outcome to a process exit status:
0 on success, 1 when configuration is invalid, publishing fails, or any
other fatal error escapes the orchestrator.
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from review_pipeline.agents.orchestrator import Orchestrator
from review_pipeline.core.config import load_settings
from review_pipeline.core.errors import ConfigurationError, PublishError
from review_pipeline.models.run_context import RunContext
from review_pipeline.utils.logging_config import setup_logging

logger = logging.getLogger("review_pipeline.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="review-pipeline",
        description="Normalize static-analysis reports and run an LLM-assisted review.",
    )
    parser.add_argument("--config", help="YAML/JSON settings file (default: REVIEW_CONFIG_PATH or ./review.yaml)")
    parser.add_argument("--sonar-report", help="Path to the SonarQube issues report")
    parser.add_argument("--roslyn-report", help="Path to the Roslyn SARIF/JSON report")
    parser.add_argument("--threshold", help="Minimum severity sent to the LLM (Critical/Major/Minor/Info)")
    parser.add_argument("--no-llm", action="store_true", help="Skip the LLM review stage")
    parser.add_argument("--results", help="Write the final run state to this JSON file")
    parser.add_argument("--print-summary", action="store_true", help="Print the review summary to stdout")
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument("--log-dir", default="logs", help="Directory for the daily log file ('' disables it)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=getattr(logging, args.log_level), log_dir=args.log_dir)
    logger.info("Starting review pipeline...")

    overrides = {
        "sonar_report_path": args.sonar_report,
        "roslyn_report_path": args.roslyn_report,
        "severity_threshold": args.threshold,
        "llm_enabled": False if args.no_llm else None,
        "results_path": args.results,
    }

    try:
        settings = load_settings(args.config, overrides=overrides)
        context = RunContext.create(settings)
        state = asyncio.run(Orchestrator(context).run())
        logger.info("Pipeline finished successfully.")
        if args.print_summary:
            print(state["summary"])
        return 0
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return 1
    except PublishError as exc:
        logger.error("Publishing failed: %s", exc)
        return 1
    except Exception as exc:
        logger.error("Pipeline failed: %s", exc, exc_info=True)
        return 1
    finally:
        logger.info("Exiting.")


if __name__ == "__main__":
    sys.exit(main())
