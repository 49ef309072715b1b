"""
GET /results
Returns the results.json written by the last run (settings.results_path).
"""
import json
import logging
import os

from fastapi import APIRouter, HTTPException

from review_pipeline.core.config import load_settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/results")
async def get_results():
    settings = load_settings()

    if not settings.results_path:
        raise HTTPException(status_code=404, detail="No results path configured (RESULTS_PATH).")
    if not os.path.isfile(settings.results_path):
        raise HTTPException(status_code=404, detail="No results available yet.")

    try:
        with open(settings.results_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Could not read results file %s: %s", settings.results_path, exc)
        raise HTTPException(status_code=500, detail="Results file is unreadable.")
