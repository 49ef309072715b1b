"""
HTTP entry point for the review pipeline.

    GET  /health      liveness probe
    POST /run-review  run one review (optional per-request overrides)
    GET  /results     last results.json written by a run

Run locally:
    uvicorn main:app --reload
"""
import os
import time
import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from review_pipeline.api.results import router as results_router
from review_pipeline.api.run_review import router as run_review_router
from review_pipeline.core.errors import ConfigurationError, ReviewPipelineError
from review_pipeline.utils.logging_config import setup_logging

setup_logging(level=logging.INFO)
logger = logging.getLogger("main")

app = FastAPI(title="Static Analysis Review Pipeline API")


# ---------------------------------------------------------------------------
# Request timing
# ---------------------------------------------------------------------------
class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Logs every request with its status and latency; adds X-Process-Time."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        route = f"{request.method} {request.url.path}"
        logger.info("--> %s (client=%s)", route, request.client.host if request.client else "unknown")

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("<-- %s raised %s after %.1fms", route, exc, (time.perf_counter() - started) * 1000)
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Process-Time"] = f"{elapsed_ms:.1f}ms"
        logger.info("<-- %s %d in %.1fms", route, response.status_code, elapsed_ms)
        return response


app.add_middleware(RequestTimingMiddleware)


@app.exception_handler(ReviewPipelineError)
async def pipeline_error_handler(request: Request, exc: ReviewPipelineError):
    status = 400 if isinstance(exc, ConfigurationError) else 500
    logger.error("[API] %s %s failed (%d): %s", request.method, request.url.path, status, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc), "error": type(exc).__name__})


@app.get("/health")
async def health_check():
    return {"status": "ok"}


app.include_router(run_review_router, tags=["Review"])
app.include_router(results_router, tags=["Review"])


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
