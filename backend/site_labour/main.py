"""
Site Labour Tracker API v1.0
FastAPI service exposing the labour/progress calculator: job labour analysis,
crew sizing, daily plans, cost position, quote-to-job conversion and offline
progress sync.  Stateless: callers post the records to analyse.
"""
import os
import time
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
from site_labour.services.logging_config import setup_logging
from site_labour.services.middleware import RequestTimingMiddleware
from site_labour.services.perf_monitor import tracker as perf_tracker

# Load .env file automatically in dev (no-op if python-dotenv not installed or file missing)
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

from site_labour import config  # noqa: E402

_log_level = os.getenv("LOG_LEVEL", "INFO")
_json_logs = os.getenv("LOG_FORMAT", "json").lower() != "text"
setup_logging(level=_log_level, json_output=_json_logs)
logger = logging.getLogger("site-labour")

APP_VERSION = "1.0.0"
_PROCESS_START = time.monotonic()

app = FastAPI(
    title="Site Labour Tracker API",
    version=APP_VERSION,
    description="Labour and progress tracking for construction fit-out jobs",
)


# ---------------------------------------------------------------------------
# Security Headers Middleware
# ---------------------------------------------------------------------------

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds standard security headers to every response."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


# ---------------------------------------------------------------------------
# CORS, restricted to allowed origins from env
# ---------------------------------------------------------------------------
_cors_default = "http://localhost:3000,http://localhost:8000"
cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", _cors_default).split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Requested-With", "X-Request-ID"],
)
app.add_middleware(SecurityHeadersMiddleware)
# Request timing + X-Request-ID must be outermost so it wraps all other middleware
app.add_middleware(RequestTimingMiddleware)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Failed to process labour request"},
    )


# Routers
from site_labour.api.labour_routes import router as labour_router  # noqa: E402
from site_labour.api.quote_routes import router as quote_router  # noqa: E402
from site_labour.api.progress_routes import router as progress_router  # noqa: E402

app.include_router(labour_router)
app.include_router(quote_router)
app.include_router(progress_router)


@app.get("/health")
async def health_check():
    return {
        "status": "active",
        "version": APP_VERSION,
        "standard_crew_size": config.STANDARD_CREW_SIZE,
        "hours_per_day": config.HOURS_PER_DAY,
    }


@app.get("/metrics")
async def metrics():
    """
    Calculation throughput and timings from the in-process
    PerformanceTracker singleton.
    """
    snapshot = perf_tracker.get_metrics()
    return {
        "uptime_seconds": round(time.monotonic() - _PROCESS_START, 1),
        **snapshot,
    }
