"""
Health, readiness, and metrics endpoints for operational visibility.

- /health: Liveness probe (is the app running?)
- /ready: Readiness probe (database reachable, upload root writable?)
- /metrics: Prometheus text format
- /metrics/json: the same metrics as JSON

No authentication is required on these endpoints.
"""
import logging
import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from core.dependencies import get_attachment_store, get_database
from core.middleware import get_metrics_collector

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health & Observability"])

SERVICE_NAME = "HealthVault API"
SERVICE_VERSION = "1.0.0"


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class HealthResponse(BaseModel):
    """Response model for /health endpoint."""
    status: str
    version: str
    timestamp: str


class DependencyStatus(BaseModel):
    """Status of a single dependency."""
    name: str
    status: str  # "ok" or "unavailable"
    latency_ms: float | None = None
    message: str | None = None


class ReadyResponse(BaseModel):
    """Response model for /ready endpoint."""
    status: str  # "ready" or "not_ready"
    dependencies: List[DependencyStatus]
    timestamp: str


class MetricsResponse(BaseModel):
    """Response model for JSON metrics endpoint."""
    http_requests_total: int
    http_requests_2xx_total: int
    http_requests_4xx_total: int
    http_requests_5xx_total: int
    http_request_duration_ms_p50: float
    http_request_duration_ms_p95: float
    http_request_duration_ms_p99: float


# =============================================================================
# LIVENESS
# =============================================================================

@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health_check() -> HealthResponse:
    """Returns 200 whenever the process is serving requests; no I/O."""
    return HealthResponse(status="healthy", version=SERVICE_VERSION, timestamp=_timestamp())


# =============================================================================
# READINESS
# =============================================================================

def _check_database(db) -> DependencyStatus:
    start = time.perf_counter()
    try:
        conn = db.get_connection()
        try:
            conn.execute("SELECT 1 FROM records LIMIT 1")
        finally:
            conn.close()
    except Exception as e:
        logger.error("Database readiness check failed", extra={"error": str(e)})
        return DependencyStatus(
            name="database",
            status="unavailable",
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
            message=f"Connection failed: {type(e).__name__}"
        )
    return DependencyStatus(
        name="database",
        status="ok",
        latency_ms=round((time.perf_counter() - start) * 1000, 2),
        message="SQLite connection healthy"
    )


def _check_attachment_store(store) -> DependencyStatus:
    upload_dir = store.upload_dir
    if upload_dir.is_dir() and os.access(upload_dir, os.W_OK):
        return DependencyStatus(name="attachment_store", status="ok", message="Upload directory writable")
    logger.error("Attachment store readiness check failed")
    return DependencyStatus(name="attachment_store", status="unavailable", message="Upload directory not writable")


@router.get(
    "/ready",
    response_model=ReadyResponse,
    summary="Readiness probe",
    description="Returns 503 when the database or the upload directory is unavailable."
)
async def readiness_check(
    response: Response,
    db=Depends(get_database),
    store=Depends(get_attachment_store),
) -> ReadyResponse:
    dependencies = [_check_database(db), _check_attachment_store(store)]

    if any(d.status != "ok" for d in dependencies):
        status = "not_ready"
        response.status_code = 503
    else:
        status = "ready"

    return ReadyResponse(status=status, dependencies=dependencies, timestamp=_timestamp())


# =============================================================================
# METRICS
# =============================================================================

@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics() -> Response:
    """HTTP request counts and latency percentiles in Prometheus text format."""
    return Response(
        content=get_metrics_collector().get_prometheus_format(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@router.get("/metrics/json", response_model=MetricsResponse, summary="JSON metrics")
async def get_metrics_json() -> MetricsResponse:
    return MetricsResponse(**get_metrics_collector().get_summary())


@router.get("/", summary="API root")
async def root() -> Dict[str, Any]:
    """Service name, version and links to documentation and probes."""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready",
        "metrics": "/metrics"
    }
