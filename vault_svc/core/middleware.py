"""
FastAPI middleware for request logging and in-memory metrics.

- Every request gets a short request_id, propagated to all log lines emitted
  while it is handled and returned in the X-Request-ID header.
- Completed requests are recorded in a fixed-size buffer used for latency
  percentiles; counters are plain integers.

Middleware Stack Order (in main.py):
    1. LoggingMiddleware (outermost)
    2. CORS Middleware
    3. Application routes
"""
import logging
import threading
import time
import uuid
from collections import Counter, deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Deque, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from core.logging_config import clear_request_id, set_request_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@dataclass
class RequestMetrics:
    """A single completed request."""
    timestamp: datetime
    method: str
    path: str
    status_code: int
    duration_ms: float


class MetricsCollector:
    """
    In-memory request metrics.

    Only the last `max_history` requests are kept for percentile calculation.
    """

    def __init__(self, max_history: int = 1000):
        self._requests: Deque[RequestMetrics] = deque(maxlen=max_history)
        self._lock = threading.Lock()
        self.total_requests = 0
        self.by_status_class: Counter = Counter()

    def record_request(self, metrics: RequestMetrics) -> None:
        with self._lock:
            self._requests.append(metrics)
            self.total_requests += 1
            self.by_status_class[f"{metrics.status_code // 100}xx"] += 1

    def reset(self) -> None:
        with self._lock:
            self._requests.clear()
            self.total_requests = 0
            self.by_status_class.clear()

    def get_latency_percentiles(self) -> Dict[str, float]:
        """p50/p95/p99 over the buffered requests, in milliseconds (0 when empty)."""
        with self._lock:
            durations = sorted(r.duration_ms for r in self._requests)
        if not durations:
            return {"p50": 0, "p95": 0, "p99": 0}

        n = len(durations)

        def percentile(p: float) -> float:
            return durations[min(int(n * p / 100), n - 1)]

        return {
            "p50": round(percentile(50), 2),
            "p95": round(percentile(95), 2),
            "p99": round(percentile(99), 2),
        }

    def get_summary(self) -> Dict:
        """Metrics as a flat dictionary for the /metrics/json endpoint."""
        latencies = self.get_latency_percentiles()
        return {
            "http_requests_total": self.total_requests,
            "http_requests_2xx_total": self.by_status_class["2xx"],
            "http_requests_4xx_total": self.by_status_class["4xx"],
            "http_requests_5xx_total": self.by_status_class["5xx"],
            "http_request_duration_ms_p50": latencies["p50"],
            "http_request_duration_ms_p95": latencies["p95"],
            "http_request_duration_ms_p99": latencies["p99"],
        }

    def get_prometheus_format(self) -> str:
        """Export metrics in Prometheus text exposition format."""
        summary = self.get_summary()
        lines = [
            "# HELP http_requests_total Total HTTP requests",
            "# TYPE http_requests_total counter",
            f'http_requests_total {summary["http_requests_total"]}',
            "",
            "# HELP http_requests_by_status HTTP requests by status category",
            "# TYPE http_requests_by_status counter",
        ]
        for status_class in ("2xx", "4xx", "5xx"):
            lines.append(
                f'http_requests_by_status{{status="{status_class}"}} '
                f'{summary[f"http_requests_{status_class}_total"]}'
            )
        lines += [
            "",
            "# HELP http_request_duration_ms Request duration in milliseconds",
            "# TYPE http_request_duration_ms gauge",
        ]
        for quantile, key in (("0.5", "p50"), ("0.95", "p95"), ("0.99", "p99")):
            lines.append(
                f'http_request_duration_ms{{quantile="{quantile}"}} '
                f'{summary[f"http_request_duration_ms_{key}"]}'
            )
        return "\n".join(lines) + "\n"


metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    """Get the process-wide metrics collector."""
    return metrics_collector


class LoggingMiddleware(BaseHTTPMiddleware):
    """Request/response logging with request_id propagation and timing."""

    # Probe and docs endpoints are timed but not logged
    EXCLUDED_PATHS = {"/health", "/ready", "/metrics", "/metrics/json", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = uuid.uuid4().hex[:8]
        set_request_id(request_id)

        method = request.method
        path = request.url.path
        quiet = path in self.EXCLUDED_PATHS or path.startswith("/uploads/")
        start_time = time.perf_counter()

        if not quiet:
            logger.info("Request started", extra={"method": method, "path": path})

        try:
            try:
                response = await call_next(request)
            except Exception as e:
                logger.exception(
                    "Request failed with exception",
                    extra={"method": method, "path": path, "error": str(e)}
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            metrics_collector.record_request(RequestMetrics(
                timestamp=datetime.now(timezone.utc),
                method=method,
                path=path,
                status_code=response.status_code,
                duration_ms=duration_ms,
            ))

            if not quiet:
                logger.log(
                    logging.WARNING if response.status_code >= 400 else logging.INFO,
                    "Request completed",
                    extra={
                        "method": method,
                        "path": path,
                        "status_code": response.status_code,
                        "duration_ms": round(duration_ms, 2),
                    }
                )
        finally:
            clear_request_id()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
