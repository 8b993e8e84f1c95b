from __future__ import annotations

import threading
from functools import wraps

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client import REGISTRY as DEFAULT_REGISTRY

from osint_investigator.utils import get_logger

logger = get_logger(__name__)

_METRICS_REGISTRY: CollectorRegistry = DEFAULT_REGISTRY
_metrics_lock = threading.Lock()

AGENT_CALLS = Counter(
    "osint_agent_calls_total",
    "Agent invocations by agent kind and settled status",
    ["agent", "status"],
    registry=_METRICS_REGISTRY,
)
AGENT_LATENCY = Histogram(
    "osint_agent_latency_seconds",
    "End-to-end latency of one agent invocation (seconds)",
    ["agent"],
    registry=_METRICS_REGISTRY,
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)
FINDINGS_PERSISTED = Counter(
    "osint_findings_persisted_total",
    "Findings written to the store by agent type",
    ["agent_type"],
    registry=_METRICS_REGISTRY,
)
PERSISTENCE_FAILURES = Counter(
    "osint_persistence_failures_total",
    "Finding inserts that failed (store error or payload validation)",
    ["agent_type"],
    registry=_METRICS_REGISTRY,
)
INVESTIGATIONS = Counter(
    "osint_investigations_total",
    "Investigations run to completion by final status",
    ["status"],
    registry=_METRICS_REGISTRY,
)


def safe_record(func):
    """Metrics are best effort; a failing collector never breaks an investigation."""

    @wraps(func)
    def wrapped(*args, **kwargs):
        try:
            with _metrics_lock:
                return func(*args, **kwargs)
        except Exception as exc:
            logger.debug("metrics.record_failed", metric=func.__name__, error=str(exc))
            return None

    return wrapped


@safe_record
def record_agent_call(agent: str, status: str, latency_s: float | None = None) -> None:
    AGENT_CALLS.labels(agent=agent, status=status).inc()
    if latency_s is not None:
        AGENT_LATENCY.labels(agent=agent).observe(float(latency_s))


@safe_record
def record_finding_persisted(agent_type: str) -> None:
    FINDINGS_PERSISTED.labels(agent_type=agent_type).inc()


@safe_record
def record_persistence_failure(agent_type: str) -> None:
    PERSISTENCE_FAILURES.labels(agent_type=agent_type).inc()


@safe_record
def record_investigation(status: str) -> None:
    INVESTIGATIONS.labels(status=status).inc()


def attach_metrics(app: FastAPI | None) -> None:
    """Mount ``GET /metrics`` on the app unless a route already serves it."""
    if app is None:
        return

    async def _fastapi_metrics() -> Response:
        payload = generate_latest(_METRICS_REGISTRY)
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    existing = any(getattr(route, "path", "") == "/metrics" for route in app.routes)
    if not existing:
        app.add_api_route("/metrics", _fastapi_metrics, methods=["GET"], include_in_schema=False)


__all__ = [
    "record_agent_call",
    "record_finding_persisted",
    "record_persistence_failure",
    "record_investigation",
    "attach_metrics",
]
