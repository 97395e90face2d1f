from __future__ import annotations

import logging

from prometheus_client import Counter, Gauge, start_http_server

from core.config import settings

logger = logging.getLogger(__name__)

_metrics_started = False

CLASSIFICATIONS_TOTAL = Counter(
    "autofail_classifications_total",
    "Classifications by call context, verdict, and verdict source.",
    ["context", "verdict", "source"],
)
HINTS_REGISTERED = Gauge(
    "autofail_hints_registered",
    "Number of callables with a registered hint by registry.",
    ["registry"],
)
HINT_ERRORS_TOTAL = Counter(
    "autofail_hint_errors_total",
    "Rejected hint registrations and provider loads by error code.",
    ["code"],
)


def start_metrics_server(port: int | None = None) -> None:
    if not settings.metrics_enabled:
        return
    global _metrics_started
    if _metrics_started:
        return
    port = port or settings.metrics_port
    try:
        start_http_server(port, addr=settings.metrics_host)
    except OSError as exc:
        logger.warning("metrics_server_failed: %s", exc)
        return
    _metrics_started = True
    logger.info("metrics_server_started port=%s", port)


def record_classification(context: str | None, failure: bool, source: str | None) -> None:
    if not settings.metrics_enabled:
        return
    CLASSIFICATIONS_TOTAL.labels(
        context=_label(context, "unknown"),
        verdict="failure" if failure else "success",
        source=_label(source, "unknown"),
    ).inc()


def record_hints_registered(registry: str | None, count: int) -> None:
    if not settings.metrics_enabled:
        return
    HINTS_REGISTERED.labels(registry=_label(registry, "unknown")).set(count)


def record_hint_error(code: str | None) -> None:
    if not settings.metrics_enabled:
        return
    HINT_ERRORS_TOTAL.labels(code=_label(code, "unknown")).inc()


def _label(value: str | None, fallback: str) -> str:
    if value is None:
        return fallback
    value = str(value).strip()
    return value or fallback
