"""Observability utilities."""

from .audit import AuditLogRecord, AuditMiddleware, mask_mapping
from .metrics import (
    CLUB_REQUEST_DECISION_COUNTER,
    ELECTION_STATUS_TRANSITION_COUNTER,
    REQUEST_COUNTER,
    REQUEST_ERROR_COUNTER,
    REQUEST_LATENCY_SECONDS,
    VOTES_CAST_COUNTER,
    PrometheusMiddleware,
    metrics_router,
)
from .tracing import (
    initialise_tracing,
    instrument_fastapi_app,
    instrument_sqlalchemy_engine,
    start_span,
)

__all__ = [
    "AuditLogRecord",
    "AuditMiddleware",
    "CLUB_REQUEST_DECISION_COUNTER",
    "ELECTION_STATUS_TRANSITION_COUNTER",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "VOTES_CAST_COUNTER",
    "mask_mapping",
    "metrics_router",
    "initialise_tracing",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "start_span",
]
