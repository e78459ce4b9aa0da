"""
Prometheus instrumentation for the request pipeline.

Metrics are served from a separate listener started with
``start_metrics_server``; the main listener's routing table has no
metrics endpoint.
"""

"""
Copyright 2025 Chris Bunting
File: metrics.py | Purpose: Prometheus request and connection metrics
@author Chris Bunting | @version 1.0.0

CHANGELOG:
2026-10-19 - Chris Bunting: Initial implementation
"""

from typing import Optional

from prometheus_client import Counter, Gauge, Histogram, start_http_server

REQ_TOTAL = Counter(
    "minihttpd_requests_total",
    "Total HTTP requests answered",
    ["route", "status"],
)
REQ_ERRORS = Counter(
    "minihttpd_request_errors_total",
    "Requests that ended in an error response",
    ["kind"],
)
REQ_IN_FLIGHT = Gauge("minihttpd_in_flight_requests", "In-flight requests")
REQ_LATENCY = Histogram("minihttpd_request_duration_seconds", "Request duration seconds")
CONN_REJECTED = Counter(
    "minihttpd_rejected_connections_total",
    "Connections refused with 503 because every worker slot was busy",
)


def record_request(route: str, status: int, duration: float) -> None:
    REQ_TOTAL.labels(route=route, status=str(status)).inc()
    REQ_LATENCY.observe(duration)


def record_error(kind: str) -> None:
    REQ_ERRORS.labels(kind=kind).inc()


def start_metrics_server(port: int, host: Optional[str] = None) -> None:
    """Expose the default registry over HTTP on ``host:port``."""
    start_http_server(port, addr=host or "127.0.0.1")
