"""
Prometheus metrics for bookings, the list cache and the real-time channel,
served at /metrics.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

# HTTP
http_requests = Counter(
    "http_requests_total",
    "HTTP requests by route template and status code",
    ["method", "route", "status"],
)

http_request_duration = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration by route template",
    ["method", "route"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

# Bookings
booking_attempts = Counter(
    "booking_attempts_total",
    "Seat reservation attempts by outcome",
    ["outcome"],  # success, rejected, error
)

booking_latency = Histogram(
    "booking_latency_seconds",
    "Reservation latency including the wait for the event's seat lock",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

booking_cancellations = Counter(
    "booking_cancellations_total",
    "Cancellation attempts by outcome",
    ["outcome"],
)

# Event list cache
cache_operations = Counter(
    "event_cache_operations_total",
    "Event list cache lookups and writes",
    ["operation", "result"],  # get: hit/miss/error, set and invalidate: ok/error
)

# Real-time channel
realtime_connections = Gauge(
    "realtime_connections",
    "Connected WebSocket viewers",
)

realtime_publish_failures = Counter(
    "realtime_publish_failures_total",
    "Post-commit publishes that raised and were dropped",
)


def metrics_endpoint() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def record_http_request(method: str, route: str, status: int, seconds: float) -> None:
    http_requests.labels(method=method, route=route, status=str(status)).inc()
    http_request_duration.labels(method=method, route=route).observe(seconds)


def record_booking_attempt(outcome: str) -> None:
    booking_attempts.labels(outcome=outcome).inc()


def record_cancellation(outcome: str) -> None:
    booking_cancellations.labels(outcome=outcome).inc()


def record_cache_operation(operation: str, result: str) -> None:
    cache_operations.labels(operation=operation, result=result).inc()
