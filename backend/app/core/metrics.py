"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking attempts',
    ['status']  # success, dangling_reference, invalid
)

# Event write metrics
event_writes = Counter(
    'event_writes_total',
    'Event create/update attempts',
    ['operation', 'result']  # create/update, success/invalid/duplicate
)

# Database metrics
db_connect_attempts = Counter(
    'db_connect_attempts_total',
    'Database connection establishment attempts',
    ['result']  # success, failure
)

db_connect_latency = Histogram(
    'db_connect_latency_seconds',
    'Database connection establishment latency',
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# Convenience functions for instrumentation
def record_booking_attempt(status: str):
    """Record booking attempt. Status: success, dangling_reference, invalid"""
    booking_attempts.labels(status=status).inc()


def record_event_write(operation: str, result: str):
    """Record event write. Operation: create, update. Result: success, invalid, duplicate"""
    event_writes.labels(operation=operation, result=result).inc()


def record_db_connect(success: bool, duration: float):
    """Record a connection attempt and how long it took."""
    result = "success" if success else "failure"
    db_connect_attempts.labels(result=result).inc()
    db_connect_latency.observe(duration)
