"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint on both services.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Arbitration metrics
arbitration_outcomes = Counter(
    'arbitration_requests_total',
    'Participation requests resolved by owner batches',
    ['status']  # confirmed, rejected, overflow
)

arbitration_latency = Histogram(
    'arbitration_latency_seconds',
    'Batch status update latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

db_retries = Counter(
    'db_retry_attempts_total',
    'Retries caused by event version conflicts',
    ['operation']  # arbitration, submit, cancel, update
)

# Lifecycle metrics
lifecycle_transitions = Counter(
    'event_lifecycle_transitions_total',
    'Event state transitions',
    ['actor', 'action']
)

# Statistics metrics
hits_ingested = Counter(
    'hits_ingested_total',
    'Access records appended',
    ['app']
)

stats_queries = Histogram(
    'stats_query_latency_seconds',
    'View aggregation query latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

stats_client_errors = Counter(
    'stats_client_errors_total',
    'Failed calls from the main service to the statistics service',
    ['operation']  # hit, stats
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_arbitration(status: str, count: int = 1):
    """Record resolved requests. Status: confirmed, rejected, overflow"""
    if count:
        arbitration_outcomes.labels(status=status).inc(count)


def record_retry(operation: str):
    db_retries.labels(operation=operation).inc()


def record_transition(actor: str, action: str):
    lifecycle_transitions.labels(actor=actor, action=action).inc()


def record_hit(app: str):
    hits_ingested.labels(app=app).inc()


def record_stats_client_error(operation: str):
    stats_client_errors.labels(operation=operation).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
