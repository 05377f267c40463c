"""Prometheus metrics middleware and custom metrics.

Features:
- HTTP request metrics (latency, count, sizes)
- Queue metrics (waiting players, calls)
- Match metrics (active matches, completions by result, duration)
"""

from fastapi import FastAPI
from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, Info
from prometheus_fastapi_instrumentator import Instrumentator, metrics

# =============================================================================
# Custom Metrics
# =============================================================================

# Application info
APP_INFO = Info("smashqueue_app", "Application information")

# Queue metrics
QUEUE_WAITING = Gauge(
    "smashqueue_queue_waiting",
    "Players currently waiting in the queue",
)

QUEUE_EVENTS = Counter(
    "smashqueue_queue_events_total",
    "Queue transitions",
    ["event"],  # joined, left, called
)

# Match metrics
ACTIVE_MATCHES = Gauge(
    "smashqueue_active_matches",
    "Matches currently on court",
)

MATCHES_CREATED = Counter(
    "smashqueue_matches_created_total",
    "Total matches created",
    ["format"],  # singles, doubles, mixed
)

MATCHES_COMPLETED = Counter(
    "smashqueue_matches_completed_total",
    "Total matches completed",
    ["result"],  # team1, team2, draw
)

MATCH_DURATION = Histogram(
    "smashqueue_match_duration_seconds",
    "Duration of completed matches",
    buckets=[300, 600, 900, 1200, 1800, 2700, 3600],
)


# =============================================================================
# Instrumentator Setup
# =============================================================================

def setup_prometheus(
    app: FastAPI,
    app_version: str = "1.0.0",
    registry: CollectorRegistry = REGISTRY,
) -> Instrumentator:
    """Setup Prometheus metrics instrumentation.

    Args:
        app: FastAPI application instance
        app_version: Application version string
        registry: Registry for the HTTP metrics

    Returns:
        Configured Instrumentator instance
    """
    APP_INFO.info({
        "version": app_version,
        "app_name": "smashqueue",
    })

    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/health", "/health/live", "/health/ready", "/metrics"],
        inprogress_name="smashqueue_http_requests_inprogress",
        inprogress_labels=True,
        registry=registry,
    )

    instrumentator.add(
        metrics.default(
            metric_namespace="smashqueue",
            metric_subsystem="http",
            latency_highr_buckets=(0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5),
            registry=registry,
        )
    )

    instrumentator.add(
        metrics.response_size(
            metric_namespace="smashqueue",
            metric_subsystem="http",
            should_include_handler=True,
            should_include_method=True,
            registry=registry,
        )
    )

    instrumentator.instrument(app)
    instrumentator.expose(app, endpoint="/metrics", include_in_schema=True, tags=["Monitoring"])

    return instrumentator


# =============================================================================
# Metric Helper Functions
# =============================================================================

def record_queue_event(event: str) -> None:
    """Record a queue transition.

    Args:
        event: joined, left or called
    """
    QUEUE_EVENTS.labels(event=event).inc()


def update_queue_waiting(count: int) -> None:
    QUEUE_WAITING.set(count)


def update_active_matches(count: int) -> None:
    ACTIVE_MATCHES.set(count)


def record_match_created(team1_size: int, team2_size: int) -> None:
    """Record a new match.

    Args:
        team1_size: Players on team 1
        team2_size: Players on team 2
    """
    if team1_size == team2_size == 1:
        match_format = "singles"
    elif team1_size == team2_size == 2:
        match_format = "doubles"
    else:
        match_format = "mixed"
    MATCHES_CREATED.labels(format=match_format).inc()


def record_match_completed(result: str, duration_seconds: float | None = None) -> None:
    """Record a completed match.

    Args:
        result: team1, team2 or draw
        duration_seconds: Time from start to result, when known
    """
    MATCHES_COMPLETED.labels(result=result).inc()
    if duration_seconds is not None and duration_seconds >= 0:
        MATCH_DURATION.observe(duration_seconds)
