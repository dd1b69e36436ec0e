"""Prometheus metrics configuration"""

from prometheus_client import Counter, Histogram, Info
from prometheus_fastapi_instrumentator import Instrumentator
from typing import Callable
import time
from functools import wraps

from ..config import settings

# Application info
app_info = Info('multirec', 'Multi-model Recommendation Engine Information')
app_info.info({
    'version': settings.VERSION,
    'service': 'multirec-backend'
})

# Recommendation metrics
recommendations_generated_total = Counter(
    'recommendations_generated_total',
    'Total recommended items returned',
    ['model']
)

recommendation_generation_duration_seconds = Histogram(
    'recommendation_generation_duration_seconds',
    'Time taken to generate recommendations',
    ['model']
)

recommendation_tier_total = Counter(
    'recommendation_tier_total',
    'Recommendation responses by the fallback tier that produced them',
    ['model', 'tier']
)

degraded_responses_total = Counter(
    'degraded_responses_total',
    'Responses served from in-memory or mock data because a store was down',
    ['component']
)

# A/B assignment metrics
model_assignments_total = Counter(
    'model_assignments_total',
    'Assignment lookups by model and outcome',
    ['model', 'source']
)

# Event log metrics
recommendation_events_total = Counter(
    'recommendation_events_total',
    'Logged recommendation events',
    ['event_type', 'durable']
)


def setup_metrics(app):
    """
    Setup Prometheus metrics for FastAPI app

    Args:
        app: FastAPI application instance
    """
    instrumentator = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/metrics"],
        inprogress_name="http_requests_inprogress",
        inprogress_labels=True
    )

    instrumentator.instrument(app).expose(app, endpoint="/metrics")

    return instrumentator


def track_recommendation_time(func: Callable):
    """
    Decorator observing generation time, labelled by the model the
    wrapped call resolved to (its result's model_name)
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        result = func(*args, **kwargs)
        recommendation_generation_duration_seconds.labels(
            model=result.model_name
        ).observe(time.time() - start_time)
        return result

    return wrapper


def record_recommendations(model: str, tier: str, count: int) -> None:
    """Record a recommendation response"""
    recommendations_generated_total.labels(model=model).inc(count)
    recommendation_tier_total.labels(model=model, tier=tier).inc()


def record_degraded(component: str) -> None:
    """Record a response served in degraded mode"""
    degraded_responses_total.labels(component=component).inc()


def record_assignment(model: str, source: str) -> None:
    """Record an assignment lookup ('new' or 'existing')"""
    model_assignments_total.labels(model=model, source=source).inc()


def record_event(event_type: str, durable: bool) -> None:
    """Record an event log write"""
    recommendation_events_total.labels(
        event_type=event_type,
        durable=str(durable).lower()
    ).inc()
