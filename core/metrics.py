"""
Core metrics collection for the forecast engine using Prometheus
"""
import time
from functools import wraps

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

from core.config import settings

# Engine-local registry
REGISTRY = CollectorRegistry()

deals_enriched = Counter(
    "forecast_engine_deals_enriched_total",
    "Total number of deals enriched with weighted probability and risk",
    ["stage"],
    registry=REGISTRY,
)

opportunities_scored = Counter(
    "forecast_engine_opportunities_scored_total",
    "Total number of opportunities scored",
    ["priority", "risk_level"],
    registry=REGISTRY,
)

forecasts_generated = Counter(
    "forecast_engine_forecasts_generated_total",
    "Total number of forecast reports generated",
    ["period"],
    registry=REGISTRY,
)

calculation_duration = Histogram(
    "forecast_engine_calculation_duration_seconds",
    "Time spent in engine calculations",
    ["operation"],
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
    registry=REGISTRY,
)


class MetricsCollector:
    """Helper class for collecting metrics"""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def track_deal_enriched(self, stage: str):
        """Track a single deal enrichment"""
        if self.enabled:
            deals_enriched.labels(stage=stage).inc()

    def track_opportunity_scored(self, priority: str, risk_level: str):
        """Track an opportunity score"""
        if self.enabled:
            opportunities_scored.labels(priority=priority, risk_level=risk_level).inc()

    def track_forecast_generated(self, period: str):
        """Track a generated forecast report"""
        if self.enabled:
            forecasts_generated.labels(period=period).inc()

    def track_duration(self, operation: str, duration: float):
        """Track calculation duration"""
        if self.enabled:
            calculation_duration.labels(operation=operation).observe(duration)

    def get_metrics(self) -> bytes:
        """Get current metrics in Prometheus format"""
        return generate_latest(REGISTRY)


# Global metrics collector instance
metrics = MetricsCollector(enabled=settings.prometheus_enabled)


def track_time(operation: str):
    """Decorator to track execution time of functions"""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                metrics.track_duration(operation, time.perf_counter() - start_time)

        return wrapper

    return decorator
