"""
Statistical Types

Value objects returned by the statistical engine. All of them are frozen and
serialize to the camelCase shape consumed by the HTTP layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Trend(str, Enum):
    """Direction of a fitted linear trend"""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


@dataclass(frozen=True)
class RegressionResult:
    """Ordinary least squares fit"""

    slope: float
    intercept: float
    r2: float

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept

    def to_dict(self) -> dict[str, Any]:
        return {"slope": self.slope, "intercept": self.intercept, "r2": self.r2}


@dataclass(frozen=True)
class ClusteringResult:
    """K-means output: final centroids, per-point cluster index, iterations run"""

    centroids: list[list[float]] = field(default_factory=list)
    clusters: list[int] = field(default_factory=list)
    iterations: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "centroids": [list(c) for c in self.centroids],
            "clusters": list(self.clusters),
            "iterations": self.iterations,
        }


@dataclass(frozen=True)
class ForecastResult:
    """
    One forecast step

    predicted, upper_bound and lower_bound are never negative; confidence is
    in (0, 1] and shrinks as the horizon grows.
    """

    predicted: float
    upper_bound: float
    lower_bound: float
    confidence: float
    trend: Trend

    def to_dict(self) -> dict[str, Any]:
        return {
            "predicted": self.predicted,
            "upperBound": self.upper_bound,
            "lowerBound": self.lower_bound,
            "confidence": self.confidence,
            "trend": self.trend.value,
        }


@dataclass(frozen=True)
class AnomalyResult:
    """Flagged indices plus the z-score of every point"""

    anomalies: list[int] = field(default_factory=list)
    scores: list[float] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"anomalies": list(self.anomalies), "scores": list(self.scores)}


@dataclass(frozen=True)
class ChurnFeatures:
    """Account features for the logistic churn score"""

    days_since_last_activity: float
    total_revenue: float
    deal_count: int
    avg_deal_size: float
    relationship_strength: str  # WEAK, MODERATE, STRONG or EXCELLENT


@dataclass(frozen=True)
class AggregateStats:
    """Aggregates fed to insight generation"""

    revenue_by_month: list[float] = field(default_factory=list)
    pipeline_stage_counts: list[int] = field(default_factory=list)
    conversion_rate: float = 0.0  # percent, 0-100
