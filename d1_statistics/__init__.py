"""
D1 Statistics Module

Domain-agnostic numeric primitives: regression, smoothing, clustering,
forecasting with confidence bands, anomaly detection, correlation and
churn scoring.
"""

from .engine import (
    correlation_coefficient,
    detect_anomalies,
    euclidean_distance,
    exponential_moving_average,
    forecast_time_series,
    k_means_clustering,
    linear_regression,
    normalize_features,
    predict_churn_probability,
)
from .insights import generate_insights
from .types import AggregateStats, AnomalyResult, ChurnFeatures, ClusteringResult, ForecastResult, RegressionResult, Trend

__all__ = [
    # Engine
    "linear_regression",
    "exponential_moving_average",
    "euclidean_distance",
    "k_means_clustering",
    "normalize_features",
    "forecast_time_series",
    "predict_churn_probability",
    "detect_anomalies",
    "correlation_coefficient",
    "generate_insights",
    # Types
    "AggregateStats",
    "AnomalyResult",
    "ChurnFeatures",
    "ClusteringResult",
    "ForecastResult",
    "RegressionResult",
    "Trend",
]
