"""
Revenue outlook and account segmentation

Thin compositions of the statistical engine used by the reporting layer:
a smoothed, projected and anomaly-annotated view of monthly revenue, and
k-means segments over account feature vectors.
"""

from typing import Sequence

from core.logging import get_logger
from core.metrics import track_time
from d1_statistics import (
    detect_anomalies,
    exponential_moving_average,
    forecast_time_series,
    k_means_clustering,
    linear_regression,
    normalize_features,
)
from d1_statistics.types import Trend

from .schemas import AccountSegmentation, RevenueOutlook

logger = get_logger(__name__)


@track_time("revenue_outlook")
def build_revenue_outlook(
    monthly_revenue: Sequence[float],
    periods_ahead: int = 3,
    confidence_level: float = 0.95,
    alpha: float = 0.3,
    anomaly_threshold: float = 2,
) -> RevenueOutlook:
    """
    Smooth, fit and project a monthly revenue history

    Args:
        monthly_revenue: Revenue per month, oldest first
        periods_ahead: Number of months to project
        confidence_level: Band width and starting confidence of the projection
        alpha: EMA smoothing factor
        anomaly_threshold: z-score at which a month is flagged

    Returns:
        RevenueOutlook
    """
    history = [float(v) for v in monthly_revenue]
    fit = linear_regression(list(enumerate(history)))
    projection = forecast_time_series(history, periods_ahead, confidence_level)

    outlook = RevenueOutlook(
        history=history,
        smoothed=exponential_moving_average(history, alpha),
        predicted=[step.predicted for step in projection],
        upper_bound=[step.upper_bound for step in projection],
        lower_bound=[step.lower_bound for step in projection],
        confidence=[step.confidence for step in projection],
        trend=projection[0].trend if projection else Trend.STABLE,
        slope=fit.slope,
        r_squared=fit.r2,
        anomalies=detect_anomalies(history, anomaly_threshold).anomalies,
    )
    logger.debug(f"Revenue outlook over {len(history)} months, trend {outlook.trend.value}")
    return outlook


def segment_accounts(feature_vectors: Sequence[Sequence[float]], k: int = 3, max_iterations: int = 50) -> AccountSegmentation:
    """K-means on min-max normalized account features; centroids are in normalized space"""
    if not feature_vectors or k <= 0:
        return AccountSegmentation()

    result = k_means_clustering(normalize_features(feature_vectors), k, max_iterations)
    segments = [[] for _ in result.centroids]
    for index, cluster in enumerate(result.clusters):
        segments[cluster].append(index)

    return AccountSegmentation(centroids=result.centroids, segments=segments, iterations=result.iterations)
