"""
Statistical Engine

Hand-rolled numeric primitives used by the forecasting and analytics layers:
least squares regression, exponential smoothing, k-means clustering,
time-series forecasting with confidence bands, anomaly detection, Pearson
correlation and a logistic churn score.

Every function is pure and degrades to a structurally valid default on
empty or degenerate input instead of raising.
"""

import logging
import math
from typing import Sequence

from core.exceptions import ValidationError

from .types import AnomalyResult, ChurnFeatures, ClusteringResult, ForecastResult, RegressionResult, Trend

logger = logging.getLogger(__name__)

# Centroid movement below this ends k-means early
CONVERGENCE_TOLERANCE = 0.001

# Slope magnitude separating a trend from a flat series
TREND_SLOPE_THRESHOLD = 0.01

# Points whose z-score sits on the threshold within float noise are still flagged
ANOMALY_EPSILON = 1e-9

CHURN_PROBABILITY_FLOOR = 0.01
CHURN_PROBABILITY_CEILING = 0.95

# Heuristic logistic coefficients; fixed, never fitted
CHURN_WEIGHTS = {
    "days_since_last_activity": -0.01,
    "total_revenue": -0.000001,
    "deal_count": -0.05,
    "avg_deal_size": -0.00001,
}
CHURN_RELATIONSHIP_WEIGHTS = {
    "WEAK": 0.8,
    "MODERATE": 0.4,
    "STRONG": 0.1,
    "EXCELLENT": 0.05,
}


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def linear_regression(points: Sequence[tuple[float, float]]) -> RegressionResult:
    """
    Ordinary least squares fit over (x, y) pairs

    Fewer than two points, or x values that never vary, yield a flat line
    through the mean of y with R² of 0.
    """
    n = len(points)
    if n == 0:
        return RegressionResult(slope=0.0, intercept=0.0, r2=0.0)

    xs = [float(x) for x, _ in points]
    ys = [float(y) for _, y in points]
    mean_y = _mean(ys)

    if n < 2 or max(xs) == min(xs):
        return RegressionResult(slope=0.0, intercept=mean_y, r2=0.0)

    mean_x = _mean(xs)
    sxx = sum((x - mean_x) ** 2 for x in xs)
    sxy = sum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys))

    slope = sxy / sxx
    intercept = mean_y - slope * mean_x

    ss_res = sum((y - (slope * x + intercept)) ** 2 for x, y in zip(xs, ys))
    ss_tot = sum((y - mean_y) ** 2 for y in ys)
    if ss_tot == 0:
        # No variance in y to explain
        r2 = 0.0
    else:
        r2 = max(0.0, min(1.0, 1 - ss_res / ss_tot))

    return RegressionResult(slope=slope, intercept=intercept, r2=r2)


def exponential_moving_average(series: Sequence[float], alpha: float = 0.3) -> list[float]:
    """EMA seeded with the first observation"""
    if not series:
        return []

    result = [float(series[0])]
    for value in series[1:]:
        result.append(alpha * value + (1 - alpha) * result[-1])
    return result


def euclidean_distance(point1: Sequence[float], point2: Sequence[float]) -> float:
    return math.sqrt(sum((a - b) ** 2 for a, b in zip(point1, point2)))


def k_means_clustering(
    points: Sequence[Sequence[float]],
    k: int = 3,
    max_iterations: int = 50,
) -> ClusteringResult:
    """
    Deterministic k-means

    Centroids start at the first ``k`` points. Each point joins its nearest
    centroid (ties go to the lower index). Iteration stops once no centroid
    moves by CONVERGENCE_TOLERANCE or more, or after ``max_iterations``.
    A centroid that loses all its points stays where it was.
    """
    if not points or k <= 0:
        return ClusteringResult()

    data = [[float(v) for v in point] for point in points]
    centroids = [list(point) for point in data[: min(k, len(data))]]
    clusters: list[int] = []
    iterations = 0

    for iteration in range(max_iterations):
        iterations = iteration + 1

        clusters = []
        for point in data:
            best_index = 0
            best_distance = math.inf
            for index, centroid in enumerate(centroids):
                distance = euclidean_distance(point, centroid)
                if distance < best_distance:
                    best_distance = distance
                    best_index = index
            clusters.append(best_index)

        new_centroids = []
        for index, centroid in enumerate(centroids):
            members = [point for point, cluster in zip(data, clusters) if cluster == index]
            if not members:
                new_centroids.append(centroid)
                continue
            dimensions = len(members[0])
            new_centroids.append([sum(member[d] for member in members) / len(members) for d in range(dimensions)])

        converged = all(
            euclidean_distance(old, new) < CONVERGENCE_TOLERANCE for old, new in zip(centroids, new_centroids)
        )
        centroids = new_centroids
        if converged:
            break

    logger.debug(f"k-means finished after {iterations} iterations with {len(centroids)} centroids")
    return ClusteringResult(centroids=centroids, clusters=clusters, iterations=iterations)


def normalize_features(vectors: Sequence[Sequence[float]]) -> list[list[float]]:
    """Min-max scale each dimension to [0, 1]; constant dimensions become 0"""
    if not vectors:
        return []

    dimensions = len(vectors[0])
    lows = [min(v[d] for v in vectors) for d in range(dimensions)]
    highs = [max(v[d] for v in vectors) for d in range(dimensions)]

    normalized = []
    for vector in vectors:
        row = []
        for d in range(dimensions):
            span = highs[d] - lows[d]
            row.append((vector[d] - lows[d]) / span if span else 0.0)
        normalized.append(row)
    return normalized


def forecast_time_series(
    history: Sequence[float],
    periods_ahead: int = 3,
    confidence_level: float = 0.95,
) -> list[ForecastResult]:
    """
    Project a series forward along its linear trend

    With fewer than three observations the last value (or 0) is repeated at
    50% confidence with a ±20% band. Otherwise the band widens with
    ``confidence_level × stdError × sqrt(i)`` and confidence drops by 0.1
    per step, floored at 0.1.
    """
    if periods_ahead <= 0:
        return []

    confidence_level = max(0.0, min(1.0, confidence_level))

    if len(history) < 3:
        last = float(history[-1]) if history else 0.0
        return [
            ForecastResult(
                predicted=max(0.0, last),
                upper_bound=max(0.0, last * 1.2),
                lower_bound=max(0.0, last * 0.8),
                confidence=0.5,
                trend=Trend.STABLE,
            )
            for _ in range(periods_ahead)
        ]

    fit = linear_regression([(index, value) for index, value in enumerate(history)])

    errors = [value - fit.predict(index) for index, value in enumerate(history)]
    std_error = math.sqrt(sum(error * error for error in errors) / len(errors))

    if fit.slope > TREND_SLOPE_THRESHOLD:
        trend = Trend.INCREASING
    elif fit.slope < -TREND_SLOPE_THRESHOLD:
        trend = Trend.DECREASING
    else:
        trend = Trend.STABLE

    forecasts = []
    last_index = len(history) - 1
    for step in range(1, periods_ahead + 1):
        predicted = fit.predict(last_index + step)
        margin = confidence_level * std_error * math.sqrt(step)

        forecasts.append(
            ForecastResult(
                predicted=max(0.0, predicted),
                upper_bound=max(0.0, predicted + margin),
                lower_bound=max(0.0, predicted - margin),
                confidence=max(0.1, confidence_level - step * 0.1),
                trend=trend,
            )
        )

    return forecasts


def _sigmoid(z: float) -> float:
    """Logistic function that cannot overflow"""
    if math.isnan(z):
        return 0.5
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    exp_z = math.exp(z)
    return exp_z / (1.0 + exp_z)


def predict_churn_probability(features: ChurnFeatures) -> float:
    """Logistic churn score clamped to [0.01, 0.95]"""
    strength = str(getattr(features.relationship_strength, "value", features.relationship_strength)).upper()
    if strength not in CHURN_RELATIONSHIP_WEIGHTS:
        raise ValidationError(
            f"Unknown relationship strength: {features.relationship_strength}",
            field="relationship_strength",
        )

    linear_sum = (
        features.days_since_last_activity * CHURN_WEIGHTS["days_since_last_activity"]
        + features.total_revenue * CHURN_WEIGHTS["total_revenue"]
        + features.deal_count * CHURN_WEIGHTS["deal_count"]
        + features.avg_deal_size * CHURN_WEIGHTS["avg_deal_size"]
        + CHURN_RELATIONSHIP_WEIGHTS[strength]
    )

    probability = _sigmoid(linear_sum)
    return max(CHURN_PROBABILITY_FLOOR, min(CHURN_PROBABILITY_CEILING, probability))


def detect_anomalies(series: Sequence[float], threshold: float = 2) -> AnomalyResult:
    """Flag points whose population z-score reaches ``threshold``"""
    if len(series) < 3:
        return AnomalyResult()

    mean = _mean(series)
    variance = sum((value - mean) ** 2 for value in series) / len(series)
    std_dev = math.sqrt(variance)

    if std_dev == 0:
        return AnomalyResult(anomalies=[], scores=[0.0] * len(series))

    scores = [abs(value - mean) / std_dev for value in series]
    anomalies = [index for index, score in enumerate(scores) if score >= threshold - ANOMALY_EPSILON]
    return AnomalyResult(anomalies=anomalies, scores=scores)


def correlation_coefficient(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation; 0 whenever it is undefined"""
    if len(x) != len(y) or len(x) < 2:
        return 0.0

    mean_x = _mean(x)
    mean_y = _mean(y)
    sxy = sum((a - mean_x) * (b - mean_y) for a, b in zip(x, y))
    sxx = sum((a - mean_x) ** 2 for a in x)
    syy = sum((b - mean_y) ** 2 for b in y)

    denominator = math.sqrt(sxx * syy)
    if denominator == 0:
        return 0.0
    return max(-1.0, min(1.0, sxy / denominator))
