"""Constants for opportunity scoring."""

import logging

from core.exceptions import ConfigurationError

from .types import MarketTiming, RelationshipStrength, Urgency

logger = logging.getLogger(__name__)

# Weight sum validation thresholds
WEIGHT_SUM_WARNING_THRESHOLD = 0.005  # Warning if |Σ-1.0| > 0.005 AND ≤ 0.05
WEIGHT_SUM_ERROR_THRESHOLD = 0.05  # Error if |Σ-1.0| > 0.05

SCORING_WEIGHTS = {
    "deal_size": 0.25,
    "probability": 0.20,
    "urgency": 0.15,
    "competition": 0.10,
    "relationship": 0.10,
    "budget": 0.10,
    "timing": 0.10,
}

URGENCY_SCORES = {
    Urgency.CRITICAL: 100,
    Urgency.HIGH: 80,
    Urgency.MEDIUM: 60,
    Urgency.LOW: 40,
}
# Days in pipeline beyond which urgency decays, and below which it gets a bonus
STALE_PIPELINE_DAYS = 90
FRESH_PIPELINE_DAYS = 30
STALE_URGENCY_MULTIPLIER = 0.8
FRESH_URGENCY_MULTIPLIER = 1.1

# Indexed by competitor count; anything beyond the table scores the last entry
COMPETITION_SCORES = [100, 80, 60, 40, 20]

RELATIONSHIP_SCORES = {
    RelationshipStrength.EXCELLENT: 100,
    RelationshipStrength.STRONG: 80,
    RelationshipStrength.MODERATE: 60,
    RelationshipStrength.WEAK: 40,
}

TIMING_SCORES = {
    MarketTiming.EXCELLENT: 100,
    MarketTiming.GOOD: 80,
    MarketTiming.FAIR: 60,
    MarketTiming.POOR: 40,
}

BUDGET_APPROVED_SCORE = 100
BUDGET_PENDING_SCORE = 30

# Priority thresholds
CRITICAL_URGENT_SCORE = 70
CRITICAL_SCORE = 85
HIGH_SCORE = 75
MEDIUM_SCORE = 60
CRITICAL_DEAL_SIZE = 1_000_000
CRITICAL_PROBABILITY = 0.7
HIGH_DEAL_SIZE = 500_000
HIGH_PROBABILITY = 0.5

# Risk points
RISK_COMPETITORS = 3
RISK_COMPETITOR_POINTS = 30
RISK_BUDGET_POINTS = 25
RISK_WEAK_RELATIONSHIP_POINTS = 20
RISK_LOW_PROBABILITY = 0.3
RISK_LOW_PROBABILITY_POINTS = 25
RISK_STALE_POINTS = 20
RISK_POOR_TIMING_POINTS = 15
RISK_STRONG_SCORE = 80
RISK_STRONG_SCORE_RELIEF = 20
RISK_WEAK_SCORE = 50
RISK_WEAK_SCORE_PENALTY = 20
RISK_CRITICAL_CUTOFF = 70
RISK_HIGH_CUTOFF = 50
RISK_MEDIUM_CUTOFF = 30

# Recommendation triggers
RECOMMEND_COMPETITORS = 2
RECOMMEND_STAGNANT_DAYS = 60
RECOMMENDATION_SEPARATOR = " | "

PRIORITY_DIRECTIVES = {
    "CRITICAL": "URGENT: Schedule immediate executive meeting and prepare proposal",
    "HIGH": "HIGH PRIORITY: Contact decision maker within 24 hours",
    "MEDIUM": "MEDIUM: Follow up within 3-5 business days",
    "LOW": "LOW: Monitor and nurture relationship",
}
COMPETITION_ADVICE = "HIGH COMPETITION: Differentiate value proposition and accelerate timeline"
BUDGET_ADVICE = "BUDGET UNCERTAIN: Focus on ROI demonstration and cost-benefit analysis"
RELATIONSHIP_ADVICE = "BUILD RELATIONSHIP: Schedule discovery call to understand needs better"
STAGNANT_ADVICE = "STAGNANT: Re-engage with fresh value proposition or update status"


def validate_scoring_weights(weights: dict[str, float]) -> float:
    """Check that component weights sum to 1.0.

    Returns the sum. Logs a warning for small drift and raises
    ``ConfigurationError`` beyond the error threshold.
    """
    total = sum(weights.values())
    deviation = abs(total - 1.0)
    if deviation > WEIGHT_SUM_ERROR_THRESHOLD:
        raise ConfigurationError(f"Scoring weights sum to {total:.4f}, expected 1.0", setting="SCORING_WEIGHTS")
    if deviation > WEIGHT_SUM_WARNING_THRESHOLD:
        logger.warning(f"Scoring weights sum to {total:.4f}, expected 1.0 (within tolerance)")
    return total
