"""
D3 Scoring Module

Multi-factor opportunity scoring with priority, risk level and
recommendations, plus portfolio metrics over scored opportunities.
"""

from .constants import SCORING_WEIGHTS, validate_scoring_weights
from .criteria import (
    count_competitors,
    criteria_from_weighted_deal,
    derive_relationship_strength,
    derive_urgency,
    has_decision_maker_access,
    probability_from_sale_status,
)
from .opportunity import (
    assess_risk_level,
    calculate_opportunity_score,
    calculate_portfolio_metrics,
    determine_priority,
    filter_by_priority,
    generate_recommendation,
    score_opportunities,
    sort_by_priority,
    sort_by_risk,
    sort_by_score,
)
from .types import MarketTiming, OpportunityScore, PortfolioMetrics, RelationshipStrength, RiskLevel, ScoringCriteria, Urgency

__all__ = [
    # Scoring
    "assess_risk_level",
    "calculate_opportunity_score",
    "calculate_portfolio_metrics",
    "determine_priority",
    "filter_by_priority",
    "generate_recommendation",
    "score_opportunities",
    "sort_by_priority",
    "sort_by_risk",
    "sort_by_score",
    "SCORING_WEIGHTS",
    "validate_scoring_weights",
    # Criteria
    "count_competitors",
    "criteria_from_weighted_deal",
    "derive_relationship_strength",
    "derive_urgency",
    "has_decision_maker_access",
    "probability_from_sale_status",
    # Types
    "MarketTiming",
    "OpportunityScore",
    "PortfolioMetrics",
    "RelationshipStrength",
    "RiskLevel",
    "ScoringCriteria",
    "Urgency",
]
