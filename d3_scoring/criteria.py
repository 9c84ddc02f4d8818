"""
Criteria derivation

Helpers that turn raw CRM signals (follow-ups, activities, contact roles,
sale status) into the qualitative inputs of the opportunity score.
"""

from typing import Iterable, Optional

from d2_pipeline.types import WeightedDeal

from .types import MarketTiming, RelationshipStrength, ScoringCriteria, Urgency

DECISION_MAKER_KEYWORDS = ("director", "manager", "head", "chief", "ceo", "cfo", "cto")

SALE_STATUS_PROBABILITIES = {
    "AWARDED": 0.9,
    "BIDDING": 0.6,
}
DEFAULT_SALE_PROBABILITY = 0.3


def derive_urgency(overdue_follow_ups: int, days_in_pipeline: int) -> Urgency:
    """Overdue follow-ups dominate; otherwise age in pipeline"""
    if overdue_follow_ups > 3:
        return Urgency.CRITICAL
    if overdue_follow_ups > 0:
        return Urgency.HIGH
    if days_in_pipeline > 30:
        return Urgency.MEDIUM
    return Urgency.LOW


def derive_relationship_strength(activity_count: int) -> RelationshipStrength:
    if activity_count > 10:
        return RelationshipStrength.EXCELLENT
    if activity_count > 5:
        return RelationshipStrength.STRONG
    if activity_count > 2:
        return RelationshipStrength.MODERATE
    return RelationshipStrength.WEAK


def has_decision_maker_access(contact_roles: Iterable[Optional[str]]) -> bool:
    """True when any contact role names a decision maker"""
    for role in contact_roles:
        if role and any(keyword in role.lower() for keyword in DECISION_MAKER_KEYWORDS):
            return True
    return False


def probability_from_sale_status(status: Optional[str]) -> float:
    return SALE_STATUS_PROBABILITIES.get((status or "").upper(), DEFAULT_SALE_PROBABILITY)


def count_competitors(competitors: Optional[str]) -> int:
    """Count a comma-separated competitor list, ignoring blanks"""
    if not competitors:
        return 0
    return len([name for name in competitors.split(",") if name.strip()])


def criteria_from_weighted_deal(
    deal: WeightedDeal,
    *,
    days_in_pipeline: Optional[int] = None,
    decision_maker_access: bool = False,
    budget_approved: bool = False,
    overdue_follow_ups: int = 0,
    activity_count: int = 0,
    market_timing: MarketTiming = MarketTiming.GOOD,
) -> ScoringCriteria:
    """
    Build scoring criteria from an enriched pipeline deal

    Probability and competitor count come from the deal itself; the
    remaining signals are supplied by the caller. Days in pipeline default
    to the deal's days in stage.
    """
    days = deal.days_in_stage if days_in_pipeline is None else days_in_pipeline
    return ScoringCriteria(
        deal_size=deal.value,
        probability=deal.probability,
        days_in_pipeline=days,
        competitor_count=deal.competitor_count,
        decision_maker_access=decision_maker_access,
        budget_approved=budget_approved,
        relationship_strength=derive_relationship_strength(activity_count),
        urgency=derive_urgency(overdue_follow_ups, days),
        market_timing=market_timing,
    )
