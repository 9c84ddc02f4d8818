"""
Opportunity scoring service

Combines seven 0-100 component scores into a weighted total, then derives
priority, risk level and a recommendation string from the total and the
raw criteria. Every function here is a pure function of its inputs.
"""

import logging
from dataclasses import replace
from typing import Iterable, Mapping, Sequence, Union

from core.metrics import metrics, track_time
from core.utils import clamp, round_half_up
from d2_pipeline.types import Priority
from d2_pipeline.weighted import normalize_deal_size

from . import constants as c
from .types import MarketTiming, OpportunityScore, PortfolioMetrics, RelationshipStrength, RiskLevel, ScoringCriteria, Urgency

logger = logging.getLogger(__name__)

c.validate_scoring_weights(c.SCORING_WEIGHTS)


def calculate_urgency_score(urgency: Urgency, days_in_pipeline: int) -> float:
    score = float(c.URGENCY_SCORES[urgency])
    if days_in_pipeline > c.STALE_PIPELINE_DAYS:
        score *= c.STALE_URGENCY_MULTIPLIER
    elif days_in_pipeline < c.FRESH_PIPELINE_DAYS:
        score *= c.FRESH_URGENCY_MULTIPLIER
    return clamp(score, 0.0, 100.0)


def calculate_competition_score(competitor_count: int) -> float:
    index = min(max(competitor_count, 0), len(c.COMPETITION_SCORES) - 1)
    return float(c.COMPETITION_SCORES[index])


def calculate_relationship_score(strength: RelationshipStrength) -> float:
    return float(c.RELATIONSHIP_SCORES[strength])


def calculate_budget_score(budget_approved: bool) -> float:
    return float(c.BUDGET_APPROVED_SCORE if budget_approved else c.BUDGET_PENDING_SCORE)


def calculate_timing_score(timing: MarketTiming) -> float:
    return float(c.TIMING_SCORES[timing])


def determine_priority(total_score: float, deal_size: float, probability: float, urgency: Urgency) -> Priority:
    """First matching rule wins, most urgent first"""
    if urgency == Urgency.CRITICAL and total_score > c.CRITICAL_URGENT_SCORE:
        return Priority.CRITICAL
    if deal_size > c.CRITICAL_DEAL_SIZE and probability > c.CRITICAL_PROBABILITY:
        return Priority.CRITICAL
    if total_score > c.CRITICAL_SCORE:
        return Priority.CRITICAL

    if total_score > c.HIGH_SCORE:
        return Priority.HIGH
    if deal_size > c.HIGH_DEAL_SIZE and probability > c.HIGH_PROBABILITY:
        return Priority.HIGH

    if total_score > c.MEDIUM_SCORE:
        return Priority.MEDIUM
    return Priority.LOW


def assess_risk_level(criteria: ScoringCriteria, total_score: float) -> RiskLevel:
    """Additive risk points, relieved by a strong total and penalised by a weak one"""
    risk = 0
    if criteria.competitor_count > c.RISK_COMPETITORS:
        risk += c.RISK_COMPETITOR_POINTS
    if not criteria.budget_approved:
        risk += c.RISK_BUDGET_POINTS
    if criteria.relationship_strength == RelationshipStrength.WEAK:
        risk += c.RISK_WEAK_RELATIONSHIP_POINTS
    if criteria.probability < c.RISK_LOW_PROBABILITY:
        risk += c.RISK_LOW_PROBABILITY_POINTS
    if criteria.days_in_pipeline > c.STALE_PIPELINE_DAYS:
        risk += c.RISK_STALE_POINTS
    if criteria.market_timing == MarketTiming.POOR:
        risk += c.RISK_POOR_TIMING_POINTS

    if total_score > c.RISK_STRONG_SCORE:
        risk -= c.RISK_STRONG_SCORE_RELIEF
    elif total_score < c.RISK_WEAK_SCORE:
        risk += c.RISK_WEAK_SCORE_PENALTY

    risk = clamp(risk, 0, 100)
    if risk > c.RISK_CRITICAL_CUTOFF:
        return RiskLevel.CRITICAL
    if risk > c.RISK_HIGH_CUTOFF:
        return RiskLevel.HIGH
    if risk > c.RISK_MEDIUM_CUTOFF:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def generate_recommendation(criteria: ScoringCriteria, priority: Priority) -> str:
    """Priority directive followed by any applicable advice, pipe-delimited"""
    parts = [c.PRIORITY_DIRECTIVES[priority.value]]
    if criteria.competitor_count > c.RECOMMEND_COMPETITORS:
        parts.append(c.COMPETITION_ADVICE)
    if not criteria.budget_approved:
        parts.append(c.BUDGET_ADVICE)
    if criteria.relationship_strength == RelationshipStrength.WEAK:
        parts.append(c.RELATIONSHIP_ADVICE)
    if criteria.days_in_pipeline > c.RECOMMEND_STAGNANT_DAYS:
        parts.append(c.STAGNANT_ADVICE)
    return c.RECOMMENDATION_SEPARATOR.join(parts)


def _sanitize(criteria: ScoringCriteria) -> ScoringCriteria:
    return replace(
        criteria,
        deal_size=max(0.0, criteria.deal_size),
        probability=clamp(criteria.probability, 0.0, 1.0),
        days_in_pipeline=max(0, criteria.days_in_pipeline),
        competitor_count=max(0, criteria.competitor_count),
    )


def calculate_opportunity_score(criteria: ScoringCriteria, opportunity_id: str = "", name: str = "") -> OpportunityScore:
    """
    Score a single opportunity

    Args:
        criteria: Raw criteria; out-of-range numbers are clamped first
        opportunity_id: Identifier copied onto the result
        name: Display name copied onto the result

    Returns:
        OpportunityScore with total rounded half-up to 2 decimals
    """
    criteria = _sanitize(criteria)

    components = {
        "deal_size": normalize_deal_size(criteria.deal_size),
        "probability": criteria.probability * 100,
        "urgency": calculate_urgency_score(criteria.urgency, criteria.days_in_pipeline),
        "competition": calculate_competition_score(criteria.competitor_count),
        "relationship": calculate_relationship_score(criteria.relationship_strength),
        "budget": calculate_budget_score(criteria.budget_approved),
        "timing": calculate_timing_score(criteria.market_timing),
    }
    weighted = sum(components[key] * weight for key, weight in c.SCORING_WEIGHTS.items())
    total_score = round_half_up(clamp(weighted, 0.0, 100.0), 2)

    priority = determine_priority(total_score, criteria.deal_size, criteria.probability, criteria.urgency)
    risk_level = assess_risk_level(criteria, total_score)

    return OpportunityScore(
        id=opportunity_id,
        name=name,
        total_score=total_score,
        deal_size=criteria.deal_size,
        probability=criteria.probability,
        deal_size_score=components["deal_size"],
        probability_score=round_half_up(components["probability"], 2),
        urgency_score=round_half_up(components["urgency"], 2),
        competition_score=components["competition"],
        relationship_score=components["relationship"],
        budget_score=components["budget"],
        timing_score=components["timing"],
        priority=priority,
        risk_level=risk_level,
        recommendation=generate_recommendation(criteria, priority),
    )


OpportunityInput = Union[Mapping, tuple]


@track_time("score_opportunities")
def score_opportunities(opportunities: Iterable[OpportunityInput]) -> list[OpportunityScore]:
    """
    Score a batch of opportunities

    Each item is either a mapping with ``id``, ``name`` and ``criteria``
    (a ScoringCriteria or its wire dict) or an ``(id, name, criteria)`` tuple.
    """
    results = []
    for item in opportunities:
        if isinstance(item, Mapping):
            opportunity_id, name, criteria = item.get("id", ""), item.get("name", ""), item["criteria"]
        else:
            opportunity_id, name, criteria = item
        if not isinstance(criteria, ScoringCriteria):
            criteria = ScoringCriteria.from_dict(criteria)

        score = calculate_opportunity_score(criteria, str(opportunity_id), str(name))
        metrics.track_opportunity_scored(score.priority.value, score.risk_level.value)
        results.append(score)

    logger.debug(f"Scored {len(results)} opportunities")
    return results


def sort_by_priority(scores: Sequence[OpportunityScore]) -> list[OpportunityScore]:
    """Priority descending, then total score descending"""
    return sorted(scores, key=lambda s: (s.priority.rank, s.total_score), reverse=True)


def sort_by_risk(scores: Sequence[OpportunityScore]) -> list[OpportunityScore]:
    """Riskiest first, then lowest score first"""
    return sorted(scores, key=lambda s: (-s.risk_level.rank, s.total_score))


def sort_by_score(scores: Sequence[OpportunityScore]) -> list[OpportunityScore]:
    return sorted(scores, key=lambda s: s.total_score, reverse=True)


def filter_by_priority(scores: Sequence[OpportunityScore], priority: Priority) -> list[OpportunityScore]:
    priority = Priority(priority)
    return [s for s in scores if s.priority == priority]


def calculate_portfolio_metrics(scores: Sequence[OpportunityScore]) -> PortfolioMetrics:
    """Averages, distributions and value at stake across scored opportunities"""
    priority_distribution = {p: 0 for p in Priority}
    risk_distribution = {r: 0 for r in RiskLevel}
    if not scores:
        return PortfolioMetrics(priority_distribution=priority_distribution, risk_distribution=risk_distribution)

    for score in scores:
        priority_distribution[score.priority] += 1
        risk_distribution[score.risk_level] += 1

    return PortfolioMetrics(
        average_score=round_half_up(sum(s.total_score for s in scores) / len(scores), 2),
        priority_distribution=priority_distribution,
        risk_distribution=risk_distribution,
        total_value=sum(s.deal_size for s in scores),
        high_priority_value=sum(s.deal_size for s in scores if s.priority in (Priority.CRITICAL, Priority.HIGH)),
        at_risk_value=sum(s.deal_size for s in scores if s.risk_level.is_at_risk),
    )
