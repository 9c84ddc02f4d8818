"""
Weighted pipeline service

Turns raw deals into WeightedDeals by adjusting the stage close
probability for deal quality, activity recency, deal size and pace in the
stage. Also derives the risk score and priority of each deal and the
portfolio-level pipeline metrics built on top of them.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import date, datetime, timedelta
from functools import lru_cache
from typing import Optional, Sequence

from core.metrics import metrics, track_time
from core.utils import add_months, clamp, days_between, ensure_utc, month_key, round_half_up, safe_divide, utc_now

from . import constants as c
from .stage_schema import resolve_stage_table_path, validate_stage_table
from .types import (
    Deal,
    DealQuality,
    DealStage,
    MonthlyPipelineValue,
    PipelineMetrics,
    PipelineVelocityMetrics,
    Priority,
    StageProbability,
    WeightedDeal,
)

logger = logging.getLogger(__name__)

# Stages counted as having passed qualification for the conversion rate
CONVERTED_STAGES = (DealStage.QUALIFICATION, DealStage.PROPOSAL, DealStage.NEGOTIATION, DealStage.CLOSED_WON)


@lru_cache(maxsize=1)
def load_stage_probabilities() -> dict[DealStage, StageProbability]:
    """Load and cache the validated stage probability table.

    Call ``load_stage_probabilities.cache_clear()`` after changing
    ``STAGE_PROBABILITIES_PATH``.
    """
    path = resolve_stage_table_path()
    table = validate_stage_table(path).to_table()
    logger.info(f"Stage probability table loaded from {path}")
    return table


def get_stage_config(stage: DealStage) -> StageProbability:
    return load_stage_probabilities()[stage]


def get_stage_base_probability(stage: DealStage) -> float:
    """Base close probability for a stage"""
    return get_stage_config(stage).base_probability


def normalize_deal_size(amount: float) -> float:
    """Map a currency amount onto the 20-100 deal-size scale"""
    for minimum, score in c.DEAL_SIZE_BREAKPOINTS:
        if amount >= minimum:
            return float(score)
    return float(c.DEAL_SIZE_FLOOR_SCORE)


def _days_since(moment: datetime, now: datetime) -> int:
    return max(0, days_between(now, moment))


def calculate_weighted_probability(
    stage: DealStage,
    deal_size: float,
    days_in_stage: int,
    last_activity: datetime,
    quality: DealQuality = DealQuality.MEDIUM,
    now: Optional[datetime] = None,
) -> float:
    """
    Adjusted close probability for a deal

    The stage base probability is scaled by deal quality, a linear recency
    decay floored at 70 %, a deal-size factor and a pace factor, then
    clamped to the stage envelope and rounded to 2 decimals.
    """
    now = now or utc_now()
    config = get_stage_config(stage)

    recency_decay = max(
        c.MIN_RECENCY_DECAY,
        1 - _days_since(last_activity, now) / c.STALENESS_THRESHOLD_DAYS,
    )

    value_multiplier = 1.0
    if deal_size > c.LARGE_DEAL_VALUE:
        value_multiplier = c.LARGE_DEAL_MULTIPLIER
    elif deal_size < c.SMALL_DEAL_VALUE:
        value_multiplier = c.SMALL_DEAL_MULTIPLIER

    if days_in_stage > config.avg_days_in_stage:
        pace_multiplier = c.SLOW_PACE_MULTIPLIER
    else:
        pace_multiplier = c.ON_PACE_MULTIPLIER

    probability = (
        config.base_probability
        * DealQuality(quality).multiplier
        * recency_decay
        * value_multiplier
        * pace_multiplier
    )
    probability = clamp(probability, config.min_probability, config.max_probability)
    return round_half_up(probability, 2)


def calculate_risk_score(deal: WeightedDeal, now: Optional[datetime] = None) -> float:
    """Additive 0-100 risk score for an enriched deal"""
    now = now or utc_now()
    config = get_stage_config(deal.stage)
    score = 0

    if deal.value > c.RISK_HIGH_VALUE:
        score += c.RISK_HIGH_VALUE_POINTS
    if deal.days_in_stage > config.avg_days_in_stage * c.RISK_SLOW_STAGE_FACTOR:
        score += c.RISK_SLOW_STAGE_POINTS
    if deal.probability < c.RISK_LOW_PROBABILITY:
        score += c.RISK_LOW_PROBABILITY_POINTS
    if _days_since(deal.last_activity, now) > c.RISK_INACTIVE_DAYS:
        score += c.RISK_INACTIVE_POINTS
    if deal.competitor_count > c.RISK_COMPETITOR_COUNT:
        score += c.RISK_COMPETITOR_POINTS

    return float(min(100, score))


def calculate_priority(deal: WeightedDeal) -> Priority:
    """
    Priority from weighted value, probability and risk

    Weighted value is mapped onto the 20-100 deal-size scale first. Risk
    above the high-risk threshold lifts the result one bucket.
    """
    composite = (
        normalize_deal_size(deal.weighted_value) * c.PRIORITY_VALUE_WEIGHT
        + deal.probability * 100 * c.PRIORITY_PROBABILITY_WEIGHT
        + (100 - deal.risk_score) * c.PRIORITY_SAFETY_WEIGHT
    )

    if composite > c.PRIORITY_HIGH_CUTOFF:
        priority = Priority.HIGH
    elif composite > c.PRIORITY_MEDIUM_CUTOFF:
        priority = Priority.MEDIUM
    else:
        priority = Priority.LOW

    # Assumed escalation rule for risky deals; revisit with sales ops
    if deal.risk_score > c.HIGH_RISK_THRESHOLD:
        priority = priority.elevated()
    return priority


def calculate_velocity_score(stage: DealStage, days_in_stage: int) -> float:
    """Pace through the current stage as 0-100 (100 = at or ahead of average)"""
    config = get_stage_config(stage)
    ratio = safe_divide(config.avg_days_in_stage, max(days_in_stage, 1), default=1.0)
    return round_half_up(clamp(ratio, 0.0, 1.0) * 100, 2)


def enrich_deal(
    deal: Deal,
    quality: DealQuality = DealQuality.MEDIUM,
    now: Optional[datetime] = None,
) -> WeightedDeal:
    """Build a WeightedDeal with probability, risk and priority filled in"""
    now = now or utc_now()
    days_in_stage = max(0, days_between(now, deal.created_at))
    last_activity = ensure_utc(deal.updated_at)

    probability = calculate_weighted_probability(
        deal.stage, deal.value, days_in_stage, last_activity, quality=quality, now=now
    )

    sales_cycle_days = None
    if deal.closed_date is not None:
        sales_cycle_days = max(0, days_between(deal.closed_date, deal.created_at))

    provisional = WeightedDeal(
        id=deal.id,
        name=deal.name,
        value=deal.value,
        stage=deal.stage,
        probability=probability,
        days_in_stage=days_in_stage,
        risk_score=0.0,
        priority=Priority.MEDIUM,
        last_activity=last_activity,
        owner_id=deal.owner_id,
        expected_close_date=deal.expected_close_date,
        competitor_count=deal.competitor_count,
        velocity_score=calculate_velocity_score(deal.stage, days_in_stage),
        sales_cycle_days=sales_cycle_days,
        owner_name=deal.owner_name,
        company_name=deal.company_name,
    )
    with_risk = replace(provisional, risk_score=calculate_risk_score(provisional, now=now))
    enriched = replace(with_risk, priority=calculate_priority(with_risk))

    metrics.track_deal_enriched(deal.stage.value)
    return enriched


@track_time("enrich_deals")
def enrich_deals(
    deals: Sequence[Deal],
    quality: DealQuality = DealQuality.MEDIUM,
    now: Optional[datetime] = None,
    max_workers: Optional[int] = None,
) -> list[WeightedDeal]:
    """
    Enrich a batch of deals

    With ``max_workers`` above 1 the deals are processed on a thread pool.
    Output order always matches input order.
    """
    now = now or utc_now()
    # Worker threads only read the cached table
    load_stage_probabilities()

    if not max_workers or max_workers <= 1 or len(deals) <= 1:
        return [enrich_deal(deal, quality, now) for deal in deals]

    logger.debug(f"Enriching {len(deals)} deals with {max_workers} workers")
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(lambda deal: enrich_deal(deal, quality, now), deals))


def calculate_velocity_metrics(deals: Sequence[WeightedDeal]) -> PipelineVelocityMetrics:
    """
    Sales velocity of the pipeline

    Win rate comes from closed deals; with no wins it falls back to the
    average probability clamped to [0.05, 0.95]. Cycle length comes from
    won deals, then from open deal ages, then a 60-day default.
    """
    open_stages = set(DealStage.open_stages())
    qualified = [d for d in deals if d.stage in open_stages]
    won = [d for d in deals if d.stage == DealStage.CLOSED_WON]
    lost = [d for d in deals if d.stage == DealStage.CLOSED_LOST]

    qualified_count = len(qualified)
    average_deal_size = safe_divide(sum(d.value for d in qualified), qualified_count)

    win_rate = safe_divide(len(won), len(won) + len(lost))
    if win_rate == 0 and deals:
        average_probability = sum(d.probability for d in deals) / len(deals)
        win_rate = clamp(average_probability, 0.05, 0.95)

    cycle_samples = []
    for deal in won:
        cycle = deal.sales_cycle_days if deal.sales_cycle_days is not None else deal.days_in_stage
        if cycle and cycle > 0:
            cycle_samples.append(cycle)
    if not cycle_samples:
        cycle_samples = [d.days_in_stage for d in deals if d.days_in_stage > 0]
    average_cycle = (
        sum(cycle_samples) / len(cycle_samples) if cycle_samples else float(c.DEFAULT_SALES_CYCLE_DAYS)
    )

    if qualified_count > 0:
        velocity_per_day = qualified_count * average_deal_size * win_rate / average_cycle
        deals_per_month = qualified_count * win_rate * 30 / average_cycle
    else:
        velocity_per_day = 0.0
        deals_per_month = 0.0

    return PipelineVelocityMetrics(
        qualified_deals=qualified_count,
        average_deal_size=average_deal_size,
        win_rate=win_rate,
        sales_cycle_length_days=int(round_half_up(average_cycle, 0)),
        velocity_per_day=velocity_per_day,
        velocity_per_month=velocity_per_day * 30,
        deals_per_month=deals_per_month,
    )


@track_time("pipeline_metrics")
def generate_pipeline_metrics(
    deals: Sequence[WeightedDeal],
    now: Optional[datetime] = None,
    months: int = c.PIPELINE_FORECAST_MONTHS,
) -> PipelineMetrics:
    """Totals, stage distribution, monthly outlook, conversion and velocity"""
    now = now or utc_now()
    total_deals = len(deals)

    stage_distribution = {stage: 0 for stage in DealStage}
    for deal in deals:
        stage_distribution[deal.stage] += 1

    current_month = ensure_utc(now).date()
    monthly_forecast = []
    for offset in range(months):
        month_start = add_months(current_month, offset)
        in_month = [
            d
            for d in deals
            if d.expected_close_date is not None and month_key(d.expected_close_date) == month_key(month_start)
        ]
        monthly_forecast.append(
            MonthlyPipelineValue(
                month=month_start.strftime("%b %Y"),
                value=sum(d.value for d in in_month),
                weighted_value=sum(d.weighted_value for d in in_month),
            )
        )

    converted = sum(1 for d in deals if d.stage in CONVERTED_STAGES)
    velocity_details = calculate_velocity_metrics(deals)

    return PipelineMetrics(
        total_deals=total_deals,
        total_value=sum(d.value for d in deals),
        weighted_value=sum(d.weighted_value for d in deals),
        average_probability=safe_divide(sum(d.probability for d in deals), total_deals),
        velocity=velocity_details.velocity_per_month,
        velocity_details=velocity_details,
        conversion_rate=safe_divide(converted, total_deals),
        stage_distribution=stage_distribution,
        monthly_forecast=monthly_forecast,
    )


def generate_recommendations(pipeline_metrics: PipelineMetrics, deals: Sequence[WeightedDeal]) -> list[str]:
    """Actionable pipeline suggestions, in a stable order"""
    recommendations = []

    if pipeline_metrics.conversion_rate < c.LOW_CONVERSION_RATE:
        recommendations.append("Improve lead qualification process to increase conversion rates")

    high_risk = sum(1 for d in deals if d.risk_score > c.HIGH_RISK_THRESHOLD)
    if high_risk:
        recommendations.append(f"{high_risk} deals have high risk scores - review and take action")

    stagnant = sum(1 for d in deals if d.days_in_stage > c.STAGNANT_DAYS_IN_STAGE)
    if stagnant:
        recommendations.append(f"{stagnant} deals have been stagnant for over {c.STAGNANT_DAYS_IN_STAGE} days")

    velocity = pipeline_metrics.velocity_details
    if velocity.deals_per_month < 1:
        recommendations.append("Pipeline velocity is critically low - accelerate movement of qualified deals")
    elif velocity.deals_per_month < 3:
        recommendations.append(
            "Pipeline velocity is below target - streamline stage handoffs to close more deals each month"
        )

    if velocity.velocity_per_month < velocity.average_deal_size:
        recommendations.append(
            "Monthly revenue velocity trails average deal size - focus on shortening the sales cycle"
        )

    return recommendations


def calculate_expected_close_date(stage: DealStage, now: Optional[datetime] = None) -> date:
    """Today plus the average dwell time of every open stage still ahead"""
    now = now or utc_now()
    today = ensure_utc(now).date()
    if stage.is_closed:
        return today

    open_stages = DealStage.open_stages()
    remaining = open_stages[open_stages.index(stage) + 1 :]
    remaining_days = sum(get_stage_config(s).avg_days_in_stage for s in remaining)
    return today + timedelta(days=remaining_days)


def assess_deal_quality(
    deal_value: float,
    competitor_count: int,
    decision_maker_access: bool,
    budget_confirmed: bool,
) -> DealQuality:
    """Bucket a deal into HIGH/MEDIUM/LOW quality from qualification signals"""
    score = 0

    if deal_value > 1_000_000:
        score += 25
    elif deal_value > 500_000:
        score += 20
    elif deal_value > 100_000:
        score += 15
    else:
        score += 10

    if competitor_count == 0:
        score += 25
    elif competitor_count <= 2:
        score += 15
    else:
        score += 5

    score += 25 if decision_maker_access else 10
    score += 25 if budget_confirmed else 5

    if score >= 75:
        return DealQuality.HIGH
    if score >= 50:
        return DealQuality.MEDIUM
    return DealQuality.LOW

