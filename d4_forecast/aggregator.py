"""
Forecast aggregator

Buckets enriched deals into a period forecast: totals, confidence-adjusted
weighted totals, stage and monthly breakdowns, and a risk summary.
"""

import math
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence, Union

from core.config import settings
from core.logging import get_logger
from core.metrics import metrics, track_time
from core.utils import add_months, clamp, ensure_utc, month_key, utc_now
from d2_pipeline.constants import HIGH_RISK_THRESHOLD, LOW_CONFIDENCE_PROBABILITY, OVERDUE_DAYS_IN_STAGE
from d2_pipeline.types import Deal, DealQuality, DealStage, WeightedDeal
from d2_pipeline.weighted import enrich_deals

from .schemas import ForecastPeriod, ForecastReport, ForecastResponse, MonthlyBreakdown, RiskAnalysis

logger = get_logger(__name__)


def resolve_period(period: Union[ForecastPeriod, str, None]) -> ForecastPeriod:
    """Parse a period name; unknown names fall back to a quarter"""
    if period is None:
        period = settings.forecast_default_period
    try:
        return ForecastPeriod(str(getattr(period, "value", period)).lower())
    except ValueError:
        logger.warning(f"Unknown forecast period '{period}', using quarter", extra={"period": str(period)})
        return ForecastPeriod.QUARTER


def _sanitize(deal: WeightedDeal) -> WeightedDeal:
    """Negative or NaN values count as 0 and probability is held to [0, 1]"""
    return replace(
        deal,
        value=clamp(float(deal.value), 0.0, math.inf),
        probability=clamp(float(deal.probability), 0.0, 1.0),
    )


def _within_horizon(deal: WeightedDeal, horizon_end: tuple[int, int]) -> bool:
    if deal.expected_close_date is None:
        return True
    return month_key(deal.expected_close_date) <= horizon_end


@track_time("generate_forecast")
def generate_forecast(
    deals: Sequence[WeightedDeal],
    period: Union[ForecastPeriod, str, None] = ForecastPeriod.QUARTER,
    confidence: Optional[float] = None,
    now: Optional[datetime] = None,
) -> ForecastReport:
    """
    Build a forecast report for a horizon

    Args:
        deals: Enriched deals; closed deals are ignored
        period: week, month, quarter or year
        confidence: Multiplier in [0, 1] applied to weighted values
        now: Reference time, defaults to the current UTC time

    Returns:
        ForecastReport with confidence expressed as a percentage
    """
    forecast_period = resolve_period(period)
    if confidence is None:
        confidence = settings.forecast_default_confidence
    confidence = clamp(float(confidence), 0.0, 1.0)

    today = ensure_utc(now or utc_now()).date()
    horizon_months = math.ceil(forecast_period.months)
    horizon_end = month_key(add_months(today, horizon_months))

    relevant = [_sanitize(d) for d in deals if not d.stage.is_closed and _within_horizon(d, horizon_end)]

    stage_breakdown = {stage.value: 0 for stage in DealStage}
    for deal in relevant:
        stage_breakdown[deal.stage.value] += 1

    monthly_breakdown = []
    for offset in range(horizon_months):
        month_start = add_months(today, offset)
        in_month = [
            d
            for d in relevant
            if d.expected_close_date is not None and month_key(d.expected_close_date) == month_key(month_start)
        ]
        monthly_breakdown.append(
            MonthlyBreakdown(
                month=month_start.strftime("%b %Y"),
                forecast=sum(d.value for d in in_month),
                weighted_forecast=sum(d.weighted_value for d in in_month) * confidence,
                deals=len(in_month),
            )
        )

    risk_analysis = RiskAnalysis(
        high_risk_deals=sum(1 for d in relevant if d.risk_score > HIGH_RISK_THRESHOLD),
        low_confidence_deals=sum(1 for d in relevant if d.probability < LOW_CONFIDENCE_PROBABILITY),
        overdue_deals=sum(1 for d in relevant if d.days_in_stage > OVERDUE_DAYS_IN_STAGE),
    )

    report = ForecastReport(
        period=forecast_period,
        total_forecast=sum(d.value for d in relevant),
        weighted_forecast=sum(d.weighted_value for d in relevant) * confidence,
        confidence=confidence * 100,
        deals_count=len(relevant),
        stage_breakdown=stage_breakdown,
        monthly_breakdown=monthly_breakdown,
        risk_analysis=risk_analysis,
    )

    metrics.track_forecast_generated(forecast_period.value)
    logger.info(
        f"Generated {forecast_period.value} forecast over {len(relevant)} deals",
        extra={"period": forecast_period.value, "deals_count": len(relevant)},
    )
    return report


def forecast_pipeline(
    deals: Sequence[Deal],
    period: Union[ForecastPeriod, str, None] = None,
    confidence: Optional[float] = None,
    quality: DealQuality = DealQuality.MEDIUM,
    now: Optional[datetime] = None,
    max_workers: Optional[int] = None,
) -> ForecastResponse:
    """Enrich raw deals and forecast them in one call"""
    now = now or utc_now()
    forecast_period = resolve_period(period)
    if confidence is None:
        confidence = settings.forecast_default_confidence
    confidence = clamp(float(confidence), 0.0, 1.0)
    if max_workers is None:
        max_workers = settings.enrichment_max_workers

    weighted = enrich_deals(deals, quality=quality, now=now, max_workers=max_workers)
    report = generate_forecast(weighted, forecast_period, confidence, now=now)

    return ForecastResponse(
        forecast=report,
        deals=[deal.to_dict() for deal in weighted],
        period=forecast_period,
        confidence=confidence,
    )
