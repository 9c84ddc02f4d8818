"""
D4 Forecast Module

Period-bucketed revenue forecasts over the weighted pipeline, plus
statistical revenue outlooks and account segmentation.
"""

from .aggregator import forecast_pipeline, generate_forecast, resolve_period
from .revenue import build_revenue_outlook, segment_accounts
from .schemas import (
    AccountSegmentation,
    ForecastPeriod,
    ForecastReport,
    ForecastResponse,
    MonthlyBreakdown,
    RevenueOutlook,
    RiskAnalysis,
)

__all__ = [
    "generate_forecast",
    "forecast_pipeline",
    "resolve_period",
    "build_revenue_outlook",
    "segment_accounts",
    "AccountSegmentation",
    "ForecastPeriod",
    "ForecastReport",
    "ForecastResponse",
    "MonthlyBreakdown",
    "RevenueOutlook",
    "RiskAnalysis",
]
