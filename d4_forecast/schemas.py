"""
Forecast Schemas

Pydantic models for forecast reports. Field names are snake_case in
Python and camelCase on the wire (``model_dump(by_alias=True)``).
"""

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from d1_statistics.types import Trend


class ForecastPeriod(str, Enum):
    """Forecast horizon"""

    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"

    @property
    def months(self) -> float:
        return {
            ForecastPeriod.WEEK: 0.25,
            ForecastPeriod.MONTH: 1.0,
            ForecastPeriod.QUARTER: 3.0,
            ForecastPeriod.YEAR: 12.0,
        }[self]


class WireModel(BaseModel):
    """Base for camelCase wire models"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class MonthlyBreakdown(WireModel):
    """Forecast for one calendar month"""

    month: str = Field(..., description="Month label, e.g. 'Jan 2025'")
    forecast: float = Field(default=0.0, ge=0)
    weighted_forecast: float = Field(default=0.0, ge=0)
    deals: int = Field(default=0, ge=0)


class RiskAnalysis(WireModel):
    """Counts of deals needing attention"""

    high_risk_deals: int = Field(default=0, ge=0)
    low_confidence_deals: int = Field(default=0, ge=0)
    overdue_deals: int = Field(default=0, ge=0)


class ForecastReport(WireModel):
    """Period-bucketed revenue forecast"""

    period: ForecastPeriod
    total_forecast: float = Field(default=0.0, ge=0)
    weighted_forecast: float = Field(default=0.0, ge=0)
    confidence: float = Field(..., ge=0, le=100, description="Confidence applied, as a percentage")
    deals_count: int = Field(default=0, ge=0)
    stage_breakdown: Dict[str, int] = Field(default_factory=dict)
    monthly_breakdown: List[MonthlyBreakdown] = Field(default_factory=list)
    risk_analysis: RiskAnalysis = Field(default_factory=RiskAnalysis)


class ForecastResponse(WireModel):
    """Forecast together with the enriched deals it was built from"""

    forecast: ForecastReport
    deals: List[Dict[str, Any]] = Field(default_factory=list)
    period: ForecastPeriod
    confidence: float = Field(..., ge=0, le=1)


class RevenueOutlook(WireModel):
    """Statistical outlook over a monthly revenue history"""

    history: List[float] = Field(default_factory=list)
    smoothed: List[float] = Field(default_factory=list)
    predicted: List[float] = Field(default_factory=list)
    upper_bound: List[float] = Field(default_factory=list)
    lower_bound: List[float] = Field(default_factory=list)
    confidence: List[float] = Field(default_factory=list)
    trend: Trend = Trend.STABLE
    slope: float = 0.0
    r_squared: float = Field(default=0.0, ge=0, le=1)
    anomalies: List[int] = Field(default_factory=list)


class AccountSegmentation(WireModel):
    """K-means segments over account feature vectors"""

    centroids: List[List[float]] = Field(default_factory=list)
    segments: List[List[int]] = Field(default_factory=list, description="Account indices per segment")
    iterations: int = Field(default=0, ge=0)
