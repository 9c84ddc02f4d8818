"""
Pipeline Types and Enumerations

Deal stages, priority buckets and the deal records that flow from the
storage collaborator through weighted enrichment into scoring and
forecasting.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Optional

from core.exceptions import ValidationError


class DealStage(str, Enum):
    """Pipeline position of a deal"""

    PROSPECTING = "PROSPECTING"
    QUALIFICATION = "QUALIFICATION"
    PROPOSAL = "PROPOSAL"
    NEGOTIATION = "NEGOTIATION"
    CLOSED_WON = "CLOSED_WON"
    CLOSED_LOST = "CLOSED_LOST"

    @property
    def is_closed(self) -> bool:
        return self in (DealStage.CLOSED_WON, DealStage.CLOSED_LOST)

    @classmethod
    def open_stages(cls) -> list["DealStage"]:
        """Open stages in pipeline order"""
        return [cls.PROSPECTING, cls.QUALIFICATION, cls.PROPOSAL, cls.NEGOTIATION]

    @classmethod
    def progression(cls) -> list["DealStage"]:
        """Stages along which close probability never decreases"""
        return cls.open_stages() + [cls.CLOSED_WON]


class DealQuality(str, Enum):
    """Qualitative hint that scales a deal's stage probability"""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def multiplier(self) -> float:
        return {DealQuality.HIGH: 1.2, DealQuality.MEDIUM: 1.0, DealQuality.LOW: 0.8}[self]


class Priority(str, Enum):
    """Urgency-of-attention bucket shared by pipeline and opportunity scoring"""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        """Numeric rank for sorting (higher = more urgent)"""
        return {Priority.CRITICAL: 4, Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}[self]

    def elevated(self) -> "Priority":
        """Next bucket up; CRITICAL stays CRITICAL"""
        order = [Priority.LOW, Priority.MEDIUM, Priority.HIGH, Priority.CRITICAL]
        return order[min(order.index(self) + 1, len(order) - 1)]


@dataclass(frozen=True)
class StageProbability:
    """Close-probability envelope and pacing for one stage"""

    stage: DealStage
    base_probability: float
    min_probability: float
    max_probability: float
    avg_days_in_stage: int
    conversion_rate: float


def _parse_datetime(value: Any, field_name: str) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValidationError(f"Invalid timestamp: {value}", field=field_name) from exc
    raise ValidationError(f"Missing or invalid timestamp for {field_name}", field=field_name)


def _parse_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return _parse_datetime(value, field_name).date()


def parse_stage(value: Any) -> DealStage:
    """Parse a stage name, rejecting anything outside the pipeline"""
    try:
        return DealStage(str(getattr(value, "value", value)).upper())
    except ValueError as exc:
        raise ValidationError(f"Unknown deal stage: {value}", field="stage") from exc


@dataclass(frozen=True)
class Deal:
    """Raw deal record as supplied by the storage collaborator"""

    id: str
    name: str
    value: float
    stage: DealStage
    created_at: datetime
    updated_at: datetime
    owner_id: str
    probability: Optional[float] = None
    expected_close_date: Optional[date] = None
    closed_date: Optional[datetime] = None
    owner_name: Optional[str] = None
    company_name: Optional[str] = None
    competitor_count: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Deal":
        """Create from a storage record"""
        created_at = _parse_datetime(data.get("created_at"), "created_at")
        updated = data.get("updated_at")
        closed = data.get("closed_date")
        probability = data.get("probability")
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            value=float(data.get("value", data.get("deal_size")) or 0.0),
            stage=parse_stage(data.get("stage")),
            created_at=created_at,
            updated_at=_parse_datetime(updated, "updated_at") if updated is not None else created_at,
            owner_id=str(data.get("owner_id", "")),
            probability=float(probability) if probability is not None else None,
            expected_close_date=_parse_date(data.get("expected_close_date"), "expected_close_date"),
            closed_date=_parse_datetime(closed, "closed_date") if closed is not None else None,
            owner_name=data.get("owner_name"),
            company_name=data.get("company_name"),
            competitor_count=int(data.get("competitor_count") or 0),
        )


@dataclass(frozen=True)
class WeightedDeal:
    """
    Deal enriched with close probability, risk and priority

    ``weighted_value`` is derived on access so it can never drift from
    ``value`` and ``probability``.
    """

    id: str
    name: str
    value: float
    stage: DealStage
    probability: float
    days_in_stage: int
    risk_score: float
    priority: Priority
    last_activity: datetime
    owner_id: str
    expected_close_date: Optional[date] = None
    competitor_count: int = 0
    velocity_score: float = 0.0
    sales_cycle_days: Optional[int] = None
    owner_name: Optional[str] = None
    company_name: Optional[str] = None

    @property
    def weighted_value(self) -> float:
        return self.value * self.probability

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "value": self.value,
            "stage": self.stage.value,
            "probability": self.probability,
            "weightedValue": self.weighted_value,
            "expectedCloseDate": self.expected_close_date.isoformat() if self.expected_close_date else None,
            "daysInStage": self.days_in_stage,
            "velocityScore": self.velocity_score,
            "riskScore": self.risk_score,
            "priority": self.priority.value,
            "lastActivity": self.last_activity.isoformat(),
            "ownerId": self.owner_id,
            "ownerName": self.owner_name,
            "companyName": self.company_name,
        }


@dataclass(frozen=True)
class PipelineVelocityMetrics:
    """Sales velocity: qualified deals × average size × win rate ÷ cycle length"""

    qualified_deals: int
    average_deal_size: float
    win_rate: float
    sales_cycle_length_days: int
    velocity_per_day: float
    velocity_per_month: float
    deals_per_month: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "qualifiedDeals": self.qualified_deals,
            "averageDealSize": self.average_deal_size,
            "winRate": self.win_rate,
            "salesCycleLengthDays": self.sales_cycle_length_days,
            "velocityPerDay": self.velocity_per_day,
            "velocityPerMonth": self.velocity_per_month,
            "dealsPerMonth": self.deals_per_month,
        }


@dataclass(frozen=True)
class MonthlyPipelineValue:
    month: str
    value: float
    weighted_value: float


@dataclass(frozen=True)
class PipelineMetrics:
    """Portfolio-level view of a weighted pipeline"""

    total_deals: int
    total_value: float
    weighted_value: float
    average_probability: float
    velocity: float
    velocity_details: PipelineVelocityMetrics
    conversion_rate: float
    stage_distribution: dict[DealStage, int] = field(default_factory=dict)
    monthly_forecast: list[MonthlyPipelineValue] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalDeals": self.total_deals,
            "totalValue": self.total_value,
            "weightedValue": self.weighted_value,
            "averageProbability": self.average_probability,
            "velocity": self.velocity,
            "velocityDetails": self.velocity_details.to_dict(),
            "conversionRate": self.conversion_rate,
            "stageDistribution": {stage.value: count for stage, count in self.stage_distribution.items()},
            "monthlyForecast": [
                {"month": m.month, "value": m.value, "weightedValue": m.weighted_value} for m in self.monthly_forecast
            ],
        }
