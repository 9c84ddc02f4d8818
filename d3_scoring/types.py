"""
Opportunity Scoring Types and Enumerations

Qualitative CRM signals, the criteria record they form and the scored
opportunity produced from it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from core.exceptions import ValidationError
from d2_pipeline.types import Priority


class Urgency(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class RelationshipStrength(str, Enum):
    WEAK = "WEAK"
    MODERATE = "MODERATE"
    STRONG = "STRONG"
    EXCELLENT = "EXCELLENT"


class MarketTiming(str, Enum):
    POOR = "POOR"
    FAIR = "FAIR"
    GOOD = "GOOD"
    EXCELLENT = "EXCELLENT"


class RiskLevel(str, Enum):
    """Risk bucket of a scored opportunity"""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        """Numeric rank for sorting (higher = riskier)"""
        return {RiskLevel.LOW: 1, RiskLevel.MEDIUM: 2, RiskLevel.HIGH: 3, RiskLevel.CRITICAL: 4}[self]

    @property
    def is_at_risk(self) -> bool:
        return self in (RiskLevel.HIGH, RiskLevel.CRITICAL)


def _parse_enum(enum_cls, value: Any, field_name: str):
    try:
        return enum_cls(str(getattr(value, "value", value)).upper())
    except ValueError as exc:
        raise ValidationError(f"Invalid {field_name}: {value}", field=field_name) from exc


@dataclass(frozen=True)
class ScoringCriteria:
    """Inputs to the opportunity score"""

    deal_size: float
    probability: float
    days_in_pipeline: int
    competitor_count: int
    decision_maker_access: bool
    budget_approved: bool
    relationship_strength: RelationshipStrength
    urgency: Urgency
    market_timing: MarketTiming

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScoringCriteria":
        """Create from the camelCase wire shape"""
        try:
            return cls(
                deal_size=float(data.get("dealSize") or 0),
                probability=float(data.get("probability") or 0),
                days_in_pipeline=int(data.get("daysInPipeline") or 0),
                competitor_count=int(data.get("competitorCount") or 0),
                decision_maker_access=bool(data.get("decisionMakerAccess", False)),
                budget_approved=bool(data.get("budgetApproved", False)),
                relationship_strength=_parse_enum(
                    RelationshipStrength, data.get("relationshipStrength"), "relationshipStrength"
                ),
                urgency=_parse_enum(Urgency, data.get("urgency"), "urgency"),
                market_timing=_parse_enum(MarketTiming, data.get("marketTiming"), "marketTiming"),
            )
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid scoring criteria: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        return {
            "dealSize": self.deal_size,
            "probability": self.probability,
            "daysInPipeline": self.days_in_pipeline,
            "competitorCount": self.competitor_count,
            "decisionMakerAccess": self.decision_maker_access,
            "budgetApproved": self.budget_approved,
            "relationshipStrength": self.relationship_strength.value,
            "urgency": self.urgency.value,
            "marketTiming": self.market_timing.value,
        }


@dataclass(frozen=True)
class OpportunityScore:
    """Scored opportunity with its component breakdown"""

    id: str
    name: str
    total_score: float
    deal_size: float
    probability: float
    deal_size_score: float
    probability_score: float
    urgency_score: float
    competition_score: float
    relationship_score: float
    budget_score: float
    timing_score: float
    priority: Priority
    risk_level: RiskLevel
    recommendation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "totalScore": self.total_score,
            "dealSize": self.deal_size,
            "probability": self.probability,
            "dealSizeScore": self.deal_size_score,
            "probabilityScore": self.probability_score,
            "urgencyScore": self.urgency_score,
            "competitionScore": self.competition_score,
            "relationshipScore": self.relationship_score,
            "budgetScore": self.budget_score,
            "timingScore": self.timing_score,
            "priority": self.priority.value,
            "riskLevel": self.risk_level.value,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class PortfolioMetrics:
    """Aggregate view over a set of scored opportunities"""

    average_score: float = 0.0
    priority_distribution: dict[Priority, int] = field(default_factory=dict)
    risk_distribution: dict[RiskLevel, int] = field(default_factory=dict)
    total_value: float = 0.0
    high_priority_value: float = 0.0
    at_risk_value: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "averageScore": self.average_score,
            "priorityDistribution": {k.value: v for k, v in self.priority_distribution.items()},
            "riskDistribution": {k.value: v for k, v in self.risk_distribution.items()},
            "totalValue": self.total_value,
            "highPriorityValue": self.high_priority_value,
            "atRiskValue": self.at_risk_value,
        }
