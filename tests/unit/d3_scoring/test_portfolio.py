"""
Test batch scoring, sorting and portfolio metrics
"""
import pytest

from d2_pipeline.types import Priority
from d3_scoring import (
    MarketTiming,
    RelationshipStrength,
    RiskLevel,
    ScoringCriteria,
    Urgency,
    calculate_portfolio_metrics,
    filter_by_priority,
    score_opportunities,
    sort_by_priority,
    sort_by_risk,
    sort_by_score,
)
from d3_scoring.types import OpportunityScore

pytestmark = pytest.mark.unit


def make_score(score_id, total, priority, risk, deal_size=100_000):
    return OpportunityScore(
        id=score_id,
        name=score_id,
        total_score=total,
        deal_size=deal_size,
        probability=0.5,
        deal_size_score=60,
        probability_score=50,
        urgency_score=60,
        competition_score=80,
        relationship_score=60,
        budget_score=100,
        timing_score=60,
        priority=priority,
        risk_level=risk,
        recommendation="",
    )


@pytest.fixture
def scores():
    return [
        make_score("a", 62.0, Priority.MEDIUM, RiskLevel.MEDIUM, 150_000),
        make_score("b", 90.0, Priority.CRITICAL, RiskLevel.LOW, 2_000_000),
        make_score("c", 78.0, Priority.HIGH, RiskLevel.HIGH, 600_000),
        make_score("d", 30.5, Priority.LOW, RiskLevel.CRITICAL, 5_000),
        make_score("e", 80.0, Priority.HIGH, RiskLevel.LOW, 700_000),
    ]


class TestScoreOpportunities:
    WIRE_CRITERIA = {
        "dealSize": 2_000_000,
        "probability": 0.8,
        "daysInPipeline": 10,
        "competitorCount": 0,
        "decisionMakerAccess": True,
        "budgetApproved": True,
        "relationshipStrength": "EXCELLENT",
        "urgency": "CRITICAL",
        "marketTiming": "GOOD",
    }

    def test_accepts_mappings_and_tuples(self):
        criteria = ScoringCriteria.from_dict(self.WIRE_CRITERIA)
        results = score_opportunities(
            [
                {"id": 1, "name": "Wire shape", "criteria": self.WIRE_CRITERIA},
                ("2", "Tuple shape", criteria),
            ]
        )

        assert [r.id for r in results] == ["1", "2"]
        assert results[0].name == "Wire shape"
        assert results[0].total_score == results[1].total_score
        assert all(r.priority == Priority.CRITICAL for r in results)

    def test_empty(self):
        assert score_opportunities([]) == []


class TestSorting:
    def test_sort_by_priority_then_score(self, scores):
        assert [s.id for s in sort_by_priority(scores)] == ["b", "e", "c", "a", "d"]

    def test_sort_by_risk(self, scores):
        assert [s.id for s in sort_by_risk(scores)] == ["d", "c", "a", "e", "b"]

    def test_sort_by_score(self, scores):
        assert [s.id for s in sort_by_score(scores)] == ["b", "e", "c", "a", "d"]

    def test_sorting_does_not_mutate(self, scores):
        original = [s.id for s in scores]
        sort_by_priority(scores)
        assert [s.id for s in scores] == original

    def test_filter_by_priority(self, scores):
        assert [s.id for s in filter_by_priority(scores, Priority.HIGH)] == ["c", "e"]
        assert [s.id for s in filter_by_priority(scores, "LOW")] == ["d"]


class TestPortfolioMetrics:
    def test_empty(self):
        metrics = calculate_portfolio_metrics([])

        assert metrics.average_score == 0
        assert metrics.total_value == 0
        assert metrics.high_priority_value == 0
        assert metrics.at_risk_value == 0
        assert set(metrics.priority_distribution.values()) == {0}
        assert set(metrics.risk_distribution.values()) == {0}

    def test_aggregates(self, scores):
        metrics = calculate_portfolio_metrics(scores)

        assert metrics.average_score == 68.1
        assert metrics.priority_distribution[Priority.HIGH] == 2
        assert metrics.priority_distribution[Priority.CRITICAL] == 1
        assert metrics.risk_distribution[RiskLevel.LOW] == 2
        assert metrics.total_value == 3_455_000
        assert metrics.high_priority_value == 3_300_000
        assert metrics.at_risk_value == 605_000

    def test_average_rounded_half_up(self):
        metrics = calculate_portfolio_metrics(
            [make_score("x", 10.0, Priority.LOW, RiskLevel.LOW), make_score("y", 10.01, Priority.LOW, RiskLevel.LOW)]
        )
        assert metrics.average_score == 10.01

    def test_to_dict(self, scores):
        payload = calculate_portfolio_metrics(scores).to_dict()

        assert payload["priorityDistribution"]["HIGH"] == 2
        assert payload["riskDistribution"]["CRITICAL"] == 1
        assert payload["atRiskValue"] == 605_000
