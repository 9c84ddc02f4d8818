"""
Test pipeline velocity, metrics and recommendations
"""
from datetime import date

import pytest

from d2_pipeline.types import DealStage
from d2_pipeline.weighted import calculate_velocity_metrics, generate_pipeline_metrics, generate_recommendations

pytestmark = pytest.mark.unit


@pytest.fixture
def mixed_pipeline(make_weighted_deal):
    return [
        make_weighted_deal("open-1", value=100_000, stage=DealStage.PROPOSAL, probability=0.6, days_in_stage=10),
        make_weighted_deal("open-2", value=300_000, stage=DealStage.NEGOTIATION, probability=0.8, days_in_stage=20),
        make_weighted_deal(
            "won-1", value=50_000, stage=DealStage.CLOSED_WON, probability=1.0, days_in_stage=5, sales_cycle_days=40
        ),
        make_weighted_deal("lost-1", value=10_000, stage=DealStage.CLOSED_LOST, probability=0.0, days_in_stage=3),
    ]


class TestVelocityMetrics:
    def test_with_closed_history(self, mixed_pipeline):
        velocity = calculate_velocity_metrics(mixed_pipeline)

        assert velocity.qualified_deals == 2
        assert velocity.average_deal_size == 200_000
        assert velocity.win_rate == 0.5
        assert velocity.sales_cycle_length_days == 40
        assert velocity.velocity_per_day == pytest.approx(5_000)
        assert velocity.velocity_per_month == pytest.approx(150_000)
        assert velocity.deals_per_month == pytest.approx(0.75)

    def test_without_closed_deals_uses_probability_and_age(self, mixed_pipeline):
        velocity = calculate_velocity_metrics(mixed_pipeline[:2])

        assert velocity.win_rate == pytest.approx(0.7)
        assert velocity.sales_cycle_length_days == 15
        assert velocity.velocity_per_day == pytest.approx(2 * 200_000 * 0.7 / 15)

    def test_win_rate_fallback_is_clamped(self, make_weighted_deal):
        velocity = calculate_velocity_metrics([make_weighted_deal(probability=0.01)])
        assert velocity.win_rate == 0.05

    def test_empty(self):
        velocity = calculate_velocity_metrics([])

        assert velocity.qualified_deals == 0
        assert velocity.win_rate == 0
        assert velocity.sales_cycle_length_days == 60
        assert velocity.velocity_per_month == 0
        assert velocity.deals_per_month == 0

    def test_to_dict(self, mixed_pipeline):
        payload = calculate_velocity_metrics(mixed_pipeline).to_dict()
        assert payload["salesCycleLengthDays"] == 40


class TestPipelineMetrics:
    def test_totals_and_distribution(self, mixed_pipeline, now):
        metrics = generate_pipeline_metrics(mixed_pipeline, now=now)

        assert metrics.total_deals == 4
        assert metrics.total_value == 460_000
        assert metrics.weighted_value == pytest.approx(60_000 + 240_000 + 50_000)
        assert metrics.average_probability == pytest.approx(0.6)
        assert metrics.stage_distribution[DealStage.PROPOSAL] == 1
        assert metrics.stage_distribution[DealStage.PROSPECTING] == 0
        assert metrics.velocity == pytest.approx(150_000)

    def test_conversion_rate(self, mixed_pipeline, now):
        # PROPOSAL, NEGOTIATION and CLOSED_WON count; CLOSED_LOST does not
        assert generate_pipeline_metrics(mixed_pipeline, now=now).conversion_rate == 0.75

    def test_monthly_forecast(self, make_weighted_deal, now):
        deals = [
            make_weighted_deal("a", value=100_000, probability=0.5, expected_close_date=date(2025, 3, 20)),
            make_weighted_deal(
                "b",
                value=200_000,
                probability=0.25,
                stage=DealStage.QUALIFICATION,
                expected_close_date=date(2025, 5, 1),
            ),
            make_weighted_deal("c", value=999_000, probability=0.5),
            make_weighted_deal("d", value=1, probability=0.5, expected_close_date=date(2025, 12, 1)),
        ]
        forecast = generate_pipeline_metrics(deals, now=now).monthly_forecast

        assert [m.month for m in forecast] == ["Mar 2025", "Apr 2025", "May 2025", "Jun 2025", "Jul 2025", "Aug 2025"]
        assert (forecast[0].value, forecast[0].weighted_value) == (100_000, 50_000)
        assert forecast[1].value == 0
        assert (forecast[2].value, forecast[2].weighted_value) == (200_000, 50_000)

    def test_empty_pipeline(self, now):
        metrics = generate_pipeline_metrics([], now=now)

        assert metrics.total_deals == 0
        assert metrics.average_probability == 0
        assert metrics.conversion_rate == 0
        assert len(metrics.monthly_forecast) == 6

    def test_to_dict(self, mixed_pipeline, now):
        payload = generate_pipeline_metrics(mixed_pipeline, now=now).to_dict()

        assert payload["stageDistribution"]["CLOSED_LOST"] == 1
        assert payload["monthlyForecast"][0]["month"] == "Mar 2025"
        assert "velocityDetails" in payload


class TestRecommendations:
    def test_struggling_pipeline(self, make_weighted_deal, now):
        deals = [
            make_weighted_deal(f"d{i}", stage=DealStage.PROSPECTING, probability=0.1, risk_score=80, days_in_stage=70)
            for i in range(2)
        ]
        recommendations = generate_recommendations(generate_pipeline_metrics(deals, now=now), deals)

        assert recommendations == [
            "Improve lead qualification process to increase conversion rates",
            "2 deals have high risk scores - review and take action",
            "2 deals have been stagnant for over 60 days",
            "Pipeline velocity is critically low - accelerate movement of qualified deals",
            "Monthly revenue velocity trails average deal size - focus on shortening the sales cycle",
        ]

    def test_healthy_pipeline(self, make_weighted_deal, now):
        deals = [
            make_weighted_deal(f"d{i}", stage=DealStage.NEGOTIATION, probability=0.8, days_in_stage=5)
            for i in range(10)
        ]
        assert generate_recommendations(generate_pipeline_metrics(deals, now=now), deals) == []

    def test_below_target_velocity(self, make_weighted_deal, now):
        # 2 qualified x 0.8 win rate x 30 / 20 days = 2.4 deals a month
        deals = [
            make_weighted_deal(f"d{i}", stage=DealStage.NEGOTIATION, probability=0.8, days_in_stage=20)
            for i in range(2)
        ]
        recommendations = generate_recommendations(generate_pipeline_metrics(deals, now=now), deals)

        assert recommendations == [
            "Pipeline velocity is below target - streamline stage handoffs to close more deals each month"
        ]
