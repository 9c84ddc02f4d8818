"""
Test forecast wire models
"""
import pytest
from pydantic import ValidationError as PydanticValidationError

from d4_forecast import ForecastPeriod, ForecastReport, MonthlyBreakdown, RiskAnalysis

pytestmark = pytest.mark.unit


class TestForecastPeriod:
    @pytest.mark.parametrize(
        "period,months",
        [(ForecastPeriod.WEEK, 0.25), (ForecastPeriod.MONTH, 1), (ForecastPeriod.QUARTER, 3), (ForecastPeriod.YEAR, 12)],
    )
    def test_months(self, period, months):
        assert period.months == months


class TestForecastReport:
    def test_accepts_camel_case_input(self):
        report = ForecastReport.model_validate(
            {
                "period": "month",
                "totalForecast": 1000,
                "weightedForecast": 400,
                "confidence": 80,
                "dealsCount": 2,
                "riskAnalysis": {"highRiskDeals": 1},
            }
        )

        assert report.period == ForecastPeriod.MONTH
        assert report.weighted_forecast == 400
        assert report.risk_analysis.high_risk_deals == 1
        assert report.risk_analysis.overdue_deals == 0

    def test_to_dict_uses_camel_case(self):
        report = ForecastReport(
            period=ForecastPeriod.QUARTER,
            confidence=75,
            monthly_breakdown=[MonthlyBreakdown(month="Mar 2025", weighted_forecast=10)],
        )
        payload = report.to_dict()

        assert payload["period"] == "quarter"
        assert payload["monthlyBreakdown"] == [
            {"month": "Mar 2025", "forecast": 0.0, "weightedForecast": 10.0, "deals": 0}
        ]
        assert "total_forecast" not in payload

    @pytest.mark.parametrize("confidence", [-1, 101])
    def test_confidence_is_a_percentage(self, confidence):
        with pytest.raises(PydanticValidationError):
            ForecastReport(period=ForecastPeriod.MONTH, confidence=confidence)

    def test_frozen(self):
        analysis = RiskAnalysis()
        with pytest.raises(PydanticValidationError):
            analysis.high_risk_deals = 3

    def test_negative_counts_rejected(self):
        with pytest.raises(PydanticValidationError):
            MonthlyBreakdown(month="Mar 2025", deals=-1)
