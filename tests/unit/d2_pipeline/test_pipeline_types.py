"""
Test pipeline types and record parsing
"""
from datetime import UTC, date, datetime

import pytest

from core.exceptions import ValidationError
from d2_pipeline.types import Deal, DealQuality, DealStage, Priority, parse_stage

pytestmark = pytest.mark.unit


class TestDealStage:
    def test_open_stages_in_pipeline_order(self):
        assert DealStage.open_stages() == [
            DealStage.PROSPECTING,
            DealStage.QUALIFICATION,
            DealStage.PROPOSAL,
            DealStage.NEGOTIATION,
        ]

    def test_progression_ends_with_won(self):
        assert DealStage.progression()[-1] == DealStage.CLOSED_WON
        assert DealStage.CLOSED_LOST not in DealStage.progression()

    def test_is_closed(self):
        assert DealStage.CLOSED_WON.is_closed
        assert DealStage.CLOSED_LOST.is_closed
        assert not DealStage.NEGOTIATION.is_closed

    def test_parse_stage_case_insensitive(self):
        assert parse_stage("proposal") == DealStage.PROPOSAL
        assert parse_stage(DealStage.NEGOTIATION) == DealStage.NEGOTIATION

    def test_parse_stage_rejects_unknown(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_stage("WON_MAYBE")
        assert exc_info.value.details == {"field": "stage"}


class TestPriorityAndQuality:
    def test_priority_rank_order(self):
        ranks = [p.rank for p in (Priority.LOW, Priority.MEDIUM, Priority.HIGH, Priority.CRITICAL)]
        assert ranks == sorted(ranks)

    def test_elevated(self):
        assert Priority.LOW.elevated() == Priority.MEDIUM
        assert Priority.HIGH.elevated() == Priority.CRITICAL
        assert Priority.CRITICAL.elevated() == Priority.CRITICAL

    def test_quality_multipliers(self):
        assert DealQuality.HIGH.multiplier == 1.2
        assert DealQuality.MEDIUM.multiplier == 1.0
        assert DealQuality.LOW.multiplier == 0.8


class TestDealFromDict:
    def test_parses_storage_record(self):
        deal = Deal.from_dict(
            {
                "id": 42,
                "name": "Warehouse retrofit",
                "value": "125000",
                "stage": "QUALIFICATION",
                "created_at": "2025-01-02T08:00:00Z",
                "updated_at": "2025-02-01T08:00:00+00:00",
                "owner_id": 7,
                "expected_close_date": "2025-04-30",
                "competitor_count": "2",
                "probability": "0.4",
            }
        )

        assert deal.id == "42"
        assert deal.value == 125_000.0
        assert deal.stage == DealStage.QUALIFICATION
        assert deal.created_at == datetime(2025, 1, 2, 8, 0, tzinfo=UTC)
        assert deal.expected_close_date == date(2025, 4, 30)
        assert deal.owner_id == "7"
        assert deal.competitor_count == 2
        assert deal.probability == 0.4

    def test_deal_size_fallback_and_defaults(self):
        deal = Deal.from_dict({"id": "d1", "deal_size": 5000, "stage": "prospecting", "created_at": "2025-01-02"})

        assert deal.value == 5000.0
        assert deal.updated_at == deal.created_at
        assert deal.closed_date is None
        assert deal.probability is None
        assert deal.competitor_count == 0

    def test_unknown_stage_rejected(self):
        with pytest.raises(ValidationError):
            Deal.from_dict({"id": "d1", "stage": "SIGNED", "created_at": "2025-01-02"})

    def test_missing_created_at_rejected(self):
        with pytest.raises(ValidationError):
            Deal.from_dict({"id": "d1", "stage": "PROPOSAL"})

    def test_bad_timestamp_rejected(self):
        with pytest.raises(ValidationError):
            Deal.from_dict({"id": "d1", "stage": "PROPOSAL", "created_at": "yesterday"})


class TestWeightedDeal:
    @pytest.mark.parametrize("value,probability", [(100_000, 0.5), (0, 0.9), (1_234_567.89, 0.37), (50, 0.0)])
    def test_weighted_value_is_value_times_probability(self, make_weighted_deal, value, probability):
        deal = make_weighted_deal(value=value, probability=probability)
        assert deal.weighted_value == value * probability

    def test_to_dict_wire_shape(self, make_weighted_deal):
        payload = make_weighted_deal(expected_close_date=date(2025, 4, 1)).to_dict()

        assert payload["weightedValue"] == 50_000.0
        assert payload["stage"] == "PROPOSAL"
        assert payload["priority"] == "MEDIUM"
        assert payload["expectedCloseDate"] == "2025-04-01"
        assert {"daysInStage", "riskScore", "lastActivity", "ownerId", "velocityScore"} <= set(payload)
