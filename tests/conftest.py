"""
Shared fixtures for the test suite
"""
import os
import sys
from datetime import UTC, date, datetime, timedelta

# Add project root to Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest

from core.config import get_settings
from d2_pipeline.types import Deal, DealStage, Priority, WeightedDeal
from d2_pipeline.weighted import load_stage_probabilities


@pytest.fixture
def now():
    """Fixed reference time so date arithmetic is reproducible"""
    return datetime(2025, 3, 15, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def reset_cached_config():
    """Settings and the stage table are cached; start every test from scratch"""
    get_settings.cache_clear()
    load_stage_probabilities.cache_clear()
    yield
    get_settings.cache_clear()
    load_stage_probabilities.cache_clear()


@pytest.fixture
def make_deal(now):
    """Factory for raw deals relative to the reference time"""

    def _make(
        deal_id="deal-1",
        value=250_000.0,
        stage=DealStage.PROPOSAL,
        age_days=10,
        idle_days=2,
        **overrides,
    ):
        fields = dict(
            id=deal_id,
            name=f"Deal {deal_id}",
            value=value,
            stage=stage,
            created_at=now - timedelta(days=age_days),
            updated_at=now - timedelta(days=idle_days),
            owner_id="owner-1",
        )
        fields.update(overrides)
        return Deal(**fields)

    return _make


@pytest.fixture
def make_weighted_deal(now):
    """Factory for enriched deals with explicit probability and risk"""

    def _make(
        deal_id="wd-1",
        value=100_000.0,
        stage=DealStage.PROPOSAL,
        probability=0.5,
        risk_score=0.0,
        days_in_stage=10,
        expected_close_date=None,
        **overrides,
    ):
        fields = dict(
            id=deal_id,
            name=f"Deal {deal_id}",
            value=value,
            stage=stage,
            probability=probability,
            days_in_stage=days_in_stage,
            risk_score=risk_score,
            priority=Priority.MEDIUM,
            last_activity=now - timedelta(days=1),
            owner_id="owner-1",
            expected_close_date=expected_close_date,
        )
        fields.update(overrides)
        return WeightedDeal(**fields)

    return _make


@pytest.fixture
def this_month(now):
    return date(now.year, now.month, 20)
