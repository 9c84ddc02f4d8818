"""
Root conftest.py for all tests
Registers markers and applies domain markers from the test location
"""
from pathlib import Path

import pytest

DOMAIN_MARKERS = {
    "core": "Core configuration, logging and utility tests",
    "d1_statistics": "Statistical engine tests",
    "d2_pipeline": "Weighted pipeline tests",
    "d3_scoring": "Opportunity scoring tests",
    "d4_forecast": "Forecast aggregation tests",
}

OTHER_MARKERS = {
    "unit": "Fast isolated unit tests",
    "critical": "Behaviour the forecast figures depend on",
    "slow": "Tests that take noticeably longer",
}


def pytest_configure(config):
    """
    Configure pytest with custom markers.

    This registers domain markers dynamically.
    """
    for marker_name, description in {**DOMAIN_MARKERS, **OTHER_MARKERS}.items():
        config.addinivalue_line("markers", f"{marker_name}: {description}")


def pytest_collection_modifyitems(config, items):
    """Automatically apply the domain marker of the directory a test lives in"""
    for item in items:
        parts = Path(str(item.fspath)).parts
        for domain in DOMAIN_MARKERS:
            if domain in parts and not item.get_closest_marker(domain):
                item.add_marker(getattr(pytest.mark, domain))
