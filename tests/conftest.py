"""
Pytest configuration for Permit Determination Engine tests.

This module provides:
1. Raw project-details records as the form UI sends them
2. An engine built on the default rule set
3. A helper for writing engine config files
4. Isolation from any PERMIT_ENGINE_CONFIG set in the outer environment
"""

import pytest
import yaml

from permit_engine.determination_engine import PermitDeterminationEngine
from permit_engine.engine_config import CONFIG_PATH_ENV
from permit_engine.permit_rules import PERMIT_RULES


# -----------------------------------------------------------------------------
# Engine Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def no_engine_config(monkeypatch):
    """Run every test against the built-in thresholds unless it sets its own."""
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)


@pytest.fixture
def engine():
    """Engine with the default rule set."""
    return PermitDeterminationEngine(rule_set=PERMIT_RULES)


# -----------------------------------------------------------------------------
# Raw Input Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def waterfront_raw():
    """Full waterfront example: dock + mooring pile, $25,000, in water."""
    return {
        "workflowTrack": "waterfront",
        "category": "new_construction",
        "improvementTypes": ["dock", "mooring_pile"],
        "estimatedCostCents": 2500000,
        "inWater": True,
        "belowHighWaterLine": False,
    }


@pytest.fixture
def adu_septic_raw():
    """ADU on septic, away from the shoreline."""
    return {
        "workflowTrack": "adu",
        "onSewer": False,
        "nearShoreline": False,
    }


@pytest.fixture
def solar_raw():
    """Rooftop PV with battery storage."""
    return {
        "workflowType": "solar",
        "category": "new_construction",
        "improvementTypes": ["rooftop_solar", "battery_storage"],
        "estimatedCost": "32,500.00",
    }


# -----------------------------------------------------------------------------
# Config Helpers
# -----------------------------------------------------------------------------
@pytest.fixture
def write_config(tmp_path):
    """Write a YAML engine config and return its path."""
    def _write(data, name="engine.yaml"):
        path = tmp_path / name
        with open(path, "w") as f:
            yaml.safe_dump(data, f)
        return path
    return _write
