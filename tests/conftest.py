"""
conftest.py - Shared pytest fixtures for flight ledger tests

Provides common fixtures used across unit, conformance and functional tests:
- Setup forms for each template type
- Ledgers with a fake clock and deterministic ids
- Hand-built campaigns with chosen flight budgets
"""

import pytest
from flightledger import (
    FlightLedger, CampaignForm, HistoryManager,
    TEMPLATE_PROGRAMMATIC, METRIC_CPM, METRIC_CPV,
    sequential_ids,
)

from tests.fake_clock import FakeClock
from tests.factories import make_campaign


# =============================================================================
# FORMS
# =============================================================================

@pytest.fixture
def programmatic_form():
    """Jan-Mar 2025, $300 at $10 CPM for 30,000 impressions."""
    return CampaignForm(
        tactic="Blended Tactics - Standard",
        start_date="2025-01-01",
        end_date="2025-03-31",
        total_budget="300",
        rate="10",
        total_impressions="30000",
        metric_type=METRIC_CPM,
    )


@pytest.fixture
def youtube_form():
    """Jan-Feb 2025, $1,000 at $0.05 CPV for 20,000 views."""
    return CampaignForm(
        tactic="YouTube - TrueView",
        start_date="2025-01-01",
        end_date="2025-02-28",
        total_budget="1000",
        rate="0.05",
        total_views="20000",
        metric_type=METRIC_CPV,
    )


@pytest.fixture
def sem_social_form():
    """Jan-Apr 2025, $1,000 on Meta - Facebook."""
    return CampaignForm(
        tactic="Meta - Facebook",
        start_date="2025-01-01",
        end_date="2025-04-30",
        total_budget="1000",
        rate="8",
        total_impressions="125000",
        metric_type=METRIC_CPM,
    )


# =============================================================================
# LEDGERS
# =============================================================================

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def history():
    return HistoryManager()


@pytest.fixture
def ledger(clock, history):
    """Empty ledger with a fake clock, a visible history and deterministic ids."""
    return FlightLedger(history=history, clock=clock, id_factory=sequential_ids("id"))


@pytest.fixture
def programmatic_campaign(ledger, programmatic_form):
    """Ledger holding the generated Jan-Mar programmatic campaign; returns the campaign copy."""
    return ledger.generate_campaign(programmatic_form, TEMPLATE_PROGRAMMATIC).unwrap()


@pytest.fixture
def two_flight_ledger(ledger):
    """Ledger holding campaign "camp" with flights f1=100 and f2=200."""
    ledger.add_campaign(make_campaign(["100", "200"]))
    return ledger


@pytest.fixture
def four_flight_ledger(ledger):
    """Ledger holding campaign "camp" with four $100 flights (Jan-Apr 2025)."""
    ledger.add_campaign(make_campaign(["100", "100", "100", "100"]))
    return ledger
