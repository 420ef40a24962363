"""
Conservation Conformance Tests

INVARIANT (split): for a flight with budget B and impressions I,
    first.budget + second.budget = B
    first.impressions + second.impressions = I
and the halves cover the original dates with no gap or overlap.

INVARIANT (even redistribution): for an amount A in cents and n >= 1
eligible flights, the per-flight increments sum to A exactly and differ
from each other by at most one cent.
"""

from hypothesis import given, settings
from hypothesis import strategies as st
from datetime import date, timedelta
from decimal import Decimal

from flightledger import (
    FlightLedger, ProgrammaticFlight, RateConfig,
    split_evenly, add_days, REDISTRIBUTE_EVEN, REDISTRIBUTE_CUSTOM,
)
from tests.factories import make_campaign


# =============================================================================
# STRATEGIES FOR PROPERTY-BASED TESTING
# =============================================================================

cents = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("1000000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)

raw_budgets = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("1000000"),
    places=6,
    allow_nan=False,
    allow_infinity=False,
)

rates = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("100"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)


@st.composite
def flight_span(draw):
    """A start date in 2024-2026 and a span of at least two days."""
    start = draw(st.dates(min_value=date(2024, 1, 1), max_value=date(2026, 12, 31)))
    days = draw(st.integers(min_value=1, max_value=400))
    return start, start + timedelta(days=days)


# =============================================================================
# SPLIT CONSERVATION
# =============================================================================

class TestSplitConservation:
    """Splitting never creates or destroys budget or impressions."""

    @given(flight_span(), raw_budgets, st.integers(min_value=0, max_value=10_000_000), rates)
    @settings(max_examples=200)
    def test_split_conserves(self, span, budget, impressions, rate):
        start, end = span
        flight = ProgrammaticFlight(id="f", line=1, start_date=start, end_date=end,
                                    budget=budget, impressions=impressions)
        first, second = flight.split(RateConfig(rate))

        assert first.budget + second.budget == budget
        assert first.impressions + second.impressions == impressions
        assert first.start_date == start
        assert second.end_date == end
        assert add_days(first.end_date, 1) == second.start_date
        assert first.end_date >= first.start_date

    @given(st.lists(st.integers(min_value=0, max_value=3), min_size=1, max_size=6))
    @settings(max_examples=50)
    def test_repeated_ledger_splits_conserve_campaign_budget(self, picks):
        ledger = FlightLedger(lock_cooldown=0)
        ledger.add_campaign(make_campaign(["100.01", "200.03", "0.05"]))
        for pick in picks:
            flights = ledger.get_flights("camp")
            ledger.split_flight("camp", flights[pick % len(flights)].id)

        flights = ledger.get_flights("camp")
        assert sum(f.budget for f in flights) == Decimal("300.09")
        parents = [f for f in flights if f.is_parent]
        for parent in parents:
            members = [f for f in flights if f.parent_id == parent.parent_id]
            assert sum(1 for f in members if f.is_parent) == 1


# =============================================================================
# EVEN REDISTRIBUTION EXACTNESS
# =============================================================================

class TestEvenRedistribution:
    """Even redistribution adds exactly the requested amount."""

    @given(cents, st.integers(min_value=1, max_value=500))
    @settings(max_examples=200)
    def test_shares_sum_exactly(self, amount, count):
        shares = split_evenly(amount, count)
        assert len(shares) == count
        assert sum(shares) == amount
        assert max(shares) - min(shares) <= Decimal("0.01")

    @given(cents, st.integers(min_value=1, max_value=12))
    @settings(max_examples=100)
    def test_ledger_even_adds_amount(self, amount, count):
        ledger = FlightLedger()
        ledger.add_campaign(make_campaign(["100"] * count))
        flights = ledger.redistribute_budget("camp", amount, REDISTRIBUTE_EVEN)
        assert sum(f.budget for f in flights) == Decimal("100") * count + amount

    @given(cents, st.sets(st.integers(min_value=1, max_value=6), min_size=1))
    @settings(max_examples=100)
    def test_ledger_custom_adds_amount_to_targets_only(self, amount, targets):
        ledger = FlightLedger()
        ledger.add_campaign(make_campaign(["50"] * 6))
        target_ids = [f"f{n}" for n in targets]
        flights = ledger.redistribute_budget("camp", amount, REDISTRIBUTE_CUSTOM, target_ids)
        assert sum(f.budget for f in flights if f.id in target_ids) == Decimal("50") * len(targets) + amount
        assert all(f.budget == Decimal("50") for f in flights if f.id not in target_ids)
