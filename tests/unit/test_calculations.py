"""
test_calculations.py - Unit tests for rounding, derivation and totals

Tests:
- Total numeric conversion of form input
- Rounding helpers
- Budget <-> impressions derivation
- Edit-buffer parsers
- Even and weighted allocation
- Footer totals and budget status
"""

import pytest
from decimal import Decimal

from flightledger import (
    to_decimal, round_to_cents, round_to_places, round_to_integer,
    impressions_from_budget, budget_from_impressions, traffic_budget, active_days,
    parse_to_cents, parse_to_integer, parse_to_positive,
    split_evenly, split_by_weight,
    calculate_totals, calculate_budget_status,
    TEMPLATE_PROGRAMMATIC, TEMPLATE_YOUTUBE, TEMPLATE_SEM_SOCIAL, METRIC_CPV,
)
from tests.factories import make_campaign


class TestToDecimal:
    """Tests for to_decimal conversion."""

    @pytest.mark.parametrize("value, expected", [
        ("12.50", Decimal("12.50")),
        (" 3.5", Decimal("3.5")),
        (".5", Decimal("0.5")),
        ("12abc", Decimal("12")),
        ("1e3", Decimal("1000")),
        (7, Decimal("7")),
        (Decimal("1.25"), Decimal("1.25")),
    ])
    def test_numeric_input(self, value, expected):
        assert to_decimal(value) == expected

    def test_float_goes_through_str(self):
        """0.1 is read as the decimal 0.1, not its binary expansion."""
        assert to_decimal(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("value", [
        None, "", "abc", "inf", "NaN", float("nan"), float("inf"), True, [], object(),
    ])
    def test_malformed_input_is_zero(self, value):
        assert to_decimal(value) == 0


class TestRounding:
    """Tests for round_to_cents, round_to_places and round_to_integer."""

    def test_round_to_cents_half_up(self):
        assert round_to_cents("2.675") == Decimal("2.68")
        assert round_to_cents("2.674") == Decimal("2.67")

    def test_round_to_cents_invalid(self):
        assert round_to_cents(None) == 0
        assert round_to_cents("abc") == 0

    def test_round_to_places(self):
        assert round_to_places("322.5806", 2) == Decimal("322.58")
        assert round_to_places("1.23456", 4) == Decimal("1.2346")

    def test_round_to_integer(self):
        assert round_to_integer("2.5") == 3
        assert round_to_integer("2.49") == 2
        assert round_to_integer("abc") == 0
        assert isinstance(round_to_integer("10"), int)

    @pytest.mark.parametrize("value", ["1e60", 1e300, "9" * 60])
    def test_wider_than_precision_is_zero(self, value):
        assert round_to_cents(value) == 0
        assert round_to_places(value, 2) == 0
        assert round_to_integer(value) == 0

    def test_large_but_representable(self):
        assert round_to_cents("1e40") == Decimal("1e40")
        assert round_to_integer("1e45") == 10 ** 45


class TestDerivation:
    """Tests for budget/impressions conversion."""

    def test_impressions_from_budget(self):
        assert impressions_from_budget(100, 10) == 10000
        assert impressions_from_budget("101", "10") == 10100

    def test_impressions_from_budget_floors(self):
        assert impressions_from_budget(1, 3) == 333

    @pytest.mark.parametrize("rate", [0, -5, "", None])
    def test_impressions_from_budget_no_rate(self, rate):
        assert impressions_from_budget(100, rate) == 0

    def test_budget_from_impressions(self):
        assert budget_from_impressions(10000, 10) == Decimal("100.00")
        assert budget_from_impressions(333, 3) == Decimal("1.00")
        assert budget_from_impressions(10000, 0) == 0

    def test_traffic_budget(self):
        assert traffic_budget(100) == Decimal("101.00")
        assert traffic_budget("33.33") == Decimal("33.66")

    def test_active_days(self):
        assert active_days("2025-01-01", "2025-01-31") == 31
        assert active_days("2025-02-01", "2025-02-28") == 28
        assert active_days("2025-03-05", "2025-03-05") == 1
        assert active_days("", "2025-03-05") == 0


class TestEditParsers:
    """Tests for committed cell-edit parsing."""

    def test_parse_to_cents(self):
        assert parse_to_cents("1.005") == Decimal("1.01")

    def test_parse_to_integer_truncates(self):
        assert parse_to_integer("12.9") == 12
        assert parse_to_integer("abc") == 0

    def test_parse_to_positive(self):
        assert parse_to_positive("-5") == 0
        assert parse_to_positive("5.5") == Decimal("5.5")


class TestAllocation:
    """Tests for split_evenly and split_by_weight."""

    def test_split_evenly_leading_remainder(self):
        shares = split_evenly("100", 3)
        assert shares == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]
        assert sum(shares) == Decimal("100")

    def test_split_evenly_fewer_cents_than_shares(self):
        assert split_evenly("0.01", 3) == [Decimal("0.01"), Decimal("0"), Decimal("0")]

    def test_split_evenly_no_shares(self):
        assert split_evenly("100", 0) == []

    def test_split_by_weight_drifts(self):
        shares = split_by_weight(100, [31, 28, 31])
        assert shares == [Decimal("34.44"), Decimal("31.11"), Decimal("34.44")]
        assert sum(shares) == Decimal("99.99")

    def test_split_by_weight_zero_total(self):
        assert split_by_weight(10, [0, 0]) == [0, 0]


class TestTotals:
    """Tests for calculate_totals."""

    def test_programmatic_totals(self):
        campaign = make_campaign(["100", "200"])
        totals = calculate_totals(campaign.flights, TEMPLATE_PROGRAMMATIC)
        assert totals == {
            'budget': Decimal("300.00"),
            'impressions': 30000,
            'trafficBudget': Decimal("303.00"),
            'trafficImpressions': 30300,
        }

    def test_youtube_totals(self):
        campaign = make_campaign(["100"], TEMPLATE_YOUTUBE, rate="0.05", metric_type=METRIC_CPV)
        totals = calculate_totals(campaign.flights, TEMPLATE_YOUTUBE)
        assert totals['budget'] == Decimal("100.00")
        assert totals['totalViews'] == 2000
        assert totals['totalRetail'] == Decimal("100.00")

    def test_sem_social_totals_budget_only(self):
        campaign = make_campaign(["100", "50"], TEMPLATE_SEM_SOCIAL)
        assert calculate_totals(campaign.flights, TEMPLATE_SEM_SOCIAL) == {'budget': Decimal("150.00")}

    def test_empty(self):
        assert calculate_totals([], TEMPLATE_SEM_SOCIAL) == {'budget': 0}


class TestBudgetStatus:
    """Tests for calculate_budget_status."""

    def test_balanced(self):
        status = calculate_budget_status(make_campaign(["100", "200"]))
        assert status.is_valid
        assert status.label == "Balanced"
        assert status.total_budget == Decimal("300.00")
        assert status.original_budget == Decimal("300.00")
        assert status.redistributable_amount == 0

    def test_over(self):
        campaign = make_campaign(["100", "200"])
        campaign.flights[0].budget += 5
        status = calculate_budget_status(campaign)
        assert not status.is_valid
        assert status.is_over
        assert status.label == "Over"
        assert status.difference == Decimal("5.00")

    def test_under(self):
        campaign = make_campaign(["100", "200"])
        campaign.flights[1].budget -= 5
        status = calculate_budget_status(campaign)
        assert status.is_under
        assert status.label == "Under"
        assert status.redistributable_amount == Decimal("5.00")

    def test_sub_cent_drift_is_balanced(self):
        campaign = make_campaign(["100"])
        campaign.flights[0].budget = Decimal("100.004")
        assert calculate_budget_status(campaign).is_valid

    def test_no_campaign(self):
        status = calculate_budget_status(None)
        assert not status.is_valid
        assert status.total_budget == 0
