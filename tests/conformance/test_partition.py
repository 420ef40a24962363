"""
Monthly Partition Conformance Tests

INVARIANT: generated flights are one per calendar month the range touches,
contiguous, non-overlapping, each within a single month, and together
allocate the requested budget to within the balance tolerance.
"""

from hypothesis import given, settings
from hypothesis import strategies as st
from datetime import date, timedelta
from decimal import Decimal

from flightledger import (
    CampaignForm, generate_flights, months_between, calculate_budget_status,
    add_days, first_day_of_month, last_day_of_month,
    TEMPLATE_PROGRAMMATIC, TEMPLATE_YOUTUBE, TEMPLATE_SEM_SOCIAL, METRIC_CPM,
)


@st.composite
def date_range(draw, min_days=0):
    start = draw(st.dates(min_value=date(2023, 1, 1), max_value=date(2027, 12, 31)))
    days = draw(st.integers(min_value=min_days, max_value=900))
    return start, start + timedelta(days=days)


class TestMonthsBetween:
    """Month anchors for a date range."""

    @given(date_range())
    @settings(max_examples=200)
    def test_anchors_cover_range(self, span):
        start, end = span
        months = months_between(start, end)
        assert months[0] == first_day_of_month(start)
        assert months[-1] == first_day_of_month(end)
        assert len(months) == (end.year - start.year) * 12 + end.month - start.month + 1
        for earlier, later in zip(months, months[1:]):
            assert add_days(last_day_of_month(earlier), 1) == later


class TestGeneratedFlights:
    """Generated flights tile the months and keep the budget."""

    @given(
        date_range(min_days=1),
        st.decimals(min_value=Decimal("1"), max_value=Decimal("5000000"), places=2,
                    allow_nan=False, allow_infinity=False),
        st.sampled_from([TEMPLATE_PROGRAMMATIC, TEMPLATE_YOUTUBE, TEMPLATE_SEM_SOCIAL]),
    )
    @settings(max_examples=100)
    def test_flights_tile_months(self, span, budget, template_type):
        start, end = span
        form = CampaignForm(
            start_date=start.isoformat(), end_date=end.isoformat(),
            total_budget=str(budget), rate="12", total_impressions="100000",
            metric_type=METRIC_CPM,
        )
        campaign = generate_flights(form, template_type).unwrap()
        flights = campaign.flights

        assert len(flights) == len(months_between(start, end))
        assert [f.line for f in flights] == list(range(1, len(flights) + 1))
        for flight in flights:
            assert first_day_of_month(flight.start_date) == first_day_of_month(flight.end_date)
        for earlier, later in zip(flights, flights[1:]):
            assert add_days(earlier.end_date, 1) == later.start_date
        assert calculate_budget_status(campaign).is_valid
