"""
test_order_import.py - Importing order line items into a planning session

Tests:
- Order payload to campaigns held by one ledger
- Editing imported flights keeps exact first/last dates
- Export shape of an imported campaign
"""

from datetime import date
from decimal import Decimal

from flightledger import (
    FlightLedger, parse_line_items, build_imported_campaigns, sequential_ids,
    TEMPLATE_YOUTUBE, TEMPLATE_SEM_SOCIAL,
)


ORDER = {
    'type': 'order',
    'lineItems': [
        {
            'lineitemId': 'A1',
            'displayName': 'Q1 TrueView',
            'product': 'YouTube',
            'subProduct': ['TrueView'],
            'startDate': '2025-01-10',
            'endDate': '2025-02-20',
            'totalBudget': 600,
            'contractedKpiGoal': 12000,
            'cpm': 0.05,
            'kpi': 'CPV',
        },
        {
            'lineitemId': 'A2',
            'product': 'SEM',
            'subProduct': 'Search',
            'startDate': '2025-03-01',
            'endDate': '2025-03-31',
            'totalBudget': '450',
            'cpm': '2.50',
            'kpi': 'CPLC',
        },
        {
            'lineitemId': 'A3',
            'product': 'Meta',
            'totalBudget': 0,
        },
    ],
}


class TestOrderImportSession:
    """Imported campaigns behave like generated ones."""

    def test_import_into_ledger(self):
        ledger = FlightLedger(id_factory=sequential_ids("x"))
        campaigns = build_imported_campaigns(parse_line_items(ORDER), sequential_ids("imp"))
        ledger.add_campaigns(campaigns)

        youtube, search = ledger.campaigns
        assert youtube.template_type == TEMPLATE_YOUTUBE
        assert search.template_type == TEMPLATE_SEM_SOCIAL
        assert search.name == "SEM - Search"
        assert ledger.history_length == 2

        assert youtube.flights[0].start_date == date(2025, 1, 10)
        assert youtube.flights[-1].end_date == date(2025, 2, 20)
        assert [f.total_views for f in youtube.flights] == [6000, 6000]

    def test_edit_split_and_reset_imported(self):
        ledger = FlightLedger(id_factory=sequential_ids("x"))
        youtube = ledger.add_campaign(build_imported_campaigns(parse_line_items(ORDER))[0])
        first = youtube.flights[0]

        flights = ledger.update_flight_value(youtube.id, first.id, "totalViews", "6200")
        assert flights[0].total_views == 6200
        assert flights[0].total_retail == Decimal("310.00")

        flights = ledger.split_flight(youtube.id, first.id)
        assert flights[0].start_date == date(2025, 1, 10)
        assert flights[1].end_date == date(2025, 1, 31)
        assert flights[0].total_views + flights[1].total_views == 6200

        flights = ledger.reset_campaign(youtube.id)
        assert flights == youtube.original_flights

    def test_export_shape(self):
        ledger = FlightLedger()
        ledger.add_campaigns(build_imported_campaigns(parse_line_items(ORDER)))
        exported = ledger.to_dict()[0]
        assert exported['templateType'] == TEMPLATE_YOUTUBE
        assert exported['formData']['metricType'] == 'CPV'
        flight = exported['flights'][0]
        assert flight['startDate'] == '2025-01-10'
        assert flight['budget'] == 300.0
        assert flight['totalViews'] == 6000
        assert flight['daysInFlight'] == 31
