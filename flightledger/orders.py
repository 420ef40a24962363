"""
orders.py - Campaigns from imported order line items

An order system hands over line items (already fetched; transport is the
caller's concern). parse_line_items() shapes the raw payload into
ImportedTactic records, and build_imported_campaign() runs them through the
same monthly generation as the setup form with one difference: the first
flight starts on the line item's exact start date and the last flight ends
on its exact end date. Months in between still span whole calendar months.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Mapping
import logging

from .core import (
    METRIC_CPM, TEMPLATE_PROGRAMMATIC, TEMPLATE_YOUTUBE, TEMPLATE_SEM_SOCIAL,
    CampaignForm, DateRange, IdFactory, new_id,
)
from .calculations import to_decimal
from .dates import parse_date, format_date, months_between
from .flights import Campaign, copy_flights
from .generator import build_monthly_flights, rate_config_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImportedTactic:
    """
    One line item of an imported order.

    Attributes:
        id: Line item id
        display_name: Campaign name to use
        product / sub_product: Tactic identity
        start_date / end_date: YYYY-MM-DD
        total_budget: Contracted budget
        contracted_impressions: Impression goal (programmatic)
        contracted_kpi_goal: View goal (youtube)
        cpm: Rate
        kpi: Rate basis ("CPM", "CPV", ...)
        status: Order-system status
    """
    id: str
    display_name: str
    product: str
    sub_product: str
    start_date: str
    end_date: str
    total_budget: Decimal
    contracted_impressions: Decimal
    contracted_kpi_goal: Decimal
    cpm: Decimal
    kpi: str = METRIC_CPM
    status: str = ""

    @property
    def template_type(self) -> str:
        return template_type_for_product(self.product)


def template_type_for_product(product: str) -> str:
    if product == "YouTube":
        return TEMPLATE_YOUTUBE
    if product in ("SEM", "Meta", "Spark"):
        return TEMPLATE_SEM_SOCIAL
    return TEMPLATE_PROGRAMMATIC


def _first(value: Any) -> Any:
    """Order fields sometimes arrive as single-element lists."""
    if isinstance(value, (list, tuple)):
        return value[0] if value else ""
    return value


def _line_item_to_tactic(item: Mapping[str, Any], index: int) -> ImportedTactic:
    product = item.get('product') or ''
    sub_product = _first(item.get('subProduct')) or ''
    return ImportedTactic(
        id=str(item.get('lineitemId') or f"order-tactic-{index}"),
        display_name=item.get('displayName') or f"{product} - {sub_product}",
        product=product,
        sub_product=sub_product,
        start_date=format_date(item.get('startDate')),
        end_date=format_date(item.get('endDate')),
        total_budget=to_decimal(item.get('totalBudget') or item.get('adjustedTotalBudget')),
        contracted_impressions=to_decimal(
            item.get('contractedImpressions') or item.get('contractedEmailRecords')
        ),
        contracted_kpi_goal=to_decimal(
            item.get('contractedKpiGoal') or item.get('cbContractedItems')
        ),
        cpm=to_decimal(item.get('cpm') or item.get('cpmEmailDrop')),
        kpi=item.get('kpi') or METRIC_CPM,
        status=item.get('status') or '',
    )


def parse_line_items(payload: Mapping[str, Any]) -> List[ImportedTactic]:
    """
    Shape an order payload into importable tactics.

    Accepts {"type": "lineitem", "lineItem": {...}} or
    {"type": "order", "lineItems": [...]}. Items without a product or with a
    non-positive budget are dropped.
    """
    if not payload:
        return []
    if payload.get('type') == 'lineitem':
        items = [payload['lineItem']] if payload.get('lineItem') else []
    else:
        items = payload.get('lineItems') or []

    tactics = [_line_item_to_tactic(item, index) for index, item in enumerate(items)]
    kept = [t for t in tactics if t.product and t.total_budget > 0]
    if len(kept) < len(tactics):
        logger.debug("Dropped %d line items without product or budget", len(tactics) - len(kept))
    return kept


def build_imported_campaign(tactic: ImportedTactic, id_factory: IdFactory = new_id) -> Campaign:
    """
    Generate a campaign for one imported line item.

    Raises:
        ValueError: If the line item's dates are missing or reversed.
    """
    start = parse_date(tactic.start_date)
    end = parse_date(tactic.end_date)
    months = months_between(start, end)
    if not months:
        raise ValueError(
            f"Line item {tactic.id} has no usable date range ({tactic.start_date!r} to {tactic.end_date!r})"
        )

    template_type = tactic.template_type
    form = CampaignForm(
        tactic=tactic.display_name,
        start_date=tactic.start_date,
        end_date=tactic.end_date,
        total_budget=str(tactic.total_budget),
        rate=str(tactic.cpm),
        total_impressions=str(tactic.contracted_impressions),
        total_views=str(tactic.contracted_kpi_goal),
        metric_type=tactic.kpi,
    )
    rate_config = rate_config_for(form)
    units = tactic.contracted_kpi_goal if template_type == TEMPLATE_YOUTUBE else tactic.contracted_impressions

    flights = build_monthly_flights(
        template_type,
        months,
        tactic.total_budget,
        units,
        rate_config,
        id_factory,
        first_start=start,
        last_end=end,
    )
    campaign = Campaign(
        id=id_factory(),
        name=tactic.display_name,
        template_type=template_type,
        flights=flights,
        rate_config=rate_config,
        date_range=DateRange(start, end),
        form=form,
        original_flights=copy_flights(flights),
    )
    logger.info("Imported line item %s as %s campaign %s", tactic.id, template_type, campaign.name)
    return campaign


def build_imported_campaigns(tactics: List[ImportedTactic], id_factory: IdFactory = new_id) -> List[Campaign]:
    return [build_imported_campaign(t, id_factory) for t in tactics]
