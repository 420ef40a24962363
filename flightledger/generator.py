"""
generator.py - Campaign setup: validation, flight generation, form sync

Flow:
    1. The setup form is kept in sync as the user types (sync_budget,
       sync_impressions, sync_views, sync_rate), each returning a new form.
    2. generate_flights() validates the form and, when valid, partitions the
       date range into calendar months and builds one flight per month.

Generation splits the total budget evenly with no remainder correction:
each month gets exactly total_budget / month_count. Any cent-level drift
against the literal input is left for calculate_budget_status() to report.
"""

from __future__ import annotations
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
import logging

from .core import (
    METRIC_CPM, METRIC_CPV, TRAFFIC_MULTIPLIER, IMPRESSIONS_PER_RATE_UNIT,
    TEMPLATE_PROGRAMMATIC, TEMPLATE_YOUTUBE,
    CampaignForm, DateRange, GenerationResult, RateConfig, IdFactory,
    check_template_type, new_id,
)
from .calculations import (
    to_decimal, round_to_cents, round_to_integer, impressions_from_budget,
)
from .dates import parse_date, months_between, last_day_of_month, days_in_month
from .flights import Campaign, Flight, create_flight, copy_flights
from .tactics import Tactic, DEFAULT_TACTICS, template_type_for_tactic

logger = logging.getLogger(__name__)


# ============================================================================
# VALIDATION
# ============================================================================

def _missing(value: Any) -> bool:
    if isinstance(value, str):
        return not value.strip()
    return not value


def validate_form(form: CampaignForm, require_tactic: bool = True) -> Dict[str, str]:
    """
    Field-level validation of a setup form.

    Args:
        form: Setup form
        require_tactic: False when the caller already knows the template type,
                        so the tactic is only a display name

    Returns:
        Mapping of form field (camelCase, as the UI names it) to message.
        Empty when the form can be generated.
    """
    errors: Dict[str, str] = {}

    if require_tactic and _missing(form.tactic):
        errors['tactic'] = 'Please select a tactic'

    start = parse_date(form.start_date)
    end = parse_date(form.end_date)
    if _missing(form.start_date):
        errors['startDate'] = 'Start date is required'
    elif start is None:
        errors['startDate'] = 'Start date is not a valid date'
    if _missing(form.end_date):
        errors['endDate'] = 'End date is required'
    elif end is None:
        errors['endDate'] = 'End date is not a valid date'

    if _missing(form.total_budget):
        errors['totalBudget'] = 'Total budget is required'
    if _missing(form.rate):
        errors['rate'] = 'Rate is required'

    if start is not None and end is not None and start >= end:
        errors['endDate'] = 'End date must be after start date'

    if 'tactic' not in errors:
        if form.metric_type == METRIC_CPV and _missing(form.total_views):
            errors['totalViews'] = 'Total views required'
        elif form.metric_type == METRIC_CPM and _missing(form.total_impressions):
            errors['totalImpressions'] = 'Total impressions required'

    return errors


# ============================================================================
# FLIGHT CONSTRUCTION
# ============================================================================

def rate_config_for(form: CampaignForm) -> RateConfig:
    return RateConfig(rate=to_decimal(form.rate), metric_type=form.metric_type or METRIC_CPM)


def delivery_total(form: CampaignForm, template_type: str) -> Decimal:
    """Impressions (programmatic) or views (youtube, falling back to impressions) to spread."""
    if template_type == TEMPLATE_YOUTUBE:
        views = form.total_views if not _missing(form.total_views) else form.total_impressions
        return to_decimal(views)
    if template_type == TEMPLATE_PROGRAMMATIC:
        return to_decimal(form.total_impressions)
    return Decimal(0)


def _seed_derived(flight: Flight, month: date, units: int, rate_config: RateConfig) -> None:
    if flight.template_type == TEMPLATE_PROGRAMMATIC:
        flight.impressions = units
        flight.traffic_budget = flight.budget * TRAFFIC_MULTIPLIER
        flight.traffic_impressions = impressions_from_budget(flight.traffic_budget, rate_config.rate)
    elif flight.template_type == TEMPLATE_YOUTUBE:
        flight.total_views = units
        flight.days_in_flight = days_in_month(month)
        flight.recompute_daily(rate_config)


def build_monthly_flights(
    template_type: str,
    months: List[date],
    total_budget: Any,
    total_units: Any,
    rate_config: RateConfig,
    id_factory: IdFactory = new_id,
    first_start: Optional[date] = None,
    last_end: Optional[date] = None,
) -> List[Flight]:
    """
    One flight per month anchor, numbered from line 1.

    Flights span whole calendar months unless first_start / last_end pin the
    first flight's start and the last flight's end to exact dates.

    Args:
        template_type: Flight variant to build
        months: First-of-month anchors (see months_between)
        total_budget: Budget spread evenly across months
        total_units: Impressions or views spread evenly (rounded per month)
        rate_config: Rate basis for derived fields
        id_factory: Flight id source
        first_start: Exact start date for the first flight
        last_end: Exact end date for the last flight
    """
    count = len(months)
    budget_per_month = to_decimal(total_budget) / count
    units_per_month = round_to_integer(to_decimal(total_units) / count)

    flights = []
    for index, month in enumerate(months):
        start = first_start if index == 0 and first_start else month
        end = last_end if index == count - 1 and last_end else last_day_of_month(month)
        flight = create_flight(
            template_type,
            id=id_factory(),
            line=index + 1,
            start_date=start,
            end_date=end,
            budget=budget_per_month,
        )
        _seed_derived(flight, month, units_per_month, rate_config)
        flights.append(flight)
    return flights


def generate_flights(
    form: Union[CampaignForm, Mapping[str, Any]],
    template_type: Optional[str] = None,
    tactics: Iterable[Tactic] = DEFAULT_TACTICS,
    id_factory: IdFactory = new_id,
) -> GenerationResult:
    """
    Validate a setup form and build a new campaign from it.

    Args:
        form: Setup form, or a formData mapping (see CampaignForm.from_dict)
        template_type: Template tag; resolved from the form's tactic when None
        tactics: Rate card used for that resolution
        id_factory: Source of campaign and flight ids

    Returns:
        GenerationResult with the campaign, or with field errors and no campaign.

    Example:
        result = generate_flights(CampaignForm(
            tactic="Blended Tactics - Standard", start_date="2025-01-01",
            end_date="2025-03-31", total_budget="300", rate="10",
            total_impressions="30000"), "programmatic")
        [f.budget for f in result.campaign.flights]   # [100, 100, 100]
    """
    if isinstance(form, Mapping):
        form = CampaignForm.from_dict(form)
    errors = validate_form(form, require_tactic=template_type is None)
    if template_type is None and 'tactic' not in errors:
        template_type = template_type_for_tactic(form.tactic, tactics)
        if template_type is None:
            errors['tactic'] = f'Unknown tactic {form.tactic!r}'
    if errors:
        logger.debug("Generation refused: %s", errors)
        return GenerationResult(campaign=None, errors=errors)

    check_template_type(template_type)
    start = parse_date(form.start_date)
    end = parse_date(form.end_date)
    rate_config = rate_config_for(form)

    flights = build_monthly_flights(
        template_type,
        months_between(start, end),
        form.total_budget,
        delivery_total(form, template_type),
        rate_config,
        id_factory,
    )
    campaign = Campaign(
        id=id_factory(),
        name=form.tactic or f"{template_type} campaign",
        template_type=template_type,
        flights=flights,
        rate_config=rate_config,
        date_range=DateRange(start, end),
        form=form,
        original_flights=copy_flights(flights),
    )
    logger.info(
        "Generated campaign %s (%s): %d flights, budget %s",
        campaign.name, template_type, len(flights), form.total_budget,
    )
    return GenerationResult(campaign=campaign)


# ============================================================================
# FORM AUTO-CALCULATION
# ============================================================================

def _fixed2(amount: Decimal) -> str:
    return format(round_to_cents(amount), '.2f')


def sync_budget(form: CampaignForm, value: Any) -> CampaignForm:
    """Budget typed: derive impressions (CPM) or views (CPV) at the form's rate."""
    budget = to_decimal(value)
    rate = to_decimal(form.rate)
    if rate <= 0:
        return form.update(total_budget=value)
    if form.metric_type == METRIC_CPM:
        impressions = round_to_integer(budget * IMPRESSIONS_PER_RATE_UNIT / rate)
        return form.update(total_budget=value, total_impressions=str(impressions))
    if form.metric_type == METRIC_CPV:
        views = round_to_integer(budget / rate)
        return form.update(total_budget=value, total_views=str(views))
    return form.update(total_budget=value)


def sync_impressions(form: CampaignForm, value: Any) -> CampaignForm:
    """Impressions typed: derive budget for CPM tactics."""
    rate = to_decimal(form.rate)
    if rate > 0 and form.metric_type == METRIC_CPM:
        budget = to_decimal(value) * rate / IMPRESSIONS_PER_RATE_UNIT
        return form.update(total_impressions=value, total_budget=_fixed2(budget))
    return form.update(total_impressions=value)


def sync_views(form: CampaignForm, value: Any) -> CampaignForm:
    """Views typed: derive budget for CPV tactics."""
    rate = to_decimal(form.rate)
    if rate > 0 and form.metric_type == METRIC_CPV:
        return form.update(total_views=value, total_budget=_fixed2(to_decimal(value) * rate))
    return form.update(total_views=value)


def sync_rate(form: CampaignForm, value: Any) -> CampaignForm:
    """Rate typed: store it and re-derive the delivery total from the budget."""
    form = form.update(rate=value)
    if _missing(form.total_budget):
        return form
    return sync_budget(form, form.total_budget)
