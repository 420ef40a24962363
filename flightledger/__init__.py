"""
flightledger - Media flight planning engine

Plans an advertising budget as a sequence of time-boxed flights inside a
campaign and keeps impressions, views and traffic figures consistent with
budget and rate as the flights are edited.

Usage:
    from flightledger import FlightLedger, CampaignForm

    ledger = FlightLedger()
    result = ledger.generate_campaign(CampaignForm(
        tactic="Blended Tactics - Standard",
        start_date="2025-01-01", end_date="2025-03-31",
        total_budget="3000", rate="15", total_impressions="200000",
    ))
    campaign = result.unwrap()

    # Edit, split, lock, zero out, redistribute
    first, second = campaign.flights[0], campaign.flights[1]
    ledger.update_flight_value(campaign.id, first.id, "budget", 1200)
    released = ledger.zero_out_flight(campaign.id, second.id)
    ledger.redistribute_budget(campaign.id, released, "even")

    ledger.undo()
    ledger.budget_status(campaign.id).label   # "Balanced", "Over" or "Under"
"""

# Core types
from .core import (
    TEMPLATE_PROGRAMMATIC,
    TEMPLATE_YOUTUBE,
    TEMPLATE_SEM_SOCIAL,
    TEMPLATE_TYPES,
    METRIC_CPM,
    METRIC_CPV,
    LOCK_NONE,
    LOCK_BUDGET,
    LOCK_IMPRESSIONS,
    LOCK_ALL,
    LOCK_STATES,
    FIELD_BUDGET,
    FIELD_IMPRESSIONS,
    FIELD_TOTAL_VIEWS,
    REDISTRIBUTE_EVEN,
    REDISTRIBUTE_WEIGHTED,
    REDISTRIBUTE_CUSTOM,
    REDISTRIBUTION_METHODS,
    CHILD_LINE,
    HISTORY_LIMIT,
    LOCK_TOGGLE_COOLDOWN,
    FlightLedgerError,
    CampaignNotFound,
    InvalidTemplateType,
    CampaignValidationError,
    RateConfig,
    DateRange,
    CampaignForm,
    GenerationResult,
    new_id,
    sequential_ids,
)

# Rounding and derivation
from .calculations import (
    to_decimal,
    round_to_cents,
    round_to_places,
    round_to_integer,
    impressions_from_budget,
    budget_from_impressions,
    traffic_budget,
    active_days,
    parse_to_cents,
    parse_to_integer,
    parse_to_positive,
    calculate_totals,
    calculate_budget_status,
    BudgetStatus,
    split_evenly,
    split_by_weight,
)

# Calendar helpers
from .dates import (
    parse_date,
    format_date,
    first_day_of_month,
    last_day_of_month,
    days_in_month,
    add_days,
    months_between,
)

# Flight records
from .flights import (
    Flight,
    ProgrammaticFlight,
    YouTubeFlight,
    SemSocialFlight,
    Campaign,
    flight_class,
    create_flight,
    copy_flights,
)

# Rate card
from .tactics import (
    Tactic,
    DEFAULT_TACTICS,
    find_tactic,
    parse_rate,
    tactic_from_record,
    template_type_of,
    template_type_for_tactic,
    form_for_tactic,
)

# Generation and form sync
from .generator import (
    validate_form,
    generate_flights,
    build_monthly_flights,
    sync_budget,
    sync_impressions,
    sync_views,
    sync_rate,
)

# Order import
from .orders import (
    ImportedTactic,
    parse_line_items,
    build_imported_campaign,
    build_imported_campaigns,
    template_type_for_product,
)

# Engine
from .history import HistoryManager
from .ledger import FlightLedger

__all__ = [
    # Core
    'TEMPLATE_PROGRAMMATIC', 'TEMPLATE_YOUTUBE', 'TEMPLATE_SEM_SOCIAL', 'TEMPLATE_TYPES',
    'METRIC_CPM', 'METRIC_CPV',
    'LOCK_NONE', 'LOCK_BUDGET', 'LOCK_IMPRESSIONS', 'LOCK_ALL', 'LOCK_STATES',
    'FIELD_BUDGET', 'FIELD_IMPRESSIONS', 'FIELD_TOTAL_VIEWS',
    'REDISTRIBUTE_EVEN', 'REDISTRIBUTE_WEIGHTED', 'REDISTRIBUTE_CUSTOM', 'REDISTRIBUTION_METHODS',
    'CHILD_LINE', 'HISTORY_LIMIT', 'LOCK_TOGGLE_COOLDOWN',
    'FlightLedgerError', 'CampaignNotFound', 'InvalidTemplateType', 'CampaignValidationError',
    'RateConfig', 'DateRange', 'CampaignForm', 'GenerationResult',
    'new_id', 'sequential_ids',
    # Calculations
    'to_decimal', 'round_to_cents', 'round_to_places', 'round_to_integer',
    'impressions_from_budget', 'budget_from_impressions', 'traffic_budget', 'active_days',
    'parse_to_cents', 'parse_to_integer', 'parse_to_positive',
    'calculate_totals', 'calculate_budget_status', 'BudgetStatus',
    'split_evenly', 'split_by_weight',
    # Dates
    'parse_date', 'format_date', 'first_day_of_month', 'last_day_of_month',
    'days_in_month', 'add_days', 'months_between',
    # Flights
    'Flight', 'ProgrammaticFlight', 'YouTubeFlight', 'SemSocialFlight', 'Campaign',
    'flight_class', 'create_flight', 'copy_flights',
    # Tactics
    'Tactic', 'DEFAULT_TACTICS', 'find_tactic', 'parse_rate', 'tactic_from_record',
    'template_type_of', 'template_type_for_tactic', 'form_for_tactic',
    # Generation
    'validate_form', 'generate_flights', 'build_monthly_flights',
    'sync_budget', 'sync_impressions', 'sync_views', 'sync_rate',
    # Orders
    'ImportedTactic', 'parse_line_items', 'build_imported_campaign',
    'build_imported_campaigns', 'template_type_for_product',
    # Engine
    'HistoryManager', 'FlightLedger',
]

__version__ = '1.0.0'
