"""
Core types and constants for the flight ledger.

This module provides the foundational pieces every other module builds on:
1. Decimal context configuration
2. Constants: template types, metric types, lock states, tuning values
3. Exceptions: FlightLedgerError and domain-specific error types
4. Immutable value objects: RateConfig, DateRange, CampaignForm, GenerationResult
5. Id factories

Nothing in this module mutates campaign state.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal, ROUND_HALF_EVEN, getcontext
from itertools import count
from typing import Dict, Optional, Callable, Any, TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from .flights import Campaign


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Budget arithmetic is done in Decimal. The context is configured once at
# import time; rounding to cents always passes an explicit rounding mode, so
# the context rounding only affects intermediate quotients.
#
_FLIGHT_DECIMAL_CONTEXT = getcontext()
_FLIGHT_DECIMAL_CONTEXT.prec = 50
_FLIGHT_DECIMAL_CONTEXT.rounding = ROUND_HALF_EVEN


# ============================================================================
# CONSTANTS
# ============================================================================

# Template types (strings, matching the values the UI and export layer use).
TEMPLATE_PROGRAMMATIC = "programmatic"
TEMPLATE_YOUTUBE = "youtube"
TEMPLATE_SEM_SOCIAL = "sem-social"
TEMPLATE_TYPES = (TEMPLATE_PROGRAMMATIC, TEMPLATE_YOUTUBE, TEMPLATE_SEM_SOCIAL)

# Rate bases
METRIC_CPM = "CPM"
METRIC_CPV = "CPV"

# Lock states. LOCK_NONE is represented by None on the flight.
LOCK_NONE = None
LOCK_BUDGET = "budget"
LOCK_IMPRESSIONS = "impressions"
LOCK_ALL = "all"
LOCK_STATES = (LOCK_NONE, LOCK_BUDGET, LOCK_IMPRESSIONS, LOCK_ALL)

# Editable flight fields
FIELD_BUDGET = "budget"
FIELD_IMPRESSIONS = "impressions"
FIELD_TOTAL_VIEWS = "totalViews"

# Redistribution methods
REDISTRIBUTE_EVEN = "even"
REDISTRIBUTE_WEIGHTED = "weighted"
REDISTRIBUTE_CUSTOM = "custom"
REDISTRIBUTION_METHODS = (REDISTRIBUTE_EVEN, REDISTRIBUTE_WEIGHTED, REDISTRIBUTE_CUSTOM)

# Line marker for collapsed child rows of a split group.
CHILD_LINE = "-"

# Maximum number of retained history snapshots.
HISTORY_LIMIT = 50

# Seconds during which a repeated lock toggle on the same flight is ignored.
LOCK_TOGGLE_COOLDOWN = 0.1

# Programmatic traffic buffer reserved for ad-serving overage.
TRAFFIC_MULTIPLIER = Decimal("1.01")

# Maximum drift between requested and allocated budget still reported as balanced.
BUDGET_TOLERANCE = Decimal("0.01")

# Impressions are priced per thousand.
IMPRESSIONS_PER_RATE_UNIT = 1000

CENT = Decimal("0.01")
ZERO = Decimal("0")


# ============================================================================
# EXCEPTIONS
# ============================================================================

class FlightLedgerError(Exception):
    """Base exception for all flight-ledger errors."""
    pass


class CampaignNotFound(FlightLedgerError):
    """Raised when an operation addresses a campaign id the ledger does not hold."""
    pass


class InvalidTemplateType(FlightLedgerError):
    """Raised when a template tag is not one of TEMPLATE_TYPES."""
    pass


class CampaignValidationError(FlightLedgerError):
    """
    Raised by GenerationResult.unwrap() when generation was refused.

    Attributes:
        errors: Mapping of form field name to user-facing message.
    """

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"Campaign form is invalid: {fields}")


def check_template_type(template_type: str) -> str:
    """Return template_type unchanged, or raise InvalidTemplateType."""
    if template_type not in TEMPLATE_TYPES:
        raise InvalidTemplateType(
            f"Unknown template type {template_type!r}; expected one of {', '.join(TEMPLATE_TYPES)}"
        )
    return template_type


# ============================================================================
# ID FACTORIES
# ============================================================================

IdFactory = Callable[[], str]


def new_id() -> str:
    """Collision-resistant random id for campaigns, flights and split groups."""
    return uuid.uuid4().hex


def sequential_ids(prefix: str = "id") -> IdFactory:
    """
    Deterministic id factory ("id_1", "id_2", ...).

    Useful for reproducible tests and demos.
    """
    counter = count(1)
    return lambda: f"{prefix}_{next(counter)}"


# ============================================================================
# VALUE OBJECTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class RateConfig:
    """
    Price basis of a campaign.

    Attributes:
        rate: Price per 1000 impressions (CPM) or per view (CPV).
        metric_type: "CPM", "CPV", or another KPI label from the rate card.
    """
    rate: Decimal = ZERO
    metric_type: str = METRIC_CPM

    @property
    def is_cpv(self) -> bool:
        return self.metric_type == METRIC_CPV

    @property
    def view_rate(self) -> Decimal:
        """Price of a single view: the rate itself for CPV, rate/1000 otherwise."""
        if self.is_cpv:
            return self.rate
        return self.rate / IMPRESSIONS_PER_RATE_UNIT


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive calendar-date range of a campaign."""
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.end_date < self.start_date:
            raise ValueError(
                f"DateRange end {self.end_date} is before start {self.start_date}"
            )


@dataclass(frozen=True)
class CampaignForm:
    """
    Raw campaign setup form ("formData").

    Values are kept as entered (usually strings) so blank and partial input
    survives until validation. Numeric fields are converted by the generator.
    """
    tactic: str = ""
    start_date: Any = ""
    end_date: Any = ""
    total_budget: Any = ""
    rate: Any = ""
    total_impressions: Any = ""
    total_views: Any = ""
    metric_type: str = METRIC_CPM

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CampaignForm:
        """
        Build a form from a formData mapping.

        Accepts the UI's camelCase keys ("totalBudget") or snake_case keys
        ("total_budget"); unknown keys are ignored.
        """
        values = {}
        for key, value in data.items():
            name = _FORM_KEYS.get(key, key)
            if name in _FORM_FIELDS:
                values[name] = value
        return cls(**values)

    def update(self, **changes) -> CampaignForm:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Form values under the keys the export layer reads."""
        return {
            'tactic': self.tactic,
            'startDate': self.start_date,
            'endDate': self.end_date,
            'totalBudget': self.total_budget,
            'rate': self.rate,
            'totalImpressions': self.total_impressions,
            'totalViews': self.total_views,
            'metricType': self.metric_type,
        }


_FORM_KEYS = {
    'startDate': 'start_date',
    'endDate': 'end_date',
    'totalBudget': 'total_budget',
    'totalImpressions': 'total_impressions',
    'totalViews': 'total_views',
    'metricType': 'metric_type',
}
_FORM_FIELDS = frozenset(
    ('tactic', 'start_date', 'end_date', 'total_budget', 'rate',
     'total_impressions', 'total_views', 'metric_type')
)


@dataclass(frozen=True)
class GenerationResult:
    """
    Outcome of a flight generation attempt.

    Exactly one of `campaign` and `errors` is meaningful: a refused generation
    has campaign=None and a non-empty field -> message mapping.
    """
    campaign: Optional['Campaign'] = None
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.campaign is not None and not self.errors

    def unwrap(self) -> 'Campaign':
        """Return the campaign, or raise CampaignValidationError."""
        if not self.ok:
            raise CampaignValidationError(self.errors)
        return self.campaign
