"""
flights.py - Flight and Campaign records

Flights are a tagged union over the three template types. Each variant owns a
fixed field set and the rules that keep its derived fields consistent with
budget and rate:

    ProgrammaticFlight  budget, impressions, traffic_budget, traffic_impressions
    YouTubeFlight       budget, impressions, total_views, days_in_flight,
                        daily_views, daily_platform_budget, total_retail
    SemSocialFlight     budget, impressions

`template_type` on the Campaign selects the variant (see flight_class()).

Lock rules enforced by the variants' recompute methods:
    - a budget-driven recompute never touches impression-side fields of a
      flight locked "impressions"
    - an impression-driven recompute never touches budget-side fields of a
      flight locked "budget"
Whether an edit is allowed at all is decided by the engine (ledger.py).

Records are mutable and owned by the FlightLedger. Anything leaving the
ledger (history snapshots, read accessors) is a deep copy.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type, Union
import copy
import math

from .core import (
    ZERO,
    LOCK_ALL, LOCK_BUDGET, LOCK_IMPRESSIONS,
    TEMPLATE_PROGRAMMATIC, TEMPLATE_YOUTUBE, TEMPLATE_SEM_SOCIAL,
    RateConfig, DateRange, CampaignForm,
    InvalidTemplateType, check_template_type,
)
from .calculations import (
    to_decimal, round_to_cents, round_to_integer, round_to_places,
    impressions_from_budget, budget_from_impressions, traffic_budget,
)
from .dates import add_days, format_date


Line = Union[int, str]


# ============================================================================
# FLIGHT VARIANTS
# ============================================================================

@dataclass
class Flight:
    """
    A single time-boxed budget allocation.

    Attributes:
        id: Unique within the campaign
        line: Display ordinal, or "-" for a child row of a split group
        start_date: First day of the flight (inclusive)
        end_date: Last day of the flight (inclusive)
        budget: Currency amount
        impressions: Rate-derived delivery count
        locked: None, "budget", "impressions" or "all"
        is_parent / is_child / parent_id: split-group membership
    """
    id: str
    line: Line
    start_date: date
    end_date: date
    budget: Decimal = ZERO
    impressions: int = 0
    locked: Optional[str] = None
    is_parent: bool = False
    is_child: bool = False
    parent_id: Optional[str] = None

    template_type: ClassVar[str] = ""

    def __post_init__(self):
        if self.end_date < self.start_date:
            raise ValueError(
                f"Flight {self.id} ends ({self.end_date}) before it starts ({self.start_date})"
            )

    # ------------------------------------------------------------------
    # Lock and group queries
    # ------------------------------------------------------------------

    @property
    def fully_locked(self) -> bool:
        return self.locked == LOCK_ALL

    @property
    def budget_locked(self) -> bool:
        return self.locked in (LOCK_ALL, LOCK_BUDGET)

    @property
    def impressions_locked(self) -> bool:
        return self.locked in (LOCK_ALL, LOCK_IMPRESSIONS)

    @property
    def in_group(self) -> bool:
        return self.is_parent or self.is_child

    @property
    def days(self) -> int:
        """Inclusive number of active days."""
        return (self.end_date - self.start_date).days + 1

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def apply_budget(self, value: Any, rate_config: RateConfig) -> None:
        """Set budget (to the cent) and derive the impression side from it."""
        self.budget = round_to_cents(value)
        self.recompute_from_budget(rate_config)

    def recompute_from_budget(self, rate_config: RateConfig) -> None:
        """Re-derive every budget-dependent field from the current budget."""
        if rate_config.rate <= 0:
            return
        if self.locked != LOCK_IMPRESSIONS:
            self.impressions = impressions_from_budget(self.budget, rate_config.rate)
        self._derive_from_budget(rate_config)

    def apply_impressions(self, value: Any, rate_config: RateConfig) -> None:
        """Set impressions (whole number) and derive the budget side from them."""
        self.impressions = round_to_integer(value)
        if rate_config.rate <= 0 or self.locked == LOCK_BUDGET:
            return
        self.budget = budget_from_impressions(self.impressions, rate_config.rate)
        self._derive_from_budget(rate_config)

    def apply_views(self, value: Any, rate_config: RateConfig) -> bool:
        """Set total views. Returns False for templates without views."""
        return False

    def zero_out(self) -> Decimal:
        """
        Zero budget and every derived amount, then lock the flight.

        Returns:
            The budget the flight held before zeroing.
        """
        released = self.budget
        self.budget = ZERO
        self.impressions = 0
        self._zero_derived()
        self.locked = LOCK_ALL
        return released

    def split(self, rate_config: RateConfig) -> Optional[Tuple[Flight, Flight]]:
        """
        Divide the flight at its date midpoint.

        The midpoint is start + ceil(total_days / 2) where total_days is
        end - start; the first half ends the day before it. Budget and
        impressions are divided so the halves add up to the original
        exactly. Ids, lines and group membership are left for the caller.

        Returns:
            (first, second), or None for a single-day flight.
        """
        total_days = (self.end_date - self.start_date).days
        if total_days < 1:
            return None
        mid = add_days(self.start_date, math.ceil(total_days / 2))

        first = copy.deepcopy(self)
        second = copy.deepcopy(self)
        first.end_date = add_days(mid, -1)
        second.start_date = mid

        first.budget = round_to_cents(to_decimal(self.budget) / 2)
        second.budget = self.budget - first.budget
        first.impressions = round_to_integer(Decimal(self.impressions) / 2)
        second.impressions = self.impressions - first.impressions

        self._split_derived(first, second, rate_config)
        return first, second

    # ------------------------------------------------------------------
    # Variant hooks
    # ------------------------------------------------------------------

    def _derive_from_budget(self, rate_config: RateConfig) -> None:
        pass

    def _zero_derived(self) -> None:
        pass

    def _split_derived(self, first: Flight, second: Flight, rate_config: RateConfig) -> None:
        pass

    def _derived_dict(self) -> Dict[str, Any]:
        return {}

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """
        Export shape: camelCase keys, money as float, counts as int,
        dates as YYYY-MM-DD. `locked` and group keys appear only when set.
        """
        data: Dict[str, Any] = {
            'id': self.id,
            'line': self.line,
            'startDate': format_date(self.start_date),
            'endDate': format_date(self.end_date),
            'budget': float(self.budget),
            'impressions': int(self.impressions),
        }
        data.update(self._derived_dict())
        if self.locked:
            data['locked'] = self.locked
        if self.in_group:
            data['isParent'] = self.is_parent
            data['isChild'] = self.is_child
            data['parentId'] = self.parent_id
        return data


@dataclass
class ProgrammaticFlight(Flight):
    """Flight carrying the 1% traffic buffer (budget and impressions)."""
    traffic_budget: Decimal = ZERO
    traffic_impressions: int = 0

    template_type: ClassVar[str] = TEMPLATE_PROGRAMMATIC

    def _derive_from_budget(self, rate_config: RateConfig) -> None:
        self.traffic_budget = traffic_budget(self.budget)
        if self.locked != LOCK_IMPRESSIONS:
            self.traffic_impressions = impressions_from_budget(self.traffic_budget, rate_config.rate)

    def _zero_derived(self) -> None:
        self.traffic_budget = ZERO
        self.traffic_impressions = 0

    def _split_derived(self, first: Flight, second: Flight, rate_config: RateConfig) -> None:
        # Traffic is re-derived from each half's own budget.
        for half in (first, second):
            half.traffic_budget = traffic_budget(half.budget)
            half.traffic_impressions = impressions_from_budget(half.traffic_budget, rate_config.rate)

    def _derived_dict(self) -> Dict[str, Any]:
        return {
            'trafficBudget': float(self.traffic_budget),
            'trafficImpressions': int(self.traffic_impressions),
        }


@dataclass
class YouTubeFlight(Flight):
    """Flight tracked in views, with per-day pacing figures."""
    total_views: int = 0
    days_in_flight: int = 0
    daily_views: Decimal = ZERO
    daily_platform_budget: Decimal = ZERO
    total_retail: Decimal = ZERO

    template_type: ClassVar[str] = TEMPLATE_YOUTUBE

    def apply_views(self, value: Any, rate_config: RateConfig) -> bool:
        self.total_views = round_to_integer(value)
        self.recompute_daily(rate_config)
        return True

    def recompute_daily(self, rate_config: RateConfig) -> None:
        """Re-derive daily views, daily platform budget and retail from total views."""
        if not self.days_in_flight:
            return
        self.daily_views = round_to_places(Decimal(self.total_views) / self.days_in_flight, 2)
        if rate_config.rate > 0:
            self.daily_platform_budget = self.daily_views * rate_config.view_rate
            self.total_retail = self.total_views * rate_config.view_rate

    def _zero_derived(self) -> None:
        self.total_views = 0
        self.daily_views = ZERO
        self.daily_platform_budget = ZERO
        self.total_retail = ZERO

    def _split_derived(self, first: Flight, second: Flight, rate_config: RateConfig) -> None:
        first.total_views = round_to_integer(Decimal(self.total_views) / 2)
        second.total_views = self.total_views - first.total_views
        for half in (first, second):
            half.days_in_flight = half.days
            half.recompute_daily(rate_config)

    def _derived_dict(self) -> Dict[str, Any]:
        return {
            'totalViews': int(self.total_views),
            'views': int(self.total_views),
            'daysInFlight': int(self.days_in_flight),
            'dailyViews': float(self.daily_views),
            'dailyPlatformBudget': float(self.daily_platform_budget),
            'totalRetail': float(self.total_retail),
        }


@dataclass
class SemSocialFlight(Flight):
    """Budget-only flight."""

    template_type: ClassVar[str] = TEMPLATE_SEM_SOCIAL


FLIGHT_TYPES: Dict[str, Type[Flight]] = {
    TEMPLATE_PROGRAMMATIC: ProgrammaticFlight,
    TEMPLATE_YOUTUBE: YouTubeFlight,
    TEMPLATE_SEM_SOCIAL: SemSocialFlight,
}


def flight_class(template_type: str) -> Type[Flight]:
    """Flight variant for a template tag."""
    try:
        return FLIGHT_TYPES[template_type]
    except KeyError:
        raise InvalidTemplateType(f"No flight variant for template type {template_type!r}") from None


def create_flight(template_type: str, **fields) -> Flight:
    """Build a flight of the variant matching template_type."""
    return flight_class(template_type)(**fields)


def copy_flights(flights: List[Flight]) -> List[Flight]:
    """Structurally independent copy of a flight list."""
    return copy.deepcopy(flights)


# ============================================================================
# CAMPAIGN
# ============================================================================

@dataclass
class Campaign:
    """
    A named collection of flights sharing a template type and rate.

    Attributes:
        id: Opaque unique identifier
        name: Display name
        template_type: "programmatic", "youtube" or "sem-social"
        flights: Ordered flights; order is the line/display order
        rate_config: Rate and metric basis
        date_range: Campaign date range (derived from flights when omitted)
        form: Setup form the campaign was generated from
        original_flights: Snapshot taken at generation, used by reset only
    """
    id: str
    name: str
    template_type: str
    flights: List[Flight]
    rate_config: RateConfig = field(default_factory=RateConfig)
    date_range: Optional[DateRange] = None
    form: CampaignForm = field(default_factory=CampaignForm)
    original_flights: Optional[List[Flight]] = None

    def __post_init__(self):
        check_template_type(self.template_type)
        if not self.flights:
            raise ValueError(f"Campaign {self.name!r} must have at least one flight")
        expected = flight_class(self.template_type)
        for flight in self.flights:
            if not isinstance(flight, expected):
                raise InvalidTemplateType(
                    f"Flight {flight.id} is {type(flight).__name__}, "
                    f"campaign template {self.template_type!r} needs {expected.__name__}"
                )
        if self.date_range is None:
            self.date_range = DateRange(
                min(f.start_date for f in self.flights),
                max(f.end_date for f in self.flights),
            )

    @property
    def requested_budget(self) -> Decimal:
        """Total budget originally requested on the setup form."""
        return to_decimal(self.form.total_budget)

    def index_of(self, flight_id: str) -> Optional[int]:
        for index, flight in enumerate(self.flights):
            if flight.id == flight_id:
                return index
        return None

    def get_flight(self, flight_id: str) -> Optional[Flight]:
        index = self.index_of(flight_id)
        return None if index is None else self.flights[index]

    def group_members(self, parent_id: str) -> List[Flight]:
        """Flights of one split group, in display order."""
        return [f for f in self.flights if f.in_group and f.parent_id == parent_id]

    def to_dict(self) -> Dict[str, Any]:
        """Export shape for the workbook layer."""
        return {
            'id': self.id,
            'name': self.name,
            'templateType': self.template_type,
            'rate': float(self.rate_config.rate),
            'metricType': self.rate_config.metric_type,
            'startDate': format_date(self.date_range.start_date),
            'endDate': format_date(self.date_range.end_date),
            'formData': self.form.to_dict(),
            'flights': [f.to_dict() for f in self.flights],
        }
