"""
calculations.py - Rounding and budget/rate derivation functions

Pure, total functions converting between budget, rate and impression/view
counts with a fixed rounding policy:

    round_to_cents(x)                    -> Decimal, 2 places, half up
    round_to_integer(x)                  -> int, half up
    impressions_from_budget(budget, r)   -> floor(budget / r * 1000)
    budget_from_impressions(impr, r)     -> round_to_cents(impr * r / 1000)
    active_days(start, end)              -> inclusive day count

Malformed input (None, "", "abc", NaN, infinities) degrades to zero instead of
raising. Form fields are routinely blank or half-typed while a user edits, so
callers must not rely on error signaling from this layer.

Footer totals and the requested-vs-allocated budget report live here as well.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_FLOOR, ROUND_HALF_UP, ROUND_DOWN
from typing import Any, Dict, Iterable, List, Sequence
import math
import re

from .core import (
    CENT, ZERO, BUDGET_TOLERANCE, TRAFFIC_MULTIPLIER, IMPRESSIONS_PER_RATE_UNIT,
    TEMPLATE_PROGRAMMATIC, TEMPLATE_YOUTUBE,
)
from .dates import parse_date


# Leading numeric prefix, the way form input is read ("12.", "12abc" -> 12).
_NUMBER_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def to_decimal(value: Any) -> Decimal:
    """
    Convert any numeric-ish value to a finite Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1"), not its binary
    expansion. Anything unparseable, NaN or infinite returns Decimal("0").
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        return Decimal(value)
    elif isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return ZERO
        result = Decimal(str(value))
    elif isinstance(value, str):
        match = _NUMBER_PREFIX.match(value)
        if not match:
            return ZERO
        try:
            result = Decimal(match.group(1))
        except InvalidOperation:
            return ZERO
    else:
        return ZERO
    if not result.is_finite():
        return ZERO
    return result


def _quantize(amount: Decimal, exponent: Decimal) -> Decimal:
    """Half-up quantize; a result wider than the context precision degrades to 0."""
    try:
        return amount.quantize(exponent, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return ZERO


def round_to_cents(value: Any) -> Decimal:
    """Round to 2 decimal places (half up). Invalid, falsy or oversized input -> 0."""
    amount = to_decimal(value)
    if not amount:
        return ZERO
    return _quantize(amount, CENT)


def round_to_places(value: Any, places: int) -> Decimal:
    """Round to an arbitrary number of decimal places (half up)."""
    amount = to_decimal(value)
    if not amount:
        return ZERO
    return _quantize(amount, Decimal(10) ** -places)


def round_to_integer(value: Any) -> int:
    """Round to the nearest whole number (half up). Invalid or oversized input -> 0."""
    amount = to_decimal(value)
    if not amount:
        return 0
    return int(_quantize(amount, Decimal(1)))


def impressions_from_budget(budget: Any, rate: Any) -> int:
    """floor(budget / rate * 1000); 0 when rate <= 0."""
    rate = to_decimal(rate)
    if rate <= 0:
        return 0
    raw = to_decimal(budget) / rate * IMPRESSIONS_PER_RATE_UNIT
    return int(raw.to_integral_value(rounding=ROUND_FLOOR))


def budget_from_impressions(impressions: Any, rate: Any) -> Decimal:
    """round_to_cents(impressions * rate / 1000); 0 when rate <= 0."""
    rate = to_decimal(rate)
    if rate <= 0:
        return ZERO
    return round_to_cents(to_decimal(impressions) * rate / IMPRESSIONS_PER_RATE_UNIT)


def traffic_budget(budget: Any) -> Decimal:
    """Programmatic traffic budget: budget plus the 1% serving buffer, in cents."""
    return round_to_cents(to_decimal(budget) * TRAFFIC_MULTIPLIER)


def active_days(start_date: Any, end_date: Any) -> int:
    """
    Inclusive number of days in [start_date, end_date].

    Accepts date objects or YYYY-MM-DD strings. Unparseable input -> 0.
    """
    start = parse_date(start_date)
    end = parse_date(end_date)
    if start is None or end is None:
        return 0
    return (end - start).days + 1


# ============================================================================
# EDIT-BUFFER PARSERS
# ============================================================================

def parse_to_cents(value: Any) -> Decimal:
    """Parse a committed cell edit as a currency amount."""
    return round_to_cents(value)


def parse_to_integer(value: Any) -> int:
    """Parse a committed cell edit as a count, truncating any fraction."""
    return int(to_decimal(value).to_integral_value(rounding=ROUND_DOWN))


def parse_to_positive(value: Any) -> Decimal:
    """Parse a committed cell edit, clamping negatives to zero."""
    amount = to_decimal(value)
    return amount if amount > 0 else ZERO


# ============================================================================
# TOTALS AND BUDGET STATUS
# ============================================================================

def calculate_totals(flights: Iterable[Any], template_type: str) -> Dict[str, Any]:
    """
    Footer totals for a flight table.

    Every template totals budget. Programmatic adds impressions and traffic
    columns; YouTube adds views and retail.
    """
    flights = list(flights)

    def total(attr: str) -> Decimal:
        return sum((to_decimal(getattr(f, attr, 0)) for f in flights), ZERO)

    totals: Dict[str, Any] = {'budget': round_to_cents(total('budget'))}
    if template_type == TEMPLATE_PROGRAMMATIC:
        totals['impressions'] = round_to_integer(total('impressions'))
        totals['trafficBudget'] = round_to_cents(total('traffic_budget'))
        totals['trafficImpressions'] = round_to_integer(total('traffic_impressions'))
    elif template_type == TEMPLATE_YOUTUBE:
        totals['totalViews'] = round_to_integer(total('total_views'))
        totals['totalRetail'] = round_to_cents(total('total_retail'))
    return totals


@dataclass(frozen=True, slots=True)
class BudgetStatus:
    """
    Drift between the requested total budget and the sum of flight budgets.

    Attributes:
        is_valid: True when the drift is under one cent
        difference: allocated - requested, in cents (positive = over)
        total_budget: current sum of flight budgets, in cents
        original_budget: requested total budget, in cents
    """
    is_valid: bool
    difference: Decimal
    total_budget: Decimal
    original_budget: Decimal

    @property
    def is_over(self) -> bool:
        return not self.is_valid and self.difference > 0

    @property
    def is_under(self) -> bool:
        return not self.is_valid and self.difference < 0

    @property
    def label(self) -> str:
        if self.is_valid:
            return "Balanced"
        return "Over" if self.is_over else "Under"

    @property
    def redistributable_amount(self) -> Decimal:
        """Amount that can be spread back over flights when under budget."""
        return abs(self.difference) if self.is_under else ZERO


def calculate_budget_status(campaign: Any) -> BudgetStatus:
    """
    Report (never correct) drift between requested and allocated budget.

    `campaign` needs `flights` and `requested_budget`; None or a campaign
    without flights reports invalid with zero amounts.
    """
    if campaign is None or not getattr(campaign, 'flights', None):
        return BudgetStatus(False, ZERO, ZERO, ZERO)

    allocated = sum((to_decimal(f.budget) for f in campaign.flights), ZERO)
    requested = to_decimal(campaign.requested_budget)
    difference = allocated - requested
    return BudgetStatus(
        is_valid=abs(difference) < BUDGET_TOLERANCE,
        difference=round_to_cents(difference),
        total_budget=round_to_cents(allocated),
        original_budget=round_to_cents(requested),
    )


# ============================================================================
# ALLOCATION
# ============================================================================

def split_evenly(amount: Any, count: int) -> List[Decimal]:
    """
    Divide an amount into `count` cent-exact shares.

    The amount is taken in whole cents; leftover cents go one each to the
    leading shares, so the shares always add back to round_to_cents(amount).

    Example:
        split_evenly("100.00", 3)   # [33.34, 33.33, 33.33]
    """
    if count < 1:
        return []
    total_cents = int((to_decimal(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))
    per_share, remainder = divmod(total_cents, count)
    return [
        (Decimal(per_share + (1 if index < remainder else 0)) * CENT)
        for index in range(count)
    ]


def split_by_weight(amount: Any, weights: Sequence[Any]) -> List[Decimal]:
    """
    Divide an amount in proportion to weights, each share rounded to cents.

    Shares are rounded independently and may drift from the amount by a few
    cents; calculate_budget_status() reports any such drift.
    """
    weights = [to_decimal(w) for w in weights]
    total = sum(weights, ZERO)
    if total <= 0:
        return [ZERO for _ in weights]
    amount = to_decimal(amount)
    return [round_to_cents(amount * weight / total) for weight in weights]
