"""
tactics.py - Rate-card tactics and template-type resolution

A tactic is one rate-card row: category, product, sub-product, rate and KPI.
Tactics are referenced in the setup form by label ("Product - SubProduct").
The rate card is normally fetched from a remote service; DEFAULT_TACTICS is
the fallback used when that fetch is unavailable.

Template resolution:
    product "YouTube"                     -> youtube
    product "Spark"                       -> sem-social
    category "Google" or "Social"         -> sem-social
    anything else                         -> programmatic
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional

from .core import (
    TEMPLATE_PROGRAMMATIC, TEMPLATE_YOUTUBE, TEMPLATE_SEM_SOCIAL,
    CampaignForm,
)
from .calculations import to_decimal


@dataclass(frozen=True, slots=True)
class Tactic:
    """One rate-card row."""
    category: str
    product: str
    sub_product: str
    rate: Decimal
    kpi: str

    @property
    def label(self) -> str:
        return f"{self.product} - {self.sub_product}"


def parse_rate(value: Any) -> Decimal:
    """Parse a rate-card price such as "$24.00" or "1,250.50"."""
    if isinstance(value, str):
        value = value.replace("$", "").replace(",", "").strip()
    return to_decimal(value)


def tactic_from_record(record: Mapping[str, Any]) -> Tactic:
    """Build a Tactic from a raw rate-card record (camelCase keys)."""
    return Tactic(
        category=record.get('category', ''),
        product=record.get('product', ''),
        sub_product=record.get('subProduct', ''),
        rate=parse_rate(record.get('rate', '')),
        kpi=record.get('kpi', '') or 'CPM',
    )


def _card(category: str, product: str, sub_product: str, rate: str, kpi: str) -> Tactic:
    return Tactic(category, product, sub_product, parse_rate(rate), kpi)


DEFAULT_TACTICS: List[Tactic] = [
    _card("Email Marketing", "Email Marketing", "1:1 Marketing", "$24.00", "CPM"),
    _card("Email Marketing", "Email Marketing", "B2B (Business Targeting)", "$24.00", "CPM"),
    _card("Email Marketing", "Email Marketing", "B2C (Consumer Targeting)", "$30.00", "CPM"),
    _card("Programmatic", "Programmatic Audio", "AAT", "$25.00", "CPM"),
    _card("Programmatic", "Programmatic Audio", "RON", "$25.00", "CPM"),
    _card("Programmatic", "Addressable Solutions", "CTV", "$35.00", "CPM"),
    _card("Programmatic", "Addressable Solutions", "Local CTV", "$35.00", "CPM"),
    _card("Programmatic", "Blended Tactics", "Standard", "$15.00", "CPM"),
    _card("Programmatic", "STV", "Local", "$35.00", "CPM"),
    _card("Programmatic", "YouTube", "TrueView", "$0.05", "CPV"),
    _card("Programmatic", "YouTube", "Bumper", "$15.00", "CPM"),
    _card("Programmatic", "YouTube", "Shorts", "$12.00", "CPM"),
    _card("Social", "Meta", "Facebook", "$8.00", "CPM"),
    _card("Social", "Meta", "Instagram", "$10.00", "CPM"),
    _card("Social", "Snapchat", "Standard", "$12.00", "CPM"),
    _card("Social", "TikTok", "Standard", "$15.00", "CPM"),
    _card("Social", "Twitter", "Standard", "$8.00", "CPM"),
    _card("Social", "Pinterest", "Standard", "$10.00", "CPM"),
    _card("Social", "LinkedIn", "Standard", "$18.00", "CPM"),
    _card("Google", "SEM", "Search", "$2.50", "CPLC"),
    _card("Google", "SEM", "Display", "$8.00", "CPM"),
    _card("Google", "Spark", "Standard", "$12.00", "CPM"),
    _card("Local Display", "CPM Display", "Standard", "$8.00", "CPM"),
    _card("Local Display", "Takeovers", "Homepage", "$25.00", "CPM"),
    _card("Local Display", "Sponsorship", "Standard", "$15.00", "CPM"),
]


def find_tactic(label: str, tactics: Iterable[Tactic] = DEFAULT_TACTICS) -> Optional[Tactic]:
    """Look up a tactic by its "Product - SubProduct" label."""
    if not label:
        return None
    for tactic in tactics:
        if tactic.label == label:
            return tactic
    return None


def template_type_of(tactic: Tactic) -> str:
    if tactic.product == "YouTube":
        return TEMPLATE_YOUTUBE
    if tactic.product == "Spark":
        return TEMPLATE_SEM_SOCIAL
    if tactic.category in ("Google", "Social"):
        return TEMPLATE_SEM_SOCIAL
    return TEMPLATE_PROGRAMMATIC


def template_type_for_tactic(label: str, tactics: Iterable[Tactic] = DEFAULT_TACTICS) -> Optional[str]:
    """Template type for a tactic label, or None when the label is unknown."""
    tactic = find_tactic(label, tactics)
    if tactic is None:
        return None
    return template_type_of(tactic)


def form_for_tactic(tactic: Tactic, **fields) -> CampaignForm:
    """
    Seed a setup form from a tactic: label, rate and metric type.

    Extra keyword arguments set the remaining form fields.

    Example:
        form = form_for_tactic(find_tactic("Meta - Facebook"),
                               start_date="2025-01-01", end_date="2025-03-31",
                               total_budget="3000", total_impressions="375000")
    """
    return CampaignForm(
        tactic=tactic.label,
        rate=str(tactic.rate),
        metric_type=tactic.kpi,
        **fields,
    )
