"""
ledger.py - Stateful flight-planning engine

The FlightLedger owns the live campaign collection and is the only module
that mutates it. Every other module either computes (calculations, dates,
generator, orders) or holds data (core, flights, history).

Key responsibilities:
    - Campaign collection management (add, generate, rename, delete)
    - Flight operations: edit, split, lock, zero out, redistribute, reset
    - One history snapshot per state-changing operation, none for no-ops
    - Lock enforcement: edits, redistribution and zeroing never change a
      flight locked "all"
    - Lock-toggle debounce against double clicks

Operation results:
    Flight operations return a deep copy of the campaign's flight list after
    the operation. Operations that cannot apply (unknown flight, unknown
    field, locked flight, nothing to redistribute onto) return the unchanged
    list and record no history. An unknown campaign id raises CampaignNotFound.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union
import copy
import logging
import time

from .core import (
    # Constants
    CHILD_LINE, HISTORY_LIMIT, LOCK_TOGGLE_COOLDOWN, LOCK_ALL, LOCK_STATES,
    FIELD_BUDGET, FIELD_IMPRESSIONS, FIELD_TOTAL_VIEWS,
    REDISTRIBUTE_EVEN, REDISTRIBUTE_WEIGHTED, REDISTRIBUTE_CUSTOM, REDISTRIBUTION_METHODS,
    ZERO,
    # Types
    CampaignForm, GenerationResult, IdFactory, new_id,
    # Exceptions
    CampaignNotFound, FlightLedgerError,
)
from .calculations import (
    to_decimal, round_to_cents, calculate_totals, calculate_budget_status,
    BudgetStatus, split_evenly, split_by_weight,
)
from .flights import Campaign, Flight, copy_flights
from .generator import generate_flights
from .history import HistoryManager
from .tactics import Tactic, DEFAULT_TACTICS

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

# Accepted spellings of each editable field.
_FIELD_ALIASES = {
    FIELD_BUDGET: FIELD_BUDGET,
    FIELD_IMPRESSIONS: FIELD_IMPRESSIONS,
    FIELD_TOTAL_VIEWS: FIELD_TOTAL_VIEWS,
    "total_views": FIELD_TOTAL_VIEWS,
    "views": FIELD_TOTAL_VIEWS,
}


class FlightLedger:
    """
    Campaign collection plus the operations that edit its flights.

    History is a HistoryManager handed in by reference (or created here), so
    the caller can share or inspect it. Each committed operation pushes a deep
    copy of the whole collection; undo and redo swap that copy back in.

    Thread Safety:
        Not thread-safe. One ledger per editing session.

    Example:
        ledger = FlightLedger()
        result = ledger.generate_campaign(form, "programmatic")
        campaign = result.unwrap()
        first = campaign.flights[0]
        ledger.update_flight_value(campaign.id, first.id, "budget", 1500)
        ledger.undo()
    """

    def __init__(
        self,
        history: Optional[HistoryManager] = None,
        history_limit: int = HISTORY_LIMIT,
        lock_cooldown: float = LOCK_TOGGLE_COOLDOWN,
        clock: Clock = time.monotonic,
        id_factory: IdFactory = new_id,
    ):
        """
        Args:
            history: Shared history manager; a new one is created when None
            history_limit: Capacity of the history created here
            lock_cooldown: Seconds during which a repeated lock toggle on the
                           same flight is ignored
            clock: Monotonic time source for the lock debounce
            id_factory: Source of ids for generated campaigns and split flights
        """
        self.history = history if history is not None else HistoryManager(history_limit)
        self.lock_cooldown = lock_cooldown
        self._clock = clock
        self._id_factory = id_factory
        self._campaigns: List[Campaign] = []
        self._lock_cooldown_until: Dict[Tuple[str, str], float] = {}

    # ========================================================================
    # READ-ONLY ACCESSORS
    # ========================================================================

    @property
    def campaigns(self) -> List[Campaign]:
        """Deep copy of every campaign, in insertion order."""
        return copy.deepcopy(self._campaigns)

    def list_campaign_ids(self) -> List[str]:
        return [c.id for c in self._campaigns]

    def has_campaign(self, campaign_id: str) -> bool:
        return any(c.id == campaign_id for c in self._campaigns)

    def get_campaign(self, campaign_id: str) -> Campaign:
        """
        Deep copy of one campaign.

        Raises:
            CampaignNotFound: If no campaign has that id
        """
        return copy.deepcopy(self._campaign(campaign_id))

    def get_flights(self, campaign_id: str) -> List[Flight]:
        return copy_flights(self._campaign(campaign_id).flights)

    def totals(self, campaign_id: str) -> Dict[str, Any]:
        """Footer totals for one campaign (see calculate_totals)."""
        campaign = self._campaign(campaign_id)
        return calculate_totals(campaign.flights, campaign.template_type)

    def budget_status(self, campaign_id: str) -> BudgetStatus:
        """Requested vs allocated budget for one campaign."""
        return calculate_budget_status(self._campaign(campaign_id))

    def to_dict(self) -> List[Dict[str, Any]]:
        """Export shape of the whole collection."""
        return [c.to_dict() for c in self._campaigns]

    def _campaign(self, campaign_id: str) -> Campaign:
        for campaign in self._campaigns:
            if campaign.id == campaign_id:
                return campaign
        raise CampaignNotFound(f"Campaign {campaign_id} not found")

    # ========================================================================
    # HISTORY
    # ========================================================================

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    @property
    def has_history(self) -> bool:
        return self.history.has_history

    @property
    def history_length(self) -> int:
        return len(self.history)

    def undo(self) -> bool:
        """
        Restore the previous snapshot.

        Returns:
            True if the state changed, False at the oldest snapshot.
        """
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self._campaigns = snapshot
        logger.debug("Undo -> history position %d", self.history.index)
        return True

    def redo(self) -> bool:
        """
        Re-apply the next snapshot.

        Returns:
            True if the state changed, False at the newest snapshot.
        """
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self._campaigns = snapshot
        logger.debug("Redo -> history position %d", self.history.index)
        return True

    def _commit(self, action: str) -> None:
        """Record the live collection as the new current snapshot."""
        self.history.push(self._campaigns)
        logger.debug("%s (history %d/%d)", action, self.history.index + 1, len(self.history))

    def _unchanged(self, campaign: Campaign, action: str, reason: str) -> List[Flight]:
        logger.debug("%s skipped on campaign %s: %s", action, campaign.id, reason)
        return copy_flights(campaign.flights)

    # ========================================================================
    # CAMPAIGN COLLECTION (Mutating)
    # ========================================================================

    def add_campaign(self, campaign: Campaign) -> Campaign:
        """
        Add a campaign to the collection.

        The ledger stores its own copy; later changes to the argument do not
        reach the ledger.

        Returns:
            A copy of the stored campaign

        Raises:
            FlightLedgerError: If a campaign with the same id is already held
        """
        if self.has_campaign(campaign.id):
            raise FlightLedgerError(f"Campaign {campaign.id} already exists")
        stored = copy.deepcopy(campaign)
        self._campaigns.append(stored)
        self._commit(f"Added campaign {stored.id}")
        logger.info("Added %s campaign %r with %d flights",
                    stored.template_type, stored.name, len(stored.flights))
        return copy.deepcopy(stored)

    def add_campaigns(self, campaigns: Iterable[Campaign]) -> List[Campaign]:
        return [self.add_campaign(c) for c in campaigns]

    def generate_campaign(
        self,
        form: Union[CampaignForm, Mapping[str, Any]],
        template_type: Optional[str] = None,
        tactics: Iterable[Tactic] = DEFAULT_TACTICS,
    ) -> GenerationResult:
        """
        Generate a campaign from a setup form and add it when valid.

        Returns:
            The GenerationResult; a refused generation leaves the ledger untouched.
        """
        result = generate_flights(form, template_type, tactics, self._id_factory)
        if result.ok:
            return GenerationResult(campaign=self.add_campaign(result.campaign))
        return result

    def update_campaign_name(self, campaign_id: str, name: str) -> Campaign:
        campaign = self._campaign(campaign_id)
        if campaign.name != name:
            campaign.name = name
            self._commit(f"Renamed campaign {campaign_id}")
        return copy.deepcopy(campaign)

    def delete_campaign(self, campaign_id: str) -> None:
        """
        Remove a campaign. Recorded in history, so undo brings it back.

        Raises:
            CampaignNotFound: If no campaign has that id
        """
        campaign = self._campaign(campaign_id)
        self._campaigns.remove(campaign)
        self._lock_cooldown_until = {
            key: until for key, until in self._lock_cooldown_until.items()
            if key[0] != campaign_id
        }
        self._commit(f"Deleted campaign {campaign_id}")
        logger.info("Deleted campaign %r", campaign.name)

    # ========================================================================
    # FLIGHT OPERATIONS (Mutating)
    # ========================================================================

    def update_flight_value(
        self,
        campaign_id: str,
        flight_id: str,
        field_name: str,
        value: Any,
    ) -> List[Flight]:
        """
        Edit one field of one flight and re-derive its dependent fields.

        Fields:
            "budget"       rounded to cents; impressions and traffic follow
            "impressions"  rounded to a whole number; budget and traffic follow
            "totalViews"   (youtube) rounded; daily figures and retail follow

        A lock on the edited side rejects the edit. A lock on the other side
        keeps that side fixed while the edited side changes.
        """
        campaign = self._campaign(campaign_id)
        action = f"Edit {field_name} of flight {flight_id}"
        flight = campaign.get_flight(flight_id)
        if flight is None:
            return self._unchanged(campaign, action, "no such flight")
        if flight.fully_locked:
            return self._unchanged(campaign, action, "flight is locked")

        name = _FIELD_ALIASES.get(field_name)
        rate_config = campaign.rate_config
        if name == FIELD_BUDGET:
            if flight.budget_locked:
                return self._unchanged(campaign, action, "budget is locked")
            flight.apply_budget(value, rate_config)
        elif name == FIELD_IMPRESSIONS:
            if flight.impressions_locked:
                return self._unchanged(campaign, action, "impressions are locked")
            flight.apply_impressions(value, rate_config)
        elif name == FIELD_TOTAL_VIEWS:
            if not flight.apply_views(value, rate_config):
                return self._unchanged(campaign, action, "flight has no views")
        else:
            return self._unchanged(campaign, action, f"unknown field {field_name!r}")

        self._commit(action)
        return copy_flights(campaign.flights)

    def split_flight(self, campaign_id: str, flight_id: str) -> List[Flight]:
        """
        Split a flight in two at its date midpoint.

        The halves replace the original in place. Splitting a plain flight
        starts a group: the first half becomes the parent (keeping the id and
        line number), the second half a child shown with line "-". Splitting a
        parent keeps the first half as parent; splitting a child yields two
        children. The second half always gets a fresh id. Both halves keep
        the original lock. A single-day flight is left alone.
        """
        campaign = self._campaign(campaign_id)
        action = f"Split flight {flight_id}"
        index = campaign.index_of(flight_id)
        if index is None:
            return self._unchanged(campaign, action, "no such flight")
        flight = campaign.flights[index]

        halves = flight.split(campaign.rate_config)
        if halves is None:
            return self._unchanged(campaign, action, "single-day flight")
        first, second = halves

        if flight.in_group:
            parent_id = flight.parent_id
        else:
            parent_id = self._id_factory()
            first.is_parent = True
        first.parent_id = parent_id
        first.line = flight.line if first.is_parent else CHILD_LINE

        second.id = self._id_factory()
        second.line = CHILD_LINE
        second.is_parent = False
        second.is_child = True
        second.parent_id = parent_id

        campaign.flights[index:index + 1] = [first, second]
        self._commit(action)
        return copy_flights(campaign.flights)

    def toggle_flight_lock(self, campaign_id: str, flight_id: str) -> List[Flight]:
        """
        Toggle a flight between unlocked and locked "all".

        A flight under any partial lock becomes fully locked. Toggles of the
        same flight within `lock_cooldown` seconds of the last accepted one
        are ignored.
        """
        campaign = self._campaign(campaign_id)
        action = f"Toggle lock of flight {flight_id}"
        now = self._clock()
        self._lock_cooldown_until = {
            key: until for key, until in self._lock_cooldown_until.items() if until > now
        }
        flight = campaign.get_flight(flight_id)
        if flight is None:
            return self._unchanged(campaign, action, "no such flight")

        key = (campaign_id, flight_id)
        until = self._lock_cooldown_until.get(key)
        if until is not None and now < until:
            return self._unchanged(campaign, action, "debounced")
        self._lock_cooldown_until[key] = now + self.lock_cooldown

        flight.locked = None if flight.fully_locked else LOCK_ALL
        self._commit(action)
        return copy_flights(campaign.flights)

    def set_flight_lock(self, campaign_id: str, flight_id: str, lock: Optional[str]) -> List[Flight]:
        """Set a flight's lock state directly (None, "budget", "impressions" or "all")."""
        campaign = self._campaign(campaign_id)
        action = f"Set lock of flight {flight_id} to {lock}"
        flight = campaign.get_flight(flight_id)
        if flight is None:
            return self._unchanged(campaign, action, "no such flight")
        if lock not in LOCK_STATES:
            return self._unchanged(campaign, action, f"unknown lock state {lock!r}")
        if flight.locked == lock:
            return self._unchanged(campaign, action, "already in that state")
        flight.locked = lock
        self._commit(action)
        return copy_flights(campaign.flights)

    def zero_out_flight(self, campaign_id: str, flight_id: str) -> Decimal:
        """
        Zero a flight's budget and derived amounts and lock it.

        Returns:
            The released budget, for the caller to redistribute; 0 when the
            flight is missing or already locked "all".
        """
        campaign = self._campaign(campaign_id)
        action = f"Zero out flight {flight_id}"
        flight = campaign.get_flight(flight_id)
        if flight is None:
            self._unchanged(campaign, action, "no such flight")
            return ZERO
        if flight.fully_locked:
            self._unchanged(campaign, action, "flight is locked")
            return ZERO
        released = flight.zero_out()
        self._commit(action)
        logger.debug("Released %s from flight %s", released, flight_id)
        return released

    def redistribute_budget(
        self,
        campaign_id: str,
        amount: Any,
        method: str = REDISTRIBUTE_EVEN,
        target_flight_ids: Iterable[str] = (),
        exclude_flight_id: Optional[str] = None,
    ) -> List[Flight]:
        """
        Add an amount across eligible flights and re-derive their fields.

        Methods:
            "even"      every unlocked flight except exclude_flight_id gets an
                        equal share; leftover cents go to the leading flights,
                        so the shares add up to the amount exactly
            "weighted"  same flights, shares proportional to active days,
                        each rounded to cents (may drift by a few cents)
            "custom"    the target_flight_ids flights share evenly; targets
                        whose lock forbids budget changes are skipped

        A non-positive amount, an unknown method or an empty eligible set
        leaves the campaign unchanged.
        """
        campaign = self._campaign(campaign_id)
        action = f"Redistribute {amount} ({method})"
        amount = to_decimal(amount)
        if amount <= 0:
            return self._unchanged(campaign, action, "nothing to redistribute")
        if method not in REDISTRIBUTION_METHODS:
            return self._unchanged(campaign, action, f"unknown method {method!r}")

        if method == REDISTRIBUTE_CUSTOM:
            targets = set(target_flight_ids or ())
            eligible = [f for f in campaign.flights if f.id in targets and not f.budget_locked]
        else:
            eligible = [f for f in campaign.flights if f.id != exclude_flight_id and not f.locked]
        if not eligible:
            return self._unchanged(campaign, action, "no eligible flights")

        if method == REDISTRIBUTE_WEIGHTED:
            shares = split_by_weight(amount, [f.days for f in eligible])
        else:
            shares = split_evenly(amount, len(eligible))
        if not any(shares):
            return self._unchanged(campaign, action, "amount rounds to zero")

        for flight, share in zip(eligible, shares):
            flight.budget = round_to_cents(flight.budget + share)
            flight.recompute_from_budget(campaign.rate_config)

        self._commit(action)
        return copy_flights(campaign.flights)

    def reset_campaign(self, campaign_id: str) -> List[Flight]:
        """Restore the flights captured when the campaign was generated."""
        campaign = self._campaign(campaign_id)
        if not campaign.original_flights:
            return self._unchanged(campaign, "Reset", "no original flights")
        campaign.flights = copy_flights(campaign.original_flights)
        self._commit(f"Reset campaign {campaign_id}")
        logger.info("Reset campaign %r to %d generated flights", campaign.name, len(campaign.flights))
        return copy_flights(campaign.flights)

    def __repr__(self) -> str:
        return f"FlightLedger(campaigns={len(self._campaigns)}, history={self.history!r})"
