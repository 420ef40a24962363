#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Plan a Campaign Step by Step

A walk through one planning session with the flight ledger. Each step builds
on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Setup          - The setup form, auto-calculation, generating flights
  4-6:  Editing        - Budget edits, locks, splitting a flight
  7-8:  Rebalancing    - Zeroing out and redistributing released budget
  9-10: Safety Nets    - Undo/redo and reset to the generated plan

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import logging
import sys

from flightledger import (
    FlightLedger, CampaignForm, Campaign,
    form_for_tactic, find_tactic, sync_budget,
    LOCK_IMPRESSIONS, REDISTRIBUTE_WEIGHTED,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    tactic: str = "Blended Tactics - Standard"
    start_date: str = "2025-01-01"
    end_date: str = "2025-06-30"
    total_budget: str = "60000"
    edited_budget: str = "12500"


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def print_flights(ledger: FlightLedger, campaign_id: str):
    """Print the flight grid and its footer."""
    print(f"{'Line':>4}  {'Start':<10}  {'End':<10}  {'Budget':>12}  {'Impressions':>12}  Lock")
    for flight in ledger.get_flights(campaign_id):
        print(f"{str(flight.line):>4}  {flight.start_date.isoformat():<10}  "
              f"{flight.end_date.isoformat():<10}  {flight.budget:>12.2f}  "
              f"{flight.impressions:>12}  {flight.locked or ''}")
    totals = ledger.totals(campaign_id)
    status = ledger.budget_status(campaign_id)
    print(f"{'':>4}  {'':<10}  {'Total':<10}  {totals['budget']:>12.2f}  "
          f"{totals['impressions']:>12}  {status.label}")


# ============================================================================
# PHASE 1: SETUP (Steps 1-3)
# ============================================================================

def step_01_setup_form() -> CampaignForm:
    """Seed a setup form from the rate card."""
    step_header(1, "The Setup Form",
        "A campaign starts as a form: tactic, dates, budget, rate.")

    tactic = find_tactic(CONFIG.tactic)
    print(f">>> tactic = find_tactic({CONFIG.tactic!r})")
    print(f"Category: {tactic.category}   Rate: {tactic.rate}   KPI: {tactic.kpi}")

    form = form_for_tactic(tactic, start_date=CONFIG.start_date, end_date=CONFIG.end_date)
    section_header("Form seeded from the tactic")
    print(f"Rate:        {form.rate}")
    print(f"Metric type: {form.metric_type}")
    return form


def step_02_auto_calculation(form: CampaignForm) -> CampaignForm:
    """Let the form derive impressions from budget."""
    step_header(2, "Auto-Calculation",
        "Typing a budget fills in impressions at the tactic's rate.")

    print(f">>> form = sync_budget(form, {CONFIG.total_budget!r})")
    form = sync_budget(form, CONFIG.total_budget)
    print(f"Total budget:      {form.total_budget}")
    print(f"Total impressions: {form.total_impressions}")

    section_header("Key Insight")
    print("""
    CPM rates price a thousand impressions, so impressions = budget * 1000 / rate.
    Every sync_* call returns a NEW form; the old one is untouched.
    """)
    return form


def step_03_generate(ledger: FlightLedger, form: CampaignForm) -> Campaign:
    """Generate one flight per calendar month."""
    step_header(3, "Generating Flights",
        "The budget is spread evenly across the months of the range.")

    print(">>> campaign = ledger.generate_campaign(form).unwrap()")
    campaign = ledger.generate_campaign(form).unwrap()
    print(f"Campaign {campaign.name!r} ({campaign.template_type}), "
          f"{len(campaign.flights)} flights\n")
    print_flights(ledger, campaign.id)
    return campaign


# ============================================================================
# PHASE 2: EDITING (Steps 4-6)
# ============================================================================

def step_04_edit_budget(ledger: FlightLedger, campaign: Campaign):
    """Edit one flight's budget."""
    step_header(4, "Editing a Budget",
        "Impressions and traffic follow the budget at the campaign rate.")

    first = campaign.flights[0]
    print(f">>> ledger.update_flight_value(campaign.id, {first.id!r}, 'budget', {CONFIG.edited_budget})")
    ledger.update_flight_value(campaign.id, first.id, "budget", CONFIG.edited_budget)
    print_flights(ledger, campaign.id)

    section_header("Key Insight")
    print("""
    The footer now reads "Over": the flights add up to more than the budget
    the campaign was planned with. Steps 7-8 bring it back into balance.
    """)


def step_05_locks(ledger: FlightLedger, campaign: Campaign):
    """Lock flights fully and partially."""
    step_header(5, "Locks",
        "A lock protects a flight (or one side of it) from later changes.")

    second, third = campaign.flights[1], campaign.flights[2]
    print(f">>> ledger.toggle_flight_lock(campaign.id, {second.id!r})")
    ledger.toggle_flight_lock(campaign.id, second.id)
    print(f">>> ledger.set_flight_lock(campaign.id, {third.id!r}, 'impressions')")
    ledger.set_flight_lock(campaign.id, third.id, LOCK_IMPRESSIONS)

    print(f"\n>>> ledger.update_flight_value(campaign.id, {second.id!r}, 'budget', 1)")
    ledger.update_flight_value(campaign.id, second.id, "budget", 1)
    print(f">>> ledger.update_flight_value(campaign.id, {third.id!r}, 'budget', 9000)\n")
    ledger.update_flight_value(campaign.id, third.id, "budget", 9000)
    print_flights(ledger, campaign.id)

    section_header("Key Insight")
    print("""
    The fully locked flight ignored the edit. The impressions-locked flight
    took the new budget but kept its impressions.
    """)


def step_06_split(ledger: FlightLedger, campaign: Campaign):
    """Split a flight at its date midpoint."""
    step_header(6, "Splitting a Flight",
        "A split halves dates and budget; the halves form a group.")

    last = campaign.flights[-1]
    print(f">>> ledger.split_flight(campaign.id, {last.id!r})")
    ledger.split_flight(campaign.id, last.id)
    print_flights(ledger, campaign.id)

    section_header("Key Insight")
    print("""
    The first half is the group parent and keeps the line number; the second
    half shows "-". The halves add up to the original budget to the cent.
    """)


# ============================================================================
# PHASE 3: REBALANCING (Steps 7-8)
# ============================================================================

def step_07_zero_out(ledger: FlightLedger, campaign: Campaign):
    """Zero out a flight and respread its budget."""
    step_header(7, "Zeroing Out",
        "Pull a flight's budget out and hand it to the other open flights.")

    fourth = campaign.flights[3]
    print(f">>> released = ledger.zero_out_flight(campaign.id, {fourth.id!r})")
    released = ledger.zero_out_flight(campaign.id, fourth.id)
    print(f"Released: {released}")
    print(f">>> ledger.redistribute_budget(campaign.id, released, 'weighted', "
          f"exclude_flight_id={fourth.id!r})\n")
    ledger.redistribute_budget(campaign.id, released, REDISTRIBUTE_WEIGHTED,
                               exclude_flight_id=fourth.id)
    print_flights(ledger, campaign.id)


def step_08_balance(ledger: FlightLedger, campaign: Campaign):
    """Redistribute the over/under amount."""
    step_header(8, "Balancing",
        "Move the difference between allocated and planned budget.")

    status = ledger.budget_status(campaign.id)
    print(f"Planned {status.original_budget}, allocated {status.total_budget}: {status.label}")
    if status.is_under:
        ledger.redistribute_budget(campaign.id, status.redistributable_amount)
    elif status.is_over:
        print("Over budget: trim a flight by the difference instead.")
        target = ledger.get_flights(campaign.id)[0]
        ledger.update_flight_value(campaign.id, target.id, "budget",
                                   target.budget - status.difference)
    print()
    print_flights(ledger, campaign.id)


# ============================================================================
# PHASE 4: SAFETY NETS (Steps 9-10)
# ============================================================================

def step_09_undo_redo(ledger: FlightLedger, campaign: Campaign):
    """Step backwards and forwards through history."""
    step_header(9, "Undo and Redo",
        "Every change is a snapshot; undo and redo move between them.")

    print(f"History length: {ledger.history_length}")
    print(">>> ledger.undo(); ledger.undo()")
    ledger.undo()
    ledger.undo()
    print_flights(ledger, campaign.id)
    print("\n>>> ledger.redo(); ledger.redo()")
    ledger.redo()
    ledger.redo()
    print_flights(ledger, campaign.id)


def step_10_reset(ledger: FlightLedger, campaign: Campaign):
    """Reset to the generated plan."""
    step_header(10, "Reset",
        "Throw away every edit and return to the generated flights.")

    print(">>> ledger.reset_campaign(campaign.id)")
    ledger.reset_campaign(campaign.id)
    print_flights(ledger, campaign.id)

    section_header("Key Insight")
    print("""
    Reset is itself recorded, so even a reset can be undone.
    """)


def main():
    logging.basicConfig(level=logging.WARNING)
    print("""
    FLIGHT LEDGER TUTORIAL
    ======================
    Plan a six-month programmatic campaign, then edit, lock, split and
    rebalance it.
    """)

    ledger = FlightLedger()
    form = step_01_setup_form()
    wait_for_enter()
    form = step_02_auto_calculation(form)
    wait_for_enter()
    campaign = step_03_generate(ledger, form)
    wait_for_enter()
    step_04_edit_budget(ledger, campaign)
    wait_for_enter()
    step_05_locks(ledger, campaign)
    wait_for_enter()
    step_06_split(ledger, campaign)
    wait_for_enter()
    step_07_zero_out(ledger, campaign)
    wait_for_enter()
    step_08_balance(ledger, campaign)
    wait_for_enter()
    step_09_undo_redo(ledger, campaign)
    wait_for_enter()
    step_10_reset(ledger, campaign)

    print("""
    SUMMARY

    SETUP
      - Tactics carry a rate and metric; the form derives the rest
      - Generation gives one flight per calendar month

    EDITING
      - Budget, impressions and views stay consistent with the rate
      - Locks protect a flight or one side of it

    REBALANCING
      - Zero out releases budget; redistribution spreads it
      - The footer reports Balanced, Over or Under

    Next steps:
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
