#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Treasury Step by Step

This is a pedagogical walkthrough of the bonding-curve treasury. Each step
builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Genesis      - The empty treasury, importing holders, going live
  4-6:  Funding      - The bonding curve, reserve/liability routing, lazy accrual
  7-9:  Value Flows  - Claims, external revenue, buffered fees
  10-11: Safety      - Investment bounds, atomic rejection
  12:   Exports      - Snapshot and sampled curve

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass, fields
import sys

from treasury import (
    Treasury, CurveParams, RoleAuthorizer, PREC,
    TreasuryError,
    snapshot, total_claimable, curve_profile, is_monotone,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    owner: str = "owner"

    # Curve
    base_price: int = 10 ** 15
    step_wei: int = 10 ** 17
    k1: int = 1000
    k2: int = 10000
    m1: int = 2 * 10 ** 14
    m2: int = 10 ** 14
    m3: int = 2 * 10 ** 13

    # Genesis
    alice_shares: int = PREC
    alice_pending: int = 5 * 10 ** 13

    # Flows
    bob_funding: int = 10 ** 14
    carol_funding: int = 10 ** 17
    partner_revenue: int = 10 ** 13
    tip: int = 10 ** 12


CONFIG = DemoConfig()

# Global state for interactive mode
QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def show_buckets(treasury: Treasury):
    print(f"Balance:            {treasury.balance:>24,}")
    print(f"Investment reserve: {treasury.investment_reserve_wei:>24,}")
    print(f"Claim obligation:   {treasury.claim_obligation_wei:>24,}")
    print(f"Unallocated fees:   {treasury.unallocated_fees:>24,}")
    print(f"Queued fees:        {treasury.queued_fees:>24,}")
    print(f"Solvent:            {treasury.is_solvent()}")


# ============================================================================
# PHASE 1: GENESIS (Steps 1-3)
# ============================================================================

def step_01_empty_treasury() -> Treasury:
    step_header(1, "The Empty Treasury",
        "A treasury starts UNINITIALIZED, with a curve and an authority.")

    print("""
    The treasury sells shares along a bonding curve. Every inflow is split:

    1. RESERVE    - an asset the authority may invest, never claimable
    2. LIABILITY  - owed to existing shareholders, claimable at any time

    and at every moment:  balance >= obligation + reserve
    """)

    wait_for_enter()

    params = CurveParams(
        base_price=CONFIG.base_price, step_wei=CONFIG.step_wei,
        k1=CONFIG.k1, k2=CONFIG.k2, m1=CONFIG.m1, m2=CONFIG.m2, m3=CONFIG.m3,
    )
    treasury = Treasury(params, RoleAuthorizer(CONFIG.owner), name="tutorial", verbose=True)

    section_header("Initial State")
    print(f"Phase:         {treasury.phase.value}")
    print(f"Current price: {treasury.current_price():,}")
    show_buckets(treasury)
    return treasury


def step_02_genesis_import(treasury: Treasury):
    step_header(2, "Genesis Import",
        "Seed holders and their owed balances before public funding opens.")

    print(">>> treasury.open_imports('owner')")
    treasury.open_imports(CONFIG.owner)
    print(">>> treasury.import_users('owner', ['alice'], [1 share], [pending], value=pending)")
    treasury.import_users(
        CONFIG.owner, ["alice"], [CONFIG.alice_shares], [CONFIG.alice_pending],
        value=CONFIG.alice_pending,
    )

    section_header("Key Insight")
    print("""
    Imports bypass pricing. Pending liability arrives with the value that
    backs it, so the treasury is solvent from the first batch.
    """)
    show_buckets(treasury)


def step_03_go_live(treasury: Treasury):
    step_header(3, "Going Live",
        "Phases only move forward: imports open -> finalized -> live.")

    print(">>> treasury.fund('bob', ...)   # before going live")
    try:
        treasury.fund("bob", CONFIG.bob_funding)
    except TreasuryError as e:
        print(f"Rejected as expected: {type(e).__name__}")

    treasury.finalize_imports(CONFIG.owner)
    treasury.go_live(CONFIG.owner)
    print(f"\nPhase: {treasury.phase.value}")


# ============================================================================
# PHASE 2: FUNDING (Steps 4-6)
# ============================================================================

def step_04_first_funding(treasury: Treasury):
    step_header(4, "Funding on the Curve",
        "Value buys shares at the current price; the inflow is routed.")

    print(f">>> treasury.fund('bob', {CONFIG.bob_funding:,})")
    receipt = treasury.fund("bob", CONFIG.bob_funding)

    section_header("Receipt")
    print(f"Shares:       {receipt.shares:,}")
    print(f"Price:        {receipt.price:,}")
    print(f"To reserve:   {receipt.to_reserve:,}")
    print(f"To liability: {receipt.to_liability:,}")
    show_buckets(treasury)


def step_05_lazy_accrual(treasury: Treasury):
    step_header(5, "Lazy Accrual",
        "Distributions are O(1): holders settle against an accumulator.")

    print(f"alice pending: {treasury.pending_of('alice'):,}  (imported + share of bob's inflow)")
    print(f"bob pending:   {treasury.pending_of('bob'):,}  (new shares never claim past inflows)")

    section_header("Key Insight")
    print("""
    No loop over holders ever runs. Each inflow bumps a per-share counter;
    each account's reward_debt remembers where it last settled.
    """)


def step_06_price_moves(treasury: Treasury):
    step_header(6, "The Price Moves",
        "Every step_wei of volume adds the segment slope to the price.")

    before = treasury.current_price()
    print(f">>> treasury.fund('carol', {CONFIG.carol_funding:,})")
    treasury.fund("carol", CONFIG.carol_funding)
    print(f"\nPrice before: {before:,}")
    print(f"Price after:  {treasury.current_price():,}")


# ============================================================================
# PHASE 3: VALUE FLOWS (Steps 7-9)
# ============================================================================

def step_07_claim(treasury: Treasury):
    step_header(7, "Claiming",
        "Claims pay settled liability and reduce the obligation.")

    print(">>> treasury.claim('alice')")
    paid = treasury.claim("alice")
    print(f"\nPaid: {paid:,}")
    show_buckets(treasury)


def step_08_external_revenue(treasury: Treasury):
    step_header(8, "External Revenue",
        "Revenue is split like funding; its liability share is owed at once.")

    treasury.record_external_revenue(CONFIG.partner_revenue, source="partner")
    show_buckets(treasury)
    print(f"\nbob pending (includes queued share): {treasury.pending_of('bob'):,}")


def step_09_buffered_fees(treasury: Treasury):
    step_header(9, "Buffered Fees",
        "Unsolicited value waits in a buffer until explicitly distributed.")

    treasury.receive(CONFIG.tip, sender="anonymous")
    show_buckets(treasury)
    print("\n>>> treasury.distribute_fees('owner')")
    treasury.distribute_fees(CONFIG.owner)
    show_buckets(treasury)


# ============================================================================
# PHASE 4: SAFETY (Steps 10-11)
# ============================================================================

def step_10_invest(treasury: Treasury):
    step_header(10, "Investing the Reserve",
        "Only the reserve is investable; the obligation is untouchable.")

    reserve = treasury.investment_reserve_wei
    print(f">>> treasury.invest('owner', 'venture', {reserve + 1:,})   # one over")
    try:
        treasury.invest(CONFIG.owner, "venture", reserve + 1)
    except TreasuryError as e:
        print(f"Rejected as expected: {type(e).__name__}")

    print(f"\n>>> treasury.invest('owner', 'venture', {reserve:,})")
    treasury.invest(CONFIG.owner, "venture", reserve)
    show_buckets(treasury)


def step_11_atomicity(treasury: Treasury):
    step_header(11, "Atomic Rejection",
        "A rejected operation leaves no trace: no state, no event.")

    events = len(treasury.event_log)
    print(">>> treasury.fund('dave', 0)")
    try:
        treasury.fund("dave", 0)
    except TreasuryError as e:
        print(f"Rejected as expected: {type(e).__name__}")
    print(f"\nEvents before: {events}, after: {len(treasury.event_log)}")


# ============================================================================
# PHASE 5: EXPORTS (Step 12)
# ============================================================================

def step_12_exports(treasury: Treasury):
    step_header(12, "Exports",
        "Read-only views for dashboards and audits.")

    snap = snapshot(treasury)
    section_header("Snapshot")
    for f in fields(snap):
        print(f"{f.name:<24} {getattr(snap, f.name)}")

    print(f"\nTotal claimable: {total_claimable(treasury):,}")

    steps, prices = curve_profile(treasury.curve.params, points=11)
    section_header("Sampled Curve")
    for s, p in zip(steps, prices):
        print(f"step {int(s):>9,}  price {p:>28,.0f}")
    print(f"\nMonotone: {is_monotone(prices)}")


def main():
    print("=" * 70)
    print("       BONDING-CURVE TREASURY TUTORIAL")
    print("=" * 70)

    treasury = step_01_empty_treasury()
    wait_for_enter()
    step_02_genesis_import(treasury)
    wait_for_enter()
    step_03_go_live(treasury)
    wait_for_enter()

    step_04_first_funding(treasury)
    wait_for_enter()
    step_05_lazy_accrual(treasury)
    wait_for_enter()
    step_06_price_moves(treasury)
    wait_for_enter()

    step_07_claim(treasury)
    wait_for_enter()
    step_08_external_revenue(treasury)
    wait_for_enter()
    step_09_buffered_fees(treasury)
    wait_for_enter()

    step_10_invest(treasury)
    wait_for_enter()
    step_11_atomicity(treasury)
    wait_for_enter()

    step_12_exports(treasury)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    Next steps:
      - See treasury/*.py for the component implementations
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
