"""
funding.py - Funding pipeline

Applies one funding inflow across the pricing curve, share ledger and router:

1. Quote shares at the current price (step ceiling and share bounds checked)
2. Settle the beneficiary (folds queued fees first)
3. Route the value: reserve portion, liability portion (or all to the reserve
   when no shares exist yet)
4. Distribute the liability portion across existing shares
5. Mint the new shares (reward_debt reset at current accumulators)
6. Advance total volume, contribution tracking and last price
7. Re-validate solvency against the post-inflow balance

Gating (liveness, compliance, caps, authorization) belongs to the caller.
The pipeline mutates the components it is given; the caller is responsible
for rolling them back if it raises.
"""

from __future__ import annotations

from .core import FundingReceipt, ZeroValue, require_account, require_amount
from .pricing import BondingCurve
from .router import TreasuryRouter
from .share_ledger import ShareLedger


def apply_funding(
    curve: BondingCurve,
    ledger: ShareLedger,
    router: TreasuryRouter,
    account: str,
    value: int,
    reserve_bps: int,
    balance: int,
) -> FundingReceipt:
    """
    Apply a funding inflow.

    Args:
        curve: Pricing curve (quotes price, records last price)
        ledger: Share ledger to settle, distribute and mint on
        router: Bucket router
        account: Beneficiary of the shares
        value: Value funded
        reserve_bps: Reserve share of the inflow in basis points
        balance: Treasury balance including this inflow

    Returns:
        FundingReceipt

    Raises:
        ZeroValue, StepsCapExceeded, ZeroShares, PurchaseCapExceeded,
        InvalidSplit, SolvencyViolation

    Example:
        # Fresh system: price = base_price, no holders -> all to reserve
        receipt = apply_funding(curve, ledger, router, "alice", 10**14, 2000, 10**14)
        # receipt.shares == 10**17, receipt.to_reserve == 10**14
    """
    require_account(account)
    require_amount(value, "value")
    if value == 0:
        raise ZeroValue("funding value must be positive")

    shares, price = curve.quote(value, ledger.total_volume)

    # Route before minting so new shares do not share in their own inflow
    ledger.settle(account)
    route = router.route_inflow(value, reserve_bps, ledger.total_shares > 0)
    if route.to_liability:
        ledger.distribute_sales(route.to_liability)
    ledger.mint(account, shares)
    ledger.add_volume(value)
    ledger.record_contribution(account, value)
    curve.record_price(price)

    router.check_solvency(balance)
    return FundingReceipt(
        account=account,
        shares=shares,
        price=price,
        to_reserve=route.to_reserve,
        to_liability=route.to_liability,
    )
