"""
exports.py - Read-only diagnostics and export views

Pure functions over a TreasuryView; none of them mutate state.

Functions:
- snapshot(): Global figures (price, volume, holders, buckets)
- account_summary(): Per-account shares and claimable amount
- holder_page(): Paginated holder listing
- curve_profile(): Sampled bonding curve for charting
- is_monotone(): Non-decreasing check over a price series
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .core import TreasuryView, StepsCapExceeded
from .pricing import CurveParams


@dataclass(frozen=True, slots=True)
class TreasurySnapshot:
    """
    Point-in-time view of global treasury state.

    current_price is None when the curve ceiling has been passed.
    """
    phase: str
    balance: int
    current_price: Optional[int]
    last_price: int
    total_volume: int
    total_shares: int
    holder_count: int
    investment_reserve_wei: int
    claim_obligation_wei: int
    unallocated_fees: int
    queued_fees: int
    unaccounted: int
    solvent: bool


@dataclass(frozen=True, slots=True)
class AccountSummary:
    account: str
    shares: int
    claimable: int
    lifetime_volume_in: int
    imported: bool
    blocked: bool


@dataclass(frozen=True, slots=True)
class HolderPage:
    """
    One page of the holder registry.

    Attributes:
        holders: Holder ids on this page, in registration order
        offset: Index of the first holder on the page
        total: Total number of holders
        next_offset: Offset of the following page (None on the last page)
    """
    holders: Tuple[str, ...]
    offset: int
    total: int
    next_offset: Optional[int]


def snapshot(view: TreasuryView) -> TreasurySnapshot:
    """Capture global treasury figures."""
    try:
        price = view.current_price()
    except StepsCapExceeded:
        price = None
    return TreasurySnapshot(
        phase=view.phase.value,
        balance=view.balance,
        current_price=price,
        last_price=view.last_price,
        total_volume=view.total_volume,
        total_shares=view.total_shares,
        holder_count=view.holder_count(),
        investment_reserve_wei=view.investment_reserve_wei,
        claim_obligation_wei=view.claim_obligation_wei,
        unallocated_fees=view.unallocated_fees,
        queued_fees=view.queued_fees,
        unaccounted=view.unaccounted(),
        solvent=view.is_solvent(),
    )


def account_summary(view: TreasuryView, account: str) -> AccountSummary:
    """Shares and claimable amount for one account."""
    rec = view.get_account(account)
    return AccountSummary(
        account=account,
        shares=rec.shares,
        claimable=view.pending_of(account),
        lifetime_volume_in=rec.lifetime_volume_in,
        imported=rec.imported,
        blocked=rec.blocked,
    )


def holder_page(view: TreasuryView, offset: int = 0, limit: int = 100) -> HolderPage:
    """
    Return one page of holders.

    Raises:
        ValueError: If offset is negative or limit is not positive
    """
    if limit <= 0:
        raise ValueError(f"limit must be positive, got {limit}")
    total = view.holder_count()
    page = view.holders(offset, limit)
    end = offset + len(page)
    return HolderPage(
        holders=tuple(page),
        offset=offset,
        total=total,
        next_offset=end if end < total else None,
    )


def total_claimable(view: TreasuryView, accounts: Optional[List[str]] = None) -> int:
    """
    Sum of claimable amounts across accounts (all holders by default).

    Never exceeds claim_obligation_wei.
    """
    if accounts is None:
        accounts = view.holders()
    return sum(view.pending_of(a) for a in accounts)


def curve_profile(params: CurveParams, points: int = 101) -> Tuple[np.ndarray, np.ndarray]:
    """
    Sample the bonding curve across [0, max_curve_steps].

    Prices are float64 and meant for charting; use pricing.price_at for exact
    integer prices.

    Args:
        params: Curve parameters
        points: Number of samples (>= 2)

    Returns:
        (steps, prices) arrays of equal length

    Example:
        steps, prices = curve_profile(params, points=50)
        assert is_monotone(prices)
    """
    if points < 2:
        raise ValueError(f"points must be at least 2, got {points}")
    steps = np.unique(np.linspace(0, params.max_curve_steps, points).round().astype(np.int64))
    s = steps.astype(np.float64)
    if not params.breakpoints_configured:
        return steps, np.full(s.shape, float(params.base_price))
    k1, k2 = float(params.k1), float(params.k2)
    delta = (
        np.minimum(s, k1) * params.m1
        + np.clip(s - k1, 0.0, k2 - k1) * params.m2
        + np.maximum(s - k2, 0.0) * params.m3
    )
    return steps, float(params.base_price) + delta


def is_monotone(prices) -> bool:
    """True if the price series never decreases."""
    arr = np.asarray(prices, dtype=np.float64)
    if arr.size < 2:
        return True
    return bool(np.all(np.diff(arr) >= 0))
