"""
router.py - Reserve/liability routing and the solvency invariant

The TreasuryRouter owns the value buckets:

    investment_reserve_wei   asset; deployable by the authority, never claimable
    claim_obligation_wei     liability; owed to accounts
    unallocated_fees         unsolicited inbound value awaiting distribution

and enforces the central invariant after every operation that can move or
reclassify value:

    balance >= claim_obligation_wei + investment_reserve_wei

The router never holds the balance itself. Callers pass the balance they
intend to commit, so checks can run against post-transfer figures before any
value leaves.
"""

from __future__ import annotations
from typing import Any, Dict

from .core import (
    BPS_DENOMINATOR, RouteResult,
    InvalidSplit, InsufficientReserve, InsufficientBalance,
    InsufficientObligation, SolvencyViolation,
    require_amount,
)


def validate_bps(bps: int) -> int:
    """Return bps if it is a valid split ratio (0..10000), else raise InvalidSplit."""
    if isinstance(bps, bool) or not isinstance(bps, int):
        raise InvalidSplit(f"basis points must be int, got {type(bps).__name__}")
    if bps < 0 or bps > BPS_DENOMINATOR:
        raise InvalidSplit(f"basis points must be within 0..{BPS_DENOMINATOR}, got {bps}")
    return bps


def split(value: int, bps: int) -> RouteResult:
    """Pure split of value into (reserve, liability) portions."""
    validate_bps(bps)
    to_reserve = value * bps // BPS_DENOMINATOR
    return RouteResult(to_reserve=to_reserve, to_liability=value - to_reserve)


class TreasuryRouter:
    """
    Value bucket accounting with solvency enforcement.

    Example:
        router = TreasuryRouter()
        result = router.route_inflow(10**14, 2000, has_holders=True)
        # result.to_reserve == 2 * 10**13, result.to_liability == 8 * 10**13
        router.check_solvency(balance=10**14)
    """

    def __init__(self):
        self.investment_reserve_wei: int = 0
        self.claim_obligation_wei: int = 0
        self.unallocated_fees: int = 0

    # ========================================================================
    # ROUTING
    # ========================================================================

    def route_inflow(self, value: int, bps: int, has_holders: bool) -> RouteResult:
        """
        Split an inflow and credit the buckets.

        The reserve portion always goes to investment_reserve_wei. The liability
        portion is credited to claim_obligation_wei only when shares exist;
        otherwise there is nobody to owe it to and it goes to the reserve.
        The caller distributes the returned to_liability to its accumulator.

        Args:
            value: Inflow amount
            bps: Reserve share in basis points
            has_holders: Whether total_shares > 0

        Returns:
            RouteResult as credited

        Raises:
            InvalidSplit: If bps > 10000
        """
        require_amount(value, "value")
        result = split(value, bps)
        if not has_holders:
            result = RouteResult(to_reserve=value, to_liability=0)
        self.investment_reserve_wei += result.to_reserve
        self.claim_obligation_wei += result.to_liability
        return result

    def credit_reserve(self, amount: int) -> None:
        require_amount(amount, "amount")
        self.investment_reserve_wei += amount

    def promote_to_liability(self, amount: int) -> None:
        """Record value as owed to accounts."""
        require_amount(amount, "amount")
        self.claim_obligation_wei += amount

    def buffer_fees(self, value: int) -> None:
        """Hold unsolicited inbound value without assigning it a destination."""
        require_amount(value, "value")
        self.unallocated_fees += value

    def take_unallocated(self) -> int:
        """Empty the fee buffer and return its contents."""
        amount = self.unallocated_fees
        self.unallocated_fees = 0
        return amount

    # ========================================================================
    # SOLVENCY
    # ========================================================================

    def required_backing(self) -> int:
        return self.claim_obligation_wei + self.investment_reserve_wei

    def is_solvent(self, balance: int) -> bool:
        return balance >= self.required_backing()

    def check_solvency(self, balance: int) -> None:
        """
        Raises:
            SolvencyViolation: If balance < claim_obligation + investment_reserve
        """
        if not self.is_solvent(balance):
            raise SolvencyViolation(
                f"balance {balance} < obligation {self.claim_obligation_wei} "
                f"+ reserve {self.investment_reserve_wei}"
            )

    def unaccounted(self, balance: int) -> int:
        """Balance not explained by any bucket (never negative)."""
        explained = (self.investment_reserve_wei + self.claim_obligation_wei
                     + self.unallocated_fees)
        return max(0, balance - explained)

    # ========================================================================
    # DISBURSEMENT
    # ========================================================================

    def authorize_invest(self, amount: int, balance: int) -> None:
        """
        Debit the reserve for an outbound investment.

        Solvency is validated against the post-transfer balance and reserve
        before the reserve is debited, so the transfer can only be released
        once the resulting state is known to be solvent.

        Raises:
            InsufficientReserve: amount > investment_reserve_wei
            InsufficientBalance: amount > balance
            SolvencyViolation: post-transfer state would be insolvent
        """
        require_amount(amount, "amount")
        if amount > self.investment_reserve_wei:
            raise InsufficientReserve(
                f"invest {amount} exceeds reserve {self.investment_reserve_wei}"
            )
        if amount > balance:
            raise InsufficientBalance(f"invest {amount} exceeds balance {balance}")
        post_reserve = self.investment_reserve_wei - amount
        post_balance = balance - amount
        if post_balance < self.claim_obligation_wei + post_reserve:
            raise SolvencyViolation(
                f"post-invest balance {post_balance} < obligation "
                f"{self.claim_obligation_wei} + reserve {post_reserve}"
            )
        self.investment_reserve_wei = post_reserve

    def authorize_claim(self, amount: int) -> None:
        """
        Debit the claim obligation for a payout.

        Raises:
            InsufficientObligation: amount > claim_obligation_wei
        """
        require_amount(amount, "amount")
        if amount > self.claim_obligation_wei:
            raise InsufficientObligation(
                f"claim {amount} exceeds obligation {self.claim_obligation_wei}"
            )
        self.claim_obligation_wei -= amount

    # ========================================================================
    # SNAPSHOTS
    # ========================================================================

    def snapshot(self) -> Dict[str, Any]:
        return {
            "investment_reserve_wei": self.investment_reserve_wei,
            "claim_obligation_wei": self.claim_obligation_wei,
            "unallocated_fees": self.unallocated_fees,
        }

    def restore(self, snap: Dict[str, Any]) -> None:
        self.investment_reserve_wei = snap["investment_reserve_wei"]
        self.claim_obligation_wei = snap["claim_obligation_wei"]
        self.unallocated_fees = snap["unallocated_fees"]

    def __repr__(self):
        return (f"TreasuryRouter(reserve={self.investment_reserve_wei}, "
                f"obligation={self.claim_obligation_wei}, unallocated={self.unallocated_fees})")
