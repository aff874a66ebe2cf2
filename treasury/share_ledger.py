"""
share_ledger.py - Share balances and lazy reward accrual

The ShareLedger owns share balances, the holder registry, and the two
per-share accumulators. Distributions never loop over holders: each income
stream bumps a monotone per-share counter, and each account settles lazily
against its reward_debt snapshot:

    entitled    = shares * (acc_sales_per_share + acc_fees_per_share) // PREC
    pending    += max(0, entitled - reward_debt)
    reward_debt = max(reward_debt, entitled)

Minting rounds reward_debt up, so truncation always leaves dust in the
obligation rather than promising more than was distributed.

Settlement must run before any change to an account's shares, otherwise new
shares would claim distributions that happened before they existed.

Fee value can be queued ahead of distribution. The owner records queued fees
as liability when it queues them; they are folded into acc_fees_per_share at
the start of every settlement (or on an explicit fold), and the folded amount
is reported through on_fees_folded.

Rollback uses an undo journal (checkpoint / commit / rollback) that copies an
account record only when it is first touched, never the whole ledger.
"""

from __future__ import annotations
import copy
from typing import Any, Callable, Dict, List, Optional, Set

from .core import PREC, Account, ZeroShares, require_account, require_amount


class ShareLedger:
    """
    Append-only share ledger with two independent reward accumulators.

    There is no burn or transfer path: an account's shares only grow, and the
    holder registry is never pruned.

    Thread Safety:
        Not thread-safe. Operations are expected to be serialized by the caller.
    """

    def __init__(self, on_fees_folded: Optional[Callable[[int], None]] = None):
        """
        Create an empty ledger.

        Args:
            on_fees_folded: Called with the amount whenever queued fees are
                            folded into the fee accumulator
        """
        self.accounts: Dict[str, Account] = {}
        self.total_shares: int = 0
        self.total_volume: int = 0
        self.acc_sales_per_share: int = 0
        self.acc_fees_per_share: int = 0
        self.queued_fees: int = 0
        self.on_fees_folded = on_fees_folded
        # Ordered registry plus membership set for O(1) duplicate checks
        self._holders: List[str] = []
        self._holder_set: Set[str] = set()
        # Open undo journals, innermost last
        self._journals: List[Dict[str, Any]] = []

    # ========================================================================
    # READ-ONLY
    # ========================================================================

    def get_account(self, account: str) -> Account:
        """Return a copy of the account record (a zeroed record if unknown)."""
        rec = self.accounts.get(account)
        return copy.copy(rec) if rec is not None else Account()

    def shares_of(self, account: str) -> int:
        rec = self.accounts.get(account)
        return rec.shares if rec else 0

    def entitled(self, rec: Account) -> int:
        """Entitlement of an account record at the current accumulators."""
        return rec.shares * (self.acc_sales_per_share + self.acc_fees_per_share) // PREC

    def pending_of(self, account: str) -> int:
        """
        Claimable amount for an account, without mutating state.

        Includes settled pending_wei, unsettled accrual, and the share of any
        queued fees that would fold on the next settlement.
        """
        rec = self.accounts.get(account)
        if rec is None:
            return 0
        acc_fees = self.acc_fees_per_share
        if self.queued_fees and self.total_shares:
            acc_fees += self.queued_fees * PREC // self.total_shares
        entitled = rec.shares * (self.acc_sales_per_share + acc_fees) // PREC
        return rec.pending_wei + max(0, entitled - rec.reward_debt)

    def is_holder(self, account: str) -> bool:
        return account in self._holder_set

    def holder_count(self) -> int:
        return len(self._holders)

    def holders(self, offset: int = 0, limit: Optional[int] = None) -> List[str]:
        """
        Return holders in registration order.

        Args:
            offset: Index of the first holder to return
            limit: Maximum number of holders (None = all remaining)
        """
        if offset < 0:
            raise ValueError(f"offset must be non-negative, got {offset}")
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        end = None if limit is None else offset + limit
        return self._holders[offset:end]

    # ========================================================================
    # MUTATING
    # ========================================================================

    def _account(self, account: str) -> Account:
        require_account(account)
        rec = self.accounts.get(account)
        if self._journals:
            touched = self._journals[-1]["accounts"]
            if account not in touched:
                touched[account] = copy.copy(rec) if rec is not None else None
        if rec is None:
            rec = Account()
            self.accounts[account] = rec
        return rec

    def fold_fees(self) -> int:
        """
        Fold queued fees into acc_fees_per_share.

        No-op while nothing is queued or no shares exist.

        Returns:
            The amount folded (already owed; only its allocation changes)
        """
        if self.queued_fees == 0 or self.total_shares == 0:
            return 0
        amount = self.queued_fees
        self.acc_fees_per_share += amount * PREC // self.total_shares
        self.queued_fees = 0
        if self.on_fees_folded is not None:
            self.on_fees_folded(amount)
        return amount

    def settle(self, account: str) -> int:
        """
        Settle an account against the current accumulators.

        Returns:
            Amount newly moved into pending_wei
        """
        self.fold_fees()
        rec = self._account(account)
        entitled = self.entitled(rec)
        accrued = 0
        # reward_debt never decreases for a fixed share balance
        if entitled > rec.reward_debt:
            accrued = entitled - rec.reward_debt
            rec.pending_wei += accrued
            rec.reward_debt = entitled
        return accrued

    def mint(self, account: str, amount: int) -> None:
        """
        Mint shares to an account.

        The caller must settle the account first. reward_debt is reset to the
        post-mint entitlement, so new shares never claim past distributions.
        The reset rounds up: a floored snapshot would let each share segment
        accrue up to one unit more than was distributed to it.

        Raises:
            ZeroShares: If amount is not positive
        """
        require_amount(amount, "amount")
        if amount == 0:
            raise ZeroShares("mint amount must be positive")
        rec = self._account(account)
        self.total_shares += amount
        rec.shares += amount
        if account not in self._holder_set:
            self._holder_set.add(account)
            self._holders.append(account)
        acc = self.acc_sales_per_share + self.acc_fees_per_share
        rec.reward_debt = -(-rec.shares * acc // PREC)

    def distribute_sales(self, amount: int) -> int:
        """
        Distribute funding-driven liability across all shares.

        Returns:
            Increase in acc_sales_per_share
        """
        require_amount(amount, "amount")
        if amount == 0:
            return 0
        if self.total_shares == 0:
            raise ValueError("Cannot distribute with no shares outstanding")
        delta = amount * PREC // self.total_shares
        self.acc_sales_per_share += delta
        return delta

    def queue_fees(self, amount: int) -> None:
        """
        Queue fee value for the fee accumulator (folded on next settlement).

        The caller must already have recorded the amount as liability.
        """
        require_amount(amount, "amount")
        if amount and self.total_shares == 0:
            raise ValueError("Cannot queue fees with no shares outstanding")
        self.queued_fees += amount

    def credit_pending(self, account: str, amount: int) -> None:
        """Add already-promoted liability directly to an account's pending balance."""
        require_amount(amount, "amount")
        self._account(account).pending_wei += amount

    def take_pending(self, account: str) -> int:
        """Zero and return an account's settled pending balance."""
        rec = self._account(account)
        amount = rec.pending_wei
        rec.pending_wei = 0
        return amount

    def add_volume(self, amount: int) -> None:
        require_amount(amount, "amount")
        self.total_volume += amount

    def record_contribution(self, account: str, amount: int) -> None:
        """Track value contributed through public funding paths."""
        require_amount(amount, "amount")
        self._account(account).lifetime_volume_in += amount

    def mark_imported(self, account: str) -> None:
        self._account(account).imported = True

    def set_blocked(self, account: str, blocked: bool) -> None:
        self._account(account).blocked = blocked

    # ========================================================================
    # CHECKPOINTS
    # ========================================================================

    def checkpoint(self) -> Dict[str, Any]:
        """
        Open an undo journal for rollback.

        Only the totals are copied here. Each account record is copied the
        first time it is touched after the checkpoint, so the cost of an
        operation stays proportional to the accounts it changes. Checkpoints
        nest; every checkpoint must be closed with commit() or rollback().
        """
        journal = {
            "accounts": {},
            "holders": len(self._holders),
            "total_shares": self.total_shares,
            "total_volume": self.total_volume,
            "acc_sales_per_share": self.acc_sales_per_share,
            "acc_fees_per_share": self.acc_fees_per_share,
            "queued_fees": self.queued_fees,
        }
        self._journals.append(journal)
        return journal

    def _close(self, journal: Dict[str, Any]) -> None:
        if not self._journals or self._journals[-1] is not journal:
            raise ValueError("checkpoints must be closed innermost first")
        self._journals.pop()

    def commit(self, journal: Dict[str, Any]) -> None:
        """Keep changes made since the checkpoint."""
        self._close(journal)
        if self._journals:
            # The enclosing checkpoint must still be able to undo these
            parent = self._journals[-1]["accounts"]
            for account, original in journal["accounts"].items():
                parent.setdefault(account, original)

    def rollback(self, journal: Dict[str, Any]) -> None:
        """Discard every change made since the checkpoint."""
        self._close(journal)
        for account, original in journal["accounts"].items():
            if original is None:
                del self.accounts[account]
            else:
                self.accounts[account] = original
        for account in self._holders[journal["holders"]:]:
            self._holder_set.discard(account)
        del self._holders[journal["holders"]:]
        self.total_shares = journal["total_shares"]
        self.total_volume = journal["total_volume"]
        self.acc_sales_per_share = journal["acc_sales_per_share"]
        self.acc_fees_per_share = journal["acc_fees_per_share"]
        self.queued_fees = journal["queued_fees"]

    def __repr__(self):
        return (f"ShareLedger({len(self._holders)} holders, shares={self.total_shares}, "
                f"volume={self.total_volume})")
