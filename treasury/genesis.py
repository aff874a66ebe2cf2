"""
genesis.py - One-way genesis/import state machine

Seeds the share ledger before public funding opens. Phases progress strictly
forward:

    UNINITIALIZED -> IMPORTS_OPEN -> IMPORTS_FINALIZED -> LIVE (terminal)

Each transition is checked against a table of forward edges; any call whose
required source phase does not match the current phase is rejected. Nothing
ever moves the machine backwards.

Imports bypass pricing entirely: shares are minted directly and pending
liability is credited to the account and the claim obligation.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Sequence

from .core import (
    BatchLengthMismatch, AlreadyImported, ImportsClosed, InvalidPhaseTransition,
    AlreadyLive, EmptyGenesis,
    require_account, require_amount,
)
from .router import TreasuryRouter
from .share_ledger import ShareLedger


class GenesisPhase(Enum):
    """Lifecycle phase of the treasury."""
    UNINITIALIZED = "uninitialized"
    IMPORTS_OPEN = "imports_open"
    IMPORTS_FINALIZED = "imports_finalized"
    LIVE = "live"


# Forward-only transition table: phase -> phases reachable in one step.
_TRANSITIONS: Dict[GenesisPhase, FrozenSet[GenesisPhase]] = {
    GenesisPhase.UNINITIALIZED: frozenset({GenesisPhase.IMPORTS_OPEN}),
    GenesisPhase.IMPORTS_OPEN: frozenset({GenesisPhase.IMPORTS_FINALIZED}),
    GenesisPhase.IMPORTS_FINALIZED: frozenset({GenesisPhase.LIVE}),
    GenesisPhase.LIVE: frozenset(),
}


def can_transition(current: GenesisPhase, target: GenesisPhase) -> bool:
    return target in _TRANSITIONS[current]


@dataclass(frozen=True, slots=True)
class ImportResult:
    """
    Summary of an imported batch.

    Attributes:
        accounts: Number of accounts imported
        shares: Total shares minted
        pending: Total liability credited
        volume: Total volume added to the curve position
        to_reserve: Value sent with the batch in excess of its pending liability
    """
    accounts: int
    shares: int
    pending: int
    volume: int
    to_reserve: int


class GenesisImporter:
    """
    Genesis state machine and bulk importer.

    Thread Safety:
        Not thread-safe. Operations are expected to be serialized by the caller.
    """

    def __init__(self, ledger: ShareLedger, router: TreasuryRouter):
        self.ledger = ledger
        self.router = router
        self.phase = GenesisPhase.UNINITIALIZED

    @property
    def imports_open(self) -> bool:
        return self.phase == GenesisPhase.IMPORTS_OPEN

    @property
    def imports_finalized(self) -> bool:
        return self.phase in (GenesisPhase.IMPORTS_FINALIZED, GenesisPhase.LIVE)

    @property
    def live(self) -> bool:
        return self.phase == GenesisPhase.LIVE

    def _advance(self, required: GenesisPhase, target: GenesisPhase) -> None:
        if self.phase != required or not can_transition(self.phase, target):
            raise InvalidPhaseTransition(
                f"cannot move to {target.value} from {self.phase.value} "
                f"(requires {required.value})"
            )
        self.phase = target

    def open_imports(self) -> None:
        """Open the import window. Valid only from UNINITIALIZED."""
        self._advance(GenesisPhase.UNINITIALIZED, GenesisPhase.IMPORTS_OPEN)

    def import_users(
        self,
        accounts: Sequence[str],
        shares: Sequence[int],
        pending: Sequence[int],
        balance: int,
        volumes: Optional[Sequence[int]] = None,
        value: int = 0,
    ) -> ImportResult:
        """
        Import a batch of genesis accounts.

        The whole batch is validated before any state changes, so a single bad
        entry rejects the batch. Solvency is re-validated once at the end.

        Args:
            accounts: Account identifiers
            shares: Shares to mint per account (0 = pending only)
            pending: Liability to credit per account
            balance: Treasury balance after any value sent with the batch
            volumes: Optional per-account volume to add to total_volume
            value: Value sent with the batch; excess over the pending total
                   is credited to the reserve

        Returns:
            ImportResult summary

        Raises:
            ImportsClosed: If the import window is not open
            BatchLengthMismatch: If the arrays differ in length
            InvalidAccount: If any account identifier is null or empty
            AlreadyImported: If any account was already imported or repeats
            SolvencyViolation: If balance does not back the new liability
        """
        if self.phase != GenesisPhase.IMPORTS_OPEN:
            raise ImportsClosed(f"imports are not open (phase={self.phase.value})")

        lengths = {len(accounts), len(shares), len(pending)}
        if volumes is not None:
            lengths.add(len(volumes))
        if len(lengths) != 1:
            raise BatchLengthMismatch(
                f"batch lengths differ: accounts={len(accounts)} shares={len(shares)} "
                f"pending={len(pending)}"
                + (f" volumes={len(volumes)}" if volumes is not None else "")
            )
        volumes = list(volumes) if volumes is not None else [0] * len(accounts)
        require_amount(value, "value")

        # Validate everything before mutating anything
        seen: set = set()
        for i, account in enumerate(accounts):
            require_account(account)
            require_amount(shares[i], "shares")
            require_amount(pending[i], "pending")
            require_amount(volumes[i], "volume")
            if account in seen or self.ledger.get_account(account).imported:
                raise AlreadyImported(f"account {account} already imported")
            seen.add(account)

        total_shares = total_pending = total_volume = 0
        for account, qty, owed, vol in zip(accounts, shares, pending, volumes):
            self.ledger.settle(account)
            if qty:
                self.ledger.mint(account, qty)
            if owed:
                self.ledger.credit_pending(account, owed)
                self.router.promote_to_liability(owed)
            if vol:
                self.ledger.add_volume(vol)
            self.ledger.mark_imported(account)
            total_shares += qty
            total_pending += owed
            total_volume += vol

        excess = max(0, value - total_pending)
        if excess:
            self.router.credit_reserve(excess)

        self.router.check_solvency(balance)
        return ImportResult(
            accounts=len(accounts),
            shares=total_shares,
            pending=total_pending,
            volume=total_volume,
            to_reserve=excess,
        )

    def finalize_imports(self) -> None:
        """Close the import window. Valid only from IMPORTS_OPEN."""
        self._advance(GenesisPhase.IMPORTS_OPEN, GenesisPhase.IMPORTS_FINALIZED)

    def go_live(self, balance: int) -> None:
        """
        Enable public funding. Valid only from IMPORTS_FINALIZED.

        Raises:
            AlreadyLive: If the system is already live
            InvalidPhaseTransition: If imports are not finalized
            EmptyGenesis: If no shares were imported
            SolvencyViolation: If balance does not back the buckets
        """
        if self.phase == GenesisPhase.LIVE:
            raise AlreadyLive("system is already live")
        if self.phase != GenesisPhase.IMPORTS_FINALIZED:
            raise InvalidPhaseTransition(
                f"cannot go live from {self.phase.value} (requires imports_finalized)"
            )
        if self.ledger.total_shares == 0:
            raise EmptyGenesis("cannot go live with an empty genesis")
        self.router.check_solvency(balance)
        self._advance(GenesisPhase.IMPORTS_FINALIZED, GenesisPhase.LIVE)

    def snapshot(self) -> Dict[str, Any]:
        return {"phase": self.phase}

    def restore(self, snap: Dict[str, Any]) -> None:
        self.phase = snap["phase"]

    def __repr__(self):
        return f"GenesisImporter(phase={self.phase.value})"
