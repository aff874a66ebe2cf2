"""
Core types and constants for the treasury accounting engine.

This module provides the foundational pieces shared by every component:
1. Constants: fixed-point precision, basis-point denominator, safety ceilings
2. Exceptions: TreasuryError and the condition-specific error types
3. Data structures: Account, RouteResult, FundingReceipt, TreasuryEvent
4. Protocols: TreasuryView, Authorizer, ComplianceOracle, ValueTransport

All quantities are exact Python ints denominated in base units (wei).
Share balances and per-share accumulators are fixed-point, scaled by PREC.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Fixed-point scale for shares and per-share accumulators.
PREC = 10 ** 18

# Basis points denominator for split ratios (10000 bps = 100%).
BPS_DENOMINATOR = 10_000

# Absolute ceiling on any curve slope (value-per-share added per step).
MAX_SLOPE = 10 ** 18

# Authorization actions consulted through the Authorizer protocol.
ACTION_CONFIGURE = "configure"
ACTION_INVEST = "invest"
ACTION_GENESIS = "genesis"
ACTION_COMPLIANCE = "compliance"
ACTION_DISTRIBUTE = "distribute"
ACTION_MINT = "mint"

ALL_ACTIONS = frozenset({
    ACTION_CONFIGURE,
    ACTION_INVEST,
    ACTION_GENESIS,
    ACTION_COMPLIANCE,
    ACTION_DISTRIBUTE,
    ACTION_MINT,
})


# ============================================================================
# EXCEPTIONS
# ============================================================================

class TreasuryError(Exception):
    """Base exception for all treasury errors."""
    pass


class ComplianceError(TreasuryError):
    """Raised when a participant is denied by compliance checks."""
    pass


class AccountFrozen(ComplianceError):
    """Raised when the compliance oracle reports an account as frozen (hard deny)."""
    pass


class AccountBlocked(ComplianceError):
    """Raised when a blocked account attempts new participation."""
    pass


class BoundsError(TreasuryError):
    """Raised when an input or output falls outside its permitted range."""
    pass


class StepsCapExceeded(BoundsError):
    """Raised when the curve step count exceeds max_curve_steps."""
    pass


class ZeroValue(BoundsError):
    """Raised when a value-carrying operation receives zero value."""
    pass


class ZeroShares(BoundsError):
    """Raised when an operation would mint zero shares."""
    pass


class PurchaseCapExceeded(BoundsError):
    """Raised when a single purchase would exceed max_purchase_shares."""
    pass


class LifetimeCapExceeded(BoundsError):
    """Raised when an account's lifetime funded volume would exceed its cap."""
    pass


class InvalidSplit(BoundsError):
    """Raised when a basis-point split ratio is above 100%."""
    pass


class BatchLengthMismatch(BoundsError):
    """Raised when parallel import arrays differ in length."""
    pass


class InvalidAccount(BoundsError):
    """Raised when an account identifier is null or empty."""
    pass


class InvalidCurveParams(BoundsError):
    """Raised when a pricing parameter update fails validation."""
    pass


class InsufficientReserve(BoundsError):
    """Raised when an investment exceeds the investment reserve."""
    pass


class InsufficientBalance(BoundsError):
    """Raised when a disbursement exceeds the on-hand balance."""
    pass


class InsufficientObligation(BoundsError):
    """Raised when a claim exceeds the recorded claim obligation."""
    pass


class NothingToClaim(BoundsError):
    """Raised when an account with no pending liability attempts to claim."""
    pass


class EmptyGenesis(BoundsError):
    """Raised when going live without any imported shares."""
    pass


class Unauthorized(TreasuryError):
    """Raised when the caller lacks the role or gate for an action."""
    pass


class StateError(TreasuryError):
    """Raised when an operation is attempted outside its valid lifecycle state."""
    pass


class InvalidPhaseTransition(StateError):
    """Raised when a genesis transition does not start from its required phase."""
    pass


class ImportsClosed(StateError):
    """Raised when importing while the import window is not open."""
    pass


class AlreadyImported(StateError):
    """Raised when an account is imported a second time."""
    pass


class NotLive(StateError):
    """Raised when public funding is attempted before the system is live."""
    pass


class AlreadyLive(StateError):
    """Raised when going live a second time."""
    pass


class SolvencyViolation(TreasuryError):
    """Raised when balance would not cover claim obligation plus investment reserve."""
    pass


class ReentrancyError(TreasuryError):
    """Raised when a value-moving operation is re-entered."""
    pass


class DisabledOperation(TreasuryError):
    """Raised by legacy entry points that are permanently disabled."""
    pass


# ============================================================================
# VALIDATION HELPERS
# ============================================================================

def require_account(account: Optional[str]) -> str:
    """Return the account id, raising InvalidAccount if it is null or blank."""
    if not account or not isinstance(account, str) or not account.strip():
        raise InvalidAccount(f"Invalid account identifier: {account!r}")
    return account


def require_amount(value: int, name: str = "value") -> int:
    """Return value if it is a non-negative int, else raise ValueError."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(slots=True)
class Account:
    """
    Per-account ledger record.

    Attributes:
        shares: Fixed-point claim weight (scaled by PREC).
        reward_debt: shares * (acc_sales + acc_fees) // PREC at last settlement.
        pending_wei: Settled but unclaimed liability owed to this account.
        lifetime_volume_in: Value contributed through public funding paths.
        imported: True once the account has passed through the genesis importer.
        blocked: Blocks new participation; never blocks claiming.
    """
    shares: int = 0
    reward_debt: int = 0
    pending_wei: int = 0
    lifetime_volume_in: int = 0
    imported: bool = False
    blocked: bool = False


@dataclass(frozen=True, slots=True)
class RouteResult:
    """Outcome of splitting an inflow between reserve and liability."""
    to_reserve: int
    to_liability: int

    def __post_init__(self):
        if self.to_reserve < 0 or self.to_liability < 0:
            raise ValueError("Route amounts must be non-negative")


@dataclass(frozen=True, slots=True)
class FundingReceipt:
    """
    Result of a successful funding operation.

    Attributes:
        account: Beneficiary that received the shares.
        shares: Shares minted (fixed-point).
        price: Unit price paid (value per PREC shares).
        to_reserve: Portion of the value credited to the investment reserve.
        to_liability: Portion credited to the claim obligation.
    """
    account: str
    shares: int
    price: int
    to_reserve: int
    to_liability: int


@dataclass(frozen=True, slots=True)
class TreasuryEvent:
    """
    Immutable record of a committed treasury operation.

    Attributes:
        sequence: Monotonic sequence number within the treasury
        kind: Event name (e.g. "Funded", "Claimed", "CurveUpdated")
        account: Account the event concerns, if any
        data: Event payload as a frozen tuple of (key, value) pairs
    """
    sequence: int
    kind: str
    account: Optional[str] = None
    data: Tuple[Tuple[str, Any], ...] = ()

    @property
    def data_dict(self) -> Dict[str, Any]:
        """Get the payload as a dictionary."""
        return dict(self.data)

    def __repr__(self) -> str:
        payload = ", ".join(f"{k}={v}" for k, v in self.data)
        who = f" {self.account}" if self.account else ""
        return f"Event#{self.sequence} {self.kind}{who} ({payload})"


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class Authorizer(Protocol):
    """Pluggable authorization capability for admin-only actions."""

    def is_authorized(self, caller: str, action: str) -> bool:
        """Return True if caller may perform action."""
        ...


@runtime_checkable
class ComplianceOracle(Protocol):
    """External allow/deny gate consulted on funding and claim paths."""

    def is_frozen(self, account: str) -> bool:
        """Return True if the account is frozen (hard deny)."""
        ...


# Moves value out of the treasury to a destination. May call back into the
# treasury, so it runs under the reentrancy guard.
ValueTransport = Callable[[str, int], None]


@runtime_checkable
class TreasuryView(Protocol):
    """
    Read-only interface to treasury state.

    Export and diagnostic functions accept a TreasuryView to declare that they
    never mutate state. The Treasury class implements this protocol.
    """

    @property
    def balance(self) -> int:
        """Value currently held by the treasury."""
        ...

    @property
    def phase(self) -> Any:
        """Current genesis phase."""
        ...

    @property
    def total_volume(self) -> int: ...

    @property
    def total_shares(self) -> int: ...

    @property
    def last_price(self) -> int: ...

    @property
    def investment_reserve_wei(self) -> int: ...

    @property
    def claim_obligation_wei(self) -> int: ...

    @property
    def unallocated_fees(self) -> int: ...

    @property
    def queued_fees(self) -> int: ...

    def current_price(self) -> int:
        """Unit price at the current total volume."""
        ...

    def unaccounted(self) -> int:
        """Balance not explained by any bucket."""
        ...

    def is_solvent(self) -> bool: ...

    def holder_count(self) -> int: ...

    def pending_of(self, account: str) -> int:
        """Claimable amount for an account, without mutating state."""
        ...

    def get_account(self, account: str) -> Account:
        """Return a copy of the account record (zeroed if unknown)."""
        ...

    def holders(self, offset: int = 0, limit: Optional[int] = None) -> List[str]:
        """Return holders in registration order."""
        ...
