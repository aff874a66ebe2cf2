"""
treasury.py - Treasury facade and public operations

The Treasury class is the only object that mutates treasury state. It wires
the pricing curve, share ledger, router and genesis importer together and
exposes the public boundary operations.

Key responsibilities:
    - Every public operation is atomic: state is checkpointed on entry and
      rolled back on any failure, so no partial change is ever observable
    - Value-moving operations hold a reentrancy guard for their whole duration
    - Solvency is re-validated before every operation commits
    - Every committed operation is recorded in the event log
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterator, List, Optional, Sequence

from .core import (
    # Types
    Account, FundingReceipt, RouteResult, TreasuryEvent,
    Authorizer, ComplianceOracle, ValueTransport,
    # Constants
    ACTION_CONFIGURE, ACTION_INVEST, ACTION_GENESIS, ACTION_COMPLIANCE,
    ACTION_DISTRIBUTE, ACTION_MINT,
    # Exceptions
    TreasuryError, AccountFrozen, AccountBlocked, ZeroValue, LifetimeCapExceeded,
    InsufficientBalance, NothingToClaim, Unauthorized, NotLive,
    ReentrancyError, DisabledOperation,
    # Helpers
    require_account, require_amount,
)
from .funding import apply_funding
from .genesis import GenesisImporter, GenesisPhase, ImportResult
from .pricing import BondingCurve, CurveParams
from .router import TreasuryRouter, validate_bps
from .share_ledger import ShareLedger


@dataclass(frozen=True, slots=True)
class TreasuryConfig:
    """
    Runtime configuration.

    Attributes:
        sales_reserve_bps: Reserve share of funding inflows, in basis points
        revenue_reserve_bps: Reserve share of external revenue, in basis points
        max_lifetime_volume: Per-account cap on publicly funded value (None = no cap)
        public_on_behalf: Allow anyone to fund on behalf of another account
        compliance_enabled: Consult the compliance oracle when one is configured
    """
    sales_reserve_bps: int = 2000
    revenue_reserve_bps: int = 2000
    max_lifetime_volume: Optional[int] = None
    public_on_behalf: bool = False
    compliance_enabled: bool = True

    def __post_init__(self):
        validate_bps(self.sales_reserve_bps)
        validate_bps(self.revenue_reserve_bps)
        if self.max_lifetime_volume is not None:
            require_amount(self.max_lifetime_volume, "max_lifetime_volume")


def _no_transport(destination: str, amount: int) -> None:
    """Default transport: value simply leaves the treasury."""
    return None


class Treasury:
    """
    Bonding-curve treasury with lazy reward accrual and a solvency invariant.

    Implements the TreasuryView protocol, so it can be passed to the read-only
    export functions.

    Thread Safety:
        Not thread-safe. Operations are serialized; the only hazard handled is
        reentrancy through the value transport.

    Example:
        treasury = Treasury(
            CurveParams(base_price=10**15, step_wei=10**17, k1=1000, k2=10000,
                        m1=2*10**14, m2=10**14, m3=2*10**13),
            RoleAuthorizer("owner"),
        )
        treasury.open_imports("owner")
        treasury.import_users("owner", ["alice"], [10**18], [0])
        treasury.finalize_imports("owner")
        treasury.go_live("owner")
        receipt = treasury.fund("bob", 10**14)
    """

    def __init__(
        self,
        curve: CurveParams,
        authorizer: Authorizer,
        config: Optional[TreasuryConfig] = None,
        compliance_oracle: Optional[ComplianceOracle] = None,
        transport: Optional[ValueTransport] = None,
        name: str = "treasury",
        verbose: bool = True,
        test_mode: bool = False,
    ):
        """
        Create a treasury.

        Args:
            curve: Initial bonding curve parameters
            authorizer: Role check for admin-only operations
            config: Runtime configuration (defaults to TreasuryConfig())
            compliance_oracle: Optional frozen-account oracle
            transport: Called as transport(destination, amount) for outbound value
            name: Treasury identifier
            verbose: Print committed events and rejections (default: True)
            test_mode: Enable set_balance() (default: False)
        """
        self.name = name
        self.curve = BondingCurve(curve)
        self.authorizer = authorizer
        self.config = config or TreasuryConfig()
        self.compliance_oracle = compliance_oracle
        self.transport: ValueTransport = transport or _no_transport
        self.verbose = verbose
        self._test_mode = test_mode

        self.router = TreasuryRouter()
        self.ledger = ShareLedger(on_fees_folded=self._on_fees_folded)
        self.genesis = GenesisImporter(self.ledger, self.router)

        self._balance: int = 0
        self._locked: bool = False
        self.event_log: List[TreasuryEvent] = []
        self._next_sequence: int = 0

    # ========================================================================
    # TreasuryView PROTOCOL IMPLEMENTATION (read-only)
    # ========================================================================

    @property
    def balance(self) -> int:
        """Value currently held by the treasury."""
        return self._balance

    @property
    def phase(self) -> GenesisPhase:
        return self.genesis.phase

    @property
    def live(self) -> bool:
        return self.genesis.live

    @property
    def total_volume(self) -> int:
        return self.ledger.total_volume

    @property
    def total_shares(self) -> int:
        return self.ledger.total_shares

    @property
    def last_price(self) -> int:
        return self.curve.last_price

    @property
    def investment_reserve_wei(self) -> int:
        return self.router.investment_reserve_wei

    @property
    def claim_obligation_wei(self) -> int:
        return self.router.claim_obligation_wei

    @property
    def unallocated_fees(self) -> int:
        return self.router.unallocated_fees

    @property
    def queued_fees(self) -> int:
        return self.ledger.queued_fees

    def current_price(self) -> int:
        """
        Unit price at the current total volume.

        Raises:
            StepsCapExceeded: If the curve ceiling has been passed
        """
        return self.curve.price(self.ledger.total_volume)

    def pending_of(self, account: str) -> int:
        """Claimable amount for an account, without mutating state."""
        return self.ledger.pending_of(account)

    def get_account(self, account: str) -> Account:
        """Return a copy of the account record (zeroed if unknown)."""
        return self.ledger.get_account(account)

    def holders(self, offset: int = 0, limit: Optional[int] = None) -> List[str]:
        return self.ledger.holders(offset, limit)

    def holder_count(self) -> int:
        return self.ledger.holder_count()

    def unaccounted(self) -> int:
        """Balance not explained by reserve, obligation or the fee buffer."""
        return self.router.unaccounted(self._balance)

    def is_solvent(self) -> bool:
        return self.router.is_solvent(self._balance)

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _snapshot(self) -> Dict[str, Any]:
        return {
            "balance": self._balance,
            "config": self.config,
            "compliance_oracle": self.compliance_oracle,
            "curve_params": self.curve.params,
            "last_price": self.curve.last_price,
            "ledger": self.ledger.checkpoint(),
            "router": self.router.snapshot(),
            "genesis": self.genesis.snapshot(),
            "events": len(self.event_log),
            "next_sequence": self._next_sequence,
        }

    def _restore(self, snap: Dict[str, Any]) -> None:
        self._balance = snap["balance"]
        self.config = snap["config"]
        self.compliance_oracle = snap["compliance_oracle"]
        self.curve.params = snap["curve_params"]
        self.curve.last_price = snap["last_price"]
        self.ledger.rollback(snap["ledger"])
        self.router.restore(snap["router"])
        self.genesis.restore(snap["genesis"])
        del self.event_log[snap["events"]:]
        self._next_sequence = snap["next_sequence"]

    @contextmanager
    def _atomic(self, operation: str) -> Iterator[None]:
        """Run an operation all-or-nothing; any exception restores prior state."""
        snap = self._snapshot()
        try:
            yield
        except Exception as e:
            self._restore(snap)
            if self.verbose:
                print(f"✗ REJECTED {operation}: {type(e).__name__}: {e}")
            raise
        else:
            self.ledger.commit(snap["ledger"])

    @contextmanager
    def _nonreentrant(self, operation: str) -> Iterator[None]:
        """Hold the reentrancy flag for the operation; released on every exit path."""
        if self._locked:
            raise ReentrancyError(f"reentrant call to {operation} rejected")
        self._locked = True
        try:
            yield
        finally:
            self._locked = False

    def _emit(self, kind: str, account: Optional[str] = None, **data: Any) -> TreasuryEvent:
        event = TreasuryEvent(
            sequence=self._next_sequence,
            kind=kind,
            account=account,
            data=tuple(sorted(data.items())),
        )
        self._next_sequence += 1
        self.event_log.append(event)
        if self.verbose:
            print(f"✓ {event!r}")
        return event

    def _require_role(self, caller: str, action: str) -> None:
        if not self.authorizer.is_authorized(caller, action):
            raise Unauthorized(f"{caller} is not authorized for {action}")

    def _is_frozen(self, account: str) -> bool:
        if not self.config.compliance_enabled or self.compliance_oracle is None:
            return False
        return bool(self.compliance_oracle.is_frozen(account))

    def _check_participant(self, account: str) -> None:
        """Deny frozen or blocked accounts new participation."""
        require_account(account)
        if self._is_frozen(account):
            raise AccountFrozen(f"account {account} is frozen")
        if self.ledger.get_account(account).blocked:
            raise AccountBlocked(f"account {account} is blocked")

    def _on_fees_folded(self, amount: int) -> None:
        # Queued fees were recorded as liability when they were queued
        self._emit("FeesFolded", amount=amount,
                   acc_fees_per_share=self.ledger.acc_fees_per_share)

    def _send(self, destination: str, amount: int) -> None:
        """Move value out of the treasury; bookkeeping must already be done."""
        if amount > self._balance:
            raise InsufficientBalance(f"transfer {amount} exceeds balance {self._balance}")
        self._balance -= amount
        self.transport(destination, amount)

    # ========================================================================
    # FUNDING
    # ========================================================================

    def _fund(self, payer: str, beneficiary: str, value: int) -> FundingReceipt:
        require_amount(value, "value")
        if value == 0:
            raise ZeroValue("funding value must be positive")
        if not self.genesis.live:
            raise NotLive(f"funding is not open (phase={self.genesis.phase.value})")
        self._check_participant(beneficiary)
        if payer != beneficiary:
            self._check_participant(payer)

        cap = self.config.max_lifetime_volume
        contributed = self.ledger.get_account(beneficiary).lifetime_volume_in
        if cap is not None and contributed + value > cap:
            raise LifetimeCapExceeded(
                f"{beneficiary} lifetime volume {contributed + value} exceeds cap {cap}"
            )

        self._balance += value
        receipt = apply_funding(
            self.curve, self.ledger, self.router,
            beneficiary, value, self.config.sales_reserve_bps, self._balance,
        )
        self._emit(
            "Funded", beneficiary,
            payer=payer, value=value, shares=receipt.shares, price=receipt.price,
            to_reserve=receipt.to_reserve, to_liability=receipt.to_liability,
        )
        return receipt

    def fund(self, account: str, value: int) -> FundingReceipt:
        """
        Buy shares on the curve with value.

        Args:
            account: Funding account (receives the shares)
            value: Value sent

        Returns:
            FundingReceipt with shares minted and price paid

        Raises:
            ZeroValue, NotLive, AccountFrozen, AccountBlocked, LifetimeCapExceeded,
            StepsCapExceeded, ZeroShares, PurchaseCapExceeded, SolvencyViolation
        """
        with self._nonreentrant("fund"), self._atomic("fund"):
            return self._fund(account, account, value)

    def fund_on_behalf(self, caller: str, beneficiary: str, value: int) -> FundingReceipt:
        """
        Buy shares for another account.

        Allowed for callers holding the mint action, or for anyone while
        public_on_behalf is enabled. Accounting is identical to fund().
        Both the caller and the beneficiary must be neither frozen nor blocked.

        Raises:
            Unauthorized: If the caller is neither a minter nor publicly allowed
        """
        with self._nonreentrant("fund_on_behalf"), self._atomic("fund_on_behalf"):
            require_account(caller)
            if not self.config.public_on_behalf:
                self._require_role(caller, ACTION_MINT)
            return self._fund(caller, beneficiary, value)

    # ========================================================================
    # CLAIMS AND REVENUE
    # ========================================================================

    def claim(self, account: str) -> int:
        """
        Pay out an account's settled liability.

        Blocked accounts may still claim; frozen accounts may not.

        Returns:
            Amount paid

        Raises:
            AccountFrozen, NothingToClaim, InsufficientObligation,
            ReentrancyError, SolvencyViolation
        """
        with self._nonreentrant("claim"), self._atomic("claim"):
            require_account(account)
            if self._is_frozen(account):
                raise AccountFrozen(f"account {account} is frozen")
            self.ledger.settle(account)
            amount = self.ledger.take_pending(account)
            if amount == 0:
                raise NothingToClaim(f"{account} has nothing to claim")
            self.router.authorize_claim(amount)
            self._send(account, amount)
            self.router.check_solvency(self._balance)
            self._emit("Claimed", account, amount=amount)
            return amount

    def record_external_revenue(self, value: int, source: Optional[str] = None) -> RouteResult:
        """
        Route third-party revenue through the reserve/liability split.

        The liability portion is owed at once and queued for the fee
        accumulator, which absorbs it at the next settlement or explicit
        distribution. With no holders, all of it goes to the reserve.

        Returns:
            RouteResult as credited
        """
        with self._nonreentrant("record_external_revenue"), self._atomic("record_external_revenue"):
            require_amount(value, "value")
            if value == 0:
                raise ZeroValue("revenue value must be positive")
            self._balance += value
            route = self.router.route_inflow(
                value, self.config.revenue_reserve_bps, self.ledger.total_shares > 0,
            )
            if route.to_liability:
                self.ledger.queue_fees(route.to_liability)
            self.router.check_solvency(self._balance)
            self._emit(
                "RevenueRecorded", source,
                value=value, to_reserve=route.to_reserve, to_liability=route.to_liability,
            )
            return route

    def receive(self, value: int, sender: Optional[str] = None) -> None:
        """Accept unsolicited value; it is buffered, never auto-distributed."""
        with self._atomic("receive"):
            require_amount(value, "value")
            if value == 0:
                raise ZeroValue("received value must be positive")
            self._balance += value
            self.router.buffer_fees(value)
            self._emit("FeesBuffered", sender, value=value)

    def distribute_fees(self, caller: str) -> int:
        """
        Fold the unallocated fee buffer (and any queued fees) into the fee accumulator.

        The buffer becomes liability here; with no holders it goes to the
        reserve instead.

        Returns:
            Amount folded into the fee accumulator
        """
        with self._nonreentrant("distribute_fees"), self._atomic("distribute_fees"):
            self._require_role(caller, ACTION_DISTRIBUTE)
            buffered = self.router.take_unallocated()
            to_reserve = 0
            if self.ledger.total_shares == 0:
                self.router.credit_reserve(buffered)
                to_reserve = buffered
            else:
                self.router.promote_to_liability(buffered)
                self.ledger.queue_fees(buffered)
            promoted = self.ledger.fold_fees()
            self.router.check_solvency(self._balance)
            self._emit("FeesDistributed", caller,
                       buffered=buffered, folded=promoted, to_reserve=to_reserve)
            return promoted

    def sweep_unaccounted(self, caller: str, to_reserve: bool = True) -> int:
        """
        Account for balance that arrived outside every entry point.

        Args:
            caller: Must hold the distribute action
            to_reserve: Sweep into the reserve (True) or the fee buffer (False)

        Returns:
            Amount swept
        """
        with self._nonreentrant("sweep_unaccounted"), self._atomic("sweep_unaccounted"):
            self._require_role(caller, ACTION_DISTRIBUTE)
            amount = self.unaccounted()
            if amount == 0:
                return 0
            if to_reserve:
                self.router.credit_reserve(amount)
            else:
                self.router.buffer_fees(amount)
            self.router.check_solvency(self._balance)
            self._emit("Swept", caller, amount=amount,
                       destination="reserve" if to_reserve else "fees")
            return amount

    def invest(self, caller: str, destination: str, amount: int) -> None:
        """
        Disburse value from the investment reserve.

        Raises:
            Unauthorized, ZeroValue, InsufficientReserve, InsufficientBalance,
            SolvencyViolation, ReentrancyError
        """
        with self._nonreentrant("invest"), self._atomic("invest"):
            self._require_role(caller, ACTION_INVEST)
            require_account(destination)
            require_amount(amount, "amount")
            if amount == 0:
                raise ZeroValue("invest amount must be positive")
            self.router.authorize_invest(amount, self._balance)
            self._send(destination, amount)
            self.router.check_solvency(self._balance)
            self._emit("Invested", destination, amount=amount, by=caller)

    def inject(self, value: int) -> None:
        """Value arriving outside every entry point: the balance grows, nothing else."""
        require_amount(value, "value")
        self._balance += value

    def set_balance(self, value: int) -> None:
        """
        Overwrite the held balance directly.

        WARNING: Bypasses all accounting; only available in test mode.
        """
        if not self._test_mode:
            raise TreasuryError(
                "set_balance() is disabled in production mode. "
                "Set test_mode=True when creating Treasury for testing."
            )
        self._balance = require_amount(value, "value")

    # ========================================================================
    # LEGACY (permanently disabled)
    # ========================================================================

    def redeem(self, account: str, shares: int) -> None:
        """Redemption of principal shares is permanently disabled."""
        raise DisabledOperation("redemption is disabled")

    def reinvest(self, account: str) -> None:
        """Automatic reinvestment of claims is permanently disabled."""
        raise DisabledOperation("reinvestment is disabled")

    # ========================================================================
    # GENESIS
    # ========================================================================

    def open_imports(self, caller: str) -> None:
        with self._atomic("open_imports"):
            self._require_role(caller, ACTION_GENESIS)
            self.genesis.open_imports()
            self._emit("ImportsOpened", caller)

    def import_users(
        self,
        caller: str,
        accounts: Sequence[str],
        shares: Sequence[int],
        pending: Sequence[int],
        volumes: Optional[Sequence[int]] = None,
        value: int = 0,
    ) -> ImportResult:
        """
        Import a genesis batch. See GenesisImporter.import_users.

        Args:
            value: Value sent with the batch to back its pending liability
        """
        with self._atomic("import_users"):
            self._require_role(caller, ACTION_GENESIS)
            require_amount(value, "value")
            self._balance += value
            result = self.genesis.import_users(
                accounts, shares, pending,
                balance=self._balance, volumes=volumes, value=value,
            )
            self._emit(
                "UsersImported", caller,
                accounts=result.accounts, shares=result.shares, pending=result.pending,
                volume=result.volume, to_reserve=result.to_reserve,
            )
            return result

    def finalize_imports(self, caller: str) -> None:
        with self._atomic("finalize_imports"):
            self._require_role(caller, ACTION_GENESIS)
            self.genesis.finalize_imports()
            self._emit("ImportsFinalized", caller)

    def go_live(self, caller: str) -> None:
        with self._atomic("go_live"):
            self._require_role(caller, ACTION_GENESIS)
            self.genesis.go_live(self._balance)
            self._emit("WentLive", caller, total_shares=self.ledger.total_shares)

    # ========================================================================
    # CONFIGURATION
    # ========================================================================

    def set_curve_params(self, caller: str, params: CurveParams) -> None:
        """Replace the curve parameters (validated all-or-nothing)."""
        with self._atomic("set_curve_params"):
            self._require_role(caller, ACTION_CONFIGURE)
            self.curve.update_params(params)
            self._emit(
                "CurveUpdated", caller,
                base_price=params.base_price, step_wei=params.step_wei,
                k1=params.k1, k2=params.k2, m1=params.m1, m2=params.m2, m3=params.m3,
                max_curve_steps=params.max_curve_steps,
                max_purchase_shares=params.max_purchase_shares,
            )

    def set_reserve_bps(self, caller: str, sales_bps: int, revenue_bps: int) -> None:
        with self._atomic("set_reserve_bps"):
            self._require_role(caller, ACTION_CONFIGURE)
            self.config = replace(
                self.config, sales_reserve_bps=sales_bps, revenue_reserve_bps=revenue_bps
            )
            self._emit("ReserveSplitUpdated", caller,
                       sales_bps=sales_bps, revenue_bps=revenue_bps)

    def set_lifetime_cap(self, caller: str, cap: Optional[int]) -> None:
        with self._atomic("set_lifetime_cap"):
            self._require_role(caller, ACTION_CONFIGURE)
            self.config = replace(self.config, max_lifetime_volume=cap)
            self._emit("LifetimeCapUpdated", caller, cap=cap)

    def set_public_on_behalf(self, caller: str, enabled: bool) -> None:
        with self._atomic("set_public_on_behalf"):
            self._require_role(caller, ACTION_CONFIGURE)
            self.config = replace(self.config, public_on_behalf=bool(enabled))
            self._emit("PublicOnBehalfUpdated", caller, enabled=bool(enabled))

    def set_blocked(self, caller: str, account: str, blocked: bool) -> None:
        with self._atomic("set_blocked"):
            self._require_role(caller, ACTION_COMPLIANCE)
            self.ledger.set_blocked(account, bool(blocked))
            self._emit("AccountBlockedUpdated", account, blocked=bool(blocked), by=caller)

    def set_compliance_oracle(self, caller: str, oracle: Optional[ComplianceOracle]) -> None:
        with self._atomic("set_compliance_oracle"):
            self._require_role(caller, ACTION_COMPLIANCE)
            self.compliance_oracle = oracle
            self._emit("ComplianceOracleUpdated", caller,
                       oracle=type(oracle).__name__ if oracle is not None else None)

    def set_compliance_enabled(self, caller: str, enabled: bool) -> None:
        with self._atomic("set_compliance_enabled"):
            self._require_role(caller, ACTION_COMPLIANCE)
            self.config = replace(self.config, compliance_enabled=bool(enabled))
            self._emit("ComplianceToggled", caller, enabled=bool(enabled))

    def __repr__(self):
        return (f"Treasury({self.name}, phase={self.phase.value}, balance={self._balance}, "
                f"reserve={self.router.investment_reserve_wei}, "
                f"obligation={self.router.claim_obligation_wei})")
