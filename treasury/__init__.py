"""
treasury - Bonding-Curve Treasury Accounting Engine

Sells shares along a monotone piecewise-linear bonding curve, splits every
inflow into an investable reserve and a claimable liability, and tracks
per-account entitlement with lazy O(1) accumulators under a solvency invariant.

Usage:
    from treasury import Treasury, CurveParams, RoleAuthorizer

    treasury = Treasury(
        CurveParams(base_price=10**15, step_wei=10**17, k1=1000, k2=10000,
                    m1=2 * 10**14, m2=10**14, m3=2 * 10**13),
        RoleAuthorizer("owner"),
        verbose=False,
    )

    # Genesis: seed the ledger, then open public funding
    treasury.open_imports("owner")
    treasury.import_users("owner", ["alice"], [10**18], [0])
    treasury.finalize_imports("owner")
    treasury.go_live("owner")

    # Public funding and claims
    receipt = treasury.fund("bob", 10**14)
    paid = treasury.claim("alice")
"""

# Core types
from .core import (
    Account,
    RouteResult,
    FundingReceipt,
    TreasuryEvent,
    TreasuryView,
    Authorizer,
    ComplianceOracle,
    ValueTransport,
    PREC,
    BPS_DENOMINATOR,
    MAX_SLOPE,
    ACTION_CONFIGURE,
    ACTION_INVEST,
    ACTION_GENESIS,
    ACTION_COMPLIANCE,
    ACTION_DISTRIBUTE,
    ACTION_MINT,
    ALL_ACTIONS,
    TreasuryError,
    ComplianceError,
    AccountFrozen,
    AccountBlocked,
    BoundsError,
    StepsCapExceeded,
    ZeroValue,
    ZeroShares,
    PurchaseCapExceeded,
    LifetimeCapExceeded,
    InvalidSplit,
    BatchLengthMismatch,
    InvalidAccount,
    InvalidCurveParams,
    InsufficientReserve,
    InsufficientBalance,
    InsufficientObligation,
    NothingToClaim,
    EmptyGenesis,
    Unauthorized,
    StateError,
    InvalidPhaseTransition,
    ImportsClosed,
    AlreadyImported,
    NotLive,
    AlreadyLive,
    SolvencyViolation,
    ReentrancyError,
    DisabledOperation,
)

# Pricing engine
from .pricing import (
    CurveParams,
    BondingCurve,
    price_at,
    curve_steps,
    curve_delta,
    shares_for,
)

# Share ledger
from .share_ledger import ShareLedger

# Router and solvency
from .router import TreasuryRouter, split, validate_bps

# Funding pipeline
from .funding import apply_funding

# Genesis
from .genesis import GenesisPhase, GenesisImporter, ImportResult, can_transition

# Collaborators
from .access import RoleAuthorizer, StaticComplianceOracle

# Facade
from .treasury import Treasury, TreasuryConfig

# Exports
from .exports import (
    TreasurySnapshot,
    AccountSummary,
    HolderPage,
    snapshot,
    account_summary,
    holder_page,
    total_claimable,
    curve_profile,
    is_monotone,
)


__all__ = [
    # Core
    'Account', 'RouteResult', 'FundingReceipt', 'TreasuryEvent', 'TreasuryView',
    'Authorizer', 'ComplianceOracle', 'ValueTransport',
    'PREC', 'BPS_DENOMINATOR', 'MAX_SLOPE',
    'ACTION_CONFIGURE', 'ACTION_INVEST', 'ACTION_GENESIS', 'ACTION_COMPLIANCE',
    'ACTION_DISTRIBUTE', 'ACTION_MINT', 'ALL_ACTIONS',
    # Exceptions
    'TreasuryError', 'ComplianceError', 'AccountFrozen', 'AccountBlocked',
    'BoundsError', 'StepsCapExceeded', 'ZeroValue', 'ZeroShares',
    'PurchaseCapExceeded', 'LifetimeCapExceeded', 'InvalidSplit',
    'BatchLengthMismatch', 'InvalidAccount', 'InvalidCurveParams',
    'InsufficientReserve', 'InsufficientBalance', 'InsufficientObligation',
    'NothingToClaim', 'EmptyGenesis', 'Unauthorized', 'StateError',
    'InvalidPhaseTransition', 'ImportsClosed', 'AlreadyImported', 'NotLive',
    'AlreadyLive', 'SolvencyViolation', 'ReentrancyError', 'DisabledOperation',
    # Pricing
    'CurveParams', 'BondingCurve', 'price_at', 'curve_steps', 'curve_delta', 'shares_for',
    # Ledger, router, funding
    'ShareLedger', 'TreasuryRouter', 'split', 'validate_bps', 'apply_funding',
    # Genesis
    'GenesisPhase', 'GenesisImporter', 'ImportResult', 'can_transition',
    # Collaborators
    'RoleAuthorizer', 'StaticComplianceOracle',
    # Facade
    'Treasury', 'TreasuryConfig',
    # Exports
    'TreasurySnapshot', 'AccountSummary', 'HolderPage',
    'snapshot', 'account_summary', 'holder_page', 'total_claimable',
    'curve_profile', 'is_monotone',
]
