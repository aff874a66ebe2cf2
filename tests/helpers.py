"""
helpers.py - Builders and assertions shared across treasury tests

Plain functions rather than fixtures so property-based tests can build a
fresh treasury per example.
"""

from typing import Dict, List, Optional

from treasury import (
    Treasury, TreasuryConfig, CurveParams, RoleAuthorizer, PREC,
)


OWNER = "owner"


def standard_params(**overrides) -> CurveParams:
    """Three-segment curve used throughout the tests."""
    fields = dict(
        base_price=10 ** 15,
        step_wei=10 ** 17,
        k1=1000,
        k2=10000,
        m1=2 * 10 ** 14,
        m2=10 ** 14,
        m3=2 * 10 ** 13,
    )
    fields.update(overrides)
    return CurveParams(**fields)


def make_authorizer() -> RoleAuthorizer:
    """Owner plus a minter and a fee keeper."""
    return RoleAuthorizer(OWNER, {"mint": {"minter"}, "distribute": {"keeper"}})


def make_treasury(
    config: Optional[TreasuryConfig] = None,
    params: Optional[CurveParams] = None,
    **kwargs,
) -> Treasury:
    """Fresh, quiet treasury in test mode."""
    return Treasury(
        params or standard_params(),
        make_authorizer(),
        config=config,
        verbose=False,
        test_mode=True,
        **kwargs,
    )


def make_live_treasury(
    genesis: Optional[Dict[str, int]] = None,
    pending: Optional[Dict[str, int]] = None,
    value: int = 0,
    **kwargs,
) -> Treasury:
    """
    Treasury taken through genesis and live.

    Args:
        genesis: account -> shares to import (default: alice with one share)
        pending: account -> liability to import alongside
        value: Value sent with the batch
    """
    genesis = genesis if genesis is not None else {"alice": PREC}
    pending = pending or {}
    accounts: List[str] = list(dict.fromkeys(list(genesis) + list(pending)))

    treasury = make_treasury(**kwargs)
    treasury.open_imports(OWNER)
    treasury.import_users(
        OWNER,
        accounts,
        [genesis.get(a, 0) for a in accounts],
        [pending.get(a, 0) for a in accounts],
        value=value,
    )
    treasury.finalize_imports(OWNER)
    treasury.go_live(OWNER)
    return treasury


def assert_solvent(treasury: Treasury) -> None:
    """Balance covers obligation plus reserve."""
    assert treasury.balance >= treasury.claim_obligation_wei + treasury.investment_reserve_wei


def state_of(treasury: Treasury) -> dict:
    """Comparable snapshot of everything an operation can change."""
    return {
        "phase": treasury.phase,
        "balance": treasury.balance,
        "reserve": treasury.investment_reserve_wei,
        "obligation": treasury.claim_obligation_wei,
        "unallocated": treasury.unallocated_fees,
        "queued": treasury.queued_fees,
        "total_shares": treasury.total_shares,
        "total_volume": treasury.total_volume,
        "last_price": treasury.last_price,
        "accounts": {a: treasury.get_account(a) for a in treasury.ledger.accounts},
        "holders": treasury.holders(),
        "events": len(treasury.event_log),
        "config": treasury.config,
        "params": treasury.curve.params,
    }
