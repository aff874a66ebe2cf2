"""
conftest.py - Shared pytest fixtures for treasury tests

Provides common fixtures used across unit, functional and conformance tests:
- Curve parameters (the standard three-segment curve and a flat curve)
- Bare components (curve, share ledger, router) for pipeline-level tests
- Treasuries at each lifecycle stage (fresh, live with a genesis holder)
- Collaborators (authorizer with grants, compliance oracle)
"""

import pytest

from treasury import (
    CurveParams, BondingCurve, ShareLedger, TreasuryRouter, StaticComplianceOracle,
)

from tests.helpers import (
    standard_params, make_authorizer, make_treasury, make_live_treasury,
)


# =============================================================================
# PARAMETER FIXTURES
# =============================================================================

@pytest.fixture
def params():
    """Standard three-segment curve."""
    return standard_params()


@pytest.fixture
def flat_params():
    """Flat curve: breakpoints left unconfigured."""
    return CurveParams(base_price=10 ** 15, step_wei=10 ** 17)


# =============================================================================
# COMPONENT FIXTURES
# =============================================================================

@pytest.fixture
def curve(params):
    return BondingCurve(params)


@pytest.fixture
def ledger():
    return ShareLedger()


@pytest.fixture
def router():
    return TreasuryRouter()


# =============================================================================
# COLLABORATOR FIXTURES
# =============================================================================

@pytest.fixture
def authorizer():
    """Owner plus a minter and a fee keeper."""
    return make_authorizer()


@pytest.fixture
def oracle():
    return StaticComplianceOracle()


# =============================================================================
# TREASURY FIXTURES
# =============================================================================

@pytest.fixture
def treasury():
    """Fresh treasury in UNINITIALIZED."""
    return make_treasury()


@pytest.fixture
def live_treasury():
    """Live treasury with alice holding one share from genesis."""
    return make_live_treasury()


@pytest.fixture
def compliant_treasury(oracle):
    """Live treasury wired to a compliance oracle."""
    return make_live_treasury(compliance_oracle=oracle)
