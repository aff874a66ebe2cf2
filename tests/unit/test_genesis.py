"""
test_genesis.py - Unit tests for the genesis state machine and importer

Tests:
- Forward-only phase transitions
- Batch validation (lengths, identifiers, duplicates)
- Import accounting: shares, pending liability, volume, excess value
- Go-live preconditions
"""

import pytest

from treasury import (
    GenesisImporter, GenesisPhase, ImportResult, ShareLedger, TreasuryRouter,
    can_transition, PREC,
    InvalidPhaseTransition, ImportsClosed, AlreadyImported, AlreadyLive,
    BatchLengthMismatch, InvalidAccount, EmptyGenesis, SolvencyViolation, StateError,
)


@pytest.fixture
def importer():
    return GenesisImporter(ShareLedger(), TreasuryRouter())


@pytest.fixture
def open_importer(importer):
    importer.open_imports()
    return importer


class TestTransitions:
    """Phase machine."""

    def test_initial_phase(self, importer):
        assert importer.phase == GenesisPhase.UNINITIALIZED
        assert not importer.imports_open
        assert not importer.live

    def test_forward_path(self, importer):
        importer.open_imports()
        assert importer.imports_open
        importer.ledger.mint("alice", PREC)
        importer.finalize_imports()
        assert importer.imports_finalized
        importer.go_live(balance=0)
        assert importer.live
        assert importer.phase == GenesisPhase.LIVE

    def test_transition_table_is_forward_only(self):
        phases = list(GenesisPhase)
        for i, current in enumerate(phases):
            for j, target in enumerate(phases):
                assert can_transition(current, target) == (j == i + 1)

    def test_open_twice_rejected(self, open_importer):
        with pytest.raises(InvalidPhaseTransition):
            open_importer.open_imports()

    def test_finalize_before_open_rejected(self, importer):
        with pytest.raises(InvalidPhaseTransition):
            importer.finalize_imports()

    def test_finalize_twice_rejected(self, open_importer):
        open_importer.finalize_imports()
        with pytest.raises(InvalidPhaseTransition):
            open_importer.finalize_imports()

    def test_go_live_before_finalize_rejected(self, open_importer):
        open_importer.ledger.mint("alice", PREC)
        with pytest.raises(InvalidPhaseTransition):
            open_importer.go_live(balance=0)
        assert open_importer.phase == GenesisPhase.IMPORTS_OPEN

    def test_go_live_twice_rejected(self, open_importer):
        open_importer.ledger.mint("alice", PREC)
        open_importer.finalize_imports()
        open_importer.go_live(balance=0)
        with pytest.raises(AlreadyLive):
            open_importer.go_live(balance=0)

    def test_phase_errors_are_state_errors(self, importer):
        with pytest.raises(StateError):
            importer.finalize_imports()

    def test_empty_genesis_rejected(self, open_importer):
        open_importer.finalize_imports()
        with pytest.raises(EmptyGenesis):
            open_importer.go_live(balance=0)
        assert open_importer.phase == GenesisPhase.IMPORTS_FINALIZED

    def test_go_live_checks_solvency(self, open_importer):
        open_importer.import_users(["alice"], [PREC], [100], balance=100, value=100)
        open_importer.finalize_imports()
        with pytest.raises(SolvencyViolation):
            open_importer.go_live(balance=50)


class TestImportValidation:
    """Batch validation happens before any mutation."""

    def test_import_before_open(self, importer):
        with pytest.raises(ImportsClosed):
            importer.import_users(["alice"], [PREC], [0], balance=0)

    def test_import_after_finalize(self, open_importer):
        open_importer.finalize_imports()
        with pytest.raises(ImportsClosed):
            open_importer.import_users(["alice"], [PREC], [0], balance=0)

    def test_length_mismatch(self, open_importer):
        with pytest.raises(BatchLengthMismatch):
            open_importer.import_users(["alice", "bob"], [PREC], [0, 0], balance=0)

    def test_volume_length_mismatch(self, open_importer):
        with pytest.raises(BatchLengthMismatch):
            open_importer.import_users(["alice"], [PREC], [0], balance=0, volumes=[1, 2])

    @pytest.mark.parametrize("bad", ["", None, "   "])
    def test_invalid_account(self, open_importer, bad):
        with pytest.raises(InvalidAccount):
            open_importer.import_users(["alice", bad], [PREC, PREC], [0, 0], balance=0)
        assert open_importer.ledger.total_shares == 0

    def test_duplicate_within_batch(self, open_importer):
        with pytest.raises(AlreadyImported):
            open_importer.import_users(["alice", "alice"], [PREC, PREC], [0, 0], balance=0)
        assert open_importer.ledger.total_shares == 0

    def test_duplicate_across_batches(self, open_importer):
        open_importer.import_users(["alice"], [PREC], [0], balance=0)
        with pytest.raises(AlreadyImported):
            open_importer.import_users(["bob", "alice"], [PREC, PREC], [0, 0], balance=0)
        assert open_importer.ledger.holders() == ["alice"]

    def test_negative_amount(self, open_importer):
        with pytest.raises(ValueError):
            open_importer.import_users(["alice"], [-1], [0], balance=0)


class TestImportAccounting:
    """Shares, pending liability and volume."""

    def test_import_shares(self, open_importer):
        result = open_importer.import_users(
            ["alice", "bob"], [PREC, 2 * PREC], [0, 0], balance=0,
        )
        assert result == ImportResult(accounts=2, shares=3 * PREC, pending=0, volume=0, to_reserve=0)
        ledger = open_importer.ledger
        assert ledger.total_shares == 3 * PREC
        assert ledger.holders() == ["alice", "bob"]
        assert ledger.get_account("alice").imported

    def test_import_pending(self, open_importer):
        open_importer.import_users(["alice"], [PREC], [500], balance=500, value=500)
        assert open_importer.ledger.pending_of("alice") == 500
        assert open_importer.router.claim_obligation_wei == 500

    def test_pending_without_backing_is_insolvent(self, open_importer):
        with pytest.raises(SolvencyViolation):
            open_importer.import_users(["alice"], [PREC], [500], balance=0)

    def test_pending_only_import(self, open_importer):
        """Zero shares with pending liability: claimable but not a holder."""
        open_importer.import_users(["alice"], [0], [500], balance=500, value=500)
        assert open_importer.ledger.pending_of("alice") == 500
        assert not open_importer.ledger.is_holder("alice")
        assert open_importer.ledger.get_account("alice").imported

    def test_excess_value_to_reserve(self, open_importer):
        result = open_importer.import_users(["alice"], [PREC], [300], balance=1000, value=1000)
        assert result.to_reserve == 700
        assert open_importer.router.investment_reserve_wei == 700
        assert open_importer.router.claim_obligation_wei == 300

    def test_volumes_advance_curve_position(self, open_importer):
        result = open_importer.import_users(
            ["alice", "bob"], [PREC, PREC], [0, 0], balance=0, volumes=[10 ** 17, 3 * 10 ** 17],
        )
        assert result.volume == 4 * 10 ** 17
        assert open_importer.ledger.total_volume == 4 * 10 ** 17

    def test_import_bypasses_pricing(self, open_importer):
        """Shares are minted at face value, with no price recorded."""
        open_importer.import_users(["alice"], [7], [0], balance=0)
        assert open_importer.ledger.shares_of("alice") == 7

    def test_snapshot_restore(self, open_importer):
        snap = open_importer.snapshot()
        open_importer.finalize_imports()
        open_importer.restore(snap)
        assert open_importer.phase == GenesisPhase.IMPORTS_OPEN
