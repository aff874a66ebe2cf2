"""
test_share_ledger.py - Unit tests for ShareLedger

Tests:
- Minting and the holder registry
- Lazy accrual through the sales accumulator
- Queued fees and folding
- pending_of as a pure read
- Pagination, checkpoints and rollback
"""

import pytest

from treasury import ShareLedger, PREC, ZeroShares, InvalidAccount


class TestMinting:
    """Share minting and holder registration."""

    def test_mint_registers_holder(self, ledger):
        ledger.mint("alice", PREC)
        assert ledger.shares_of("alice") == PREC
        assert ledger.total_shares == PREC
        assert ledger.is_holder("alice")
        assert ledger.holders() == ["alice"]

    def test_holder_registered_once(self, ledger):
        ledger.mint("alice", PREC)
        ledger.mint("bob", PREC)
        ledger.mint("alice", PREC)
        assert ledger.holders() == ["alice", "bob"]
        assert ledger.holder_count() == 2
        assert ledger.shares_of("alice") == 2 * PREC

    def test_mint_zero_raises(self, ledger):
        with pytest.raises(ZeroShares):
            ledger.mint("alice", 0)
        assert ledger.holder_count() == 0

    def test_mint_negative_raises(self, ledger):
        with pytest.raises(ValueError):
            ledger.mint("alice", -1)

    def test_mint_invalid_account(self, ledger):
        with pytest.raises(InvalidAccount):
            ledger.mint("", PREC)

    def test_unknown_account_reads_zero(self, ledger):
        rec = ledger.get_account("nobody")
        assert rec.shares == 0 and rec.pending_wei == 0
        assert ledger.pending_of("nobody") == 0
        assert "nobody" not in ledger.accounts

    def test_get_account_returns_copy(self, ledger):
        ledger.mint("alice", PREC)
        rec = ledger.get_account("alice")
        rec.shares = 0
        assert ledger.shares_of("alice") == PREC


class TestSalesAccrual:
    """Distribution through acc_sales_per_share."""

    def test_pro_rata_distribution(self, ledger):
        ledger.mint("alice", PREC)
        ledger.mint("bob", 3 * PREC)
        delta = ledger.distribute_sales(4 * 10 ** 18)
        assert delta == PREC
        assert ledger.pending_of("alice") == 10 ** 18
        assert ledger.pending_of("bob") == 3 * 10 ** 18

    def test_new_shares_do_not_claim_past_distributions(self, ledger):
        ledger.mint("alice", PREC)
        ledger.distribute_sales(10 ** 18)
        ledger.settle("carol")
        ledger.mint("carol", PREC)
        assert ledger.pending_of("carol") == 0
        assert ledger.pending_of("alice") == 10 ** 18

    def test_settle_moves_accrual_to_pending(self, ledger):
        ledger.mint("alice", PREC)
        ledger.distribute_sales(500)
        accrued = ledger.settle("alice")
        assert accrued == 500
        assert ledger.get_account("alice").pending_wei == 500
        assert ledger.pending_of("alice") == 500

    def test_settle_is_idempotent(self, ledger):
        ledger.mint("alice", PREC)
        ledger.distribute_sales(500)
        ledger.settle("alice")
        assert ledger.settle("alice") == 0
        assert ledger.pending_of("alice") == 500

    def test_settle_before_top_up_keeps_accrual(self, ledger):
        """Accrual earned on old shares survives a later mint."""
        ledger.mint("alice", PREC)
        ledger.distribute_sales(700)
        ledger.settle("alice")
        ledger.mint("alice", PREC)
        assert ledger.pending_of("alice") == 700

    def test_distribute_zero_is_noop(self, ledger):
        assert ledger.distribute_sales(0) == 0
        assert ledger.acc_sales_per_share == 0

    def test_distribute_without_shares_raises(self, ledger):
        with pytest.raises(ValueError, match="no shares"):
            ledger.distribute_sales(100)

    def test_rounding_never_overpays(self, ledger):
        """Three equal holders splitting an indivisible amount."""
        for account in ("a", "b", "c"):
            ledger.mint(account, PREC)
        ledger.distribute_sales(100)
        total = sum(ledger.pending_of(a) for a in ("a", "b", "c"))
        assert total <= 100

    def test_reward_debt_rounds_up_at_mint(self, ledger):
        ledger.mint("alice", 3)
        ledger.distribute_sales(1)
        ledger.settle("bob")
        ledger.mint("bob", 2)
        acc = ledger.acc_sales_per_share
        assert ledger.get_account("bob").reward_debt == -(-2 * acc // PREC)


class TestFeeQueue:
    """Queued fees fold into acc_fees_per_share."""

    def test_pending_includes_queued_fees(self, ledger):
        ledger.mint("alice", PREC)
        ledger.queue_fees(5)
        assert ledger.pending_of("alice") == 5
        assert ledger.acc_fees_per_share == 0

    def test_settle_folds_queue(self):
        folded = []
        ledger = ShareLedger(on_fees_folded=folded.append)
        ledger.mint("alice", PREC)
        ledger.queue_fees(5)
        ledger.settle("alice")
        assert folded == [5]
        assert ledger.queued_fees == 0
        assert ledger.acc_fees_per_share == 5
        assert ledger.get_account("alice").pending_wei == 5

    def test_fold_without_queue_is_noop(self):
        folded = []
        ledger = ShareLedger(on_fees_folded=folded.append)
        ledger.mint("alice", PREC)
        assert ledger.fold_fees() == 0
        assert folded == []

    def test_queue_without_shares_raises(self, ledger):
        with pytest.raises(ValueError, match="no shares"):
            ledger.queue_fees(5)

    def test_both_accumulators_accrue(self, ledger):
        ledger.mint("alice", PREC)
        ledger.distribute_sales(30)
        ledger.queue_fees(12)
        ledger.fold_fees()
        assert ledger.pending_of("alice") == 42

    def test_pending_of_does_not_mutate(self, ledger):
        ledger.mint("alice", PREC)
        ledger.queue_fees(5)
        before = (ledger.get_account("alice"), ledger.acc_fees_per_share, ledger.queued_fees)
        ledger.pending_of("alice")
        assert (ledger.get_account("alice"), ledger.acc_fees_per_share, ledger.queued_fees) == before


class TestPendingBalances:
    """Direct pending credits and withdrawals."""

    def test_credit_and_take(self, ledger):
        ledger.credit_pending("alice", 250)
        assert ledger.pending_of("alice") == 250
        assert ledger.take_pending("alice") == 250
        assert ledger.pending_of("alice") == 0
        assert ledger.take_pending("alice") == 0

    def test_credit_does_not_register_holder(self, ledger):
        ledger.credit_pending("alice", 250)
        assert not ledger.is_holder("alice")


class TestRegistry:
    """Holder pagination and record flags."""

    def test_pagination(self, ledger):
        for i in range(5):
            ledger.mint(f"h{i}", PREC)
        assert ledger.holders(0, 2) == ["h0", "h1"]
        assert ledger.holders(2, 2) == ["h2", "h3"]
        assert ledger.holders(4, 2) == ["h4"]
        assert ledger.holders(10, 2) == []
        assert ledger.holders(3) == ["h3", "h4"]

    def test_negative_pagination_raises(self, ledger):
        with pytest.raises(ValueError):
            ledger.holders(-1)
        with pytest.raises(ValueError):
            ledger.holders(0, -1)

    def test_flags(self, ledger):
        ledger.mark_imported("alice")
        ledger.set_blocked("alice", True)
        rec = ledger.get_account("alice")
        assert rec.imported and rec.blocked

    def test_volume_and_contribution(self, ledger):
        ledger.add_volume(100)
        ledger.record_contribution("alice", 100)
        assert ledger.total_volume == 100
        assert ledger.get_account("alice").lifetime_volume_in == 100


class TestCheckpoints:
    """checkpoint() / commit() / rollback()"""

    def test_rollback_discards_later_changes(self, ledger):
        ledger.mint("alice", PREC)
        journal = ledger.checkpoint()
        ledger.mint("bob", PREC)
        ledger.distribute_sales(100)
        ledger.set_blocked("alice", True)
        ledger.rollback(journal)
        assert ledger.total_shares == PREC
        assert ledger.holders() == ["alice"]
        assert not ledger.is_holder("bob")
        assert "bob" not in ledger.accounts
        assert ledger.acc_sales_per_share == 0
        assert not ledger.get_account("alice").blocked

    def test_commit_keeps_changes(self, ledger):
        journal = ledger.checkpoint()
        ledger.mint("alice", PREC)
        ledger.commit(journal)
        assert ledger.holders() == ["alice"]
        assert ledger.shares_of("alice") == PREC

    def test_journal_copies_only_touched_accounts(self, ledger):
        for i in range(50):
            ledger.mint(f"h{i}", PREC)
        journal = ledger.checkpoint()
        ledger.settle("h7")
        ledger.mint("newcomer", PREC)
        assert set(journal["accounts"]) == {"h7", "newcomer"}
        assert journal["accounts"]["h7"].shares == PREC
        assert journal["accounts"]["newcomer"] is None
        ledger.rollback(journal)

    def test_nested_commit_then_outer_rollback(self, ledger):
        ledger.mint("alice", PREC)
        outer = ledger.checkpoint()
        inner = ledger.checkpoint()
        ledger.mint("alice", PREC)
        ledger.mint("bob", PREC)
        ledger.commit(inner)
        ledger.rollback(outer)
        assert ledger.shares_of("alice") == PREC
        assert ledger.holders() == ["alice"]
        assert "bob" not in ledger.accounts

    def test_nested_rollback_keeps_outer_changes(self, ledger):
        outer = ledger.checkpoint()
        ledger.mint("alice", PREC)
        inner = ledger.checkpoint()
        ledger.mint("alice", PREC)
        ledger.rollback(inner)
        assert ledger.shares_of("alice") == PREC
        ledger.commit(outer)
        assert ledger.holders() == ["alice"]

    def test_checkpoints_close_innermost_first(self, ledger):
        outer = ledger.checkpoint()
        ledger.checkpoint()
        with pytest.raises(ValueError, match="innermost"):
            ledger.commit(outer)
