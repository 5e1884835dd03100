import pytest

from qvledger.state.accounts import Account
from qvledger.state.journal import Journal
from qvledger.state.proposals import Proposal
from qvledger.state.store import LedgerState


# ---------------------------------------------------
# Root overlay: commit / revert
# ---------------------------------------------------

def test_writes_stay_staged_until_commit(journal):
    acc = journal.account_for_write("alice")
    acc.deposited = acc.credits = acc.minted = 10
    journal.set_total_liquidity(10)

    assert journal.get_account("alice").deposited == 10
    assert journal.total_liquidity == 10
    assert journal.base.accounts == {}
    assert journal.base.total_liquidity == 0
    assert journal.has_pending()

    journal.commit()
    assert journal.base.accounts["alice"] == Account(10, 10, 10)
    assert journal.base.total_liquidity == 10
    assert not journal.has_pending()


def test_revert_leaves_base_untouched():
    state = LedgerState()
    state.accounts["alice"] = Account(5, 5, 5)
    state.total_liquidity = 5
    before = state.copy()

    j = Journal(state)
    j.account_for_write("alice").deposited = 99
    j.account_for_write("bob").credits = 1
    j.put_proposal(Proposal(id=1, description=b"p"))
    j.set_next_proposal_id(2)
    j.set_votes_cast("alice", 1, 3)
    j.revert()

    assert state == before
    assert j.get_account("bob") == Account()
    assert not j.has_account("bob")


def test_get_account_returns_a_copy(journal):
    journal.account_for_write("alice").credits = 4
    view = journal.get_account("alice")
    view.credits = 1000
    assert journal.get_account("alice").credits == 4


# ---------------------------------------------------
# Nested checkpoints
# ---------------------------------------------------

def test_nested_commit_merges_into_parent(journal):
    journal.set_total_liquidity(1)
    marker = journal.depth()
    assert journal.begin() == 2
    journal.set_total_liquidity(2)
    journal.set_votes_cast("a", 1, 7)
    journal.commit()
    assert journal.depth() == marker
    assert journal.total_liquidity == 2
    assert journal.base.total_liquidity == 0
    journal.commit()
    assert journal.base.total_liquidity == 2
    assert journal.base.votes_cast == {("a", 1): 7}


def test_nested_revert_discards_only_inner(journal):
    journal.account_for_write("a").deposited = 1
    journal.begin()
    journal.account_for_write("a").deposited = 2
    journal.set_next_proposal_id(9)
    journal.revert()
    assert journal.get_account("a").deposited == 1
    assert journal.next_proposal_id == 1


def test_revert_to_and_commit_to_markers(journal):
    base = journal.depth()
    journal.begin()
    journal.set_total_liquidity(3)
    journal.begin()
    journal.set_total_liquidity(4)
    journal.revert_to(2)
    assert journal.total_liquidity == 3
    journal.commit_to(base)
    assert journal.depth() == base
    assert journal.total_liquidity == 3
    with pytest.raises(ValueError):
        journal.commit_to(0)


def test_proposal_copy_on_write(journal):
    journal.put_proposal(Proposal(id=1, description=b"p"))
    journal.commit()
    journal.proposal_for_write(1).total_votes = 5
    assert journal.base.proposals[1].total_votes == 0
    assert journal.get_proposal(1).total_votes == 5
    assert journal.proposal_for_write(2) is None
    assert journal.proposal_ids() == {1}
