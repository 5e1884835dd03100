import pytest

from qvledger.config import VotePricing
from qvledger.errors import InsufficientCredits, InvalidVoteCount, Overflow, ProposalNotFound
from qvledger.ledger import AccountLedger, LiquidityCounter, ProposalRegistry, VotingEngine
from qvledger.state.journal import Journal
from qvledger.state.store import LedgerState
from qvledger.types import VoteReceipt

ALICE = "alice"
BOB = "bob"


def _setup(pricing=VotePricing.MARGINAL, bits=128):
    j = Journal(LedgerState())
    accounts = AccountLedger(j, LiquidityCounter(j, bits=bits), bits=bits)
    registry = ProposalRegistry(j, bits=bits)
    voting = VotingEngine(j, registry, bits=bits, pricing=pricing)
    return j, accounts, registry, voting


# ---------------------------------------------------
# Pricing
# ---------------------------------------------------

@pytest.mark.parametrize("pricing", list(VotePricing))
@pytest.mark.parametrize("v", [1, 2, 3, 5, 10, 31])
def test_first_vote_costs_square(pricing, v):
    _, _, _, voting = _setup(pricing)
    assert voting.price(0, v) == v * v


def test_doubling_votes_quadruples_cost():
    _, _, _, voting = _setup()
    for v in (1, 3, 7, 1000):
        assert voting.price(0, 2 * v) == 4 * voting.price(0, v)


def test_marginal_pricing_charges_the_difference():
    _, _, _, voting = _setup(VotePricing.MARGINAL)
    assert voting.price(3, 2) == 25 - 9
    assert voting.price(0, 3) + voting.price(3, 2) == voting.price(0, 5)


def test_independent_pricing_ignores_history():
    _, _, _, voting = _setup(VotePricing.INDEPENDENT)
    assert voting.price(3, 2) == 4


def test_marginal_price_fits_whenever_the_cost_fits():
    _, _, _, voting = _setup(bits=8)
    # 16² does not fit in u8, but 16² - 15² = 31 does.
    assert voting.price(15, 1) == 31
    assert voting.price(127, 1) == 255
    with pytest.raises(Overflow):
        voting.price(128, 1)


# ---------------------------------------------------
# Casting
# ---------------------------------------------------

def test_vote_updates_credits_tally_and_history():
    j, accounts, registry, voting = _setup()
    accounts.deposit(ALICE, 100)
    pid = registry.create_proposal(b"p")
    receipt = voting.vote(ALICE, pid, 5)
    assert receipt == VoteReceipt(cost=25, remaining_credits=75)
    assert accounts.get_account(ALICE).credits == 75
    assert accounts.get_account(ALICE).deposited == 100
    assert registry.get_proposal(pid).total_votes == 5
    assert j.get_votes_cast(ALICE, pid) == 5


def test_repeat_votes_marginal_vs_independent():
    _, accounts, registry, voting = _setup(VotePricing.MARGINAL)
    accounts.deposit(ALICE, 100)
    pid = registry.create_proposal(b"p")
    assert voting.vote(ALICE, pid, 3).cost == 9
    assert voting.vote(ALICE, pid, 2).cost == 16

    _, accounts, registry, voting = _setup(VotePricing.INDEPENDENT)
    accounts.deposit(ALICE, 100)
    pid = registry.create_proposal(b"p")
    assert voting.vote(ALICE, pid, 3).cost == 9
    assert voting.vote(ALICE, pid, 2).cost == 4


def test_history_is_per_account_and_proposal():
    j, accounts, registry, voting = _setup()
    accounts.deposit(ALICE, 100)
    accounts.deposit(BOB, 100)
    p1 = registry.create_proposal(b"one")
    p2 = registry.create_proposal(b"two")
    voting.vote(ALICE, p1, 4)
    assert voting.quote(ALICE, p2, 4) == 16
    assert voting.quote(BOB, p1, 4) == 16
    assert voting.quote(ALICE, p1, 1) == 25 - 16
    assert registry.get_proposal(p1).total_votes == 4
    voting.vote(BOB, p1, 1)
    assert registry.get_proposal(p1).total_votes == 5


# ---------------------------------------------------
# Rejections, in validation order
# ---------------------------------------------------

@pytest.mark.parametrize("votes", [0, -1, 2.0, "3", None, False])
def test_invalid_vote_count(votes):
    _, accounts, registry, voting = _setup()
    accounts.deposit(ALICE, 100)
    registry.create_proposal(b"p")
    with pytest.raises(InvalidVoteCount) as ei:
        voting.vote(ALICE, 1, votes)
    assert ei.value.numeric_code == 104


def test_vote_count_checked_before_proposal():
    _, _, _, voting = _setup()
    with pytest.raises(InvalidVoteCount):
        voting.vote(ALICE, 42, 0)
    with pytest.raises(ProposalNotFound):
        voting.vote(ALICE, 42, 1)


def test_insufficient_credits_leaves_everything():
    j, accounts, registry, voting = _setup()
    accounts.deposit(ALICE, 16)
    pid = registry.create_proposal(b"p")
    with pytest.raises(InsufficientCredits) as ei:
        voting.vote(ALICE, pid, 5)
    assert ei.value.numeric_code == 102
    assert ei.value.data == {"cost": 25, "credits": 16}
    assert accounts.get_account(ALICE).credits == 16
    assert registry.get_proposal(pid).total_votes == 0
    assert j.get_votes_cast(ALICE, pid) == 0
    assert voting.vote(ALICE, pid, 4).remaining_credits == 0


def test_cost_overflow_reported_before_credit_check():
    _, accounts, registry, voting = _setup(bits=16)
    pid = registry.create_proposal(b"p")
    with pytest.raises(Overflow):
        voting.vote(ALICE, pid, 256)
    with pytest.raises(InsufficientCredits):
        voting.vote(ALICE, pid, 255)


def test_quote_does_not_write():
    j, accounts, registry, voting = _setup()
    accounts.deposit(ALICE, 100)
    pid = registry.create_proposal(b"p")
    assert voting.quote(ALICE, pid, 3) == 9
    assert accounts.get_account(ALICE).credits == 100
    assert j.get_votes_cast(ALICE, pid) == 0
