import threading

import pytest

from qvledger.config import LedgerConfig
from qvledger.errors import InsufficientCredits, InvalidAmount
from qvledger.metrics import LedgerMetrics
from qvledger.runtime.engine import QuadraticVotingLedger
from qvledger.types import EV_DEPOSITED, EV_PROPOSAL_CREATED, EV_VOTE_CAST, EV_WITHDRAWN, OpStatus, VoteReceipt

ALICE = "ST1SJ3DTE5DN7X54YDH5D64R3BCB6A2AG2ZQ8YPD5"
BOB = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"


# ===================================================
# Reference scenarios (each on a fresh ledger)
# ===================================================

def test_scenario_deposit_mints_credits(ledger):
    res = ledger.deposit_liquidity(ALICE, 100_000_000)
    assert res.is_ok and res.value == 100_000_000
    assert ledger.get_user(ALICE).value == {"deposited": 100_000_000, "credits": 100_000_000}
    assert ledger.get_total_liquidity() == 100_000_000


def test_scenario_vote_costs_square(ledger):
    ledger.deposit_liquidity(ALICE, 10_000_000).unwrap()
    pid = ledger.create_proposal(ALICE, b"Proposal 1").unwrap()
    assert pid == 1
    res = ledger.vote(ALICE, pid, 5)
    assert res.status is OpStatus.OK
    assert res.value == VoteReceipt(cost=25, remaining_credits=9_999_975)
    assert ledger.get_proposal(pid).value["total_votes"] == 5


def test_scenario_insufficient_credits(ledger):
    ledger.deposit_liquidity(ALICE, 16).unwrap()
    pid = ledger.create_proposal(ALICE, b"Proposal 1").unwrap()
    root = ledger.state_root()
    res = ledger.vote(ALICE, pid, 5)
    assert not res.is_ok
    assert res.errno == 102
    assert res.error.name == "InsufficientCredits"
    assert ledger.get_user(ALICE).value["credits"] == 16
    assert ledger.state_root() == root
    with pytest.raises(InsufficientCredits):
        res.unwrap()


def test_scenario_withdraw_then_overdraw(ledger):
    ledger.deposit_liquidity(ALICE, 50_000_000).unwrap()
    res = ledger.withdraw_liquidity(ALICE, 10_000_000)
    assert res.is_ok and res.value == 40_000_000
    res = ledger.withdraw_liquidity(ALICE, 50_000_000)
    assert res.errno == 103
    assert ledger.get_user(ALICE).value["deposited"] == 40_000_000
    assert ledger.get_total_liquidity() == 40_000_000


# ===================================================
# Surface behavior
# ===================================================

def test_get_user_unknown_is_zero(ledger):
    res = ledger.get_user(BOB)
    assert res.is_ok
    assert res.value == {"deposited": 0, "credits": 0}


def test_get_proposal_not_found(ledger):
    res = ledger.get_proposal(1)
    assert res.errno == 101
    assert res.value is None


def test_create_proposal_accepts_text(ledger):
    pid = ledger.create_proposal(ALICE, "Fund the bridge").unwrap()
    assert ledger.get_proposal(pid).value == {"description": b"Fund the bridge", "total_votes": 0}
    assert ledger.get_next_proposal_id() == 2
    assert ledger.list_proposals() == [{"id": 1, "description": b"Fund the bridge", "total_votes": 0}]


def test_withdraw_does_not_touch_credits(ledger):
    ledger.deposit_liquidity(ALICE, 100).unwrap()
    ledger.withdraw_liquidity(ALICE, 100).unwrap()
    assert ledger.get_user(ALICE).value == {"deposited": 0, "credits": 100}
    # credits minted from a withdrawn deposit stay spendable
    pid = ledger.create_proposal(ALICE, b"p").unwrap()
    assert ledger.vote(ALICE, pid, 10).value.remaining_credits == 0


def test_quote_vote_and_votes_cast(ledger):
    ledger.deposit_liquidity(ALICE, 100).unwrap()
    pid = ledger.create_proposal(ALICE, b"p").unwrap()
    assert ledger.quote_vote(ALICE, pid, 3).value == 9
    ledger.vote(ALICE, pid, 3).unwrap()
    assert ledger.get_votes_cast(ALICE, pid) == 3
    assert ledger.quote_vote(ALICE, pid, 1).value == 7
    assert ledger.quote_vote(ALICE, 99, 1).errno == 101


def test_independent_pricing_ledger(independent_ledger):
    independent_ledger.deposit_liquidity(ALICE, 100).unwrap()
    pid = independent_ledger.create_proposal(ALICE, b"p").unwrap()
    assert independent_ledger.vote(ALICE, pid, 3).value.cost == 9
    assert independent_ledger.vote(ALICE, pid, 3).value.cost == 9
    assert independent_ledger.get_proposal(pid).value["total_votes"] == 6


# ===================================================
# Atomicity
# ===================================================

def test_failed_operations_leave_no_trace(ledger):
    ledger.deposit_liquidity(ALICE, 30).unwrap()
    pid = ledger.create_proposal(ALICE, b"p").unwrap()
    before_root = ledger.state_root()
    before_events = ledger.events

    failures = [
        ledger.deposit_liquidity(BOB, 0),
        ledger.withdraw_liquidity(ALICE, 31),
        ledger.withdraw_liquidity(BOB, 1),
        ledger.create_proposal(ALICE, b""),
        ledger.create_proposal(ALICE, b"x" * 257),
        ledger.vote(ALICE, pid, 0),
        ledger.vote(ALICE, pid + 1, 1),
        ledger.vote(ALICE, pid, 6),
        ledger.vote(BOB, pid, 1),
    ]
    assert [r.errno for r in failures] == [100, 103, 103, 105, 105, 104, 101, 102, 102]
    assert all(r.events == () for r in failures)
    assert ledger.state_root() == before_root
    assert ledger.events == before_events
    assert ledger.get_next_proposal_id() == 2


# ===================================================
# Width limits (u8 ledger)
# ===================================================

def _narrow() -> QuadraticVotingLedger:
    return QuadraticVotingLedger(
        LedgerConfig(uint_bits=8, verify_invariants=True), metrics=LedgerMetrics()
    )


def test_deposit_overflow_is_rejected_without_trace():
    ledger = _narrow()
    ledger.deposit_liquidity(ALICE, 200).unwrap()
    root, events = ledger.state_root(), ledger.events

    res = ledger.deposit_liquidity(BOB, 100)
    assert res.errno == 106
    assert res.error.name == "Overflow"
    assert res.events == ()
    assert ledger.state_root() == root
    assert ledger.events == events
    assert ledger.get_total_liquidity() == 200
    assert ledger.get_user(BOB).value == {"deposited": 0, "credits": 0}


def test_vote_cost_overflow_is_rejected_without_trace():
    ledger = _narrow()
    ledger.deposit_liquidity(ALICE, 255).unwrap()
    pid = ledger.create_proposal(ALICE, b"p").unwrap()
    root, events = ledger.state_root(), ledger.events

    assert ledger.quote_vote(ALICE, pid, 16).errno == 106
    res = ledger.vote(ALICE, pid, 16)
    assert res.errno == 106
    assert res.events == ()
    assert ledger.state_root() == root
    assert ledger.events == events
    assert ledger.get_votes_cast(ALICE, pid) == 0


def test_redeposit_after_spending_and_withdrawing():
    ledger = _narrow()
    ledger.deposit_liquidity(ALICE, 200).unwrap()
    pid = ledger.create_proposal(ALICE, b"p").unwrap()
    assert ledger.vote(ALICE, pid, 14).value.cost == 196
    ledger.withdraw_liquidity(ALICE, 200).unwrap()

    res = ledger.deposit_liquidity(ALICE, 200)
    assert res.is_ok and res.value == 200
    assert ledger.get_user(ALICE).value == {"deposited": 200, "credits": 204}
    assert ledger.get_total_liquidity() == 200
    assert ledger.check_invariants() == []


def test_repeat_vote_near_the_width_is_priced_by_credits():
    ledger = _narrow()
    ledger.deposit_liquidity(ALICE, 255).unwrap()
    pid = ledger.create_proposal(ALICE, b"p").unwrap()
    assert ledger.vote(ALICE, pid, 15).value == VoteReceipt(cost=225, remaining_credits=30)
    root = ledger.state_root()

    # 16² overflows u8 but the marginal cost of the 16th vote is 31.
    assert ledger.quote_vote(ALICE, pid, 1).errno == 102
    assert ledger.vote(ALICE, pid, 1).errno == 102
    assert ledger.state_root() == root

    ledger.withdraw_liquidity(ALICE, 255).unwrap()
    ledger.deposit_liquidity(ALICE, 10).unwrap()
    assert ledger.quote_vote(ALICE, pid, 1).value == 31
    assert ledger.vote(ALICE, pid, 1).value == VoteReceipt(cost=31, remaining_credits=9)
    assert ledger.get_proposal(pid).value["total_votes"] == 16
    assert ledger.get_votes_cast(ALICE, pid) == 16
    assert ledger.check_invariants() == []


def test_unexpected_error_reverts_and_propagates(ledger, monkeypatch):
    ledger.deposit_liquidity(ALICE, 10).unwrap()
    root = ledger.state_root()

    real_increase = ledger._liquidity.increase

    def boom(amount):
        real_increase(amount)
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(ledger._liquidity, "increase", boom)
    with pytest.raises(RuntimeError):
        ledger.deposit_liquidity(ALICE, 5)
    assert ledger.state_root() == root
    assert ledger.get_total_liquidity() == 10


def test_bad_caller_identity_is_a_host_error(ledger):
    with pytest.raises(TypeError):
        ledger.deposit_liquidity(None, 10)
    with pytest.raises(ValueError):
        ledger.get_user("")


def test_result_unwrap_raises_typed_error(ledger):
    with pytest.raises(InvalidAmount):
        ledger.deposit_liquidity(ALICE, -1).unwrap()


# ===================================================
# Events
# ===================================================

def test_committed_events(ledger):
    d = ledger.deposit_liquidity(ALICE, 100)
    p = ledger.create_proposal(ALICE, b"p")
    v = ledger.vote(ALICE, 1, 4)
    w = ledger.withdraw_liquidity(ALICE, 40)

    names = [ev.name for ev in ledger.events]
    assert names == [EV_DEPOSITED, EV_PROPOSAL_CREATED, EV_VOTE_CAST, EV_WITHDRAWN]
    assert [ev.seq for ev in ledger.events] == [0, 1, 2, 3]
    assert d.events[0].fields["amount"] == 100
    assert p.events[0].fields["proposal_id"] == 1
    assert v.events[0].fields["cost"] == 16
    assert v.events[0].fields["remaining_credits"] == 84
    assert w.events[0].fields["deposited"] == 60
    assert v.to_dict()["events"][0]["name"] == "qv.vote.Cast"


def test_event_log_is_bounded(strict_config):
    from qvledger.metrics import LedgerMetrics
    from qvledger.runtime.engine import QuadraticVotingLedger

    ledger = QuadraticVotingLedger(strict_config.replace(max_events=3), metrics=LedgerMetrics())
    for _ in range(5):
        ledger.deposit_liquidity(ALICE, 1).unwrap()
    assert [ev.seq for ev in ledger.events] == [2, 3, 4]


# ===================================================
# Concurrency
# ===================================================

def test_concurrent_deposits_conserve_liquidity(ledger):
    callers = [f"user-{i}" for i in range(8)]

    def worker(who):
        for _ in range(50):
            ledger.deposit_liquidity(who, 3)
            ledger.withdraw_liquidity(who, 1)

    threads = [threading.Thread(target=worker, args=(c,)) for c in callers]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert ledger.get_total_liquidity() == len(callers) * 50 * 2
    for c in callers:
        assert ledger.get_user(c).value == {"deposited": 100, "credits": 150}
    assert ledger.check_invariants() == []
