"""
qvledger — a quadratic-voting ledger.

Participants deposit value, which mints voting credits 1:1; casting `v` votes
on a proposal costs `v²` credits; deposited value that was not spent can be
withdrawn. The ledger keeps per-user balances, per-proposal tallies and the
global liquidity total under strict conservation and solvency invariants.

    from qvledger import QuadraticVotingLedger

    ledger = QuadraticVotingLedger()
    ledger.deposit_liquidity("alice", 100)
    pid = ledger.create_proposal("alice", b"fund the bridge").unwrap()
    ledger.vote("alice", pid, 5)          # costs 25 credits

Subpackages:
  math     — checked fixed-width uint arithmetic
  state    — records, store, journal, snapshots
  ledger   — account ledger, proposal registry, voting engine
  runtime  — sequencer, named dispatch, invariant checks
  types    — results, statuses, events
"""

from .config import LedgerConfig, VotePricing, load_config
from .errors import (
    ERROR_CODES,
    InsufficientCredits,
    InsufficientLiquidity,
    InvalidAmount,
    InvalidDescription,
    InvalidVoteCount,
    LedgerError,
    Overflow,
    ProposalNotFound,
    Underflow,
)
from .runtime import Call, QuadraticVotingLedger, apply_batch, dispatch
from .types import LedgerEvent, OpResult, OpStatus, VoteReceipt
from .version import __version__

__all__ = [
    "__version__",
    "QuadraticVotingLedger",
    "LedgerConfig",
    "VotePricing",
    "load_config",
    "Call",
    "dispatch",
    "apply_batch",
    "OpResult",
    "OpStatus",
    "VoteReceipt",
    "LedgerEvent",
    "LedgerError",
    "ERROR_CODES",
    "InvalidAmount",
    "InvalidVoteCount",
    "InvalidDescription",
    "ProposalNotFound",
    "InsufficientCredits",
    "InsufficientLiquidity",
    "Overflow",
    "Underflow",
]
