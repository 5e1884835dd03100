"""
qvledger.runtime — sequencing, named dispatch, invariant checks.
"""

from .dispatcher import FUNCTIONS, BatchReport, Call, apply_batch, dispatch, resolve_function
from .engine import QuadraticVotingLedger
from .invariants import assert_invariants, check_invariants

__all__ = [
    "QuadraticVotingLedger",
    "Call",
    "FUNCTIONS",
    "BatchReport",
    "apply_batch",
    "dispatch",
    "resolve_function",
    "check_invariants",
    "assert_invariants",
]
