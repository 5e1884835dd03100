"""
qvledger.types — small, dependency-free value types shared across the ledger.

Re-exports:
  - OpStatus                         (status.py)
  - OpResult, ErrorInfo, VoteReceipt (result.py)
  - LedgerEvent + EV_* names         (events.py)
"""

from .events import (
    EV_DEPOSITED,
    EV_PROPOSAL_CREATED,
    EV_VOTE_CAST,
    EV_WITHDRAWN,
    LedgerEvent,
)
from .result import ErrorInfo, OpResult, VoteReceipt
from .status import OpStatus

__all__ = [
    "OpStatus",
    "OpResult",
    "ErrorInfo",
    "VoteReceipt",
    "LedgerEvent",
    "EV_DEPOSITED",
    "EV_WITHDRAWN",
    "EV_PROPOSAL_CREATED",
    "EV_VOTE_CAST",
]
