"""
qvledger.ledger — the economic rules, one component per concern.

Each component works on a `Journal` view of the ledger state and validates
fully before it stages a single write.
"""

from .accounts import AccountLedger
from .liquidity import LiquidityCounter
from .proposals import DEFAULT_MAX_DESCRIPTION_BYTES, ProposalRegistry, coerce_description
from .voting import VotingEngine

__all__ = [
    "AccountLedger",
    "LiquidityCounter",
    "ProposalRegistry",
    "VotingEngine",
    "coerce_description",
    "DEFAULT_MAX_DESCRIPTION_BYTES",
]
