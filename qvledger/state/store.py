"""
qvledger.state.store — the owned ledger state.

`LedgerState` is a plain single-writer store. It is never module-global: the
engine owns one instance and hands it (wrapped in a `Journal`) to every
operation. It performs no validation of its own; economic rules live in
`qvledger.ledger.*` and consistency checks in `qvledger.runtime.invariants`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, Tuple

from .accounts import Account, AccountId
from .proposals import Proposal

VoteKey = Tuple[AccountId, int]


@dataclass
class LedgerState:
    """
    accounts          : identity -> Account (only materialized identities)
    proposals         : id -> Proposal (ids 1..next_proposal_id-1)
    votes_cast        : (identity, proposal id) -> cumulative votes by that identity
    total_liquidity   : sum of all accounts' `deposited`
    next_proposal_id  : id the next created proposal receives
    """

    accounts: Dict[AccountId, Account] = field(default_factory=dict)
    proposals: Dict[int, Proposal] = field(default_factory=dict)
    votes_cast: Dict[VoteKey, int] = field(default_factory=dict)
    total_liquidity: int = 0
    next_proposal_id: int = 1

    def iter_accounts(self) -> Iterator[Tuple[AccountId, Account]]:
        return iter(self.accounts.items())

    def iter_proposals(self) -> Iterator[Proposal]:
        """Proposals in id order."""
        for pid in sorted(self.proposals):
            yield self.proposals[pid]

    def copy(self) -> "LedgerState":
        """Deep copy (records are copied; bytes are immutable)."""
        return LedgerState(
            accounts={k: v.copy() for k, v in self.accounts.items()},
            proposals={k: v.copy() for k, v in self.proposals.items()},
            votes_cast=dict(self.votes_cast),
            total_liquidity=self.total_liquidity,
            next_proposal_id=self.next_proposal_id,
        )


__all__ = ["LedgerState", "VoteKey"]
