"""
qvledger.state.journal — journaling writes, checkpoints, revert/commit.

This module provides a deterministic, in-memory write journal layered over a
`LedgerState`. It supports nested checkpoints via a stack of overlays. Writes
go to the top overlay; reads consult overlays from top → base. `commit()`
merges the top overlay into the next layer (or the base state if it is the
last layer). `revert()` discards the top overlay.

Key properties
--------------
- Copy-on-write for accounts and proposals (records are copied into overlays),
  so the base state is untouched until the outermost commit.
- Vote tallies and the two global counters are staged the same way.
- Lookup-or-default: `get_account()` on an unknown identity returns a fresh
  zero Account without materializing it anywhere.
- Nested checkpoints with O(changes) merge cost.

Intended usage
--------------
    j = Journal(state)
    acc = j.account_for_write(caller)         # staged in the root overlay
    acc.deposited = safe_uint.add(acc.deposited, amount, bits=bits)
    j.set_total_liquidity(...)
    j.commit()                                # root -> base; or j.revert()

Nested groups use `begin()` first; their `commit()` merges into the parent
overlay, and only the root-level `commit()` touches the base state.

Notes
-----
The journal does not enforce economic rules; callers (qvledger.ledger.*)
validate before writing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .accounts import Account, AccountId
from .proposals import Proposal
from .store import LedgerState, VoteKey


# =============================================================================
# Overlay model
# =============================================================================


@dataclass
class _Overlay:
    accounts: Dict[AccountId, Account] = field(default_factory=dict)
    proposals: Dict[int, Proposal] = field(default_factory=dict)
    votes_cast: Dict[VoteKey, int] = field(default_factory=dict)
    total_liquidity: Optional[int] = None
    next_proposal_id: Optional[int] = None

    def is_empty(self) -> bool:
        return not (
            self.accounts
            or self.proposals
            or self.votes_cast
            or self.total_liquidity is not None
            or self.next_proposal_id is not None
        )


# =============================================================================
# Journal
# =============================================================================


class Journal:
    """
    A copy-on-write write journal with nested checkpoints over a LedgerState.

    API highlights
    --------------
    - begin() / commit() / revert(), depth(), commit_to(marker) / revert_to(marker)
    - get_account(), account_for_write()
    - get_proposal(), proposal_for_write(), put_proposal()
    - get_votes_cast(), set_votes_cast()
    - total_liquidity / set_total_liquidity(), next_proposal_id / set_next_proposal_id()
    """

    def __init__(self, state: LedgerState) -> None:
        self._base = state
        # Root overlay: writes outside any checkpoint land here until commit().
        self._layers: List[_Overlay] = [_Overlay()]

    @property
    def base(self) -> LedgerState:
        return self._base

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def depth(self) -> int:
        """Number of overlays (>= 1)."""
        return len(self._layers)

    def begin(self) -> int:
        """Start a new checkpoint. Returns the new depth marker."""
        self._layers.append(_Overlay())
        return len(self._layers)

    def commit(self) -> None:
        """
        Commit the top overlay into its parent; committing the root overlay
        applies it to the base state.
        """
        if len(self._layers) > 1:
            top = self._layers.pop()
            self._merge(self._layers[-1], top)
        else:
            self._apply_to_base(self._layers[0])
            self._layers[0] = _Overlay()

    def revert(self) -> None:
        """Discard the top overlay (or clear it if it's the root)."""
        if len(self._layers) > 1:
            self._layers.pop()
        else:
            self._layers[0] = _Overlay()

    def commit_to(self, marker: int) -> None:
        """
        Commit repeatedly until the current depth equals `marker`.
        Committing to depth==1 leaves the changes staged in the root overlay.
        """
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.commit()

    def revert_to(self, marker: int) -> None:
        """Revert repeatedly until the current depth equals `marker`."""
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.revert()

    def has_pending(self) -> bool:
        return any(not layer.is_empty() for layer in self._layers)

    # --------------------------------------------------------------------- #
    # Accounts
    # --------------------------------------------------------------------- #

    def _lookup_account(self, account: AccountId) -> Optional[Account]:
        for layer in reversed(self._layers):
            acc = layer.accounts.get(account)
            if acc is not None:
                return acc
        return self._base.accounts.get(account)

    def has_account(self, account: AccountId) -> bool:
        return self._lookup_account(account) is not None

    def get_account(self, account: AccountId) -> Account:
        """Read-only lookup; a zero Account for unknown identities. Do not mutate."""
        acc = self._lookup_account(account)
        return acc.copy() if acc is not None else Account()

    def account_for_write(self, account: AccountId) -> Account:
        """
        Fetch an Account suitable for mutation in the top layer. Unknown
        identities get a fresh zero Account staged here; it reaches the base
        state only if the enclosing checkpoints commit.
        """
        top = self._layers[-1]
        acc = top.accounts.get(account)
        if acc is not None:
            return acc
        src = self._lookup_account(account)
        acc = src.copy() if src is not None else Account()
        top.accounts[account] = acc
        return acc

    # --------------------------------------------------------------------- #
    # Proposals
    # --------------------------------------------------------------------- #

    def _lookup_proposal(self, proposal_id: int) -> Optional[Proposal]:
        for layer in reversed(self._layers):
            p = layer.proposals.get(proposal_id)
            if p is not None:
                return p
        return self._base.proposals.get(proposal_id)

    def get_proposal(self, proposal_id: int) -> Optional[Proposal]:
        p = self._lookup_proposal(proposal_id)
        return p.copy() if p is not None else None

    def proposal_for_write(self, proposal_id: int) -> Optional[Proposal]:
        top = self._layers[-1]
        p = top.proposals.get(proposal_id)
        if p is not None:
            return p
        src = self._lookup_proposal(proposal_id)
        if src is None:
            return None
        p = src.copy()
        top.proposals[proposal_id] = p
        return p

    def put_proposal(self, proposal: Proposal) -> None:
        self._layers[-1].proposals[proposal.id] = proposal

    def proposal_ids(self) -> Set[int]:
        ids = set(self._base.proposals)
        for layer in self._layers:
            ids.update(layer.proposals)
        return ids

    # --------------------------------------------------------------------- #
    # Vote tallies
    # --------------------------------------------------------------------- #

    def get_votes_cast(self, account: AccountId, proposal_id: int) -> int:
        key = (account, proposal_id)
        for layer in reversed(self._layers):
            if key in layer.votes_cast:
                return layer.votes_cast[key]
        return self._base.votes_cast.get(key, 0)

    def set_votes_cast(self, account: AccountId, proposal_id: int, votes: int) -> None:
        self._layers[-1].votes_cast[(account, proposal_id)] = votes

    # --------------------------------------------------------------------- #
    # Global counters
    # --------------------------------------------------------------------- #

    @property
    def total_liquidity(self) -> int:
        for layer in reversed(self._layers):
            if layer.total_liquidity is not None:
                return layer.total_liquidity
        return self._base.total_liquidity

    def set_total_liquidity(self, value: int) -> None:
        self._layers[-1].total_liquidity = value

    @property
    def next_proposal_id(self) -> int:
        for layer in reversed(self._layers):
            if layer.next_proposal_id is not None:
                return layer.next_proposal_id
        return self._base.next_proposal_id

    def set_next_proposal_id(self, value: int) -> None:
        self._layers[-1].next_proposal_id = value

    # --------------------------------------------------------------------- #
    # Internal merge/apply
    # --------------------------------------------------------------------- #

    @staticmethod
    def _merge(dst: _Overlay, src: _Overlay) -> None:
        dst.accounts.update(src.accounts)
        dst.proposals.update(src.proposals)
        dst.votes_cast.update(src.votes_cast)
        if src.total_liquidity is not None:
            dst.total_liquidity = src.total_liquidity
        if src.next_proposal_id is not None:
            dst.next_proposal_id = src.next_proposal_id

    def _apply_to_base(self, layer: _Overlay) -> None:
        base = self._base
        base.accounts.update(layer.accounts)
        base.proposals.update(layer.proposals)
        base.votes_cast.update(layer.votes_cast)
        if layer.total_liquidity is not None:
            base.total_liquidity = layer.total_liquidity
        if layer.next_proposal_id is not None:
            base.next_proposal_id = layer.next_proposal_id


__all__ = ["Journal"]
