"""
qvledger.runtime.invariants — whole-state consistency checks.

These hold after every committed operation:

- conservation:  total_liquidity == Σ accounts[*].deposited
- width:         every balance, tally and counter is a uint of the configured width
                 (`minted` excepted: an unbounded non-negative audit total)
- minting:       credits <= minted for every account
- ids:           proposal ids are exactly 1 .. next_proposal_id - 1
- tallies:       proposals[p].total_votes == Σ votes_cast[(*, p)]
- descriptions:  1 <= len(description) <= max_description_bytes
- references:    every votes_cast entry points at an existing proposal

A violation is a bug in the ledger, never a business rejection.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List

from ..errors import InvariantViolation
from ..math.safe_uint import DEFAULT_BITS, is_uint
from ..state.store import LedgerState


def check_invariants(state: LedgerState, *, bits: int = DEFAULT_BITS,
                     max_description_bytes: int = 256) -> List[str]:
    """Return a list of human-readable violations (empty when consistent)."""
    out: List[str] = []

    total_deposited = 0
    for aid, acc in state.iter_accounts():
        for name in ("deposited", "credits"):
            v = getattr(acc, name)
            if not is_uint(v, bits=bits):
                out.append(f"account {aid!r}: {name}={v!r} outside u{bits}")
        if isinstance(acc.minted, bool) or not isinstance(acc.minted, int) or acc.minted < 0:
            out.append(f"account {aid!r}: minted={acc.minted!r} is not a non-negative int")
        elif acc.credits > acc.minted:
            out.append(f"account {aid!r}: credits {acc.credits} exceed minted {acc.minted}")
        total_deposited += acc.deposited

    if not is_uint(state.total_liquidity, bits=bits):
        out.append(f"total_liquidity={state.total_liquidity!r} outside u{bits}")
    if state.total_liquidity != total_deposited:
        out.append(
            f"conservation: total_liquidity {state.total_liquidity} != sum(deposited) {total_deposited}"
        )

    if not is_uint(state.next_proposal_id, bits=bits) or state.next_proposal_id < 1:
        out.append(f"next_proposal_id={state.next_proposal_id!r} invalid")
    elif set(state.proposals) != set(range(1, state.next_proposal_id)):
        out.append(
            f"proposal ids {sorted(state.proposals)} != 1..{state.next_proposal_id - 1}"
        )

    tallies: Dict[int, int] = defaultdict(int)
    for (aid, pid), n in state.votes_cast.items():
        if not is_uint(n, bits=bits):
            out.append(f"votes_cast[{aid!r}, {pid}]={n!r} outside u{bits}")
            continue
        if pid not in state.proposals:
            out.append(f"votes_cast[{aid!r}, {pid}] references unknown proposal")
        tallies[pid] += n

    for pid, p in state.proposals.items():
        if p.id != pid:
            out.append(f"proposal keyed {pid} has id {p.id}")
        if not is_uint(p.total_votes, bits=bits):
            out.append(f"proposal {pid}: total_votes={p.total_votes!r} outside u{bits}")
        elif p.total_votes != tallies.get(pid, 0):
            out.append(f"proposal {pid}: total_votes {p.total_votes} != sum(votes_cast) {tallies.get(pid, 0)}")
        if not 1 <= len(p.description) <= max_description_bytes:
            out.append(f"proposal {pid}: description length {len(p.description)} out of bounds")

    return out


def assert_invariants(state: LedgerState, *, bits: int = DEFAULT_BITS,
                      max_description_bytes: int = 256) -> None:
    """Raise InvariantViolation listing every violation found."""
    violations = check_invariants(state, bits=bits, max_description_bytes=max_description_bytes)
    if violations:
        raise InvariantViolation(f"{len(violations)} ledger invariant(s) violated", violations=violations)


__all__ = ["check_invariants", "assert_invariants"]
