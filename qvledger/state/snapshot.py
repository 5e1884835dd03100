"""
qvledger.state.snapshot — canonical CBOR snapshots and state roots.

The ledger does not persist anything itself; the host environment does. This
module is the boundary: it turns a `LedgerState` into canonical bytes and
back, and derives a state root from those bytes.

Encoding
--------
A single top-level CBOR map, encoded with `cbor2.dumps(..., canonical=True)`
so identical states always produce identical bytes:

  { "v": 1,                                         # snapshot format version
    "accounts":  { id: [deposited, credits, minted] },
    "proposals": { pid: [description, total_votes] },
    "votes":     { id: { pid: votes } },
    "liquidity": total_liquidity,
    "next_id":   next_proposal_id }

Account ids keep their type (CBOR text string for `str`, byte string for
`bytes`).

Decoding is strict: the shape is validated and the decoded state must pass
`qvledger.runtime.invariants.check_invariants`; otherwise `SnapshotError`.
"""

from __future__ import annotations

import hashlib
from typing import Any, Dict, Mapping

import cbor2

from ..errors import SnapshotError
from ..math.safe_uint import DEFAULT_BITS, is_uint
from ..version import SNAPSHOT_FORMAT
from .accounts import Account, AccountId
from .proposals import Proposal
from .store import LedgerState

SNAPSHOT_VERSION = SNAPSHOT_FORMAT


# --------------------------------------------------------------------------------------
# Encode
# --------------------------------------------------------------------------------------

def state_to_obj(state: LedgerState) -> Dict[str, Any]:
    votes: Dict[AccountId, Dict[int, int]] = {}
    for (account, pid), n in state.votes_cast.items():
        if n:
            votes.setdefault(account, {})[pid] = n
    return {
        "v": SNAPSHOT_VERSION,
        "accounts": {
            aid: [acc.deposited, acc.credits, acc.minted]
            for aid, acc in state.accounts.items()
        },
        "proposals": {
            pid: [p.description, p.total_votes]
            for pid, p in state.proposals.items()
        },
        "votes": votes,
        "liquidity": state.total_liquidity,
        "next_id": state.next_proposal_id,
    }


def encode_state(state: LedgerState) -> bytes:
    """Canonical CBOR bytes for `state`."""
    return cbor2.dumps(state_to_obj(state), canonical=True)


def state_root(state: LedgerState) -> bytes:
    """SHA3-256 over the canonical encoding."""
    return hashlib.sha3_256(encode_state(state)).digest()


# --------------------------------------------------------------------------------------
# Decode
# --------------------------------------------------------------------------------------

def _uint(v: Any, what: str, bits: int) -> int:
    if not is_uint(v, bits=bits):
        raise SnapshotError(f"{what} is not a u{bits}", data={"value": repr(v)})
    return v


def _count(v: Any, what: str) -> int:
    if isinstance(v, bool) or not isinstance(v, int) or v < 0:
        raise SnapshotError(f"{what} is not a non-negative int", data={"value": repr(v)})
    return v


def _account_id(v: Any) -> AccountId:
    if isinstance(v, str) and v:
        return v
    if isinstance(v, bytes) and v:
        return v
    raise SnapshotError("account id must be non-empty text or bytes", data={"value": repr(v)})


def _mapping(v: Any, what: str) -> Mapping[Any, Any]:
    if not isinstance(v, Mapping):
        raise SnapshotError(f"{what} must be a map")
    return v


def obj_to_state(obj: Any, *, bits: int = DEFAULT_BITS) -> LedgerState:
    top = _mapping(obj, "snapshot")
    if top.get("v") != SNAPSHOT_VERSION:
        raise SnapshotError("unsupported snapshot version", data={"v": top.get("v")})

    state = LedgerState()
    for raw_id, rec in _mapping(top.get("accounts", {}), "accounts").items():
        if not isinstance(rec, (list, tuple)) or len(rec) != 3:
            raise SnapshotError("account record must be [deposited, credits, minted]")
        state.accounts[_account_id(raw_id)] = Account(
            deposited=_uint(rec[0], "deposited", bits),
            credits=_uint(rec[1], "credits", bits),
            minted=_count(rec[2], "minted"),
        )

    for raw_pid, rec in _mapping(top.get("proposals", {}), "proposals").items():
        if not isinstance(rec, (list, tuple)) or len(rec) != 2 or not isinstance(rec[0], bytes):
            raise SnapshotError("proposal record must be [description, total_votes]")
        pid = _uint(raw_pid, "proposal id", bits)
        if pid < 1:
            raise SnapshotError("proposal ids start at 1")
        state.proposals[pid] = Proposal(id=pid, description=rec[0],
                                        total_votes=_uint(rec[1], "total_votes", bits))

    for raw_id, per in _mapping(top.get("votes", {}), "votes").items():
        aid = _account_id(raw_id)
        for raw_pid, n in _mapping(per, "votes entry").items():
            state.votes_cast[(aid, _uint(raw_pid, "proposal id", bits))] = _uint(n, "votes", bits)

    state.total_liquidity = _uint(top.get("liquidity"), "liquidity", bits)
    state.next_proposal_id = _uint(top.get("next_id"), "next_id", bits)
    return state


def decode_state(data: bytes, *, bits: int = DEFAULT_BITS, max_description_bytes: int = 256) -> LedgerState:
    """
    Decode and validate snapshot bytes. Raises SnapshotError on malformed
    input or if the decoded state violates a ledger invariant.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise SnapshotError("snapshot must be bytes")
    try:
        obj = cbor2.loads(bytes(data))
    except (cbor2.CBORDecodeError, ValueError, TypeError) as e:
        raise SnapshotError(f"undecodable snapshot: {e}") from e
    state = obj_to_state(obj, bits=bits)

    # Imported here: the invariants module depends on state types.
    from ..runtime.invariants import check_invariants

    violations = check_invariants(state, bits=bits, max_description_bytes=max_description_bytes)
    if violations:
        raise SnapshotError("snapshot violates ledger invariants", data={"violations": violations})
    return state


__all__ = [
    "SNAPSHOT_VERSION",
    "state_to_obj",
    "encode_state",
    "state_root",
    "obj_to_state",
    "decode_state",
]
