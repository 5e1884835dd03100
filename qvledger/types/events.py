"""
qvledger.types.events — committed ledger events.

`LedgerEvent` is a compact, immutable record appended to the ledger's event
log for every committed state change. Names are bytes, namespaced as
`b"qv.<domain>.<Event>"`; fields are a small mapping of str -> int | bytes | str.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Union

FieldValue = Union[int, bytes, str]

EV_DEPOSITED = b"qv.liquidity.Deposited"
EV_WITHDRAWN = b"qv.liquidity.Withdrawn"
EV_PROPOSAL_CREATED = b"qv.proposal.Created"
EV_VOTE_CAST = b"qv.vote.Cast"


def _json_value(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    return v


@dataclass(frozen=True)
class LedgerEvent:
    """
    A single event emitted by a committed operation.

    Attributes:
        seq:    position in the ledger's event log (0-based, never reused)
        name:   namespaced event name, e.g. b"qv.vote.Cast"
        fields: read-only mapping of event fields
    """

    seq: int
    name: bytes
    fields: Mapping[str, FieldValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.name, (bytes, bytearray)) or not self.name:
            raise ValueError("event name must be non-empty bytes")
        object.__setattr__(self, "name", bytes(self.name))
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seq": self.seq,
            "name": self.name.decode("ascii"),
            "fields": {k: _json_value(v) for k, v in sorted(self.fields.items())},
        }


__all__ = [
    "LedgerEvent",
    "EV_DEPOSITED",
    "EV_WITHDRAWN",
    "EV_PROPOSAL_CREATED",
    "EV_VOTE_CAST",
]
