"""
qvledger.state.proposals — Proposal records.

Proposals are identified by sequentially assigned positive integers starting at
1. The description is an opaque, immutable byte string; `total_votes` only
grows, and only through `vote`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(slots=True)
class Proposal:
    id: int
    description: bytes
    total_votes: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.id, int) or isinstance(self.id, bool) or self.id < 1:
            raise ValueError("proposal id must be a positive int")
        if not isinstance(self.description, (bytes, bytearray, memoryview)):
            raise TypeError("description must be bytes-like")
        self.description = bytes(self.description)
        if not isinstance(self.total_votes, int) or self.total_votes < 0:
            raise ValueError("total_votes must be a non-negative int")

    def copy(self) -> "Proposal":
        return Proposal(id=self.id, description=self.description, total_votes=self.total_votes)

    def to_public(self) -> Dict[str, Any]:
        """The read-only `get_proposal` view."""
        return {"description": self.description, "total_votes": self.total_votes}

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "description": self.description.hex(), "total_votes": self.total_votes}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Proposal":
        try:
            desc = data["description"]
            description = bytes.fromhex(desc) if isinstance(desc, str) else bytes(desc)
            return cls(id=int(data["id"]), description=description, total_votes=int(data["total_votes"]))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"bad proposal dict: {e}") from e


__all__ = ["Proposal"]
