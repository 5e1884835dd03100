"""
qvledger.ledger.proposals — the proposal registry.

Proposals get sequential ids starting at 1; ids are never reused and a
proposal is never deleted. The description is stored as opaque bytes: `str`
input is UTF-8 encoded first, anything else that is not bytes-like is
rejected.
"""

from __future__ import annotations

import logging
from typing import Iterator

from ..errors import InvalidDescription, ProposalNotFound
from ..math import safe_uint
from ..state.journal import Journal
from ..state.proposals import Proposal

log = logging.getLogger(__name__)

DEFAULT_MAX_DESCRIPTION_BYTES = 256


def coerce_description(description: object, *, max_bytes: int = DEFAULT_MAX_DESCRIPTION_BYTES) -> bytes:
    """Validate a description and return it as bytes, or raise InvalidDescription."""
    if isinstance(description, str):
        raw = description.encode("utf-8")
    elif isinstance(description, (bytes, bytearray, memoryview)):
        raw = bytes(description)
    else:
        raise InvalidDescription("description must be bytes or str", type=type(description).__name__)
    if not raw:
        raise InvalidDescription("description must not be empty")
    if len(raw) > max_bytes:
        raise InvalidDescription("description too long", length=len(raw), max=max_bytes)
    return raw


class ProposalRegistry:
    def __init__(self, journal: Journal, *, bits: int = safe_uint.DEFAULT_BITS,
                 max_description_bytes: int = DEFAULT_MAX_DESCRIPTION_BYTES) -> None:
        self._j = journal
        self._bits = bits
        self._max_desc = max_description_bytes

    def create_proposal(self, description: object) -> int:
        raw = coerce_description(description, max_bytes=self._max_desc)
        pid = self._j.next_proposal_id
        nxt = safe_uint.add(pid, 1, bits=self._bits)
        self._j.put_proposal(Proposal(id=pid, description=raw))
        self._j.set_next_proposal_id(nxt)
        log.debug("proposal staged", extra={"proposal_id": pid, "description_len": len(raw)})
        return pid

    def _require(self, proposal_id: object) -> int:
        if (
            not isinstance(proposal_id, int)
            or isinstance(proposal_id, bool)
            or not 1 <= proposal_id < self._j.next_proposal_id
        ):
            raise ProposalNotFound(proposal_id=repr(proposal_id))
        return proposal_id

    def get_proposal(self, proposal_id: object) -> Proposal:
        """A copy of the proposal; ProposalNotFound if the id was never assigned."""
        pid = self._require(proposal_id)
        p = self._j.get_proposal(pid)
        if p is None:
            raise ProposalNotFound(proposal_id=pid)
        return p

    def proposal_for_write(self, proposal_id: object) -> Proposal:
        pid = self._require(proposal_id)
        p = self._j.proposal_for_write(pid)
        if p is None:
            raise ProposalNotFound(proposal_id=pid)
        return p

    def proposal_count(self) -> int:
        return self._j.next_proposal_id - 1

    def iter_proposals(self) -> Iterator[Proposal]:
        for pid in range(1, self._j.next_proposal_id):
            p = self._j.get_proposal(pid)
            if p is not None:
                yield p


__all__ = ["ProposalRegistry", "coerce_description", "DEFAULT_MAX_DESCRIPTION_BYTES"]
