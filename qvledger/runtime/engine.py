"""
qvledger.runtime.engine — the ledger sequencer and its public call surface.

`QuadraticVotingLedger` owns one `LedgerState` and applies operations to it one
at a time. Each mutating operation:

  1) takes the ledger lock (re-entrant; one writer at a time),
  2) binds `op`/`caller` into the logging context,
  3) runs the ledger component against the journal's root overlay,
  4) commits on success, or reverts on a ledger rejection (or any other
     failure, a failed commit included), so a failed operation leaves the
     state bit-for-bit unchanged,
  5) appends the operation's events to the committed event log,
  6) optionally re-checks every invariant (`config.verify_invariants`).

Rejections come back as `OpResult` values with a stable numeric code; no
ledger rejection escapes as an exception. Anything else (a bad caller id, a
bug) reverts the journal and propagates.

Caller identity is supplied by the host and trusted; authenticating it is the
host's job.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple, TypeVar

from ..config import LedgerConfig, load_config
from ..errors import InvariantViolation, LedgerError
from ..ledger import AccountLedger, LiquidityCounter, ProposalRegistry, VotingEngine
from ..logging import op_scope
from ..metrics import LedgerMetrics
from ..state.accounts import AccountId, normalize_account_id
from ..state.journal import Journal
from ..state.snapshot import decode_state, encode_state, state_root
from ..state.store import LedgerState
from ..types.events import (
    EV_DEPOSITED,
    EV_PROPOSAL_CREATED,
    EV_VOTE_CAST,
    EV_WITHDRAWN,
    FieldValue,
    LedgerEvent,
)
from ..types.result import OpResult, VoteReceipt
from ..version import version_metadata
from .invariants import check_invariants

log = logging.getLogger(__name__)

T = TypeVar("T")

_PendingEvent = Tuple[bytes, Dict[str, FieldValue]]


class QuadraticVotingLedger:
    """
    Quadratic-voting ledger: deposit value, get credits 1:1, spend `votes²`
    credits per vote, withdraw unspent deposits.

    Parameters
    ----------
    config : LedgerConfig | None
        Width, description cap, pricing mode, invariant checking. Defaults to
        `load_config()` (environment + defaults).
    state : LedgerState | None
        Existing state to adopt (e.g. from a snapshot). A fresh empty ledger
        otherwise.
    metrics : LedgerMetrics | None
        Prometheus metrics sink. A private instance is created if omitted.
    """

    def __init__(
        self,
        config: Optional[LedgerConfig] = None,
        *,
        state: Optional[LedgerState] = None,
        metrics: Optional[LedgerMetrics] = None,
    ) -> None:
        self.config = config if config is not None else load_config()
        self.metrics = metrics if metrics is not None else LedgerMetrics()

        self._state = state if state is not None else LedgerState()
        self._journal = Journal(self._state)
        self._lock = threading.RLock()

        bits = self.config.uint_bits
        self._liquidity = LiquidityCounter(self._journal, bits=bits)
        self._accounts = AccountLedger(self._journal, self._liquidity, bits=bits)
        self._proposals = ProposalRegistry(
            self._journal, bits=bits, max_description_bytes=self.config.max_description_bytes
        )
        self._voting = VotingEngine(
            self._journal, self._proposals, bits=bits, pricing=self.config.vote_pricing
        )

        self._events: Deque[LedgerEvent] = deque(maxlen=self.config.max_events or None)
        self._next_seq = 0
        self._refresh_gauges()
        log.debug("ledger ready", extra={**version_metadata(), "uint_bits": bits,
                                         "pricing": self.config.vote_pricing.value})

    # ------------------------------------------------------------------ #
    # Sequencing
    # ------------------------------------------------------------------ #

    def _run(self, op: str, caller: AccountId,
             fn: Callable[[List[_PendingEvent]], T],
             on_commit: Optional[Callable[[T], None]] = None) -> OpResult[T]:
        with self._lock, op_scope(op, caller=caller):
            pending: List[_PendingEvent] = []
            try:
                value = fn(pending)
                self._journal.commit()
            except LedgerError as exc:
                self._journal.revert()
                if exc.numeric_code is None:
                    raise
                self.metrics.observe_op(op, ok=False)
                log.debug("rejected", extra={"errno": exc.numeric_code, "reason": exc.code})
                return OpResult.err(exc)
            except BaseException:
                self._journal.revert()
                raise

            events = self._record(pending)
            self._verify()
            self.metrics.observe_op(op, ok=True)
            if on_commit is not None:
                on_commit(value)
            self._refresh_gauges()
            log.debug("committed", extra={"events": len(events)})
            return OpResult.ok(value, events=events)

    def _record(self, pending: List[_PendingEvent]) -> Tuple[LedgerEvent, ...]:
        out = []
        for name, fields in pending:
            ev = LedgerEvent(seq=self._next_seq, name=name, fields=fields)
            self._next_seq += 1
            self._events.append(ev)
            out.append(ev)
        return tuple(out)

    def _verify(self) -> None:
        if not self.config.verify_invariants:
            return
        violations = self.check_invariants()
        if violations:
            log.error("ledger invariants violated", extra={"violations": violations})
            raise InvariantViolation(
                f"{len(violations)} ledger invariant(s) violated", violations=violations
            )

    def _refresh_gauges(self) -> None:
        self.metrics.set_state(
            total_liquidity=self._state.total_liquidity,
            proposals=self._state.next_proposal_id - 1,
        )

    # ------------------------------------------------------------------ #
    # Mutating operations
    # ------------------------------------------------------------------ #

    def deposit_liquidity(self, caller: Any, amount: Any) -> OpResult[int]:
        """Deposit `amount`; mints the same number of credits. Ok value: `amount`."""
        who = normalize_account_id(caller)

        def apply(events: List[_PendingEvent]) -> int:
            moved = self._accounts.deposit(who, amount)
            acc = self._journal.get_account(who)
            events.append((EV_DEPOSITED, {
                "account": who, "amount": moved,
                "deposited": acc.deposited, "credits": acc.credits,
            }))
            return moved

        return self._run("deposit", who, apply)

    def withdraw_liquidity(self, caller: Any, amount: Any) -> OpResult[int]:
        """Withdraw up to the caller's `deposited`. Ok value: remaining `deposited`."""
        who = normalize_account_id(caller)

        def apply(events: List[_PendingEvent]) -> int:
            remaining = self._accounts.withdraw(who, amount)
            events.append((EV_WITHDRAWN, {"account": who, "amount": amount, "deposited": remaining}))
            return remaining

        return self._run("withdraw", who, apply)

    def create_proposal(self, caller: Any, description: Any) -> OpResult[int]:
        """Register a proposal. Ok value: its id."""
        who = normalize_account_id(caller)

        def apply(events: List[_PendingEvent]) -> int:
            pid = self._proposals.create_proposal(description)
            events.append((EV_PROPOSAL_CREATED, {"proposal_id": pid, "creator": who}))
            return pid

        return self._run("create_proposal", who, apply)

    def vote(self, caller: Any, proposal_id: Any, votes: Any) -> OpResult[VoteReceipt]:
        """Cast `votes` on `proposal_id` at quadratic cost."""
        who = normalize_account_id(caller)

        def apply(events: List[_PendingEvent]) -> VoteReceipt:
            receipt = self._voting.vote(who, proposal_id, votes)
            events.append((EV_VOTE_CAST, {
                "voter": who, "proposal_id": proposal_id, "votes": votes,
                "cost": receipt.cost, "remaining_credits": receipt.remaining_credits,
            }))
            return receipt

        return self._run(
            "vote", who, apply,
            on_commit=lambda receipt: self.metrics.observe_vote_cost(receipt.cost),
        )

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get_user(self, account: Any) -> OpResult[Dict[str, int]]:
        """`{"deposited", "credits"}`; zero-valued for unknown identities."""
        who = normalize_account_id(account)
        with self._lock:
            return OpResult.ok(self._accounts.get_account(who).to_public())

    def get_proposal(self, proposal_id: Any) -> OpResult[Dict[str, Any]]:
        """`{"description", "total_votes"}` or ProposalNotFound."""
        with self._lock:
            try:
                return OpResult.ok(self._proposals.get_proposal(proposal_id).to_public())
            except LedgerError as exc:
                return OpResult.err(exc)

    def get_total_liquidity(self) -> int:
        with self._lock:
            return self._liquidity.total()

    def quote_vote(self, caller: Any, proposal_id: Any, votes: Any) -> OpResult[int]:
        """The cost `vote` would charge right now, with the same checks."""
        who = normalize_account_id(caller)
        with self._lock:
            try:
                return OpResult.ok(self._voting.quote(who, proposal_id, votes))
            except LedgerError as exc:
                return OpResult.err(exc)

    def get_votes_cast(self, account: Any, proposal_id: int) -> int:
        who = normalize_account_id(account)
        with self._lock:
            return self._journal.get_votes_cast(who, proposal_id)

    def get_next_proposal_id(self) -> int:
        with self._lock:
            return self._journal.next_proposal_id

    def list_proposals(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [{"id": p.id, **p.to_public()} for p in self._proposals.iter_proposals()]

    @property
    def events(self) -> Tuple[LedgerEvent, ...]:
        """Committed events, oldest first (bounded by `config.max_events`)."""
        with self._lock:
            return tuple(self._events)

    # ------------------------------------------------------------------ #
    # Consistency & snapshots
    # ------------------------------------------------------------------ #

    def check_invariants(self) -> List[str]:
        with self._lock:
            return check_invariants(
                self._state,
                bits=self.config.uint_bits,
                max_description_bytes=self.config.max_description_bytes,
            )

    def export_snapshot(self) -> bytes:
        with self._lock:
            return encode_state(self._state)

    def state_root(self) -> bytes:
        with self._lock:
            return state_root(self._state)

    @classmethod
    def from_snapshot(
        cls,
        data: bytes,
        config: Optional[LedgerConfig] = None,
        *,
        metrics: Optional[LedgerMetrics] = None,
    ) -> "QuadraticVotingLedger":
        """Rebuild a ledger from `export_snapshot()` bytes; SnapshotError if invalid."""
        cfg = config if config is not None else load_config()
        state = decode_state(
            data, bits=cfg.uint_bits, max_description_bytes=cfg.max_description_bytes
        )
        return cls(cfg, state=state, metrics=metrics)


__all__ = ["QuadraticVotingLedger"]
