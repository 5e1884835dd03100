"""
qvledger.runtime.dispatcher — route named calls to the ledger, and batches.

Hosts that receive calls as data (a function name plus positional args, the
way contract calls arrive) use this instead of calling methods directly:

  deposit-liquidity   (amount)                → deposit_liquidity
  withdraw-liquidity  (amount)                → withdraw_liquidity
  create-proposal     (description)           → create_proposal
  vote                (proposal_id, votes)    → vote
  get-user            (account)               → get_user
  get-proposal        (proposal_id)           → get_proposal
  get-total-liquidity ()                      → get_total_liquidity

Names are case-insensitive and `_` is accepted in place of `-`. An unknown
name, or the wrong number of arguments, is a host error and raises.

`apply_batch` applies calls serially in the given order. Each call is its own
atomic operation; a rejected call does not undo earlier ones.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Sequence, Tuple

from ..errors import UnknownFunction
from ..types.result import OpResult
from .engine import QuadraticVotingLedger

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Call:
    caller: Any
    function: str
    args: Tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.args, tuple):
            object.__setattr__(self, "args", tuple(self.args))


def _deposit(ledger: QuadraticVotingLedger, call: Call) -> OpResult:
    return ledger.deposit_liquidity(call.caller, *call.args)


def _withdraw(ledger: QuadraticVotingLedger, call: Call) -> OpResult:
    return ledger.withdraw_liquidity(call.caller, *call.args)


def _create(ledger: QuadraticVotingLedger, call: Call) -> OpResult:
    return ledger.create_proposal(call.caller, *call.args)


def _vote(ledger: QuadraticVotingLedger, call: Call) -> OpResult:
    return ledger.vote(call.caller, *call.args)


def _get_user(ledger: QuadraticVotingLedger, call: Call) -> OpResult:
    return ledger.get_user(*call.args)


def _get_proposal(ledger: QuadraticVotingLedger, call: Call) -> OpResult:
    return ledger.get_proposal(*call.args)


def _get_total(ledger: QuadraticVotingLedger, call: Call) -> OpResult:
    return OpResult.ok(ledger.get_total_liquidity())


# name -> (handler, arity)
_ROUTES: Dict[str, Tuple[Callable[[QuadraticVotingLedger, Call], OpResult], int]] = {
    "deposit-liquidity": (_deposit, 1),
    "withdraw-liquidity": (_withdraw, 1),
    "create-proposal": (_create, 1),
    "vote": (_vote, 2),
    "get-user": (_get_user, 1),
    "get-proposal": (_get_proposal, 1),
    "get-total-liquidity": (_get_total, 0),
}

FUNCTIONS = tuple(_ROUTES)


def resolve_function(name: str) -> str:
    """Canonical (dashed) function name, or UnknownFunction."""
    if not isinstance(name, str):
        raise UnknownFunction(repr(name))
    norm = name.strip().lower().replace("_", "-")
    if norm not in _ROUTES:
        raise UnknownFunction(name)
    return norm


def dispatch(ledger: QuadraticVotingLedger, call: Call) -> OpResult:
    name = resolve_function(call.function)
    handler, arity = _ROUTES[name]
    if len(call.args) != arity:
        raise TypeError(f"{name} takes {arity} argument(s), got {len(call.args)}")
    return handler(ledger, call)


@dataclass
class BatchReport:
    """Summary returned by `apply_batch`."""
    results: List[OpResult] = field(default_factory=list)
    success_count: int = 0
    failure_count: int = 0
    stopped_early: bool = False

    @property
    def all_ok(self) -> bool:
        return self.failure_count == 0 and not self.stopped_early


def apply_batch(
    ledger: QuadraticVotingLedger,
    calls: Iterable[Call],
    *,
    stop_on_error: bool = False,
) -> BatchReport:
    """
    Apply `calls` one by one, in order. With `stop_on_error`, the batch stops
    at the first rejected call; results cover the calls actually applied.
    """
    report = BatchReport()
    seq: Sequence[Call] = list(calls)
    for i, call in enumerate(seq):
        res = dispatch(ledger, call)
        report.results.append(res)
        if res.is_ok:
            report.success_count += 1
            continue
        report.failure_count += 1
        if stop_on_error:
            report.stopped_early = i < len(seq) - 1
            log.debug("batch stopped", extra={"index": i, "errno": res.errno})
            break
    return report


__all__ = ["Call", "FUNCTIONS", "resolve_function", "dispatch", "BatchReport", "apply_batch"]
