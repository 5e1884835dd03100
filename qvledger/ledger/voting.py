"""
qvledger.ledger.voting — quadratic vote pricing and casting.

Pricing
-------
Casting `v` votes on a proposal costs `v²` credits. How repeat votes by the
same account on the same proposal are priced depends on `VotePricing`:

  MARGINAL     cost = (prior + v)² - prior², where `prior` is the cumulative
               number of votes this account already cast on the proposal.
               Computed as v * (2*prior + v): no intermediate exceeds the
               cost itself, so Overflow means the cost does not fit.
               Splitting a vote into several calls never makes it cheaper.
  INDEPENDENT  cost = v² per call, regardless of history.

Both charge exactly `v²` for an account's first vote on a proposal, and both
keep the `votes_cast` tally current.

Validation order
----------------
1. votes is a positive uint          else InvalidVoteCount
2. the proposal exists               else ProposalNotFound
3. cost fits the uint width          else Overflow
4. cost <= caller's credits          else InsufficientCredits
Only then is anything written: credits -= cost, total_votes += v, tally += v.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config import VotePricing
from ..errors import InsufficientCredits, InvalidVoteCount
from ..math import safe_uint
from ..state.accounts import AccountId
from ..state.journal import Journal
from ..types.result import VoteReceipt
from .proposals import ProposalRegistry

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Plan:
    proposal_id: int
    votes: int
    cost: int
    credits_after: int
    total_votes_after: int
    cast_after: int


class VotingEngine:
    def __init__(self, journal: Journal, proposals: ProposalRegistry, *,
                 bits: int = safe_uint.DEFAULT_BITS,
                 pricing: VotePricing = VotePricing.MARGINAL) -> None:
        self._j = journal
        self._proposals = proposals
        self._bits = bits
        self.pricing = VotePricing(pricing)

    def price(self, prior: int, votes: int) -> int:
        """Credits charged for `votes` new votes on top of `prior` (checked)."""
        b = self._bits
        if self.pricing is VotePricing.INDEPENDENT or prior == 0:
            return safe_uint.square(votes, bits=b)
        step = safe_uint.add(safe_uint.add(prior, prior, bits=b), votes, bits=b)
        return safe_uint.mul(votes, step, bits=b)

    def _plan(self, account: AccountId, proposal_id: object, votes: object) -> _Plan:
        b = self._bits
        if not safe_uint.is_uint(votes, bits=b) or votes == 0:
            raise InvalidVoteCount(votes=repr(votes))
        proposal = self._proposals.get_proposal(proposal_id)
        prior = self._j.get_votes_cast(account, proposal.id)

        cost = self.price(prior, votes)  # type: ignore[arg-type]
        credits = self._j.get_account(account).credits
        if cost > credits:
            raise InsufficientCredits(cost=cost, credits=credits)

        return _Plan(
            proposal_id=proposal.id,
            votes=votes,  # type: ignore[arg-type]
            cost=cost,
            credits_after=safe_uint.sub(credits, cost, bits=b),
            total_votes_after=safe_uint.add(proposal.total_votes, votes, bits=b),  # type: ignore[arg-type]
            cast_after=safe_uint.add(prior, votes, bits=b),  # type: ignore[arg-type]
        )

    def quote(self, account: AccountId, proposal_id: object, votes: object) -> int:
        """Cost `vote` would charge right now; same validation, no writes."""
        return self._plan(account, proposal_id, votes).cost

    def vote(self, account: AccountId, proposal_id: object, votes: object) -> VoteReceipt:
        plan = self._plan(account, proposal_id, votes)

        acc = self._j.account_for_write(account)
        acc.credits = plan.credits_after
        self._proposals.proposal_for_write(plan.proposal_id).total_votes = plan.total_votes_after
        self._j.set_votes_cast(account, plan.proposal_id, plan.cast_after)

        log.debug(
            "vote staged",
            extra={"proposal_id": plan.proposal_id, "votes": plan.votes, "cost": plan.cost},
        )
        return VoteReceipt(cost=plan.cost, remaining_credits=plan.credits_after)


__all__ = ["VotingEngine"]
