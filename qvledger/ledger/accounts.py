"""
qvledger.ledger.accounts — the account ledger: deposit, withdraw, lookups.

Semantics
---------
- deposit(id, amount):  deposited += amount; credits += amount (1:1 mint);
                        total_liquidity += amount. Returns `amount`.
                        Overflow if deposited, credits or total_liquidity
                        would leave the uint width.
- withdraw(id, amount): deposited -= amount; total_liquidity -= amount.
                        Credits are untouched: value already spent on votes is
                        not clawed back, and value never deposited cannot be
                        withdrawn. Returns the resulting `deposited`.

Every new value is computed through `safe_uint` before anything is written, so
a failing operation stages nothing. The engine's journal revert covers the
rest.
"""

from __future__ import annotations

import logging

from ..errors import InsufficientLiquidity, InvalidAmount
from ..math import safe_uint
from ..state.accounts import Account, AccountId
from ..state.journal import Journal
from .liquidity import LiquidityCounter

log = logging.getLogger(__name__)


def _require_amount(amount: object, bits: int) -> int:
    if not safe_uint.is_uint(amount, bits=bits) or amount == 0:
        raise InvalidAmount(amount=repr(amount))
    return amount  # type: ignore[return-value]


class AccountLedger:
    def __init__(self, journal: Journal, liquidity: LiquidityCounter, *,
                 bits: int = safe_uint.DEFAULT_BITS) -> None:
        self._j = journal
        self._liquidity = liquidity
        self._bits = bits

    def get_account(self, account: AccountId) -> Account:
        """Pure read; the zero account if `account` never deposited."""
        return self._j.get_account(account)

    def deposit(self, account: AccountId, amount: object) -> int:
        amt = _require_amount(amount, self._bits)
        cur = self._j.get_account(account)

        deposited = safe_uint.add(cur.deposited, amt, bits=self._bits)
        credits = safe_uint.add(cur.credits, amt, bits=self._bits)
        # Audit counter: unbounded, never a reason to reject a deposit.
        minted = cur.minted + amt
        # Checked before the account is staged so an overflow writes nothing.
        safe_uint.add(self._liquidity.total(), amt, bits=self._bits)

        acc = self._j.account_for_write(account)
        acc.deposited, acc.credits, acc.minted = deposited, credits, minted
        self._liquidity.increase(amt)
        log.debug("deposit staged", extra={"amount": amt, "deposited": deposited})
        return amt

    def withdraw(self, account: AccountId, amount: object) -> int:
        amt = _require_amount(amount, self._bits)
        cur = self._j.get_account(account)
        if amt > cur.deposited:
            raise InsufficientLiquidity(requested=amt, deposited=cur.deposited)

        deposited = safe_uint.sub(cur.deposited, amt, bits=self._bits)
        acc = self._j.account_for_write(account)
        acc.deposited = deposited
        self._liquidity.decrease(amt)
        log.debug("withdraw staged", extra={"amount": amt, "deposited": deposited})
        return deposited


__all__ = ["AccountLedger"]
