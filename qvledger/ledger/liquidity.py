"""
qvledger.ledger.liquidity — the global liquidity counter.

`total_liquidity` is the running sum of every account's `deposited`. It moves
only through deposit (increase) and withdraw (decrease), by exactly the moved
amount, and always through checked arithmetic.
"""

from __future__ import annotations

from ..math import safe_uint
from ..state.journal import Journal


class LiquidityCounter:
    def __init__(self, journal: Journal, *, bits: int = safe_uint.DEFAULT_BITS) -> None:
        self._j = journal
        self._bits = bits

    def total(self) -> int:
        return self._j.total_liquidity

    def increase(self, amount: int) -> int:
        """Add `amount`; raises Overflow. Returns the new total."""
        new = safe_uint.add(self._j.total_liquidity, amount, bits=self._bits)
        self._j.set_total_liquidity(new)
        return new

    def decrease(self, amount: int) -> int:
        """Subtract `amount`; raises Underflow. Returns the new total."""
        new = safe_uint.sub(self._j.total_liquidity, amount, bits=self._bits)
        self._j.set_total_liquidity(new)
        return new


__all__ = ["LiquidityCounter"]
