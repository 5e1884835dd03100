# -*- coding: utf-8 -*-
"""
qvledger.math.safe_uint
=======================

Checked unsigned-integer helpers for every balance, tally and counter in the
ledger.

Goals
-----
- Fixed-width unsigned arithmetic (default **U128**, the width of an on-chain
  `uint`) on top of Python's unbounded ints.
- Two styles of safety:
  1) **Checked**: raise `Overflow` / `Underflow` on a boundary violation.
  2) **try_***: return `None` instead of raising.
- Never saturate, never wrap, never produce a negative value.

Conventions
-----------
- `bits` is keyword-only and defaults to `DEFAULT_BITS`.
- Inputs are validated to the domain `[0, uint_max(bits)]`; a value outside
  that domain is a programming error and raises `ValueError` (callers that
  accept untrusted input validate with `is_uint` first and map to their own
  error kind).
- `bool` is rejected even though it is an `int` subclass.
"""

from __future__ import annotations

from typing import Final, Optional

from ..errors import Overflow, Underflow

DEFAULT_BITS: Final[int] = 128

U64_MAX: Final[int] = (1 << 64) - 1
U128_MAX: Final[int] = (1 << 128) - 1
U256_MAX: Final[int] = (1 << 256) - 1


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------

def uint_max(bits: int = DEFAULT_BITS) -> int:
    """Largest representable value for a `bits`-wide unsigned integer."""
    if bits <= 0:
        raise ValueError("bits must be positive")
    return (1 << bits) - 1


def is_uint(x: object, *, bits: int = DEFAULT_BITS) -> bool:
    """True iff `x` is a non-bool int in [0, uint_max(bits)]."""
    return isinstance(x, int) and not isinstance(x, bool) and 0 <= x <= uint_max(bits)


def require_uint(*xs: int, bits: int = DEFAULT_BITS) -> None:
    """Raise ValueError if any value is outside [0, uint_max(bits)]."""
    for n in xs:
        if not is_uint(n, bits=bits):
            raise ValueError(f"value outside u{bits} domain: {n!r}")


# ---------------------------------------------------------------------------
# Checked (fail-fast on errors)
# ---------------------------------------------------------------------------

def add(a: int, b: int, *, bits: int = DEFAULT_BITS) -> int:
    """Checked add: raise Overflow if a + b > uint_max(bits)."""
    require_uint(a, b, bits=bits)
    s = a + b
    if s > uint_max(bits):
        raise Overflow(op="add", a=a, b=b, bits=bits)
    return s


def sub(a: int, b: int, *, bits: int = DEFAULT_BITS) -> int:
    """Checked sub: raise Underflow if b > a."""
    require_uint(a, b, bits=bits)
    if b > a:
        raise Underflow(op="sub", a=a, b=b, bits=bits)
    return a - b


def mul(a: int, b: int, *, bits: int = DEFAULT_BITS) -> int:
    """Checked multiply: raise Overflow if a * b > uint_max(bits)."""
    require_uint(a, b, bits=bits)
    p = a * b
    if p > uint_max(bits):
        raise Overflow(op="mul", a=a, b=b, bits=bits)
    return p


def square(a: int, *, bits: int = DEFAULT_BITS) -> int:
    """Checked a * a; the quadratic vote price."""
    return mul(a, a, bits=bits)


# ---------------------------------------------------------------------------
# "try_*" convenience (no raise; return Optional[int])
# ---------------------------------------------------------------------------

def try_add(a: int, b: int, *, bits: int = DEFAULT_BITS) -> Optional[int]:
    """Return a+b or None on overflow/out-of-domain input."""
    if not (is_uint(a, bits=bits) and is_uint(b, bits=bits)):
        return None
    s = a + b
    return s if s <= uint_max(bits) else None


def try_sub(a: int, b: int, *, bits: int = DEFAULT_BITS) -> Optional[int]:
    """Return a-b or None on underflow/out-of-domain input."""
    if not (is_uint(a, bits=bits) and is_uint(b, bits=bits)):
        return None
    return a - b if a >= b else None


def try_mul(a: int, b: int, *, bits: int = DEFAULT_BITS) -> Optional[int]:
    """Return a*b or None on overflow/out-of-domain input."""
    if not (is_uint(a, bits=bits) and is_uint(b, bits=bits)):
        return None
    p = a * b
    return p if p <= uint_max(bits) else None


# ---------------------------------------------------------------------------
# Public exports
# ---------------------------------------------------------------------------

__all__ = [
    "DEFAULT_BITS", "U64_MAX", "U128_MAX", "U256_MAX",
    "uint_max", "is_uint", "require_uint",
    "add", "sub", "mul", "square",
    "try_add", "try_sub", "try_mul",
]
