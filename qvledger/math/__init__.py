# -*- coding: utf-8 -*-
"""
qvledger.math
=============

Integer-only arithmetic for the ledger. Every mutation of a balance, tally or
counter goes through `qvledger.math.safe_uint`; raw `+`, `-` and `*` on ledger
fields are not used anywhere else in the package.
"""

from .safe_uint import (
    DEFAULT_BITS,
    U64_MAX,
    U128_MAX,
    U256_MAX,
    add,
    is_uint,
    mul,
    require_uint,
    square,
    sub,
    try_add,
    try_mul,
    try_sub,
    uint_max,
)

__all__ = [
    "DEFAULT_BITS",
    "U64_MAX",
    "U128_MAX",
    "U256_MAX",
    "uint_max",
    "is_uint",
    "require_uint",
    "add",
    "sub",
    "mul",
    "square",
    "try_add",
    "try_sub",
    "try_mul",
]
