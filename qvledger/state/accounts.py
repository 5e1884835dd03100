"""
qvledger.state.accounts — Account records and identity helpers.

An Account holds three fields:

- deposited: withdrawable value currently backing the account (µ-units)
- credits:   quadratic-voting credits currently spendable
- minted:    cumulative credits ever minted for the account (1:1 with deposits)

`minted` only grows and is not bounded by the ledger width; it backs the
invariant `credits <= minted`. The public `get_user` shape exposes `deposited`
and `credits` only.

Accounts are never deleted. An unknown identity reads as the zero account and
is only materialized by the first committed deposit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Union

AccountId = Union[str, bytes]


def _ensure_uint(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return value


def normalize_account_id(account: Any) -> AccountId:
    """
    Validate a caller identity supplied by the host.

    Identities are opaque: non-empty `str` or bytes-like. bytes-likes are
    frozen to `bytes` so they hash stably.
    """
    if isinstance(account, str):
        if not account:
            raise ValueError("account id must be non-empty")
        return account
    if isinstance(account, (bytes, bytearray, memoryview)):
        b = bytes(account)
        if not b:
            raise ValueError("account id must be non-empty")
        return b
    raise TypeError(f"account id must be str or bytes, got {type(account).__name__}")


@dataclass(slots=True)
class Account:
    """
    A minimal account record.

    Invariants:
    - all fields are non-negative ints
    - credits <= minted
    """
    deposited: int = 0
    credits: int = 0
    minted: int = 0

    def __post_init__(self) -> None:
        self.deposited = _ensure_uint("deposited", self.deposited)
        self.credits = _ensure_uint("credits", self.credits)
        self.minted = _ensure_uint("minted", self.minted)

    def copy(self) -> "Account":
        return Account(deposited=self.deposited, credits=self.credits, minted=self.minted)

    @property
    def is_zero(self) -> bool:
        return self.deposited == 0 and self.credits == 0 and self.minted == 0

    # ----------------------- (de)serialization ----------------------------- #

    def to_public(self) -> Dict[str, int]:
        """The read-only `get_user` view."""
        return {"deposited": self.deposited, "credits": self.credits}

    def to_dict(self) -> Dict[str, int]:
        return {"deposited": self.deposited, "credits": self.credits, "minted": self.minted}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        try:
            return cls(
                deposited=data["deposited"],
                credits=data["credits"],
                minted=data.get("minted", data["credits"]),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"bad account dict: {e}") from e


__all__ = ["Account", "AccountId", "normalize_account_id"]
