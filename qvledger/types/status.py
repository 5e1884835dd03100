"""
qvledger.types.status — canonical operation status enum.

OpStatus models the *logical* outcome of a ledger operation:
  - OK  : the operation committed
  - ERR : the operation was rejected and the state is unchanged

String forms:
  - str(OpStatus.OK) -> "ok"     (good for logs/metrics labels)
  - OpStatus.OK.code -> "OK"     (good for result envelopes)
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class OpStatus(str, Enum):
    OK = "ok"
    ERR = "err"

    @property
    def code(self) -> str:
        return self.value.upper()

    @property
    def is_ok(self) -> bool:
        return self is OpStatus.OK

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value

    @classmethod
    def from_str(cls, s: str, *, default: Optional["OpStatus"] = None) -> "OpStatus":
        """
        Parse a status from a string (case-insensitive).

        Accepted values:
          - ok : "ok", "success", "committed"
          - err: "err", "error", "rejected", "fail", "failed"
        """
        norm = (s or "").strip().lower()
        if norm in {"ok", "success", "committed"}:
            return cls.OK
        if norm in {"err", "error", "rejected", "fail", "failed"}:
            return cls.ERR
        if default is not None:
            return default
        raise ValueError(f"unknown OpStatus: {s!r}")


__all__ = ["OpStatus"]
