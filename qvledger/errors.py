"""
qvledger.errors — typed failures for the quadratic-voting ledger.

Ledger operations communicate failures via *typed exceptions* internally; the
runtime engine converts them into `OpResult` values at the public boundary so
no exception-style unwinding reaches callers.

Hierarchy
---------
LedgerError (base)
 ├─ InvalidAmount          (100) : deposit/withdraw amount is zero or not a uint
 ├─ ProposalNotFound       (101) : proposal id was never assigned
 ├─ InsufficientCredits    (102) : vote cost exceeds spendable credits
 ├─ InsufficientLiquidity  (103) : withdraw exceeds deposited balance
 ├─ InvalidVoteCount       (104) : votes is zero or not a uint
 ├─ InvalidDescription     (105) : description empty, too long or not bytes
 ├─ Overflow               (106) : checked add/mul exceeded the uint width
 ├─ Underflow              (107) : checked sub would go negative
 │
 ├─ UnknownFunction              : dispatcher got a function name it does not route
 ├─ InvariantViolation           : post-commit check failed (a bug, never a rejection)
 ├─ SnapshotError                : malformed or inconsistent snapshot bytes
 └─ ConfigError                  : invalid explicit configuration value

Numeric codes 102 and 103 are the ones existing on-chain clients branch on;
the rest of the scheme is stable and documented here. Host errors carry no
numeric code and are allowed to propagate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Type


@dataclass(eq=False)
class LedgerError(Exception):
    """
    Base ledger error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'INSUFFICIENT_CREDITS').
        data:    Optional structured details (kept JSON-serializable).
    """
    message: str = "ledger error"
    code: str = "LEDGER_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    # Numeric identifier surfaced to callers; None for host/programming errors.
    numeric_code = None  # type: Optional[int]

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for results/logs."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.numeric_code is not None:
            out["errno"] = self.numeric_code
        if self.data is not None:
            out["data"] = self.data
        return out


class _CodedError(LedgerError):
    """
    Common constructor for the ledger failure kinds: keyword details are folded
    into `data`, so call sites can write `raise InsufficientCredits(cost=25, credits=16)`.
    """
    CODE = "LEDGER_ERROR"
    DEFAULT_MESSAGE = "ledger error"

    def __init__(self, message: Optional[str] = None, *, data: Optional[Dict[str, Any]] = None, **fields: Any):
        d: Dict[str, Any] = {}
        if data:
            d.update(data)
        d.update(fields)
        super().__init__(message=message or self.DEFAULT_MESSAGE, code=self.CODE, data=d or None)


# -------- caller input --------------------------------------------------------

class InvalidAmount(_CodedError):
    """Deposit/withdraw amount is zero, negative, non-int or wider than the uint."""
    CODE = "INVALID_AMOUNT"
    DEFAULT_MESSAGE = "amount must be a positive uint"
    numeric_code = 100


class InvalidVoteCount(_CodedError):
    """Vote count is zero, negative, non-int or wider than the uint."""
    CODE = "INVALID_VOTE_COUNT"
    DEFAULT_MESSAGE = "votes must be a positive uint"
    numeric_code = 104


class InvalidDescription(_CodedError):
    """Proposal description is empty, too long, or not a byte string."""
    CODE = "INVALID_DESCRIPTION"
    DEFAULT_MESSAGE = "invalid proposal description"
    numeric_code = 105


# -------- referential / business rules ----------------------------------------

class ProposalNotFound(_CodedError):
    CODE = "PROPOSAL_NOT_FOUND"
    DEFAULT_MESSAGE = "proposal not found"
    numeric_code = 101


class InsufficientCredits(_CodedError):
    CODE = "INSUFFICIENT_CREDITS"
    DEFAULT_MESSAGE = "insufficient credits"
    numeric_code = 102


class InsufficientLiquidity(_CodedError):
    CODE = "INSUFFICIENT_LIQUIDITY"
    DEFAULT_MESSAGE = "insufficient liquidity"
    numeric_code = 103


# -------- arithmetic ------------------------------------------------------------

class Overflow(_CodedError):
    """Checked add/mul result exceeds the configured uint width. Never saturates."""
    CODE = "OVERFLOW"
    DEFAULT_MESSAGE = "uint overflow"
    numeric_code = 106


class Underflow(_CodedError):
    """Checked subtract with b > a. Never wraps."""
    CODE = "UNDERFLOW"
    DEFAULT_MESSAGE = "uint underflow"
    numeric_code = 107


# -------- host / programming errors (propagate) ---------------------------------

class UnknownFunction(LedgerError):
    """Raised by the dispatcher for a function name it cannot route."""
    def __init__(self, function: str):
        super().__init__(message=f"unknown function {function!r}", code="UNKNOWN_FUNCTION",
                         data={"function": function})


class InvariantViolation(LedgerError):
    """A ledger invariant failed after commit. Always a bug."""
    def __init__(self, message: str = "invariant violated", *, violations: Optional[list] = None):
        super().__init__(message=message, code="INVARIANT_VIOLATION",
                         data={"violations": list(violations)} if violations else None)


class SnapshotError(LedgerError):
    """Snapshot bytes are malformed or describe an inconsistent state."""
    def __init__(self, message: str = "bad snapshot", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="SNAPSHOT_ERROR", data=data)


class ConfigError(LedgerError):
    def __init__(self, message: str = "bad configuration", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="CONFIG_ERROR", data=data)


# Numeric code -> error class, for callers that branch on codes.
ERROR_CODES: Dict[int, Type[LedgerError]] = {
    cls.numeric_code: cls  # type: ignore[misc]
    for cls in (
        InvalidAmount,
        ProposalNotFound,
        InsufficientCredits,
        InsufficientLiquidity,
        InvalidVoteCount,
        InvalidDescription,
        Overflow,
        Underflow,
    )
}


def error_for_code(errno: int) -> Type[LedgerError]:
    """Map a numeric ledger code back to its error class; KeyError if unknown."""
    return ERROR_CODES[int(errno)]


__all__ = [
    "LedgerError",
    "InvalidAmount",
    "InvalidVoteCount",
    "InvalidDescription",
    "ProposalNotFound",
    "InsufficientCredits",
    "InsufficientLiquidity",
    "Overflow",
    "Underflow",
    "UnknownFunction",
    "InvariantViolation",
    "SnapshotError",
    "ConfigError",
    "ERROR_CODES",
    "error_for_code",
]
