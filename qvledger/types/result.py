"""
qvledger.types.result — result containers for ledger operations.

`OpResult` is the value every public ledger operation returns. Failures are
data, not exceptions: a rejected operation yields `status=ERR` and an
`ErrorInfo` carrying the stable numeric code callers branch on.

Fields
------
* status : OpStatus                — OK / ERR
* value  : Any                     — operation payload on success, None on failure
* error  : Optional[ErrorInfo]     — populated iff status is ERR
* events : tuple[LedgerEvent, ...] — events committed by this operation

Utilities
---------
* `OpResult.ok(value, events=...)` / `OpResult.err(exc)` constructors.
* `.unwrap()` returns the value or re-raises the typed `LedgerError`.
* `.to_dict()` for JSON-friendly conversion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterable, Optional, Tuple, TypeVar

from ..errors import ERROR_CODES, LedgerError
from .events import LedgerEvent
from .status import OpStatus

T = TypeVar("T")


@dataclass(frozen=True)
class ErrorInfo:
    """Serializable view of a ledger failure."""

    code: str
    name: str
    message: str
    errno: Optional[int] = None
    data: Optional[Dict[str, Any]] = None

    @classmethod
    def from_exc(cls, exc: LedgerError) -> "ErrorInfo":
        return cls(
            code=exc.code,
            name=type(exc).__name__,
            message=exc.message,
            errno=exc.numeric_code,
            data=dict(exc.data) if exc.data else None,
        )

    def to_exc(self) -> LedgerError:
        """Rebuild the typed exception (used by `OpResult.unwrap`)."""
        if self.errno is not None and self.errno in ERROR_CODES:
            return ERROR_CODES[self.errno](self.message, data=self.data)
        return LedgerError(message=self.message, code=self.code, data=self.data)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": self.code, "name": self.name, "message": self.message}
        if self.errno is not None:
            out["errno"] = self.errno
        if self.data:
            out["data"] = dict(self.data)
        return out


@dataclass(frozen=True)
class VoteReceipt:
    """Success payload of `vote`: credits charged and credits left."""

    cost: int
    remaining_credits: int

    def to_dict(self) -> Dict[str, int]:
        return {"cost": self.cost, "remaining_credits": self.remaining_credits}


@dataclass(frozen=True)
class OpResult(Generic[T]):
    status: OpStatus
    value: Optional[T] = None
    error: Optional[ErrorInfo] = None
    events: Tuple[LedgerEvent, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.status is OpStatus.OK and self.error is not None:
            raise ValueError("OK result must not carry an error")
        if self.status is OpStatus.ERR and self.error is None:
            raise ValueError("ERR result must carry an error")
        if not isinstance(self.events, tuple):
            object.__setattr__(self, "events", tuple(self.events))

    # ----------------------------- constructors ------------------------------

    @classmethod
    def ok(cls, value: T, *, events: Iterable[LedgerEvent] = ()) -> "OpResult[T]":
        return cls(status=OpStatus.OK, value=value, events=tuple(events))

    @classmethod
    def err(cls, exc: LedgerError) -> "OpResult[T]":
        return cls(status=OpStatus.ERR, error=ErrorInfo.from_exc(exc))

    # ----------------------------- conveniences ------------------------------

    @property
    def is_ok(self) -> bool:
        return self.status.is_ok

    @property
    def errno(self) -> Optional[int]:
        return self.error.errno if self.error is not None else None

    def unwrap(self) -> T:
        """Return the success value, or raise the typed error."""
        if self.error is not None:
            raise self.error.to_exc()
        return self.value  # type: ignore[return-value]

    def to_dict(self) -> Dict[str, Any]:
        value = self.value.to_dict() if hasattr(self.value, "to_dict") else self.value
        out: Dict[str, Any] = {"status": str(self.status), "value": value}
        if self.error is not None:
            out["error"] = self.error.to_dict()
        if self.events:
            out["events"] = [ev.to_dict() for ev in self.events]
        return out

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        if self.error is not None:
            return f"OpResult(err={self.error.name}, errno={self.error.errno})"
        return f"OpResult(ok={self.value!r}, events={len(self.events)})"


__all__ = ["ErrorInfo", "VoteReceipt", "OpResult"]
