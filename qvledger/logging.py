"""
qvledger.logging
----------------

Structured logging for the ledger and its hosts:
- JSON or concise (optionally colored) text output
- Context-local fields via `contextvars` (op, caller, proposal_id, trace_id)
- Safe value coercion (bytes → hex, dataclasses → dicts)

Usage
-----
    from qvledger import logging as qlog

    qlog.configure(json=False, level="DEBUG")      # once, by the host
    with qlog.op_scope("vote", caller="alice"):
        ...                                        # every record carries op= and caller=

Library modules never configure logging themselves; they only do
`log = logging.getLogger(__name__)`.
"""

from __future__ import annotations

import datetime as _dt
import io
import json
import logging
import os
import sys
import traceback
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Iterator, Optional, Union

# ----------------------------
# Context
# ----------------------------

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("_QVLEDGER_LOG_CONTEXT", default={})

DEFAULT_CONTEXT_KEYS = ("trace_id", "op", "caller", "proposal_id")

_RECORD_FIELDS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}


def context() -> Dict[str, Any]:
    """Return a *copy* of the active logging context."""
    return dict(_LOG_CONTEXT.get())


def bind(**fields: Any) -> None:
    """Merge fields into the active context."""
    cur = dict(_LOG_CONTEXT.get())
    cur.update({k: _coerce_value(v) for k, v in fields.items()})
    _LOG_CONTEXT.set(cur)


def unbind(*keys: str) -> None:
    cur = dict(_LOG_CONTEXT.get())
    for k in keys:
        cur.pop(k, None)
    _LOG_CONTEXT.set(cur)


def clear_context() -> None:
    _LOG_CONTEXT.set({})


def short_uuid() -> str:
    return uuid.uuid4().hex[:12]


@contextmanager
def trace_scope(trace_id: Optional[str] = None) -> Iterator[str]:
    """Ensure a trace_id for the scope; restores the prior context on exit."""
    prev = dict(_LOG_CONTEXT.get())
    tid = trace_id or short_uuid()
    try:
        bind(trace_id=tid)
        yield tid
    finally:
        _LOG_CONTEXT.set(prev)


@contextmanager
def op_scope(op: str, **fields: Any) -> Iterator[None]:
    """Bind `op` (and any extra fields) for the duration of one ledger operation."""
    prev = dict(_LOG_CONTEXT.get())
    try:
        bind(op=op, **fields)
        yield
    finally:
        _LOG_CONTEXT.set(prev)


# ----------------------------
# Formatters
# ----------------------------


def _coerce_value(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str, list, dict)):
        return v
    if isinstance(v, (bytes, bytearray, memoryview)):
        return bytes(v).hex()
    if is_dataclass(v) and not isinstance(v, type):
        return asdict(v)
    return str(v)


def _utcnow_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="milliseconds")


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: _coerce_value(v)
        for k, v in record.__dict__.items()
        if not k.startswith("_") and k not in _RECORD_FIELDS
    }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _utcnow_iso(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(context())
        for k, v in _extras(record).items():
            payload.setdefault(k, v)
        if record.exc_info:
            payload["err"] = "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return json.dumps(payload, default=str, separators=(",", ":"))


_GREY = "\x1b[90m"
_RESET = "\x1b[0m"
_LEVEL_COLOR = {
    logging.DEBUG: "\x1b[90m",
    logging.INFO: "\x1b[32m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
    logging.CRITICAL: "\x1b[1m\x1b[35m",
}


def _supports_color(stream: Any) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty()) and os.environ.get("NO_COLOR") is None


class TextFormatter(logging.Formatter):
    """
    One line per record:
      2026-01-05T12:34:56.789+00:00 | DEBUG | qvledger.runtime.engine | op=vote caller=alice cost=25 | committed
    """

    def __init__(self, stream: Any = None, *, color: Optional[bool] = None):
        super().__init__()
        self._color = _supports_color(stream) if color is None else color

    def format(self, record: logging.LogRecord) -> str:
        ctx = context()
        parts = [f"{k}={ctx[k]}" for k in DEFAULT_CONTEXT_KEYS if ctx.get(k) is not None]
        parts += [f"{k}={v}" for k, v in _extras(record).items() if k not in ctx]
        fields = " ".join(parts)

        ts, lvl = _utcnow_iso(), f"{record.levelname:<5}"
        if self._color:
            ts = f"{_GREY}{ts}{_RESET}"
            lvl = f"{_LEVEL_COLOR.get(record.levelno, '')}{lvl}{_RESET}"

        line = f"{ts} | {lvl} | {record.name}"
        if fields:
            line += f" | {fields}"
        line += f" | {record.getMessage()}"
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line


# ----------------------------
# Setup
# ----------------------------


_LEVEL_TO_INT = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}


def _coerce_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    return _LEVEL_TO_INT.get(level.upper(), logging.INFO)


def configure(
    *,
    json: bool = False,
    level: Union[str, int] = "INFO",
    stream: io.TextIOBase = sys.stderr,
    logger_name: Optional[str] = None,
) -> logging.Handler:
    """
    Install a single console handler on the root logger (or `logger_name`),
    replacing whatever handlers were there. Returns the handler.
    """
    target = logging.getLogger(logger_name)
    target.setLevel(_coerce_level(level))
    for h in list(target.handlers):
        target.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setLevel(_coerce_level(level))
    handler.setFormatter(JSONFormatter() if json else TextFormatter(stream))
    target.addHandler(handler)
    return handler


def configure_from_config(cfg: Any, *, stream: io.TextIOBase = sys.stderr) -> logging.Handler:
    """Configure from a `qvledger.config.LedgerConfig`."""
    return configure(json=cfg.log_json, level=cfg.log_level, stream=stream)


__all__ = [
    "context",
    "bind",
    "unbind",
    "clear_context",
    "trace_scope",
    "op_scope",
    "JSONFormatter",
    "TextFormatter",
    "configure",
    "configure_from_config",
]
