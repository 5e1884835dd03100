"""
qvledger.config — numeric width, description caps, pricing mode and logging knobs.

Configuration precedence:
  1) Explicit `LedgerConfig(...)` / `cfg.replace(...)` from the host
  2) Environment variables (QVLEDGER_*)
  3) Hardcoded safe defaults below

Key env vars:
  - QVLEDGER_UINT_BITS               (int)    default: 128   (clamped 8..256)
  - QVLEDGER_MAX_DESCRIPTION_BYTES   (int)    default: 256   (clamped 1..65536)
  - QVLEDGER_VOTE_PRICING            (str)    default: marginal   (marginal|independent)
  - QVLEDGER_VERIFY_INVARIANTS       (bool)   default: false
  - QVLEDGER_MAX_EVENTS              (int)    default: 10_000 (0 = unbounded)
  - QVLEDGER_LOG_LEVEL               (str)    default: INFO
  - QVLEDGER_LOG_FORMAT              (str)    default: text  (text|json)

Usage:
    from qvledger.config import load_config
    cfg = load_config()
    strict = cfg.replace(verify_invariants=True)
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, replace as _dc_replace
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigError


# ----------------------------- helpers ---------------------------------------

_BOOL_TRUE = {"1", "true", "t", "yes", "y", "on"}
_BOOL_FALSE = {"0", "false", "f", "no", "n", "off"}


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    if val in _BOOL_TRUE:
        return True
    if val in _BOOL_FALSE:
        return False
    return default


def _env_int(env: Mapping[str, str], name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = env.get(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_str(env: Mapping[str, str], name: str, default: str) -> str:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


# ------------------------------- pricing -------------------------------------


class VotePricing(str, Enum):
    """
    How a vote call is priced.

    MARGINAL    : cumulative per (account, proposal); a call adding `new` votes on
                  top of `prior` costs (prior + new)^2 - prior^2.
    INDEPENDENT : every call costs new^2 against current credits.
    """
    MARGINAL = "marginal"
    INDEPENDENT = "independent"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value

    @classmethod
    def from_str(cls, s: str) -> "VotePricing":
        norm = s.strip().lower().replace("-", "_")
        if norm in {"marginal", "cumulative", "quadratic_cumulative"}:
            return cls.MARGINAL
        if norm in {"independent", "per_call", "simple"}:
            return cls.INDEPENDENT
        raise ConfigError(f"unknown vote pricing: {s!r}", data={"value": s})


# ------------------------------- config --------------------------------------

MIN_UINT_BITS = 8
MAX_UINT_BITS = 256


@dataclass(frozen=True)
class LedgerConfig:
    # Numeric envelope for every balance, tally and counter
    uint_bits: int = 128

    # Proposal descriptions are opaque bytes of length 1..max_description_bytes
    max_description_bytes: int = 256

    vote_pricing: VotePricing = VotePricing.MARGINAL

    # Re-check conservation & friends after every commit (O(accounts) per op)
    verify_invariants: bool = False

    # Bound on the in-memory committed event log (0 = unbounded)
    max_events: int = 10_000

    log_level: str = "INFO"
    log_json: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.vote_pricing, str) and not isinstance(self.vote_pricing, VotePricing):
            object.__setattr__(self, "vote_pricing", VotePricing.from_str(self.vote_pricing))
        if not isinstance(self.uint_bits, int) or not MIN_UINT_BITS <= self.uint_bits <= MAX_UINT_BITS:
            raise ConfigError(
                f"uint_bits must be in [{MIN_UINT_BITS}, {MAX_UINT_BITS}]",
                data={"uint_bits": self.uint_bits},
            )
        if not isinstance(self.max_description_bytes, int) or self.max_description_bytes < 1:
            raise ConfigError("max_description_bytes must be >= 1",
                              data={"max_description_bytes": self.max_description_bytes})
        if not isinstance(self.max_events, int) or self.max_events < 0:
            raise ConfigError("max_events must be >= 0", data={"max_events": self.max_events})

    @property
    def uint_max(self) -> int:
        return (1 << self.uint_bits) - 1

    def replace(self, **changes: Any) -> "LedgerConfig":
        """Return a copy with `changes` applied (validated again)."""
        return _dc_replace(self, **changes)

    def as_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["vote_pricing"] = self.vote_pricing.value
        return out


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> LedgerConfig:
    """
    Build a LedgerConfig from `os.environ` (or an explicit mapping, for tests).
    Out-of-range integers are clamped; an unknown pricing name raises ConfigError.
    """
    env = os.environ if environ is None else environ
    return LedgerConfig(
        uint_bits=_env_int(env, "QVLEDGER_UINT_BITS", 128, min_v=MIN_UINT_BITS, max_v=MAX_UINT_BITS),
        max_description_bytes=_env_int(env, "QVLEDGER_MAX_DESCRIPTION_BYTES", 256, min_v=1, max_v=65_536),
        vote_pricing=VotePricing.from_str(_env_str(env, "QVLEDGER_VOTE_PRICING", "marginal")),
        verify_invariants=_env_bool(env, "QVLEDGER_VERIFY_INVARIANTS", False),
        max_events=_env_int(env, "QVLEDGER_MAX_EVENTS", 10_000, min_v=0, max_v=10_000_000),
        log_level=_env_str(env, "QVLEDGER_LOG_LEVEL", "INFO").upper(),
        log_json=_env_str(env, "QVLEDGER_LOG_FORMAT", "text").lower() == "json",
    )


@lru_cache(maxsize=1)
def load_config() -> LedgerConfig:
    """
    Build and cache a LedgerConfig from environment + safe defaults.
    """
    return config_from_env()


__all__ = [
    "VotePricing",
    "LedgerConfig",
    "MIN_UINT_BITS",
    "MAX_UINT_BITS",
    "config_from_env",
    "load_config",
]
