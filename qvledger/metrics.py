"""
qvledger.metrics — Prometheus counters, gauges and histograms for the ledger.

Each `LedgerMetrics` owns its metrics on its own `CollectorRegistry` (or one
the host injects), so several ledgers can live in one process and tests never
collide on the global default registry.

Exposed metrics (prefixed with `qvledger_`):
  - ops_total{op,result}     : Counter   — operations processed by outcome
  - vote_cost_credits        : Histogram — credits charged per committed vote
  - total_liquidity          : Gauge     — current global liquidity
  - proposals                : Gauge     — proposals created so far

Labels:
  - op     ∈ {deposit, withdraw, create_proposal, vote}
  - result ∈ {ok, err}
"""

from __future__ import annotations

from typing import Iterable, Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

_PREFIX = "qvledger_"

# Vote costs are squares; buckets follow v² for v = 1, 2, 3, 5, 10, 20, 50, 100, 1000.
VOTE_COST_BUCKETS = (1, 4, 9, 25, 100, 400, 2_500, 10_000, 1_000_000)

OPS = ("deposit", "withdraw", "create_proposal", "vote")


class LedgerMetrics:
    def __init__(self, registry: Optional[CollectorRegistry] = None, *,
                 cost_buckets: Iterable[float] = VOTE_COST_BUCKETS) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.ops_total = Counter(
            _PREFIX + "ops_total",
            "Ledger operations processed (by operation and result).",
            labelnames=("op", "result"),
            registry=self.registry,
        )
        self.vote_cost = Histogram(
            _PREFIX + "vote_cost_credits",
            "Credits charged per committed vote.",
            buckets=tuple(cost_buckets),
            registry=self.registry,
        )
        self.total_liquidity = Gauge(
            _PREFIX + "total_liquidity",
            "Current global liquidity (sum of deposited balances).",
            registry=self.registry,
        )
        self.proposals = Gauge(
            _PREFIX + "proposals",
            "Number of proposals created.",
            registry=self.registry,
        )
        # Pre-create label sets so every series is exported from the start.
        for op in OPS:
            for result in ("ok", "err"):
                self.ops_total.labels(op=op, result=result)

    def observe_op(self, op: str, ok: bool) -> None:
        self.ops_total.labels(op=op, result="ok" if ok else "err").inc()

    def observe_vote_cost(self, cost: int) -> None:
        self.vote_cost.observe(float(cost))

    def set_state(self, *, total_liquidity: int, proposals: int) -> None:
        self.total_liquidity.set(float(total_liquidity))
        self.proposals.set(float(proposals))

    def sample(self, name: str, labels: Optional[dict] = None) -> Optional[float]:
        """Current value of one sample (e.g. "qvledger_ops_total"), or None."""
        return self.registry.get_sample_value(name, labels or {})

    def render(self) -> bytes:
        """Prometheus text exposition of this instance's registry."""
        return generate_latest(self.registry)

    content_type = CONTENT_TYPE_LATEST


__all__ = ["LedgerMetrics", "VOTE_COST_BUCKETS", "OPS"]
