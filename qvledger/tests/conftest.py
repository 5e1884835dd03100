import pytest

from qvledger.config import LedgerConfig, VotePricing
from qvledger.metrics import LedgerMetrics
from qvledger.runtime.engine import QuadraticVotingLedger
from qvledger.state.journal import Journal
from qvledger.state.store import LedgerState


@pytest.fixture
def strict_config() -> LedgerConfig:
    return LedgerConfig(verify_invariants=True, vote_pricing=VotePricing.MARGINAL)


@pytest.fixture
def ledger(strict_config: LedgerConfig) -> QuadraticVotingLedger:
    return QuadraticVotingLedger(strict_config, metrics=LedgerMetrics())


@pytest.fixture
def independent_ledger(strict_config: LedgerConfig) -> QuadraticVotingLedger:
    return QuadraticVotingLedger(
        strict_config.replace(vote_pricing=VotePricing.INDEPENDENT), metrics=LedgerMetrics()
    )


@pytest.fixture
def journal() -> Journal:
    return Journal(LedgerState())
