import pytest

from qvledger.config import LedgerConfig, VotePricing, config_from_env, load_config
from qvledger.errors import ConfigError


def test_defaults():
    cfg = LedgerConfig()
    assert cfg.uint_bits == 128
    assert cfg.uint_max == (1 << 128) - 1
    assert cfg.max_description_bytes == 256
    assert cfg.vote_pricing is VotePricing.MARGINAL
    assert cfg.verify_invariants is False
    assert cfg.as_dict()["vote_pricing"] == "marginal"


def test_from_env_parses_and_clamps():
    cfg = config_from_env({
        "QVLEDGER_UINT_BITS": "999",
        "QVLEDGER_MAX_DESCRIPTION_BYTES": "34",
        "QVLEDGER_VOTE_PRICING": "Independent",
        "QVLEDGER_VERIFY_INVARIANTS": "yes",
        "QVLEDGER_MAX_EVENTS": "0",
        "QVLEDGER_LOG_LEVEL": "debug",
        "QVLEDGER_LOG_FORMAT": "JSON",
    })
    assert cfg.uint_bits == 256
    assert cfg.max_description_bytes == 34
    assert cfg.vote_pricing is VotePricing.INDEPENDENT
    assert cfg.verify_invariants is True
    assert cfg.max_events == 0
    assert cfg.log_level == "DEBUG"
    assert cfg.log_json is True


def test_from_env_empty_mapping_gives_defaults():
    assert config_from_env({}) == LedgerConfig()


def test_unknown_pricing_raises():
    with pytest.raises(ConfigError):
        config_from_env({"QVLEDGER_VOTE_PRICING": "cubic"})
    with pytest.raises(ConfigError):
        LedgerConfig(vote_pricing="cubic")


def test_string_pricing_is_coerced():
    assert LedgerConfig(vote_pricing="per-call").vote_pricing is VotePricing.INDEPENDENT


@pytest.mark.parametrize("kw", [{"uint_bits": 4}, {"uint_bits": 512}, {"max_description_bytes": 0}, {"max_events": -1}])
def test_invalid_values_raise(kw):
    with pytest.raises(ConfigError):
        LedgerConfig(**kw)


def test_replace_revalidates():
    cfg = LedgerConfig().replace(uint_bits=64)
    assert cfg.uint_max == (1 << 64) - 1
    with pytest.raises(ConfigError):
        cfg.replace(uint_bits=1)


def test_load_config_is_cached(monkeypatch):
    load_config.cache_clear()
    monkeypatch.setenv("QVLEDGER_UINT_BITS", "64")
    try:
        assert load_config().uint_bits == 64
        monkeypatch.setenv("QVLEDGER_UINT_BITS", "32")
        assert load_config() is load_config()
        assert load_config().uint_bits == 64
    finally:
        load_config.cache_clear()
