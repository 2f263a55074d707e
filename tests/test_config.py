"""Test configuration loading and validation."""

import pytest
from pydantic import ValidationError

from midas.config import Config, VenueKind, get_config
from midas.core.policy import FailurePolicy
from midas.core.types import CoinPair

CONFIG_YAML = """
pair:
  base: TON
  quote: USDT
venues:
  - name: paper
    kind: paper
    balances:
      TON: 100
    bids:
      - [2.0, 10]
  - name: okx
    kind: ccxt
    options:
      apiKey: ${MIDAS_TEST_KEY}
calculators:
  fee: 0.002
failure_policy:
  reseller_execution: abort
  limit_fill_check: skip
"""


class TestConfig:
    """Test the configuration models."""

    def test_defaults(self):
        config = Config()
        assert config.pair.coins() == CoinPair("TON", "USDT")
        assert config.calculators.profit_margin == 0.01
        assert config.reseller.accept_limit_fills is False
        assert config.failure_policy.reseller_execution is FailurePolicy.SKIP
        assert config.failure_policy.limit_cancellation is FailurePolicy.ABORT
        assert config.venues == []

    def test_load_from_file(self, tmp_path, monkeypatch):
        """Test YAML loading with environment substitution."""
        monkeypatch.setenv("MIDAS_TEST_KEY", "secret-key")
        path = tmp_path / "config.yaml"
        path.write_text(CONFIG_YAML)

        config = get_config(str(path))

        assert [venue.name for venue in config.venues] == ["paper", "okx"]
        assert config.venues[0].kind is VenueKind.PAPER
        assert config.venues[0].bids == [[2.0, 10.0]]
        assert config.get_venue("okx").options == {"apiKey": "secret-key"}
        assert config.get_venue("missing") is None
        assert config.calculators.fee == 0.002
        assert config.failure_policy.reseller_execution is FailurePolicy.ABORT
        assert config.failure_policy.limit_fill_check is FailurePolicy.SKIP

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config.load_from_file(str(tmp_path / "missing.yaml"))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert Config.load_from_file(str(path)).venues == []

    @pytest.mark.parametrize("section", [
        {"calculators": {"fee": 1.0}},
        {"calculators": {"profit_margin": -0.1}},
        {"calculators": {"min_amount": -1}},
        {"failure_policy": {"reseller_balance": "retry"}},
        {"venues": [{"name": "a"}, {"name": "a"}]},
    ])
    def test_invalid(self, section):
        with pytest.raises(ValidationError):
            Config(**section)
