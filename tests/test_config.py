"""Tests for protocol configuration."""

import pytest

from pmm_rfq.ledger import Ledger
from pmm_rfq.order.utils import PERMIT2_ADDRESS, WETH_MAINNET
from pmm_rfq.settlement import (
    DEFAULT_PROTOCOL_ADDRESS,
    PmmProtocol,
    load_config_from_env,
    resolve_config,
)


class TestResolveConfig:
    """Tests for config defaults and validation."""

    def test_defaults(self):
        """Test that an empty config resolves to the documented defaults."""
        config = resolve_config()
        assert config.domain_name == "OnChain Labs PMM Protocol"
        assert config.domain_version == "1.0"
        assert config.chain_id == 1
        assert config.address == DEFAULT_PROTOCOL_ADDRESS
        assert config.weth_address == WETH_MAINNET
        assert config.permit2_address == PERMIT2_ADDRESS
        assert config.max_confidence_cap == 500_000
        assert config.min_settlement_ratio_pct == 60
        assert config.raw_call_gas_limit == 5000

    def test_addresses_are_checksummed(self):
        """Test that addresses are normalized."""
        config = resolve_config({"weth_address": WETH_MAINNET.lower()})
        assert config.weth_address == WETH_MAINNET

    def test_invalid_address(self):
        """Test that an invalid address is rejected."""
        with pytest.raises(ValueError, match="Invalid address"):
            resolve_config({"address": "0x1234"})

    def test_invalid_ratio(self):
        """Test the settlement ratio range."""
        with pytest.raises(ValueError, match="Invalid min_settlement_ratio_pct"):
            resolve_config({"min_settlement_ratio_pct": 101})

    def test_invalid_cap(self):
        """Test the confidence cap range."""
        with pytest.raises(ValueError, match="Invalid max_confidence_cap"):
            resolve_config({"max_confidence_cap": 1_000_001})


class TestLoadConfigFromEnv:
    """Tests for environment configuration."""

    def test_env_variables(self, monkeypatch, tmp_path):
        """Test that PMM_* variables are read and cast."""
        monkeypatch.setenv("PMM_CHAIN_ID", "8453")
        monkeypatch.setenv("PMM_MAX_CONFIDENCE_CAP", "100000")
        monkeypatch.setenv("PMM_DOMAIN_NAME", "Test Domain")

        config = load_config_from_env(str(tmp_path / "missing.env"))

        assert config["chain_id"] == 8453
        assert config["max_confidence_cap"] == 100_000
        assert config["domain_name"] == "Test Domain"

    def test_env_file(self, monkeypatch, tmp_path):
        """Test that a .env file is loaded."""
        # Registers PMM_MIN_SETTLEMENT_RATIO_PCT for restoration, then clears it
        monkeypatch.setenv("PMM_MIN_SETTLEMENT_RATIO_PCT", "0")
        monkeypatch.delenv("PMM_MIN_SETTLEMENT_RATIO_PCT")
        env_file = tmp_path / ".env"
        env_file.write_text("PMM_MIN_SETTLEMENT_RATIO_PCT=75\n")

        config = load_config_from_env(str(env_file))

        assert config["min_settlement_ratio_pct"] == 75


class TestDeployWithConfig:
    """Tests for deploying the protocol with a custom configuration."""

    def test_chain_id_defaults_to_ledger(self):
        """Test that the ledger's chain id is used when none is configured."""
        protocol = PmmProtocol.deploy_on_ledger(Ledger(chain_id=10))
        assert protocol.config.chain_id == 10

    def test_custom_domain(self):
        """Test that the domain settings change the domain separator."""
        default = PmmProtocol.deploy_on_ledger(Ledger(chain_id=10))
        custom = PmmProtocol.deploy_on_ledger(
            Ledger(chain_id=10), {"domain_name": "Other", "domain_version": "2"}
        )
        assert custom.domain_separator() != default.domain_separator()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
