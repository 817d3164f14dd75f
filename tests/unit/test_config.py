"""Unit tests for settings resolution."""

from pathlib import Path

import pytest

from deployment_ledger.config import Settings, load_settings, network_profile
from deployment_ledger.constants import DEFAULT_GAS_PRICE
from deployment_ledger.exceptions import NetworkNotFoundError


class TestNetworkProfile:
    def test_known_network(self):
        assert network_profile("sepolia")["chain_id"] == 11155111

    def test_unknown_network(self):
        with pytest.raises(NetworkNotFoundError, match="known networks"):
            network_profile("nowhere")


class TestLoadSettings:
    def test_defaults(self, tmp_path: Path):
        settings = load_settings(root=tmp_path, environ={})

        assert settings.network == "hardhat"
        assert settings.root == tmp_path.absolute()
        assert settings.rpc_url is None
        assert settings.confirmations == 1
        assert settings.default_gas_price == DEFAULT_GAS_PRICE
        assert settings.chain_id == 31337

    def test_network_rpc_variable(self, tmp_path: Path):
        settings = load_settings(
            network="sepolia",
            root=tmp_path,
            environ={"SEPOLIA_RPC_URL": "https://sepolia.example", "RPC_URL": "https://other"},
        )

        assert settings.rpc_url == "https://sepolia.example"
        assert settings.confirmations == 2
        assert settings.explorer_api_url

    def test_generic_rpc_fallback(self, tmp_path: Path):
        settings = load_settings(network="sepolia", root=tmp_path, environ={"RPC_URL": "https://other"})
        assert settings.rpc_url == "https://other"

    def test_explicit_arguments_win(self, tmp_path: Path):
        settings = load_settings(
            network="sepolia",
            root=tmp_path,
            rpc_url="https://explicit",
            confirmations=7,
            environ={"NETWORK": "mainnet", "SEPOLIA_RPC_URL": "https://env", "CONFIRMATIONS": "3"},
        )

        assert settings.network == "sepolia"
        assert settings.rpc_url == "https://explicit"
        assert settings.confirmations == 7

    def test_environment_values(self, tmp_path: Path):
        settings = load_settings(
            environ={
                "NETWORK": "mainnet",
                "DEPLOYMENTS_DIR": str(tmp_path / "store"),
                "ARTIFACTS_DIR": str(tmp_path / "out"),
                "ETHERSCAN_API_KEY": "KEY",
                "DEPLOYER_ADDRESS": "0x" + "11" * 20,
                "CONFIRMATIONS": "3",
                "DEFAULT_GAS_PRICE_GWEI": "1.5",
            }
        )

        assert settings.network == "mainnet"
        assert settings.root == (tmp_path / "store").absolute()
        assert settings.artifacts_dir == (tmp_path / "out").absolute()
        assert settings.etherscan_api_key == "KEY"
        assert settings.deployer == "0x" + "11" * 20
        assert settings.confirmations == 3
        assert settings.default_gas_price == 1_500_000_000
        assert settings.chain_id == 1

    def test_unknown_network_allowed(self, tmp_path: Path):
        settings = load_settings(network="devnet", root=tmp_path, environ={"RPC_URL": "http://x"})

        assert settings.network == "devnet"
        assert settings.chain_id is None
        assert settings.rpc_url == "http://x"

    def test_invalid_confirmations(self, tmp_path: Path):
        with pytest.raises(ValueError, match="confirmations"):
            load_settings(root=tmp_path, confirmations=0, environ={})


class TestValidate:
    def test_empty_network(self, tmp_path: Path):
        with pytest.raises(ValueError):
            Settings(network="", root=tmp_path, artifacts_dir=tmp_path).validate()

    def test_negative_gas_price(self, tmp_path: Path):
        with pytest.raises(ValueError):
            Settings(
                network="hardhat", root=tmp_path, artifacts_dir=tmp_path, default_gas_price=-1
            ).validate()
