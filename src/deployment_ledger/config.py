"""Runtime settings for deployment-ledger library.

Settings come from explicit arguments first, then the environment. A ``.env``
file in the working directory is loaded into the environment by
``load_settings`` (existing variables win).
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from dotenv import find_dotenv, load_dotenv

from .constants import DEFAULT_CONFIRMATIONS, DEFAULT_GAS_PRICE, NETWORK_CONFIG
from .exceptions import NetworkNotFoundError
from .paths import resolve_root
from .units import parse_gwei


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one command invocation."""

    network: str
    root: Path
    artifacts_dir: Path
    rpc_url: Optional[str] = None
    etherscan_api_key: Optional[str] = None
    deployer: Optional[str] = None
    confirmations: int = DEFAULT_CONFIRMATIONS
    default_gas_price: int = DEFAULT_GAS_PRICE
    explorer_api_url: Optional[str] = None
    chain_id: Optional[int] = None

    def validate(self) -> None:
        """Raise ``ValueError`` if any field is out of valid range."""
        if not self.network:
            raise ValueError("network must not be empty")
        if self.confirmations < 1:
            raise ValueError(f"confirmations must be >= 1, got {self.confirmations}")
        if self.default_gas_price < 0:
            raise ValueError(f"default_gas_price must be >= 0, got {self.default_gas_price}")


def network_profile(network: str) -> Dict[str, Any]:
    """
    Get the deployment profile of a known network.

    Raises:
        NetworkNotFoundError: If the network has no profile
    """
    if network not in NETWORK_CONFIG:
        raise NetworkNotFoundError(
            f"Network '{network}' has no profile; known networks: "
            + ", ".join(sorted(NETWORK_CONFIG))
        )
    return NETWORK_CONFIG[network]


def load_settings(
    network: Optional[str] = None,
    root: Optional[Union[Path, str]] = None,
    rpc_url: Optional[str] = None,
    artifacts_dir: Optional[Union[Path, str]] = None,
    confirmations: Optional[int] = None,
    environ: Optional[Mapping[str, str]] = None,
    dotenv: bool = True,
) -> Settings:
    """
    Resolve settings from arguments and environment.

    Unknown networks are allowed (their store still works); they simply get no
    profile defaults, so the RPC URL must come from ``RPC_URL``.

    Args:
        network: Network name (defaults to $NETWORK, then "hardhat")
        root: Storage root (defaults to $DEPLOYMENTS_DIR, then ./deployments)
        rpc_url: RPC URL (defaults to the profile's env var, then $RPC_URL)
        artifacts_dir: Hardhat artifacts (defaults to $ARTIFACTS_DIR, then ./artifacts)
        confirmations: Required confirmation depth (defaults to the profile's)
        environ: Environment mapping (defaults to os.environ)
        dotenv: Load ./.env before reading the environment

    Returns:
        Validated Settings
    """
    if dotenv and environ is None:
        load_dotenv(find_dotenv(usecwd=True))
    env = os.environ if environ is None else environ

    network = network or env.get("NETWORK") or "hardhat"
    profile = NETWORK_CONFIG.get(network, {})

    if rpc_url is None:
        rpc_env = profile.get("default_rpc_env")
        rpc_url = (env.get(rpc_env) if rpc_env else None) or env.get("RPC_URL")

    if confirmations is None:
        confirmations = int(env.get("CONFIRMATIONS") or profile.get("confirmations", DEFAULT_CONFIRMATIONS))

    gas_price_gwei = env.get("DEFAULT_GAS_PRICE_GWEI")
    default_gas_price = parse_gwei(gas_price_gwei) if gas_price_gwei else DEFAULT_GAS_PRICE

    settings = Settings(
        network=network,
        root=resolve_root(root or env.get("DEPLOYMENTS_DIR")),
        artifacts_dir=Path(artifacts_dir or env.get("ARTIFACTS_DIR") or Path.cwd() / "artifacts").absolute(),
        rpc_url=rpc_url,
        etherscan_api_key=env.get("ETHERSCAN_API_KEY"),
        deployer=env.get("DEPLOYER_ADDRESS"),
        confirmations=confirmations,
        default_gas_price=default_gas_price,
        explorer_api_url=env.get("EXPLORER_API_URL") or profile.get("explorer_api_url"),
        chain_id=profile.get("chain_id"),
    )
    settings.validate()
    return settings
