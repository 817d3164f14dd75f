"""Configuration constants for deployment-ledger library."""

WEI_PER_GWEI = 10**9
WEI_PER_ETHER = 10**18

# Used when the node reports no fee data
DEFAULT_GAS_PRICE = 20 * WEI_PER_GWEI

DEFAULT_CONFIRMATIONS = 2

# Deployment profiles keyed by network name
NETWORK_CONFIG = {
    "mainnet": {
        "chain_id": 1,
        "chain_name": "Ethereum Mainnet",
        "confirmations": 5,
        "block_explorer_url": "https://etherscan.io",
        "explorer_api_url": "https://api.etherscan.io/api",
        "default_rpc_env": "MAINNET_RPC_URL",
    },
    "sepolia": {
        "chain_id": 11155111,
        "chain_name": "Sepolia",
        "confirmations": 2,
        "block_explorer_url": "https://sepolia.etherscan.io",
        "explorer_api_url": "https://api-sepolia.etherscan.io/api",
        "default_rpc_env": "SEPOLIA_RPC_URL",
    },
    "hardhat": {
        "chain_id": 31337,
        "chain_name": "Hardhat Network",
        "confirmations": 1,
        "block_explorer_url": None,
        "explorer_api_url": None,
        "default_rpc_env": "HARDHAT_RPC_URL",
    },
    "localhost": {
        "chain_id": 31337,
        "chain_name": "Localhost",
        "confirmations": 1,
        "block_explorer_url": None,
        "explorer_api_url": None,
        "default_rpc_env": "LOCALHOST_RPC_URL",
    },
}

# Free-text results from Etherscan-compatible explorers meaning "nothing to do"
ALREADY_VERIFIED_MARKERS = (
    "already verified",
    "source code already verified",
)

# Code returned by eth_getCode for an address without a contract
EMPTY_CODE = "0x"
