"""Shared pytest fixtures for deployment-ledger tests."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from deployment_ledger.exceptions import EstimationError
from deployment_ledger.store import DeploymentStore
from deployment_ledger.types import ConstructorArg, DeploymentRecord, FeeData, Receipt

TOKEN_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
NFT_ADDRESS = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"
DEPLOYER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

TOKEN_ABI = [
    {
        "type": "constructor",
        "inputs": [
            {"name": "name", "type": "string"},
            {"name": "symbol", "type": "string"},
            {"name": "decimals", "type": "uint8"},
        ],
        "stateMutability": "nonpayable",
    }
]

NFT_ABI = [
    {
        "type": "constructor",
        "inputs": [
            {"name": "name", "type": "string"},
            {"name": "symbol", "type": "string"},
        ],
        "stateMutability": "nonpayable",
    }
]


class FakeChainClient:
    """In-memory ChainClient recording every call it receives."""

    def __init__(self):
        self.codes: Dict[str, str] = {}
        self.code_errors: Dict[str, Exception] = {}
        self.gas_limit = 1_000_000
        self.estimate_error: Optional[Exception] = None
        self.estimate_errors_for: List[str] = []  # substrings of tx data that fail
        self.gas_price: Optional[int] = 10_000_000_000
        self.receipt: Optional[Receipt] = None
        self.tx_hash = "0x" + "ab" * 32
        self.chain = 31337
        self.calls: List[tuple] = []
        self.sent: List[Dict[str, Any]] = []

    def chain_id(self) -> int:
        self.calls.append(("chain_id",))
        return self.chain

    def estimate_gas(self, transaction: Dict[str, Any]) -> int:
        self.calls.append(("estimate_gas", transaction))
        if self.estimate_error is not None:
            raise self.estimate_error
        for marker in self.estimate_errors_for:
            if marker in transaction.get("data", ""):
                raise EstimationError("execution reverted")
        return self.gas_limit

    def get_fee_data(self) -> FeeData:
        self.calls.append(("get_fee_data",))
        return FeeData(gas_price=self.gas_price)

    def get_code(self, address: str) -> str:
        self.calls.append(("get_code", address))
        if address in self.code_errors:
            raise self.code_errors[address]
        return self.codes.get(address, "0x")

    def send_transaction(self, transaction: Dict[str, Any]) -> str:
        self.calls.append(("send_transaction", transaction))
        self.sent.append(transaction)
        return self.tx_hash

    def wait_for_transaction(self, tx_hash, confirmations=1, timeout=None):
        self.calls.append(("wait_for_transaction", tx_hash, confirmations, timeout))
        return self.receipt

    def called(self, method: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == method]


@pytest.fixture
def fake_client() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    """Create a temporary storage root for tests."""
    root = tmp_path / "deployments"
    root.mkdir(parents=True, exist_ok=True)
    return root


@pytest.fixture
def store(store_root: Path) -> DeploymentStore:
    return DeploymentStore("sepolia", store_root)


def make_record(
    contract_name: str,
    gas_used: int = 100_000,
    gas_price: int = 10_000_000_000,
    **overrides: Any,
) -> DeploymentRecord:
    fields: Dict[str, Any] = dict(
        contract_name=contract_name,
        address=TOKEN_ADDRESS,
        tx_hash="0x" + "11" * 32,
        block_number=100,
        timestamp=1_700_000_000_000,
        network="sepolia",
        gas_used=gas_used,
        gas_price=gas_price,
        deployer=DEPLOYER,
    )
    fields.update(overrides)
    return DeploymentRecord(**fields)


@pytest.fixture
def token_record() -> DeploymentRecord:
    return make_record(
        "Token",
        constructor_args=[
            ConstructorArg.string("Zama FHE Token"),
            ConstructorArg.string("ZFHE"),
            ConstructorArg.integer(18),
        ],
    )


@pytest.fixture
def nft_record() -> DeploymentRecord:
    return make_record(
        "NFT",
        address=NFT_ADDRESS,
        gas_used=200_000,
        block_number=101,
        constructor_args=[ConstructorArg.string("Zama FHE NFT"), ConstructorArg.string("ZFHENFT")],
    )


def _write_artifact(
    artifacts_dir: Path, source: str, name: str, abi: List[Dict[str, Any]], bytecode: str
) -> None:
    contract_dir = artifacts_dir / "contracts" / source
    contract_dir.mkdir(parents=True, exist_ok=True)
    with open(contract_dir / f"{name}.json", "w") as f:
        json.dump(
            {
                "_format": "hh-sol-artifact-1",
                "contractName": name,
                "sourceName": f"contracts/{source}",
                "abi": abi,
                "bytecode": bytecode,
            },
            f,
        )
    with open(contract_dir / f"{name}.dbg.json", "w") as f:
        json.dump({"_format": "hh-sol-dbg-1", "buildInfo": "../../build-info/abc123.json"}, f)


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    """Create a Hardhat artifacts tree with Token and NFT contracts."""
    artifacts = tmp_path / "artifacts"
    _write_artifact(artifacts, "Token.sol", "Token", TOKEN_ABI, "0x6080604052")
    _write_artifact(artifacts, "NFT.sol", "NFT", NFT_ABI, "0x6080604053")

    build_info_dir = artifacts / "build-info"
    build_info_dir.mkdir(parents=True)
    with open(build_info_dir / "abc123.json", "w") as f:
        json.dump(
            {
                "solcVersion": "0.8.24",
                "solcLongVersion": "0.8.24+commit.e11b9ed9",
                "input": {
                    "language": "Solidity",
                    "sources": {"contracts/Token.sol": {"content": "contract Token {}"}},
                    "settings": {"optimizer": {"enabled": True, "runs": 200}},
                },
            },
            f,
        )
    return artifacts


@pytest.fixture
def record_factory():
    """Return a factory building DeploymentRecords with sensible defaults."""
    return make_record
