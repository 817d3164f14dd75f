"""Data types and dataclasses for deployment-ledger library."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .units import format_ether

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class ArgKind(Enum):
    """
    Kinds of constructor argument values.

    Value strings define de/serialization law.
    """

    STRING = "string"
    INT = "int"
    ADDRESS = "address"
    BYTES = "bytes"
    BOOL = "bool"
    LIST = "list"


@dataclass(frozen=True)
class ConstructorArg:
    """A single constructor argument tagged with its kind."""

    kind: ArgKind
    value: Any

    def __post_init__(self):
        expected = {
            ArgKind.STRING: str,
            ArgKind.INT: int,
            ArgKind.ADDRESS: str,
            ArgKind.BYTES: bytes,
            ArgKind.BOOL: bool,
            ArgKind.LIST: tuple,
        }[self.kind]

        value = self.value
        if self.kind is ArgKind.LIST and isinstance(value, list):
            # Stored as a tuple so the dataclass stays hashable
            value = tuple(value)
            object.__setattr__(self, "value", value)

        if not isinstance(value, expected) or (
            self.kind is ArgKind.INT and isinstance(value, bool)
        ):
            raise TypeError(
                f"{self.kind.value} argument requires {expected.__name__}, "
                f"got {type(value).__name__}"
            )
        if self.kind is ArgKind.ADDRESS and not ADDRESS_RE.match(value):
            raise ValueError(f"Invalid address argument: {value!r}")
        if self.kind is ArgKind.LIST and not all(
            isinstance(item, ConstructorArg) for item in value
        ):
            raise TypeError("list argument items must be ConstructorArg values")

    @classmethod
    def string(cls, value: str) -> "ConstructorArg":
        return cls(ArgKind.STRING, value)

    @classmethod
    def integer(cls, value: int) -> "ConstructorArg":
        return cls(ArgKind.INT, value)

    @classmethod
    def address(cls, value: str) -> "ConstructorArg":
        return cls(ArgKind.ADDRESS, value)

    @classmethod
    def bytes_(cls, value: bytes) -> "ConstructorArg":
        return cls(ArgKind.BYTES, value)

    @classmethod
    def boolean(cls, value: bool) -> "ConstructorArg":
        return cls(ArgKind.BOOL, value)

    @classmethod
    def list_(cls, items: List["ConstructorArg"]) -> "ConstructorArg":
        return cls(ArgKind.LIST, tuple(items))

    def to_python(self) -> Any:
        """Return the plain Python value (lists unwrapped recursively)."""
        if self.kind is ArgKind.LIST:
            return [item.to_python() for item in self.value]
        return self.value

    def to_json(self) -> Dict[str, Any]:
        """
        Serialize to a tagged JSON object.

        Integers are written as decimal strings and bytes as 0x-prefixed hex
        so that no value depends on JSON number precision.
        """
        if self.kind is ArgKind.INT:
            value: Any = str(self.value)
        elif self.kind is ArgKind.BYTES:
            value = "0x" + self.value.hex()
        elif self.kind is ArgKind.LIST:
            value = [item.to_json() for item in self.value]
        else:
            value = self.value
        return {"type": self.kind.value, "value": value}

    @classmethod
    def from_json(cls, data: Any) -> "ConstructorArg":
        """
        Deserialize a tagged JSON object.

        Untagged values written by older tooling are coerced by shape:
        booleans, integral numbers, addresses, other strings and arrays.

        Raises:
            ValueError: If the value cannot be represented losslessly
        """
        if isinstance(data, dict) and "type" in data:
            kind = ArgKind(data["type"])
            raw = data.get("value")
            if kind is ArgKind.INT:
                return cls(kind, int(raw))
            if kind is ArgKind.BYTES:
                return cls(kind, bytes.fromhex(_strip_0x(raw)))
            if kind is ArgKind.LIST:
                return cls(kind, tuple(cls.from_json(item) for item in raw))
            return cls(kind, raw)

        # Legacy untagged values
        if isinstance(data, bool):
            return cls(ArgKind.BOOL, data)
        if isinstance(data, int):
            return cls(ArgKind.INT, data)
        if isinstance(data, float):
            if not data.is_integer():
                raise ValueError(f"Non-integral constructor argument: {data!r}")
            return cls(ArgKind.INT, int(data))
        if isinstance(data, str):
            if ADDRESS_RE.match(data):
                return cls(ArgKind.ADDRESS, data)
            return cls(ArgKind.STRING, data)
        if isinstance(data, list):
            return cls(ArgKind.LIST, tuple(cls.from_json(item) for item in data))

        raise ValueError(f"Unsupported constructor argument: {data!r}")


def _strip_0x(value: str) -> str:
    return value[2:] if value.startswith(("0x", "0X")) else value


def _to_millis(value: Any) -> Optional[int]:
    # Older tooling wrote rollback times as ISO-8601 strings
    if value is None:
        return None
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return int(parsed.timestamp() * 1000)
    return int(value)


@dataclass
class DeploymentRecord:
    """One contract's deployment on one network."""

    # Required fields
    contract_name: str  # Logical key, unique per network
    address: str
    tx_hash: str
    block_number: int
    timestamp: int  # Epoch millis at save time
    network: str
    gas_used: int
    gas_price: int  # Wei per gas
    deployer: str

    # Mutable lifecycle fields
    verified: bool = False
    constructor_args: List[ConstructorArg] = field(default_factory=list)
    rolled_back: bool = False
    rolled_back_at: Optional[int] = None  # Epoch millis

    @property
    def cost_wei(self) -> int:
        return self.gas_used * self.gas_price

    def to_json(self) -> Dict[str, Any]:
        """Serialize using the persisted (camelCase) field names."""
        data: Dict[str, Any] = {
            "contractName": self.contract_name,
            "address": self.address,
            "txHash": self.tx_hash,
            "blockNumber": self.block_number,
            "timestamp": self.timestamp,
            "network": self.network,
            "gasUsed": str(self.gas_used),
            "gasPrice": str(self.gas_price),
            "deployer": self.deployer,
            "verified": self.verified,
            "constructorArgs": [arg.to_json() for arg in self.constructor_args],
            "rolledBack": self.rolled_back,
        }
        if self.rolled_back_at is not None:
            data["rolledBackAt"] = self.rolled_back_at
        return data

    @classmethod
    def from_json(cls, data: Dict[str, Any], network: Optional[str] = None) -> "DeploymentRecord":
        """
        Deserialize a persisted record.

        Args:
            data: Record object as stored
            network: Fallback network name for records that omit it

        Raises:
            KeyError: If a required field is missing
            ValueError: If a field has an invalid value
        """
        block_number = int(data["blockNumber"])
        if block_number < 0:
            raise ValueError(f"Negative block number: {block_number}")

        return cls(
            contract_name=data["contractName"],
            address=data["address"],
            tx_hash=data["txHash"],
            block_number=block_number,
            timestamp=int(data.get("timestamp", 0)),
            network=data.get("network", network),
            gas_used=int(data.get("gasUsed", 0) or 0),
            gas_price=int(data.get("gasPrice", 0) or 0),
            deployer=data.get("deployer", ""),
            verified=bool(data.get("verified", False)),
            constructor_args=[
                ConstructorArg.from_json(arg) for arg in data.get("constructorArgs") or []
            ],
            rolled_back=bool(data.get("rolledBack", False)),
            rolled_back_at=_to_millis(data.get("rolledBackAt")),
        )


@dataclass
class DeploymentSummary:
    """Aggregate totals over all records of a network."""

    total_contracts: int
    total_gas_used: int
    total_cost_wei: int
    network: str
    timestamp: int  # Epoch millis at generation time

    def to_json(self) -> Dict[str, Any]:
        return {
            "totalContracts": self.total_contracts,
            "totalGasUsed": str(self.total_gas_used),
            "totalCostWei": str(self.total_cost_wei),
            "totalCostETH": format_ether(self.total_cost_wei),
            "network": self.network,
            "timestamp": self.timestamp,
        }


@dataclass
class DeploymentReport:
    """Read-only snapshot of a network's records with a cost summary."""

    deployments: List[DeploymentRecord]
    summary: DeploymentSummary

    def to_json(self) -> Dict[str, Any]:
        return {
            "deployments": [record.to_json() for record in self.deployments],
            "summary": self.summary.to_json(),
        }


@dataclass(frozen=True)
class AddressBookEntry:
    address: str
    verified: bool
    block: int

    def to_json(self) -> Dict[str, Any]:
        return {"address": self.address, "verified": self.verified, "block": self.block}


# chain id -> contract name -> entry
AddressBook = Dict[str, Dict[str, AddressBookEntry]]


@dataclass(frozen=True)
class PendingDeployment:
    """An unsubmitted contract-creation transaction."""

    contract_name: str
    data: str  # 0x-prefixed creation bytecode followed by encoded arguments
    constructor_args: List[ConstructorArg] = field(default_factory=list)
    sender: Optional[str] = None

    def to_transaction(self) -> Dict[str, Any]:
        """Return the JSON-RPC transaction object (no ``to`` for creation)."""
        tx: Dict[str, Any] = {"data": self.data}
        if self.sender:
            tx["from"] = self.sender
        return tx


@dataclass(frozen=True)
class GasEstimate:
    gas_limit: int
    gas_price: int
    estimated_cost: int  # Wei

    @property
    def estimated_cost_ether(self) -> str:
        return format_ether(self.estimated_cost)


@dataclass(frozen=True)
class FeeData:
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None


@dataclass(frozen=True)
class Receipt:
    """Subset of a transaction receipt needed to record a deployment."""

    transaction_hash: str
    block_number: int
    gas_used: int
    effective_gas_price: Optional[int] = None
    contract_address: Optional[str] = None
    status: int = 1
    from_address: Optional[str] = None
    confirmations: int = 0

    @classmethod
    def from_rpc(cls, data: Dict[str, Any], confirmations: int = 0) -> "Receipt":
        """Build a receipt from an ``eth_getTransactionReceipt`` result."""
        effective = data.get("effectiveGasPrice")
        status = data.get("status")
        return cls(
            transaction_hash=data["transactionHash"],
            block_number=int(data["blockNumber"], 16),
            gas_used=int(data["gasUsed"], 16),
            effective_gas_price=int(effective, 16) if effective else None,
            contract_address=data.get("contractAddress"),
            status=int(status, 16) if status else 1,
            from_address=data.get("from"),
            confirmations=confirmations,
        )


class VerificationOutcome(Enum):
    OK = "ok"
    ALREADY_VERIFIED = "already_verified"
    ERROR = "error"


@dataclass(frozen=True)
class VerificationResult:
    """Explicit result returned by a verification service adapter."""

    outcome: VerificationOutcome
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "VerificationResult":
        return cls(VerificationOutcome.OK)

    @classmethod
    def already_verified(cls) -> "VerificationResult":
        return cls(VerificationOutcome.ALREADY_VERIFIED)

    @classmethod
    def error(cls, reason: str) -> "VerificationResult":
        return cls(VerificationOutcome.ERROR, reason)

    @property
    def succeeded(self) -> bool:
        return self.outcome is not VerificationOutcome.ERROR


class ContractStatus(Enum):
    ROLLED_BACK = "ROLLED_BACK"
    VERIFIED = "VERIFIED"
    UNVERIFIED = "UNVERIFIED"

    @classmethod
    def of(cls, record: DeploymentRecord) -> "ContractStatus":
        # Rollback takes priority over verification
        if record.rolled_back:
            return cls.ROLLED_BACK
        if record.verified:
            return cls.VERIFIED
        return cls.UNVERIFIED


class HealthStatus(Enum):
    HEALTHY = "healthy"
    FAILED = "failed"
    ERROR = "error"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class HealthResult:
    status: HealthStatus
    message: str


@dataclass(frozen=True)
class CostEstimate:
    """Redeploy estimate for one contract, or the reason it failed."""

    contract_name: str
    estimate: Optional[GasEstimate] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.estimate is not None


@dataclass
class CostReport:
    estimates: Dict[str, CostEstimate]
    total_gas: int
    total_cost: int  # Wei

    @property
    def failures(self) -> Dict[str, str]:
        return {
            name: est.error or "unknown error"
            for name, est in self.estimates.items()
            if not est.ok
        }
