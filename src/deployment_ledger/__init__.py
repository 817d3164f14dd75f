"""
deployment-ledger: Python library for managing recorded smart contract deployments
"""

from importlib.metadata import PackageNotFoundError, version

from .confirmations import ConfirmationWaiter
from .deployer import Deployer
from .exceptions import (
    ArtifactNotFoundError,
    ConfirmationTimeoutError,
    ContractNotFoundError,
    DeploymentError,
    EstimationError,
    NetworkNotFoundError,
    ReceiptNotFoundError,
    RpcError,
    StoreWriteError,
    VerificationError,
)
from .gas import GasEstimator
from .manager import LifecycleManager
from .reports import format_deployment_summary, generate_report
from .rpc import ChainClient, JsonRpcChainClient
from .store import DeploymentStore
from .types import (
    ConstructorArg,
    ContractStatus,
    DeploymentRecord,
    DeploymentReport,
    GasEstimate,
    HealthStatus,
    VerificationOutcome,
    VerificationResult,
)
from .verification import VerificationClient

try:
    __version__ = version("deployment-ledger")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "ChainClient",
    "JsonRpcChainClient",
    "DeploymentStore",
    "GasEstimator",
    "ConfirmationWaiter",
    "VerificationClient",
    "LifecycleManager",
    "Deployer",
    "generate_report",
    "format_deployment_summary",
    "ConstructorArg",
    "ContractStatus",
    "DeploymentRecord",
    "DeploymentReport",
    "GasEstimate",
    "HealthStatus",
    "VerificationOutcome",
    "VerificationResult",
    "DeploymentError",
    "NetworkNotFoundError",
    "ContractNotFoundError",
    "ArtifactNotFoundError",
    "RpcError",
    "EstimationError",
    "ReceiptNotFoundError",
    "ConfirmationTimeoutError",
    "StoreWriteError",
    "VerificationError",
]
