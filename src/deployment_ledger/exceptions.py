"""Custom exception classes for deployment-ledger library."""


class DeploymentError(Exception):
    """Base exception for deployment-related errors."""

    pass


class NetworkNotFoundError(DeploymentError, ValueError):
    """Raised when requested network has no configured profile."""

    pass


class ContractNotFoundError(DeploymentError, ValueError):
    """Raised when requested contract has no record in the network store."""

    pass


class ArtifactNotFoundError(DeploymentError, FileNotFoundError):
    """Raised when a compiled contract artifact is not found."""

    pass


class RpcError(DeploymentError, RuntimeError):
    """Raised when a JSON-RPC call fails at the transport or protocol level."""

    pass


class EstimationError(DeploymentError, RuntimeError):
    """Raised when gas estimation fails, e.g. because the constructor reverts."""

    pass


class ReceiptNotFoundError(DeploymentError, LookupError):
    """Raised when no receipt is obtained for a submitted transaction."""

    pass


class ConfirmationTimeoutError(DeploymentError, TimeoutError):
    """Raised when a transaction does not reach the required depth in time."""

    pass


class StoreWriteError(DeploymentError, OSError):
    """Raised when the deployment store document cannot be written."""

    pass


class VerificationError(DeploymentError, RuntimeError):
    """Raised when the verification service cannot be reached or misbehaves."""

    pass
