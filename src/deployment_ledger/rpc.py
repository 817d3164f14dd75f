"""Chain client adapter for deployment-ledger library.

``ChainClient`` is the interface the rest of the library consumes;
``JsonRpcChainClient`` implements it over plain Ethereum JSON-RPC. The client
keeps no session state beyond its HTTP connection pool, so one instance can be
shared by concurrent queries.
"""

import itertools
import logging
import time
from typing import Any, Dict, List, Optional, Protocol

import requests

from .constants import EMPTY_CODE
from .exceptions import EstimationError, RpcError
from .types import FeeData, Receipt

logger = logging.getLogger(__name__)


class ChainClient(Protocol):
    """Network operations needed by the deployment lifecycle."""

    def chain_id(self) -> int: ...

    def estimate_gas(self, transaction: Dict[str, Any]) -> int: ...

    def get_fee_data(self) -> FeeData: ...

    def get_code(self, address: str) -> str: ...

    def send_transaction(self, transaction: Dict[str, Any]) -> str: ...

    def wait_for_transaction(
        self, tx_hash: str, confirmations: int = 1, timeout: Optional[float] = None
    ) -> Optional[Receipt]: ...


class JsonRpcChainClient:
    """ChainClient backed by an Ethereum JSON-RPC endpoint."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30,
        poll_interval: float = 2.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            rpc_url: RPC endpoint URL
            timeout: Per-request HTTP timeout in seconds
            poll_interval: Seconds between receipt polls while waiting
            session: Optional requests session (connection pooling)
        """
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._session = session or requests.Session()
        self._ids = itertools.count(1)

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Perform a single JSON-RPC call.

        Args:
            method: RPC method name
            params: Positional parameters

        Returns:
            The ``result`` member of the response

        Raises:
            RpcError: On network errors, non-200 responses or RPC errors
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(self._ids),
        }
        logger.debug("RPC %s %s", method, payload["params"])

        try:
            response = self._session.post(self.rpc_url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise RpcError(f"Network error during RPC call {method}: {e}") from e

        if response.status_code != 200:
            raise RpcError(f"RPC request {method} failed with status {response.status_code}")

        try:
            result = response.json()
        except ValueError as e:
            raise RpcError(f"Invalid JSON in RPC response to {method}") from e

        if not isinstance(result, dict):
            raise RpcError(f"Malformed RPC response to {method}: {result!r}")
        if "error" in result:
            error = result["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise RpcError(f"RPC error in {method}: {message}")

        return result.get("result")

    def chain_id(self) -> int:
        return int(self.call("eth_chainId"), 16)

    def block_number(self) -> int:
        return int(self.call("eth_blockNumber"), 16)

    def estimate_gas(self, transaction: Dict[str, Any]) -> int:
        """
        Estimate gas for a transaction.

        Raises:
            EstimationError: If the node rejects the transaction (e.g. revert)
        """
        try:
            return int(self.call("eth_estimateGas", [transaction]), 16)
        except RpcError as e:
            raise EstimationError(str(e)) from e

    def get_fee_data(self) -> FeeData:
        """
        Fetch current fee data.

        Returns a FeeData with ``gas_price=None`` if the node reports none.
        """
        gas_price = self.call("eth_gasPrice")
        max_priority = None
        try:
            max_priority = self.call("eth_maxPriorityFeePerGas")
        except RpcError:
            # Pre-London nodes do not implement it
            logger.debug("eth_maxPriorityFeePerGas unavailable at %s", self.rpc_url)

        return FeeData(
            gas_price=int(gas_price, 16) if gas_price else None,
            max_priority_fee_per_gas=int(max_priority, 16) if max_priority else None,
        )

    def get_code(self, address: str) -> str:
        return self.call("eth_getCode", [address, "latest"]) or EMPTY_CODE

    def send_transaction(self, transaction: Dict[str, Any]) -> str:
        """Submit a transaction signed by an unlocked node account."""
        return self.call("eth_sendTransaction", [transaction])

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return self.call("eth_getTransactionReceipt", [tx_hash])

    def wait_for_transaction(
        self, tx_hash: str, confirmations: int = 1, timeout: Optional[float] = None
    ) -> Optional[Receipt]:
        """
        Poll until the transaction has the requested number of confirmations.

        A transaction included in block ``n`` has ``head - n + 1``
        confirmations.

        Args:
            tx_hash: Transaction hash
            confirmations: Required confirmation depth
            timeout: Seconds to wait before giving up (None waits forever)

        Returns:
            Receipt, or None if the timeout expired first

        Raises:
            RpcError: If the node cannot be queried
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            data = self.get_transaction_receipt(tx_hash)
            if data is not None and data.get("blockNumber"):
                included_in = int(data["blockNumber"], 16)
                depth = self.block_number() - included_in + 1
                if depth >= confirmations:
                    return Receipt.from_rpc(data, confirmations=depth)

            if deadline is not None and time.monotonic() >= deadline:
                return None
            time.sleep(self.poll_interval)
