"""Waiting for transactions to reach a confirmation depth."""

import logging
import time
from typing import Optional

from .constants import DEFAULT_CONFIRMATIONS
from .exceptions import ConfirmationTimeoutError, ReceiptNotFoundError
from .rpc import ChainClient
from .types import Receipt

logger = logging.getLogger(__name__)


class ConfirmationWaiter:
    """Blocks until a transaction is buried under enough blocks."""

    def __init__(self, client: ChainClient, default_confirmations: int = DEFAULT_CONFIRMATIONS):
        self.client = client
        self.default_confirmations = default_confirmations

    def wait_for_confirmation(
        self,
        tx_hash: str,
        confirmations: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> Receipt:
        """
        Wait for a transaction to be confirmed.

        Args:
            tx_hash: Transaction hash
            confirmations: Required depth (defaults to ``default_confirmations``)
            timeout: Deadline in seconds (None waits as long as the client does)

        Returns:
            Receipt of the confirmed transaction

        Raises:
            ConfirmationTimeoutError: If the deadline expired first
            ReceiptNotFoundError: If the client returned no receipt
        """
        if confirmations is None:
            confirmations = self.default_confirmations
        if confirmations < 1:
            raise ValueError(f"confirmations must be >= 1, got {confirmations}")

        logger.info("Waiting for %d confirmations of %s", confirmations, tx_hash)
        started = time.monotonic()

        receipt = self.client.wait_for_transaction(tx_hash, confirmations, timeout)

        if receipt is None:
            if timeout is not None and time.monotonic() - started >= timeout:
                raise ConfirmationTimeoutError(
                    f"Transaction {tx_hash} not confirmed within {timeout}s"
                )
            raise ReceiptNotFoundError(f"Transaction receipt not found for {tx_hash}")

        logger.info("Transaction %s confirmed in block %d", tx_hash, receipt.block_number)
        return receipt
