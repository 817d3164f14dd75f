"""End-to-end contract deployment: estimate, submit, confirm, record, verify."""

import logging
from pathlib import Path
from typing import List, Optional, Union

from .artifacts import load_artifact
from .confirmations import ConfirmationWaiter
from .constants import DEFAULT_CONFIRMATIONS, NETWORK_CONFIG
from .exceptions import DeploymentError
from .gas import GasEstimator
from .rpc import ChainClient
from .store import DeploymentStore, now_millis
from .types import ConstructorArg, DeploymentRecord
from .units import format_ether
from .verification import VerificationClient

logger = logging.getLogger(__name__)


class Deployer:
    """
    Deploys compiled contracts and records them in the network store.

    A record is written only after the deployment transaction has been
    confirmed. Estimation failures, missing receipts and timeouts abort the
    deployment before anything is persisted. Verification runs afterwards and
    never fails the deployment.
    """

    def __init__(
        self,
        client: ChainClient,
        store: DeploymentStore,
        artifacts_dir: Union[Path, str],
        estimator: Optional[GasEstimator] = None,
        waiter: Optional[ConfirmationWaiter] = None,
        verification: Optional[VerificationClient] = None,
        sender: Optional[str] = None,
    ):
        self.client = client
        self.store = store
        self.artifacts_dir = Path(artifacts_dir)
        self.estimator = estimator or GasEstimator(client)
        if waiter is None:
            profile = NETWORK_CONFIG.get(store.network, {})
            waiter = ConfirmationWaiter(
                client, profile.get("confirmations", DEFAULT_CONFIRMATIONS)
            )
        self.waiter = waiter
        self.verification = verification
        self.sender = sender

    def deploy(
        self,
        contract_name: str,
        constructor_args: Optional[List[ConstructorArg]] = None,
        verify: bool = False,
        confirmations: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> DeploymentRecord:
        """
        Deploy a contract and persist its deployment record.

        Args:
            contract_name: Contract name or "path/File.sol:Name"
            constructor_args: Tagged constructor arguments
            verify: Submit for source verification after confirmation
            confirmations: Required depth (defaults to the waiter's)
            timeout: Seconds to wait for confirmation

        Returns:
            The saved DeploymentRecord

        Raises:
            ArtifactNotFoundError: If the contract has no compiled artifact
            EstimationError: If gas estimation fails
            ReceiptNotFoundError: If the transaction receipt never appears
            ConfirmationTimeoutError: If confirmation exceeds ``timeout``
            DeploymentError: If the transaction reverted or created no contract
            StoreWriteError: If the record cannot be saved
        """
        args = list(constructor_args or [])
        artifact = load_artifact(self.artifacts_dir, contract_name)
        pending = artifact.pending_deployment(args, sender=self.sender)

        estimate = self.estimator.estimate(pending)
        logger.info(
            "Deploying %s to %s: %d gas (~%s ETH)",
            artifact.contract_name,
            self.store.network,
            estimate.gas_limit,
            estimate.estimated_cost_ether,
        )

        transaction = pending.to_transaction()
        transaction["gas"] = hex(estimate.gas_limit)
        transaction["gasPrice"] = hex(estimate.gas_price)
        tx_hash = self.client.send_transaction(transaction)
        logger.info("Submitted %s deployment in %s", artifact.contract_name, tx_hash)

        receipt = self.waiter.wait_for_confirmation(tx_hash, confirmations, timeout)
        if receipt.status == 0:
            raise DeploymentError(f"Deployment of {artifact.contract_name} reverted in {tx_hash}")
        if not receipt.contract_address:
            raise DeploymentError(f"Transaction {tx_hash} did not create a contract")

        record = DeploymentRecord(
            contract_name=artifact.contract_name,
            address=receipt.contract_address,
            tx_hash=tx_hash,
            block_number=receipt.block_number,
            timestamp=now_millis(),
            network=self.store.network,
            gas_used=receipt.gas_used,
            gas_price=receipt.effective_gas_price or estimate.gas_price,
            deployer=receipt.from_address or self.sender or "",
            constructor_args=args,
        )
        self.store.upsert(record)
        logger.info(
            "%s deployed at %s in block %d (%s ETH)",
            record.contract_name,
            record.address,
            record.block_number,
            format_ether(record.cost_wei),
        )

        if verify:
            if self.verification is None:
                logger.warning("No verification service configured, skipping %s", record.contract_name)
            elif self.verification.verify(record.address, args, artifact.fully_qualified_name):
                record.verified = True
                self.store.upsert(record)

        return record
