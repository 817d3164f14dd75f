"""Operator commands over a network's deployment records."""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .artifacts import load_artifact
from .config import network_profile
from .constants import EMPTY_CODE
from .exceptions import DeploymentError, NetworkNotFoundError, StoreWriteError
from .gas import GasEstimator
from .reports import generate_report
from .rpc import ChainClient
from .store import DeploymentStore, now_millis
from .types import (
    AddressBook,
    AddressBookEntry,
    ContractStatus,
    CostEstimate,
    CostReport,
    DeploymentRecord,
    DeploymentReport,
    HealthResult,
    HealthStatus,
)
from .units import format_ether
from .verification import VerificationClient

logger = logging.getLogger(__name__)


class LifecycleManager:
    """
    Manages deployed contracts on one network.

    The manager owns the network's store document for the duration of a
    command. Concurrent commands against the same network are not
    coordinated: the last write wins.
    """

    def __init__(
        self,
        store: DeploymentStore,
        client: Optional[ChainClient] = None,
        artifacts_dir: Optional[Union[Path, str]] = None,
        estimator: Optional[GasEstimator] = None,
        verification: Optional[VerificationClient] = None,
        max_workers: int = 8,
    ):
        """
        Initialize the manager.

        Args:
            store: Network deployment store
            client: Chain client (required for health and costs)
            artifacts_dir: Compiled artifacts (required for costs)
            estimator: Gas estimator (defaults to one over ``client``)
            verification: Verification client (required for verify)
            max_workers: Upper bound on concurrent chain queries
        """
        self.store = store
        self.client = client
        self.artifacts_dir = Path(artifacts_dir) if artifacts_dir is not None else None
        self.estimator = estimator or (GasEstimator(client) if client is not None else None)
        self.verification = verification
        self.max_workers = max_workers

    @property
    def network(self) -> str:
        return self.store.network

    def live_records(self) -> List[DeploymentRecord]:
        return [r for r in self.store.load() if not r.rolled_back]

    def _require_client(self) -> ChainClient:
        if self.client is None:
            raise DeploymentError("A chain client is required for this command")
        return self.client

    def list_contracts(self) -> Dict[str, ContractStatus]:
        """
        Get the status of every recorded contract.

        Returns:
            Mapping contract name -> ROLLED_BACK, VERIFIED or UNVERIFIED
        """
        return {name: ContractStatus.of(record) for name, record in self.store.records().items()}

    def render_list(self) -> str:
        """Render the contract list as text."""
        lines = [f"Contracts on {self.network}:", "=" * 80]
        for record in self.store.load():
            deployed = datetime.fromtimestamp(record.timestamp / 1000, tz=timezone.utc)
            lines.extend(
                [
                    f"{record.contract_name}:",
                    f"   Address: {record.address}",
                    f"   Status: {ContractStatus.of(record).value.replace('_', ' ')}",
                    f"   Block: {record.block_number}",
                    f"   Gas Used: {record.gas_used:,}",
                    f"   Deployed: {deployed.isoformat()}",
                    "",
                ]
            )
        return "\n".join(lines)

    def _probe(self, record: DeploymentRecord) -> HealthResult:
        try:
            code = self._require_client().get_code(record.address)
        except Exception as e:
            logger.error("Health check for %s failed: %s", record.contract_name, e)
            return HealthResult(HealthStatus.ERROR, str(e))

        if not code or code == EMPTY_CODE:
            return HealthResult(HealthStatus.FAILED, "No code at address")
        return HealthResult(HealthStatus.HEALTHY, "Contract operational")

    def check_health(self) -> Dict[str, HealthResult]:
        """
        Check that every live contract still has code on chain.

        Rolled-back records are reported without querying the chain. The
        remaining queries run concurrently.

        Returns:
            Mapping contract name -> HealthResult, in store order
        """
        records = self.store.load()
        live = [r for r in records if not r.rolled_back]
        if live:
            self._require_client()

        probed: Dict[str, HealthResult] = {}
        if live:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(live))) as executor:
                for record, result in zip(live, executor.map(self._probe, live)):
                    probed[record.contract_name] = result

        results: Dict[str, HealthResult] = {}
        for record in records:
            if record.rolled_back:
                results[record.contract_name] = HealthResult(
                    HealthStatus.ROLLED_BACK, "Contract rolled back"
                )
            else:
                results[record.contract_name] = probed[record.contract_name]
        return results

    def rollback(self, contract_name: str) -> Tuple[bool, str]:
        """
        Mark a contract as rolled back. On-chain state is untouched.

        Rolling back an already rolled-back contract succeeds again.

        Returns:
            Tuple of (success, message); unknown contracts return False

        Raises:
            StoreWriteError: If the updated record cannot be saved
        """
        record = self.store.get(contract_name)
        if record is None:
            message = f"Contract {contract_name} not found on {self.network}"
            logger.error(message)
            return False, message

        record.rolled_back = True
        record.rolled_back_at = now_millis()
        self.store.upsert(record)

        message = f"{contract_name} marked as rolled back"
        logger.info(message)
        return True, message

    def _chain_id(self) -> str:
        try:
            return str(network_profile(self.network)["chain_id"])
        except NetworkNotFoundError:
            return str(self._require_client().chain_id())

    def generate_address_book(self, chain_id: Optional[Union[int, str]] = None) -> AddressBook:
        """
        Rebuild the address book from the store and write it.

        Rolled-back contracts are excluded. The document is regenerated in
        full every time.

        Args:
            chain_id: Chain id key (defaults to the network profile or the node)

        Returns:
            Mapping chain id -> contract name -> AddressBookEntry

        Raises:
            StoreWriteError: If the address book cannot be written
        """
        key = str(chain_id) if chain_id is not None else self._chain_id()
        entries = {
            record.contract_name: AddressBookEntry(
                address=record.address,
                verified=record.verified,
                block=record.block_number,
            )
            for record in self.store.load()
            if not record.rolled_back
        }
        book: AddressBook = {key: entries}

        path = self.store.address_book_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                json.dump(
                    {cid: {name: e.to_json() for name, e in contracts.items()} for cid, contracts in book.items()},
                    f,
                    indent=2,
                )
        except OSError as e:
            raise StoreWriteError(f"Failed to write address book {path}: {e}") from e

        logger.info("Address book generated: %s", path)
        return book

    def _estimate_redeploy(self, record: DeploymentRecord) -> CostEstimate:
        try:
            if self.artifacts_dir is None:
                raise DeploymentError("An artifacts directory is required to estimate costs")
            artifact = load_artifact(self.artifacts_dir, record.contract_name)
            pending = artifact.pending_deployment(record.constructor_args)
            estimate = self.estimator.estimate(pending)
        except Exception as e:
            logger.error("Cost estimation for %s failed: %s", record.contract_name, e)
            return CostEstimate(record.contract_name, error=str(e))
        return CostEstimate(record.contract_name, estimate=estimate)

    def estimate_upgrade_costs(self) -> CostReport:
        """
        Estimate the cost of redeploying every live contract.

        Failed estimates are logged and left out of the totals.

        Returns:
            CostReport with per-contract estimates and totals in gas and wei
        """
        live = self.live_records()
        if live:
            self._require_client()

        estimates: Dict[str, CostEstimate] = {}
        if live:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(live))) as executor:
                for record, result in zip(live, executor.map(self._estimate_redeploy, live)):
                    estimates[record.contract_name] = result

        succeeded = [e.estimate for e in estimates.values() if e.estimate is not None]
        report = CostReport(
            estimates=estimates,
            total_gas=sum((e.gas_limit for e in succeeded), 0),
            total_cost=sum((e.estimated_cost for e in succeeded), 0),
        )
        logger.info(
            "Estimated upgrade cost on %s: %d gas (~%s ETH), %d failed",
            self.network,
            report.total_gas,
            format_ether(report.total_cost),
            len(report.failures),
        )
        return report

    def generate_report(self) -> DeploymentReport:
        return generate_report(self.store)

    def verify(self, contract_name: str, contract_path: Optional[str] = None) -> bool:
        """
        Re-run source verification for a recorded contract.

        Raises:
            ContractNotFoundError: If the contract has no record
        """
        if self.verification is None:
            raise DeploymentError("A verification service is required for this command")
        return self.verification.verify_record(
            self.store, contract_name, contract_path or contract_name
        )
