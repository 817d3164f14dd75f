"""Source verification against a block-explorer service."""

import logging
from typing import List, Optional, Protocol

from .exceptions import ContractNotFoundError
from .store import DeploymentStore
from .types import ConstructorArg, VerificationOutcome, VerificationResult

logger = logging.getLogger(__name__)


class Verifier(Protocol):
    """Verification service adapter."""

    def submit_verification(
        self,
        address: str,
        constructor_args: List[ConstructorArg],
        contract_path: Optional[str] = None,
    ) -> VerificationResult: ...


class VerificationClient:
    """
    Submits deployed contracts for verification.

    "Already verified" counts as success, so verification can be re-run
    safely. Failures are logged and reported, never raised, and there is no
    automatic retry.
    """

    def __init__(self, verifier: Verifier):
        self.verifier = verifier

    def verify(
        self,
        address: str,
        constructor_args: Optional[List[ConstructorArg]] = None,
        contract_path: Optional[str] = None,
    ) -> bool:
        """
        Verify the contract at ``address``.

        Args:
            address: Deployed contract address
            constructor_args: Arguments the contract was deployed with
            contract_path: Fully qualified name ("path/File.sol:Name") when
                the bytecode is ambiguous

        Returns:
            True if verified (now or previously), False otherwise
        """
        logger.info("Verifying contract at %s", address)
        try:
            result = self.verifier.submit_verification(
                address, list(constructor_args or []), contract_path
            )
        except Exception as e:
            result = VerificationResult.error(str(e))

        if result.outcome is VerificationOutcome.OK:
            logger.info("Contract verified at %s", address)
            return True
        if result.outcome is VerificationOutcome.ALREADY_VERIFIED:
            logger.info("Contract at %s is already verified", address)
            return True

        logger.error("Verification failed for %s: %s", address, result.reason)
        return False

    def verify_record(
        self, store: DeploymentStore, contract_name: str, contract_path: Optional[str] = None
    ) -> bool:
        """
        Verify a stored deployment and persist ``verified=True`` on success.

        Raises:
            ContractNotFoundError: If the store has no such record
            StoreWriteError: If the updated record cannot be saved
        """
        record = store.get(contract_name)
        if record is None:
            raise ContractNotFoundError(
                f"Contract '{contract_name}' not found on network '{store.network}'"
            )

        if not self.verify(record.address, record.constructor_args, contract_path):
            return False

        if not record.verified:
            record.verified = True
            store.upsert(record)
        return True
