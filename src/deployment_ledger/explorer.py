"""Etherscan-compatible verification service adapter."""

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import requests

from .artifacts import encode_constructor_args, load_artifact
from .constants import ALREADY_VERIFIED_MARKERS
from .exceptions import ArtifactNotFoundError, VerificationError
from .types import ConstructorArg, VerificationResult

logger = logging.getLogger(__name__)


def is_already_verified(message: str) -> bool:
    """Return True if an explorer message says the source is already verified."""
    lowered = message.lower()
    return any(marker in lowered for marker in ALREADY_VERIFIED_MARKERS)


class EtherscanVerifier:
    """
    Submits standard-JSON verification requests to an Etherscan-style API.

    Explorers answer in free text; this adapter maps the answers onto an
    explicit VerificationResult so callers never match on messages.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        artifacts_dir: Union[Path, str],
        chain_id: Optional[int] = None,
        timeout: float = 30,
        poll_interval: float = 5.0,
        max_polls: int = 24,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.artifacts_dir = Path(artifacts_dir)
        self.chain_id = chain_id
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self._session = session or requests.Session()

    def _params(self, **extra: Any) -> Dict[str, Any]:
        params: Dict[str, Any] = {"apikey": self.api_key, "module": "contract", **extra}
        if self.chain_id is not None:
            params["chainid"] = self.chain_id
        return params

    def _request(self, method: str, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            if method == "POST":
                response = self._session.post(self.api_url, data=data, timeout=self.timeout)
            else:
                response = self._session.get(self.api_url, params=data, timeout=self.timeout)
        except requests.RequestException as e:
            raise VerificationError(f"Network error talking to {self.api_url}: {e}") from e

        if response.status_code != 200:
            raise VerificationError(
                f"Explorer request failed with status {response.status_code}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise VerificationError("Invalid JSON in explorer response") from e

    def submit_verification(
        self,
        address: str,
        constructor_args: List[ConstructorArg],
        contract_path: Optional[str] = None,
    ) -> VerificationResult:
        """
        Submit the contract at ``address`` and wait for the explorer's verdict.

        Args:
            address: Deployed contract address
            constructor_args: Arguments the contract was deployed with
            contract_path: Contract name or "path/File.sol:Name" used to find
                the compiled artifact

        Returns:
            VerificationResult (OK, ALREADY_VERIFIED or ERROR)

        Raises:
            VerificationError: On transport failures
        """
        if not contract_path:
            return VerificationResult.error("A contract name or path is required to verify")

        try:
            artifact = load_artifact(self.artifacts_dir, contract_path)
        except ArtifactNotFoundError as e:
            return VerificationResult.error(str(e))

        if artifact.standard_input is None or artifact.solc_version is None:
            return VerificationResult.error(
                f"No build info for {artifact.fully_qualified_name}; recompile first"
            )

        try:
            encoded_args = encode_constructor_args(artifact.abi, constructor_args).hex()
        except (TypeError, ValueError) as e:
            return VerificationResult.error(f"Cannot encode constructor arguments: {e}")

        submitted = self._request(
            "POST",
            self._params(
                action="verifysourcecode",
                contractaddress=address,
                sourceCode=json.dumps(artifact.standard_input),
                codeformat="solidity-standard-json-input",
                contractname=artifact.fully_qualified_name,
                compilerversion=artifact.solc_version,
                # Sic: the explorer API spells it this way
                constructorArguements=encoded_args,
            ),
        )

        result = str(submitted.get("result", ""))
        if submitted.get("status") != "1":
            if is_already_verified(result):
                return VerificationResult.already_verified()
            return VerificationResult.error(result or submitted.get("message", "unknown error"))

        logger.info("Verification submitted for %s (guid %s)", address, result)
        return self._poll_status(result)

    def _poll_status(self, guid: str) -> VerificationResult:
        for _ in range(self.max_polls):
            status = self._request("GET", self._params(action="checkverifystatus", guid=guid))
            result = str(status.get("result", ""))

            if "pending" in result.lower():
                logger.debug("Verification %s: %s", guid, result)
                time.sleep(self.poll_interval)
                continue
            if is_already_verified(result):
                return VerificationResult.already_verified()
            if status.get("status") == "1":
                return VerificationResult.ok()
            return VerificationResult.error(result or "verification failed")

        return VerificationResult.error(f"Verification {guid} still pending after {self.max_polls} checks")
