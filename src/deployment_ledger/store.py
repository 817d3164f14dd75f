"""Deployment record store for deployment-ledger library.

One JSON document per network holds the ordered list of deployment records.
Records are keyed by contract name in memory and serialized to a list only
when written. Every write replaces the whole document.

There is no cross-process locking: two processes writing the same network's
document race and the last writer wins. Run one operator per network.
"""

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .exceptions import StoreWriteError
from .paths import get_store_paths
from .types import DeploymentRecord

logger = logging.getLogger(__name__)


def now_millis() -> int:
    return int(time.time() * 1000)


class DeploymentStore:
    """Durable per-network collection of deployment records."""

    def __init__(self, network: str, root: Optional[Union[Path, str]] = None):
        """
        Initialize a store handle. Nothing is read or created until used.

        Args:
            network: Network name the document belongs to
            root: Storage root (defaults to ./deployments)
        """
        self.network = network
        self.path, self.address_book_path, self.reports_dir = get_store_paths(network, root)
        self._corrupt = False

    def _read_document(self) -> Any:
        with open(self.path) as f:
            return json.load(f)

    def records(self) -> Dict[str, DeploymentRecord]:
        """
        Load all records keyed by contract name, in document order.

        Returns:
            Mapping contract name -> record.
            Empty if the document doesn't exist or is corrupted.
        """
        self._corrupt = False
        try:
            document = self._read_document()
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Deployment store %s is unreadable, treating as empty: %s", self.path, e)
            self._corrupt = True
            return {}

        # Older tooling wrote {name: record} instead of a list
        if isinstance(document, dict):
            items: Iterable[Any] = (
                {"contractName": name, **entry} if isinstance(entry, dict) else entry
                for name, entry in document.items()
            )
        elif isinstance(document, list):
            items = document
        else:
            logger.warning(
                "Deployment store %s has unexpected shape %s, treating as empty",
                self.path,
                type(document).__name__,
            )
            self._corrupt = True
            return {}

        records: Dict[str, DeploymentRecord] = {}
        try:
            for entry in items:
                record = DeploymentRecord.from_json(entry, network=self.network)
                # Later duplicates win, matching upsert semantics
                records.pop(record.contract_name, None)
                records[record.contract_name] = record
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Deployment store %s is corrupt, treating as empty: %s", self.path, e)
            self._corrupt = True
            return {}

        return records

    def load(self) -> List[DeploymentRecord]:
        """Load all records in document order. Never raises."""
        return list(self.records().values())

    def get(self, contract_name: str) -> Optional[DeploymentRecord]:
        return self.records().get(contract_name)

    def upsert(self, record: DeploymentRecord) -> None:
        """
        Insert or replace the record with the same contract name.

        The replaced record is moved to the end of the document.

        Raises:
            StoreWriteError: If the document cannot be written
        """
        records = self.records()
        records.pop(record.contract_name, None)
        records[record.contract_name] = record
        self._write(records.values())
        logger.info("Saved deployment record for %s on %s", record.contract_name, self.network)

    def save_all(self, records: Iterable[DeploymentRecord]) -> None:
        """
        Replace the whole document with the given records.

        Records with duplicate names collapse to the last one.

        Raises:
            StoreWriteError: If the document cannot be written
        """
        keyed: Dict[str, DeploymentRecord] = {}
        for record in records:
            keyed.pop(record.contract_name, None)
            keyed[record.contract_name] = record
        self.records()  # refresh corruption flag before overwriting
        self._write(keyed.values())

    def _write(self, records: Iterable[DeploymentRecord]) -> None:
        document = [record.to_json() for record in records]

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            if self._corrupt and self.path.exists():
                backup = self.path.with_name(f"{self.path.name}.corrupt-{now_millis()}")
                os.replace(self.path, backup)
                logger.warning("Moved corrupt deployment store aside to %s", backup)
                self._corrupt = False

            # Write to a sibling temp file, then rename over the document
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w") as f:
                    json.dump(document, f, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StoreWriteError(f"Failed to write deployment store {self.path}: {e}") from e
