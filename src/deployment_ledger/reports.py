"""Deployment cost reports for deployment-ledger library."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from .exceptions import StoreWriteError
from .store import DeploymentStore, now_millis
from .types import DeploymentReport, DeploymentSummary
from .units import format_ether

logger = logging.getLogger(__name__)


def build_report(store: DeploymentStore, timestamp: Optional[int] = None) -> DeploymentReport:
    """
    Aggregate all records of a network into a report without writing it.

    Args:
        store: Network store to read
        timestamp: Generation time in epoch millis (defaults to now)

    Returns:
        DeploymentReport; all-zero totals if the store is empty
    """
    records = store.load()

    total_gas_used = sum((r.gas_used for r in records), 0)
    total_cost_wei = sum((r.cost_wei for r in records), 0)

    return DeploymentReport(
        deployments=records,
        summary=DeploymentSummary(
            total_contracts=len(records),
            total_gas_used=total_gas_used,
            total_cost_wei=total_cost_wei,
            network=store.network,
            timestamp=now_millis() if timestamp is None else timestamp,
        ),
    )


def write_report(report: DeploymentReport, reports_dir: Union[Path, str]) -> Path:
    """
    Write a report to a new timestamped file.

    Existing reports are never overwritten; a clashing name gets a numeric
    suffix.

    Returns:
        Path of the written report

    Raises:
        StoreWriteError: If the report cannot be written
    """
    reports_dir = Path(reports_dir)
    stem = f"report-{report.summary.network}-{report.summary.timestamp}"
    content = json.dumps(report.to_json(), indent=2)

    try:
        reports_dir.mkdir(parents=True, exist_ok=True)
        attempt = 0
        while True:
            suffix = f"-{attempt}" if attempt else ""
            path = reports_dir / f"{stem}{suffix}.json"
            try:
                with open(path, "x") as f:
                    f.write(content)
                return path
            except FileExistsError:
                attempt += 1
    except OSError as e:
        raise StoreWriteError(f"Failed to write report to {reports_dir}: {e}") from e


def generate_report(
    store: DeploymentStore,
    reports_dir: Optional[Union[Path, str]] = None,
    timestamp: Optional[int] = None,
) -> DeploymentReport:
    """
    Build a report for the store's network and persist it as a new artifact.

    Args:
        store: Network store to read
        reports_dir: Output directory (defaults to the store's reports dir)
        timestamp: Generation time in epoch millis (defaults to now)

    Returns:
        The generated DeploymentReport
    """
    report = build_report(store, timestamp)
    path = write_report(report, reports_dir or store.reports_dir)
    logger.info("Deployment report for %s written to %s", store.network, path)
    return report


def format_deployment_summary(report: DeploymentReport) -> str:
    """Render a report as human-readable text."""
    summary = report.summary
    generated = datetime.fromtimestamp(summary.timestamp / 1000, tz=timezone.utc)

    lines = [
        f"DEPLOYMENT REPORT - {summary.network.upper()}",
        "=" * 50,
        "",
        "SUMMARY:",
        f"  Total Contracts: {summary.total_contracts}",
        f"  Total Gas Used: {summary.total_gas_used:,}",
        f"  Total Cost: {format_ether(summary.total_cost_wei)} ETH",
        f"  Network: {summary.network}",
        f"  Timestamp: {generated.isoformat()}",
        "",
        "DEPLOYED CONTRACTS:",
    ]

    for index, record in enumerate(report.deployments, start=1):
        lines.extend(
            [
                "",
                f"  {index}. {record.contract_name}",
                f"     Address: {record.address}",
                f"     Tx Hash: {record.tx_hash}",
                f"     Gas Used: {record.gas_used:,}",
                f"     Cost: {format_ether(record.cost_wei)} ETH",
                f"     Verified: {'Yes' if record.verified else 'No'}",
                f"     Block: {record.block_number}",
            ]
        )

    return "\n".join(lines) + "\n"
