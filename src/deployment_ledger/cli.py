"""Command-line interface for deployment-ledger.

Entry point
-----------
``main()`` is registered as the ``deployment-ledger`` console script.

Usage examples::

    deployment-ledger --network sepolia list
    deployment-ledger --network sepolia health
    deployment-ledger --network sepolia rollback FHEToken
    deployment-ledger --network sepolia addresses
    deployment-ledger --network sepolia costs
    deployment-ledger --network sepolia deploy FHEToken --args '["Token", "TKN", 18]' --verify

Each network's records live in one document under the storage root. Commands
do not lock it: running two commands that write the same network at once
loses one of the writes.
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from .artifacts import coerce_args, load_artifact
from .config import Settings, load_settings
from .confirmations import ConfirmationWaiter
from .deployer import Deployer
from .exceptions import DeploymentError
from .explorer import EtherscanVerifier
from .gas import GasEstimator
from .manager import LifecycleManager
from .reports import format_deployment_summary
from .rpc import JsonRpcChainClient
from .store import DeploymentStore
from .types import HealthStatus
from .units import format_ether
from .verification import VerificationClient

logger = logging.getLogger(__name__)

COMMANDS = {
    "list": "List all deployed contracts",
    "health": "Check contract health",
    "rollback": "Mark contract as rolled back",
    "addresses": "Generate address book",
    "costs": "Estimate upgrade costs",
    "report": "Write a deployment cost report",
    "verify": "Verify a deployed contract's source",
    "deploy": "Deploy a contract and record it",
}


class _Parser(argparse.ArgumentParser):
    def error(self, message: str):
        # Unknown commands also list what is available
        _print_available_commands()
        super().error(message)


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = _Parser(
        prog="deployment-ledger",
        description=(
            "Manage recorded contract deployments. Commands against the same "
            "network must not run concurrently: the last writer wins."
        ),
    )
    parser.add_argument("--network", help="Network name (default: $NETWORK or hardhat)")
    parser.add_argument("--root", help="Storage root (default: $DEPLOYMENTS_DIR or ./deployments)")
    parser.add_argument("--rpc-url", help="JSON-RPC endpoint (default: from environment)")
    parser.add_argument("--artifacts", help="Hardhat artifacts directory (default: ./artifacts)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="store_true", help="Show version and exit")

    subparsers = parser.add_subparsers(dest="command", metavar="command")

    for name in ("list", "health", "addresses", "costs", "report"):
        subparsers.add_parser(name, help=COMMANDS[name])

    rollback_parser = subparsers.add_parser("rollback", help=COMMANDS["rollback"])
    rollback_parser.add_argument("name", help="Contract name")

    verify_parser = subparsers.add_parser("verify", help=COMMANDS["verify"])
    verify_parser.add_argument("name", help="Contract name")
    verify_parser.add_argument("--contract", help='Fully qualified name, "path/File.sol:Name"')

    deploy_parser = subparsers.add_parser("deploy", help=COMMANDS["deploy"])
    deploy_parser.add_argument("name", help='Contract name or "path/File.sol:Name"')
    deploy_parser.add_argument(
        "--args", default="[]", help="Constructor arguments as a JSON array (default: [])"
    )
    deploy_parser.add_argument("--verify", action="store_true", help="Verify after deploying")
    deploy_parser.add_argument("--confirmations", type=int, help="Required confirmation depth")
    deploy_parser.add_argument("--timeout", type=float, help="Seconds to wait for confirmation")

    return parser


def _print_available_commands() -> None:
    print("Available commands:")
    for name, description in COMMANDS.items():
        label = f"{name} <name>" if name in ("rollback", "verify", "deploy") else name
        print(f"  {label:<16} - {description}")


def _client(settings: Settings) -> JsonRpcChainClient:
    if not settings.rpc_url:
        raise DeploymentError(
            f"No RPC URL for network '{settings.network}': pass --rpc-url or set RPC_URL"
        )
    return JsonRpcChainClient(settings.rpc_url)


def _verification(settings: Settings) -> Optional[VerificationClient]:
    if not settings.etherscan_api_key or not settings.explorer_api_url:
        return None
    verifier = EtherscanVerifier(
        settings.explorer_api_url,
        settings.etherscan_api_key,
        settings.artifacts_dir,
        chain_id=settings.chain_id,
    )
    return VerificationClient(verifier)


def _manager(settings: Settings, needs_client: bool = False) -> LifecycleManager:
    store = DeploymentStore(settings.network, settings.root)
    client = _client(settings) if needs_client else None
    estimator = GasEstimator(client, settings.default_gas_price) if client is not None else None
    return LifecycleManager(
        store,
        client=client,
        artifacts_dir=settings.artifacts_dir,
        estimator=estimator,
        verification=_verification(settings),
    )


def _cmd_list(settings: Settings, args: argparse.Namespace) -> int:
    print(_manager(settings).render_list())
    return 0


def _cmd_health(settings: Settings, args: argparse.Namespace) -> int:
    manager = _manager(settings, needs_client=True)
    print(f"Health check for {settings.network} contracts...")
    results = manager.check_health()

    symbols = {
        HealthStatus.HEALTHY: "OK  ",
        HealthStatus.ROLLED_BACK: "RB  ",
        HealthStatus.FAILED: "FAIL",
        HealthStatus.ERROR: "ERR ",
    }
    for name, result in results.items():
        print(f"[{symbols[result.status]}] {name}: {result.message}")

    unhealthy = [r for r in results.values() if r.status in (HealthStatus.FAILED, HealthStatus.ERROR)]
    return 1 if unhealthy else 0


def _cmd_rollback(settings: Settings, args: argparse.Namespace) -> int:
    ok, message = _manager(settings).rollback(args.name)
    print(message)
    return 0 if ok else 1


def _cmd_addresses(settings: Settings, args: argparse.Namespace) -> int:
    manager = _manager(settings)
    book = manager.generate_address_book()
    print(json.dumps({cid: {n: e.to_json() for n, e in entries.items()} for cid, entries in book.items()}, indent=2))
    print(f"Address book generated: {manager.store.address_book_path}")
    return 0


def _cmd_costs(settings: Settings, args: argparse.Namespace) -> int:
    manager = _manager(settings, needs_client=True)
    print(f"Upgrade cost estimation for {settings.network}:")
    report = manager.estimate_upgrade_costs()

    for name, estimate in report.estimates.items():
        if estimate.estimate is not None:
            print(
                f"   {name}: {estimate.estimate.gas_limit:,} gas "
                f"(~{estimate.estimate.estimated_cost_ether} ETH)"
            )
        else:
            print(f"   {name}: Estimation failed - {estimate.error}")

    print(
        f"\nTotal estimated upgrade cost: {report.total_gas:,} gas "
        f"(~{format_ether(report.total_cost)} ETH)"
    )
    return 0


def _cmd_report(settings: Settings, args: argparse.Namespace) -> int:
    report = _manager(settings).generate_report()
    print(format_deployment_summary(report))
    return 0


def _cmd_verify(settings: Settings, args: argparse.Namespace) -> int:
    ok = _manager(settings).verify(args.name, args.contract)
    print(f"{args.name}: {'verified' if ok else 'verification failed'}")
    return 0 if ok else 1


def _cmd_deploy(settings: Settings, args: argparse.Namespace) -> int:
    client = _client(settings)
    store = DeploymentStore(settings.network, settings.root)

    raw_args = json.loads(args.args)
    if not isinstance(raw_args, list):
        raise DeploymentError("--args must be a JSON array")
    artifact = load_artifact(settings.artifacts_dir, args.name)
    constructor_args = coerce_args(artifact.abi, raw_args)

    deployer = Deployer(
        client,
        store,
        settings.artifacts_dir,
        estimator=GasEstimator(client, settings.default_gas_price),
        waiter=ConfirmationWaiter(client, settings.confirmations),
        verification=_verification(settings),
        sender=settings.deployer,
    )
    record = deployer.deploy(
        args.name,
        constructor_args,
        verify=args.verify,
        confirmations=args.confirmations,
        timeout=args.timeout,
    )
    print(f"{record.contract_name} deployed at {record.address}")
    print(f"Transaction: {record.tx_hash}")
    print(f"Block: {record.block_number}")
    return 0


HANDLERS: Dict[str, Any] = {
    "list": _cmd_list,
    "health": _cmd_health,
    "rollback": _cmd_rollback,
    "addresses": _cmd_addresses,
    "costs": _cmd_costs,
    "report": _cmd_report,
    "verify": _cmd_verify,
    "deploy": _cmd_deploy,
}


def main(argv: Optional[List[str]] = None) -> None:
    """
    CLI entry point.

    Args:
        argv: Command-line arguments (defaults to ``sys.argv[1:]``)
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from . import __version__

        print(f"deployment-ledger {__version__}")
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    handler = HANDLERS.get(args.command)
    if handler is None:
        _print_available_commands()
        sys.exit(1)

    try:
        settings = load_settings(
            network=args.network,
            root=args.root,
            rpc_url=args.rpc_url,
            artifacts_dir=args.artifacts,
        )
        exit_code = handler(settings, args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        exit_code = 130
    except (DeploymentError, ValueError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)
