"""Path management utilities for deployment-ledger library."""

from pathlib import Path
from typing import Optional, Union


def get_default_store_dir() -> Path:
    """
    Get default storage root.

    Returns:
        Path to ./deployments
    """
    return Path.cwd() / "deployments"


def resolve_root(root: Optional[Union[Path, str]] = None) -> Path:
    """Return an absolute storage root, defaulting to ./deployments."""
    if root is None:
        return get_default_store_dir()
    return Path(root).absolute()


def get_store_paths(
    network: str, root: Optional[Union[Path, str]] = None
) -> tuple[Path, Path, Path]:
    """
    Get the per-network storage paths.

    Args:
        network: Network name (e.g. "sepolia")
        root: Custom storage root (defaults to ./deployments)

    Returns:
        Tuple of (deployments_path, address_book_path, reports_dir)
    """
    root = resolve_root(root)

    deployments_path = root / f"deployments-{network}.json"
    address_book_path = root / f"addresses-{network}.json"
    reports_dir = root / "reports"

    return (deployments_path, address_book_path, reports_dir)
