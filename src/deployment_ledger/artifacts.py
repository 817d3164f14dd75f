"""Compiled contract artifacts for deployment-ledger library.

Contracts are treated as opaque Hardhat build outputs: an artifact JSON with
``abi`` and ``bytecode``, plus the build-info file holding the compiler
version and standard-JSON input used for source verification.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from eth_abi import encode

from .exceptions import ArtifactNotFoundError
from .types import ArgKind, ConstructorArg, PendingDeployment


@dataclass
class ContractArtifact:
    """Compiled contract ready to be deployed or verified."""

    contract_name: str
    source_name: str  # e.g. "contracts/Token.sol"
    abi: List[Dict[str, Any]]
    bytecode: str  # 0x-prefixed creation bytecode
    solc_version: Optional[str] = None  # e.g. "v0.8.24+commit.e11b9ed9"
    standard_input: Optional[Dict[str, Any]] = None

    @property
    def fully_qualified_name(self) -> str:
        if not self.source_name:
            return self.contract_name
        return f"{self.source_name}:{self.contract_name}"

    def constructor_inputs(self) -> List[Dict[str, Any]]:
        return _constructor_inputs(self.abi)

    def deploy_data(self, args: Sequence[ConstructorArg]) -> str:
        """Creation bytecode followed by the ABI-encoded constructor arguments."""
        if "__$" in self.bytecode:
            raise ValueError(f"{self.contract_name} bytecode has unlinked libraries")
        return self.bytecode + encode_constructor_args(self.abi, args).hex()

    def pending_deployment(
        self, args: Sequence[ConstructorArg], sender: Optional[str] = None
    ) -> PendingDeployment:
        return PendingDeployment(
            contract_name=self.contract_name,
            data=self.deploy_data(args),
            constructor_args=list(args),
            sender=sender,
        )


def _find_artifact_file(artifacts_dir: Path, contract_name: str) -> Path:
    # Fully qualified names point straight at the artifact
    if ":" in contract_name:
        source_name, name = contract_name.rsplit(":", 1)
        candidate = artifacts_dir / source_name / f"{name}.json"
        if candidate.exists():
            return candidate
        raise ArtifactNotFoundError(f"Artifact for {contract_name} not found at {candidate}")

    matches = [
        p
        for p in artifacts_dir.rglob(f"{contract_name}.json")
        if "build-info" not in p.parts
    ]
    if not matches:
        raise ArtifactNotFoundError(
            f"Artifact for {contract_name} not found under {artifacts_dir}"
        )
    if len(matches) > 1:
        raise ArtifactNotFoundError(
            f"Ambiguous contract name {contract_name}: "
            + ", ".join(str(p.relative_to(artifacts_dir)) for p in sorted(matches))
        )
    return matches[0]


def load_artifact(artifacts_dir: Union[Path, str], contract_name: str) -> ContractArtifact:
    """
    Load a Hardhat artifact and, if present, its build info.

    Args:
        artifacts_dir: Hardhat artifacts directory
        contract_name: Contract name or fully qualified "path/File.sol:Name"

    Returns:
        ContractArtifact

    Raises:
        ArtifactNotFoundError: If no (or more than one) artifact matches
    """
    artifacts_dir = Path(artifacts_dir)
    artifact_file = _find_artifact_file(artifacts_dir, contract_name)

    with open(artifact_file) as f:
        data = json.load(f)

    artifact = ContractArtifact(
        contract_name=data.get("contractName", artifact_file.stem),
        source_name=data.get("sourceName", ""),
        abi=data["abi"],
        bytecode=data["bytecode"],
    )

    # Build info is referenced from the debug file next to the artifact
    dbg_file = artifact_file.with_name(f"{artifact_file.stem}.dbg.json")
    if dbg_file.exists():
        with open(dbg_file) as f:
            build_info_ref = json.load(f).get("buildInfo")
        if build_info_ref:
            build_info_file = (dbg_file.parent / build_info_ref).resolve()
            if build_info_file.exists():
                with open(build_info_file) as f:
                    build_info = json.load(f)
                long_version = build_info.get("solcLongVersion") or build_info.get("solcVersion")
                if long_version:
                    artifact.solc_version = f"v{long_version.lstrip('v')}"
                artifact.standard_input = build_info.get("input")

    return artifact


def _constructor_inputs(abi: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    for item in abi:
        if item.get("type") == "constructor":
            return item.get("inputs", [])
    return []


def _abi_type(param: Dict[str, Any]) -> str:
    abi_type = param["type"]
    if abi_type.startswith("tuple"):
        inner = ",".join(_abi_type(c) for c in param.get("components", []))
        return f"({inner}){abi_type[len('tuple'):]}"
    return abi_type


def _strip_array(abi_type: str) -> str:
    return abi_type[: abi_type.rindex("[")]


def _abi_value(abi_type: str, arg: ConstructorArg) -> Any:
    if abi_type.endswith("]"):
        element = _strip_array(abi_type)
        return [_abi_value(element, item) for item in arg.value]
    if abi_type.startswith("("):
        component_types = _split_tuple(abi_type)
        return tuple(_abi_value(t, item) for t, item in zip(component_types, arg.value))
    if abi_type.startswith(("uint", "int")) and arg.kind is ArgKind.STRING:
        # Older records stored integers as decimal strings
        return int(arg.value, 0)
    return arg.to_python()


def _split_tuple(abi_type: str) -> List[str]:
    inner = abi_type[1:-1]
    parts, depth, start = [], 0, 0
    for i, ch in enumerate(inner):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(inner[start:i])
            start = i + 1
    if inner:
        parts.append(inner[start:])
    return parts


def encode_constructor_args(abi: List[Dict[str, Any]], args: Sequence[ConstructorArg]) -> bytes:
    """
    ABI-encode constructor arguments.

    Raises:
        ValueError: If the number of arguments does not match the constructor
    """
    inputs = _constructor_inputs(abi)
    if len(inputs) != len(args):
        raise ValueError(f"Constructor takes {len(inputs)} arguments, got {len(args)}")
    if not inputs:
        return b""

    types = [_abi_type(param) for param in inputs]
    values = [_abi_value(t, arg) for t, arg in zip(types, args)]
    return encode(types, values)


def _coerce(abi_type: str, raw: Any) -> ConstructorArg:
    if abi_type.endswith("]"):
        element = _strip_array(abi_type)
        return ConstructorArg(ArgKind.LIST, tuple(_coerce(element, item) for item in raw))
    if abi_type.startswith("("):
        component_types = _split_tuple(abi_type)
        if len(component_types) != len(raw):
            raise ValueError(f"Tuple {abi_type} expects {len(component_types)} values")
        return ConstructorArg(
            ArgKind.LIST, tuple(_coerce(t, item) for t, item in zip(component_types, raw))
        )
    if abi_type == "address":
        return ConstructorArg.address(raw)
    if abi_type == "string":
        return ConstructorArg.string(raw)
    if abi_type == "bool":
        if isinstance(raw, str):
            return ConstructorArg.boolean(raw.lower() == "true")
        return ConstructorArg.boolean(bool(raw))
    if abi_type.startswith(("uint", "int")):
        if isinstance(raw, str):
            return ConstructorArg.integer(int(raw, 0))
        if isinstance(raw, float) and not raw.is_integer():
            raise ValueError(f"Non-integral value for {abi_type}: {raw!r}")
        return ConstructorArg.integer(int(raw))
    if abi_type.startswith("bytes"):
        text = raw[2:] if raw.startswith("0x") else raw
        return ConstructorArg.bytes_(bytes.fromhex(text))
    raise ValueError(f"Unsupported constructor parameter type: {abi_type}")


def coerce_args(abi: List[Dict[str, Any]], raw_values: Sequence[Any]) -> List[ConstructorArg]:
    """
    Build tagged constructor arguments from plain JSON values using ABI types.

    Raises:
        ValueError: If a value does not fit its parameter type
    """
    inputs = _constructor_inputs(abi)
    if len(inputs) != len(raw_values):
        raise ValueError(f"Constructor takes {len(inputs)} arguments, got {len(raw_values)}")

    args = []
    for param, raw in zip(inputs, raw_values):
        abi_type = _abi_type(param)
        try:
            args.append(_coerce(abi_type, raw))
        except (TypeError, AttributeError) as e:
            raise ValueError(f"Invalid value for {param.get('name') or abi_type}: {raw!r}") from e
    return args
