"""
ABI helpers - contract ABIs, compiled artifacts and call encoding.

The MYERC20 ABI ships with the package (``contracts/MYERC20.abi.json``).
Deployment bytecode is not bundled; it is read from a compiler artifact
supplied by the user (Foundry ``out/*.json``, solc ``--combined-json`` /
standard JSON output, or a raw ``.bin`` file).

Encoding is delegated to eth-abi, hashing to eth-hash.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from eth_abi import decode, encode
from eth_hash.auto import keccak

from ..utils import hex_to_bytes, strip_0x

CONTRACTS_DIR = Path(__file__).resolve().parent.parent / "contracts"

# Minimal ERC-20 read/transfer surface, enough for any standard token.
ERC20_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "decimals",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "symbol",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "name",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "totalSupply",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "transfer",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "value", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
    },
]


def keccak256(data: bytes) -> bytes:
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    return keccak(data)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

@lru_cache(maxsize=16)
def load_abi(contract_name: str = "MYERC20") -> list[dict[str, Any]]:
    """
    Load a bundled contract ABI.

    Raises:
        FileNotFoundError: If no ABI is bundled under that name
    """
    abi_path = CONTRACTS_DIR / f"{contract_name}.abi.json"
    if not abi_path.exists():
        raise FileNotFoundError(f"ABI not found: {abi_path}")

    with abi_path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_artifact(path: Path) -> tuple[Optional[list[dict[str, Any]]], str]:
    """
    Read a compiled contract artifact.

    Returns:
        (abi or None, 0x-prefixed creation bytecode)

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If no bytecode can be found in it
    """
    path = Path(path).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"Artifact not found: {path}")

    text = path.read_text(encoding="utf-8").strip()
    if path.suffix != ".json":
        bytecode = strip_0x(text)
        abi_path = path.with_suffix(".abi")
        abi = json.loads(abi_path.read_text(encoding="utf-8")) if abi_path.exists() else None
        return abi, _checked_bytecode(bytecode, path)

    artifact = json.loads(text)
    abi = artifact.get("abi")
    if isinstance(abi, str):
        abi = json.loads(abi)

    bytecode: Any = artifact.get("bytecode") or artifact.get("bin") or ""
    if isinstance(bytecode, dict):
        # Foundry: {"bytecode": {"object": "0x..."}}
        bytecode = bytecode.get("object", "")
    if not bytecode:
        # solc standard JSON: {"evm": {"bytecode": {"object": "..."}}}
        bytecode = artifact.get("evm", {}).get("bytecode", {}).get("object", "")

    return abi, _checked_bytecode(strip_0x(bytecode), path)


def _checked_bytecode(bytecode: str, source: Path) -> str:
    if not bytecode:
        raise ValueError(f"No bytecode in artifact {source}")
    try:
        bytes.fromhex(bytecode)
    except ValueError as exc:
        raise ValueError(f"Invalid bytecode in artifact {source}: {exc}") from exc
    return "0x" + bytecode


# ---------------------------------------------------------------------------
# Functions
# ---------------------------------------------------------------------------

def canonical_type(param: dict[str, Any]) -> str:
    typ = param["type"]
    if typ.startswith("tuple"):
        inner = ",".join(canonical_type(c) for c in param.get("components", []))
        return f"({inner}){typ[len('tuple'):]}"
    return typ


def _types(params: list[dict[str, Any]]) -> list[str]:
    return [canonical_type(p) for p in params]


def find_function(abi: list, function_name: str, arg_count: Optional[int] = None) -> dict:
    """Find a function entry; overloads are told apart by argument count."""
    for entry in abi:
        if entry.get("type") != "function" or entry.get("name") != function_name:
            continue
        if arg_count is None or len(entry.get("inputs", [])) == arg_count:
            return entry
    raise ValueError(f"Function {function_name} not found in ABI")


def function_selector(signature: str) -> bytes:
    """First 4 bytes of keccak256 of a canonical signature."""
    return keccak256(signature.encode("utf-8"))[:4]


def encode_function_call(abi: list, function_name: str, args: list) -> str:
    """
    ABI-encode a function call.

    Returns:
        0x-prefixed hex encoded calldata
    """
    func = find_function(abi, function_name, len(args))
    input_types = _types(func.get("inputs", []))
    selector = function_selector(f"{function_name}({','.join(input_types)})")
    encoded_args = encode(input_types, args) if args else b""
    return "0x" + selector.hex() + encoded_args.hex()


def decode_function_result(abi: list, function_name: str, data: str, arg_count: Optional[int] = None) -> Any:
    """
    ABI-decode a function call result.

    Returns:
        Decoded result (single value, tuple, or None for no outputs)
    """
    func = find_function(abi, function_name, arg_count)
    output_types = _types(func.get("outputs", []))
    if not output_types:
        return None

    decoded = decode(output_types, hex_to_bytes(data))
    if len(decoded) == 1:
        return decoded[0]
    return decoded


def encode_constructor_args(abi: list, args: list) -> bytes:
    constructor = next((e for e in abi if e.get("type") == "constructor"), None)
    if constructor is None:
        if args:
            raise ValueError("Constructor not found in ABI, but constructor args were provided.")
        return b""
    input_types = _types(constructor.get("inputs", []))
    if len(input_types) != len(args):
        raise ValueError(
            f"Constructor expects {len(input_types)} args, got {len(args)}"
        )
    return encode(input_types, args) if args else b""


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

def event_signature(entry: dict[str, Any]) -> str:
    return f"{entry['name']}({','.join(_types(entry.get('inputs', [])))})"


def event_topic(entry: dict[str, Any]) -> str:
    """topics[0] for an event entry."""
    return "0x" + keccak256(event_signature(entry).encode("utf-8")).hex()


def event_ids(abi: list) -> dict[str, dict[str, Any]]:
    """Map lower-case topic id -> event entry (anonymous events skipped)."""
    return {
        event_topic(entry).lower(): entry
        for entry in abi
        if entry.get("type") == "event" and not entry.get("anonymous")
    }
