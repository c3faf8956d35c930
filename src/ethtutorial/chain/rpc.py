"""
JSON-RPC client for an Ethereum-compatible node.

Uses httpx for HTTP transport; every call is a single JSON-RPC 2.0
request.  Quantities come back as hex strings and are decoded with
:func:`~ethtutorial.utils.to_int` by the typed helpers below.
"""

from __future__ import annotations

import itertools
import logging
import os
from typing import Any, Optional, Union

import httpx

from ..errors import RpcError
from ..utils import to_hex, to_int

logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = "http://localhost:8545"
RPC_TIMEOUT = 30.0

BlockId = Union[int, str, None]

_request_ids = itertools.count(1)


def get_rpc_url() -> str:
    """Get the RPC URL from environment or default."""
    return os.environ.get("ETH_RPC_URL", DEFAULT_RPC_URL)


def _block_param(block: BlockId) -> str:
    if block is None:
        return "latest"
    if isinstance(block, int):
        return to_hex(block)
    return block


def _rpc_call(method: str, params: list, rpc_url: Optional[str] = None) -> Any:
    """
    Make a JSON-RPC call.

    Args:
        method: RPC method name (e.g., "eth_call")
        params: RPC parameters
        rpc_url: RPC endpoint URL

    Returns:
        Result field from the RPC response

    Raises:
        RpcError: If the node answers with an error object
        httpx.HTTPError: On transport failures
    """
    url = rpc_url or get_rpc_url()
    payload = {
        "jsonrpc": "2.0",
        "method": method,
        "params": params,
        "id": next(_request_ids),
    }
    logger.debug("-> %s %s", method, params)

    with httpx.Client(timeout=RPC_TIMEOUT) as client:
        response = client.post(url, json=payload)
        response.raise_for_status()
        data = response.json()

    if "error" in data and data["error"] is not None:
        err = data["error"]
        if isinstance(err, dict):
            raise RpcError(method, err.get("code"), str(err.get("message", "")), err.get("data"))
        raise RpcError(method, None, str(err))

    return data.get("result")


# ---------------------------------------------------------------------------
# Chain
# ---------------------------------------------------------------------------

def chain_id(rpc_url: Optional[str] = None) -> int:
    return to_int(_rpc_call("eth_chainId", [], rpc_url=rpc_url))


def net_version(rpc_url: Optional[str] = None) -> int:
    return to_int(_rpc_call("net_version", [], rpc_url=rpc_url))


def block_number(rpc_url: Optional[str] = None) -> int:
    return to_int(_rpc_call("eth_blockNumber", [], rpc_url=rpc_url))


def get_block(
    block: BlockId = None,
    full_transactions: bool = False,
    rpc_url: Optional[str] = None,
) -> Optional[dict]:
    """eth_getBlockByNumber. ``block`` is a number, a tag, or None for latest."""
    return _rpc_call(
        "eth_getBlockByNumber",
        [_block_param(block), full_transactions],
        rpc_url=rpc_url,
    )


def get_block_by_hash(
    block_hash: str,
    full_transactions: bool = False,
    rpc_url: Optional[str] = None,
) -> Optional[dict]:
    return _rpc_call("eth_getBlockByHash", [block_hash, full_transactions], rpc_url=rpc_url)


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

def get_transaction(tx_hash: str, rpc_url: Optional[str] = None) -> Optional[dict]:
    return _rpc_call("eth_getTransactionByHash", [tx_hash], rpc_url=rpc_url)


def get_transaction_receipt(tx_hash: str, rpc_url: Optional[str] = None) -> Optional[dict]:
    """Receipt dict, or None while the transaction is not mined."""
    return _rpc_call("eth_getTransactionReceipt", [tx_hash], rpc_url=rpc_url)


def send_raw_transaction(raw_tx: str, rpc_url: Optional[str] = None) -> str:
    """
    Send a signed raw transaction.

    Args:
        raw_tx: 0x-prefixed hex encoded signed transaction

    Returns:
        Transaction hash (0x-prefixed hex)
    """
    return _rpc_call("eth_sendRawTransaction", [raw_tx], rpc_url=rpc_url)


# ---------------------------------------------------------------------------
# Accounts & gas
# ---------------------------------------------------------------------------

def get_balance(address: str, block: BlockId = None, rpc_url: Optional[str] = None) -> int:
    """Balance in wei."""
    result = _rpc_call("eth_getBalance", [address, _block_param(block)], rpc_url=rpc_url)
    return to_int(result)


def get_pending_nonce(address: str, rpc_url: Optional[str] = None) -> int:
    """Next nonce, counting transactions still in the mempool."""
    result = _rpc_call("eth_getTransactionCount", [address, "pending"], rpc_url=rpc_url)
    return to_int(result)


def get_gas_price(rpc_url: Optional[str] = None) -> int:
    return to_int(_rpc_call("eth_gasPrice", [], rpc_url=rpc_url))


def get_max_priority_fee(rpc_url: Optional[str] = None) -> int:
    """Suggested EIP-1559 tip (eth_maxPriorityFeePerGas)."""
    return to_int(_rpc_call("eth_maxPriorityFeePerGas", [], rpc_url=rpc_url))


def _call_object(tx: dict) -> dict:
    call: dict[str, Any] = {}
    for key in ("from", "to", "data"):
        if tx.get(key):
            call[key] = tx[key]
    for key in ("value", "gas"):
        if tx.get(key):
            call[key] = to_hex(tx[key])
    return call


def estimate_gas(tx: dict, rpc_url: Optional[str] = None) -> int:
    """eth_estimateGas for a call object with from/to/value/data."""
    return to_int(_rpc_call("eth_estimateGas", [_call_object(tx)], rpc_url=rpc_url))


def eth_call(tx: dict, block: BlockId = None, rpc_url: Optional[str] = None) -> str:
    """Read-only call; returns the raw 0x-prefixed return data."""
    return _rpc_call("eth_call", [_call_object(tx), _block_param(block)], rpc_url=rpc_url)


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

def new_block_filter(rpc_url: Optional[str] = None) -> str:
    return _rpc_call("eth_newBlockFilter", [], rpc_url=rpc_url)


def new_log_filter(
    address: Optional[Union[str, list[str]]] = None,
    topics: Optional[list] = None,
    from_block: BlockId = None,
    rpc_url: Optional[str] = None,
) -> str:
    criteria: dict[str, Any] = {"fromBlock": _block_param(from_block)}
    if address:
        criteria["address"] = address
    if topics:
        criteria["topics"] = topics
    return _rpc_call("eth_newFilter", [criteria], rpc_url=rpc_url)


def get_filter_changes(filter_id: str, rpc_url: Optional[str] = None) -> list:
    return _rpc_call("eth_getFilterChanges", [filter_id], rpc_url=rpc_url) or []


def uninstall_filter(filter_id: str, rpc_url: Optional[str] = None) -> bool:
    return bool(_rpc_call("eth_uninstallFilter", [filter_id], rpc_url=rpc_url))


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------

def read_contract(
    contract_address: str,
    function_name: str,
    args: Optional[list] = None,
    abi: Optional[list] = None,
    rpc_url: Optional[str] = None,
) -> Any:
    """
    Read from a smart contract (eth_call).

    Args:
        contract_address: 0x-prefixed contract address
        function_name: Function to call
        args: Function arguments (default: [])
        abi: Contract ABI (default: bundled MYERC20 ABI)

    Returns:
        Decoded return value(s), or None for empty return data
    """
    from .abi import decode_function_result, encode_function_call, load_abi

    abi = abi if abi is not None else load_abi()
    args = args or []
    calldata = encode_function_call(abi, function_name, args)

    result = eth_call({"to": contract_address, "data": calldata}, rpc_url=rpc_url)
    if result is None or result == "0x":
        return None

    return decode_function_result(abi, function_name, result, arg_count=len(args))
