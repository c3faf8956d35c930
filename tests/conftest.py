"""
Shared fixtures.

``node`` replaces the JSON-RPC transport (``ethtutorial.chain.rpc._rpc_call``)
with an in-memory responder, so chain-facing code runs without a network.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable, Union

import pytest
from eth_abi import encode

from ethtutorial.errors import RpcError

# Well-known dev-chain key (Hardhat/Anvil account #0); never holds real funds.
DEV_PRIVATE_KEY = "ac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEV_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

RECIPIENT = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
TOKEN = "0x5FbDB2315678afecb367f032d93F642f64180aa3"

TX_HASH = "0x" + "ab" * 32
BLOCK_HASH = "0x" + "cd" * 32

CONFIG_VARS = [
    "ALCHEMY_API_KEY",
    "ETHEREUM_NETWORK",
    "ETHEREUM_HTTP_URL",
    "ETHEREUM_WS_URL",
    "ETH_RPC_URL",
    "TEST_PRIVATE_KEY",
    "TEST_SEND_ADDRESS",
    "TEST_RECIPIENT_ADDRESS",
    "CONTRACT_ADDRESS",
    "CONTRACT_ARTIFACT",
    "DEFAULT_GAS_LIMIT",
    "GAS_PRICE_MULTIPLIER",
    "LOG_LEVEL",
    "LOG_OUTPUT",
]

Handler = Union[Any, Callable[[list], Any]]


class FakeNode:
    """In-memory JSON-RPC responder keyed by method name.

    A registered result may be a plain value or a callable taking the
    params list.  Unregistered methods answer with a -32601 error, like
    a node that does not implement them.
    """

    def __init__(self) -> None:
        self.handlers: dict[str, Handler] = {}
        self.calls: list[tuple[str, list]] = []
        self.sent: list[str] = []

    def on(self, method: str, result: Handler) -> "FakeNode":
        self.handlers[method] = result
        return self

    def fail(self, method: str, message: str = "boom", code: int = -32000) -> "FakeNode":
        def _raise(params: list) -> Any:
            raise RpcError(method, code, message)

        self.handlers[method] = _raise
        return self

    def params(self, method: str) -> list[list]:
        return [params for name, params in self.calls if name == method]

    def __call__(self, method: str, params: list, rpc_url: Any = None) -> Any:
        self.calls.append((method, params))
        if method not in self.handlers:
            raise RpcError(method, -32601, "the method does not exist/is not available")
        handler = self.handlers[method]
        return handler(params) if callable(handler) else handler


def make_block(number: int, base_fee: Union[int, None] = 10**9, txs: int = 2) -> dict:
    block = {
        "number": hex(number),
        "hash": "0x" + f"{number:064x}",
        "timestamp": hex(1_700_000_000 + number * 12),
        "gasLimit": hex(30_000_000),
        "gasUsed": hex(12_000_000),
        "transactions": ["0x" + f"{i:064x}" for i in range(txs)],
    }
    if base_fee is not None:
        block["baseFeePerGas"] = hex(base_fee)
    return block


def make_receipt(status: int = 1, block_number: int = 100, **extra: Any) -> dict:
    receipt = {
        "transactionHash": TX_HASH,
        "status": hex(status),
        "blockNumber": hex(block_number),
        "gasUsed": hex(21_000),
        "logs": [],
    }
    receipt.update(extra)
    return receipt


@pytest.fixture()
def node(monkeypatch: pytest.MonkeyPatch) -> FakeNode:
    fake = FakeNode()
    monkeypatch.setattr("ethtutorial.chain.rpc._rpc_call", fake)
    return fake


@pytest.fixture()
def london_node(node: FakeNode) -> FakeNode:
    """A node on chain 1337 with a 1 gwei base fee that accepts transactions."""
    def _send(params: list) -> str:
        node.sent.append(params[0])
        return "0x" + f"{len(node.sent):064x}"

    node.on("eth_chainId", "0x539")
    node.on("eth_getTransactionCount", "0x7")
    node.on("eth_getBlockByNumber", lambda params: make_block(100))
    node.on("eth_maxPriorityFeePerGas", hex(2 * 10**9))
    node.on("eth_gasPrice", hex(3 * 10**9))
    node.on("eth_estimateGas", hex(21_000))
    node.on("eth_blockNumber", hex(100))
    node.on("eth_sendRawTransaction", _send)
    return node


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep tests away from the developer's .env files and settings."""
    for var in CONFIG_VARS:
        monkeypatch.delenv(var, raising=False)
    home_env = tmp_path / "home" / ".ethtutorial" / ".env"
    monkeypatch.setattr("ethtutorial.config.ETHTUTORIAL_ENV", home_env)
    monkeypatch.setattr("ethtutorial.wallet.eth.ETHTUTORIAL_ENV", home_env)
    monkeypatch.chdir(tmp_path)

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield home_env
    root.handlers[:] = handlers
    root.setLevel(level)
    # load_dotenv writes straight into os.environ; prior values are restored
    # by monkeypatch afterwards
    for var in CONFIG_VARS:
        os.environ.pop(var, None)


def contract_calls(results: dict[str, Any]) -> Callable[[list], Any]:
    """eth_call handler answering by 4-byte selector.

    ``results`` maps a selector ("0x70a08231") to return data, or to an
    exception instance to raise.
    """
    def _call(params: list) -> Any:
        selector = params[0]["data"][:10]
        result = results.get(selector)
        if result is None:
            raise RpcError("eth_call", 3, "execution reverted")
        if isinstance(result, Exception):
            raise result
        return result

    return _call


def abi_word(types: list[str], values: list[Any]) -> str:
    return "0x" + encode(types, values).hex()
