"""
CLI integration tests using Click's test runner.

Chain access goes through the in-memory ``node`` fixture, so no command
here touches the network.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from conftest import (
    DEV_ADDRESS,
    DEV_PRIVATE_KEY,
    RECIPIENT,
    TOKEN,
    TX_HASH,
    FakeNode,
    abi_word,
    contract_calls,
    make_block,
    make_receipt,
)
from ethtutorial.chain.abi import load_abi
from ethtutorial.cli import cli

RPC = ["--rpc-url", "http://node.test:8545"]


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def wallet_env():
    with patch.dict(os.environ, {"TEST_PRIVATE_KEY": DEV_PRIVATE_KEY}):
        yield DEV_PRIVATE_KEY


class TestVersionAndInfo:
    """Commands that need neither a wallet nor a node."""

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_banner_and_help(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "E T H T U T O R I A L" in result.output
        assert "subscribe" in result.output

    def test_info_without_wallet(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["info"])
        assert result.exit_code == 0
        assert "not initialized" in result.output
        assert "not configured" in result.output
        assert "ALCHEMY_API_KEY" in result.output

    def test_info_with_configuration(self, runner: CliRunner, wallet_env: str) -> None:
        env = {"ETHEREUM_NETWORK": "sepolia", "ALCHEMY_API_KEY": "key", "CONTRACT_ADDRESS": TOKEN}
        with patch.dict(os.environ, env):
            result = runner.invoke(cli, ["info"])
        assert result.exit_code == 0
        assert DEV_ADDRESS in result.output
        assert "sepolia" in result.output
        assert "(test)" in result.output
        assert TOKEN in result.output

    def test_env_file_option(self, runner: CliRunner, tmp_path: Path) -> None:
        env_file = tmp_path / "custom.env"
        env_file.write_text(f"TEST_PRIVATE_KEY={DEV_PRIVATE_KEY}\n", encoding="utf-8")
        result = runner.invoke(cli, ["--env-file", str(env_file), "whoami"])
        assert result.exit_code == 0
        assert DEV_ADDRESS in result.output


class TestWhoami:
    def test_with_wallet(self, runner: CliRunner, wallet_env: str) -> None:
        result = runner.invoke(cli, ["whoami"])
        assert result.exit_code == 0
        assert f"Address: {DEV_ADDRESS}" in result.output

    def test_without_wallet(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["whoami"])
        assert result.exit_code == 1
        assert "No wallet found." in result.output

    def test_reads_cwd_env_file(self, runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text(f"TEST_PRIVATE_KEY=0x{DEV_PRIVATE_KEY}\n", encoding="utf-8")
        result = runner.invoke(cli, ["whoami"])
        assert result.exit_code == 0
        assert DEV_ADDRESS in result.output


class TestWallet:
    def test_new(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["wallet", "new"])
        assert result.exit_code == 0
        assert "Address: 0x" in result.output
        assert "Private Key: " in result.output

    def test_new_save(self, runner: CliRunner, tmp_path: Path) -> None:
        env_path = tmp_path / "wallet.env"
        result = runner.invoke(cli, ["wallet", "new", "--save", "--env-path", str(env_path)])
        assert result.exit_code == 0
        assert "TEST_PRIVATE_KEY=" in env_path.read_text(encoding="utf-8")
        assert str(env_path) in result.output

    def test_validate(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["wallet", "validate", RECIPIENT])
        assert result.exit_code == 0
        assert "Valid address" in result.output

    def test_validate_rejects(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["wallet", "validate", "0x1234"])
        assert result.exit_code == 1
        assert "Invalid address" in result.output


class TestQueries:
    def test_block(self, runner: CliRunner, node: FakeNode) -> None:
        node.on("eth_getBlockByNumber", lambda params: make_block(100, txs=4))

        result = runner.invoke(cli, RPC + ["block"])

        assert result.exit_code == 0
        assert "#100" in result.output
        assert "Transactions:" in result.output
        assert "1 Gwei" in result.output

    def test_block_not_found(self, runner: CliRunner, node: FakeNode) -> None:
        node.on("eth_getBlockByNumber", None)
        result = runner.invoke(cli, RPC + ["block", "--number", "999999999"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_tx(self, runner: CliRunner, node: FakeNode) -> None:
        node.on("eth_getTransactionByHash", {
            "hash": TX_HASH,
            "from": DEV_ADDRESS,
            "to": None,
            "value": hex(10**18),
            "gas": hex(21_000),
            "gasPrice": hex(10**9),
            "nonce": "0x0",
            "input": "0x6080",
            "blockNumber": "0x64",
            "type": "0x0",
        })

        result = runner.invoke(cli, RPC + ["tx", TX_HASH])

        assert result.exit_code == 0
        assert "(contract creation)" in result.output
        assert "1.0000 ETH" in result.output

    def test_receipt(self, runner: CliRunner, node: FakeNode) -> None:
        node.on("eth_getTransactionReceipt", make_receipt(status=0))
        result = runner.invoke(cli, RPC + ["receipt", TX_HASH])
        assert result.exit_code == 0
        assert "Failed" in result.output

    def test_rpc_error_exit_code(self, runner: CliRunner, node: FakeNode) -> None:
        node.fail("eth_getTransactionReceipt", "upstream down")
        result = runner.invoke(cli, RPC + ["receipt", TX_HASH])
        assert result.exit_code == 3
        assert "upstream down" in result.output

    def test_wait(self, runner: CliRunner, node: FakeNode) -> None:
        node.on("eth_getTransactionReceipt", make_receipt(block_number=100))
        node.on("eth_blockNumber", hex(102))

        result = runner.invoke(cli, RPC + ["wait", TX_HASH, "--preset", "safe", "--poll-interval", "0"])

        assert result.exit_code == 0
        assert "SUCCESS: Transaction confirmed!" in result.output

    def test_wait_reverted(self, runner: CliRunner, node: FakeNode) -> None:
        node.on("eth_getTransactionReceipt", make_receipt(status=0))
        result = runner.invoke(cli, RPC + ["wait", TX_HASH, "--poll-interval", "0"])
        assert result.exit_code == 4
        assert "reverted" in result.output


class TestSubscribe:
    def test_next_block(self, runner: CliRunner, node: FakeNode) -> None:
        node.on("eth_newBlockFilter", "0x1")
        node.on("eth_getFilterChanges", ["0x" + "ee" * 32])
        node.on("eth_getBlockByHash", make_block(101))
        node.on("eth_uninstallFilter", True)

        result = runner.invoke(cli, RPC + ["subscribe", "--poll-interval", "0"])

        assert result.exit_code == 0
        assert "Listening for new blocks" in result.output
        assert "New block: #101" in result.output
        assert "Received new block #101" in result.output

    def test_follow_with_count(self, runner: CliRunner, node: FakeNode) -> None:
        node.on("eth_newBlockFilter", "0x1")
        node.on("eth_getFilterChanges", ["0x" + "ee" * 32, "0x" + "ef" * 32])
        node.on("eth_getBlockByHash", make_block(101))
        node.on("eth_uninstallFilter", True)

        result = runner.invoke(cli, RPC + ["subscribe", "-f", "--count", "2", "--poll-interval", "0"])

        assert result.exit_code == 0
        assert "Stopped after 2 block(s)." in result.output

    def test_timeout(self, runner: CliRunner, node: FakeNode) -> None:
        node.on("eth_newBlockFilter", "0x1")
        node.on("eth_getFilterChanges", [])
        node.on("eth_uninstallFilter", True)

        result = runner.invoke(cli, RPC + ["subscribe", "--timeout", "0", "--poll-interval", "0"])

        assert result.exit_code == 1
        assert "No new block" in result.output


class TestTransfer:
    def test_eth_transfer(self, runner: CliRunner, london_node: FakeNode, wallet_env: str) -> None:
        result = runner.invoke(cli, RPC + ["transfer", "--to", RECIPIENT, "--amount", "0.001"])

        assert result.exit_code == 0, result.output
        assert "ETH transfer sent!" in result.output
        assert "EIP-1559" in result.output
        assert len(london_node.sent) == 1

    def test_invalid_recipient(self, runner: CliRunner, wallet_env: str) -> None:
        result = runner.invoke(cli, RPC + ["transfer", "--to", "0xnope", "--amount", "1"])
        assert result.exit_code == 2
        assert "Invalid recipient" in result.output

    def test_invalid_amount(self, runner: CliRunner, wallet_env: str) -> None:
        result = runner.invoke(cli, RPC + ["transfer", "--to", RECIPIENT, "--amount", "lots"])
        assert result.exit_code == 2
        assert "not a valid amount" in result.output

    def test_zero_amount(self, runner: CliRunner, wallet_env: str) -> None:
        result = runner.invoke(cli, RPC + ["transfer", "--to", RECIPIENT, "--amount", "0"])
        assert result.exit_code == 2
        assert "Amount must be positive" in result.output

    def test_without_wallet(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, RPC + ["transfer", "--to", RECIPIENT, "--amount", "1"])
        assert result.exit_code == 1
        assert "TEST_PRIVATE_KEY not found" in result.output


class TestToken:
    def test_zero_balance_hints(self, runner: CliRunner, node: FakeNode) -> None:
        node.on("eth_call", contract_calls({"0x70a08231": abi_word(["uint256"], [0])}))

        result = runner.invoke(cli, RPC + ["token", "balance", "--token", TOKEN, "--wallet", RECIPIENT])

        assert result.exit_code == 0
        assert "TOKEN" in result.output
        assert "Balance is 0. Possible reasons:" in result.output

    def test_balance_defaults_to_config(self, runner: CliRunner, node: FakeNode, wallet_env: str) -> None:
        node.on("eth_call", contract_calls({
            "0x95d89b41": abi_word(["string"], ["MTK"]),
            "0x313ce567": abi_word(["uint8"], [18]),
            "0x70a08231": abi_word(["uint256"], [25 * 10**17]),
        }))

        with patch.dict(os.environ, {"CONTRACT_ADDRESS": TOKEN}):
            result = runner.invoke(cli, RPC + ["token", "balance"])

        assert result.exit_code == 0
        assert "2.500000 MTK" in result.output
        assert DEV_ADDRESS in result.output

    def test_supply(self, runner: CliRunner, node: FakeNode) -> None:
        node.on("eth_call", contract_calls({"0x18160ddd": abi_word(["uint256"], [10**24])}))
        result = runner.invoke(cli, RPC + ["token", "supply", "--token", TOKEN])
        assert result.exit_code == 0
        assert "1000000" in result.output

    def test_manual_transfer(self, runner: CliRunner, london_node: FakeNode, wallet_env: str) -> None:
        result = runner.invoke(
            cli,
            RPC + ["token", "transfer", "--manual", "--to", RECIPIENT, "--token", TOKEN, "--amount", "10"],
        )
        assert result.exit_code == 0, result.output
        assert "Transfer sent!" in result.output

    def test_manual_transfer_rejects_uint256_overflow(
        self, runner: CliRunner, london_node: FakeNode, wallet_env: str
    ) -> None:
        result = runner.invoke(
            cli,
            RPC + ["token", "transfer", "--manual", "--to", RECIPIENT, "--token", TOKEN, "--amount", "1e60"],
        )
        assert result.exit_code == 1
        assert "Manual ERC-20 transfer failed: amount exceeds uint256" in result.output
        assert london_node.sent == []

    def test_abi_transfer_rejects_uint256_overflow(
        self, runner: CliRunner, london_node: FakeNode, wallet_env: str
    ) -> None:
        london_node.on("eth_call", contract_calls({"0x313ce567": abi_word(["uint8"], [18])}))

        result = runner.invoke(
            cli, RPC + ["token", "transfer", "--to", RECIPIENT, "--token", TOKEN, "--amount", "1e60"]
        )
        assert result.exit_code == 1
        assert "amount exceeds uint256" in result.output
        assert london_node.sent == []

    def test_missing_token(self, runner: CliRunner, wallet_env: str) -> None:
        result = runner.invoke(cli, RPC + ["token", "transfer", "--to", RECIPIENT, "--amount", "1"])
        assert result.exit_code == 2
        assert "Invalid token address" in result.output


class TestDeploy:
    def test_requires_artifact(self, runner: CliRunner, wallet_env: str) -> None:
        result = runner.invoke(cli, RPC + ["deploy", "--recipient", RECIPIENT])
        assert result.exit_code == 2
        assert "CONTRACT_ARTIFACT" in result.output

    def test_deploy(self, runner: CliRunner, london_node: FakeNode, wallet_env: str, tmp_path: Path) -> None:
        artifact = tmp_path / "MYERC20.json"
        artifact.write_text(json.dumps({"abi": load_abi(), "bytecode": "0x6080604052"}), encoding="utf-8")
        london_node.on(
            "eth_getTransactionReceipt", make_receipt(block_number=99, contractAddress=TOKEN)
        )
        london_node.on("eth_call", contract_calls({"0x95d89b41": abi_word(["string"], ["MTK"])}))

        result = runner.invoke(
            cli, RPC + ["deploy", "--artifact", str(artifact), "--recipient", RECIPIENT]
        )

        assert result.exit_code == 0, result.output
        assert "Contract deployed!" in result.output
        assert f"CONTRACT_ADDRESS={TOKEN}" in result.output
        assert "MTK" in result.output


class TestWatch:
    def test_invalid_contract(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, RPC + ["watch"])
        assert result.exit_code == 2
        assert "Invalid contract address" in result.output

    def test_prints_events(self, runner: CliRunner, node: FakeNode) -> None:
        transfer_log = {
            "address": TOKEN,
            "topics": [
                "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef",
                "0x" + "0" * 24 + DEV_ADDRESS[2:].lower(),
                "0x" + "0" * 24 + RECIPIENT[2:].lower(),
            ],
            "data": abi_word(["uint256"], [3 * 10**18]),
            "blockNumber": "0x64",
            "transactionHash": TX_HASH,
            "logIndex": "0x0",
        }
        batches = [[transfer_log]]
        node.on("eth_newFilter", "0x5")
        node.on("eth_getFilterChanges", lambda params: batches.pop() if batches else [])
        node.on("eth_uninstallFilter", True)

        result = runner.invoke(
            cli, RPC + ["watch", "--contract", TOKEN, "--duration", "0.5", "--poll-interval", "0.05"]
        )

        assert result.exit_code == 0, result.output
        assert "Transfer:" in result.output
        assert "amount (tokens): 3" in result.output
        assert "Event watching stopped" in result.output

    def test_subscription_error(self, runner: CliRunner, node: FakeNode) -> None:
        node.on("eth_newFilter", "0x5")
        node.fail("eth_getFilterChanges", "filter not found")
        node.on("eth_uninstallFilter", True)

        result = runner.invoke(
            cli, RPC + ["watch", "--contract", TOKEN, "--duration", "5", "--poll-interval", "0.01"]
        )

        assert result.exit_code == 3
        assert "filter not found" in result.output


class TestPing:
    def test_ping(self, runner: CliRunner, node: FakeNode) -> None:
        node.on("eth_chainId", "0x539")
        node.on("eth_blockNumber", "0x10")
        node.on("eth_getBlockByNumber", lambda params: make_block(16))
        node.on("net_version", "1337")

        result = runner.invoke(cli, RPC + ["ping"])

        assert result.exit_code == 0
        assert "Connected to http://node.test:8545" in result.output
        assert "Chain ID: 1337" in result.output
        assert "Latest block: 16" in result.output
        assert "Network ID: 1337" in result.output
        assert "ready for development" in result.output

    def test_ping_unreachable(self, runner: CliRunner, node: FakeNode) -> None:
        node.fail("eth_chainId", "connection refused")
        result = runner.invoke(cli, RPC + ["ping"])
        assert result.exit_code == 3
        assert "Connection check failed" in result.output


class TestDemo:
    def test_offline(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["demo"])
        assert result.exit_code == 0
        assert "1. Wallet creation" in result.output
        assert "Private Key: " in result.output
        assert "ALCHEMY_API_KEY" in result.output

    def test_queries_without_key(self, runner: CliRunner, node: FakeNode) -> None:
        node.on("eth_chainId", "0x1")
        node.on("eth_getBlockByNumber", lambda params: make_block(100))
        node.on("eth_getTransactionByHash", None)
        node.on("eth_getTransactionReceipt", make_receipt())

        result = runner.invoke(cli, RPC + ["demo", "--skip-subscribe"])

        assert result.exit_code == 0, result.output
        assert "Connected (chain ID 1)" in result.output
        assert "Transaction query failed" in result.output
        assert "Receipt: Status=1" in result.output
        assert "set TEST_PRIVATE_KEY" in result.output

    def test_skips_erc20_without_deployment(
        self, runner: CliRunner, london_node: FakeNode, wallet_env: str
    ) -> None:
        london_node.on("eth_getTransactionByHash", None)
        london_node.on("eth_getTransactionReceipt", make_receipt())

        with patch.dict(os.environ, {"TEST_RECIPIENT_ADDRESS": RECIPIENT}):
            result = runner.invoke(cli, RPC + ["demo", "--skip-subscribe"])

        assert result.exit_code == 0, result.output
        assert "No CONTRACT_ARTIFACT configured" in result.output
        assert "ETH transfer sent!" in result.output
        assert "skipping the ERC-20 demos" in result.output
