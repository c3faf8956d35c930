"""
Demo - run the whole tutorial in sequence.

1. Create a wallet (offline)
2. Connect; query the latest block, a sample transaction and receipt
3. Wait for the next block
4. With TEST_PRIVATE_KEY: deploy MYERC20, send ETH, transfer tokens
   both ways, then show the recipient's token balance

Each networked step reports its own failure and the demo moves on.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Optional

import click

from ..chain import rpc
from ..chain.blocks import BlockSummary, get_latest_block, wait_for_next_block
from ..chain.deploy import deploy_contract
from ..chain.query import get_transaction_info, get_transaction_receipt
from ..chain.token import check_token_balance
from ..chain.transfer import transfer_eth, transfer_erc20_with_abi, transfer_erc20_with_amount
from ..units import wei_to_ether
from ..utils import to_int
from ..wallet.eth import create_new_wallet, normalize_private_key
from .context import COMMAND_ERRORS, AppContext, pass_app

# Mainnet transaction used by the query demos.
SAMPLE_TX_HASH = "0x34315509289fd16d4bb9e4d0c9b57441cf31a8c5552bb95a74d988c3f794cb67"

DEMO_ETH_AMOUNT = Decimal("0.001")
DEMO_MANUAL_TOKEN_AMOUNT = Decimal(10)
DEMO_ABI_TOKEN_AMOUNT = Decimal(15)
DEMO_TOKEN_DECIMALS = 18


def _section(title: str) -> None:
    click.echo("")
    click.secho(title, fg="cyan", bold=True)


def _step_failed(what: str, exc: BaseException) -> None:
    click.secho(f"  {what} failed: {exc}", fg="red")


def wallet_demo() -> None:
    address, private_key = create_new_wallet()
    click.echo(f"Address: {address}")
    click.echo(f"Private Key: {private_key}")


def block_query_demo(rpc_url: str) -> None:
    try:
        summary = BlockSummary.from_block(get_latest_block(rpc_url=rpc_url))
    except COMMAND_ERRORS as exc:
        _step_failed("Block query", exc)
        return
    click.echo(f"Block #{summary.number}: {summary.hash}")


def transaction_query_demo(rpc_url: str, tx_hash: str) -> None:
    try:
        info = get_transaction_info(tx_hash, rpc_url=rpc_url)
    except COMMAND_ERRORS as exc:
        _step_failed("Transaction query", exc)
        return
    click.echo(f"Tx {info.hash} => Value: {wei_to_ether(info.value):.4f} ETH")


def receipt_query_demo(rpc_url: str, tx_hash: str) -> None:
    try:
        receipt = get_transaction_receipt(tx_hash, rpc_url=rpc_url)
    except COMMAND_ERRORS as exc:
        _step_failed("Receipt query", exc)
        return
    click.echo(
        f"Receipt: Status={to_int(receipt.get('status'))}, GasUsed={to_int(receipt.get('gasUsed'))}"
    )


def block_subscription_demo(rpc_url: str, timeout: float) -> None:
    click.echo("--- Waiting for the next block ---")
    try:
        summary = BlockSummary.from_block(wait_for_next_block(timeout=timeout, rpc_url=rpc_url))
    except COMMAND_ERRORS as exc:
        _step_failed("Block subscription", exc)
        click.secho("  ⚠️ Skipping the subscription demo", fg="yellow")
        return
    click.echo(f"📦 New block: #{summary.number}, hash: {summary.hash}")
    click.echo(f"   Transactions: {summary.transaction_count}")
    click.echo(f"   Timestamp: {summary.timestamp}")
    click.secho(f"✅ Received new block #{summary.number}", fg="green")


def contract_deployment_demo(
    app: AppContext, private_key: str, artifact: Optional[Path]
) -> Optional[str]:
    recipient = app.config.test_send_address
    if artifact is None:
        click.secho("  ⚠️ No CONTRACT_ARTIFACT configured, skipping deployment", fg="yellow")
        return None
    if not recipient:
        click.secho("  ⚠️ TEST_SEND_ADDRESS not set, skipping deployment", fg="yellow")
        return None

    click.echo("Deploying MYERC20; the deployer becomes the owner.")
    click.echo(f"Initial token recipient: {recipient}")
    try:
        result = deploy_contract(private_key, recipient, artifact, rpc_url=app.rpc_url)
    except COMMAND_ERRORS as exc:
        _step_failed("Contract deployment", exc)
        return None

    click.secho("✅ Contract deployed!", fg="green")
    click.echo(f"   Contract address: {result.contract_address}")
    click.echo(f"   Deployment tx: {result.tx_hash}")
    click.echo("📝 Consider setting CONTRACT_ADDRESS in your .env file")
    return result.contract_address


def eth_transfer_demo(app: AppContext, private_key: str) -> None:
    recipient = app.config.test_recipient_address
    if not recipient:
        click.secho("  ⚠️ TEST_RECIPIENT_ADDRESS not set, skipping ETH transfer", fg="yellow")
        return
    click.echo(f"Sending {DEMO_ETH_AMOUNT} ETH to {recipient}")
    click.echo("Use a test network and test ETH only!")
    try:
        sent = transfer_eth(private_key, recipient, DEMO_ETH_AMOUNT, config=app.config, rpc_url=app.rpc_url)
    except COMMAND_ERRORS as exc:
        _step_failed("ETH transfer", exc)
        return
    click.secho(f"✅ ETH transfer sent! TX Hash: {sent.tx_hash}", fg="green")


def erc20_transfer_demo(app: AppContext, private_key: str, token_address: str) -> None:
    recipient = app.config.test_recipient_address
    if not recipient:
        click.secho("  ⚠️ TEST_RECIPIENT_ADDRESS not set, skipping token transfers", fg="yellow")
        return
    click.echo(f"Token contract: {token_address}")
    click.echo(f"Recipient: {recipient}")

    click.echo("")
    click.echo("=== Method 1: manual ERC-20 calldata ===")
    try:
        sent = transfer_erc20_with_amount(
            private_key, recipient, token_address,
            DEMO_MANUAL_TOKEN_AMOUNT, DEMO_TOKEN_DECIMALS, rpc_url=app.rpc_url,
        )
    except COMMAND_ERRORS as exc:
        _step_failed("Manual ERC-20 transfer", exc)
    else:
        click.secho(f"✅ Manual ERC-20 transfer sent! TX Hash: {sent.tx_hash}", fg="green")

    click.echo("")
    click.echo("=== Method 2: ABI-driven ERC-20 transfer (EIP-1559) ===")
    try:
        result = transfer_erc20_with_abi(
            private_key, recipient, token_address, DEMO_ABI_TOKEN_AMOUNT, rpc_url=app.rpc_url
        )
    except COMMAND_ERRORS as exc:
        _step_failed("ABI ERC-20 transfer", exc)
    else:
        click.secho(f"✅ ABI ERC-20 transfer confirmed! TX Hash: {result.sent.tx_hash}", fg="green")


def recipient_balance_demo(app: AppContext, token_address: str) -> None:
    recipient = app.config.test_recipient_address
    if not recipient:
        return
    click.echo(f"Address: {recipient}")
    click.echo(f"Token: {token_address}")
    try:
        report = check_token_balance(token_address, recipient, rpc_url=app.rpc_url)
    except COMMAND_ERRORS as exc:
        _step_failed("Balance query", exc)
        return
    click.echo(f"Balance: {report.formatted} {report.info.symbol} (raw {report.balance})")
    for hint in report.hints:
        click.echo(f"  - {hint}")


@click.command()
@click.option("--tx-hash", default=SAMPLE_TX_HASH, show_default=True, help="Transaction for the query demos")
@click.option("--block-timeout", type=float, default=60.0, show_default=True, help="Seconds to wait for a new block")
@click.option("--skip-subscribe", is_flag=True, help="Skip waiting for a new block")
@click.option(
    "--artifact",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="MYERC20 artifact for the deployment step (default: CONTRACT_ARTIFACT)",
)
@pass_app
def demo(
    app: AppContext,
    tx_hash: str,
    block_timeout: float,
    skip_subscribe: bool,
    artifact: Optional[Path],
) -> None:
    """Run the full tutorial: wallet, queries, subscription, deploy, transfers."""
    config = app.config
    click.echo("Ethereum Client Tutorial")
    click.echo("========================")
    for warning in config.validate():
        click.secho(f"⚠ {warning}", fg="yellow")

    _section("1. Wallet creation")
    wallet_demo()

    if not app.has_endpoint:
        click.echo("")
        click.echo("Note: block and transaction queries need a connection to an Ethereum node.")
        click.echo("Set ALCHEMY_API_KEY (or ETH_RPC_URL) in your .env file, e.g.:")
        click.echo("  ALCHEMY_API_KEY=your_api_key_here")
        return

    url = app.rpc_url
    _section(f"2. Connecting to Ethereum ({config.ethereum_network or 'custom endpoint'})")
    try:
        chain = rpc.chain_id(rpc_url=url)
    except COMMAND_ERRORS as exc:
        _step_failed("Connection", exc)
        click.echo("Network connection failed; only the offline demo ran.")
        return
    click.secho(f"✅ Connected (chain ID {chain})", fg="green")

    _section("3. Queries")
    block_query_demo(url)
    transaction_query_demo(url, tx_hash)
    receipt_query_demo(url, tx_hash)

    _section("4. Block subscription")
    if skip_subscribe:
        click.echo("Skipped.")
    else:
        block_subscription_demo(url, block_timeout)

    if not config.test_private_key:
        click.echo("")
        click.echo("Note: set TEST_PRIVATE_KEY in your .env file to run the transfer demos.")
        return

    try:
        private_key = normalize_private_key(config.test_private_key)
    except ValueError as exc:
        _step_failed("Loading TEST_PRIVATE_KEY", exc)
        return

    if artifact is None and config.contract_artifact:
        artifact = Path(config.contract_artifact)

    _section("5. Contract deployment")
    token_address = contract_deployment_demo(app, private_key, artifact)

    _section("6. Transfers")
    eth_transfer_demo(app, private_key)

    if token_address is None:
        click.echo("")
        click.secho("⚠️ Contract deployment did not succeed, skipping the ERC-20 demos", fg="yellow")
        return

    click.echo("")
    click.echo("=== ERC-20 operations on the new contract ===")
    erc20_transfer_demo(app, private_key, token_address)

    _section("7. Token balance")
    recipient_balance_demo(app, token_address)
