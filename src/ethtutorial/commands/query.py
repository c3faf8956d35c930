"""
Query commands - blocks, transactions, receipts and confirmation waiting.
"""

from __future__ import annotations

from typing import Optional

import click

from ..chain.blocks import BlockSummary, get_block_by_number, get_latest_block
from ..chain.query import get_transaction_info, get_transaction_receipt, receipt_status
from ..chain.waiter import POLL_INTERVAL, TransactionStatus, wait_for_transaction
from ..units import wei_to_ether, wei_to_gwei
from ..utils import format_timestamp, to_int
from .context import COMMAND_ERRORS, AppContext, fail, label, pass_app

WAIT_PRESETS = {
    "quick": (1, 180.0),
    "safe": (3, 600.0),
    "deploy": (2, 480.0),
}


def print_block(summary: BlockSummary) -> None:
    label("Block", f"#{summary.number}")
    label("Hash", summary.hash)
    label("Timestamp", f"{summary.timestamp} ({format_timestamp(summary.timestamp)})")
    label("Transactions", summary.transaction_count)
    label("Gas used", f"{summary.gas_used} / {summary.gas_limit}")
    if summary.base_fee is not None:
        label("Base fee", f"{wei_to_gwei(summary.base_fee)} Gwei")


def print_status(status: TransactionStatus) -> None:
    label("Status", "success" if status.success else "reverted")
    label("Block", f"#{status.block_number}")
    label("Gas used", status.gas_used)
    label("Confirmations", status.confirmations)


@click.command()
@click.option("--number", "-n", type=int, default=None, help="Block number (default: latest)")
@pass_app
def block(app: AppContext, number: Optional[int]) -> None:
    """Show the latest block, or block --number N."""
    try:
        if number is None:
            data = get_latest_block(rpc_url=app.rpc_url)
        else:
            data = get_block_by_number(number, rpc_url=app.rpc_url)
    except COMMAND_ERRORS as exc:
        fail(exc)

    print_block(BlockSummary.from_block(data))


@click.command()
@click.argument("tx_hash")
@pass_app
def tx(app: AppContext, tx_hash: str) -> None:
    """Show transaction TX_HASH."""
    try:
        info = get_transaction_info(tx_hash, rpc_url=app.rpc_url)
    except COMMAND_ERRORS as exc:
        fail(exc)

    label("Tx", info.hash)
    label("From", info.sender or "(unknown)")
    label("To", info.to or "(contract creation)")
    label("Value", f"{wei_to_ether(info.value):.4f} ETH")
    label("Gas price", f"{wei_to_gwei(info.gas_price)} Gwei")
    label("Gas limit", info.gas_limit)
    label("Nonce", info.nonce)
    label("Type", info.type)
    if info.chain_id is not None:
        label("Chain ID", info.chain_id)
    if info.is_pending:
        click.secho("  Pending in mempool", fg="yellow")
    else:
        label("Block", f"#{info.block_number}")
    if info.data and info.data != "0x":
        label("Data", info.data if len(info.data) <= 74 else info.data[:74] + "...")


@click.command()
@click.argument("tx_hash")
@pass_app
def receipt(app: AppContext, tx_hash: str) -> None:
    """Show the receipt of TX_HASH."""
    try:
        data = get_transaction_receipt(tx_hash, rpc_url=app.rpc_url)
    except COMMAND_ERRORS as exc:
        fail(exc)

    status = receipt_status(data)
    color = {"Successful": "green", "Failed": "red"}.get(status, "yellow")
    click.echo(click.style("  Status:         ", dim=True) + click.style(status, fg=color))
    label("Block", f"#{to_int(data.get('blockNumber'))}")
    label("Gas used", to_int(data.get("gasUsed")))
    if data.get("effectiveGasPrice"):
        label("Gas price", f"{wei_to_gwei(to_int(data['effectiveGasPrice']))} Gwei")
    if data.get("contractAddress"):
        label("Contract", data["contractAddress"])
    label("Logs", len(data.get("logs") or []))


@click.command()
@click.argument("tx_hash")
@click.option(
    "--preset",
    type=click.Choice(sorted(WAIT_PRESETS)),
    default="quick",
    show_default=True,
    help="quick: 1 conf/3 min, safe: 3 conf/10 min, deploy: 2 conf/8 min",
)
@click.option("--confirmations", "-c", type=int, default=None, help="Override the preset's confirmations")
@click.option("--timeout", type=float, default=None, help="Override the preset's timeout (seconds)")
@click.option("--poll-interval", type=float, default=POLL_INTERVAL, show_default=True)
@pass_app
def wait(
    app: AppContext,
    tx_hash: str,
    preset: str,
    confirmations: Optional[int],
    timeout: Optional[float],
    poll_interval: float,
) -> None:
    """Wait until TX_HASH is mined and confirmed."""
    preset_confirmations, preset_timeout = WAIT_PRESETS[preset]
    confirmations = confirmations or preset_confirmations
    timeout = timeout or preset_timeout

    click.echo(f"Waiting for {tx_hash} ({confirmations} confirmations, {timeout:g}s timeout)...")
    try:
        status = wait_for_transaction(
            tx_hash,
            confirmations=confirmations,
            timeout=timeout,
            poll_interval=poll_interval,
            rpc_url=app.rpc_url,
        )
    except COMMAND_ERRORS as exc:
        status = getattr(exc, "status", None)
        if status is not None:
            print_status(status)
        fail(exc)

    click.secho("SUCCESS: Transaction confirmed!", fg="green")
    print_status(status)
    if status.confirmations < confirmations:
        click.secho(
            f"  Only {status.confirmations}/{confirmations} confirmations before timeout",
            fg="yellow",
        )
