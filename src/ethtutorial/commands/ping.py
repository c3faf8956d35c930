"""
Ping - check that a node (typically a private dev chain) answers.
"""

from __future__ import annotations

import click

from ..chain import rpc
from ..chain.blocks import BlockSummary, get_block_by_number
from .context import COMMAND_ERRORS, AppContext, fail, pass_app


@click.command()
@pass_app
def ping(app: AppContext) -> None:
    """Connect to the node and print basic chain facts."""
    url = app.rpc_url
    try:
        chain = rpc.chain_id(rpc_url=url)
        click.secho(f"🎉 Connected to {url}", fg="green")
        click.echo(f"🆔 Chain ID: {chain}")

        head = rpc.block_number(rpc_url=url)
        click.echo(f"📦 Latest block: {head}")

        summary = BlockSummary.from_block(get_block_by_number(head, rpc_url=url))
        click.echo(f"📅 Block time: {summary.timestamp}")
        click.echo(f"⛽ Gas limit: {summary.gas_limit}")
        click.echo(f"📊 Transactions: {summary.transaction_count}")

        network = rpc.net_version(rpc_url=url)
        click.echo(f"🌐 Network ID: {network}")
    except COMMAND_ERRORS as exc:
        fail(exc, prefix="Connection check failed")

    click.echo("")
    click.secho("✅ Node is up, ready for development!", fg="green")
