"""
Subscribe - wait for the next block, or follow the chain head.
"""

from __future__ import annotations

from typing import Optional

import click

from ..chain.blocks import SUBSCRIPTION_POLL_INTERVAL, BlockSummary, iter_new_blocks, wait_for_next_block
from .context import COMMAND_ERRORS, AppContext, fail, pass_app


def _print_new_block(summary: BlockSummary) -> None:
    click.echo(f"📦 New block: #{summary.number}, hash: {summary.hash}")
    click.echo(f"   Transactions: {summary.transaction_count}")
    click.echo(f"   Timestamp: {summary.timestamp}")


@click.command()
@click.option("--follow", "-f", is_flag=True, help="Keep printing blocks until interrupted")
@click.option("--timeout", type=float, default=60.0, show_default=True, help="Seconds to wait for a block")
@click.option("--count", type=int, default=None, help="With --follow, stop after this many blocks")
@click.option("--poll-interval", type=float, default=SUBSCRIPTION_POLL_INTERVAL, show_default=True)
@pass_app
def subscribe(
    app: AppContext,
    follow: bool,
    timeout: float,
    count: Optional[int],
    poll_interval: float,
) -> None:
    """Listen for new blocks."""
    click.echo("🔔 Listening for new blocks...")

    if not follow:
        try:
            data = wait_for_next_block(timeout=timeout, poll_interval=poll_interval, rpc_url=app.rpc_url)
        except COMMAND_ERRORS as exc:
            fail(exc)
        summary = BlockSummary.from_block(data)
        _print_new_block(summary)
        click.secho(f"✅ Received new block #{summary.number}", fg="green")
        return

    received = 0
    blocks = iter_new_blocks(poll_interval=poll_interval, rpc_url=app.rpc_url)
    try:
        for data in blocks:
            _print_new_block(BlockSummary.from_block(data))
            received += 1
            if count is not None and received >= count:
                break
    except KeyboardInterrupt:
        click.echo("")
    except COMMAND_ERRORS as exc:
        fail(exc)
    finally:
        blocks.close()

    click.echo(f"Stopped after {received} block(s).")
