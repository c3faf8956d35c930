"""
Watch - print contract events as they arrive.
"""

from __future__ import annotations

import sys
import time
from typing import Optional

import click

from ..chain.events import EVENT_POLL_INTERVAL, DecodedEvent, EventWatcher
from ..wallet.eth import validate_address
from .context import COMMAND_ERRORS, AppContext, fail, pass_app

_EVENT_ICONS = {
    "Transfer": "📤",
    "Approval": "✅",
    "Paused": "⏸️",
    "Unpaused": "▶️",
    "OwnershipTransferred": "👑",
}


def print_event(event: DecodedEvent) -> None:
    click.echo("")
    click.secho("📧 New event:", bold=True)
    click.echo(f"   Block: #{event.block_number}")
    click.echo(f"   Tx hash: {event.tx_hash}")
    click.echo(f"   Contract: {event.address}")
    click.echo(f"   Log index: {event.log_index}")

    if not event.topics:
        click.secho("   ⚠️ Event has no topics", fg="yellow")
        return
    click.echo(f"   Signature: {event.topics[0]}")

    if not event.is_known:
        click.secho("   ❓ Unknown event:", fg="yellow")
        click.echo(f"      Topics: {len(event.topics)}")
        for i, topic in enumerate(event.topics):
            click.echo(f"      Topic[{i}]: {topic}")
        click.echo(f"      Data length: {event.data_length} bytes")
        if event.data_length:
            click.echo(f"      Data: {event.data}")
        return

    click.echo(f"   {_EVENT_ICONS.get(event.name, '•')} {event.name}:")
    if event.error:
        click.secho(f"      ❌ Could not decode {event.name}: {event.error}", fg="red")
        return
    for name, value in event.args.items():
        click.echo(f"      {name}: {value}")
    if event.token_amount is not None:
        click.echo(f"      amount (tokens): {event.token_amount:f}")


@click.command()
@click.option("--contract", "contract_address", default=None, help="Contract to watch (default: CONTRACT_ADDRESS)")
@click.option("--duration", type=float, default=None, help="Stop after this many seconds (default: until Ctrl-C)")
@click.option("--poll-interval", type=float, default=EVENT_POLL_INTERVAL, show_default=True)
@pass_app
def watch(app: AppContext, contract_address: Optional[str], duration: Optional[float], poll_interval: float) -> None:
    """Watch events emitted by a contract."""
    contract_address = contract_address or app.config.contract_address
    if not contract_address or not validate_address(contract_address):
        click.secho(f"ERROR: Invalid contract address: {contract_address or '(none)'}", fg="red")
        sys.exit(2)

    watcher = EventWatcher(
        contract_address, print_event, poll_interval=poll_interval, rpc_url=app.rpc_url
    )

    click.echo(f"🔍 Watching contract events: {contract_address}")
    try:
        watcher.start()
    except COMMAND_ERRORS as exc:
        fail(exc, prefix="Event subscription failed")
    click.secho("✅ Subscribed, waiting for events...", fg="green")

    deadline = time.monotonic() + duration if duration is not None else None
    try:
        while watcher.running and (deadline is None or time.monotonic() < deadline):
            time.sleep(min(0.2, poll_interval) or 0.01)
    except KeyboardInterrupt:
        click.echo("")
    finally:
        watcher.stop()
    click.echo("🛑 Event watching stopped")

    if watcher.error is not None:
        fail(watcher.error, prefix="Event subscription error")
