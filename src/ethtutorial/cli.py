"""
ethtutorial CLI

Command-line interface for the Ethereum node tutorial client.

Configuration comes from ``.env`` (current directory, then
``~/.ethtutorial/.env``) and the environment; ``--rpc-url`` overrides
the endpoint for a single invocation.

Commands:
  info       - Show configuration and command overview
  ping       - Check a (private) node connection
  wallet     - Create, save and validate keys
  whoami     - Show current wallet address
  block      - Show the latest block or a block by number
  tx         - Show a transaction
  receipt    - Show a transaction receipt
  wait       - Wait for a transaction to be confirmed
  subscribe  - Wait for (or follow) new blocks
  transfer   - Send ETH
  token      - ERC-20 balance, supply and transfers
  deploy     - Deploy the MYERC20 token contract
  watch      - Print contract events as they arrive
  demo       - Run the whole tutorial in sequence
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .commands.context import AppContext, pass_app
from .config import load_config, setup_logging
from .wallet.eth import get_address, load_private_key


# ============ Constants ============

VERSION = __version__


# ============ Banner ============


def _print_banner() -> None:
    """Print the CLI banner."""
    border = click.style("  ◆ ═══════════════════════════════════════ ◆", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo()
    click.echo(
        click.style("     E T H T U T O R I A L", fg="bright_white", bold=True)
        + click.style(f"     v{VERSION}", dim=True)
    )
    click.secho("        ─── Ethereum Client Tutorial ───", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo()


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="ethtutorial")
@click.option(
    "--rpc-url",
    default=None,
    help="JSON-RPC endpoint (overrides ETH_RPC_URL / ALCHEMY_API_KEY)",
)
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Load settings from this .env file",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Log level (default: LOG_LEVEL or info)",
)
@click.pass_context
def cli(
    ctx: click.Context,
    rpc_url: Optional[str],
    env_file: Optional[Path],
    log_level: Optional[str],
) -> None:
    """Ethereum Client Tutorial - query, subscribe, deploy and transfer."""
    config = load_config(env_file)
    setup_logging(log_level or config.log_level, config.log_output)
    ctx.obj = AppContext(config=config, rpc_url_option=rpc_url)

    if ctx.invoked_subcommand is None:
        _print_banner()
        click.echo(ctx.get_help())


# ============ Top-level Commands ============

from .commands.wallet import wallet
from .commands.query import block, receipt, tx, wait
from .commands.subscribe import subscribe
from .commands.transfer import transfer
from .commands.token import token
from .commands.deploy import deploy
from .commands.watch import watch
from .commands.ping import ping
from .commands.demo import demo

cli.add_command(wallet)
cli.add_command(block)
cli.add_command(tx)
cli.add_command(receipt)
cli.add_command(wait)
cli.add_command(subscribe)
cli.add_command(transfer)
cli.add_command(token)
cli.add_command(deploy)
cli.add_command(watch)
cli.add_command(ping)
cli.add_command(demo)


# ============ Identity ============


@cli.command()
def whoami() -> None:
    """Show current wallet identity."""
    try:
        pk = load_private_key()
        address = get_address(pk)
        click.echo(f"Address: {address}")
    except ValueError:
        click.echo("No wallet found.")
        click.echo("Run 'ethtutorial wallet new --save' to create one.")
        sys.exit(1)


# ============ Info ============


@cli.command()
@pass_app
def info(app: AppContext) -> None:
    """Show configuration and available commands."""
    _print_banner()
    config = app.config

    # ── Status ──
    click.secho("  Status ─────────────────────────────────", fg="cyan")
    click.echo()

    try:
        address = get_address(load_private_key())
        click.echo(
            click.style("  Address:     ", dim=True)
            + click.style(address, fg="bright_white")
        )
    except ValueError:
        click.echo(
            click.style("  Address:     ", dim=True)
            + click.style("not initialized", fg="yellow")
            + click.style("  (run: ethtutorial wallet new --save)", dim=True)
        )

    network = config.ethereum_network or "unset"
    mode = "production" if config.is_production_mode() else "test" if config.is_test_mode() else "custom"
    click.echo(
        click.style("  Network:     ", dim=True)
        + click.style(network, fg="bright_white")
        + click.style(f"  ({mode})", dim=True)
    )

    if app.has_endpoint:
        endpoint_text = click.style("configured", fg="green")
    else:
        endpoint_text = click.style("not configured", fg="yellow") + click.style(
            "  (set ALCHEMY_API_KEY or ETH_RPC_URL)", dim=True
        )
    click.echo(click.style("  Endpoint:    ", dim=True) + endpoint_text)

    if config.contract_address:
        click.echo(
            click.style("  Contract:    ", dim=True)
            + click.style(config.contract_address, fg="bright_white")
        )

    click.echo(
        click.style("  Gas price ×: ", dim=True)
        + click.style(str(config.gas_price_multiplier), fg="bright_white")
    )

    for warning in config.validate():
        click.secho(f"  ⚠ {warning}", fg="yellow")

    click.echo()

    # ── Commands ──
    click.secho("  Commands ───────────────────────────────", fg="cyan")
    click.echo()

    commands = [
        ("ping     ", "Check the node connection"),
        ("wallet   ", "Create or validate a wallet"),
        ("block    ", "Show a block"),
        ("tx       ", "Show a transaction"),
        ("receipt  ", "Show a receipt"),
        ("wait     ", "Wait for confirmations"),
        ("subscribe", "Follow new blocks"),
        ("transfer ", "Send ETH"),
        ("token    ", "ERC-20 balance, supply, transfer"),
        ("deploy   ", "Deploy MYERC20"),
        ("watch    ", "Watch contract events"),
        ("demo     ", "Run the full tutorial"),
    ]
    for cmd, desc in commands:
        click.echo(
            click.style("  ", dim=True)
            + click.style(cmd, fg="bright_white", bold=True)
            + click.style("  ◇  ", fg="cyan")
            + click.style(desc, dim=True)
        )

    click.echo()


# ============ Entry Points ============


def main() -> None:
    """ethtutorial CLI entry point."""
    # Ensure UTF-8 output on Windows (for Unicode box-drawing / symbols)
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass
    cli()


if __name__ == "__main__":
    main()
