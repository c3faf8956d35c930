"""
Wallet commands - create keys and check addresses.

Key generation needs no network connection.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from ..config import ETHTUTORIAL_ENV
from ..wallet.eth import PRIVATE_KEY_VAR, create_new_wallet, save_private_key, validate_address


@click.group()
def wallet() -> None:
    """Create wallets and validate addresses."""
    pass


@wallet.command("new")
@click.option("--save", is_flag=True, help=f"Store the key as {PRIVATE_KEY_VAR} in a .env file")
@click.option(
    "--env-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Target .env file for --save (default: {ETHTUTORIAL_ENV})",
)
def wallet_new(save: bool, env_path: Optional[Path]) -> None:
    """Generate a new secp256k1 keypair."""
    address, private_key = create_new_wallet()

    click.echo(f"Address: {address}")
    click.echo(f"Private Key: {private_key}")

    if save:
        saved = save_private_key(private_key, env_path)
        click.secho(f"Private key saved to {saved} (mode 0600)", fg="green")
    else:
        click.secho("Keep the private key secret; anyone holding it controls the funds.", fg="yellow")


@wallet.command("validate")
@click.argument("address")
def wallet_validate(address: str) -> None:
    """Check that ADDRESS is a 20-byte hex address."""
    if validate_address(address):
        click.secho(f"Valid address: {address}", fg="green")
    else:
        click.secho(f"Invalid address: {address}", fg="red")
        sys.exit(1)
