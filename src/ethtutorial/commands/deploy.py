"""
Deploy - create the MYERC20 token contract.

The deployer becomes the contract owner; ``--recipient`` receives the
initial supply.  Creation bytecode comes from a compiler artifact.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from ..chain.deploy import deploy_contract
from ..wallet.eth import load_private_key, validate_address
from .context import COMMAND_ERRORS, AppContext, fail, label, pass_app
from .query import print_status


@click.command()
@click.option(
    "--artifact",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Compiled MYERC20 (Foundry/solc JSON or .bin); default: CONTRACT_ARTIFACT",
)
@click.option("--recipient", default=None, help="Initial supply recipient (default: TEST_SEND_ADDRESS)")
@pass_app
def deploy(app: AppContext, artifact: Optional[Path], recipient: Optional[str]) -> None:
    """Deploy MYERC20 and wait for two confirmations."""
    recipient = recipient or app.config.test_send_address
    if not recipient or not validate_address(recipient):
        click.secho(f"ERROR: Invalid recipient address: {recipient or '(none)'}", fg="red")
        sys.exit(2)

    if artifact is None and app.config.contract_artifact:
        artifact = Path(app.config.contract_artifact)
    if artifact is None:
        click.secho("ERROR: --artifact or CONTRACT_ARTIFACT is required", fg="red")
        sys.exit(2)

    try:
        private_key = load_private_key()
    except ValueError as exc:
        fail(exc)

    click.echo("Deploying MYERC20...")
    click.echo("The deployer address becomes the contract owner.")
    click.echo(f"Initial token recipient: {recipient}")

    try:
        result = deploy_contract(private_key, recipient, artifact, rpc_url=app.rpc_url)
    except COMMAND_ERRORS as exc:
        status = getattr(exc, "status", None)
        if status is not None:
            print_status(status)
        fail(exc, prefix="Contract deployment failed")

    click.secho("✅ Contract deployed!", fg="green")
    label("Contract", result.contract_address)
    label("Tx hash", result.tx_hash)
    print_status(result.status)

    token_info = result.token
    if token_info:
        click.echo("")
        for key in ("name", "symbol", "decimals"):
            if key in token_info:
                label(key.capitalize(), token_info[key])
        if "balanceOf" in token_info:
            label("Recipient bal.", token_info["balanceOf"])

    click.echo("")
    click.echo("📝 Consider setting CONTRACT_ADDRESS in your .env file:")
    click.echo(f"   CONTRACT_ADDRESS={result.contract_address}")
