"""
Token commands - ERC-20 balance, total supply and transfers.

The token defaults to ``CONTRACT_ADDRESS`` from the configuration.
"""

from __future__ import annotations

import sys
from decimal import Decimal
from typing import Optional

import click

from ..chain.token import DEFAULT_DECIMALS, check_token_balance, get_total_supply
from ..chain.transfer import transfer_erc20_with_abi, transfer_erc20_with_amount
from ..wallet.eth import get_address, load_private_key, validate_address
from .context import AMOUNT, COMMAND_ERRORS, AppContext, fail, label, pass_app
from .query import print_status
from .transfer import print_sent


def _require_address(value: Optional[str], what: str) -> str:
    if not value or not validate_address(value):
        click.secho(f"ERROR: Invalid {what} address: {value or '(none)'}", fg="red")
        sys.exit(2)
    return value


@click.group()
def token() -> None:
    """ERC-20 token operations."""
    pass


@token.command("balance")
@click.option("--token", "token_address", default=None, help="Token contract (default: CONTRACT_ADDRESS)")
@click.option("--wallet", "wallet_address", default=None, help="Holder (default: your wallet)")
@pass_app
def token_balance(app: AppContext, token_address: Optional[str], wallet_address: Optional[str]) -> None:
    """Show a token balance with name, symbol and decimals."""
    token_address = _require_address(token_address or app.config.contract_address, "token")
    if wallet_address is None:
        try:
            wallet_address = get_address(load_private_key())
        except ValueError as exc:
            fail(exc)
    wallet_address = _require_address(wallet_address, "wallet")

    try:
        report = check_token_balance(token_address, wallet_address, rpc_url=app.rpc_url)
    except COMMAND_ERRORS as exc:
        fail(exc, prefix="Balance query failed")

    label("Token", token_address)
    label("Wallet", wallet_address)
    if report.info.name:
        label("Name", report.info.name)
    label("Symbol", report.info.symbol)
    label("Decimals", report.info.decimals)
    if report.metadata_error:
        click.secho(f"  ⚠ {report.metadata_error}, using defaults", fg="yellow")
    label("Raw balance", report.balance)
    click.echo(
        click.style("  Balance:        ", dim=True)
        + click.style(f"{report.formatted} {report.info.symbol}", fg="bright_white", bold=True)
    )

    if report.hints:
        click.echo("")
        click.secho("  Balance is 0. Possible reasons:", fg="yellow")
        for i, hint in enumerate(report.hints, 1):
            click.echo(f"    {i}. {hint}")


@token.command("supply")
@click.option("--token", "token_address", default=None, help="Token contract (default: CONTRACT_ADDRESS)")
@click.option("--decimals", type=int, default=DEFAULT_DECIMALS, show_default=True)
@pass_app
def token_supply(app: AppContext, token_address: Optional[str], decimals: int) -> None:
    """Show the total supply."""
    token_address = _require_address(token_address or app.config.contract_address, "token")
    try:
        raw, supply = get_total_supply(token_address, decimals=decimals, rpc_url=app.rpc_url)
    except COMMAND_ERRORS as exc:
        fail(exc)

    label("Token", token_address)
    label("Total supply", f"{supply:f}")
    label("Raw", raw)


@token.command("transfer")
@click.option("--to", "to_address", default=None, help="Recipient (default: TEST_RECIPIENT_ADDRESS)")
@click.option("--amount", type=AMOUNT, required=True, help="Amount in whole tokens")
@click.option("--token", "token_address", default=None, help="Token contract (default: CONTRACT_ADDRESS)")
@click.option(
    "--manual",
    is_flag=True,
    help="Hand-built calldata with --decimals instead of the ABI-driven transfer",
)
@click.option("--decimals", type=int, default=DEFAULT_DECIMALS, show_default=True, help="Used with --manual")
@pass_app
def token_transfer(
    app: AppContext,
    to_address: Optional[str],
    amount: Decimal,
    token_address: Optional[str],
    manual: bool,
    decimals: int,
) -> None:
    """Transfer tokens from your wallet."""
    to_address = _require_address(to_address or app.config.test_recipient_address, "recipient")
    token_address = _require_address(token_address or app.config.contract_address, "token")

    try:
        private_key = load_private_key()
    except ValueError as exc:
        fail(exc)

    if manual:
        click.echo("=== ERC-20 transfer (manual calldata) ===")
        try:
            sent = transfer_erc20_with_amount(
                private_key, to_address, token_address, amount, decimals, rpc_url=app.rpc_url
            )
        except COMMAND_ERRORS as exc:
            fail(exc, prefix="Manual ERC-20 transfer failed")
        print_sent(sent)
        click.secho("✅ Transfer sent!", fg="green")
        return

    click.echo("=== ERC-20 transfer (ABI, EIP-1559) ===")
    try:
        result = transfer_erc20_with_abi(private_key, to_address, token_address, amount, rpc_url=app.rpc_url)
    except COMMAND_ERRORS as exc:
        status = getattr(exc, "status", None)
        if status is not None:
            print_status(status)
        fail(exc, prefix="ABI ERC-20 transfer failed")

    print_sent(result.sent)
    label("Raw amount", result.raw_amount)
    if result.status is not None:
        click.secho("✅ Transfer confirmed!", fg="green")
        print_status(result.status)
    if "sender" in result.balances:
        label("Sender balance", result.balances["sender"])
    if "receiver" in result.balances:
        label("Receiver bal.", result.balances["receiver"])
