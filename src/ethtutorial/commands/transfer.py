"""
Transfer - send ETH with an EIP-1559 transaction (legacy fallback).
"""

from __future__ import annotations

import sys
from decimal import Decimal
from typing import Optional

import click

from ..chain.transfer import transfer_eth
from ..chain.tx import TX_TYPE_DYNAMIC_FEE, SentTransaction
from ..chain.waiter import wait_quick
from ..units import wei_to_ether, wei_to_gwei
from ..wallet.eth import load_private_key, validate_address
from .context import AMOUNT, COMMAND_ERRORS, AppContext, fail, label, pass_app
from .query import print_status


def print_sent(sent: SentTransaction) -> None:
    kind = "EIP-1559" if sent.tx_type == TX_TYPE_DYNAMIC_FEE else "Legacy"
    label("Type", f"{sent.tx_type} ({kind})")
    label("From", sent.sender)
    label("To", sent.to or "(contract creation)")
    if sent.value:
        label("Amount", f"{wei_to_ether(sent.value)} ETH")
    label("Gas limit", sent.gas)
    label("Nonce", sent.nonce)
    if "max_fee_per_gas" in sent.fee:
        label("Base fee", f"{wei_to_gwei(sent.fee['base_fee'])} Gwei")
        label("Tip cap", f"{wei_to_gwei(sent.fee['max_priority_fee_per_gas'])} Gwei")
        label("Fee cap", f"{wei_to_gwei(sent.fee['max_fee_per_gas'])} Gwei")
    else:
        label("Gas price", f"{wei_to_gwei(sent.fee['gas_price'])} Gwei")
    label("Tx hash", sent.tx_hash)


@click.command()
@click.option("--to", "to_address", default=None, help="Recipient (default: TEST_RECIPIENT_ADDRESS)")
@click.option("--amount", type=AMOUNT, required=True, help="Amount in ETH, e.g. 0.001")
@click.option("--wait/--no-wait", "wait_for_receipt", default=False, help="Wait for one confirmation")
@pass_app
def transfer(app: AppContext, to_address: Optional[str], amount: Decimal, wait_for_receipt: bool) -> None:
    """
    Send ETH from the configured wallet.

    Use a test network and test ETH.
    """
    to_address = to_address or app.config.test_recipient_address
    if not to_address or not validate_address(to_address):
        click.secho(f"ERROR: Invalid recipient address: {to_address or '(none)'}", fg="red")
        sys.exit(2)
    if amount <= 0:
        click.secho("ERROR: Amount must be positive", fg="red")
        sys.exit(2)

    try:
        private_key = load_private_key()
    except ValueError as exc:
        fail(exc)

    click.echo(f"=== Transferring {amount} ETH to {to_address} ===")
    try:
        sent = transfer_eth(private_key, to_address, amount, config=app.config, rpc_url=app.rpc_url)
    except COMMAND_ERRORS as exc:
        fail(exc, prefix="ETH transfer failed")

    print_sent(sent)
    click.secho("✅ ETH transfer sent!", fg="green")

    if wait_for_receipt:
        try:
            status = wait_quick(sent.tx_hash, rpc_url=app.rpc_url)
        except COMMAND_ERRORS as exc:
            fail(exc)
        print_status(status)
