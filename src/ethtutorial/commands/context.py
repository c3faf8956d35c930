"""
Shared state and helpers for CLI commands.

The root group stores an :class:`AppContext` on ``ctx.obj``; commands
pick it up with ``@pass_app``.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import NoReturn, Optional

import click
import httpx

from ..chain.rpc import DEFAULT_RPC_URL
from ..config import Config
from ..errors import ConfigError, RpcError, TransactionFailedError, TransactionTimeoutError

logger = logging.getLogger(__name__)

# Errors a command reports in red before exiting with the error's exit code.
COMMAND_ERRORS = (
    ConfigError,
    RpcError,
    TransactionFailedError,
    TransactionTimeoutError,
    httpx.HTTPError,
    LookupError,
    TimeoutError,
    ValueError,
    FileNotFoundError,
)


@dataclass
class AppContext:
    config: Config = field(default_factory=Config)
    rpc_url_option: Optional[str] = None

    @property
    def rpc_url(self) -> str:
        """``--rpc-url``, then the configured endpoint, then a local node."""
        if self.rpc_url_option:
            return self.rpc_url_option
        if self.config.has_endpoint:
            return self.config.http_url
        logger.info("No endpoint configured, using %s", DEFAULT_RPC_URL)
        return DEFAULT_RPC_URL

    @property
    def has_endpoint(self) -> bool:
        return bool(self.rpc_url_option) or self.config.has_endpoint


pass_app = click.make_pass_decorator(AppContext, ensure=True)


def fail(exc: BaseException, prefix: str = "ERROR") -> NoReturn:
    click.secho(f"{prefix}: {exc}", fg="red")
    sys.exit(getattr(exc, "exit_code", 1))


def label(name: str, value: object, width: int = 16) -> None:
    click.echo(click.style(f"  {name + ':':<{width}}", dim=True) + f"{value}")


class AmountType(click.ParamType):
    """Non-negative decimal amount (``0.001``, ``15``)."""

    name = "amount"

    def convert(self, value, param, ctx):
        if isinstance(value, Decimal):
            return value
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            self.fail(f"{value!r} is not a valid amount", param, ctx)
        if not amount.is_finite() or amount < 0:
            self.fail(f"{value!r} is not a valid amount", param, ctx)
        return amount


AMOUNT = AmountType()
