"""
Error types shared by the chain layer and the CLI.

Every error carries an ``exit_code`` so commands can terminate with a
stable status.
"""

from __future__ import annotations

from typing import Any, Optional


class ConfigError(ValueError):
    exit_code: int = 2


class RpcError(RuntimeError):
    """JSON-RPC error object returned by the node."""

    exit_code: int = 3

    def __init__(self, method: str, code: Optional[int], message: str, data: Any = None) -> None:
        self.method = method
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"RPC error in {method} ({code}): {message}")


class TransactionFailedError(RuntimeError):
    """A transaction was mined but reverted."""

    exit_code: int = 4

    def __init__(self, message: str, status: Any = None) -> None:
        super().__init__(message)
        self.status = status


class TransactionTimeoutError(TimeoutError):
    exit_code: int = 5
