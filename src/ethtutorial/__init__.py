"""
ethtutorial - an Ethereum node tutorial client.

Query blocks, transactions and receipts, follow new blocks and contract
events, create wallets, deploy an ERC-20 contract and move ETH and
tokens, over plain JSON-RPC.
"""

__version__ = "0.1.0"

__all__ = [
    # Config
    "Config",
    "load_config",
    # Errors
    "ConfigError",
    "RpcError",
    "TransactionFailedError",
    "TransactionTimeoutError",
    # Wallet
    "create_new_wallet",
    "validate_address",
    # Waiting
    "TransactionStatus",
    "wait_for_transaction",
]

from .chain.waiter import TransactionStatus, wait_for_transaction
from .config import Config, load_config
from .errors import ConfigError, RpcError, TransactionFailedError, TransactionTimeoutError
from .wallet import create_new_wallet, validate_address
