"""
Wallet - key generation, storage and address validation.
"""

from .eth import (
    create_new_wallet,
    get_account,
    get_address,
    load_private_key,
    save_private_key,
    validate_address,
)

__all__ = [
    "create_new_wallet",
    "get_account",
    "get_address",
    "load_private_key",
    "save_private_key",
    "validate_address",
]
