"""
Wallet management: secp256k1 key generation, loading and address checks.

Keys live in the environment as ``TEST_PRIVATE_KEY`` (hex, with or
without ``0x``), usually seeded from a ``.env`` file.

Dependencies: eth-account (signing and key derivation)
"""

from __future__ import annotations

import os
import secrets
from pathlib import Path
from typing import Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..config import ETHTUTORIAL_ENV
from ..utils import is_hex_address, strip_0x

PRIVATE_KEY_VAR = "TEST_PRIVATE_KEY"


def create_new_wallet() -> tuple[str, str]:
    """
    Generate a new keypair.

    Returns:
        Tuple of (address, private_key_hex)
        - address: 0x-prefixed checksummed address
        - private_key_hex: 64 hex chars, no 0x prefix
    """
    private_key = secrets.token_hex(32)
    account = Account.from_key("0x" + private_key)
    return account.address, private_key


def validate_address(address: str) -> bool:
    """True if ``address`` is 40 hex digits, optionally 0x-prefixed."""
    return is_hex_address(address)


def normalize_private_key(private_key: str) -> str:
    """Return the key 0x-prefixed, rejecting anything that is not 32 bytes."""
    raw = strip_0x(private_key.strip())
    if len(raw) != 64:
        raise ValueError("invalid private key: expected 32 bytes of hex")
    try:
        bytes.fromhex(raw)
    except ValueError as exc:
        raise ValueError(f"invalid private key: {exc}") from exc
    return "0x" + raw


def save_private_key(private_key: str, env_path: Optional[Path] = None) -> Path:
    """
    Save a private key into a .env file, preserving other entries.

    Args:
        private_key: hex private key
        env_path: Path to .env file (default: ~/.ethtutorial/.env)

    Returns:
        Path to the saved .env file
    """
    env_path = env_path or ETHTUTORIAL_ENV
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        for line in env_path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                k, v = line.split("=", 1)
                existing[k.strip()] = v.strip()

    existing[PRIVATE_KEY_VAR] = strip_0x(private_key)

    lines = [f"{k}={v}" for k, v in existing.items()]
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    if os.name != "nt":
        env_path.chmod(0o600)

    return env_path


def load_private_key() -> str:
    """
    Load the private key from the environment.

    Returns:
        0x-prefixed hex private key

    Raises:
        ValueError: If TEST_PRIVATE_KEY is not set or malformed
    """
    private_key = os.environ.get(PRIVATE_KEY_VAR)
    if not private_key:
        raise ValueError(
            f"{PRIVATE_KEY_VAR} not found. Set it in .env or run "
            f"'ethtutorial wallet new --save'."
        )
    return normalize_private_key(private_key)


def get_account(private_key: Optional[str] = None) -> LocalAccount:
    """
    Get an eth-account LocalAccount from a private key.

    Args:
        private_key: hex private key. If None, loads from the environment.
    """
    if private_key is None:
        private_key = load_private_key()
    return Account.from_key(normalize_private_key(private_key))


def get_address(private_key: Optional[str] = None) -> str:
    """Checksummed address for a private key."""
    return get_account(private_key).address
