from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Optional, Union

_HEX_ADDRESS_RE = re.compile(r"^(0x|0X)?[0-9a-fA-F]{40}$")


def strip_0x(value: str) -> str:
    return value[2:] if value[:2] in ("0x", "0X") else value


def to_int(value: Any) -> Optional[int]:
    """Decode a JSON-RPC quantity ("0x1a") into an int. None passes through."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        if value in ("0x", ""):
            return 0
        return int(value, 16) if value[:2] in ("0x", "0X") else int(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to int")


def to_hex(value: Union[int, bytes]) -> str:
    if isinstance(value, bytes):
        return "0x" + value.hex()
    return hex(value)


def hex_to_bytes(value: str) -> bytes:
    return bytes.fromhex(strip_0x(value))


def left_pad_32(data: bytes) -> bytes:
    if len(data) > 32:
        raise ValueError(f"Cannot pad {len(data)} bytes into a 32-byte word")
    return data.rjust(32, b"\x00")


def is_hex_address(value: str) -> bool:
    return bool(_HEX_ADDRESS_RE.match(value or ""))


def topic_to_address(topic: str) -> str:
    """Take the low 20 bytes of a 32-byte topic as a 0x address."""
    raw = strip_0x(topic).rjust(64, "0")
    return "0x" + raw[-40:]


def format_timestamp(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat().replace("+00:00", "Z")
