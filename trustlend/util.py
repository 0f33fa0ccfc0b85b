"""
Utility functions for TrustLend.

Provides time, account-identifier and hex encoding helpers.
"""

import re
import time
from typing import Union


ADDRESS_PATTERN = re.compile(r'^0x[0-9a-fA-F]{40}$')
ZERO_ADDRESS = "0x" + "0" * 40

U8_MAX = 2 ** 8 - 1
U32_MAX = 2 ** 32 - 1

SECONDS_PER_DAY = 86400
SECONDS_PER_YEAR = 365 * SECONDS_PER_DAY


def now_epoch() -> int:
    """Get current Unix timestamp as integer."""
    return int(time.time())


def is_address(value: str) -> bool:
    """Check that a value is a 0x-prefixed 20-byte account identifier."""
    return isinstance(value, str) and bool(ADDRESS_PATTERN.match(value))


def to_address(value: Union[str, bytes]) -> str:
    """
    Normalize an account identifier.

    Accepts 20 raw bytes or 0x-prefixed hex text in any case and returns
    the lowercase text form used throughout the wire format.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise ValueError(f"Account identifier must be 20 bytes, got {len(value)}")
        return "0x" + bytes(value).hex()
    if not is_address(value):
        raise ValueError(f"Invalid account identifier: {value!r}")
    return value.lower()


def bytes_to_hex(data: bytes) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(data).hex()


def hex_to_bytes(value: Union[str, bytes]) -> bytes:
    """Decode 0x-prefixed (or bare) hex text; bytes pass through unchanged."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    text = value[2:] if value[:2] in ("0x", "0X") else value
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise ValueError(f"Invalid hex string: {value!r}")


def check_uint(value: int, maximum: int, name: str) -> int:
    """Validate that value is an int in [0, maximum]."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0 or value > maximum:
        raise ValueError(f"{name} out of range: {value}")
    return value


class ManualClock:
    """
    Settable clock for deterministic runs and tests.

    Instances are callables returning integer seconds, the same shape as
    now_epoch, so they can be injected wherever a clock is accepted.
    """

    def __init__(self, start: int = 1_700_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now

    def set(self, ts: int) -> None:
        self.now = ts
