from __future__ import annotations
import binascii
import time


def now_millis() -> int:
    """Milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


def u32_bytes(u: int) -> bytes:
    return u.to_bytes(4, "little")


def u64_bytes(u: int) -> bytes:
    return u.to_bytes(8, "little")


def u128_bytes(u: int) -> bytes:
    return u.to_bytes(16, "little")


def to_hex(b: bytes) -> str:
    """Lowercase hex rendering of a digest."""
    return bytes(b).hex()


def from_hex(s: str) -> bytes:
    """Decode a hex string to bytes with strict validation."""
    try:
        return binascii.unhexlify(s.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ValueError("invalid hex") from e
