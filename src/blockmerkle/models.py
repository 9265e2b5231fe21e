from __future__ import annotations
from typing import List
from pydantic import BaseModel, Field, field_validator
from pydantic import ConfigDict

from .hashing import Hashing
from .utils import to_hex, u32_bytes, u64_bytes, u128_bytes


BlockHash = bytes

_WIDTHS = {"index": 32, "timestamp": 128, "nonce": 64}


class Block(BaseModel, Hashing):
    """Block record whose `hash` field carries an integrity digest.

    The digest is typically the root of a Merkle tree built over the block's
    transactions. Integer widths follow the wire encoding used by to_bytes():
    u32 index, u128 millisecond timestamp, u64 nonce, all little-endian.
    """

    # digests travel as hex in JSON, matching utils.to_hex
    model_config = ConfigDict(frozen=True, ser_json_bytes="hex", val_json_bytes="hex")

    index: int
    timestamp: int
    prev_block_hash: BlockHash
    hash: BlockHash
    nonce: int = 0
    payload: str = ""

    @field_validator("index", "timestamp", "nonce")
    @classmethod
    def _fits_width(cls, v, info):  # type: ignore[override]
        bits = _WIDTHS[info.field_name]
        if not 0 <= v < 2**bits:
            raise ValueError(f"{info.field_name} must fit in u{bits}")
        return v

    def to_bytes(self) -> bytes:
        return b"".join(
            [
                u32_bytes(self.index),
                u128_bytes(self.timestamp),
                self.prev_block_hash,
                u64_bytes(self.nonce),
                self.payload.encode("utf-8"),
            ]
        )

    def __repr__(self) -> str:
        return (
            f"Block[{self.index}]: {to_hex(self.hash)} "
            f"at: {self.timestamp} with: {self.payload}"
        )

    __str__ = __repr__


class TreeHead(BaseModel):
    """Summary of a Merkle tree, enough to rebuild it without the items."""

    model_config = ConfigDict(frozen=True)

    algorithm: str
    tree_size: int = Field(ge=1)
    root_hex: str
    leaves_hex: List[str]

    @field_validator("leaves_hex")
    @classmethod
    def _size_matches(cls, v, info):  # type: ignore[override]
        size = info.data.get("tree_size")
        if size is not None and len(v) != size:
            raise ValueError("leaves_hex length must equal tree_size")
        return v
