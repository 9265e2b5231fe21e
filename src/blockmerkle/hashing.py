"""Pluggable hashers used by the Merkle tree.

A hasher is a small stateful object:
- reset() clears state
- absorb(data) feeds bytes, any number of times
- finalize() returns the digest; the hasher must be reset before reuse

The tree only depends on this contract, so any fixed-output digest works.
"""
from __future__ import annotations

import abc
import hashlib
from typing import Any, Optional


class Hasher(abc.ABC):
    """Abstract fixed-output hash function with reusable scratch state."""

    def __init__(self) -> None:
        self._finalized = False

    @property
    @abc.abstractmethod
    def name(self) -> str: ...

    @property
    @abc.abstractmethod
    def output_bits(self) -> int: ...

    @property
    @abc.abstractmethod
    def block_size(self) -> int: ...

    @property
    def digest_size(self) -> int:
        return self.output_bits // 8

    def reset(self) -> None:
        self._reset()
        self._finalized = False

    def absorb(self, data: bytes) -> None:
        if self._finalized:
            raise RuntimeError("hasher already finalized; call reset() first")
        self._absorb(data)

    def finalize(self) -> bytes:
        if self._finalized:
            raise RuntimeError("hasher already finalized; call reset() first")
        self._finalized = True
        out = self._finalize()
        if len(out) != self.digest_size:
            raise RuntimeError(
                f"{self.name} produced {len(out)} bytes, expected {self.digest_size}"
            )
        return out

    def finalize_into(self, out: Any) -> None:
        """Write the digest into a writable buffer of exactly digest_size bytes."""
        view = memoryview(out)
        if view.nbytes != self.digest_size:
            raise ValueError(
                f"output buffer must be {self.digest_size} bytes, got {view.nbytes}"
            )
        view[:] = self.finalize()

    @abc.abstractmethod
    def fresh(self) -> "Hasher":
        """Return a new, reset hasher of the same algorithm."""

    @abc.abstractmethod
    def _reset(self) -> None: ...

    @abc.abstractmethod
    def _absorb(self, data: bytes) -> None: ...

    @abc.abstractmethod
    def _finalize(self) -> bytes: ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name})"


class HashlibHasher(Hasher):
    """Hasher backed by any fixed-output hashlib algorithm."""

    def __init__(self, algorithm: str = "sha256") -> None:
        super().__init__()
        try:
            state = hashlib.new(algorithm)
        except (ValueError, TypeError) as e:
            raise ValueError(f"unknown hash algorithm: {algorithm}") from e
        # shake_* digests take a length argument; the tree needs a fixed size
        if state.digest_size == 0 or algorithm.lower().startswith("shake"):
            raise ValueError(f"variable-length algorithm not supported: {algorithm}")
        self._algorithm = algorithm
        self._state = state

    @property
    def name(self) -> str:
        return self._state.name

    @property
    def output_bits(self) -> int:
        return self._state.digest_size * 8

    @property
    def block_size(self) -> int:
        return self._state.block_size

    def fresh(self) -> "HashlibHasher":
        return type(self)(self._algorithm)

    def _reset(self) -> None:
        self._state = hashlib.new(self._algorithm)

    def _absorb(self, data: bytes) -> None:
        self._state.update(data)

    def _finalize(self) -> bytes:
        return self._state.digest()


class Sha256Hasher(HashlibHasher):
    """The default tree hasher."""

    def __init__(self) -> None:
        super().__init__("sha256")

    def fresh(self) -> "Sha256Hasher":
        return Sha256Hasher()


class DoubleSha256Hasher(Sha256Hasher):
    """SHA256(SHA256(data)), as used for Bitcoin-style trees."""

    @property
    def name(self) -> str:
        return "sha256d"

    def fresh(self) -> "DoubleSha256Hasher":
        return DoubleSha256Hasher()

    def _finalize(self) -> bytes:
        return hashlib.sha256(self._state.digest()).digest()


def default_hasher(algorithm: Optional[str] = None) -> Hasher:
    """Hasher for the configured algorithm (BLOCKMERKLE_HASH_ALGORITHM)."""
    from .settings import settings

    algorithm = algorithm or settings.hash_algorithm
    if algorithm.lower() == "sha256":
        return Sha256Hasher()
    if algorithm.lower() == "sha256d":
        return DoubleSha256Hasher()
    return HashlibHasher(algorithm)


def as_bytes(value: Any) -> bytes:
    """Stable byte representation of a tree item.

    str is UTF-8 encoded; bytes-like values pass through; anything else must
    define __bytes__. ints are rejected since bytes(5) means five zero bytes.
    """
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, int) or not hasattr(type(value), "__bytes__"):
        raise TypeError(f"{type(value).__name__} has no byte representation")
    return bytes(value)


class Hashing(abc.ABC):
    """Mixin for records that can be hashed through their byte encoding."""

    @abc.abstractmethod
    def to_bytes(self) -> bytes: ...

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def digest(self, hasher: Optional[Hasher] = None) -> bytes:
        h = hasher or Sha256Hasher()
        h.reset()
        h.absorb(self.to_bytes())
        return h.finalize()
