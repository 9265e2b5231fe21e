"""Merkle tree over an ordered sequence of items.

- LeafHash(item) = H(0x00 || bytes(item))
- NodeHash(left, right) = H(0x01 || left || right)

A node without a sibling is paired with itself, and any level wider than one
with an odd width gets its last digest duplicated, so every fold is pair-based.

Nodes live in one flat list: indices [0, internal_count) are internal nodes
(0 is the root) and the leaves follow in item order. internal_count is
next_power_of_two(leaf_count) - 1; levels are written backwards from just
above the leaves toward the root.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Sequence, Tuple

from .hashing import Hasher, as_bytes, default_hasher
from .utils import from_hex, to_hex

if TYPE_CHECKING:
    from .models import TreeHead

logger = logging.getLogger(__name__)

LEAF_TAG = b"\x00"
INTERNAL_TAG = b"\x01"


def next_power_of_two(n: int) -> int:
    if n < 1:
        raise ValueError(f"expected a positive count, got {n}")
    return 1 << (n - 1).bit_length()


def hash_leaf(value: Any, hasher: Hasher) -> bytes:
    hasher.reset()
    hasher.absorb(LEAF_TAG)
    hasher.absorb(as_bytes(value))
    return hasher.finalize()


def hash_internal_node(left: bytes, right: Optional[bytes], hasher: Hasher) -> bytes:
    hasher.reset()
    hasher.absorb(INTERNAL_TAG)
    hasher.absorb(left)
    # no sibling: hash left with itself
    hasher.absorb(left if right is None else right)
    return hasher.finalize()


def build_upper_level(nodes: Sequence[bytes], hasher: Hasher) -> List[bytes]:
    """Fold one level into its parent level."""
    row: List[bytes] = []
    for i in range(0, len(nodes), 2):
        right = nodes[i + 1] if i + 1 < len(nodes) else None
        row.append(hash_internal_node(nodes[i], right, hasher))
    if len(row) > 1 and len(row) % 2 != 0:
        row.append(row[-1])
    return row


def _build_internal_nodes(nodes: List[bytes], internal_count: int, hasher: Hasher) -> None:
    parents = build_upper_level(nodes[internal_count:], hasher)
    start = internal_count - len(parents)
    nodes[start : start + len(parents)] = parents
    while len(parents) > 1:
        parents = build_upper_level(parents, hasher)
        start -= len(parents)
        nodes[start : start + len(parents)] = parents
    nodes[0] = parents[0]


def verify_leaf(leaves: Sequence[bytes], position: int, value: Any, hasher: Hasher) -> bool:
    """Check value against leaves[position] using a caller-owned hasher."""
    if position < 0 or position >= len(leaves):
        raise IndexError("position does not relate to any leaf")
    return hash_leaf(value, hasher) == bytes(leaves[position])


class MerkleTree:
    """Immutable Merkle tree; build with MerkleTree.build or build_from_leaves."""

    def __init__(self, nodes: List[bytes], internal_count: int, leaf_count: int, hasher: Hasher):
        self._nodes = nodes
        self._internal_count = internal_count
        self._leaf_count = leaf_count
        self._hasher = hasher

    @classmethod
    def build(cls, values: Iterable[Any], hasher: Optional[Hasher] = None) -> "MerkleTree":
        """Hash each value into a leaf and build the tree over them.

        Values may be str, bytes-like, or anything defining __bytes__.
        """
        hasher = hasher or default_hasher()
        leaves = [hash_leaf(v, hasher) for v in values]
        if not leaves:
            raise ValueError("cannot build a Merkle tree from 0 values")
        return cls._from_leaves(leaves, hasher)

    @classmethod
    def build_from_leaves(
        cls, leaves: Iterable[bytes], hasher: Optional[Hasher] = None
    ) -> "MerkleTree":
        """Build a tree from already hashed leaves (e.g. another tree's leaves)."""
        hasher = hasher or default_hasher()
        copied: List[bytes] = []
        for i, leaf in enumerate(leaves):
            if not isinstance(leaf, (bytes, bytearray, memoryview)):
                raise ValueError(f"leaf {i} is not bytes: {type(leaf).__name__}")
            leaf = bytes(leaf)
            if len(leaf) != hasher.digest_size:
                raise ValueError(
                    f"leaf {i} is {len(leaf)} bytes, {hasher.name} digests are {hasher.digest_size}"
                )
            copied.append(leaf)
        if not copied:
            raise ValueError("cannot build a Merkle tree from 0 leaves")
        return cls._from_leaves(copied, hasher)

    @classmethod
    def from_head(cls, head: "TreeHead", hasher: Optional[Hasher] = None) -> "MerkleTree":
        """Rebuild from a TreeHead and check the recomputed root."""
        hasher = hasher or default_hasher(head.algorithm)
        if hasher.name.lower() != head.algorithm.lower():
            raise ValueError(f"head uses {head.algorithm}, hasher is {hasher.name}")
        tree = cls.build_from_leaves([from_hex(x) for x in head.leaves_hex], hasher)
        if tree.root_hex != head.root_hex.lower():
            raise ValueError("recomputed root does not match tree head")
        return tree

    @classmethod
    def _from_leaves(cls, leaves: List[bytes], hasher: Hasher) -> "MerkleTree":
        leaf_count = len(leaves)
        internal_count = next_power_of_two(leaf_count) - 1
        nodes: List[bytes] = [b""] * internal_count + leaves
        # a single leaf is its own root
        if internal_count:
            _build_internal_nodes(nodes, internal_count, hasher)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "built %s tree: %d leaves, %d internal slots, root %s",
                hasher.name,
                leaf_count,
                internal_count,
                to_hex(nodes[0]),
            )
        return cls(nodes, internal_count, leaf_count, hasher)

    @property
    def root(self) -> bytes:
        return self._nodes[0]

    @property
    def root_hex(self) -> str:
        return to_hex(self._nodes[0])

    @property
    def leaves(self) -> Tuple[bytes, ...]:
        return tuple(self._nodes[self._internal_count :])

    @property
    def nodes(self) -> Tuple[bytes, ...]:
        return tuple(self._nodes)

    @property
    def leaf_count(self) -> int:
        return self._leaf_count

    @property
    def internal_count(self) -> int:
        return self._internal_count

    @property
    def hasher(self) -> Hasher:
        return self._hasher

    def __len__(self) -> int:
        return self._leaf_count

    def __repr__(self) -> str:
        return f"MerkleTree(leaves={self._leaf_count}, root={self.root_hex})"

    def verify(self, position: int, value: Any) -> bool:
        """Verify value by comparing its hash against the leaf at position.

        Raises IndexError if position does not relate to any leaf. Not safe to
        call concurrently on one tree: the tree's hasher is reused.
        """
        if position < 0 or position >= self._leaf_count:
            raise IndexError("position does not relate to any leaf")
        return self._nodes[self._internal_count + position] == hash_leaf(value, self._hasher)

    def position_of(self, value: Any) -> Optional[int]:
        """Index of the first leaf matching value, or None."""
        digest = hash_leaf(value, self._hasher)
        for i in range(self._leaf_count):
            if self._nodes[self._internal_count + i] == digest:
                return i
        return None

    def head(self) -> "TreeHead":
        from .models import TreeHead

        return TreeHead(
            algorithm=self._hasher.name,
            tree_size=self._leaf_count,
            root_hex=self.root_hex,
            leaves_hex=[to_hex(x) for x in self.leaves],
        )
