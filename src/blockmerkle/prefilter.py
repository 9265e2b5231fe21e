from __future__ import annotations
import enum
import logging
from typing import Any, Iterable, Optional, Protocol, Set

import rbloom

from .hashing import as_bytes
from .merkle import MerkleTree

"""Set-membership pre-filter wiring.

A pre-filter (e.g. a bloom filter) cheaply rejects definite non-members.
Its positives may be false, so every positive is confirmed against the tree.
"""

logger = logging.getLogger(__name__)


class MembershipFilter(Protocol):
    def insert(self, item: Any) -> None: ...

    def contains(self, item: Any) -> bool: ...


class SetFilter:
    """Exact in-memory filter: no false positives, no false negatives."""

    def __init__(self, items: Iterable[Any] = ()) -> None:
        self._items: Set[bytes] = set()
        for item in items:
            self.insert(item)

    def insert(self, item: Any) -> None:
        self._items.add(as_bytes(item))

    def contains(self, item: Any) -> bool:
        return as_bytes(item) in self._items

    def __len__(self) -> int:
        return len(self._items)


class BloomFilter:
    """Probabilistic filter backed by rbloom; positives must be confirmed."""

    def __init__(
        self,
        items: Iterable[Any] = (),
        expected_items: Optional[int] = None,
        false_positive_rate: Optional[float] = None,
    ) -> None:
        from .settings import settings

        self.expected_items = expected_items or settings.prefilter_expected_items
        self.false_positive_rate = (
            false_positive_rate or settings.prefilter_false_positive_rate
        )
        if self.expected_items < 1 or not 0 < self.false_positive_rate < 1:
            raise ValueError("bloom filter needs expected_items >= 1 and 0 < rate < 1")
        self._bloom = rbloom.Bloom(self.expected_items, self.false_positive_rate)
        for item in items:
            self.insert(item)

    def insert(self, item: Any) -> None:
        self._bloom.add(as_bytes(item))

    def contains(self, item: Any) -> bool:
        return as_bytes(item) in self._bloom


class Lookup(str, enum.Enum):
    ABSENT = "absent"
    FALSE_POSITIVE = "false_positive"
    PRESENT = "present"


def confirm_membership(prefilter: MembershipFilter, tree: MerkleTree, value: Any) -> Lookup:
    """Check the filter first and confirm a positive with a tree lookup."""
    if not prefilter.contains(value):
        return Lookup.ABSENT
    position = tree.position_of(value)
    if position is None or not tree.verify(position, value):
        logger.info("pre-filter positive not held by tree")
        return Lookup.FALSE_POSITIVE
    logger.debug("confirmed at leaf %d", position)
    return Lookup.PRESENT
