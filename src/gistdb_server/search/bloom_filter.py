"""Probabilistic membership filters for sparse field indexes.

A filter answers "possibly present" or "definitely absent from what was
inserted". The sparse index only depends on the :class:`MembershipFilter`
protocol, so a Bloom filter and an exact set are interchangeable.
"""

import hashlib
import logging
import math
from typing import Any, Protocol


logger = logging.getLogger(__name__)


class MembershipFilter(Protocol):
    """Capability required by the sparse index."""

    def add(self, item: str) -> None: ...

    def contains(self, item: str) -> bool: ...


class BloomFilter:
    """Bit-array Bloom filter with an explicit size and hash count."""

    def __init__(self, bit_size: int = 100000, hash_count: int = 1):
        """Initialize an empty filter.

        Args:
            bit_size: Number of bits in the array
            hash_count: Number of hash functions applied per item
        """
        if bit_size < 1:
            raise ValueError("bit_size must be positive")
        if hash_count < 1:
            raise ValueError("hash_count must be positive")

        self.bit_size = bit_size
        self.hash_count = hash_count
        self.bit_array = bytearray(self.bit_size // 8 + 1)
        self.item_count = 0

        logger.debug("Bloom filter initialized: %d bits, %d hashes", self.bit_size, self.hash_count)

    def _hash(self, item: str, seed: int) -> int:
        """Generate hash for item with seed."""
        hash_obj = hashlib.md5(f"{item}{seed}".encode())
        return int(hash_obj.hexdigest(), 16) % self.bit_size

    def add(self, item: str) -> None:
        for i in range(self.hash_count):
            bit_index = self._hash(item, i)
            self.bit_array[bit_index // 8] |= 1 << (bit_index % 8)
        self.item_count += 1

    def contains(self, item: str) -> bool:
        """Check if item might be in the set (no false negatives)."""
        for i in range(self.hash_count):
            bit_index = self._hash(item, i)
            if not (self.bit_array[bit_index // 8] & (1 << (bit_index % 8))):
                return False  # Definitely not in set
        return True  # Might be in set (could be false positive)

    def __contains__(self, item: object) -> bool:
        return isinstance(item, str) and self.contains(item)

    def estimated_false_positive_rate(self) -> float:
        """Expected false-positive rate for the items inserted so far."""
        if self.item_count == 0:
            return 0.0
        exponent = -self.hash_count * self.item_count / self.bit_size
        return (1 - math.exp(exponent)) ** self.hash_count

    def get_stats(self) -> dict[str, Any]:
        return {
            "backend": "bloom",
            "bit_size": self.bit_size,
            "hash_count": self.hash_count,
            "item_count": self.item_count,
            "memory_bytes": len(self.bit_array),
            "estimated_false_positive_rate": self.estimated_false_positive_rate(),
        }


class ExactMembershipFilter:
    """Set-backed filter without false positives, for small collections."""

    def __init__(self) -> None:
        self._items: set[str] = set()

    def add(self, item: str) -> None:
        self._items.add(item)

    def contains(self, item: str) -> bool:
        return item in self._items

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def get_stats(self) -> dict[str, Any]:
        return {"backend": "exact", "item_count": len(self._items)}
