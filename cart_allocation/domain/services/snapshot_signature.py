"""
SNAPSHOT SIGNATURE
Stable fingerprint of a cart snapshot

Callers compare the signature of a new snapshot with the last one they
allocated and skip reallocation when nothing relevant changed.
"""

import hashlib
import json
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from cart_allocation.domain.models import LineItem


def _canonical_entry(item: LineItem) -> Tuple[str, int, str]:
    # normalize() so 8.5 and 8.50 hash the same
    price = item.unit_price.normalize()
    return str(item.id), item.quantity, format(price, "f")


def compute_signature(items: Iterable[LineItem]) -> str:
    """
    Order-independent SHA-256 fingerprint of (id, quantity, unit_price)

    Args:
        items: Cart snapshot

    Returns:
        Hex digest
    """
    entries: List[Tuple[str, int, str]] = sorted(_canonical_entry(item) for item in items)
    payload = json.dumps(entries, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class SnapshotSignature:
    """Comparable token for one cart snapshot"""
    digest: str

    @classmethod
    def from_items(cls, items: Iterable[LineItem]) -> "SnapshotSignature":
        return cls(digest=compute_signature(items))

    def matches(self, items: Iterable[LineItem]) -> bool:
        """True when items would produce this same signature"""
        return compute_signature(items) == self.digest

    def __str__(self) -> str:
        return self.digest
