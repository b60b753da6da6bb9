"""Exact-repeat removal.

Two listings are the same when title (trimmed, lowercased), price, area and
source all match, e.g. a listing seen on two result pages of one portal. The
same apartment published on two portals is kept twice.
"""

import logging
from typing import TypeVar, Union

from ..models.property import CanonicalProperty, ScoredProperty

logger = logging.getLogger(__name__)

T = TypeVar("T", CanonicalProperty, ScoredProperty)

DedupKey = tuple[str, int, float, str]


def dedup_key(item: Union[CanonicalProperty, ScoredProperty]) -> DedupKey:
    listing = item.listing if isinstance(item, ScoredProperty) else item
    return (listing.title.strip().lower(), listing.price, listing.area, listing.source)


class Deduplicator:
    """Collapse exact repeats, keeping the first occurrence.

    ``discarded`` accumulates across calls so one instance can report a
    whole search.
    """

    def __init__(self) -> None:
        self.discarded = 0

    def dedupe(self, items: list[T]) -> list[T]:
        seen: set[DedupKey] = set()
        unique: list[T] = []
        for item in items:
            key = dedup_key(item)
            if key in seen:
                self.discarded += 1
                logger.debug(f"Duplicate discarded: {key[3]} {key[0]!r} ${key[1]:,}")
                continue
            seen.add(key)
            unique.append(item)
        return unique
