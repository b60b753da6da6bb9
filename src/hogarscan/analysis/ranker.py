"""Result ordering, pagination and summary statistics.

This module sorts evaluated listings by a caller-selected key, slices out
one page, and summarizes the full match set for the result header.
"""

import logging
from statistics import mean
from typing import Sequence, TypeVar

from ..models.property import PriceBucket, ScoredProperty, SearchSummary, SortKey

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (label, lower bound inclusive, upper bound exclusive) on total price, COP
PRICE_BUCKETS = [
    ("Menos de $2M", 0, 2_000_000),
    ("$2M - $3M", 2_000_000, 3_000_000),
    ("$3M - $4M", 3_000_000, 4_000_000),
    ("$4M - $5M", 4_000_000, 5_000_000),
    ("$5M - $10M", 5_000_000, 10_000_000),
    ("Más de $10M", 10_000_000, None),
]

UNKNOWN_NEIGHBORHOOD = "Sin barrio"


def paginate(items: Sequence[T], page: int, limit: int) -> list[T]:
    """Items ``[(page-1)*limit, page*limit)``; empty past the last page."""
    start = (page - 1) * limit
    return list(items[start : start + limit])


class PropertyRanker:
    """Rank evaluated listings and summarize them.

    Example:
        ranker = PropertyRanker()
        ranked = ranker.rank(matches, SortKey.PRICE)
        first_page = paginate(ranked, page=1, limit=20)
        summary = ranker.summarize(matches)
    """

    # =========================================================================
    # Ranking Methods
    # =========================================================================

    def rank(
        self, items: list[ScoredProperty], sort_by: SortKey = SortKey.SCORE
    ) -> list[ScoredProperty]:
        """Sort by ``sort_by``; ties go to the newest, then the cheapest.

        Python's sort is stable, so sorting by the tie-breaks first and the
        primary key last yields the combined order.
        """
        ranked = sorted(items, key=lambda s: s.listing.price)
        ranked.sort(key=lambda s: s.listing.scraped_date, reverse=True)

        if sort_by == SortKey.PRICE:
            ranked.sort(key=lambda s: s.listing.price)
        elif sort_by == SortKey.ROOMS:
            ranked.sort(key=lambda s: s.listing.rooms, reverse=True)
        elif sort_by == SortKey.AREA:
            ranked.sort(key=lambda s: s.listing.area, reverse=True)
        else:
            ranked.sort(key=lambda s: s.score, reverse=True)
        return ranked

    def rank_by_score(self, items: list[ScoredProperty]) -> list[ScoredProperty]:
        return self.rank(items, SortKey.SCORE)

    def rank_by_price(self, items: list[ScoredProperty]) -> list[ScoredProperty]:
        return self.rank(items, SortKey.PRICE)

    # =========================================================================
    # Summary
    # =========================================================================

    def summarize(self, items: list[ScoredProperty]) -> SearchSummary:
        """Averages, neighborhood counts and price distribution."""
        if not items:
            return SearchSummary()

        listings = [s.listing for s in items]
        with_area = [l for l in listings if l.area > 0]

        neighborhoods: dict[str, int] = {}
        for listing in listings:
            name = listing.location.neighborhood or UNKNOWN_NEIGHBORHOOD
            neighborhoods[name] = neighborhoods.get(name, 0) + 1

        distribution = []
        for label, low, high in PRICE_BUCKETS:
            count = sum(
                1
                for l in listings
                if l.total_price >= low and (high is None or l.total_price < high)
            )
            distribution.append(
                PriceBucket(
                    label=label,
                    count=count,
                    percentage=round(count / len(listings) * 100),
                )
            )

        return SearchSummary(
            average_price=round(mean(l.total_price for l in listings)),
            average_price_per_m2=(
                round(mean(l.price_per_m2 for l in with_area)) if with_area else 0
            ),
            average_area=round(mean(l.area for l in with_area)) if with_area else 0,
            neighborhood_breakdown=dict(
                sorted(neighborhoods.items(), key=lambda kv: kv[1], reverse=True)
            ),
            price_distribution=distribution,
        )
