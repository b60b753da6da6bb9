"""Tests for PropertyRanker."""

from datetime import timedelta

import pytest

from hogarscan.analysis import PropertyRanker
from hogarscan.analysis.ranker import UNKNOWN_NEIGHBORHOOD, paginate
from hogarscan.models.property import PropertyLocation, ScoredProperty, SortKey


@pytest.fixture
def scored(make_listing):
    """Factory wrapping a listing into a hard-matching ScoredProperty."""

    def _make(score: float = 0.0, **overrides) -> ScoredProperty:
        return ScoredProperty(listing=make_listing(**overrides), score=score, hard_match=True)

    return _make


class TestRankByScore:
    """Test default ranking."""

    def test_rank_order(self, ranker: PropertyRanker, scored):
        items = [scored(0.5), scored(2.0), scored(1.1)]

        ranked = ranker.rank_by_score(items)

        assert [s.score for s in ranked] == [2.0, 1.1, 0.5]

    def test_tie_newest_first(self, ranker: PropertyRanker, scored):
        old = scored(1.0, title="Apartamento viejo")
        new = scored(
            1.0,
            title="Apartamento nuevo",
            scraped_date=old.listing.scraped_date + timedelta(hours=1),
        )

        ranked = ranker.rank([old, new], SortKey.SCORE)

        assert ranked[0] is new

    def test_tie_cheapest_first(self, ranker: PropertyRanker, scored):
        expensive = scored(1.0, price=3_000_000)
        cheap = scored(1.0, price=1_900_000)

        ranked = ranker.rank([expensive, cheap])

        assert ranked[0] is cheap

    def test_does_not_mutate_input(self, ranker: PropertyRanker, scored):
        items = [scored(0.1), scored(0.9)]

        ranker.rank(items)

        assert [s.score for s in items] == [0.1, 0.9]


class TestOtherSortKeys:
    def test_rank_by_price(self, ranker: PropertyRanker, scored):
        items = [scored(price=3_000_000), scored(price=1_500_000), scored(price=2_000_000)]

        ranked = ranker.rank_by_price(items)

        assert [s.listing.price for s in ranked] == [1_500_000, 2_000_000, 3_000_000]

    def test_rank_by_rooms(self, ranker: PropertyRanker, scored):
        items = [scored(rooms=2), scored(rooms=4), scored(rooms=3)]

        ranked = ranker.rank(items, SortKey.ROOMS)

        assert [s.listing.rooms for s in ranked] == [4, 3, 2]

    def test_rank_by_area(self, ranker: PropertyRanker, scored):
        items = [scored(area=60), scored(area=120), scored(area=95.5)]

        ranked = ranker.rank(items, SortKey.AREA)

        assert [s.listing.area for s in ranked] == [120, 95.5, 60]

    def test_price_ties_broken_by_date(self, ranker: PropertyRanker, scored):
        old = scored(title="Apartamento viejo")
        new = scored(
            title="Apartamento nuevo",
            scraped_date=old.listing.scraped_date + timedelta(days=1),
        )

        assert ranker.rank([old, new], SortKey.PRICE)[0] is new


class TestPaginate:
    def test_pages(self):
        items = list(range(45))

        assert paginate(items, 1, 20) == list(range(20))
        assert paginate(items, 3, 20) == list(range(40, 45))

    def test_past_last_page(self):
        assert paginate(list(range(45)), 4, 20) == []

    def test_concatenated_pages_cover_everything(self):
        items = list(range(7))
        pages = [paginate(items, p, 3) for p in (1, 2, 3)]

        assert sum(pages, []) == items


class TestSummarize:
    def test_empty(self, ranker: PropertyRanker):
        summary = ranker.summarize([])

        assert summary.average_price == 0
        assert summary.price_distribution == []

    def test_statistics(self, ranker: PropertyRanker, scored):
        items = [
            scored(price=1_500_000, area=50),
            scored(price=2_500_000, area=100),
            scored(price=2_500_000, area=0),
            scored(
                price=12_000_000,
                area=150,
                location=PropertyLocation(neighborhood="Rosales", city="Bogotá"),
            ),
        ]

        summary = ranker.summarize(items)

        assert summary.average_price == 4_625_000
        assert summary.average_area == 100
        assert summary.average_price_per_m2 == 45_000
        assert summary.neighborhood_breakdown == {"Usaquén": 3, "Rosales": 1}
        buckets = {b.label: (b.count, b.percentage) for b in summary.price_distribution}
        assert buckets["Menos de $2M"] == (1, 25)
        assert buckets["$2M - $3M"] == (2, 50)
        assert buckets["$5M - $10M"] == (0, 0)
        assert buckets["Más de $10M"] == (1, 25)

    def test_missing_neighborhood_grouped(self, ranker: PropertyRanker, scored):
        summary = ranker.summarize([scored(location=PropertyLocation(city="Bogotá"))])

        assert summary.neighborhood_breakdown == {UNKNOWN_NEIGHBORHOOD: 1}
