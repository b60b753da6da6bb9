"""Pytest fixtures and test utilities."""

import asyncio
import dataclasses
import itertools
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import httpx
import pytest

from hogarscan.analysis import CriteriaEvaluator, Deduplicator, PropertyNormalizer, PropertyRanker
from hogarscan.collectors.base import RawRecord, SourceAdapter
from hogarscan.collectors.schema import (
    ExtractionConfig,
    InputMapping,
    PerformanceLimits,
    SourceSchema,
)
from hogarscan.collectors.sources.common import STANDARD_PATTERNS, standard_output
from hogarscan.config import Settings
from hogarscan.models.criteria import SearchCriteria
from hogarscan.models.property import CanonicalProperty, PropertyLocation

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

_ids = itertools.count(1)


def fixture_url(filters: dict[str, Any]) -> tuple[str, dict[str, str]]:
    params = {}
    if "max_price" in filters:
        params["precio_max"] = str(int(filters["max_price"]))
    return f"https://listings.test/{filters['operation']}", params


def make_schema(
    source_id: str = "fixture",
    timeout: float = 5.0,
    max_pages: int = 3,
    delay: float = 0.0,
    max_concurrent: int = 2,
) -> SourceSchema:
    """Small static-HTML portal used across the suite."""
    return SourceSchema(
        id=source_id,
        name=source_id.title(),
        base_url="https://listings.test",
        input=InputMapping(
            url_builder=fixture_url,
            supported_filters=frozenset({"operation", "max_price"}),
        ),
        extraction=ExtractionConfig(
            card_selector=".card",
            selectors={
                "title": (".title", "h3"),
                "price": (".price",),
                "area": (".area",),
                "location": (".location",),
                "amenities": (".amenities",),
                "images": ("img",),
                "link": ("a",),
            },
            patterns=STANDARD_PATTERNS,
            next_page=(".pagination .next",),
        ),
        output=standard_output("https://listings.test"),
        performance=PerformanceLimits(
            requests_per_minute=600,
            delay_between_requests=delay,
            max_concurrent_requests=max_concurrent,
            timeout=timeout,
            max_pages=max_pages,
        ),
    )


def card_html(
    listing_id: str,
    title: str,
    price: str = "$ 2.000.000",
    area: str = "80 m²",
    details: str = "3 habitaciones 2 baños 1 parqueadero",
    location: str = "Usaquén, Santa Bárbara, Bogotá",
    amenities: str = "Gimnasio, Piscina",
) -> str:
    return f"""
    <div class="card" data-id="{listing_id}">
      <a href="/inmueble/{listing_id}"><h3 class="title">{title}</h3></a>
      <span class="price">{price}</span>
      <span class="area">{area}</span>
      <p class="details">{details}</p>
      <span class="location">{location}</span>
      <span class="amenities">{amenities}</span>
      <img src="/img/{listing_id}.jpg">
    </div>
    """


def page_html(cards: list[str], has_next: bool = False) -> str:
    pagination = '<nav class="pagination"><a class="next" href="?page=2">Siguiente</a></nav>'
    return (
        "<html><body><div class='results'>"
        + "".join(cards)
        + "</div>"
        + (pagination if has_next else "")
        + "</body></html>"
    )


class FakeAdapter(SourceAdapter):
    """Adapter returning canned records, raising, or hanging."""

    def __init__(
        self,
        source_id: str = "fixture",
        records: Optional[list[RawRecord]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        timeout: float = 5.0,
        active: bool = True,
    ):
        self.schema = make_schema(source_id, timeout=timeout)
        if not active:
            self.schema = dataclasses.replace(self.schema, active=False)
        self.records = records or []
        self.error = error
        self.delay = delay
        self.calls: list[int] = []

    async def scrape(self, criteria: SearchCriteria, page: int = 1) -> list[RawRecord]:
        self.calls.append(page)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return [dict(r) for r in self.records]


def raw_record(
    title: str,
    rooms: int = 3,
    area: float = 80,
    price: int = 2_000_000,
    location: str = "Usaquén, Santa Bárbara, Bogotá",
    **extra: str,
) -> RawRecord:
    record: RawRecord = {
        "title": title,
        "price": f"$ {price:,}".replace(",", "."),
        "area": f"{area:g} m²",
        "rooms": f"{rooms} habitaciones",
        "bathrooms": "2 baños",
        "location": location,
        "link": f"/inmueble/{next(_ids) + 100000}",
    }
    record.update(extra)
    return record


def html_transport(pages: dict[int, str], calls: Optional[list[httpx.Request]] = None):
    """MockTransport serving ``pages`` by the ``page`` query parameter."""

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        page = int(request.url.params.get("page", "1"))
        if page not in pages:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, text=pages[page])

    return httpx.MockTransport(handler)


@pytest.fixture
def schema() -> SourceSchema:
    return make_schema()


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment."""
    return Settings(_env_file=None, enabled_sources=["ciencuadras", "properati"])


@pytest.fixture
def normalizer() -> PropertyNormalizer:
    return PropertyNormalizer(scraped_at=FIXED_NOW)


@pytest.fixture
def ranker() -> PropertyRanker:
    return PropertyRanker()


@pytest.fixture
def deduplicator() -> Deduplicator:
    return Deduplicator()


@pytest.fixture
def make_listing() -> Callable[..., CanonicalProperty]:
    """Factory for CanonicalProperty with sensible Bogotá defaults."""

    def _make(**overrides: Any) -> CanonicalProperty:
        location = overrides.pop(
            "location",
            PropertyLocation(
                address="Usaquén, Santa Bárbara, Bogotá",
                neighborhood="Usaquén",
                zone="Santa Bárbara",
                city="Bogotá",
            ),
        )
        price = overrides.pop("price", 2_000_000)
        admin_fee = overrides.pop("admin_fee", 0)
        fields = {
            "id": f"fixture-{next(_ids)}",
            "source": "fixture",
            "title": "Apartamento en Usaquén",
            "price": price,
            "admin_fee": admin_fee,
            "total_price": price + admin_fee,
            "area": 80,
            "rooms": 3,
            "bathrooms": 2,
            "parking": 1,
            "location": location,
            "scraped_date": FIXED_NOW,
        }
        fields.update(overrides)
        return CanonicalProperty(**fields)

    return _make


@pytest.fixture
def usaquen_criteria() -> SearchCriteria:
    """Rent, 3-4 rooms, 70-110 m2, up to 3.5M, Usaquén."""
    return SearchCriteria.from_filters(
        operation="arriendo",
        property_types=["apartamento"],
        min_rooms=3,
        max_rooms=4,
        min_area=70,
        max_area=110,
        max_total_price=3_500_000,
        city="Bogotá",
        neighborhoods=["Usaquén"],
    )


@pytest.fixture
def evaluator(usaquen_criteria: SearchCriteria) -> CriteriaEvaluator:
    return CriteriaEvaluator(usaquen_criteria)



@pytest.fixture
def schema_factory() -> Callable[..., SourceSchema]:
    return make_schema


@pytest.fixture
def adapter_factory() -> Callable[..., FakeAdapter]:
    return FakeAdapter


@pytest.fixture
def raw_factory() -> Callable[..., RawRecord]:
    return raw_record


@pytest.fixture
def card_factory() -> Callable[..., str]:
    return card_html


@pytest.fixture
def page_factory() -> Callable[..., str]:
    return page_html


@pytest.fixture
def transport_factory() -> Callable[..., httpx.MockTransport]:
    return html_transport
