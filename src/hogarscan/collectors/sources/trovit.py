"""Trovit (casas.trovit.com.co), a listing aggregator.

The search URL accepts a room minimum, an area minimum and a price ceiling.
"""

from typing import Any

from ..schema import (
    ExtractionConfig,
    ExtractionMethod,
    InputMapping,
    PerformanceLimits,
    SourceSchema,
)
from .common import NEXT_PAGE_SELECTORS, STANDARD_PATTERNS, city_slug, number, standard_output

BASE_URL = "https://casas.trovit.com.co"

# filter name -> query parameter
QUERY_PARAMS = {
    "min_rooms": "min_rooms",
    "min_area": "min_size",
    "max_price": "max_price",
}


def build_url(filters: dict[str, Any]) -> tuple[str, dict[str, str]]:
    city = city_slug(filters)
    url = f"{BASE_URL}/{filters['operation']}-apartamento-{city}"
    params = {
        param: number(filters[name])
        for name, param in QUERY_PARAMS.items()
        if name in filters
    }
    params["what"] = "apartamento"
    params["where"] = city
    return url, params


TROVIT = SourceSchema(
    id="trovit",
    name="Trovit",
    base_url=BASE_URL,
    input=InputMapping(
        url_builder=build_url,
        supported_filters=frozenset({"operation", "city", *QUERY_PARAMS}),
    ),
    extraction=ExtractionConfig(
        method=ExtractionMethod.BROWSER,
        card_selector=".js-listing, article.snippet-listing, .snippet-listing",
        selectors={
            "title": (".item_title", ".js-item-title", ".listing-title", "h3", "h4"),
            "price": (".item_price", ".price", ".precio", '[class*="price"]'),
            "area": (".item_surface", ".surface", ".area", ".superficie"),
            "rooms": (".item_rooms", ".rooms", ".habitaciones"),
            "bathrooms": (".item_bathrooms", ".bathrooms", ".banos"),
            "parking": (".item_parking", ".parking", ".parqueadero"),
            "location": (".item_location", ".location", ".ubicacion", ".address"),
            "images": (".item_image img", ".listing-image img", "img"),
            "link": (".item_link", "a"),
        },
        patterns=STANDARD_PATTERNS,
        next_page=NEXT_PAGE_SELECTORS + (".js-pagination-next",),
    ),
    output=standard_output(BASE_URL),
    performance=PerformanceLimits(
        requests_per_minute=20,
        delay_between_requests=3.0,
        max_concurrent_requests=1,
        timeout=45.0,
        max_pages=3,
    ),
)
