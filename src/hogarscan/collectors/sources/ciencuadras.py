"""Ciencuadras (ciencuadras.com).

Static HTML, fetched over plain HTTP. The URL only carries operation,
property type and city; rooms, bathrooms and parking are not in dedicated
elements and come from the card text patterns.
"""

import re
from typing import Any

from ..schema import ExtractionConfig, InputMapping, PerformanceLimits, SourceSchema
from .common import (
    BATHROOM_PATTERNS,
    NEXT_PAGE_SELECTORS,
    PARKING_PATTERNS,
    ROOM_PATTERNS,
    STANDARD_PATTERNS,
    city_slug,
    standard_output,
    type_slug,
)

BASE_URL = "https://www.ciencuadras.com"


def build_url(filters: dict[str, Any]) -> tuple[str, dict[str, str]]:
    url = f"{BASE_URL}/{filters['operation']}/{type_slug(filters)}/{city_slug(filters)}"
    return url, {}


CIENCUADRAS = SourceSchema(
    id="ciencuadras",
    name="Ciencuadras",
    base_url=BASE_URL,
    input=InputMapping(
        url_builder=build_url,
        supported_filters=frozenset({"operation", "property_types", "city"}),
        supports_url_filtering=False,
    ),
    extraction=ExtractionConfig(
        card_selector=".card",
        selectors={
            "title": (".property-title", ".listing-title", ".inmueble-titulo", "h3", "h4"),
            "price": (".card__price", ".card__price-big", '[class*="price"]', ".precio"),
            "area": (".area", ".superficie", ".m2", '[class*="area"]'),
            "location": (".location", ".ubicacion", ".direccion", ".address", ".barrio"),
            "images": (".property-image img", ".inmueble-foto img", "img"),
            "link": ("a[href]",),
        },
        patterns={
            **STANDARD_PATTERNS,
            "rooms": (re.compile(r"Habit\.\s*(\d+)", re.IGNORECASE),) + ROOM_PATTERNS,
            "bathrooms": (re.compile(r"Baños\s*(\d+)", re.IGNORECASE),) + BATHROOM_PATTERNS,
            "parking": (re.compile(r"Garaje\s*(\d+)", re.IGNORECASE),) + PARKING_PATTERNS,
        },
        next_page=NEXT_PAGE_SELECTORS,
    ),
    output=standard_output(BASE_URL),
    performance=PerformanceLimits(
        requests_per_minute=25,
        delay_between_requests=2.5,
        max_concurrent_requests=2,
        timeout=45.0,
        max_pages=4,
    ),
)
