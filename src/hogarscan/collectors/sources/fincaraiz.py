"""Fincaraiz (fincaraiz.com.co).

Results are rendered client-side, so the page needs a browser. The search
URL takes room, area and price bounds, but the portal widens them, so the
evaluator re-checks every one.
"""

from typing import Any

from ..schema import (
    ExtractionConfig,
    ExtractionMethod,
    InputMapping,
    PerformanceLimits,
    SourceSchema,
)
from .common import (
    NEXT_PAGE_SELECTORS,
    STANDARD_PATTERNS,
    city_slug,
    number,
    standard_output,
    type_slug,
)

BASE_URL = "https://www.fincaraiz.com.co"


def build_url(filters: dict[str, Any]) -> tuple[str, dict[str, str]]:
    operation = filters["operation"]
    url = f"{BASE_URL}/{operation}/{type_slug(filters)}/{city_slug(filters)}"
    params = {
        "ad_type": "2" if operation == "arriendo" else "1",
        "currency": "COP",
    }
    for key in ("min_rooms", "max_rooms", "min_area", "max_area", "max_price"):
        if key in filters:
            params[key] = number(filters[key])
    return url, params


FINCARAIZ = SourceSchema(
    id="fincaraiz",
    name="Fincaraiz",
    base_url=BASE_URL,
    input=InputMapping(
        url_builder=build_url,
        supported_filters=frozenset(
            {
                "operation",
                "property_types",
                "city",
                "min_rooms",
                "max_rooms",
                "min_area",
                "max_area",
                "max_price",
            }
        ),
        requires_post_filtering=frozenset(
            {"min_rooms", "max_rooms", "min_area", "max_area", "city"}
        ),
    ),
    extraction=ExtractionConfig(
        method=ExtractionMethod.BROWSER,
        card_selector=".listingCard, .listingsWrapper",
        selectors={
            "title": ("h2", '[class*="title"]', ".property-title", ".listing-title", "h3"),
            "price": ('[class*="price"]', ".price", ".precio", ".valor"),
            "area": ('[data-testid="property-area"]', ".area", ".superficie", ".m2"),
            "rooms": ('[data-testid="property-rooms"]', ".rooms", ".habitaciones", ".alcobas"),
            "bathrooms": ('[data-testid="property-bathrooms"]', ".bathrooms", ".banos"),
            "parking": (".parking", ".parqueadero", ".garaje"),
            "location": (
                '[data-testid="property-location"]',
                ".location",
                ".ubicacion",
                ".direccion",
                ".address",
            ),
            "images": ('[data-testid="property-image"] img', ".MuiCardMedia-img", "img"),
            "link": ('a[href*="/inmueble/"]', 'a[href*="/propiedad/"]', "a"),
        },
        patterns=STANDARD_PATTERNS,
        next_page=NEXT_PAGE_SELECTORS + ('.MuiPagination-item[aria-label*="next"]',),
    ),
    output=standard_output(BASE_URL, defaults={"city": "Bogotá"}),
    performance=PerformanceLimits(
        requests_per_minute=30,
        delay_between_requests=2.0,
        max_concurrent_requests=2,
        timeout=45.0,
        max_pages=5,
    ),
)
