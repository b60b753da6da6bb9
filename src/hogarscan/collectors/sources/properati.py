"""Properati (properati.com.co). Static HTML over plain HTTP."""

from typing import Any

from ..schema import ExtractionConfig, InputMapping, PerformanceLimits, SourceSchema
from .common import NEXT_PAGE_SELECTORS, STANDARD_PATTERNS, standard_output, type_slug

BASE_URL = "https://www.properati.com.co"


def build_url(filters: dict[str, Any]) -> tuple[str, dict[str, str]]:
    property_type = "casa" if type_slug(filters) == "casa" else "apartamento"
    url = f"{BASE_URL}/s/bogota-d-c-colombia/{property_type}/{filters['operation']}"
    return url, {}


PROPERATI = SourceSchema(
    id="properati",
    name="Properati",
    base_url=BASE_URL,
    input=InputMapping(
        url_builder=build_url,
        supported_filters=frozenset({"operation", "property_types"}),
        supports_url_filtering=False,
    ),
    extraction=ExtractionConfig(
        card_selector='.listings .item, .listings [data-url], .property-item, [class*="listing"]',
        selectors={
            "title": (".property-title", ".listing-title", ".card-title", "h3", "h4", ".title"),
            "price": (".price", ".precio", ".listing-price", ".card-price", '[class*="price"]'),
            "area": (".area", ".superficie", ".m2", ".size", '[class*="area"]'),
            "rooms": (".rooms", ".habitaciones", ".alcobas", ".bedrooms"),
            "bathrooms": (".bathrooms", ".banos", '[class*="bathroom"]'),
            "parking": (".parking", ".parqueadero", ".garaje"),
            "location": (".location", ".ubicacion", ".address", ".barrio", ".neighborhood"),
            "amenities": (".amenities", ".facilities", ".comodidades"),
            "images": (".property-image img", ".card-image img", "img"),
            "link": ("[data-url]", "a.title", 'a[href*="/detalle/"]', "a"),
        },
        patterns=STANDARD_PATTERNS,
        next_page=NEXT_PAGE_SELECTORS,
    ),
    output=standard_output(BASE_URL),
    performance=PerformanceLimits(
        requests_per_minute=20,
        delay_between_requests=3.0,
        max_concurrent_requests=1,
        timeout=50.0,
        max_pages=3,
    ),
)
