"""Metrocuadrado (metrocuadrado.com).

Cards expose their figures under ``*Text`` keys; the search URL encodes
room and area ranges as ``min-max`` pairs.
"""

import re
from typing import Any

from ..schema import (
    ExtractionConfig,
    ExtractionMethod,
    InputMapping,
    PerformanceLimits,
    SourceSchema,
)
from .common import (
    ADMIN_FEE_PATTERNS,
    AREA_PATTERNS,
    BATHROOM_PATTERNS,
    NEXT_PAGE_SELECTORS,
    PARKING_PATTERNS,
    PRICE_PATTERNS,
    ROOM_PATTERNS,
    STRATUM_PATTERNS,
    city_slug,
    number,
    standard_output,
)

BASE_URL = "https://www.metrocuadrado.com"


def _range(filters: dict[str, Any], name: str, open_min: float, span: float) -> str:
    low = filters.get(f"min_{name}", open_min)
    high = filters.get(f"max_{name}", low + span)
    return f"{number(low)}-{number(high)}"


def build_url(filters: dict[str, Any]) -> tuple[str, dict[str, str]]:
    url = f"{BASE_URL}/apartamentos/{filters['operation']}/{city_slug(filters)}/"
    params: dict[str, str] = {}
    if "min_rooms" in filters or "max_rooms" in filters:
        params["habitaciones"] = _range(filters, "rooms", 1, 2)
    if "min_area" in filters or "max_area" in filters:
        params["area"] = _range(filters, "area", 30, 50)
    if "max_price" in filters:
        params["precio"] = f"0-{number(filters['max_price'])}"
    params["orden"] = "relevancia"
    return url, params


METROCUADRADO = SourceSchema(
    id="metrocuadrado",
    name="Metrocuadrado",
    base_url=BASE_URL,
    input=InputMapping(
        url_builder=build_url,
        supported_filters=frozenset(
            {"operation", "city", "min_rooms", "max_rooms", "min_area", "max_area", "max_price"}
        ),
    ),
    extraction=ExtractionConfig(
        method=ExtractionMethod.BROWSER,
        card_selector='.property-card__container, .property-card:not([class*="__"])',
        selectors={
            "title": (".property-card__content", ".listing-title", ".property-title", "h3"),
            "priceText": (".property-card__detail-price", '[class*="price"]', ".precio"),
            "areaText": (".area", ".surface", ".superficie", '[class*="area"]'),
            "roomsText": (".rooms", ".habitaciones", ".alcobas", '[class*="habitacion"]'),
            "bathroomsText": (".bathrooms", ".banos", '[class*="bathroom"]'),
            "parkingText": (".parking", ".parqueadero", ".garaje"),
            "location": (".location", ".address", ".ubicacion", ".barrio"),
            "imageUrl": (".property-card__image img", ".property-card__photo img", "img"),
            "link": ('a[href*="/inmueble/"]', ".property-card__content a", "a"),
        },
        patterns={
            "priceText": PRICE_PATTERNS,
            "admin_fee": ADMIN_FEE_PATTERNS,
            "stratum": STRATUM_PATTERNS,
            "areaText": AREA_PATTERNS,
            "roomsText": ROOM_PATTERNS,
            "bathroomsText": BATHROOM_PATTERNS,
            "parkingText": PARKING_PATTERNS,
            "title": (re.compile(r"en arriendo,\s*([^,]+)", re.IGNORECASE),),
        },
        next_page=NEXT_PAGE_SELECTORS,
    ),
    output=standard_output(
        BASE_URL,
        field_mappings={
            "priceText": "price",
            "areaText": "area",
            "roomsText": "rooms",
            "bathroomsText": "bathrooms",
            "parkingText": "parking",
            "imageUrl": "images",
        },
    ),
    performance=PerformanceLimits(
        requests_per_minute=25,
        delay_between_requests=2.5,
        max_concurrent_requests=2,
        timeout=60.0,
        max_pages=4,
    ),
)
