"""PADS (pads.com.co).

Some PADS listings give the area in square feet; values too large to be
square meters are converted.
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
from ..transforms import parse_area
from .common import NEXT_PAGE_SELECTORS, STANDARD_PATTERNS, standard_output

BASE_URL = "https://pads.com.co"

SQFT_TO_M2 = 0.092903
# Larger "areas" are taken to be square feet
MAX_PLAUSIBLE_M2 = 500


def build_url(filters: dict[str, Any]) -> tuple[str, dict[str, str]]:
    if filters["operation"] == "arriendo":
        listing = "inmuebles-en-arriendo"
    else:
        listing = "inmuebles-en-venta"
    return f"{BASE_URL}/{listing}", {}


def parse_pads_area(value: Any) -> float:
    area = parse_area(value)
    if area > MAX_PLAUSIBLE_M2:
        return float(round(area * SQFT_TO_M2))
    return area


PADS = SourceSchema(
    id="pads",
    name="PADS",
    base_url=BASE_URL,
    input=InputMapping(
        url_builder=build_url,
        supported_filters=frozenset({"operation"}),
    ),
    extraction=ExtractionConfig(
        method=ExtractionMethod.BROWSER,
        card_selector=".listings-grid",
        selectors={
            "title": (".property-title", ".listing-title", ".apartment-title", "h3", "h4"),
            "price": (".price", ".rent", ".precio", ".listing-price", '[class*="price"]'),
            "area": (".area", ".sqft", ".superficie", ".size"),
            "rooms": (".rooms", ".bedrooms", ".habitaciones", ".bed"),
            "bathrooms": (".bathrooms", ".bath", ".banos"),
            "parking": (".parking", ".garage", ".parqueadero"),
            "location": (".location", ".address", ".ubicacion", ".neighborhood"),
            "images": (".property-image img", ".listing-image img", "img"),
            "link": ('a[href*="/propiedades/"]', "a"),
        },
        patterns={
            **STANDARD_PATTERNS,
            "price": (re.compile(r"COP\s*([\d.,]+)", re.IGNORECASE),) + STANDARD_PATTERNS["price"],
            "rooms": (re.compile(r"(\d+)\s*Alc\.", re.IGNORECASE),) + STANDARD_PATTERNS["rooms"],
            "parking": (
                re.compile(r"Parq\.\s*(\d+)", re.IGNORECASE),
            ) + STANDARD_PATTERNS["parking"],
        },
        next_page=NEXT_PAGE_SELECTORS,
    ),
    output=standard_output(
        BASE_URL,
        transformations={"area": parse_pads_area},
    ),
    performance=PerformanceLimits(
        requests_per_minute=15,
        delay_between_requests=4.0,
        max_concurrent_requests=1,
        timeout=60.0,
        max_pages=2,
    ),
)
