"""MercadoLibre real estate (inmuebles.mercadolibre.com.co).

Area, rooms, bathrooms and parking share one attributes line per card, so
they are read with patterns over the card text rather than selectors.
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
from .common import STANDARD_PATTERNS, city_slug, standard_output, type_slug

BASE_URL = "https://inmuebles.mercadolibre.com.co"


def build_url(filters: dict[str, Any]) -> tuple[str, dict[str, str]]:
    url = f"{BASE_URL}/{type_slug(filters)}s/{filters['operation']}/{city_slug(filters)}/"
    return url, {}


MERCADOLIBRE = SourceSchema(
    id="mercadolibre",
    name="MercadoLibre",
    base_url=BASE_URL,
    input=InputMapping(
        url_builder=build_url,
        supported_filters=frozenset({"operation", "property_types", "city"}),
        supports_url_filtering=False,
    ),
    extraction=ExtractionConfig(
        method=ExtractionMethod.BROWSER,
        card_selector=".ui-search-layout__item, .ui-search-result__wrapper",
        selectors={
            "title": (
                ".ui-search-item__title",
                ".ui-search-item-title",
                ".ui-search-result__content-wrapper h2",
                "h2",
                '[class*="title"]',
            ),
            "price": (".andes-money-amount__fraction", ".ui-search-price__part", ".price-tag"),
            "location": (".ui-search-item__location", ".item-location", '[class*="location"]'),
            "images": (".ui-search-result-image img", ".ui-search-item__image img", "img"),
            "link": ("a.ui-search-link", 'a[href*="/MCO-"]', "a"),
        },
        patterns={
            **STANDARD_PATTERNS,
            "area": (
                re.compile(r"(\d{1,4})\s*m[²2]\s*cubiertos", re.IGNORECASE),
                re.compile(r"(\d{1,4})\s*m[²2]", re.IGNORECASE),
            ),
            "rooms": (re.compile(r"(\d)\s*hab(?:itaci[oó]n)?(?:es)?", re.IGNORECASE),),
            "bathrooms": (re.compile(r"(\d)\s*baños?", re.IGNORECASE),),
            "parking": (re.compile(r"(\d)\s*(?:parqueadero|garaje)s?", re.IGNORECASE),),
        },
        next_page=(
            ".andes-pagination__button--next",
            ".ui-search-pagination__button--next",
            '[aria-label*="Siguiente"]',
        ),
        id_attributes=("data-id", "data-item-id"),
    ),
    output=standard_output(BASE_URL),
    performance=PerformanceLimits(
        requests_per_minute=20,
        delay_between_requests=3.0,
        max_concurrent_requests=1,
        timeout=70.0,
        max_pages=3,
    ),
)
