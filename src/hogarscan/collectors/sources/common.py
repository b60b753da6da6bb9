"""Building blocks shared by the per-portal schemas."""

import re
from typing import Any, Mapping, Optional

from ..schema import OutputMapping, Transform
from ..transforms import (
    absolute_url,
    absolute_urls,
    first_int,
    first_text,
    fold,
    parse_area,
    parse_price,
    split_amenities,
)

_FLAGS = re.IGNORECASE

PRICE_PATTERNS = (
    re.compile(r"\$\s*[\d.,]+"),
    re.compile(r"([\d.,]+)\s*pesos", _FLAGS),
    re.compile(r"precio[:\s]*\$?\s*([\d.,]+)", _FLAGS),
)
ADMIN_FEE_PATTERNS = (
    re.compile(r"(?:administraci[oó]n|admin\.?|admon\.?)[:\s]*\+?\s*\$?\s*([\d.,]+)", _FLAGS),
)
AREA_PATTERNS = (
    re.compile(r"(\d+(?:[.,]\d+)?)\s*m[²2]", _FLAGS),
    re.compile(r"(\d+)\s*metros", _FLAGS),
    re.compile(r"[áa]rea[:\s]*(\d+)", _FLAGS),
)
ROOM_PATTERNS = (
    re.compile(r"(\d+)\s*(?:hab|habitaci[oó]n|habitaciones|alcoba|dormitorio)s?", _FLAGS),
    re.compile(r"habitaciones[:\s]*(\d+)", _FLAGS),
)
BATHROOM_PATTERNS = (
    re.compile(r"(\d+)\s*(?:baño|baños|bano|banos|bathroom)s?", _FLAGS),
    re.compile(r"baños[:\s]*(\d+)", _FLAGS),
)
PARKING_PATTERNS = (
    re.compile(r"(\d+)\s*(?:parqueadero|garaje|parking)s?", _FLAGS),
    re.compile(r"(?:parqueaderos|garajes)[:\s]*(\d+)", _FLAGS),
)
STRATUM_PATTERNS = (re.compile(r"estrato[:\s]*([1-6])", _FLAGS),)

STANDARD_PATTERNS = {
    "price": PRICE_PATTERNS,
    "admin_fee": ADMIN_FEE_PATTERNS,
    "area": AREA_PATTERNS,
    "rooms": ROOM_PATTERNS,
    "bathrooms": BATHROOM_PATTERNS,
    "parking": PARKING_PATTERNS,
    "stratum": STRATUM_PATTERNS,
}

NEXT_PAGE_SELECTORS = (
    ".pagination .next",
    '[aria-label="Next"]',
    ".siguiente",
    '[aria-label*="siguiente"]',
    ".pager .next",
)

# Raw key -> canonical key. Keys not listed keep their name.
STANDARD_FIELD_MAPPINGS = {
    "location": "address",
    "link": "url",
}

STANDARD_DEFAULTS = {
    "property_type": "Apartamento",
    "city": "Bogotá",
    "amenities": [],
}


def standard_transformations(base_url: str) -> dict[str, Transform]:
    """Canonical key -> parser used by every portal unless overridden."""
    return {
        "title": first_text,
        "price": parse_price,
        "admin_fee": parse_price,
        "total_price": parse_price,
        "area": parse_area,
        "rooms": first_int,
        "bathrooms": first_int,
        "parking": first_int,
        "stratum": first_int,
        "amenities": split_amenities,
        "url": absolute_url(base_url),
        "images": absolute_urls(base_url),
    }


def standard_output(
    base_url: str,
    field_mappings: Optional[Mapping[str, str]] = None,
    transformations: Optional[Mapping[str, Transform]] = None,
    defaults: Optional[Mapping[str, Any]] = None,
) -> OutputMapping:
    """OutputMapping with the shared tables plus per-portal overrides."""
    return OutputMapping(
        field_mappings={**STANDARD_FIELD_MAPPINGS, **(field_mappings or {})},
        transformations={
            **standard_transformations(base_url),
            **(transformations or {}),
        },
        defaults={**STANDARD_DEFAULTS, **(defaults or {})},
    )


def slugify(text: str) -> str:
    """Lowercase ASCII slug, e.g. "Bogotá D.C." -> "bogota-dc"."""
    folded = re.sub(r"[^a-z0-9\s-]", "", fold(text))
    return re.sub(r"[\s-]+", "-", folded).strip("-")


def city_slug(filters: Mapping[str, Any], default: str = "bogota") -> str:
    city = filters.get("city")
    return slugify(city) if city else default


def type_slug(filters: Mapping[str, Any], default: str = "apartamento") -> str:
    """Slug of the first requested property type."""
    types = filters.get("property_types") or []
    return slugify(types[0]) if types else default


def number(value: float) -> str:
    """Render a filter bound the way portals expect (3.0 -> "3")."""
    return str(int(value)) if float(value).is_integer() else str(value)
