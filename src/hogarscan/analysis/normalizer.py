"""Raw record -> CanonicalProperty conversion.

The normalizer is generic: field renames, per-field parsers and defaults all
come from the record's SourceSchema. Records that cannot yield a usable
listing are rejected (``None``) and counted, never raised.
"""

import hashlib
import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from ..collectors.base import RawRecord
from ..collectors.extraction import SOURCE_ID_KEY
from ..collectors.schema import SourceSchema
from ..collectors.transforms import (
    absolute_url,
    absolute_urls,
    digits_only,
    first_int,
    first_text,
    fold,
    parse_area,
    split_amenities,
)
from ..models.property import CanonicalProperty, Coordinates, PropertyLocation

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 5

# Folded prefix -> display name, for picking the city out of a location string
KNOWN_CITIES = {
    "bogota": "Bogotá",
    "medellin": "Medellín",
    "cali": "Cali",
    "barranquilla": "Barranquilla",
    "cartagena": "Cartagena",
    "bucaramanga": "Bucaramanga",
    "pereira": "Pereira",
    "manizales": "Manizales",
    "chia": "Chía",
    "cajica": "Cajicá",
    "soacha": "Soacha",
    "zipaquira": "Zipaquirá",
}

# Parsers used when the schema does not name one for the field
BUILTIN_COERCIONS: dict[str, Callable[[Any], Any]] = {
    "price": digits_only,
    "admin_fee": digits_only,
    "total_price": digits_only,
    "area": parse_area,
    "rooms": first_int,
    "bathrooms": first_int,
    "parking": first_int,
    "stratum": first_int,
    "amenities": split_amenities,
}

_URL_ID_RE = re.compile(r"\d{5,}")


def parse_location(text: str) -> tuple[str, str, str]:
    """Split free-text location into (address, neighborhood, zone).

    "Usaquén, Santa Bárbara, Bogotá" -> (full string, "Usaquén", "Santa Bárbara").
    Without a comma the whole string is both address and neighborhood.
    """
    address = first_text(text)
    if not address:
        return "", "", ""
    segments = [s.strip() for s in address.split(",")]
    if len(segments) == 1:
        return address, address, ""
    return address, segments[0], segments[1]


def find_city(address: str) -> Optional[str]:
    """Known city named by one of the comma-separated location segments."""
    for segment in address.split(","):
        folded = fold(segment)
        for prefix, name in KNOWN_CITIES.items():
            if folded == prefix or folded.startswith(prefix + " "):
                return name
    return None


def listing_id(source: str, local_id: str, url: str, title: str) -> str:
    """Stable '<source>-<local id>' identifier.

    The local id is the portal's own id when the card exposed one, else the
    last long number in the listing URL, else a short hash of url and title.
    """
    if not local_id:
        numbers = _URL_ID_RE.findall(url)
        if numbers:
            local_id = numbers[-1]
    if not local_id:
        local_id = hashlib.md5(f"{url}|{title}".encode("utf-8")).hexdigest()[:12]
    return f"{source}-{local_id}"


class PropertyNormalizer:
    """Turn raw records into CanonicalProperty instances.

    Example:
        normalizer = PropertyNormalizer()
        listings = [
            p for p in (normalizer.normalize(r, schema) for r in records) if p
        ]
        print(normalizer.rejected)

    Args:
        scraped_at: Timestamp stamped on every listing (defaults to now, UTC,
                    taken once per normalizer so one search shares it)
    """

    def __init__(self, scraped_at: Optional[datetime] = None):
        self.scraped_at = scraped_at or datetime.now(timezone.utc)
        self.rejected = 0

    def _reject(self, schema: SourceSchema, reason: str) -> None:
        self.rejected += 1
        logger.debug(f"Rejected {schema.id} record: {reason}")

    @staticmethod
    def _rename(raw: RawRecord, schema: SourceSchema) -> dict[str, Any]:
        """Apply ``field_mappings``. A non-empty value wins over an empty one."""
        mapped: dict[str, Any] = {}
        for key, value in raw.items():
            canonical = schema.output.field_mappings.get(key, key)
            if canonical in mapped and not value:
                continue
            mapped[canonical] = value
        return mapped

    @staticmethod
    def _transform(
        schema: SourceSchema, name: str, fallback: Callable[[Any], Any] = first_text
    ) -> Callable[[Any], Any]:
        return (
            schema.output.transformations.get(name)
            or BUILTIN_COERCIONS.get(name)
            or fallback
        )

    def _field(self, mapped: dict[str, Any], schema: SourceSchema, name: str) -> Any:
        """Parsed value of one canonical field, or its default."""
        if mapped.get(name):
            return self._transform(schema, name)(mapped[name])
        defaults = schema.output.defaults
        if name in defaults:
            return list(defaults[name]) if isinstance(defaults[name], list) else defaults[name]
        return self._transform(schema, name)(None)

    @staticmethod
    def _coordinates(mapped: dict[str, Any]) -> Optional[Coordinates]:
        lat, lng = first_text(mapped.get("lat")), first_text(mapped.get("lng"))
        if not lat or not lng:
            return None
        try:
            point = Coordinates(lat=float(lat), lng=float(lng))
        except ValueError:
            return None
        # Portals put 0,0 for "unknown"
        if point.lat == 0 and point.lng == 0:
            return None
        return point

    def normalize(self, raw: RawRecord, schema: SourceSchema) -> Optional[CanonicalProperty]:
        """Build a CanonicalProperty from one raw record.

        Returns None (and counts a reject) when the trimmed title is shorter
        than five characters or the record cannot be coerced.
        """
        mapped = self._rename(raw, schema)

        title = first_text(mapped.get("title"))
        if len(title) < MIN_TITLE_LENGTH:
            self._reject(schema, f"title too short: {title!r}")
            return None

        try:
            price = int(self._field(mapped, schema, "price"))
            admin_fee = int(self._field(mapped, schema, "admin_fee"))
            combined = int(self._field(mapped, schema, "total_price"))
            total_price = combined if combined > 0 else price + admin_fee

            stratum = int(self._field(mapped, schema, "stratum"))
            if not 0 <= stratum <= 6:
                stratum = 0

            address, neighborhood, zone = parse_location(mapped.get("address", ""))
            if mapped.get("neighborhood"):
                neighborhood = first_text(mapped["neighborhood"])
            if mapped.get("zone"):
                zone = first_text(mapped["zone"])
            city = (
                first_text(mapped.get("city"))
                or find_city(address)
                or first_text(schema.output.defaults.get("city"))
            )

            url = self._transform(schema, "url", absolute_url(schema.base_url))(
                mapped.get("url")
            )
            images = self._transform(schema, "images", absolute_urls(schema.base_url))(
                mapped.get("images")
            )

            return CanonicalProperty(
                id=listing_id(schema.id, first_text(mapped.get(SOURCE_ID_KEY)), url, title),
                source=schema.id,
                title=title,
                price=price,
                admin_fee=admin_fee,
                total_price=total_price,
                area=float(self._field(mapped, schema, "area")),
                rooms=int(self._field(mapped, schema, "rooms")),
                bathrooms=int(self._field(mapped, schema, "bathrooms")),
                parking=int(self._field(mapped, schema, "parking")),
                stratum=stratum,
                property_type=self._field(mapped, schema, "property_type") or "Apartamento",
                location=PropertyLocation(
                    address=address,
                    neighborhood=neighborhood,
                    zone=zone,
                    city=city,
                    coordinates=self._coordinates(mapped),
                ),
                amenities=list(self._field(mapped, schema, "amenities") or []),
                images=images,
                url=url,
                description=first_text(mapped.get("description")),
                scraped_date=self.scraped_at,
            )
        except (TypeError, ValueError) as e:
            self._reject(schema, f"{title!r}: {e}")
            return None
