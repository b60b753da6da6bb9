"""Canonical property, scoring and search result data models."""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field


class Operation(str, Enum):
    """Listing operation. Values follow the portals' own URL vocabulary."""

    RENT = "arriendo"
    SALE = "venta"


class SortKey(str, Enum):
    """Caller-selectable result orderings."""

    SCORE = "score"  # highest score first
    PRICE = "price"  # cheapest first
    ROOMS = "rooms"  # most rooms first
    AREA = "area"  # largest first


class SourceStatus(str, Enum):
    """Outcome of one source task within a search."""

    OK = "ok"
    FAILED = "failed"
    TIMEOUT = "timeout"
    SKIPPED = "skipped"


class Coordinates(BaseModel):
    """Geographic point in decimal degrees."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    model_config = {"frozen": True}


class PropertyLocation(BaseModel):
    """Where a listing is, as far as the source tells us."""

    address: str = Field(default="", description="Full free-text location")
    neighborhood: str = Field(default="", description="Barrio")
    zone: str = Field(default="", description="Zone or sub-area, when given")
    city: str = Field(default="", description="City name")
    coordinates: Optional[Coordinates] = None

    model_config = {"frozen": True, "str_strip_whitespace": True}


class CanonicalProperty(BaseModel):
    """Normalized, source-independent listing.

    Instances are created once per scrape-and-normalize cycle and never
    mutated afterwards. ``total_price`` is price plus admin fee unless the
    source reported a combined figure.
    """

    # Identification
    id: str = Field(..., description="Stable id: '<source>-<source local id>'")
    source: str = Field(..., description="Source identifier (fincaraiz, pads, ...)")
    title: str

    # Pricing (COP)
    price: int = Field(..., ge=0, description="Base rent or sale price")
    admin_fee: int = Field(default=0, ge=0, description="Monthly administration fee")
    total_price: int = Field(..., ge=0, description="Price the tenant/buyer actually pays")

    # Property details
    area: float = Field(default=0, ge=0, description="Built area in m2, 0 when unknown")
    rooms: int = Field(default=0, ge=0)
    bathrooms: int = Field(default=0, ge=0)
    parking: int = Field(default=0, ge=0)
    stratum: int = Field(default=0, ge=0, le=6, description="Estrato 1-6, 0 when unknown")
    property_type: str = Field(default="Apartamento")

    location: PropertyLocation = Field(default_factory=PropertyLocation)
    amenities: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    url: str = Field(default="", description="Canonical listing URL")
    description: str = ""

    scraped_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_active: bool = True

    @computed_field  # type: ignore[prop-decorator]
    @property
    def price_per_m2(self) -> int:
        """Price per square meter, rounded half up; 0 when area is unknown."""
        if self.area <= 0:
            return 0
        return math.floor(self.price / self.area + 0.5)

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }


class ScoredProperty(BaseModel):
    """A listing with its evaluation against one SearchCriteria."""

    listing: CanonicalProperty
    score: float = Field(default=0.0, ge=0)
    hard_match: bool = False
    preference_matches: list[str] = Field(default_factory=list)
    failed_requirement: Optional[str] = Field(
        default=None, description="First violated hard requirement, if any"
    )


class SourceReport(BaseModel):
    """Per-source line of a search's breakdown."""

    source: str
    status: SourceStatus = SourceStatus.OK
    count: int = Field(default=0, ge=0, description="Hard matches contributed to total")
    raw_records: int = Field(default=0, ge=0)
    error: Optional[str] = None
    elapsed_ms: int = 0


class SearchDiagnostics(BaseModel):
    """Counters explaining where candidate listings were lost."""

    raw_records: int = 0
    extraction_skips: int = 0
    normalization_rejects: int = 0
    hard_filter_rejects: int = 0
    duplicates_removed: int = 0


class PriceBucket(BaseModel):
    label: str
    count: int
    percentage: int


class SearchSummary(BaseModel):
    """Aggregate statistics over every hard match (not only the page)."""

    average_price: int = 0
    average_price_per_m2: int = 0
    average_area: int = 0
    neighborhood_breakdown: dict[str, int] = Field(default_factory=dict)
    price_distribution: list[PriceBucket] = Field(default_factory=list)


class SearchResult(BaseModel):
    """One page of ranked results plus aggregate counts."""

    properties: list[CanonicalProperty] = Field(default_factory=list)
    scores: dict[str, float] = Field(
        default_factory=dict, description="Listing id -> score for the returned page"
    )
    total: int = Field(default=0, ge=0, description="Hard matches before pagination")
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1)
    source_breakdown: dict[str, SourceReport] = Field(default_factory=dict)
    execution_time_ms: int = 0
    diagnostics: SearchDiagnostics = Field(default_factory=SearchDiagnostics)
    summary: SearchSummary = Field(default_factory=SearchSummary)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed_sources(self) -> list[str]:
        """Sources that contributed nothing because they failed or timed out."""
        return [
            name
            for name, report in self.source_breakdown.items()
            if report.status in (SourceStatus.FAILED, SourceStatus.TIMEOUT)
        ]
