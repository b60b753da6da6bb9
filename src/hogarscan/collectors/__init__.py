"""Listing collection framework.

Every portal is described by a declarative SourceSchema and scraped by the
same schema-driven adapter, under a shared per-source rate limiter.

Main Components:
    - SourceAdapter: Abstract base class for all listing sources
    - SchemaSourceAdapter: httpx/BeautifulSoup adapter driven by a SourceSchema
    - RateLimiter: Per-source pacing and concurrency control
    - SOURCE_SCHEMAS: Registry of supported portals

Example usage:
    from hogarscan.collectors import RateLimiter, SchemaSourceAdapter, SOURCE_SCHEMAS

    limiter = RateLimiter()
    adapter = SchemaSourceAdapter(SOURCE_SCHEMAS["ciencuadras"], rate_limiter=limiter)
    records = await adapter.scrape(criteria)
"""

from .adapter import SchemaSourceAdapter
from .base import (
    CaptchaError,
    RateLimitError,
    RawRecord,
    ScrapeResult,
    SourceAdapter,
    SourceFetchError,
    SourceTimeoutError,
)
from .extraction import ExtractionResult, extract_listings
from .rate_limiter import Permit, RateLimiter
from .schema import (
    ExtractionConfig,
    ExtractionMethod,
    InputMapping,
    OutputMapping,
    PerformanceLimits,
    SourceSchema,
)
from .sources import SOURCE_SCHEMAS, get_schema

__all__ = [
    "CaptchaError",
    "ExtractionConfig",
    "ExtractionMethod",
    "ExtractionResult",
    "InputMapping",
    "OutputMapping",
    "PerformanceLimits",
    "Permit",
    "RateLimitError",
    "RateLimiter",
    "RawRecord",
    "SOURCE_SCHEMAS",
    "ScrapeResult",
    "SchemaSourceAdapter",
    "SourceAdapter",
    "SourceFetchError",
    "SourceSchema",
    "SourceTimeoutError",
    "extract_listings",
    "get_schema",
]
