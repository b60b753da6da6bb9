"""Abstract base class for listing sources.

This module defines the SourceAdapter abstract base class that every listing
portal must implement. The orchestrator treats all sources alike: it calls
``collect`` concurrently on each one and merges whatever comes back.

Example usage:
    class MySource(SourceAdapter):
        async def scrape(self, criteria, page=1):
            # Fetch and extract raw records here
            return [{"title": "Apartamento en Usaquén", "price": "$2.500.000"}]
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Union

from ..models.criteria import SearchCriteria
from .rate_limiter import RateLimiter
from .schema import SourceSchema

# Untyped field -> text (or list of texts) mapping for one listing, before
# any type coercion. Owned by the adapter that produced it.
RawRecord = dict[str, Union[str, list[str]]]


@dataclass
class ScrapeResult:
    """Records gathered by one scrape call.

    Filled page by page, so a caller that cancels the call still holds the
    records of every page that finished. Each call gets its own instance.
    """

    records: list[RawRecord] = field(default_factory=list)
    extraction_skips: int = 0
    pages: int = 0


class SourceAdapter(ABC):
    """Abstract base class for listing sources.

    Attributes:
        schema: Static configuration of the portal (selectors, field mapping,
                rate limits). Its ``id`` is the stable source identifier used
                for rate limiting, result breakdowns and ``CanonicalProperty.source``.
        rate_limiter: Limiter the adapter's requests run under, if any

    The contract works as follows:
    1. ``scrape`` builds a portal-specific query from the natively filterable
       part of the criteria
    2. Every request it issues runs under a rate-limit permit for its own id
    3. Malformed listings are skipped, never raised
    4. Network and timeout failures raise SourceFetchError / SourceTimeoutError
    """

    schema: SourceSchema
    rate_limiter: Optional[RateLimiter] = None

    @property
    def name(self) -> str:
        return self.schema.id

    @property
    def deadline(self) -> float:
        """Seconds one ``collect`` call may take before it is cancelled."""
        return self.schema.performance.timeout

    def use_rate_limiter(self, limiter: RateLimiter) -> None:
        """Run every later request under ``limiter`` with this schema's limits."""
        self.rate_limiter = limiter
        limiter.register(self.name, self.schema.performance)

    async def collect(
        self,
        criteria: SearchCriteria,
        page: int = 1,
        result: Optional[ScrapeResult] = None,
    ) -> ScrapeResult:
        """Scrape into ``result`` (a new one if omitted) and return it.

        The default stores ``scrape``'s records once it returns. Adapters that
        crawl several pages override this to append each page as it arrives.
        """
        if result is None:
            result = ScrapeResult()
        records = await self.scrape(criteria, page)
        result.records.extend(records)
        result.pages += 1
        return result

    @abstractmethod
    async def scrape(self, criteria: SearchCriteria, page: int = 1) -> list[RawRecord]:
        """Fetch raw listing records starting at ``page``.

        Args:
            criteria: The search being executed
            page: First result page to fetch (1-indexed)

        Returns:
            Raw records in the order the portal listed them

        Raises:
            SourceFetchError: If the portal is unreachable or answers with an error
            SourceTimeoutError: If a request exceeds the schema timeout
        """
        pass

    def is_available(self) -> bool:
        """Whether the source should take part in searches."""
        return self.schema.active

    async def close(self) -> None:
        """Release any resources held between scrapes."""
        return None


class SourceFetchError(Exception):
    """Base exception for source-level failures.

    Attributes:
        source: Id of the source that failed
        message: Error description
    """

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"[{source}] {message}")


class SourceTimeoutError(SourceFetchError):
    """Raised when a source exceeds its configured timeout."""

    def __init__(self, source: str, timeout: Optional[float] = None):
        self.timeout = timeout
        message = "Timed out"
        if timeout:
            message += f" after {timeout:g}s"
        super().__init__(source, message)


class RateLimitError(SourceFetchError):
    """Raised when a portal keeps answering 429 after retries."""

    def __init__(self, source: str, retry_after: Optional[int] = None):
        self.retry_after = retry_after
        message = "Rate limit exceeded"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(source, message)


class CaptchaError(SourceFetchError):
    """Raised when a CAPTCHA challenge is encountered."""

    def __init__(self, source: str):
        super().__init__(source, "CAPTCHA challenge detected - cannot proceed")
