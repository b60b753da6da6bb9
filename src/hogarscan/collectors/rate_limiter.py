"""Per-source request throttling.

Each source gets its own throttle: a minimum delay between consecutive
permits, a ceiling on permits outstanding at once, and a trailing one-minute
request budget. One source being throttled never delays another.

Example usage:
    limiter = RateLimiter()
    limiter.register("fincaraiz", schema.performance)

    async with limiter.permit("fincaraiz"):
        response = await client.get(url)
"""

import asyncio
import logging
import time
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

from .schema import PerformanceLimits

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60.0


@dataclass
class Permit:
    """Proof that a request may be issued for ``source_id``."""

    source_id: str
    issued_at: float  # time.monotonic() when granted
    released: bool = field(default=False, compare=False)


class _SourceThrottle:
    """Mutable state of one source. Only touched while holding ``condition``."""

    def __init__(self, limits: PerformanceLimits):
        self.limits = limits
        self.outstanding = 0
        self.last_issued: Optional[float] = None
        self.history: deque[float] = deque()
        self.total_issued = 0
        self._condition: Optional[asyncio.Condition] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def condition(self) -> asyncio.Condition:
        # A condition belongs to one event loop; rebuild it when a new loop
        # (a new asyncio.run) starts using the limiter.
        loop = asyncio.get_running_loop()
        if self._condition is None or self._loop is not loop:
            self._condition = asyncio.Condition()
            self._loop = loop
        return self._condition

    def has_slot(self) -> bool:
        return self.outstanding < self.limits.max_concurrent_requests

    def wait_time(self, now: float) -> float:
        """Seconds until the pacing and per-minute rules allow a new permit."""
        while self.history and now - self.history[0] >= WINDOW_SECONDS:
            self.history.popleft()

        wait = 0.0
        if self.last_issued is not None:
            wait = self.last_issued + self.limits.delay_between_requests - now
        if len(self.history) >= self.limits.requests_per_minute:
            wait = max(wait, self.history[0] + WINDOW_SECONDS - now)
        return wait

    def issue(self, source_id: str, now: float) -> Permit:
        self.outstanding += 1
        self.last_issued = now
        self.history.append(now)
        self.total_issued += 1
        return Permit(source_id=source_id, issued_at=now)


class RateLimiter:
    """Throttles requests independently per source id.

    Args:
        default_limits: Limits applied to sources that were never registered.
    """

    def __init__(self, default_limits: Optional[PerformanceLimits] = None):
        self.default_limits = default_limits or PerformanceLimits()
        self._throttles: dict[str, _SourceThrottle] = {}

    def register(self, source_id: str, limits: PerformanceLimits) -> None:
        """Install (or replace) the limits for one source."""
        throttle = self._throttles.get(source_id)
        if throttle is None:
            self._throttles[source_id] = _SourceThrottle(limits)
        else:
            throttle.limits = limits
        logger.debug(
            f"Rate limits for {source_id}: {limits.requests_per_minute}/min, "
            f"{limits.delay_between_requests}s delay, "
            f"{limits.max_concurrent_requests} concurrent"
        )

    def limits(self, source_id: str) -> PerformanceLimits:
        return self._throttle(source_id).limits

    def _throttle(self, source_id: str) -> _SourceThrottle:
        throttle = self._throttles.get(source_id)
        if throttle is None:
            throttle = _SourceThrottle(self.default_limits)
            self._throttles[source_id] = throttle
        return throttle

    async def acquire(self, source_id: str) -> Permit:
        """Wait until ``source_id`` may issue another request.

        Suspends until a concurrency slot is free, the inter-request delay
        since the previous permit has elapsed, and the one-minute budget has
        room. Pair every call with ``release``; prefer ``permit()``.
        """
        throttle = self._throttle(source_id)
        condition = throttle.condition()
        async with condition:
            while True:
                await condition.wait_for(throttle.has_slot)
                wait = throttle.wait_time(time.monotonic())
                if wait <= 0:
                    break
                logger.debug(f"Throttling {source_id} for {wait:.2f}s")
                try:
                    # Woken early by a release; the loop re-checks everything
                    await asyncio.wait_for(condition.wait(), timeout=wait)
                except asyncio.TimeoutError:
                    pass
            return throttle.issue(source_id, time.monotonic())

    async def release(self, permit: Permit) -> None:
        """Return the concurrency slot held by ``permit``.

        The pacing timer is not reset. Releasing a permit twice is a no-op.
        """
        if permit.released:
            return
        permit.released = True
        throttle = self._throttle(permit.source_id)
        throttle.outstanding = max(0, throttle.outstanding - 1)
        condition = throttle.condition()
        async with condition:
            condition.notify_all()

    @asynccontextmanager
    async def permit(self, source_id: str) -> AsyncIterator[Permit]:
        """Hold a permit for the body of an ``async with`` block.

        The slot is returned on every exit path, including exceptions and
        cancellation.
        """
        granted = await self.acquire(source_id)
        try:
            yield granted
        finally:
            await self.release(granted)

    def stats(self, source_id: str) -> dict[str, float]:
        """Current counters for one source."""
        throttle = self._throttle(source_id)
        now = time.monotonic()
        recent = sum(1 for t in throttle.history if now - t < WINDOW_SECONDS)
        return {
            "outstanding": throttle.outstanding,
            "requests_last_minute": recent,
            "total_issued": throttle.total_issued,
            "max_concurrent_requests": throttle.limits.max_concurrent_requests,
            "requests_per_minute": throttle.limits.requests_per_minute,
        }
