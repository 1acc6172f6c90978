import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable

from app.core.config import Settings, settings
from app.core.exceptions import ValidationError
from app.core.metrics import quotes_by_tier
from app.core.response_builders import build_fare_quote
from app.schemas.fare import FareQuote
from app.services.maps import MapsClient
from app.services.pricing import select_tier
from app.services.region_cache import get_cached_regions, set_cached_regions

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FareService:
    """Prices a single trip between two addresses.

    The two region lookups and the distance lookup run concurrently; the
    service waits for all three and then validates each, so the caller sees
    the most specific error. A failed route always wins over a failed region
    lookup.
    """

    def __init__(
        self,
        maps: MapsClient,
        clock: Callable[[], datetime] = utc_now,
        config: Settings = settings,
    ):
        self.maps = maps
        self.clock = clock
        self.config = config

    async def resolve_regions(self, address: str) -> frozenset:
        cached = await get_cached_regions(address)
        if cached is not None:
            return cached
        tags = await self.maps.geocode_regions(address)
        await set_cached_regions(address, tags)
        return tags

    async def calculate(self, start: str | None, destination: str | None) -> FareQuote:
        start = (start or "").strip()
        destination = (destination or "").strip()
        if not start or not destination:
            raise ValidationError()

        start_tags, destination_tags, measurement = await asyncio.gather(
            self.resolve_regions(start),
            self.resolve_regions(destination),
            self.maps.distance_matrix(start, destination),
            return_exceptions=True,
        )

        for outcome in (measurement, start_tags, destination_tags):
            if isinstance(outcome, BaseException):
                raise outcome

        requested_at = self.clock()
        tier = select_tier(start_tags, destination_tags, requested_at, self.config)
        quote = build_fare_quote(start, destination, tier, measurement, requested_at, self.config)

        quotes_by_tier.labels(tier=str(tier)).inc()
        logger.info(
            f"Quoted {quote.estimated_fare} ({tier} tier) for "
            f"{start!r} -> {destination!r}, {quote.distance}"
        )
        return quote
