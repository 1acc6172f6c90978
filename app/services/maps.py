"""Async client for the Google Maps web services used to price a trip.

Three endpoints are consumed: Geocoding (region tags and coordinates for an
address), Distance Matrix (driving distance and duration for a pair) and
Directions (a driving route for the map).
"""
import logging
from typing import Optional

import httpx

from app.core.config import Settings, settings
from app.core.enums import ProviderStatus
from app.core.exceptions import ProviderError, RegionResolutionError, RouteNotFoundError
from app.core.metrics import track_provider_call
from app.schemas.fare import Coordinates, DistanceMeasurement

logger = logging.getLogger(__name__)

REGION_COMPONENT_TYPES = frozenset({
    "administrative_area_level_1",
    "administrative_area_level_2",
    "country",
    "locality",
    "postal_town",
})

PAYLOAD_ERRORS = (KeyError, IndexError, TypeError, ValueError)


def extract_region_tags(result: dict) -> frozenset:
    tags = set()
    for component in result.get("address_components", []):
        if REGION_COMPONENT_TYPES.intersection(component.get("types", [])):
            name = component.get("long_name", "").strip().lower()
            if name:
                tags.add(name)
    return frozenset(tags)


class MapsClient:

    def __init__(self, client: httpx.AsyncClient, config: Settings = settings):
        self.client = client
        self.config = config

    async def _get(self, url: str, params: dict) -> dict:
        params = {**params, "key": self.config.GOOGLE_MAPS_API_KEY}
        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            logger.error(f"Maps provider timed out calling {url}: {e}")
            raise ProviderError() from e
        except httpx.HTTPError as e:
            logger.error(f"Maps provider request to {url} failed: {e}")
            raise ProviderError() from e
        except ValueError as e:
            logger.error(f"Maps provider returned invalid JSON from {url}: {e}")
            raise ProviderError() from e

    async def _geocode(self, address: str) -> dict:
        data = await self._get(
            self.config.GEOCODE_URL,
            {"address": address, "region": self.config.PROVIDER_REGION},
        )
        status = data.get("status")
        if status == ProviderStatus.ZERO_RESULTS or (status == ProviderStatus.OK and not data.get("results")):
            raise RegionResolutionError(address)
        if status != ProviderStatus.OK:
            logger.error(f"Geocoding failed for {address!r} with status {status}: {data.get('error_message')}")
            raise ProviderError()
        return data["results"][0]

    @track_provider_call("geocode")
    async def geocode_regions(self, address: str) -> frozenset:
        result = await self._geocode(address)
        try:
            tags = extract_region_tags(result)
        except PAYLOAD_ERRORS as e:
            logger.error(f"Unexpected geocoding payload for {address!r}: {e}")
            raise ProviderError() from e
        logger.debug(f"Resolved {address!r} to regions {sorted(tags)}")
        return tags

    @track_provider_call("geocode")
    async def geocode_coordinates(self, address: str) -> Coordinates:
        result = await self._geocode(address)
        try:
            location = result["geometry"]["location"]
            return Coordinates(lat=location["lat"], lng=location["lng"])
        except PAYLOAD_ERRORS as e:
            logger.error(f"Unexpected geocoding payload for {address!r}: {e}")
            raise ProviderError() from e

    @track_provider_call("distance_matrix")
    async def distance_matrix(self, start: str, destination: str) -> DistanceMeasurement:
        data = await self._get(
            self.config.DISTANCE_MATRIX_URL,
            {
                "origins": start,
                "destinations": destination,
                "units": "imperial",
                "region": self.config.PROVIDER_REGION,
            },
        )
        status = data.get("status")
        if status != ProviderStatus.OK:
            logger.error(f"Distance matrix failed with status {status}: {data.get('error_message')}")
            raise ProviderError()
        try:
            element = data["rows"][0]["elements"][0]
            if element["status"] != ProviderStatus.OK:
                logger.info(f"No route from {start!r} to {destination!r}: {element['status']}")
                raise RouteNotFoundError()
            return DistanceMeasurement(
                distance_meters=element["distance"]["value"],
                duration_seconds=element["duration"]["value"],
            )
        except PAYLOAD_ERRORS as e:
            logger.error(f"Unexpected distance matrix payload: {e}")
            raise ProviderError() from e

    @track_provider_call("directions")
    async def directions(self, origin: Coordinates, destination: Coordinates) -> dict:
        data = await self._get(
            self.config.DIRECTIONS_URL,
            {
                "origin": f"{origin.lat},{origin.lng}",
                "destination": f"{destination.lat},{destination.lng}",
                "mode": "driving",
                "region": self.config.PROVIDER_REGION,
            },
        )
        status = data.get("status")
        if status in (ProviderStatus.ZERO_RESULTS, ProviderStatus.NOT_FOUND):
            raise RouteNotFoundError()
        if status != ProviderStatus.OK:
            logger.error(f"Directions failed with status {status}: {data.get('error_message')}")
            raise ProviderError()
        try:
            return data["routes"][0]
        except PAYLOAD_ERRORS as e:
            raise ProviderError() from e


maps_client: Optional[MapsClient] = None


async def init_maps_client() -> MapsClient:
    global maps_client
    maps_client = MapsClient(httpx.AsyncClient(timeout=settings.PROVIDER_TIMEOUT))
    if not settings.GOOGLE_MAPS_API_KEY:
        logger.warning("GOOGLE_MAPS_API_KEY is not set, provider calls will be rejected")
    return maps_client


async def close_maps_client():
    global maps_client
    if maps_client:
        await maps_client.client.aclose()
        maps_client = None


def get_maps_client() -> MapsClient:
    if maps_client is None:
        raise RuntimeError("Maps client not initialized. Call init_maps_client() first.")
    return maps_client
