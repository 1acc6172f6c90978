"""Fare form controller.

Holds the state behind the fare form: the two address fields, the last
quote or error, and the route shown on the map. The route is resolved in
a background task after the quote arrives so the fare is never held back
by the map.
"""
import asyncio
import logging
from typing import Optional, Protocol

import httpx

from app.client.api_client import FareApiClient, FareApiError
from app.core.config import settings
from app.core.enums import FormState
from app.schemas.fare import Coordinates, FareQuote
from app.services.maps import MapsClient

logger = logging.getLogger(__name__)

EMPTY_FIELDS_MESSAGE = "Please enter both start and destination addresses"
FALLBACK_ERROR_MESSAGE = "Failed to calculate fare. Please try again with a UK address."


class FareApi(Protocol):
    async def calculate_fare(self, start: str, destination: str) -> FareQuote: ...


class MapServices(Protocol):
    async def geocode_coordinates(self, address: str) -> Coordinates: ...

    async def directions(self, origin: Coordinates, destination: Coordinates) -> dict: ...


def mentions_national_region(start: str, destination: str, region: str = settings.NATIONAL_REGION_TAG) -> bool:
    """Display hint for the booking call-to-action.

    A plain substring match on the typed addresses. It is deliberately
    independent of the server's tier decision, which works on geocoded
    region tags.
    """
    region = region.lower()
    return region in start.lower() or region in destination.lower()


class FareForm:

    def __init__(self, fare_api: Optional[FareApi] = None, map_services: Optional[MapServices] = None):
        self._owned_clients: list = []
        if fare_api is None:
            fare_api = FareApiClient(self._new_client())
        if map_services is None:
            map_services = MapsClient(self._new_client())
        self.fare_api = fare_api
        self.map_services = map_services

        self.start = ""
        self.destination = ""
        self.state = FormState.IDLE
        self.quote: Optional[FareQuote] = None
        self.error: Optional[str] = None
        self.show_book_now = False

        self.coordinates: dict = {"start": None, "destination": None}
        self.directions: Optional[dict] = None
        self._route_task: Optional[asyncio.Task] = None

    def _new_client(self) -> httpx.AsyncClient:
        client = httpx.AsyncClient(timeout=settings.PROVIDER_TIMEOUT)
        self._owned_clients.append(client)
        return client

    async def aclose(self):
        for client in self._owned_clients:
            await client.aclose()
        self._owned_clients.clear()

    @property
    def loading(self) -> bool:
        return self.state == FormState.SUBMITTING

    def set_start(self, value: str):
        self.start = value
        self.error = None

    def set_destination(self, value: str):
        self.destination = value
        self.error = None

    async def handle_key(self, key: str):
        if key == "Enter":
            await self.submit()

    async def submit(self):
        if not self.start.strip() or not self.destination.strip():
            self.error = EMPTY_FIELDS_MESSAGE
            self.state = FormState.SHOWING_ERROR
            return

        self.state = FormState.SUBMITTING
        self.error = None
        start, destination = self.start, self.destination

        try:
            self.quote = await self.fare_api.calculate_fare(start, destination)
            self.state = FormState.SHOWING_RESULT
            self._route_task = asyncio.create_task(self._resolve_route(start, destination))
        except FareApiError as e:
            logger.error(f"Fare calculation failed: {e}")
            self.error = e.message or FALLBACK_ERROR_MESSAGE
            self.state = FormState.SHOWING_ERROR
        finally:
            self.show_book_now = mentions_national_region(start, destination)

    async def wait_for_route(self):
        if self._route_task is not None:
            await self._route_task

    async def _resolve_route(self, start: str, destination: str):
        try:
            start_coords = await self.map_services.geocode_coordinates(start)
            destination_coords = await self.map_services.geocode_coordinates(destination)
            self.coordinates = {"start": start_coords, "destination": destination_coords}
            self.directions = await self.map_services.directions(start_coords, destination_coords)
        except Exception as e:
            # The map is best-effort; the fare stays on screen.
            logger.error(f"Failed to resolve route for map: {e}")
