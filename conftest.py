import pytest
import httpx
from datetime import datetime
from zoneinfo import ZoneInfo
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.api.fares import get_fare_service
from app.core.config import settings
from app.core.exceptions import RegionResolutionError
from app.schemas.fare import Coordinates, DistanceMeasurement
from app.services.fare import FareService


class FakeMapsClient:
    """In-memory stand-in for the maps provider.

    ``regions`` maps an address to its tag set; a missing address fails the
    way the provider does. ``route`` is either a measurement or an exception
    to raise.
    """

    def __init__(self, regions=None, route=None):
        self.regions = regions or {}
        self.route = route if route is not None else DistanceMeasurement(
            distance_meters=16093.4, duration_seconds=900
        )
        self.calls = []

    async def geocode_regions(self, address):
        self.calls.append(("geocode", address))
        if address not in self.regions:
            raise RegionResolutionError(address)
        return frozenset(self.regions[address])

    async def distance_matrix(self, start, destination):
        self.calls.append(("distance_matrix", start, destination))
        if isinstance(self.route, Exception):
            raise self.route
        return self.route

    async def geocode_coordinates(self, address):
        self.calls.append(("coordinates", address))
        return Coordinates(lat=56.2, lng=-3.1)

    async def directions(self, origin, destination):
        self.calls.append(("directions", origin, destination))
        return {"summary": "A92", "legs": []}


def uk_time(hour, minute=0, month=10):
    return datetime(2026, month, 19, hour, minute, tzinfo=ZoneInfo("Europe/London"))


@pytest.fixture
def fake_maps():
    return FakeMapsClient(regions={
        "Kirkcaldy, Fife": {"kirkcaldy", "fife", "scotland", "united kingdom"},
        "St Andrews, Fife": {"st andrews", "fife", "scotland", "united kingdom"},
        "Edinburgh": {"edinburgh", "scotland", "united kingdom"},
        "London": {"london", "england", "united kingdom"},
        "Manchester": {"manchester", "england", "united kingdom"},
    })


@pytest.fixture
def fixed_clock():
    return lambda: uk_time(9)


@pytest.fixture
def fare_service(fake_maps, fixed_clock):
    return FareService(fake_maps, clock=fixed_clock)


@pytest.fixture
async def test_client(fare_service):
    app.dependency_overrides[get_fare_service] = lambda: fare_service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def provider_factory():
    """Build a real MapsClient whose HTTP traffic goes to ``handler``."""
    from app.services.maps import MapsClient

    def _build(handler):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return MapsClient(client)

    return _build


@pytest.fixture
def app_settings():
    """Return application settings"""
    return settings


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "pricing: marks tests related to pricing"
    )
    config.addinivalue_line(
        "markers", "provider: marks tests related to the maps provider"
    )
    config.addinivalue_line(
        "markers", "client: marks tests related to the fare form"
    )
