import asyncio
import httpx
import pytest

from app.core.exceptions import (
    ProviderError,
    RegionResolutionError,
    RouteNotFoundError,
    ValidationError,
)
from app.schemas.fare import DistanceMeasurement
from app.services.fare import FareService
from conftest import FakeMapsClient, uk_time


class TestFareService:

    @pytest.mark.asyncio
    async def test_standard_quote(self, fare_service):
        quote = await fare_service.calculate("London", "Manchester")

        assert quote.tier == 3
        assert quote.estimated_fare == "£27.50"
        assert quote.distance == "10.00 miles"
        assert quote.duration == "15.00 mins"
        assert quote.time_of_request == uk_time(9).isoformat()

    @pytest.mark.asyncio
    async def test_local_quote_in_daytime(self, fare_service):
        quote = await fare_service.calculate("Kirkcaldy, Fife", "St Andrews, Fife")

        assert quote.tier == 1
        assert quote.rate == "£2.50/mile"
        assert quote.estimated_fare == "£25.00"

    @pytest.mark.asyncio
    async def test_local_addresses_at_night_use_national_rate(self, fake_maps):
        service = FareService(fake_maps, clock=lambda: uk_time(23, 30))
        quote = await service.calculate("Kirkcaldy, Fife", "St Andrews, Fife")

        assert quote.tier == 2
        assert quote.estimated_fare == "£31.00"

    @pytest.mark.asyncio
    async def test_national_quote(self, fare_service):
        quote = await fare_service.calculate("Edinburgh", "London")

        assert quote.tier == 2
        assert quote.rate == "£3.10/mile"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start,destination", [
        ("", "London"),
        ("London", ""),
        ("   ", "London"),
        (None, "London"),
        (None, None),
    ])
    async def test_empty_address_never_calls_provider(self, fake_maps, start, destination):
        service = FareService(fake_maps)
        with pytest.raises(ValidationError):
            await service.calculate(start, destination)
        assert fake_maps.calls == []

    @pytest.mark.asyncio
    async def test_unknown_region(self, fare_service):
        with pytest.raises(RegionResolutionError) as exc:
            await fare_service.calculate("London", "Atlantis")
        assert "Atlantis" in exc.value.message

    @pytest.mark.asyncio
    async def test_route_not_found_wins_over_region_failure(self):
        maps = FakeMapsClient(regions={}, route=RouteNotFoundError())
        service = FareService(maps)

        with pytest.raises(RouteNotFoundError):
            await service.calculate("Nowhere", "Elsewhere")

    @pytest.mark.asyncio
    async def test_provider_error_propagates(self, fake_maps):
        fake_maps.route = ProviderError()
        service = FareService(fake_maps)

        with pytest.raises(ProviderError):
            await service.calculate("London", "Manchester")

    @pytest.mark.asyncio
    async def test_waits_for_every_lookup(self, fake_maps):
        finished = []

        class SlowMaps(FakeMapsClient):
            async def geocode_regions(self, address):
                await asyncio.sleep(0.01)
                finished.append(address)
                return await super().geocode_regions(address)

            async def distance_matrix(self, start, destination):
                raise RouteNotFoundError()

        maps = SlowMaps(regions=fake_maps.regions)
        with pytest.raises(RouteNotFoundError):
            await FareService(maps).calculate("London", "Manchester")
        assert sorted(finished) == ["London", "Manchester"]

    @pytest.mark.asyncio
    async def test_lookups_run_concurrently(self, fake_maps):
        started = []
        release = asyncio.Event()

        async def arrive(name):
            started.append(name)
            if len(started) == 3:
                release.set()
            await release.wait()

        class GatedMaps(FakeMapsClient):
            async def geocode_regions(self, address):
                await arrive(address)
                return await super().geocode_regions(address)

            async def distance_matrix(self, start, destination):
                await arrive("route")
                return DistanceMeasurement(distance_meters=1609.34, duration_seconds=60)

        maps = GatedMaps(regions=fake_maps.regions)
        quote = await asyncio.wait_for(FareService(maps).calculate("London", "Manchester"), 1)

        assert len(started) == 3
        assert quote.estimated_fare == "£2.75"

    @pytest.mark.asyncio
    async def test_addresses_are_trimmed(self, fare_service, fake_maps):
        quote = await fare_service.calculate("  London ", "Manchester\n")

        assert quote.start == "London"
        assert quote.destination == "Manchester"
        assert ("distance_matrix", "London", "Manchester") in fake_maps.calls


class TestFareServiceWithProvider:

    @staticmethod
    def geocode_payload(components):
        return {"status": "OK", "results": [{"address_components": components}]}

    @pytest.mark.asyncio
    async def test_untagged_destination_is_priced(self, provider_factory):
        geocodes = {
            "Perth, Scotland": [
                {"long_name": "Perth", "types": ["postal_town"]},
                {"long_name": "Scotland", "types": ["administrative_area_level_1", "political"]},
            ],
            "Somewhere": [
                {"long_name": "Somewhere Lane", "types": ["route"]},
            ],
        }

        def handler(request):
            if request.url.path.endswith("/geocode/json"):
                address = request.url.params["address"]
                return httpx.Response(200, json=self.geocode_payload(geocodes[address]))
            return httpx.Response(200, json={"status": "OK", "rows": [{"elements": [{
                "status": "OK",
                "distance": {"value": 16093.4},
                "duration": {"value": 900},
            }]}]})

        service = FareService(provider_factory(handler), clock=lambda: uk_time(3))
        quote = await service.calculate("Perth, Scotland", "Somewhere")

        assert quote.tier == 2
        assert quote.estimated_fare == "£31.00"

    @pytest.mark.asyncio
    async def test_untagged_addresses_use_standard_rate(self, provider_factory):
        def handler(request):
            if request.url.path.endswith("/geocode/json"):
                return httpx.Response(200, json=self.geocode_payload([
                    {"long_name": "Somewhere Lane", "types": ["route"]},
                ]))
            return httpx.Response(200, json={"status": "OK", "rows": [{"elements": [{
                "status": "OK",
                "distance": {"value": 16093.4},
                "duration": {"value": 900},
            }]}]})

        service = FareService(provider_factory(handler), clock=lambda: uk_time(12))
        quote = await service.calculate("Somewhere", "Elsewhere")

        assert quote.tier == 3
        assert quote.estimated_fare == "£27.50"


class TestRegionCache:

    class FakeRedis:
        def __init__(self):
            self.store = {}

        async def get(self, key):
            return self.store.get(key)

        async def set(self, key, value, ex=None):
            self.store[key] = value

    @pytest.mark.asyncio
    async def test_region_tags_are_cached(self, fake_maps, monkeypatch):
        fake_redis = self.FakeRedis()
        monkeypatch.setattr("app.services.region_cache.get_redis", lambda: fake_redis)
        service = FareService(fake_maps, clock=lambda: uk_time(9))

        await service.calculate("London", "Manchester")
        await service.calculate("london", "MANCHESTER")

        geocoded = [call[1] for call in fake_maps.calls if call[0] == "geocode"]
        assert geocoded == ["London", "Manchester"]
        assert len(fake_redis.store) == 2

    @pytest.mark.asyncio
    async def test_cache_failure_does_not_fail_quote(self, fake_maps, monkeypatch):
        class BrokenRedis:
            async def get(self, key):
                raise ConnectionError("redis down")

            async def set(self, key, value, ex=None):
                raise ConnectionError("redis down")

        monkeypatch.setattr("app.services.region_cache.get_redis", lambda: BrokenRedis())
        quote = await FareService(fake_maps).calculate("London", "Manchester")

        assert quote.tier == 3
