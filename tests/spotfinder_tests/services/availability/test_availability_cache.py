import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

from spotfinder.services.availability.availability_api import AvailabilitySnapshot
from spotfinder.services.availability.availability_cache import AvailabilityCache
from spotfinder.services.cache.cache_client import MemoryCacheClient
from spotfinder.services.errors import UpstreamFeedError


def _snapshot(number, total=100, available=40):
    return AvailabilitySnapshot(
        carpark_number=number,
        total_lots=total,
        lots_available=available,
        lot_type="C",
        availability_percentage=round(available * 100 / total) if total else 0,
    )


def _make_api(snapshots=None, error=None):
    api = MagicMock()
    if error is not None:
        api.fetch_availability = AsyncMock(side_effect=error)
    else:
        api.fetch_availability = AsyncMock(return_value=snapshots or {})
    return api


class TestGetAll:

    def test_miss_fetches_and_writes_with_ttl(self):
        cache = MemoryCacheClient()
        cache.set = AsyncMock(wraps=cache.set)
        api = _make_api({"ACB": _snapshot("ACB")})
        availability = AvailabilityCache(cache, api, ttl=120)

        result = asyncio.run(availability.get_all())

        assert set(result) == {"ACB"}
        api.fetch_availability.assert_awaited_once()
        cache.set.assert_awaited_once()
        key, payload = cache.set.call_args.args
        assert key == AvailabilityCache.CACHE_KEY
        assert cache.set.call_args.kwargs["ttl"] == 120
        assert json.loads(payload)["ACB"]["lotsAvailable"] == 40

    def test_hit_does_not_call_feed(self):
        cache = MemoryCacheClient()
        api = _make_api({"ACB": _snapshot("ACB")})
        availability = AvailabilityCache(cache, api)

        async def scenario():
            first = await availability.get_all()
            second = await availability.get_all()
            return first, second

        first, second = asyncio.run(scenario())

        assert first == second
        api.fetch_availability.assert_awaited_once()

    def test_expired_entry_refetches(self):
        now = [0.0]
        cache = MemoryCacheClient(clock=lambda: now[0])
        api = _make_api({"ACB": _snapshot("ACB")})
        availability = AvailabilityCache(cache, api, ttl=300)

        asyncio.run(availability.get_all())
        now[0] = 301.0
        asyncio.run(availability.get_all())

        assert api.fetch_availability.await_count == 2

    def test_feed_failure_returns_empty_and_does_not_cache(self):
        cache = MemoryCacheClient()
        api = _make_api(error=UpstreamFeedError("down"))
        availability = AvailabilityCache(cache, api)

        assert asyncio.run(availability.get_all()) == {}
        assert asyncio.run(cache.exists(AvailabilityCache.CACHE_KEY)) is False

    def test_unexpected_failure_returns_empty(self):
        api = _make_api(error=RuntimeError("boom"))
        availability = AvailabilityCache(MemoryCacheClient(), api)
        assert asyncio.run(availability.get_all()) == {}

    def test_empty_feed_is_not_cached(self):
        cache = MemoryCacheClient()
        availability = AvailabilityCache(cache, _make_api({}))

        assert asyncio.run(availability.get_all()) == {}
        assert asyncio.run(cache.exists(AvailabilityCache.CACHE_KEY)) is False

    def test_cache_read_error_falls_back_to_feed(self):
        cache = MemoryCacheClient()
        cache.get = AsyncMock(side_effect=ConnectionError("redis down"))
        api = _make_api({"ACB": _snapshot("ACB")})

        result = asyncio.run(AvailabilityCache(cache, api).get_all())

        assert set(result) == {"ACB"}

    def test_corrupt_cache_entry_is_ignored(self):
        cache = MemoryCacheClient()
        asyncio.run(cache.set(AvailabilityCache.CACHE_KEY, "not json"))
        api = _make_api({"ACB": _snapshot("ACB")})

        result = asyncio.run(AvailabilityCache(cache, api).get_all())

        assert set(result) == {"ACB"}
        api.fetch_availability.assert_awaited_once()


class TestGetByIdsAndClear:

    def test_get_by_ids_filters(self):
        api = _make_api({"ACB": _snapshot("ACB"), "BE3": _snapshot("BE3")})
        availability = AvailabilityCache(MemoryCacheClient(), api)

        result = asyncio.run(availability.get_by_ids(["ACB", "XYZ"]))

        assert list(result) == ["ACB"]

    def test_clear_forces_refetch(self):
        cache = MemoryCacheClient()
        api = _make_api({"ACB": _snapshot("ACB")})
        availability = AvailabilityCache(cache, api)

        async def scenario():
            await availability.get_all()
            await availability.clear()
            await availability.get_all()

        asyncio.run(scenario())
        assert api.fetch_availability.await_count == 2
