import asyncio
import time

import httpx
import pytest

from spotfinder.services.availability.availability_api import (
    AvailabilityAPI,
    availability_color,
    availability_percentage,
    parse_availability_payload,
)
from spotfinder.services.errors import UpstreamFeedError


def _payload(*records):
    return {"items": [{"timestamp": "2024-01-01T10:00:00+08:00", "carpark_data": list(records)}]}


def _record(number, total, available, lot_type="C", extra_info=()):
    return {
        "carpark_number": number,
        "update_datetime": "2024-01-01T09:59:00",
        "carpark_info": [
            {"total_lots": str(total), "lot_type": lot_type, "lots_available": str(available)},
            *extra_info,
        ],
    }


def _api_with(handler, **kwargs):
    return AvailabilityAPI(transport=httpx.MockTransport(handler), **kwargs)


# ═══════════════════════════════════════════════════════════════════════════════
# Pure helpers
# ═══════════════════════════════════════════════════════════════════════════════

class TestAvailabilityPercentage:

    def test_rounds_half_up(self):
        # 1/8 = 12.5% -> 13
        assert availability_percentage(1, 8) == 13
        assert availability_percentage(36, 105) == 34

    def test_zero_total_is_zero(self):
        assert availability_percentage(5, 0) == 0

    def test_clamped_to_range(self):
        assert availability_percentage(120, 100) == 100
        assert availability_percentage(-3, 100) == 0


class TestAvailabilityColor:

    @pytest.mark.parametrize("pct, color", [
        (100, "#4CAF50"),
        (30, "#4CAF50"),
        (29, "#FF9800"),
        (10, "#FF9800"),
        (9, "#F44336"),
        (1, "#F44336"),
        (0, "#757575"),
        (None, "#757575"),
    ])
    def test_thresholds(self, pct, color):
        assert availability_color(pct) == color


class TestParseAvailabilityPayload:

    def test_parses_records(self):
        snapshots = parse_availability_payload(_payload(_record("ACB", 105, 36), _record("BE3", 0, 0)))

        assert set(snapshots) == {"ACB", "BE3"}
        acb = snapshots["ACB"]
        assert acb.total_lots == 105
        assert acb.lots_available == 36
        assert acb.lot_type == "C"
        assert acb.update_datetime == "2024-01-01T09:59:00"
        assert acb.availability_percentage == 34
        assert snapshots["BE3"].availability_percentage == 0

    def test_uses_first_lot_type_only(self):
        motorcycle = {"total_lots": "40", "lot_type": "Y", "lots_available": "40"}
        snapshots = parse_availability_payload(_payload(_record("ACB", 100, 20, extra_info=[motorcycle])))

        assert snapshots["ACB"].lot_type == "C"
        assert snapshots["ACB"].total_lots == 100

    def test_skips_malformed_records(self):
        broken = {"carpark_number": "BAD", "carpark_info": [{"total_lots": "x", "lots_available": "1"}]}
        empty_info = {"carpark_number": "NOINFO", "carpark_info": []}
        snapshots = parse_availability_payload(_payload(_record("ACB", 10, 5), broken, empty_info))

        assert list(snapshots) == ["ACB"]

    def test_skips_records_with_mistyped_fields(self):
        bad_lot_type = _record("BAD", 10, 5, lot_type=7)
        bad_timestamp = {**_record("TS", 10, 5), "update_datetime": ["2024"]}
        snapshots = parse_availability_payload(_payload(_record("ACB", 10, 5), bad_lot_type, bad_timestamp))

        assert list(snapshots) == ["ACB"]

    @pytest.mark.parametrize("payload", [
        {},
        {"items": []},
        {"items": [{}]},
        {"items": [{"carpark_data": "nope"}]},
        None,
    ])
    def test_rejects_unexpected_shapes(self, payload):
        with pytest.raises(UpstreamFeedError):
            parse_availability_payload(payload)

    def test_serialises_with_camel_case_keys(self):
        snapshot = parse_availability_payload(_payload(_record("ACB", 10, 5)))["ACB"]
        dumped = snapshot.model_dump(by_alias=True)
        assert dumped["carparkNumber"] == "ACB"
        assert dumped["lotsAvailable"] == 5
        assert dumped["availabilityPercentage"] == 50


# ═══════════════════════════════════════════════════════════════════════════════
# HTTP client
# ═══════════════════════════════════════════════════════════════════════════════

class TestAvailabilityAPI:

    def test_init_sets_headers_and_timeout(self):
        api = AvailabilityAPI(timeout=7)

        assert api.timeout == 7
        assert api.client.headers["Accept"] == "application/json"
        assert "User-Agent" in api.client.headers
        assert "X-Api-Key" not in api.client.headers
        assert api.client.timeout.read == 7
        asyncio.run(api.close())

    def test_api_key_header(self):
        api = AvailabilityAPI(api_key="secret")
        assert api.client.headers["X-Api-Key"] == "secret"
        asyncio.run(api.close())

    def test_fetch_availability_requests_feed_url(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=_payload(_record("ACB", 100, 50)))

        async def scenario():
            async with _api_with(handler, url="https://feed.test/availability") as api:
                return await api.fetch_availability()

        snapshots = asyncio.run(scenario())

        assert len(seen) == 1
        assert str(seen[0].url) == "https://feed.test/availability"
        assert seen[0].method == "GET"
        assert snapshots["ACB"].availability_percentage == 50

    def test_http_error_becomes_upstream_error(self):
        api = _api_with(lambda request: httpx.Response(503, text="down"))
        with pytest.raises(UpstreamFeedError):
            asyncio.run(api.fetch_availability())

    def test_transport_error_becomes_upstream_error(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        api = _api_with(handler)
        with pytest.raises(UpstreamFeedError):
            asyncio.run(api.fetch_availability())

    def test_non_json_body_becomes_upstream_error(self):
        api = _api_with(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(UpstreamFeedError):
            asyncio.run(api.fetch_availability())

    def test_bad_shape_becomes_upstream_error(self):
        api = _api_with(lambda request: httpx.Response(200, json={"items": []}))
        with pytest.raises(UpstreamFeedError, match="Invalid API response format"):
            asyncio.run(api.fetch_availability())

    def test_slow_body_is_cut_at_overall_timeout(self):
        async def trickle():
            for _ in range(20):
                yield b" "
                await asyncio.sleep(0.4)

        async def handler(request):
            return httpx.Response(200, content=trickle())

        async def scenario():
            async with _api_with(handler, timeout=1.0) as api:
                return await api.fetch_availability()

        started = time.monotonic()
        with pytest.raises(UpstreamFeedError, match="timed out"):
            asyncio.run(scenario())

        assert time.monotonic() - started < 2.5
