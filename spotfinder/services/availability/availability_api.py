"""
Carpark Availability API Client

Async wrapper for the data.gov.sg carpark availability feed, which publishes
live lot counts for HDB carparks keyed by carpark number.

API Documentation: https://data.gov.sg/datasets/d_ca933a644e55d34fe21f28b8052fac63/view

Response shape (only the parts consumed here):

    {"items": [{"timestamp": "...",
                "carpark_data": [{"carpark_number": "ACB",
                                  "update_datetime": "...",
                                  "carpark_info": [{"total_lots": "105",
                                                    "lot_type": "C",
                                                    "lots_available": "36"}]}]}]}
"""

import asyncio
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from spotfinder.services.errors import UpstreamFeedError


logger = logging.getLogger(__name__)


class AvailabilitySnapshot(BaseModel):
    """Live lot counts for one carpark, as last reported by the feed."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    carpark_number: str
    total_lots: int = Field(..., ge=0)
    lots_available: int
    lot_type: Optional[str] = None
    update_datetime: Optional[str] = None
    availability_percentage: int = Field(..., ge=0, le=100)


def availability_percentage(lots_available: int, total_lots: int) -> int:
    """
    Share of free lots as a whole percentage, rounded half-up.

    Returns 0 when the carpark reports no lots. Feeds occasionally report more
    free lots than total lots; the result is clamped to 0..100.
    """
    if total_lots <= 0:
        return 0
    pct = (Decimal(lots_available) * 100 / Decimal(total_lots)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return max(0, min(100, int(pct)))


def availability_color(percentage: Optional[int]) -> str:
    """Map an availability percentage to the map marker colour."""
    if percentage is None:
        return "#757575"
    if percentage >= 30:
        return "#4CAF50"  # good
    if percentage >= 10:
        return "#FF9800"  # limited
    if percentage > 0:
        return "#F44336"  # very limited
    return "#757575"  # none or no data


def parse_availability_payload(payload: Any) -> Dict[str, AvailabilitySnapshot]:
    """
    Convert a raw feed payload into snapshots keyed by carpark number.

    Only the first timestamped batch is read, and only the first lot-type
    entry of each carpark is used even when a carpark lists several.

    Args:
        payload: Decoded JSON body of the feed

    Returns:
        Dict of carpark number -> AvailabilitySnapshot

    Raises:
        UpstreamFeedError: If the payload does not have the expected shape
    """
    try:
        carpark_data = payload["items"][0]["carpark_data"]
    except (KeyError, IndexError, TypeError) as exc:
        raise UpstreamFeedError("Invalid API response format") from exc
    if not isinstance(carpark_data, list):
        raise UpstreamFeedError("Invalid API response format: carpark_data is not a list")

    snapshots: Dict[str, AvailabilitySnapshot] = {}
    for record in carpark_data:
        # ValidationError is a ValueError: mistyped lot_type/update_datetime skip the record too
        try:
            number = str(record["carpark_number"])
            info = record["carpark_info"][0]
            total_lots = int(info["total_lots"])
            lots_available = int(info["lots_available"])
            snapshot = AvailabilitySnapshot(
                carpark_number=number,
                total_lots=max(0, total_lots),
                lots_available=lots_available,
                lot_type=info.get("lot_type"),
                update_datetime=record.get("update_datetime"),
                availability_percentage=availability_percentage(lots_available, total_lots),
            )
        except (KeyError, IndexError, TypeError, AttributeError, ValueError):
            logger.debug("Skipping malformed availability record: %r", record)
            continue

        snapshots[number] = snapshot

    return snapshots


class AvailabilityAPI:
    """Client for the live carpark availability feed."""

    DEFAULT_URL = "https://api.data.gov.sg/v1/transport/carpark-availability"

    def __init__(
        self,
        url: str = DEFAULT_URL,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the availability API client.

        Args:
            url: Feed endpoint
            api_key: Optional key, sent as the X-Api-Key header
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.url = url
        self.timeout = timeout
        headers = {
            "Accept": "application/json",
            "User-Agent": "SpotFinder/1.0",
        }
        if api_key:
            headers["X-Api-Key"] = api_key
        self.client = httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport)

    async def _get(self, params: Optional[Dict] = None) -> Any:
        """
        Make a GET request to the feed.

        Raises:
            httpx.HTTPError: On transport errors, timeouts and non-2xx responses
        """
        response = await self.client.get(self.url, params=params)
        response.raise_for_status()
        return response.json()

    async def fetch_snapshot_payload(self) -> Any:
        """Fetch the raw feed body."""
        return await self._get()

    async def fetch_availability(self) -> Dict[str, AvailabilitySnapshot]:
        """
        Fetch and parse the current feed.

        Returns:
            Dict of carpark number -> AvailabilitySnapshot

        The timeout bounds the whole call, not just each connect/read step,
        so a feed that trickles its body still fails after `timeout` seconds.

        Raises:
            UpstreamFeedError: If the feed cannot be reached or parsed in time
        """
        try:
            payload = await asyncio.wait_for(self.fetch_snapshot_payload(), self.timeout)
        except asyncio.TimeoutError as exc:
            raise UpstreamFeedError(f"Availability feed timed out after {self.timeout}s") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamFeedError(f"Availability feed request failed: {exc}") from exc

        snapshots = parse_availability_payload(payload)
        logger.info("Fetched availability for %d carparks", len(snapshots))
        return snapshots

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
