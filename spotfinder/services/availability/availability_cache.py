"""
Availability Cache

Read-through cache in front of the live availability feed. The whole feed is
stored under one key as a JSON object of carpark number -> snapshot.

Failure policy: any problem reaching or parsing the feed is logged and turned
into an empty result, so listings are served without live counts instead of
failing. Concurrent misses may each call the feed; the last write wins.
"""

import json
import logging
from typing import Dict, Iterable, Optional

from pydantic import ValidationError

from spotfinder.services.availability.availability_api import AvailabilityAPI, AvailabilitySnapshot
from spotfinder.services.cache.cache_client import CacheClient
from spotfinder.services.errors import UpstreamFeedError


logger = logging.getLogger(__name__)


class AvailabilityCache:
    CACHE_KEY = "carpark:availability:all"
    DEFAULT_TTL = 300

    def __init__(self, cache: CacheClient, api: AvailabilityAPI, ttl: int = DEFAULT_TTL):
        """
        Args:
            cache: Open cache client
            api: Feed client used on a cache miss
            ttl: Seconds a fetched snapshot stays cached
        """
        self.cache = cache
        self.api = api
        self.ttl = ttl

    async def _read_cached(self) -> Optional[Dict[str, AvailabilitySnapshot]]:
        try:
            raw = await self.cache.get(self.CACHE_KEY)
        except Exception:
            logger.exception("Availability cache read failed")
            return None
        if not raw:
            return None

        try:
            data = json.loads(raw)
            return {key: AvailabilitySnapshot.model_validate(value) for key, value in data.items()}
        except (ValueError, AttributeError, ValidationError):
            logger.warning("Discarding unreadable availability cache entry")
            return None

    async def _write_cached(self, snapshots: Dict[str, AvailabilitySnapshot]) -> None:
        payload = json.dumps({key: snap.model_dump(by_alias=True) for key, snap in snapshots.items()})
        try:
            await self.cache.set(self.CACHE_KEY, payload, ttl=self.ttl)
            logger.info("Cached availability data for %d carparks", len(snapshots))
        except Exception:
            logger.exception("Availability cache write failed")

    async def get_all(self) -> Dict[str, AvailabilitySnapshot]:
        """
        Get live availability for every carpark in the feed.

        Returns:
            Dict of external id -> AvailabilitySnapshot, empty if the feed is down
        """
        cached = await self._read_cached()
        if cached is not None:
            logger.info("Returning cached availability data")
            return cached

        try:
            snapshots = await self.api.fetch_availability()
        except UpstreamFeedError as exc:
            logger.error("Error getting carpark availability: %s", exc)
            return {}
        except Exception:
            logger.exception("Unexpected error getting carpark availability")
            return {}

        if snapshots:
            await self._write_cached(snapshots)
        return snapshots

    async def get_by_ids(self, ids: Iterable[str]) -> Dict[str, AvailabilitySnapshot]:
        """Subset of get_all() restricted to the given external ids."""
        everything = await self.get_all()
        return {key: everything[key] for key in set(ids) if key in everything}

    async def clear(self) -> None:
        """Evict the cached snapshot so the next read goes to the feed."""
        await self.cache.delete(self.CACHE_KEY)
        logger.info("Cleared availability cache")
