"""
Service wiring

Builds the long-lived collaborators (database engine, cache client, feed
client) from AppSettings and owns their lifecycle. The FastAPI lifespan opens
one Services instance at startup and closes it at shutdown.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from spotfinder.services.availability.availability_api import AvailabilityAPI
from spotfinder.services.availability.availability_cache import AvailabilityCache
from spotfinder.services.cache.cache_client import CacheClient, create_cache_client
from spotfinder.services.carparks.carpark_repository import CarparkRepository
from spotfinder.services.carparks.carpark_service import CarparkService
from spotfinder.services.carparks.enrichment import EnrichmentPipeline
from spotfinder.services.database.database import create_engine_for, create_session_factory
from spotfinder.services.database.init_db import init_db
from spotfinder.services.settings.app_settings import AppSettings


logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: AppSettings
    engine: AsyncEngine
    session_factory: async_sessionmaker
    cache: CacheClient
    availability_api: AvailabilityAPI
    availability: AvailabilityCache
    repository: CarparkRepository
    carparks: CarparkService

    async def close(self) -> None:
        await self.availability_api.close()
        await self.cache.close()
        await self.engine.dispose()
        logger.info("Services closed")


async def open_services(
    settings: AppSettings,
    cache: Optional[CacheClient] = None,
    feed_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Services:
    """
    Create and open every collaborator described by the settings.

    Args:
        settings: Application settings
        cache: Use this cache client instead of one built from settings.cache_url
        feed_transport: Optional httpx transport for the availability feed

    Returns:
        Opened Services
    """
    engine = create_engine_for(settings.database_url)
    await init_db(engine)
    session_factory = create_session_factory(engine)

    cache = cache or create_cache_client(settings.cache_url)
    await cache.open()

    api = AvailabilityAPI(
        url=settings.availability_api_url,
        api_key=settings.availability_api_key,
        timeout=settings.availability_timeout,
        transport=feed_transport,
    )
    availability = AvailabilityCache(cache, api, ttl=settings.availability_cache_ttl)
    repository = CarparkRepository(session_factory)
    service = CarparkService(repository, EnrichmentPipeline(availability))

    logger.info("Services opened (cache: %s)", type(cache).__name__)
    return Services(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        cache=cache,
        availability_api=api,
        availability=availability,
        repository=repository,
        carparks=service,
    )
