"""
Carpark Service

Coordinates the repository (store reads) and the enrichment pipeline (live
availability overlay). Enrichment always runs after the rows are fetched.
"""

import logging
import math
from typing import Dict, List

from spotfinder.services.carparks.carpark_repository import CarparkRepository
from spotfinder.services.carparks.enrichment import EnrichmentPipeline
from spotfinder.services.carparks.schemas import (
    AutocompleteItem,
    Carpark,
    CarparkStats,
    NearbyQuery,
    SearchQuery,
)
from spotfinder.services.errors import NotFoundError


logger = logging.getLogger(__name__)


class CarparkService:
    def __init__(self, repository: CarparkRepository, enrichment: EnrichmentPipeline):
        self.repository = repository
        self.enrichment = enrichment

    async def get_nearby(self, params: NearbyQuery) -> List[Carpark]:
        logger.info("Fetching nearby carparks for lat: %s, lng: %s", params.lat, params.lng)
        carparks = await self.repository.get_nearby(params)
        return await self.enrichment.enrich(carparks)

    async def search(self, params: SearchQuery) -> Dict:
        """
        Search and enrich one page of carparks.

        Availability sorting uses the stored counts; the live overlay is
        applied to the page afterwards and does not reorder it.

        Returns:
            Dict with 'carparks', 'total', 'page' and 'pages'
        """
        result = await self.repository.search(params)
        carparks = await self.enrichment.enrich(result.carparks)
        return {
            "carparks": carparks,
            "total": result.total,
            "page": params.offset // params.limit + 1,
            "pages": math.ceil(result.total / params.limit),
        }

    async def get_by_id(self, carpark_id: str) -> Carpark:
        carpark = await self.repository.get_by_id(carpark_id)
        if carpark is None:
            raise NotFoundError("Carpark not found")
        return carpark

    async def get_stats(self) -> CarparkStats:
        return await self.repository.get_stats()

    async def autocomplete(self, query: str, limit: int = 10) -> List[AutocompleteItem]:
        return await self.repository.autocomplete(query, limit)
