"""
Availability enrichment

Overlays live lot counts from the availability cache onto carparks read from
the store. The overlay is applied to copies and never written back; if it
fails, the carparks are returned exactly as they came in.
"""

import logging
from typing import List

from spotfinder.services.availability.availability_api import availability_color
from spotfinder.services.availability.availability_cache import AvailabilityCache
from spotfinder.services.carparks.schemas import Carpark
from spotfinder.services.errors import EnrichmentError


logger = logging.getLogger(__name__)


class EnrichmentPipeline:
    def __init__(self, availability: AvailabilityCache):
        self.availability = availability

    async def enrich(self, carparks: List[Carpark]) -> List[Carpark]:
        """
        Overlay live availability onto carparks.

        Args:
            carparks: Carparks from the store

        Returns:
            A list of the same length and order; matched carparks are copies
            carrying the live totalLots, availableLots, lotType and
            availabilityPercentage
        """
        try:
            return await self.overlay(carparks)
        except EnrichmentError:
            logger.exception("Error enriching carparks with availability")
            return carparks

    async def overlay(self, carparks: List[Carpark]) -> List[Carpark]:
        """
        Apply the live counts, without the fallback of `enrich`.

        Raises:
            EnrichmentError: If the availability lookup or the copy fails
        """
        try:
            external_ids = {c.external_id for c in carparks if c.external_id}
            if not external_ids:
                return carparks

            snapshots = await self.availability.get_by_ids(external_ids)

            enriched = []
            for carpark in carparks:
                snapshot = snapshots.get(carpark.external_id) if carpark.external_id else None
                if snapshot is None:
                    enriched.append(carpark)
                    continue
                enriched.append(carpark.model_copy(update={
                    "total_lots": snapshot.total_lots,
                    "available_lots": snapshot.lots_available,
                    "lot_type": snapshot.lot_type,
                    "availability_percentage": snapshot.availability_percentage,
                    "availability_color": availability_color(snapshot.availability_percentage),
                }))
            return enriched
        except Exception as exc:
            raise EnrichmentError(f"Could not overlay live availability: {exc}") from exc
