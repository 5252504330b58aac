"""
Carparks Package

Carpark search and retrieval:
- Query engine over the carpark store (nearby, search, autocomplete)
- Live availability enrichment
- REST API router
"""

from .carpark_repository import CarparkRepository
from .carpark_service import CarparkService
from .enrichment import EnrichmentPipeline
from .predicates import CarparkFilter, FilterField, Operator, distance_km
from .schemas import AutocompleteItem, Carpark, CarparkStats, NearbyQuery, SearchQuery, SearchResult

__all__ = [
    "AutocompleteItem",
    "Carpark",
    "CarparkFilter",
    "CarparkRepository",
    "CarparkService",
    "CarparkStats",
    "EnrichmentPipeline",
    "FilterField",
    "NearbyQuery",
    "Operator",
    "SearchQuery",
    "SearchResult",
    "distance_km",
]
