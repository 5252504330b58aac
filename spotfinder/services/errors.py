"""
Error taxonomy for the carpark service.

Enrichment-side failures (feed, overlay) are absorbed where they happen.
Retrieval-side failures (store) and lookups that miss are raised to the
HTTP layer, which maps them to status codes.
"""


class SpotFinderError(Exception):
    """Base class for all service errors."""
    pass


class QueryValidationError(SpotFinderError, ValueError):
    """Raised when request parameters are malformed or out of range."""
    pass


class UpstreamFeedError(SpotFinderError):
    """Raised when the live availability feed is unreachable or returns bad data."""
    pass


class EnrichmentError(SpotFinderError):
    """Raised when overlaying live availability onto carparks fails."""
    pass


class StoreError(SpotFinderError):
    """Raised when the carpark store cannot be queried."""
    pass


class NotFoundError(SpotFinderError):
    """Raised when a requested carpark does not exist."""
    pass
