from .availability_api import (
    AvailabilityAPI,
    AvailabilitySnapshot,
    availability_color,
    availability_percentage,
    parse_availability_payload,
)
from .availability_cache import AvailabilityCache

__all__ = [
    "AvailabilityAPI",
    "AvailabilitySnapshot",
    "AvailabilityCache",
    "availability_color",
    "availability_percentage",
    "parse_availability_payload",
]
