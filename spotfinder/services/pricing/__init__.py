"""
Pricing Package

Central Area classification and the zone-based parking fee schedule.
"""

from .central_area import CENTRAL_AREA_POLYGON, is_central_area, is_point_in_polygon
from .pricing_calculator import (
    CENTRAL_PRICING,
    NON_CENTRAL_PRICING,
    PricingRule,
    calculate_fee,
    charges_description,
    pricing_for_zone,
)

__all__ = [
    "CENTRAL_AREA_POLYGON",
    "is_central_area",
    "is_point_in_polygon",
    "CENTRAL_PRICING",
    "NON_CENTRAL_PRICING",
    "PricingRule",
    "calculate_fee",
    "charges_description",
    "pricing_for_zone",
]
