"""
Central Area Classification

Determines whether a coordinate lies inside Singapore's Central Area, the
high-price parking zone. The boundary is an approximate polygon following the
URA Central Area (Downtown Core, Marina South, Newton, Orchard, Outram,
River Valley, Rochor, Singapore River, Straits View).

Points exactly on the boundary get whatever the ray-casting test yields for
them. That result is deterministic but not meant to carry any product meaning.
"""

from typing import List, Sequence, Tuple


# (latitude, longitude) vertices, in boundary order
CENTRAL_AREA_POLYGON: List[Tuple[float, float]] = [
    (1.2900, 103.8200),  # Marina South
    (1.2800, 103.8600),  # East Coast Parkway
    (1.3000, 103.8700),  # Kallang
    (1.3200, 103.8650),  # Lavender
    (1.3300, 103.8500),  # Little India
    (1.3150, 103.8350),  # Newton
    (1.3050, 103.8200),  # Orchard
    (1.2850, 103.8150),  # Tiong Bahru
    (1.2750, 103.8250),  # Tanjong Pagar
    (1.2650, 103.8350),  # Marina Bay
    (1.2700, 103.8500),  # Marina East
    (1.2800, 103.8550),  # Gardens by the Bay
]


def is_point_in_polygon(
    latitude: float,
    longitude: float,
    polygon: Sequence[Tuple[float, float]],
) -> bool:
    """
    Ray-casting point-in-polygon test.

    The ray runs along the latitude axis; an edge toggles inclusion when it
    straddles the point's longitude and the point lies before the edge's
    crossing at that longitude.

    Args:
        latitude: Point latitude in decimal degrees
        longitude: Point longitude in decimal degrees
        polygon: Ordered (latitude, longitude) vertices

    Returns:
        True if the point is inside the polygon
    """
    inside = False
    x, y = latitude, longitude

    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i]
        xj, yj = polygon[j]

        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i

    return inside


def is_central_area(latitude: float, longitude: float) -> bool:
    """Return True if the coordinate falls inside the Central Area polygon."""
    return is_point_in_polygon(latitude, longitude, CENTRAL_AREA_POLYGON)
