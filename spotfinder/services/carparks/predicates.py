"""
Carpark filter predicates

Filters are assembled as a tuple of typed terms over a fixed set of fields
and only turned into SQL when a query is built. The count query and the data
query of a search are built from the same CarparkFilter, so they always
share one WHERE clause.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, List, Optional, Tuple

from sqlalchemy import case, func, or_
from sqlalchemy.sql.elements import ColumnElement

from spotfinder.services.database.models import Carpark


EARTH_RADIUS_KM = 6371


class FilterField(str, Enum):
    AVAILABLE_LOTS = "available_lots"
    PRICE = "price_per_hour"
    CARPARK_TYPE = "carpark_type"
    HAS_EV_CHARGER = "has_ev_charger"
    NIGHT_PARKING = "night_parking"


class Operator(str, Enum):
    EQ = "eq"
    GE = "ge"
    LE = "le"


_COLUMNS = {
    FilterField.AVAILABLE_LOTS: Carpark.available_lots,
    FilterField.PRICE: Carpark.price_per_hour,
    FilterField.CARPARK_TYPE: Carpark.carpark_type,
    FilterField.HAS_EV_CHARGER: Carpark.has_ev_charger,
    FilterField.NIGHT_PARKING: Carpark.night_parking,
}


def distance_km(lat: float, lng: float) -> ColumnElement:
    """
    Great-circle distance in km from (lat, lng) to each row, by the
    spherical law of cosines. The cosine sum is clamped to 1 so identical
    points do not fall outside acos' domain through rounding.
    """
    cosine = (
        func.cos(func.radians(lat)) * func.cos(func.radians(Carpark.latitude))
        * func.cos(func.radians(Carpark.longitude) - func.radians(lng))
        + func.sin(func.radians(lat)) * func.sin(func.radians(Carpark.latitude))
    )
    clamped = case((cosine > 1.0, 1.0), else_=cosine)
    return EARTH_RADIUS_KM * func.acos(clamped)


def text_match(text: str) -> ColumnElement:
    """Case-insensitive substring match on address or external id."""
    return or_(
        Carpark.address.icontains(text, autoescape=True),
        Carpark.external_id.icontains(text, autoescape=True),
    )


@dataclass(frozen=True)
class FilterTerm:
    field: FilterField
    op: Operator
    value: Any

    def to_clause(self) -> ColumnElement:
        column = _COLUMNS[self.field]
        if self.op is Operator.EQ:
            return column == self.value
        if self.op is Operator.GE:
            return column >= self.value
        return column <= self.value


@dataclass(frozen=True)
class CarparkFilter:
    """Immutable conjunction of filter terms, an optional radius and an optional text match."""

    terms: Tuple[FilterTerm, ...] = ()
    center: Optional[Tuple[float, float]] = None
    radius_m: Optional[float] = None
    text: Optional[str] = None

    def where(self, field_: FilterField, op: Operator, value: Any) -> "CarparkFilter":
        if value is None:
            return self
        return replace(self, terms=self.terms + (FilterTerm(field_, op, value),))

    def within(self, lat: float, lng: float, radius_m: float) -> "CarparkFilter":
        return replace(self, center=(lat, lng), radius_m=radius_m)

    def matching(self, text: Optional[str]) -> "CarparkFilter":
        return replace(self, text=text or None)

    def distance(self) -> Optional[ColumnElement]:
        if self.center is None:
            return None
        return distance_km(*self.center)

    def clauses(self) -> List[ColumnElement]:
        clauses: List[ColumnElement] = []
        if self.center is not None:
            clauses.append(self.distance() <= self.radius_m / 1000.0)
        if self.text:
            clauses.append(text_match(self.text))
        clauses.extend(term.to_clause() for term in self.terms)
        return clauses
