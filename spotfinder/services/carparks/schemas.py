"""
Schemas for carpark queries and responses (Pydantic)

Query models carry the parameter bounds the HTTP layer enforces, so the
repository only ever sees validated values. Response models serialise to
camelCase JSON.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from spotfinder.services.errors import QueryValidationError


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Carpark(CamelModel):
    """A carpark as returned by the API."""

    id: str
    external_id: Optional[str] = None
    address: str = ""
    latitude: float
    longitude: float

    total_lots: int = 0
    available_lots: int = 0
    lot_type: Optional[str] = None

    carpark_type: Optional[str] = None
    parking_system: Optional[str] = None
    short_term_parking: Optional[str] = None
    free_parking: Optional[str] = None
    night_parking: bool = False
    car_park_decks: Optional[int] = None
    gantry_height: Optional[float] = None
    car_park_basement: bool = False
    has_ev_charger: bool = False

    price_per_hour: Optional[float] = None
    price_per_half_hour: Optional[float] = None
    is_central_area: Optional[bool] = None
    day_parking_cap: Optional[float] = None
    night_parking_cap: Optional[float] = None
    whole_day_parking_cap: Optional[float] = None
    grace_period_minutes: Optional[int] = None
    per_minute_rate: Optional[float] = None

    data_source: Optional[str] = None
    last_synced_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Query-time fields
    distance: Optional[float] = Field(default=None, description="Distance from the query point in kilometres")
    availability_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    availability_color: Optional[str] = None


class AutocompleteItem(CamelModel):
    id: str
    external_id: Optional[str] = None
    address: str = ""


class CarparkStats(CamelModel):
    total: int
    with_availability: int
    average_availability: float


class NearbyQuery(BaseModel):
    """Parameters of a radius search around a point."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    radius: int = Field(default=2000, ge=100, le=50000, description="Search radius in metres")
    limit: int = Field(default=30, ge=1, le=100)
    min_available_lots: Optional[int] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
    carpark_type: Optional[str] = None
    has_ev_charger: Optional[bool] = None
    night_parking: Optional[bool] = None


class SearchQuery(BaseModel):
    """Parameters of a text/location search with paging and sorting."""

    query: Optional[str] = Field(default=None, min_length=1, max_length=200)
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)
    radius: int = Field(default=5000, ge=100, le=50000)
    limit: int = Field(default=50, ge=1, le=100)
    offset: int = Field(default=0, ge=0)
    sort_by: Literal["distance", "price", "availability"] = "distance"
    sort_order: Literal["asc", "desc"] = "asc"

    @model_validator(mode="after")
    def _check_location_pair(self):
        if (self.lat is None) != (self.lng is None):
            raise QueryValidationError("lat and lng must be provided together")
        if self.query is not None:
            stripped = self.query.strip()
            if not stripped:
                raise QueryValidationError("query must not be blank")
            self.query = stripped
        return self

    @property
    def has_location(self) -> bool:
        return self.lat is not None and self.lng is not None


class SearchResult(BaseModel):
    carparks: List[Carpark]
    total: int
