import uuid

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String
from sqlalchemy.sql import func

from .database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Carpark(Base):
    __tablename__ = "carparks"

    id = Column(String(36), primary_key=True, default=_new_id)

    # Shared with the live availability feed; upsert key for imports
    external_id = Column(String(32), unique=True, index=True, nullable=False)
    address = Column(String(512), nullable=False, default="")

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    # Capacity (static baseline; live values are overlaid at read time)
    total_lots = Column(Integer, nullable=False, default=0)
    available_lots = Column(Integer, nullable=False, default=0)
    lot_type = Column(String(8), nullable=True)

    # Classification
    carpark_type = Column(String(64), nullable=True)
    parking_system = Column(String(64), nullable=True)
    short_term_parking = Column(String(64), nullable=True)
    free_parking = Column(String(128), nullable=True)
    night_parking = Column(Boolean, nullable=False, default=False)
    car_park_decks = Column(Integer, nullable=True)
    gantry_height = Column(Float, nullable=True)
    car_park_basement = Column(Boolean, nullable=False, default=False)
    has_ev_charger = Column(Boolean, nullable=False, default=False)

    # Zone pricing, derived from the coordinates at import time
    price_per_hour = Column(Float, nullable=True)
    price_per_half_hour = Column(Float, nullable=True)
    is_central_area = Column(Boolean, nullable=True)
    day_parking_cap = Column(Float, nullable=True)
    night_parking_cap = Column(Float, nullable=True)
    whole_day_parking_cap = Column(Float, nullable=True)
    grace_period_minutes = Column(Integer, nullable=True)
    per_minute_rate = Column(Float, nullable=True)

    # Bookkeeping
    data_source = Column(String(64), nullable=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
