"""
Carpark Importer

Loads carpark records (already in WGS84) from a CSV or JSON export and
upserts them into the store by external id. Each record is validated
against the service region and gets its Central Area pricing computed here,
so read paths never recompute it.

Usage:
    python -m spotfinder.services.ingestion.carpark_importer carparks.csv
"""

import argparse
import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from spotfinder.services.database.models import Carpark
from spotfinder.services.pricing.central_area import is_central_area
from spotfinder.services.pricing.pricing_calculator import pricing_for_zone
from spotfinder.services.settings.app_settings import DEFAULT_REGION_BOUNDS


logger = logging.getLogger(__name__)

DATA_SOURCE = "data.gov.sg"


class InvalidRecordError(ValueError):
    """Raised when a record cannot be stored (missing id, bad coordinates)."""
    pass


@dataclass
class ImportSummary:
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.imported + self.updated + self.skipped


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value).strip()
    return text or None


def _parse_float(value: Any) -> Optional[float]:
    text = _clean(value)
    if text is None:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return None if math.isnan(number) else number


def _parse_int(value: Any) -> Optional[int]:
    number = _parse_float(value)
    return int(number) if number is not None else None


def zone_pricing_values(latitude: float, longitude: float) -> Dict[str, Any]:
    """Column values for the zone pricing of a carpark at (latitude, longitude)."""
    central = is_central_area(latitude, longitude)
    rule = pricing_for_zone(central)
    return {
        "is_central_area": central,
        "price_per_half_hour": rule.price_per_half_hour,
        "price_per_hour": round(rule.price_per_half_hour * 2, 2),
        "day_parking_cap": rule.day_parking_cap,
        "night_parking_cap": rule.night_parking_cap,
        "whole_day_parking_cap": rule.whole_day_parking_cap,
        "grace_period_minutes": rule.grace_period_minutes,
        "per_minute_rate": rule.per_minute_rate,
    }


def build_carpark_values(record: Dict[str, Any], bounds: Optional[Dict[str, float]] = None) -> Dict[str, Any]:
    """
    Normalise one raw record into Carpark column values.

    Args:
        record: Raw record (car_park_no, address, latitude, longitude, ...)
        bounds: Accepted region bounding box (default: Singapore)

    Returns:
        Dict of column values, including the zone pricing fields

    Raises:
        InvalidRecordError: If the id is missing or the coordinates are
            missing, zero, NaN or outside the region
    """
    bounds = bounds or DEFAULT_REGION_BOUNDS

    external_id = _clean(record.get("car_park_no")) or _clean(record.get("external_id"))
    if external_id is None:
        raise InvalidRecordError("Missing carpark number")

    lat = _parse_float(record.get("latitude", record.get("lat")))
    lon = _parse_float(record.get("longitude", record.get("lng")))
    if lat is None or lon is None or lat == 0 or lon == 0:
        raise InvalidRecordError(f"{external_id}: invalid coordinates")
    if not (bounds["min_lat"] <= lat <= bounds["max_lat"] and bounds["min_lon"] <= lon <= bounds["max_lon"]):
        raise InvalidRecordError(f"{external_id}: coordinates ({lat}, {lon}) outside service region")

    values = {
        "external_id": external_id,
        "address": _clean(record.get("address")) or "",
        "latitude": lat,
        "longitude": lon,
        "carpark_type": _clean(record.get("car_park_type")),
        "parking_system": _clean(record.get("type_of_parking_system")),
        "short_term_parking": _clean(record.get("short_term_parking")),
        "free_parking": _clean(record.get("free_parking")),
        "night_parking": (_clean(record.get("night_parking")) or "").upper() == "YES",
        "car_park_decks": _parse_int(record.get("car_park_decks")),
        "gantry_height": _parse_float(record.get("gantry_height")),
        "car_park_basement": (_clean(record.get("car_park_basement")) or "").upper() == "Y",
        "data_source": DATA_SOURCE,
    }
    values.update(zone_pricing_values(lat, lon))
    return values


def load_records(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Read carpark records from a CSV or JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the extension is not .csv or .json
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Carpark file not found: {path}")

    ext = path.suffix.lower()
    if ext == ".csv":
        frame = pd.read_csv(path, dtype=str, keep_default_na=False)
    elif ext == ".json":
        frame = pd.read_json(path, dtype=False)
    else:
        raise ValueError(f"Unsupported file extension: {ext} (expected .csv/.json)")

    return frame.to_dict(orient="records")


async def upsert_carparks(
    session: AsyncSession,
    records: Iterable[Dict[str, Any]],
    bounds: Optional[Dict[str, float]] = None,
) -> ImportSummary:
    """
    Insert new carparks and update existing ones by external id.

    Invalid records are skipped and reported in the summary; valid records
    are committed together.
    """
    summary = ImportSummary()
    now = datetime.now(timezone.utc)
    seen: Dict[str, Carpark] = {}

    for record in records:
        try:
            values = build_carpark_values(record, bounds)
        except InvalidRecordError as exc:
            logger.warning("Skipping record: %s", exc)
            summary.skipped += 1
            summary.errors.append((str(record.get("car_park_no", "?")), str(exc)))
            continue

        external_id = values["external_id"]
        existing = seen.get(external_id)
        if existing is None:
            existing = await session.scalar(select(Carpark).where(Carpark.external_id == external_id))
        if existing is None:
            seen[external_id] = Carpark(**values, last_synced_at=now)
            session.add(seen[external_id])
            summary.imported += 1
        else:
            for key, value in values.items():
                setattr(existing, key, value)
            existing.last_synced_at = now
            summary.updated += 1

    await session.commit()
    logger.info(
        "Import completed: %d imported, %d updated, %d skipped",
        summary.imported, summary.updated, summary.skipped,
    )
    return summary


async def reprice_carparks(session: AsyncSession) -> Tuple[int, int]:
    """
    Recompute zone pricing for every stored carpark.

    Returns:
        (central_count, non_central_count)
    """
    central = non_central = 0
    rows = (await session.scalars(select(Carpark).order_by(Carpark.external_id))).all()
    for row in rows:
        for key, value in zone_pricing_values(row.latitude, row.longitude).items():
            setattr(row, key, value)
        if row.is_central_area:
            central += 1
        else:
            non_central += 1

    await session.commit()
    logger.info("Repriced %d carparks (%d central, %d non-central)", len(rows), central, non_central)
    return central, non_central


async def _run(path: str, reprice: bool) -> ImportSummary:
    from spotfinder.services.database.database import create_engine_for, create_session_factory
    from spotfinder.services.database.init_db import init_db
    from spotfinder.services.settings.app_settings import AppSettings

    settings = AppSettings.from_env()
    engine = create_engine_for(settings.database_url)
    try:
        await init_db(engine)
        session_factory = create_session_factory(engine)
        async with session_factory() as session:
            summary = await upsert_carparks(session, load_records(path), settings.region_bounds)
            if reprice:
                await reprice_carparks(session)
        return summary
    finally:
        await engine.dispose()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Import carpark records into the SpotFinder store")
    parser.add_argument("path", help="CSV or JSON file of carpark records")
    parser.add_argument("--reprice", action="store_true", help="Recompute zone pricing for all stored carparks")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s:%(name)s:%(message)s")
    summary = asyncio.run(_run(args.path, args.reprice))
    for carpark, error in summary.errors[:10]:
        logger.warning("  - %s: %s", carpark, error)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
