"""Shared fixtures: a temporary SQLite carpark store and a small seeded dataset."""

import asyncio

import pytest

from spotfinder.services.database.database import create_engine_for, create_session_factory
from spotfinder.services.database.init_db import init_db
from spotfinder.services.database.models import Carpark


# Query point near Bencoolen, Singapore
CENTER = (1.3000, 103.8500)


def carpark_row(id_, external_id, address, lat, lng, **overrides):
    row = {
        "id": id_,
        "external_id": external_id,
        "address": address,
        "latitude": lat,
        "longitude": lng,
        "total_lots": 100,
        "available_lots": 0,
        "night_parking": False,
        "has_ev_charger": False,
        "car_park_basement": False,
        "price_per_hour": 1.20,
        "price_per_half_hour": 0.60,
        "is_central_area": False,
    }
    row.update(overrides)
    return row


# ~0.5 km, ~1.6 km and ~11 km from CENTER
DEFAULT_ROWS = [
    carpark_row(
        "id-acb", "ACB", "Block 270 Albert Centre", 1.3010, 103.8545,
        available_lots=10, price_per_hour=2.40, price_per_half_hour=1.20, is_central_area=True,
        night_parking=True, carpark_type="MULTI-STOREY CAR PARK",
    ),
    carpark_row(
        "id-be3", "BE3", "Block 3 Beach Road", 1.3100, 103.8600,
        available_lots=0, has_ev_charger=True, carpark_type="SURFACE CAR PARK",
    ),
    carpark_row(
        "id-tpm", "TPM1", "Tampines Street 11", 1.3500, 103.9400,
        available_lots=50, carpark_type="SURFACE CAR PARK",
    ),
]


async def _seed(url, rows):
    engine = create_engine_for(url)
    try:
        await init_db(engine)
        session_factory = create_session_factory(engine)
        async with session_factory() as session:
            session.add_all([Carpark(**row) for row in rows])
            await session.commit()
    finally:
        await engine.dispose()


@pytest.fixture()
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'carparks.db'}"


@pytest.fixture()
def seed(db_url):
    """Insert rows into the temporary store (creating the table first)."""
    def _seed_rows(rows=None):
        asyncio.run(_seed(db_url, DEFAULT_ROWS if rows is None else rows))
    return _seed_rows


@pytest.fixture()
def run_with_store(db_url):
    """
    Run `await fn(session_factory)` against the temporary store in a fresh
    event loop, disposing the engine afterwards.
    """
    def _run(fn, create_tables=True):
        async def _main():
            engine = create_engine_for(db_url)
            try:
                if create_tables:
                    await init_db(engine)
                return await fn(create_session_factory(engine))
            finally:
                await engine.dispose()
        return asyncio.run(_main())
    return _run


@pytest.fixture()
def center():
    return CENTER


@pytest.fixture()
def make_row():
    return carpark_row
