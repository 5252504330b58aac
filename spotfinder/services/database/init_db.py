from sqlalchemy.ext.asyncio import AsyncEngine

from .database import Base
from .models import Carpark  # noqa: F401  registers the table on Base.metadata


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
