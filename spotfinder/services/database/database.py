import logging
import math

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base


logger = logging.getLogger(__name__)

Base = declarative_base()


def _null_safe(fn):
    def wrapper(value):
        if value is None:
            return None
        return fn(float(value))
    return wrapper


def _acos(value: float) -> float:
    # rounding can push the cosine sum just past 1.0 for identical points
    return math.acos(max(-1.0, min(1.0, value)))


SQLITE_MATH_FUNCTIONS = {
    "acos": _null_safe(_acos),
    "cos": _null_safe(math.cos),
    "sin": _null_safe(math.sin),
    "radians": _null_safe(math.radians),
}


def _register_sqlite_math(dbapi_connection, connection_record) -> None:
    for name, fn in SQLITE_MATH_FUNCTIONS.items():
        dbapi_connection.create_function(name, 1, fn)


def create_engine_for(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine for the carpark store.

    SQLite builds do not reliably ship the trigonometric functions the
    distance query needs, so they are registered on every new connection.
    """
    engine = create_async_engine(database_url, echo=echo, future=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _register_sqlite_math)
    logger.info("Database engine created for %s", engine.url.render_as_string(hide_password=True))
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
