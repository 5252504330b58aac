from .database import Base, create_engine_for, create_session_factory
from .init_db import drop_db, init_db
from .models import Carpark

__all__ = ["Base", "Carpark", "create_engine_for", "create_session_factory", "drop_db", "init_db"]
