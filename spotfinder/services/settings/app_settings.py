import os
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field


BASE_DIR = Path(__file__).resolve().parents[1]
DEFAULT_SQLITE_URL = f"sqlite+aiosqlite:///{BASE_DIR / 'database' / 'app.db'}"
DEFAULT_AVAILABILITY_API_URL = "https://api.data.gov.sg/v1/transport/carpark-availability"

# Singapore, with a margin around the main island
DEFAULT_REGION_BOUNDS = {
    "min_lat": 1.15,
    "max_lat": 1.48,
    "min_lon": 103.60,
    "max_lon": 104.10,
}


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class AppSettings(BaseModel):
    """
    Runtime configuration for the SpotFinder API.
    Built once at startup and passed to the components that need it.
    """
    app_title: str = Field(default="SpotFinder Carpark API", description="Title shown in the OpenAPI docs")
    app_version: str = Field(default="1.0.0", description="API version")
    debug: bool = Field(default=False, description="Include exception details in 500 responses")
    log_level: str = Field(default="INFO", description="Root log level")

    database_url: str = Field(default=DEFAULT_SQLITE_URL, description="SQLAlchemy async database URL")
    cache_url: str = Field(default="memory://", description="'memory://' or a redis:// URL")

    availability_api_url: str = Field(default=DEFAULT_AVAILABILITY_API_URL, description="Live carpark availability feed")
    availability_api_key: Optional[str] = Field(default=None, description="Sent as X-Api-Key when set")
    availability_timeout: float = Field(default=10.0, gt=0, description="Feed request timeout in seconds")
    availability_cache_ttl: int = Field(default=300, ge=1, description="Seconds a feed snapshot stays cached")

    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:3001"],
        description="Origins allowed by the CORS middleware",
    )
    region_bounds: dict = Field(
        default_factory=lambda: DEFAULT_REGION_BOUNDS.copy(),
        description="Bounding box accepted for imported carpark coordinates",
    )

    @property
    def region_lat_range(self) -> Tuple[float, float]:
        return self.region_bounds["min_lat"], self.region_bounds["max_lat"]

    @property
    def region_lon_range(self) -> Tuple[float, float]:
        return self.region_bounds["min_lon"], self.region_bounds["max_lon"]

    @classmethod
    def from_env(cls) -> "AppSettings":
        """Build settings from environment variables, falling back to defaults."""
        values = {
            "debug": _env_bool("DEBUG"),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "database_url": os.getenv("DATABASE_URL", DEFAULT_SQLITE_URL),
            "cache_url": os.getenv("CACHE_URL", "memory://"),
            "availability_api_url": os.getenv("AVAILABILITY_API_URL", DEFAULT_AVAILABILITY_API_URL),
            "availability_api_key": os.getenv("AVAILABILITY_API_KEY") or None,
        }
        if os.getenv("AVAILABILITY_TIMEOUT"):
            values["availability_timeout"] = float(os.environ["AVAILABILITY_TIMEOUT"])
        if os.getenv("AVAILABILITY_CACHE_TTL"):
            values["availability_cache_ttl"] = int(os.environ["AVAILABILITY_CACHE_TTL"])
        if os.getenv("CORS_ORIGINS"):
            values["cors_origins"] = [o.strip() for o in os.environ["CORS_ORIGINS"].split(",") if o.strip()]
        return cls(**values)
