from .carpark_importer import (
    ImportSummary,
    InvalidRecordError,
    build_carpark_values,
    load_records,
    reprice_carparks,
    upsert_carparks,
    zone_pricing_values,
)

__all__ = [
    "ImportSummary",
    "InvalidRecordError",
    "build_carpark_values",
    "load_records",
    "reprice_carparks",
    "upsert_carparks",
    "zone_pricing_values",
]
