"""
Carpark API (FastAPI)

REST Endpoints:
- GET    /carparks/nearby              -> carparks around a point, nearest first
- GET    /carparks/search              -> text/location search with paging
- GET    /carparks/autocomplete        -> typeahead suggestions
- GET    /carparks/stats               -> summary statistics
- GET    /carparks/pricing             -> zone rate schedule
- GET    /carparks/pricing/fee         -> fee for a stay
- DELETE /carparks/availability/cache  -> drop cached live availability
- GET    /carparks/{carpark_id}        -> one carpark

Errors are raised as service exceptions and rendered by the handlers
registered in spotfinder.main.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from spotfinder.services.carparks.carpark_service import CarparkService
from spotfinder.services.carparks.schemas import NearbyQuery, SearchQuery
from spotfinder.services.container import Services
from spotfinder.services.pricing.pricing_calculator import calculate_fee, charges_description, pricing_for_zone


router = APIRouter(prefix="/carparks", tags=["carparks"])


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_carpark_service(services: Services = Depends(get_services)) -> CarparkService:
    return services.carparks


def _dump(model) -> dict:
    return model.model_dump(by_alias=True, mode="json")


@router.get("/nearby")
async def get_nearby_carparks(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius: int = Query(2000, ge=100, le=50000),
    limit: int = Query(30, ge=1, le=100),
    min_available_lots: Optional[int] = Query(None, alias="minAvailableLots", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    carpark_type: Optional[str] = Query(None, alias="carparkType"),
    has_ev_charger: Optional[bool] = Query(None, alias="hasEvCharger"),
    night_parking: Optional[bool] = Query(None, alias="nightParking"),
    service: CarparkService = Depends(get_carpark_service),
) -> dict:
    params = NearbyQuery(
        lat=lat,
        lng=lng,
        radius=radius,
        limit=limit,
        min_available_lots=min_available_lots,
        max_price=max_price,
        carpark_type=carpark_type,
        has_ev_charger=has_ev_charger,
        night_parking=night_parking,
    )
    carparks = await service.get_nearby(params)
    return {
        "carparks": [_dump(c) for c in carparks],
        "total": len(carparks),
        "radius": params.radius,
        "center": {"latitude": params.lat, "longitude": params.lng},
    }


@router.get("/search")
async def search_carparks(
    query: Optional[str] = Query(None, min_length=1, max_length=200),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: int = Query(5000, ge=100, le=50000),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    sort_by: str = Query("distance", alias="sortBy", pattern="^(distance|price|availability)$"),
    sort_order: str = Query("asc", alias="sortOrder", pattern="^(asc|desc)$"),
    service: CarparkService = Depends(get_carpark_service),
) -> dict:
    params = SearchQuery(
        query=query,
        lat=lat,
        lng=lng,
        radius=radius,
        limit=limit,
        offset=offset,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    result = await service.search(params)
    return {
        "success": True,
        "data": [_dump(c) for c in result["carparks"]],
        "pagination": {
            "total": result["total"],
            "page": result["page"],
            "pages": result["pages"],
            "limit": params.limit,
        },
    }


@router.get("/autocomplete")
async def autocomplete_carparks(
    q: str = Query("", max_length=200),
    limit: int = Query(10, ge=1, le=50),
    service: CarparkService = Depends(get_carpark_service),
) -> dict:
    results = await service.autocomplete(q, limit)
    return {"success": True, "data": [_dump(r) for r in results], "query": q}


@router.get("/stats")
async def get_stats(service: CarparkService = Depends(get_carpark_service)) -> dict:
    stats = await service.get_stats()
    return {"success": True, "data": _dump(stats)}


@router.get("/pricing")
async def get_pricing(central: bool = Query(False)) -> dict:
    """
    Rate schedule and description for the Central Area or the rest of the island.
    """
    return {
        "success": True,
        "data": {
            "rule": _dump(pricing_for_zone(central)),
            "description": charges_description(central),
        },
    }


@router.get("/pricing/fee")
async def get_fee(
    duration_minutes: int = Query(..., alias="durationMinutes", ge=0),
    is_central: bool = Query(False, alias="isCentral"),
    is_night_parking: bool = Query(False, alias="isNightParking"),
    grace_minutes: int = Query(15, alias="graceMinutes", ge=0),
) -> dict:
    fee = calculate_fee(duration_minutes, is_central, is_night_parking, grace_minutes)
    return {"success": True, "data": {"fee": float(fee)}}


@router.delete("/availability/cache")
async def clear_availability_cache(services: Services = Depends(get_services)) -> dict:
    await services.availability.clear()
    return {"success": True, "message": "Availability cache cleared"}


@router.get("/{carpark_id}")
async def get_carpark(carpark_id: str, service: CarparkService = Depends(get_carpark_service)) -> dict:
    carpark = await service.get_by_id(carpark_id)
    return {"success": True, "data": _dump(carpark)}
