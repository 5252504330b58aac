"""
Carpark Repository

Read-side queries against the carpark store: radius search, text/location
search with paging, autocomplete, lookup by id and summary statistics.

Store failures are raised as StoreError. An empty result is a valid answer
and is returned as an empty list.
"""

import asyncio
import logging
from typing import List, Optional, Tuple

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from spotfinder.services.carparks.predicates import CarparkFilter, FilterField, Operator, text_match
from spotfinder.services.carparks.schemas import (
    AutocompleteItem,
    Carpark,
    CarparkStats,
    NearbyQuery,
    SearchQuery,
    SearchResult,
)
from spotfinder.services.database.models import Carpark as CarparkRow
from spotfinder.services.errors import StoreError


logger = logging.getLogger(__name__)


def _to_carpark(row: CarparkRow, distance: Optional[float] = None) -> Carpark:
    carpark = Carpark.model_validate(row)
    if distance is not None:
        carpark.distance = float(distance)
    return carpark


class CarparkRepository:
    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def _fetch_rows(self, stmt) -> List[Tuple]:
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return list(result.all())

    async def _fetch_scalar(self, stmt):
        async with self.session_factory() as session:
            return await session.scalar(stmt)

    # ------------------------------------------------------------------
    # Nearby
    # ------------------------------------------------------------------

    @staticmethod
    def nearby_filter(params: NearbyQuery) -> CarparkFilter:
        return (
            CarparkFilter()
            .within(params.lat, params.lng, params.radius)
            .where(FilterField.AVAILABLE_LOTS, Operator.GE, params.min_available_lots)
            .where(FilterField.PRICE, Operator.LE, params.max_price)
            .where(FilterField.CARPARK_TYPE, Operator.EQ, params.carpark_type or None)
            .where(FilterField.HAS_EV_CHARGER, Operator.EQ, params.has_ev_charger)
            .where(FilterField.NIGHT_PARKING, Operator.EQ, params.night_parking)
        )

    async def get_nearby(self, params: NearbyQuery) -> List[Carpark]:
        """
        Carparks within params.radius metres of (lat, lng), nearest first.

        Args:
            params: Validated NearbyQuery

        Returns:
            Up to params.limit carparks with their distance in km set
        """
        flt = self.nearby_filter(params)
        distance = flt.distance().label("distance")
        stmt = (
            select(CarparkRow, distance)
            .where(*flt.clauses())
            .order_by(distance.asc(), CarparkRow.id.asc())
            .limit(params.limit)
        )

        try:
            rows = await self._fetch_rows(stmt)
        except SQLAlchemyError as exc:
            logger.error("Error fetching nearby carparks: %s", exc)
            raise StoreError("Failed to fetch nearby carparks") from exc

        return [_to_carpark(row, dist) for row, dist in rows]

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    @staticmethod
    def search_filter(params: SearchQuery) -> CarparkFilter:
        flt = CarparkFilter().matching(params.query)
        if params.has_location:
            flt = flt.within(params.lat, params.lng, params.radius)
        return flt

    @staticmethod
    def _search_order(params: SearchQuery, distance):
        descending = params.sort_order == "desc"

        def directed(column):
            return column.desc() if descending else column.asc()

        if params.sort_by == "distance" and distance is not None:
            order = [directed(distance)]
        elif params.sort_by == "price":
            # NULL prices last in both directions
            order = [CarparkRow.price_per_hour.is_(None).asc(), directed(CarparkRow.price_per_hour)]
        elif params.sort_by == "availability":
            order = [directed(CarparkRow.available_lots)]
        else:
            order = [CarparkRow.updated_at.desc()]
        return order + [CarparkRow.id.asc()]

    async def search(self, params: SearchQuery) -> SearchResult:
        """
        Text and/or location search with sorting and offset paging.

        The total and the page come from two queries run concurrently over
        the same filter.

        Args:
            params: Validated SearchQuery

        Returns:
            SearchResult with the page of carparks and the unpaged total
        """
        flt = self.search_filter(params)
        clauses = flt.clauses()
        distance = flt.distance()

        columns = [CarparkRow]
        if distance is not None:
            distance = distance.label("distance")
            columns.append(distance)

        count_stmt = select(func.count()).select_from(CarparkRow).where(*clauses)
        data_stmt = (
            select(*columns)
            .where(*clauses)
            .order_by(*self._search_order(params, distance))
            .limit(params.limit)
            .offset(params.offset)
        )

        try:
            total, rows = await asyncio.gather(
                self._fetch_scalar(count_stmt),
                self._fetch_rows(data_stmt),
            )
        except SQLAlchemyError as exc:
            logger.error("Error searching carparks: %s", exc)
            raise StoreError("Failed to search carparks") from exc

        if distance is not None:
            carparks = [_to_carpark(row, dist) for row, dist in rows]
        else:
            carparks = [_to_carpark(row) for (row,) in rows]
        return SearchResult(carparks=carparks, total=int(total or 0))

    # ------------------------------------------------------------------
    # Autocomplete
    # ------------------------------------------------------------------

    async def autocomplete(self, query: str, limit: int = 10) -> List[AutocompleteItem]:
        """
        Lightweight typeahead over address and external id.

        Ranking: address prefix matches, then external id prefix matches,
        then any other substring match; ties ordered by address.
        """
        if not query or not query.strip():
            return []
        text = query.strip()

        rank = case(
            (CarparkRow.address.istartswith(text, autoescape=True), 1),
            (CarparkRow.external_id.istartswith(text, autoescape=True), 2),
            else_=3,
        )
        stmt = (
            select(CarparkRow.id, CarparkRow.external_id, CarparkRow.address)
            .where(text_match(text))
            .order_by(rank, CarparkRow.address, CarparkRow.id)
            .limit(limit)
        )

        try:
            rows = await self._fetch_rows(stmt)
        except SQLAlchemyError as exc:
            logger.error("Error in autocomplete: %s", exc)
            raise StoreError("Failed to autocomplete carparks") from exc

        return [AutocompleteItem(id=r.id, external_id=r.external_id, address=r.address or "") for r in rows]

    # ------------------------------------------------------------------
    # Lookup & stats
    # ------------------------------------------------------------------

    async def get_by_id(self, carpark_id: str) -> Optional[Carpark]:
        try:
            async with self.session_factory() as session:
                row = await session.get(CarparkRow, carpark_id)
        except SQLAlchemyError as exc:
            logger.error("Error fetching carpark %s: %s", carpark_id, exc)
            raise StoreError("Failed to fetch carpark") from exc
        return _to_carpark(row) if row is not None else None

    async def get_stats(self) -> CarparkStats:
        """Row count, rows with free lots and mean free lots from stored values."""
        stmt = select(
            func.count(CarparkRow.id),
            func.coalesce(func.sum(case((CarparkRow.available_lots > 0, 1), else_=0)), 0),
            func.coalesce(func.avg(CarparkRow.available_lots), 0),
        )
        try:
            rows = await self._fetch_rows(stmt)
        except SQLAlchemyError as exc:
            logger.error("Error computing carpark stats: %s", exc)
            raise StoreError("Failed to fetch statistics") from exc

        total, with_availability, average = rows[0]
        return CarparkStats(
            total=int(total),
            with_availability=int(with_availability),
            average_availability=float(average),
        )
