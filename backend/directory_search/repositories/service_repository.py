# backend/directory_search/repositories/service_repository.py
"""
Service Repository for directory search.

Provides:
- Execution of a SearchSpec (filters, ordering, pagination) with a total count
- Name / type / city projection for search suggestions
"""

import logging
import math
from typing import Any, List, Tuple

from sqlalchemy import and_, case, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException
from ..models.service import Service
from ..services.search.query_builder import (
    FILTERABLE_COLUMNS,
    ORDERABLE_COLUMNS,
    BoundingBoxFilter,
    EqualsFilter,
    InFilter,
    SearchSpec,
)
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ServiceRepository(BaseRepository[Service]):
    def __init__(self, db: Session):
        super().__init__(db, Service)

    def _apply_filters(self, query: "Query[Service]", spec: SearchSpec) -> "Query[Service]":
        for spec_filter in spec.filters:
            if isinstance(spec_filter, BoundingBoxFilter):
                query = query.filter(
                    Service.latitude.isnot(None),
                    Service.longitude.isnot(None),
                    Service.latitude.between(spec_filter.min_lat, spec_filter.max_lat),
                    Service.longitude.between(spec_filter.min_lng, spec_filter.max_lng),
                )
                continue
            if not isinstance(spec_filter, (EqualsFilter, InFilter)):
                raise ValueError(f"Unsupported filter: {spec_filter!r}")
            if spec_filter.column not in FILTERABLE_COLUMNS:
                raise ValueError(f"Column {spec_filter.column!r} is not filterable")
            column = getattr(Service, spec_filter.column)
            if isinstance(spec_filter, EqualsFilter):
                query = query.filter(column == spec_filter.value)
            else:
                if not spec_filter.values:
                    raise ValueError(f"Empty IN filter on {spec_filter.column!r}")
                query = query.filter(column.in_(spec_filter.values))
        return query

    def _proximity_order(self, lat: float, lng: float) -> Tuple[Any, Any]:
        """Rows without coordinates last, then squared equirectangular distance."""
        no_coordinates = or_(
            Service.latitude.is_(None),
            Service.longitude.is_(None),
            and_(Service.latitude == 0, Service.longitude == 0),
        )
        lng_scale = math.cos(math.radians(lat))
        d_lat = Service.latitude - lat
        d_lng = (Service.longitude - lng) * lng_scale
        return case((no_coordinates, 1), else_=0).asc(), (d_lat * d_lat + d_lng * d_lng).asc()

    def _apply_ordering(self, query: "Query[Service]", spec: SearchSpec) -> "Query[Service]":
        if spec.near is not None:
            query = query.order_by(*self._proximity_order(*spec.near))
        for column_name, ascending in spec.order_by:
            if column_name not in ORDERABLE_COLUMNS:
                raise ValueError(f"Column {column_name!r} is not orderable")
            column = getattr(Service, column_name)
            query = query.order_by(column.asc() if ascending else column.desc())
        return query

    def search(self, spec: SearchSpec, max_results: int) -> Tuple[List[Service], int]:
        """
        Run a SearchSpec.

        Returns the rows (capped at `max_results` when the SearchSpec has no limit)
        and the total number of matching rows before pagination.

        Raises:
            ValueError: if the SearchSpec references unknown columns
            RepositoryException: if the store query fails
        """
        try:
            filtered = self._apply_filters(self.db.query(Service), spec)
            total_count = filtered.order_by(None).count()

            query = self._apply_ordering(filtered, spec)
            if spec.offset:
                query = query.offset(spec.offset)
            limit = spec.limit if spec.limit is not None else max_results
            rows = query.limit(min(limit, max_results)).all()
            return rows, total_count
        except SQLAlchemyError as e:
            self.logger.error("Service search failed (%s): %s", spec.describe(), e)
            raise RepositoryException(f"Failed to search services: {e}") from e

    def find_suggestions(self, partial: str, limit: int = 10) -> List[str]:
        """Distinct names, types and cities containing `partial`, in name order."""
        pattern = f"%{partial}%"
        try:
            rows = (
                self.db.query(Service.name, Service.service_type, Service.city)
                .filter(
                    or_(
                        Service.name.ilike(pattern),
                        Service.service_type.ilike(pattern),
                        Service.city.ilike(pattern),
                    )
                )
                .order_by(Service.name.asc())
                .limit(limit * 3)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error("Suggestion lookup failed for %r: %s", partial, e)
            raise RepositoryException(f"Failed to load suggestions: {e}") from e

        needle = partial.lower()
        found: List[str] = []
        for name, service_type, city in rows:
            for value in (name, service_type, city):
                if value and needle in value.lower() and value not in found:
                    found.append(value)
        return found[:limit]
