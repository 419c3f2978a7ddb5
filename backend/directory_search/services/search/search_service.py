# backend/directory_search/services/search/search_service.py
"""
Search pipeline orchestration.

RECEIVED -> RATE_CHECK -> PROCESS_QUERY -> BUILD_SPEC -> EXECUTE -> FORMAT -> RESPONDED

The rate check runs as a route dependency before the pipeline is entered;
a rejection never reaches this module. Every later stage runs under a
timeout and returns a StageResult. Any failed stage moves to FALLBACK,
which answers with an unfiltered bounded query instead of an error.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from enum import Enum
import logging
import time
from typing import Awaitable, Callable, Generic, List, Optional, Tuple, TypeVar

from sqlalchemy.orm import Session

from ...core.exceptions import (
    QueryProcessingException,
    SearchFailedException,
    StoreExecutionException,
)
from ...database import SessionLocal
from ...monitoring.prometheus_metrics import (
    search_fallbacks_total,
    search_requests_total,
    search_stage_duration_seconds,
)
from ...schemas.search import SearchMetadata, SearchRequest, SearchResponse, UserLocationIn
from ..geocoding.service import GeocodingService
from .config import SearchConfig, get_search_config
from .geo_resolver import GeoAnchor, GeoResolver, GeoSource, UserLocation
from .query_builder import build_search_query
from .query_processor import ParsedQuery, QueryEntities, QueryProcessor, SearchFilters
from .results_formatter import FormattedResults, format_search_results
from .search_executor import SearchExecution, SearchExecutor
from .vocabulary import Vocabulary, normalize_text

logger = logging.getLogger(__name__)

T = TypeVar("T")

FALLBACK_INTENT = "search for services"
FALLBACK_CONFIDENCE = 0.5

# Coarse keyword guess used only to describe fallback answers
_FALLBACK_SERVICE_GUESSES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("groomer", "grooming"), "groomer"),
    (("vet", "veterinarian"), "veterinarian"),
    (("dog park", "park"), "dog_park"),
    (("training", "trainer"), "dog_trainer"),
    (("boarding", "daycare"), "boarding_daycare"),
)


class PipelineState(str, Enum):
    RECEIVED = "received"
    RATE_CHECK = "rate_check"
    REJECTED = "rejected"
    PROCESS_QUERY = "process_query"
    BUILD_SPEC = "build_spec"
    EXECUTE = "execute"
    FORMAT = "format"
    FALLBACK = "fallback"
    RESPONDED = "responded"


@dataclass
class StageResult(Generic[T]):
    state: PipelineState
    ok: bool
    value: Optional[T] = None
    error: Optional[BaseException] = None
    duration_s: float = 0.0


@dataclass
class SearchOutcome:
    response: SearchResponse
    states: List[PipelineState] = field(default_factory=list)
    failed_stage: Optional[PipelineState] = None

    @property
    def used_fallback(self) -> bool:
        return PipelineState.FALLBACK in self.states


def guess_service_type(text: str) -> Optional[str]:
    normalized = normalize_text(text)
    for keywords, service_type in _FALLBACK_SERVICE_GUESSES:
        if any(keyword in normalized for keyword in keywords):
            return service_type
    return None


def to_user_location(location: Optional[UserLocationIn]) -> Optional[UserLocation]:
    if location is None:
        return None
    return UserLocation(
        lat=location.lat,
        lng=location.lng,
        zip=location.zip,
        city=location.city,
        state=location.state,
        geolocation_error=location.geolocation_error,
    )


class SearchPipeline:
    def __init__(
        self,
        processor: QueryProcessor,
        executor: SearchExecutor,
        config: Optional[SearchConfig] = None,
    ) -> None:
        self.processor = processor
        self.executor = executor
        self.config = config or get_search_config()

    @classmethod
    def create(
        cls,
        geocoding: GeocodingService,
        session_factory: Callable[[], Session] = SessionLocal,
        config: Optional[SearchConfig] = None,
    ) -> "SearchPipeline":
        cfg = config or get_search_config()
        vocabulary = Vocabulary(extra_synonyms=cfg.extra_synonyms, extra_states=cfg.extra_states)
        resolver = GeoResolver(geocoding, config=cfg, vocabulary=vocabulary)
        return cls(
            processor=QueryProcessor(resolver, config=cfg, vocabulary=vocabulary),
            executor=SearchExecutor(session_factory, config=cfg, vocabulary=vocabulary),
            config=cfg,
        )

    async def _run_stage(self, state: PipelineState, stage: Callable[[], Awaitable[T]]) -> StageResult[T]:
        started = time.perf_counter()
        error: BaseException
        try:
            value = await asyncio.wait_for(stage(), timeout=self.config.stage_timeout_s)
            return StageResult(state=state, ok=True, value=value, duration_s=time.perf_counter() - started)
        except asyncio.TimeoutError as exc:
            logger.warning("Search stage %s timed out after %.1fs", state.value, self.config.stage_timeout_s)
            error = QueryProcessingException(state.value, f"{state.value} timed out")
            error.__cause__ = exc
        except StoreExecutionException as exc:
            # Store outages pass through so the fallback can tell them apart
            error = exc
        except Exception as exc:
            logger.warning("Search stage %s failed: %s", state.value, exc, exc_info=True)
            error = QueryProcessingException(state.value, str(exc) or exc.__class__.__name__)
            error.__cause__ = exc
        finally:
            search_stage_duration_seconds.labels(stage=state.value).observe(time.perf_counter() - started)
        return StageResult(state=state, ok=False, error=error, duration_s=time.perf_counter() - started)

    async def search(self, request: SearchRequest) -> SearchOutcome:
        states = [PipelineState.RECEIVED, PipelineState.RATE_CHECK]
        user_location = to_user_location(request.user_location)

        states.append(PipelineState.PROCESS_QUERY)
        parsed_result = await self._run_stage(
            PipelineState.PROCESS_QUERY,
            lambda: self.processor.process_search_query(request.query, user_location),
        )
        if not parsed_result.ok or parsed_result.value is None:
            return await self.run_fallback(request, PipelineState.PROCESS_QUERY, parsed_result.error, states)
        parsed: ParsedQuery = parsed_result.value

        async def build_spec():
            return build_search_query(parsed)

        states.append(PipelineState.BUILD_SPEC)
        spec_result = await self._run_stage(PipelineState.BUILD_SPEC, build_spec)
        if not spec_result.ok or spec_result.value is None:
            return await self.run_fallback(request, PipelineState.BUILD_SPEC, spec_result.error, states)

        states.append(PipelineState.EXECUTE)
        spec = spec_result.value
        exec_result = await self._run_stage(
            PipelineState.EXECUTE, lambda: self.executor.perform_database_search(spec)
        )
        if not exec_result.ok or exec_result.value is None:
            return await self.run_fallback(request, PipelineState.EXECUTE, exec_result.error, states)
        execution: SearchExecution = exec_result.value

        async def format_results():
            return format_search_results(
                execution, parsed.location, parsed, limit=request.limit, offset=request.offset
            )

        states.append(PipelineState.FORMAT)
        format_result = await self._run_stage(PipelineState.FORMAT, format_results)
        if not format_result.ok or format_result.value is None:
            return await self.run_fallback(request, PipelineState.FORMAT, format_result.error, states)

        if execution.used_fallback:
            states.append(PipelineState.FALLBACK)
            search_fallbacks_total.labels(stage=PipelineState.EXECUTE.value).inc()
        search_type = "fallback" if execution.used_fallback else parsed.search_type
        response = self._build_response(
            parsed, format_result.value, search_type, parsed.location.radius_miles
        )
        states.append(PipelineState.RESPONDED)
        search_requests_total.labels(search_type=search_type).inc()
        logger.debug("Search %r visited %s", request.query, [s.value for s in states])
        return SearchOutcome(response=response, states=states)

    def _fallback_anchor(self, location: Optional[UserLocation]) -> GeoAnchor:
        radius = self.config.fallback_radius_miles
        if location is not None and location.lat is not None and location.lng is not None:
            return GeoAnchor(
                lat=location.lat,
                lng=location.lng,
                city=location.city or "Unknown",
                state=location.state or "Unknown",
                zip=location.zip or "",
                radius_miles=radius,
                source=GeoSource.GEOLOCATION,
                is_near_me=True,
                confidence=FALLBACK_CONFIDENCE,
            )
        return replace(self.processor.resolver.default_anchor(), radius_miles=radius)

    async def run_fallback(
        self,
        request: SearchRequest,
        failed_stage: PipelineState,
        error: Optional[BaseException],
        states: Optional[List[PipelineState]] = None,
    ) -> SearchOutcome:
        """Answer with the unfiltered fallback query after `failed_stage` failed."""
        visited = list(states or [PipelineState.RECEIVED, PipelineState.RATE_CHECK, failed_stage])
        visited.append(PipelineState.FALLBACK)
        search_fallbacks_total.labels(stage=failed_stage.value).inc()
        logger.warning(
            "Search fallback for %r after %s failed: %s", request.query, failed_stage.value, error
        )

        if isinstance(error, StoreExecutionException):
            raise SearchFailedException(error.message, details=str(error)) from error
        try:
            execution = await self.executor.run_fallback(f"{failed_stage.value}: {error}")
        except StoreExecutionException as exc:
            raise SearchFailedException(exc.message, details=str(error or exc)) from exc

        anchor = self._fallback_anchor(to_user_location(request.user_location))
        guess = guess_service_type(request.query)
        parsed = ParsedQuery(
            original_query=request.query,
            normalized_query=normalize_text(request.query),
            search_type="service",
            entities=QueryEntities(services=(guess,) if guess else ()),
            location=anchor,
            filters=SearchFilters(near_me=anchor.is_near_me),
            intent=FALLBACK_INTENT,
            confidence=FALLBACK_CONFIDENCE,
        )
        formatted = format_search_results(
            execution, anchor, parsed, limit=request.limit, offset=request.offset
        )
        response = self._build_response(parsed, formatted, "fallback", anchor.radius_miles)
        visited.append(PipelineState.RESPONDED)
        search_requests_total.labels(search_type="fallback").inc()
        return SearchOutcome(response=response, states=visited, failed_stage=failed_stage)

    def _build_response(
        self,
        parsed: ParsedQuery,
        formatted: FormattedResults,
        search_type: str,
        radius: float,
    ) -> SearchResponse:
        return SearchResponse(
            success=True,
            results=formatted.results,
            metadata=SearchMetadata(
                original_query=parsed.original_query,
                parsed_query=parsed.to_dict(),
                result_count=formatted.result_count,
                total_count=formatted.total_count,
                search_radius=radius,
                search_type=search_type,
                filters=parsed.filters.to_dict(),
                location=parsed.location.to_dict(),
            ),
        )
