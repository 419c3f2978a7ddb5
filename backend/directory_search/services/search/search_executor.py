# backend/directory_search/services/search/search_executor.py
"""
Execute SearchSpecs against the services store.

Store access is synchronous SQLAlchemy run in a worker thread. A failed
structured query is retried once as the unfiltered fallback query so the
caller still gets rows; only a failing fallback surfaces as an error.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from typing import Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from ...core.constants import MAX_SUGGESTIONS
from ...core.exceptions import StoreExecutionException
from ...database import SessionLocal
from ...repositories.service_repository import ServiceRepository
from ...schemas.search import ServiceRecord
from .config import SearchConfig, get_search_config
from .query_builder import SearchSpec, build_fallback_query
from .vocabulary import Vocabulary

logger = logging.getLogger(__name__)


@dataclass
class SearchExecution:
    results: List[ServiceRecord] = field(default_factory=list)
    total_count: int = 0
    used_fallback: bool = False
    fallback_reason: Optional[str] = None


class SearchExecutor:
    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        config: Optional[SearchConfig] = None,
        vocabulary: Optional[Vocabulary] = None,
    ) -> None:
        self.session_factory = session_factory
        self.config = config or get_search_config()
        self.vocabulary = vocabulary or Vocabulary(
            extra_synonyms=self.config.extra_synonyms, extra_states=self.config.extra_states
        )

    def _run(self, spec: SearchSpec) -> Tuple[List[ServiceRecord], int]:
        db = self.session_factory()
        try:
            rows, total = ServiceRepository(db).search(spec, self.config.max_results)
            return [ServiceRecord.model_validate(row) for row in rows], total
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    async def run_fallback(self, reason: str) -> SearchExecution:
        spec = build_fallback_query(self.config.fallback_limit)
        try:
            rows, total = await asyncio.to_thread(self._run, spec)
        except Exception as exc:
            logger.error("Fallback search failed after %s: %s", reason, exc, exc_info=True)
            raise StoreExecutionException(
                f"Fallback search failed: {exc}", details={"reason": reason}
            ) from exc
        return SearchExecution(results=rows, total_count=total, used_fallback=True, fallback_reason=reason)

    async def perform_database_search(self, spec: SearchSpec) -> SearchExecution:
        if spec.is_fallback:
            return await self.run_fallback("fallback requested")
        try:
            rows, total = await asyncio.to_thread(self._run, spec)
        except Exception as exc:
            logger.warning("Store query failed (%s): %s; running fallback", spec.describe(), exc)
            return await self.run_fallback(str(exc))
        return SearchExecution(results=rows, total_count=total)

    def _store_suggestions(self, partial: str, limit: int) -> List[str]:
        db = self.session_factory()
        try:
            return ServiceRepository(db).find_suggestions(partial, limit)
        finally:
            db.close()

    async def get_search_suggestions(self, partial: str, limit: int = MAX_SUGGESTIONS) -> List[str]:
        """Store matches first, topped up with vocabulary terms."""
        cleaned = (partial or "").strip()
        if not cleaned:
            return []
        try:
            found = await asyncio.to_thread(self._store_suggestions, cleaned, limit)
        except Exception as exc:
            logger.warning("Suggestion lookup failed for %r: %s; using vocabulary only", cleaned, exc)
            found = []
        for term in self.vocabulary.suggestions(cleaned, limit):
            if len(found) >= limit:
                break
            if term not in found:
                found.append(term)
        return found[:limit]
