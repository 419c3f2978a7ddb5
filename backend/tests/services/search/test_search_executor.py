import pytest

from directory_search.core.exceptions import RepositoryException, StoreExecutionException
from directory_search.repositories.service_repository import ServiceRepository
from directory_search.services.search import search_executor
from directory_search.services.search.config import SearchConfig
from directory_search.services.search.query_builder import EqualsFilter, SearchSpec
from directory_search.services.search.search_executor import SearchExecutor

GROOMERS_IN_INDIANA = SearchSpec(filters=(EqualsFilter("service_type", "groomer"), EqualsFilter("state", "IN")))


class FilteredQueriesFail(ServiceRepository):
    def search(self, spec, max_results):
        if not spec.is_fallback:
            raise RepositoryException("connection reset by peer")
        return super().search(spec, max_results)


class EverythingFails(ServiceRepository):
    def search(self, spec, max_results):
        raise RepositoryException("database unavailable")

    def find_suggestions(self, partial, limit=10):
        raise RepositoryException("database unavailable")


@pytest.fixture
def executor(session_factory) -> SearchExecutor:
    return SearchExecutor(session_factory, config=SearchConfig(fallback_limit=4))


class TestPerformDatabaseSearch:
    @pytest.mark.asyncio
    async def test_returns_records(self, executor, seeded_services):
        execution = await executor.perform_database_search(GROOMERS_IN_INDIANA)
        assert execution.used_fallback is False
        assert execution.total_count == 2
        assert [r.name for r in execution.results] == ["Bark Avenue Salon", "Happy Paws Grooming"]

    @pytest.mark.asyncio
    async def test_store_error_runs_fallback(self, executor, seeded_services, monkeypatch):
        monkeypatch.setattr(search_executor, "ServiceRepository", FilteredQueriesFail)
        execution = await executor.perform_database_search(GROOMERS_IN_INDIANA)
        assert execution.used_fallback is True
        assert len(execution.results) == 4
        assert "connection reset" in (execution.fallback_reason or "")

    @pytest.mark.asyncio
    async def test_failing_fallback_raises(self, executor, seeded_services, monkeypatch):
        monkeypatch.setattr(search_executor, "ServiceRepository", EverythingFails)
        with pytest.raises(StoreExecutionException):
            await executor.perform_database_search(GROOMERS_IN_INDIANA)


class TestSuggestions:
    @pytest.mark.asyncio
    async def test_store_values_then_vocabulary(self, executor, seeded_services):
        suggestions = await executor.get_search_suggestions("groom")
        assert suggestions[0] == "groomer"
        assert "Happy Paws Grooming" in suggestions
        assert "Windy City Groomers" in suggestions
        assert len(suggestions) == len(set(suggestions))

    @pytest.mark.asyncio
    async def test_store_failure_degrades_to_vocabulary(self, executor, monkeypatch):
        monkeypatch.setattr(search_executor, "ServiceRepository", EverythingFails)
        assert await executor.get_search_suggestions("vet") == ["veterinarian"]

    @pytest.mark.asyncio
    async def test_blank_partial(self, executor):
        assert await executor.get_search_suggestions("   ") == []

    @pytest.mark.asyncio
    async def test_limit(self, executor, seeded_services):
        assert len(await executor.get_search_suggestions("a", limit=3)) == 3
