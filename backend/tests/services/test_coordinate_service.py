import asyncio
from unittest.mock import AsyncMock

import pytest

from directory_search.core.exceptions import NotFoundException, ValidationException
from directory_search.core.record_lock import record_lock
from directory_search.models import ServiceSubmission
from directory_search.schemas.review import ObtainCoordinatesRequest
from directory_search.services.coordinate_service import MESSAGE_SUCCESS, CoordinateService
from directory_search.services.geocoding.service import GeocodingOutcome


def _request(submission_id: str, **overrides) -> ObtainCoordinatesRequest:
    values = {
        "submissionId": submission_id,
        "address": "123 Main St",
        "city": "Fishers",
        "state": "IN",
        "zip_code": "46037",
    }
    values.update(overrides)
    return ObtainCoordinatesRequest.model_validate(values)


def test_missing_fields_lists_blank_values():
    request = ObtainCoordinatesRequest.model_validate({"submissionId": "x", "address": " ", "city": "Fishers"})
    assert request.missing_fields() == ["address", "state", "zip_code"]


@pytest.mark.asyncio
async def test_success_updates_submission(session_factory, geocoding_service, submission, db):
    service = CoordinateService(geocoding_service, session_factory)
    response = await service.obtain_coordinates(_request(submission.id))

    assert response.message == MESSAGE_SUCCESS
    db.expire_all()
    stored = db.get(ServiceSubmission, submission.id)
    assert (stored.latitude, stored.longitude) == (response.latitude, response.longitude)


@pytest.mark.asyncio
async def test_missing_fields_raise(session_factory, geocoding_service):
    service = CoordinateService(geocoding_service, session_factory)
    with pytest.raises(ValidationException) as exc:
        await service.obtain_coordinates(_request("abc", zip_code=""))
    assert exc.value.message == "Missing required fields"


@pytest.mark.asyncio
async def test_unknown_submission(session_factory, geocoding_service):
    service = CoordinateService(geocoding_service, session_factory)
    with pytest.raises(NotFoundException):
        await service.obtain_coordinates(_request("01HZZZZZZZZZZZZZZZZZZZZZZZ"))


@pytest.mark.asyncio
async def test_writes_to_one_submission_are_serialized(session_factory, submission):
    active = 0
    peak = 0

    async def slow_geocode(*args):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return GeocodingOutcome(success=True, latitude=39.95, longitude=-86.0)

    geocoding = AsyncMock()
    geocoding.geocode_with_default.side_effect = slow_geocode
    service = CoordinateService(geocoding, session_factory)

    await asyncio.gather(*(service.obtain_coordinates(_request(submission.id)) for _ in range(3)))
    assert peak == 1
    assert geocoding.geocode_with_default.await_count == 3


@pytest.mark.asyncio
async def test_record_lock_is_per_record():
    order = []

    async def hold(record_id: str, label: str):
        async with record_lock("submission", record_id):
            order.append(f"{label}-start")
            await asyncio.sleep(0.01)
            order.append(f"{label}-end")

    await asyncio.gather(hold("a", "a1"), hold("b", "b1"))
    assert order.index("b1-start") < order.index("a1-end")
