"""Tests for the booking API client against a mocked HTTP transport."""

import json

import httpx
import pytest

from reservation_engine.clients.http_client import BookingApiClient
from reservation_engine.errors import AvailabilityUnavailableError, PersistenceError

from tests.conftest import TOMORROW, make_reservation


def _client(handler) -> BookingApiClient:
    return BookingApiClient(
        base_url="https://api.example.test",
        store_uuid="store-123",
        access_token="secret",
        transport=httpx.MockTransport(handler),
    )


class TestAvailabilityFeed:
    @pytest.mark.asyncio
    async def test_request_shape_and_headers(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"10:00": [1, 2], "11:00": None})

        async with _client(handler) as client:
            availability = await client.fetch_availability(TOMORROW, 0)

        assert availability == {"10:00": [1, 2], "11:00": []}
        request = seen[0]
        assert request.url.path == "/staff/allStaffAvailability"
        assert request.url.params["staffId"] == "0"
        assert request.url.params["date"] == "20/10/2026"
        assert request.headers["X-StoreID"] == "store-123"
        assert request.headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_server_error_raises_unavailable(self):
        async with _client(lambda request: httpx.Response(500)) as client:
            with pytest.raises(AvailabilityUnavailableError):
                await client.fetch_availability(TOMORROW, 0)

    @pytest.mark.asyncio
    async def test_non_object_body_raises_unavailable(self):
        async with _client(lambda request: httpx.Response(200, json=["10:00"])) as client:
            with pytest.raises(AvailabilityUnavailableError):
                await client.fetch_availability(TOMORROW, 3)


class TestStaffDirectory:
    @pytest.mark.asyncio
    async def test_lists_staff_from_camel_case(self):
        def handler(request):
            assert request.url.params["isOnlyActive"] == "true"
            return httpx.Response(200, json=[
                {"id": 1, "nickname": "Amy", "firstName": "Amy", "lastName": "Nguyen", "isActive": True},
            ])

        async with _client(handler) as client:
            staff = await client.list_staff()

        assert staff[0].display_name == "Amy"
        assert staff[0].last_name == "Nguyen"


class TestReservationWrites:
    @pytest.mark.asyncio
    async def test_create_posts_without_id(self):
        bodies = []

        def handler(request):
            body = json.loads(request.content)
            bodies.append((request.method, body))
            return httpx.Response(200, json={**body, "id": 12})

        async with _client(handler) as client:
            saved = await client.create(make_reservation(reservation_id=99))

        method, body = bodies[0]
        assert method == "POST"
        assert "id" not in body
        assert body["date"] == "20/10/2026"
        assert body["bookingTime"] == "20/10/2026 10:00"
        assert body["walkInBooking"] is False
        assert body["guests"][0]["guestServices"][0]["staff"]["id"] == 2
        assert saved.id == 12

    @pytest.mark.asyncio
    async def test_update_puts_full_object(self):
        def handler(request):
            assert request.method == "PUT"
            assert request.url.path == "/reservation/"
            return httpx.Response(200, content=request.content)

        async with _client(handler) as client:
            saved = await client.update(make_reservation())

        assert saved.id == 77
        assert saved.customer.id == 501

    @pytest.mark.asyncio
    async def test_update_without_id_rejected(self):
        async with _client(lambda request: httpx.Response(200)) as client:
            reservation = make_reservation().model_copy(update={"id": None})
            with pytest.raises(PersistenceError):
                await client.update(reservation)

    @pytest.mark.asyncio
    async def test_rejection_carries_status(self):
        async with _client(lambda request: httpx.Response(409, text="slot taken")) as client:
            with pytest.raises(PersistenceError) as exc_info:
                await client.create(make_reservation())
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_transport_error_is_persistence_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(PersistenceError) as exc_info:
                await client.create(make_reservation())
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_unreadable_response(self):
        async with _client(lambda request: httpx.Response(200, text="not json")) as client:
            with pytest.raises(PersistenceError):
                await client.create(make_reservation())
