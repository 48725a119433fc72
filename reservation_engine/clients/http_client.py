"""
HTTP client for the store's booking API.

One ``httpx.AsyncClient`` serves the availability feed, the staff
directory and reservation persistence. Every request carries the store
id and bearer token headers the API expects.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

import httpx
from pydantic import ValidationError as PayloadError

from reservation_engine.clients.ports import (
    AvailabilityService,
    ReservationStore,
    StaffDirectory,
)
from reservation_engine.config import settings
from reservation_engine.errors import AvailabilityUnavailableError, PersistenceError
from reservation_engine.schemas.availability_schema import AvailabilityMap
from reservation_engine.schemas.reservation_schema import Reservation, Staff
from reservation_engine.utils import format_date

AVAILABILITY_PATH = "/staff/allStaffAvailability"
STAFF_PATH = "/staff/"
RESERVATION_PATH = "/reservation/"


class BookingApiClient(AvailabilityService, StaffDirectory, ReservationStore):
    def __init__(
        self,
        base_url: Optional[str] = None,
        store_uuid: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        store_uuid = store_uuid if store_uuid is not None else settings.api.store_uuid
        access_token = access_token if access_token is not None else settings.api.access_token
        if store_uuid:
            headers["X-StoreID"] = store_uuid
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api.base_url,
            headers=headers,
            timeout=timeout or settings.api.timeout_sec,
            transport=transport,
        )
        self._logger = logging.getLogger(__name__)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> BookingApiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def fetch_availability(self, date: date, staff_id: int) -> AvailabilityMap:
        params = {"staffId": staff_id, "date": format_date(date)}
        try:
            response = await self._client.get(AVAILABILITY_PATH, params=params)
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError("availability response is not an object")
            return {str(time): [int(s) for s in (ids or [])] for time, ids in data.items()}
        except (httpx.HTTPError, ValueError, TypeError) as e:
            self._logger.error(
                "Error fetching staff availability", extra={"error": str(e)}
            )
            raise AvailabilityUnavailableError(
                f"Could not load availability for {format_date(date)}"
            ) from e

    async def list_staff(self, active_only: bool = True) -> list[Staff]:
        params = {"isOnlyActive": str(active_only).lower()}
        try:
            response = await self._client.get(STAFF_PATH, params=params)
            response.raise_for_status()
            return [Staff.model_validate(item) for item in response.json()]
        except (httpx.HTTPError, ValueError) as e:
            self._logger.error("Error fetching staff", extra={"error": str(e)})
            raise PersistenceError("Could not load staff list") from e

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    async def create(self, reservation: Reservation) -> Reservation:
        payload = reservation.to_payload()
        payload.pop("id", None)
        return await self._send("POST", payload)

    async def update(self, reservation: Reservation) -> Reservation:
        if reservation.id is None:
            raise PersistenceError("Cannot update a reservation without an id")
        return await self._send("PUT", reservation.to_payload())

    async def _send(self, method: str, payload: dict[str, Any]) -> Reservation:
        try:
            response = await self._client.request(method, RESERVATION_PATH, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self._logger.error(
                "Reservation %s rejected", method,
                extra={"status": e.response.status_code, "body": e.response.text[:500]},
            )
            raise PersistenceError(
                f"Reservation {method} failed with status {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            self._logger.error("Reservation %s failed", method, extra={"error": str(e)})
            raise PersistenceError(f"Reservation {method} failed: {e}") from e

        try:
            return Reservation.model_validate(response.json())
        except (ValueError, PayloadError) as e:
            raise PersistenceError("Reservation response could not be read") from e
