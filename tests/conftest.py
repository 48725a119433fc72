"""Shared test fixtures and helpers."""

import asyncio
import random
from datetime import date, datetime
from typing import Optional

import pytest

from reservation_engine.clients.mock_backend import MockBookingBackend
from reservation_engine.clients.ports import AvailabilityService
from reservation_engine.scheduling.orchestrator import ReservationFormOrchestrator
from reservation_engine.scheduling.staff_assignment import StaffAssignmentResolver
from reservation_engine.schemas.availability_schema import AvailabilityMap, TimeSlot
from reservation_engine.schemas.reservation_schema import (
    Customer,
    Guest,
    GuestService,
    Reservation,
    ReservationStatus,
    ServiceItem,
    Staff,
)

TODAY = date(2026, 10, 19)
TOMORROW = date(2026, 10, 20)
NOW = datetime(2026, 10, 19, 14, 30)

CUT = ServiceItem(id=1, name="Haircut", price=45.0, estimated_time=30)
COLOUR = ServiceItem(id=2, name="Colour", price=120.0, estimated_time=90)


def fixed_clock() -> datetime:
    return NOW


def make_slot(time: str, *staff_ids: int) -> TimeSlot:
    return TimeSlot(time=time, staff_ids=tuple(staff_ids))


def make_guest(
    name: str = "Guest 1",
    services: Optional[list[ServiceItem]] = None,
    staff_id: Optional[int] = None,
    guest_id: Optional[int] = None,
) -> Guest:
    """Helper to create a Guest, optionally with every service already assigned."""
    staff = Staff(id=staff_id, display_name=f"Staff {staff_id}") if staff_id is not None else None
    return Guest(
        id=guest_id,
        display_name=name,
        services=[
            GuestService(service_item=item, assigned_staff=staff)
            for item in (services if services is not None else [CUT])
        ],
    )


def make_reservation(
    guests: Optional[list[Guest]] = None,
    booking_time: datetime = datetime(2026, 10, 20, 10, 0),
    status: ReservationStatus = ReservationStatus.CONFIRMED,
    reservation_id: int = 77,
) -> Reservation:
    """Helper to create a stored reservation for edit-mode tests."""
    return Reservation(
        id=reservation_id,
        customer=Customer(id=501, first_name="Jane", last_name="Doe", phone="0412345678"),
        booking_date=booking_time.date(),
        booking_time=booking_time,
        status=status,
        note="Prefers window seat",
        guests=guests or [make_guest(staff_id=2, guest_id=900)],
        walk_in_booking=False,
    )


def staff_ids_of(guest: Guest) -> list[Optional[int]]:
    return [gs.assigned_staff.id if gs.assigned_staff else None for gs in guest.services]


class GatedAvailability(AvailabilityService):
    """Availability feed whose responses are released by the test, in any order."""

    def __init__(self) -> None:
        self.requests: list[tuple[date, int]] = []
        self._gates: list[asyncio.Future] = []

    async def fetch_availability(self, date: date, staff_id: int) -> AvailabilityMap:
        self.requests.append((date, staff_id))
        gate = asyncio.get_running_loop().create_future()
        self._gates.append(gate)
        return await gate

    def release(self, index: int, availability: AvailabilityMap) -> None:
        self._gates[index].set_result(availability)


@pytest.fixture
def backend():
    return MockBookingBackend()


@pytest.fixture
def resolver():
    return StaffAssignmentResolver(rng=random.Random(7))


@pytest.fixture
def orchestrator(backend, resolver):
    return ReservationFormOrchestrator(
        backend, backend, backend,
        resolver=resolver,
        clock=fixed_clock,
        max_group_size=4,
    )
