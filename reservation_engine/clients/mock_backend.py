"""
In-memory booking backend.

Stands in for the store's booking API in the console demo and tests:
a small staff roster, a seeded per-date availability schedule, and a
reservation table with incrementing ids.
"""

import logging
import random
from datetime import date
from typing import Optional

from reservation_engine.clients.ports import (
    AvailabilityService,
    ReservationStore,
    StaffDirectory,
)
from reservation_engine.errors import PersistenceError
from reservation_engine.schemas.availability_schema import AvailabilityMap
from reservation_engine.schemas.reservation_schema import (
    ANY_PROFESSIONAL_ID,
    Reservation,
    Staff,
)

logger = logging.getLogger(__name__)

# Schedule generation parameters
OPENING_HOURS = list(range(9, 18))
AVAILABILITY_PROBABILITY = 0.7
SCHEDULE_SEED = 42

DEFAULT_STAFF: list[Staff] = [
    Staff(id=1, display_name="Amy", first_name="Amy", last_name="Nguyen"),
    Staff(id=2, display_name="Ben", first_name="Ben", last_name="Tran"),
    Staff(id=3, display_name="Chloe", first_name="Chloe", last_name="Le"),
    Staff(id=4, display_name="Dan", first_name="Dan", last_name="Pham", active=False),
]


class MockBookingBackend(AvailabilityService, StaffDirectory, ReservationStore):
    def __init__(
        self,
        staff: Optional[list[Staff]] = None,
        seed: int = SCHEDULE_SEED,
    ) -> None:
        self._staff = list(staff if staff is not None else DEFAULT_STAFF)
        self._seed = seed
        self._overrides: dict[date, AvailabilityMap] = {}
        self._reservations: dict[int, Reservation] = {}
        self._next_id = 1
        self._fail_writes: Optional[str] = None
        self.availability_calls: list[tuple[date, int]] = []

    # ------------------------------------------------------------------ #
    # Test and demo controls
    # ------------------------------------------------------------------ #

    def set_availability(self, day: date, availability: AvailabilityMap) -> None:
        """Pin the availability feed for one date."""
        self._overrides[day] = {t: list(ids) for t, ids in availability.items()}

    def fail_writes(self, message: Optional[str] = "Service unavailable") -> None:
        """Make create/update raise PersistenceError until called with None."""
        self._fail_writes = message

    def get(self, reservation_id: int) -> Optional[Reservation]:
        return self._reservations.get(reservation_id)

    @property
    def reservations(self) -> list[Reservation]:
        return list(self._reservations.values())

    def reset(self) -> None:
        """Clear all reservations and overrides. Used by test fixtures for isolation."""
        self._overrides.clear()
        self._reservations.clear()
        self._next_id = 1
        self._fail_writes = None
        self.availability_calls.clear()

    # ------------------------------------------------------------------ #
    # Ports
    # ------------------------------------------------------------------ #

    def _generate_day(self, day: date) -> AvailabilityMap:
        """Seeded ~70% availability per active staff member per opening hour."""
        rng = random.Random(self._seed * 100_000 + day.toordinal())
        active = [s.id for s in self._staff if s.active and s.id is not None]
        schedule: AvailabilityMap = {}
        for hour in OPENING_HOURS:
            free = [sid for sid in active if rng.random() < AVAILABILITY_PROBABILITY]
            if free:
                schedule[f"{hour:02d}:00"] = free
        return schedule

    async def fetch_availability(self, date: date, staff_id: int) -> AvailabilityMap:
        self.availability_calls.append((date, staff_id))
        day = self._overrides.get(date)
        if day is None:
            day = self._generate_day(date)
        if staff_id == ANY_PROFESSIONAL_ID:
            return {t: list(ids) for t, ids in day.items()}
        return {t: list(ids) for t, ids in day.items() if staff_id in ids}

    async def list_staff(self, active_only: bool = True) -> list[Staff]:
        return [s for s in self._staff if s.active or not active_only]

    async def create(self, reservation: Reservation) -> Reservation:
        self._check_writes()
        stored = reservation.model_copy(update={"id": self._next_id}, deep=True)
        self._next_id += 1
        self._reservations[stored.id] = stored
        logger.info(
            "Reservation created: %s on %s", stored.id,
            stored.booking_time.strftime("%d/%m/%Y %H:%M"),
        )
        return stored.model_copy(deep=True)

    async def update(self, reservation: Reservation) -> Reservation:
        self._check_writes()
        if reservation.id not in self._reservations:
            raise PersistenceError(f"Reservation {reservation.id} not found", status_code=404)
        stored = reservation.model_copy(deep=True)
        self._reservations[stored.id] = stored
        logger.info("Reservation updated: %s", stored.id)
        return stored.model_copy(deep=True)

    def _check_writes(self) -> None:
        if self._fail_writes:
            raise PersistenceError(self._fail_writes, status_code=503)
