from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from reservation_engine.schemas.availability_schema import AvailabilityMap
from reservation_engine.schemas.reservation_schema import Reservation, Staff


class AvailabilityService(ABC):
    @abstractmethod
    async def fetch_availability(self, date: date, staff_id: int) -> AvailabilityMap:
        """Return {"HH:mm": [free staff ids]} for the date; staff_id 0 means anyone."""
        raise NotImplementedError


class StaffDirectory(ABC):
    @abstractmethod
    async def list_staff(self, active_only: bool = True) -> list[Staff]:
        """List the store's staff. Never includes the any-professional sentinel."""
        raise NotImplementedError


class ReservationStore(ABC):
    @abstractmethod
    async def create(self, reservation: Reservation) -> Reservation:
        """Persist a new reservation. Returns it with its assigned id."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, reservation: Reservation) -> Reservation:
        """Replace an existing reservation with the full object sent."""
        raise NotImplementedError
