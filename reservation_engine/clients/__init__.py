from reservation_engine.clients.http_client import BookingApiClient
from reservation_engine.clients.mock_backend import MockBookingBackend
from reservation_engine.clients.ports import (
    AvailabilityService,
    ReservationStore,
    StaffDirectory,
)

__all__ = [
    "AvailabilityService",
    "BookingApiClient",
    "MockBookingBackend",
    "ReservationStore",
    "StaffDirectory",
]
