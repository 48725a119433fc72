from reservation_engine.schemas.availability_schema import (
    AvailabilityMap,
    StaffSelection,
    TimeSlot,
)
from reservation_engine.schemas.reservation_schema import (
    ANY_PROFESSIONAL,
    ANY_PROFESSIONAL_ID,
    Customer,
    Guest,
    GuestService,
    Reservation,
    ReservationStatus,
    ServiceItem,
    Staff,
)

__all__ = [
    "ANY_PROFESSIONAL",
    "ANY_PROFESSIONAL_ID",
    "AvailabilityMap",
    "Customer",
    "Guest",
    "GuestService",
    "Reservation",
    "ReservationStatus",
    "ServiceItem",
    "Staff",
    "StaffSelection",
    "TimeSlot",
]
