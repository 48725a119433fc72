"""Helpers for reading an existing reservation back into the booking form."""

from datetime import datetime, timedelta

from reservation_engine.schemas.availability_schema import StaffSelection
from reservation_engine.schemas.reservation_schema import (
    ANY_PROFESSIONAL,
    Guest,
    Reservation,
    Staff,
)


def end_time_for_first_guest(reservation: Reservation) -> datetime:
    """Booking time plus the first guest's estimated duration."""
    if not reservation.guests:
        return reservation.booking_time
    minutes = reservation.guests[0].total_estimated_time
    return reservation.booking_time + timedelta(minutes=minutes)


def staff_for_reservation(reservation: Reservation) -> Staff:
    """The staff a reschedule should start from.

    A single-guest booking starts from its first service's staff; group
    bookings (and unassigned ones) start from "any professional".
    """
    if len(reservation.guests) == 1:
        services = reservation.guests[0].services
        if services and services[0].assigned_staff is not None:
            return services[0].assigned_staff
    return ANY_PROFESSIONAL


def selection_for_reservation(reservation: Reservation) -> StaffSelection:
    staff = staff_for_reservation(reservation)
    if staff.id is None or staff.is_any_professional:
        return StaffSelection.any()
    return StaffSelection.specific(staff.id)


def describe_guest(guest: Guest) -> str:
    """One-line summary, e.g. ``Guest 1 [Cut (Amy), Colour (Amy)]``."""
    services = ", ".join(
        f"{gs.service_item.name} ({gs.assigned_staff.display_name if gs.assigned_staff else '-'})"
        for gs in guest.services
    )
    return f"{guest.display_name or 'Guest'} [{services}]"
