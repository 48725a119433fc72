"""Reservation scheduling and staff assignment engine for salon bookings."""

__version__ = "0.1.0"
