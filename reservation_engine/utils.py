"""Shared utilities used across the reservation engine."""

import re
from datetime import date, datetime

DATE_FORMAT = "%d/%m/%Y"
BOOKING_TIME_FORMAT = "%d/%m/%Y %H:%M"

MOBILE_PATTERN = re.compile(r"^04\d{8}$")


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("0412 345 678")
        '0412345678'
        >>> normalize_phone("+61 (412) 345-678")
        '+61412345678'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def is_valid_mobile(value: str) -> bool:
    """Check for a local mobile number: ``04`` followed by eight digits.

    Examples:
        >>> is_valid_mobile("0412 345 678")
        True
        >>> is_valid_mobile("0412345")
        False
    """
    return bool(MOBILE_PATTERN.match(normalize_phone(value)))


def format_date(value: date) -> str:
    """Format a date the way the booking API expects (DD/MM/YYYY)."""
    return value.strftime(DATE_FORMAT)


def parse_date(value: str) -> date:
    return datetime.strptime(value.strip(), DATE_FORMAT).date()


def parse_slot_time(value: str) -> tuple[int, int]:
    """Parse an ``HH:mm`` slot label into (hour, minute).

    Raises:
        ValueError: If the label is not a valid time of day.
    """
    parsed = datetime.strptime(value.strip(), "%H:%M")
    return parsed.hour, parsed.minute
